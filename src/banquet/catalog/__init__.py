"""
Banquet - Recipe Catalog.

Spoonacular-compatible search and lookup.
"""

from banquet.catalog.client import CatalogClient
from banquet.catalog.models import (
    CatalogFilters,
    CatalogIngredient,
    CatalogRecipe,
    CatalogSearchResult,
    ScoredRecipe,
)

__all__ = [
    "CatalogClient",
    "CatalogFilters",
    "CatalogIngredient",
    "CatalogRecipe",
    "CatalogSearchResult",
    "ScoredRecipe",
]
