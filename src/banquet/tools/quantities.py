"""
Banquet - Quantity Calculations.

Deterministic helpers for recipe scaling and ingredient consolidation.
No I/O here: every function is a pure transform of its inputs.
"""

import logging
from collections.abc import Iterable, Mapping

from pydantic import BaseModel, Field

from banquet.catalog.models import CatalogRecipe
from banquet.errors import PlanValidationError
from banquet.models.entities import ScaledIngredient, SelectedRecipe

logger = logging.getLogger(__name__)


class ConsolidatedIngredient(BaseModel):
    """One ingredient summed across every recipe that uses it."""

    name: str
    total_amount: float = Field(ge=0)
    unit: str
    sources: list[str] = Field(default_factory=list)  # Recipe names
    aisle: str = "Other"


def _round2(value: float) -> float:
    return round(value * 100) / 100


def scale_recipe_ingredients(recipe: CatalogRecipe, target_servings: int) -> list[ScaledIngredient]:
    """
    Scale a recipe's ingredient amounts to a target serving count.

    amount = original * (target / recipe.servings), rounded to 2 decimals.

    Raises:
        PlanValidationError: recipe has no (or zero) serving count
    """
    if not recipe.servings:
        raise PlanValidationError(f'Recipe "{recipe.title}" has invalid serving count')

    scale_factor = target_servings / recipe.servings
    logger.debug(
        f'Scaling "{recipe.title}": {recipe.servings} -> {target_servings} servings ({scale_factor:.2f}x)'
    )

    if not recipe.extended_ingredients:
        logger.warning(f'Recipe "{recipe.title}" has no ingredient data')
        return []

    return [
        ScaledIngredient(
            id=ingredient.id,
            name=ingredient.name,
            amount=_round2(ingredient.amount * scale_factor),
            unit=ingredient.unit,
            original_amount=ingredient.amount,
            scale_factor=scale_factor,
            aisle=ingredient.aisle,
        )
        for ingredient in recipe.extended_ingredients
    ]


def consolidate_ingredients(
    recipe_ingredients: Mapping[str, Iterable[ScaledIngredient]],
) -> list[ConsolidatedIngredient]:
    """
    Merge ingredients across recipes.

    Key is (name, unit), case-insensitive. Amounts are summed, contributing
    recipe names are collected, missing aisle becomes "Other". Output is
    rounded to 2 decimals and sorted by name.

    Args:
        recipe_ingredients: recipe name -> scaled ingredient lines
    """
    consolidated: dict[tuple[str, str], ConsolidatedIngredient] = {}

    for recipe_name, ingredients in recipe_ingredients.items():
        for ingredient in ingredients:
            key = (ingredient.name.lower(), (ingredient.unit or "").lower())
            existing = consolidated.get(key)
            if existing:
                existing.total_amount += ingredient.amount
                if recipe_name not in existing.sources:
                    existing.sources.append(recipe_name)
            else:
                consolidated[key] = ConsolidatedIngredient(
                    name=ingredient.name,
                    total_amount=ingredient.amount,
                    unit=ingredient.unit or "",
                    sources=[recipe_name],
                    aisle=ingredient.aisle or "Other",
                )

    result = [
        item.model_copy(update={"total_amount": _round2(item.total_amount)})
        for item in consolidated.values()
    ]
    result.sort(key=lambda item: item.name.lower())
    return result


def ingredients_by_recipe(recipes: Iterable[SelectedRecipe]) -> dict[str, list[ScaledIngredient]]:
    """
    Group scaled ingredient lines by recipe name.

    The same recipe picked for two slots contributes twice (lines are appended,
    not overwritten).
    """
    grouped: dict[str, list[ScaledIngredient]] = {}
    for recipe in recipes:
        grouped.setdefault(recipe.recipe_name, []).extend(recipe.scaled_ingredients)
    return grouped
