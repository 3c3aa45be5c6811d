"""
Banquet - Recipe Catalog Client.

Async client for a Spoonacular-compatible recipe API:
- search: /complexSearch with diet, intolerance and dish-type filters
- get_details / get_details_bulk: /{id}/information
- get_recommendations: restriction-aware search, ranked locally

All transport and HTTP errors surface as CatalogError.
"""

import asyncio
import logging
from collections.abc import Iterable

import httpx

from banquet.catalog.models import (
    CatalogFilters,
    CatalogRecipe,
    CatalogSearchResult,
    ScoredRecipe,
)
from banquet.config import Settings, get_settings
from banquet.errors import CatalogError
from banquet.tools.dietary import RESTRICTION_FILTERS, map_meal_type

logger = logging.getLogger(__name__)

RECOMMENDATION_LIMIT = 10


def _describe(e: httpx.HTTPError) -> str:
    if isinstance(e, httpx.TimeoutException):
        return "request timed out"
    if isinstance(e, httpx.HTTPStatusError):
        return f"HTTP {e.response.status_code}"
    return str(e) or type(e).__name__


class CatalogClient:
    """
    Recipe catalog over httpx.AsyncClient.

    Pass `transport` to swap the network layer (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = settings or get_settings()
        api_key = settings.spoonacular_api_key if api_key is None else api_key
        if not api_key:
            logger.warning("SPOONACULAR_API_KEY is not set; catalog requests will be rejected")
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.catalog_base_url,
            params={"apiKey": api_key},
            timeout=timeout or settings.catalog_timeout_seconds,
            transport=transport,
        )

    async def _get(self, path: str, params: dict) -> dict:
        response = await self._client.get(path, params=params)
        response.raise_for_status()
        return response.json()

    # =========================================================================
    # Search
    # =========================================================================

    async def search(self, filters: CatalogFilters) -> CatalogSearchResult:
        """Search recipes. An empty result is not an error."""
        logger.info(
            f"Catalog search: type={filters.type} diet={filters.diet} "
            f"intolerances={filters.intolerances} number={filters.number}"
        )
        try:
            data = await self._get("/complexSearch", filters.to_params())
        except httpx.HTTPError as e:
            logger.error(f"Recipe search failed: {_describe(e)}")
            raise CatalogError(f"Recipe search failed: {_describe(e)}") from e

        result = CatalogSearchResult(
            results=[CatalogRecipe.model_validate(r) for r in data.get("results") or []],
            total_results=data.get("totalResults") or 0,
            offset=data.get("offset") or 0,
        )
        logger.info(f"Catalog search: {result.total_results} total, returning {len(result.results)}")
        return result

    # =========================================================================
    # Details
    # =========================================================================

    async def get_details(self, recipe_id: int) -> CatalogRecipe:
        """Full recipe information including ingredients and nutrition."""
        params = {"includeNutrition": True, "addWinePairing": False, "addTasteData": False}
        try:
            data = await self._get(f"/{recipe_id}/information", params)
        except httpx.HTTPError as e:
            raise CatalogError(f"Failed to get recipe details for {recipe_id}: {_describe(e)}") from e
        return CatalogRecipe.model_validate(data)

    async def get_details_bulk(self, recipe_ids: Iterable[int]) -> list[CatalogRecipe]:
        """Fetch several recipes concurrently. Fails if any lookup fails."""
        recipe_ids = list(recipe_ids)
        logger.info(f"Fetching details for {len(recipe_ids)} recipes")
        return list(await asyncio.gather(*(self.get_details(rid) for rid in recipe_ids)))

    # =========================================================================
    # Recommendations
    # =========================================================================

    async def get_recommendations(
        self,
        dietary_restrictions: Iterable[str],
        meal_type: str,
        servings: int,
    ) -> list[ScoredRecipe]:
        """
        Restriction-aware search ranked for a group.

        Score (higher is better):
        - up to 10 points for serving count close to `servings`
        - 5 points for breakfasts ready within 20 minutes
        - 3 points for nutrition data, 2 for ingredient data
        """
        diet: str | None = None
        intolerances: list[str] = []
        for restriction in dietary_restrictions:
            mapping = RESTRICTION_FILTERS.get(restriction.lower())
            if not mapping:
                continue
            diet = mapping.get("diet", diet)
            intolerances.extend(mapping.get("intolerances", []))

        filters = CatalogFilters(
            type=map_meal_type(meal_type),
            diet=diet,
            intolerances=intolerances,
            number=20,
            max_ready_time=30 if meal_type == "breakfast" else 60,
        )
        result = await self.search(filters)

        scored = []
        for recipe in result.results:
            if not recipe.servings or recipe.servings <= 0:
                continue
            score = max(0, 10 - abs(recipe.servings - servings))
            if meal_type == "breakfast" and (recipe.ready_in_minutes or 0) <= 20:
                score += 5
            if recipe.nutrition:
                score += 3
            if recipe.has_ingredients:
                score += 2
            scored.append(ScoredRecipe(**recipe.model_dump(), score=score))

        scored.sort(key=lambda r: r.score, reverse=True)
        return scored[:RECOMMENDATION_LIMIT]

    async def aclose(self) -> None:
        await self._client.aclose()
