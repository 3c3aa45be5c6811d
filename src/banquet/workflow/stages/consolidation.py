"""
Banquet - Stage 3: Quantity Consolidation.

Deterministic: merges the scaled ingredients of every selected recipe.
Running it twice over the same selections gives the same output.
"""

import logging

from banquet.db.adapter import PlanStore
from banquet.errors import PlanValidationError
from banquet.tools.quantities import consolidate_ingredients, ingredients_by_recipe
from banquet.workflow.state import ConsolidationResult

logger = logging.getLogger(__name__)


async def consolidate_plan(plan_id: str, *, store: PlanStore) -> ConsolidationResult:
    recipes = await store.get_selected_recipes(plan_id)
    if not recipes:
        raise PlanValidationError("No recipes found for quantity calculations")

    consolidated = consolidate_ingredients(ingredients_by_recipe(recipes))
    logger.info(
        f"Consolidated {len(consolidated)} unique ingredients from {len(recipes)} recipes"
    )
    return ConsolidationResult(consolidated_ingredients=consolidated, total_recipes=len(recipes))
