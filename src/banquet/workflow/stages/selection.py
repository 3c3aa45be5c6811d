"""
Banquet - Stage 2: Recipe Selection.

For each meal slot: search the catalog with filters derived from the
dietary analysis, let the model pick one of the top candidates, scale the
pick to the group and persist it. Slots run strictly in order with a pause
between them.
"""

import json
import logging

from banquet.catalog.client import CatalogClient
from banquet.catalog.models import CatalogFilters, CatalogRecipe
from banquet.db.adapter import PlanStore
from banquet.errors import PlanValidationError, SelectionConsistencyError
from banquet.llm.client import ReasoningGateway
from banquet.models.entities import PlanSnapshot
from banquet.observability.usage import UsageTracker
from banquet.prompts.personas import get_chef_persona
from banquet.tools.dietary import extract_diet_type, extract_intolerances, map_meal_type
from banquet.tools.meal_slots import MealSlot, generate_meal_slots
from banquet.tools.quantities import scale_recipe_ingredients
from banquet.workflow.pacing import FixedDelayPacer, Pacer
from banquet.workflow.state import (
    DietaryAnalysis,
    RecipeSelection,
    SelectionResult,
    SlotSelection,
)

logger = logging.getLogger(__name__)

SEARCH_SIZE = 20
FALLBACK_SEARCH_SIZE = 10
CANDIDATES_OFFERED = 5
SUMMARY_CHARS = 200


def build_slot_filters(slot: MealSlot, analysis: DietaryAnalysis) -> CatalogFilters:
    return CatalogFilters(
        type=map_meal_type(slot.meal_type),
        diet=extract_diet_type(analysis.primary_constraints),
        intolerances=extract_intolerances(analysis.primary_constraints),
        max_ready_time=slot.max_ready_time,
        number=SEARCH_SIZE,
    )


def summarize_candidates(candidates: list[CatalogRecipe]) -> list[dict]:
    """Trim candidates to what the model needs to choose."""
    return [
        {
            "id": recipe.id,
            "title": recipe.title,
            "readyInMinutes": recipe.ready_in_minutes,
            "servings": recipe.servings,
            "diets": recipe.diets,
            "dishTypes": recipe.dish_types,
            "summary": (
                recipe.summary[:SUMMARY_CHARS] + "..." if recipe.summary else "No summary available"
            ),
        }
        for recipe in candidates[:CANDIDATES_OFFERED]
    ]


def variety_score(selections: list[SlotSelection]) -> float:
    """Distinct recipe names over slots filled (0 when nothing was selected)."""
    if not selections:
        return 0.0
    return min(len({s.recipe_name for s in selections}) / len(selections), 1.0)


async def _find_candidates(
    slot: MealSlot, analysis: DietaryAnalysis, catalog: CatalogClient
) -> list[CatalogRecipe]:
    result = await catalog.search(build_slot_filters(slot, analysis))
    if result.results:
        return result.results

    logger.warning(f"No recipes found for {slot.key}, using fallback search")
    fallback = await catalog.search(
        CatalogFilters(type=map_meal_type(slot.meal_type), number=FALLBACK_SEARCH_SIZE)
    )
    return fallback.results


async def select_for_slot(
    plan: PlanSnapshot,
    slot: MealSlot,
    analysis: DietaryAnalysis,
    *,
    store: PlanStore,
    gateway: ReasoningGateway,
    catalog: CatalogClient,
    usage: UsageTracker | None = None,
) -> SlotSelection:
    """
    Fill one slot.

    Raises:
        PlanValidationError: no candidates even after the fallback search,
            or the chosen recipe has no usable serving count
        SelectionConsistencyError: the model returned an id it was not offered
    """
    candidates = await _find_candidates(slot, analysis, catalog)
    if not candidates:
        raise PlanValidationError(f"No recipes available for {slot.key}")

    offered = summarize_candidates(candidates)
    user_prompt = f"""Please select the best recipe for {slot.key} from these options.

MEAL PLAN INFO:
- Attendee Count: {plan.attendee_count}

DIETARY CONSTRAINTS SUMMARY:
- Complexity: {analysis.overall_complexity}
- Key Restrictions: {", ".join(analysis.primary_constraints) or "none"}
- Cross-contamination Risks: {", ".join(analysis.cross_contamination_risks) or "none"}

AVAILABLE RECIPES (top {len(offered)}):
{json.dumps(offered, indent=2)}

Select the most appropriate recipe by id and explain why."""

    response = await gateway.call(
        system_prompt=get_chef_persona(plan.attendee_count),
        user_prompt=user_prompt,
        response_model=RecipeSelection,
        stage="recipe_selection",
    )
    if usage is not None:
        usage.record("recipe_selection", response.usage, retries=response.retries)
    selection = response.structured

    offered_ids = {c["id"] for c in offered}
    if selection.selected_recipe_id not in offered_ids:
        raise SelectionConsistencyError(
            f"Selected recipe {selection.selected_recipe_id} for {slot.key} "
            f"was not among the offered candidates {sorted(offered_ids)}"
        )
    chosen = next(c for c in candidates if c.id == selection.selected_recipe_id)

    if not chosen.has_ingredients:
        chosen = await catalog.get_details(chosen.id)

    scaled = scale_recipe_ingredients(chosen, selection.estimated_servings)

    await store.save_selected_recipe(
        plan.id,
        slot.key,
        selection.selected_recipe_id,
        selection.recipe_name,
        selection.selection_reasoning,
        selection.estimated_servings,
        scaled,
        selection.confidence_score,
    )
    logger.info(f"Selected recipe: {selection.recipe_name} for {slot.key}")

    return SlotSelection(
        meal_slot=slot.key,
        catalog_recipe_id=selection.selected_recipe_id,
        recipe_name=selection.recipe_name,
        selection_reasoning=selection.selection_reasoning,
        estimated_servings=selection.estimated_servings,
        confidence_score=selection.confidence_score,
        scaled_ingredients=scaled,
    )


async def select_recipes(
    plan: PlanSnapshot,
    analysis: DietaryAnalysis,
    *,
    store: PlanStore,
    gateway: ReasoningGateway,
    catalog: CatalogClient,
    pacer: Pacer | None = None,
    variety_threshold: float = 0.6,
    confidence_threshold: float = 0.7,
    usage: UsageTracker | None = None,
) -> SelectionResult:
    """
    Fill every slot of the plan, then score variety and confidence.

    A quality shortfall is logged and flagged on the result; the selection
    is kept as-is.
    """
    pacer = pacer or FixedDelayPacer(0.5)
    slots = generate_meal_slots(plan.start_date, plan.end_date)
    logger.info(f"Recipe selection: {len(slots)} slots")

    selections: list[SlotSelection] = []
    for index, slot in enumerate(slots):
        if index:
            await pacer.wait()
        selections.append(
            await select_for_slot(
                plan, slot, analysis, store=store, gateway=gateway, catalog=catalog, usage=usage
            )
        )

    variety = variety_score(selections)
    avg_confidence = (
        sum(s.confidence_score for s in selections) / len(selections) if selections else 0.0
    )
    shortfall = variety < variety_threshold or avg_confidence < confidence_threshold
    if shortfall:
        logger.warning(
            f"Recipe selection quality below target (variety {variety:.2f}, "
            f"confidence {avg_confidence:.2f}); proceeding with current selection"
        )

    return SelectionResult(
        selected_recipes=selections,
        variety_score=variety,
        avg_confidence=avg_confidence,
        total_recipes_selected=len(selections),
        quality_shortfall=shortfall,
    )
