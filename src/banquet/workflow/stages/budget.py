"""
Banquet - Stage 4: Budget Optimization.

Re-consolidates the selected recipes, costs them locally, asks the model
for savings and shopping priorities, then replaces the plan's shopping list
and appends a budget analysis snapshot. A significant overrun is recorded
as an orchestrator decision; nothing is re-planned.
"""

import json
import logging

from banquet.db.adapter import PlanStore
from banquet.errors import PlanNotFoundError, PlanValidationError
from banquet.llm.client import ReasoningGateway
from banquet.models.entities import ShoppingItem
from banquet.observability.usage import UsageTracker
from banquet.prompts.personas import BUDGET_SPECIALIST
from banquet.tools.costs import CostAnalysis, calculate_total_cost, organize_shopping_list
from banquet.tools.quantities import (
    ConsolidatedIngredient,
    consolidate_ingredients,
    ingredients_by_recipe,
)
from banquet.workflow.state import BudgetOptimization, BudgetResult, PriorityShoppingItem

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 3
OVERRUN_CONFIDENCE = 0.8
PROMPT_ITEMIZED_LIMIT = 20


def priority_for(name: str, priorities: list[PriorityShoppingItem]) -> int:
    """First priority entry whose item text contains the ingredient name."""
    needle = name.lower()
    for entry in priorities:
        if needle in entry.item.lower():
            return entry.priority
    return DEFAULT_PRIORITY


def budget_overage(total_cost: float, budget: float | None) -> float | None:
    """Fractional overrun, (total - budget) / budget. None without a budget."""
    if not budget:
        return None
    return (total_cost - budget) / budget


def is_overrun(total_cost: float, budget: float | None, threshold: float = 0.15) -> bool:
    overage = budget_overage(total_cost, budget)
    return overage is not None and overage > threshold


def build_shopping_items(
    consolidated: list[ConsolidatedIngredient],
    costs: CostAnalysis,
    optimization: BudgetOptimization,
) -> list[ShoppingItem]:
    # calculate_total_cost keeps input order, so itemized costs line up by index
    return [
        ShoppingItem(
            ingredient_name=ingredient.name,
            quantity=ingredient.total_amount,
            unit=ingredient.unit,
            estimated_cost=itemized.estimated_cost,
            store_section=ingredient.aisle,
            optimization_reasoning=optimization.optimization_reasoning or "Budget optimization analysis",
            priority=priority_for(ingredient.name, optimization.priority_shopping_items),
        )
        for ingredient, itemized in zip(consolidated, costs.itemized_costs, strict=True)
    ]


def _budget_status_line(total_cost: float, budget: float | None) -> str:
    if not budget:
        return "No budget constraint"
    return "Over budget" if total_cost > budget else "Within budget"


async def optimize_budget(
    plan_id: str,
    *,
    store: PlanStore,
    gateway: ReasoningGateway,
    overrun_threshold: float = 0.15,
    usage: UsageTracker | None = None,
) -> BudgetResult:
    """
    Raises:
        PlanNotFoundError: unknown plan
        PlanValidationError: no recipes have been selected yet
    """
    plan = await store.get_plan(plan_id)
    if plan is None:
        raise PlanNotFoundError(plan_id)
    if not plan.recipes:
        raise PlanValidationError("No recipes selected. Select recipes before budget optimization.")

    consolidated = consolidate_ingredients(ingredients_by_recipe(plan.recipes))
    costs = calculate_total_cost(consolidated)
    organized = organize_shopping_list(consolidated)
    budget = plan.budget_total

    organized_json = {
        section: [i.model_dump(mode="json") for i in items] for section, items in organized.items()
    }
    itemized_json = [c.model_dump(mode="json") for c in costs.itemized_costs]

    user_prompt = f"""Please optimize the budget and shopping list for this meal plan.

BUDGET INFO:
- Target Budget: {f"${budget}" if budget else "No budget set"}
- Estimated Total Cost: ${costs.total_cost}
- Budget Status: {_budget_status_line(costs.total_cost, budget)}

COST BREAKDOWN:
{json.dumps(itemized_json[:PROMPT_ITEMIZED_LIMIT], indent=2)}

ORGANIZED SHOPPING LIST:
{json.dumps(organized_json, indent=2)}

Provide budget optimization suggestions and prioritize the shopping list."""

    response = await gateway.call(
        system_prompt=BUDGET_SPECIALIST,
        user_prompt=user_prompt,
        response_model=BudgetOptimization,
        stage="budget",
    )
    if usage is not None:
        usage.record("budget", response.usage, retries=response.retries)
    optimization = response.structured

    shopping_items = await store.save_shopping_items(
        plan_id, build_shopping_items(consolidated, costs, optimization)
    )
    await store.save_budget_analysis(
        plan_id,
        costs.total_cost,
        {"itemized_costs": itemized_json, "organized_by_section": organized_json},
        "; ".join(optimization.cost_saving_opportunities) or "No specific optimizations identified",
        optimization.optimization_reasoning or "Budget analysis completed",
    )

    overage = budget_overage(costs.total_cost, budget)
    overrun = is_overrun(costs.total_cost, budget, overrun_threshold)
    if overrun:
        logger.warning(f"Budget overrun: {overage * 100:.1f}% over target")
        await store.save_decision(
            plan_id,
            "orchestrator",
            "budget_overrun_detected",
            {"budget_overage": overage, "total_cost": costs.total_cost, "target_budget": budget},
            f"Budget overrun detected: {overage * 100:.1f}% over target",
            OVERRUN_CONFIDENCE,
        )

    return BudgetResult(
        total_cost=costs.total_cost,
        target_budget=budget,
        within_budget=(costs.total_cost <= budget) if budget else None,
        budget_overage=overage,
        overrun_detected=overrun,
        itemized_costs=costs.itemized_costs,
        consolidated_ingredients=consolidated,
        organized_shopping_list=organized,
        ai_optimization=optimization,
        shopping_items=shopping_items,
    )
