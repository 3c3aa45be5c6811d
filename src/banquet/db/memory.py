"""
Banquet - In-Memory Plan Store.

Process-local PlanStore used when Supabase is not configured and in tests.
Rows are kept in insertion order per table, keyed by plan id.
"""

import logging
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from banquet.db.adapter import shopping_sort_key
from banquet.errors import PlanNotFoundError
from banquet.models.entities import (
    AgentDecision,
    Attendee,
    BudgetAnalysis,
    MealPlan,
    NewAttendee,
    NewMealPlan,
    PlanSnapshot,
    PlanStatus,
    ScaledIngredient,
    SelectedRecipe,
    ShoppingItem,
)
from banquet.tools.meal_slots import slot_sort_key

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(UTC)


class InMemoryPlanStore:
    """Dict-backed PlanStore with cascade delete."""

    def __init__(self) -> None:
        self._plans: dict[str, MealPlan] = {}
        self._attendees: dict[str, list[Attendee]] = {}
        self._decisions: dict[str, list[AgentDecision]] = {}
        self._recipes: dict[str, list[SelectedRecipe]] = {}
        self._shopping: dict[str, list[ShoppingItem]] = {}
        self._budget: dict[str, list[BudgetAnalysis]] = {}

    def _require_plan(self, plan_id: str) -> MealPlan:
        plan = self._plans.get(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return plan

    # =========================================================================
    # Plans
    # =========================================================================

    async def create_plan(self, plan: NewMealPlan) -> MealPlan:
        created = MealPlan(
            id=_new_id(),
            status=PlanStatus.PLANNING,
            created_at=_utc_now(),
            **plan.model_dump(),
        )
        self._plans[created.id] = created
        for table in (self._attendees, self._decisions, self._recipes, self._shopping, self._budget):
            table[created.id] = []
        return created

    async def get_plan(self, plan_id: str) -> PlanSnapshot | None:
        plan = self._plans.get(plan_id)
        if plan is None:
            return None
        return PlanSnapshot(
            **plan.model_dump(),
            attendees=list(self._attendees[plan_id]),
            decisions=list(self._decisions[plan_id]),
            recipes=sorted(self._recipes[plan_id], key=lambda r: slot_sort_key(r.meal_slot)),
            shopping_items=sorted(self._shopping[plan_id], key=shopping_sort_key),
            budget_analyses=list(self._budget[plan_id]),
        )

    async def update_plan_status(self, plan_id: str, status: PlanStatus) -> MealPlan:
        plan = self._require_plan(plan_id).model_copy(update={"status": PlanStatus(status)})
        self._plans[plan_id] = plan
        return plan

    async def delete_plan(self, plan_id: str) -> bool:
        if self._plans.pop(plan_id, None) is None:
            return False
        for table in (self._attendees, self._decisions, self._recipes, self._shopping, self._budget):
            table.pop(plan_id, None)
        return True

    # =========================================================================
    # Children
    # =========================================================================

    async def add_attendees(self, plan_id: str, attendees: list[NewAttendee]) -> list[Attendee]:
        self._require_plan(plan_id)
        created = [
            Attendee(id=_new_id(), meal_plan_id=plan_id, **attendee.cleaned().model_dump())
            for attendee in attendees
        ]
        self._attendees[plan_id].extend(created)
        return created

    async def save_decision(
        self,
        plan_id: str,
        agent_type: str,
        decision_type: str,
        decision_data: dict[str, Any],
        reasoning: str,
        confidence_score: float | None = None,
    ) -> AgentDecision:
        self._require_plan(plan_id)
        decision = AgentDecision(
            id=_new_id(),
            meal_plan_id=plan_id,
            agent_type=agent_type,
            decision_type=decision_type,
            decision_data=decision_data,
            reasoning=reasoning,
            confidence_score=confidence_score,
            created_at=_utc_now(),
        )
        self._decisions[plan_id].append(decision)
        return decision

    async def save_selected_recipe(
        self,
        plan_id: str,
        meal_slot: str,
        catalog_recipe_id: int,
        recipe_name: str,
        selection_reasoning: str,
        estimated_servings: int,
        scaled_ingredients: list[ScaledIngredient],
        confidence_score: float | None = None,
    ) -> SelectedRecipe:
        self._require_plan(plan_id)
        recipe = SelectedRecipe(
            id=_new_id(),
            meal_plan_id=plan_id,
            meal_slot=meal_slot,
            catalog_recipe_id=catalog_recipe_id,
            recipe_name=recipe_name,
            selection_reasoning=selection_reasoning,
            estimated_servings=estimated_servings,
            scaled_ingredients=scaled_ingredients,
            confidence_score=confidence_score,
        )
        rows = [r for r in self._recipes[plan_id] if r.meal_slot != meal_slot]
        rows.append(recipe)
        self._recipes[plan_id] = rows
        return recipe

    async def get_selected_recipes(self, plan_id: str) -> list[SelectedRecipe]:
        self._require_plan(plan_id)
        return sorted(self._recipes[plan_id], key=lambda r: slot_sort_key(r.meal_slot))

    async def save_shopping_items(self, plan_id: str, items: list[ShoppingItem]) -> list[ShoppingItem]:
        self._require_plan(plan_id)
        saved = [
            item.model_copy(update={"id": _new_id(), "meal_plan_id": plan_id}) for item in items
        ]
        self._shopping[plan_id] = saved
        return saved

    async def save_budget_analysis(
        self,
        plan_id: str,
        total_cost: float,
        cost_breakdown: dict[str, Any],
        optimization_suggestions: str,
        reasoning: str,
    ) -> BudgetAnalysis:
        self._require_plan(plan_id)
        analysis = BudgetAnalysis(
            id=_new_id(),
            meal_plan_id=plan_id,
            total_cost=total_cost,
            cost_breakdown=cost_breakdown,
            optimization_suggestions=optimization_suggestions,
            reasoning=reasoning,
            created_at=_utc_now(),
        )
        self._budget[plan_id].append(analysis)
        return analysis

    async def close(self) -> None:
        logger.debug("In-memory plan store closed")
