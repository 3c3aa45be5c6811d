"""
Banquet - Supabase Plan Store.

PlanStore backed by the tables in migrations/001_core_tables.sql.
Cascade delete is enforced by the foreign keys (on delete cascade).
"""

import logging
from typing import Any

from supabase import Client, create_client

from banquet.config import Settings, get_settings
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

PLANS = "meal_plans"
ATTENDEES = "attendees"
DECISIONS = "agent_decisions"
RECIPES = "selected_recipes"
SHOPPING = "shopping_items"
BUDGET = "budget_analyses"


def get_client(settings: Settings | None = None) -> Client:
    """Create a Supabase client from settings."""
    settings = settings or get_settings()
    return create_client(settings.supabase_url, settings.supabase_key)


class SupabasePlanStore:
    """PlanStore over Supabase/PostgREST."""

    def __init__(self, client: Client | None = None, *, settings: Settings | None = None):
        self._client = client or get_client(settings)

    def _rows(self, table: str, plan_id: str, order: str | None = None) -> list[dict]:
        query = self._client.table(table).select("*").eq("meal_plan_id", plan_id)
        if order:
            query = query.order(order)
        return query.execute().data or []

    def _require_plan(self, plan_id: str) -> None:
        response = self._client.table(PLANS).select("id").eq("id", plan_id).execute()
        if not response.data:
            raise PlanNotFoundError(plan_id)

    # =========================================================================
    # Plans
    # =========================================================================

    async def create_plan(self, plan: NewMealPlan) -> MealPlan:
        data = {**plan.model_dump(mode="json"), "status": PlanStatus.PLANNING.value}
        response = self._client.table(PLANS).insert(data).execute()
        return MealPlan.model_validate(response.data[0])

    async def get_plan(self, plan_id: str) -> PlanSnapshot | None:
        response = self._client.table(PLANS).select("*").eq("id", plan_id).execute()
        if not response.data:
            return None

        recipes = [SelectedRecipe.model_validate(r) for r in self._rows(RECIPES, plan_id)]
        shopping = [ShoppingItem.model_validate(r) for r in self._rows(SHOPPING, plan_id)]

        return PlanSnapshot(
            **response.data[0],
            attendees=[Attendee.model_validate(r) for r in self._rows(ATTENDEES, plan_id)],
            decisions=[
                AgentDecision.model_validate(r) for r in self._rows(DECISIONS, plan_id, "created_at")
            ],
            recipes=sorted(recipes, key=lambda r: slot_sort_key(r.meal_slot)),
            shopping_items=sorted(shopping, key=shopping_sort_key),
            budget_analyses=[
                BudgetAnalysis.model_validate(r) for r in self._rows(BUDGET, plan_id, "created_at")
            ],
        )

    async def update_plan_status(self, plan_id: str, status: PlanStatus) -> MealPlan:
        response = (
            self._client.table(PLANS)
            .update({"status": PlanStatus(status).value})
            .eq("id", plan_id)
            .execute()
        )
        if not response.data:
            raise PlanNotFoundError(plan_id)
        return MealPlan.model_validate(response.data[0])

    async def delete_plan(self, plan_id: str) -> bool:
        response = self._client.table(PLANS).delete().eq("id", plan_id).execute()
        return bool(response.data)

    # =========================================================================
    # Children
    # =========================================================================

    async def add_attendees(self, plan_id: str, attendees: list[NewAttendee]) -> list[Attendee]:
        self._require_plan(plan_id)
        if not attendees:
            return []
        rows = [
            {"meal_plan_id": plan_id, **attendee.cleaned().model_dump(mode="json")}
            for attendee in attendees
        ]
        response = self._client.table(ATTENDEES).insert(rows).execute()
        return [Attendee.model_validate(r) for r in response.data]

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
        row = {
            "meal_plan_id": plan_id,
            "agent_type": agent_type,
            "decision_type": decision_type,
            "decision_data": decision_data,
            "reasoning": reasoning,
            "confidence_score": confidence_score,
        }
        response = self._client.table(DECISIONS).insert(row).execute()
        return AgentDecision.model_validate(response.data[0])

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
        row = {
            "meal_plan_id": plan_id,
            "meal_slot": meal_slot,
            "catalog_recipe_id": catalog_recipe_id,
            "recipe_name": recipe_name,
            "selection_reasoning": selection_reasoning,
            "estimated_servings": estimated_servings,
            "scaled_ingredients": [i.model_dump(mode="json") for i in scaled_ingredients],
            "confidence_score": confidence_score,
        }
        # One row per slot: a re-run replaces the slot's previous pick
        response = (
            self._client.table(RECIPES)
            .upsert(row, on_conflict="meal_plan_id,meal_slot")
            .execute()
        )
        return SelectedRecipe.model_validate(response.data[0])

    async def get_selected_recipes(self, plan_id: str) -> list[SelectedRecipe]:
        self._require_plan(plan_id)
        recipes = [SelectedRecipe.model_validate(r) for r in self._rows(RECIPES, plan_id)]
        return sorted(recipes, key=lambda r: slot_sort_key(r.meal_slot))

    async def save_shopping_items(self, plan_id: str, items: list[ShoppingItem]) -> list[ShoppingItem]:
        self._require_plan(plan_id)
        self._client.table(SHOPPING).delete().eq("meal_plan_id", plan_id).execute()
        if not items:
            return []
        rows = [
            {**item.model_dump(mode="json", exclude={"id", "meal_plan_id"}), "meal_plan_id": plan_id}
            for item in items
        ]
        response = self._client.table(SHOPPING).insert(rows).execute()
        return [ShoppingItem.model_validate(r) for r in response.data]

    async def save_budget_analysis(
        self,
        plan_id: str,
        total_cost: float,
        cost_breakdown: dict[str, Any],
        optimization_suggestions: str,
        reasoning: str,
    ) -> BudgetAnalysis:
        self._require_plan(plan_id)
        row = {
            "meal_plan_id": plan_id,
            "total_cost": total_cost,
            "cost_breakdown": cost_breakdown,
            "optimization_suggestions": optimization_suggestions,
            "reasoning": reasoning,
        }
        response = self._client.table(BUDGET).insert(row).execute()
        return BudgetAnalysis.model_validate(response.data[0])

    async def close(self) -> None:
        logger.debug("Supabase plan store closed")
