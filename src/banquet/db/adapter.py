"""
Plan Store Protocol.

Defines the storage interface the orchestrator and web layer depend on.
Implementations:
- SupabasePlanStore (db/client.py): production, tables from migrations/
- InMemoryPlanStore (db/memory.py): local runs and tests

Rules every implementation honors:
- Child writes for an unknown plan raise PlanNotFoundError
- delete_plan cascades to every child table
- save_shopping_items replaces the plan's list (never merges)
- save_selected_recipe keeps one row per meal slot
"""

from typing import Any, Protocol, runtime_checkable

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


@runtime_checkable
class PlanStore(Protocol):
    """Durable plan entity graph."""

    async def create_plan(self, plan: NewMealPlan) -> MealPlan: ...

    async def get_plan(self, plan_id: str) -> PlanSnapshot | None:
        """Plan with attendees, decisions, recipes, shopping items and budget analyses."""
        ...

    async def update_plan_status(self, plan_id: str, status: PlanStatus) -> MealPlan: ...

    async def delete_plan(self, plan_id: str) -> bool: ...

    async def add_attendees(self, plan_id: str, attendees: list[NewAttendee]) -> list[Attendee]: ...

    async def save_decision(
        self,
        plan_id: str,
        agent_type: str,
        decision_type: str,
        decision_data: dict[str, Any],
        reasoning: str,
        confidence_score: float | None = None,
    ) -> AgentDecision: ...

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
    ) -> SelectedRecipe: ...

    async def get_selected_recipes(self, plan_id: str) -> list[SelectedRecipe]: ...

    async def save_shopping_items(self, plan_id: str, items: list[ShoppingItem]) -> list[ShoppingItem]: ...

    async def save_budget_analysis(
        self,
        plan_id: str,
        total_cost: float,
        cost_breakdown: dict[str, Any],
        optimization_suggestions: str,
        reasoning: str,
    ) -> BudgetAnalysis: ...

    async def close(self) -> None: ...


def shopping_sort_key(item: ShoppingItem) -> tuple[str, int]:
    """Order shopping items by section, then priority descending."""
    return (item.store_section or "", -item.priority)
