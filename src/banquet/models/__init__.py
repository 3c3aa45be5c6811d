"""
Banquet - Entity models.
"""

from banquet.models.entities import (
    DIETARY_SEVERITIES,
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

__all__ = [
    "DIETARY_SEVERITIES",
    "AgentDecision",
    "Attendee",
    "BudgetAnalysis",
    "MealPlan",
    "NewAttendee",
    "NewMealPlan",
    "PlanSnapshot",
    "PlanStatus",
    "ScaledIngredient",
    "SelectedRecipe",
    "ShoppingItem",
]
