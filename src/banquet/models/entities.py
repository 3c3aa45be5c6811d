"""
Banquet - Plan Entity Models.

These models map to the tables in migrations/001_core_tables.sql.
Every child row carries meal_plan_id and is deleted with its plan.
"""

from datetime import UTC, date, datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class PlanStatus(str, Enum):
    """Plan lifecycle. Only the orchestrator moves a plan between states."""

    PLANNING = "planning"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


DietarySeverity = Literal["mild", "moderate", "severe", "medical"]
DIETARY_SEVERITIES: tuple[str, ...] = ("mild", "moderate", "severe", "medical")

AgentType = Literal["dietary", "meal_planner", "budget", "orchestrator"]


# =============================================================================
# Plan + Attendees
# =============================================================================


class MealPlan(BaseModel):
    """A group meal-planning effort over an inclusive date range."""

    id: str
    name: str
    attendee_count: int = Field(ge=1, le=100)
    budget_total: float | None = Field(default=None, ge=0)
    start_date: date
    end_date: date
    status: PlanStatus = PlanStatus.PLANNING
    created_at: datetime | None = None


class NewMealPlan(BaseModel):
    """Attributes accepted by PlanStore.create_plan."""

    name: str
    attendee_count: int = Field(ge=1, le=100)
    budget_total: float | None = Field(default=None, ge=0)
    start_date: date
    end_date: date


class NewAttendee(BaseModel):
    """Attendee as submitted, before it gets an id."""

    name: str
    dietary_restrictions: list[str] = Field(default_factory=list)
    food_preferences: list[str] = Field(default_factory=list)
    special_notes: str | None = None
    dietary_severity: DietarySeverity = "moderate"

    def cleaned(self) -> "NewAttendee":
        """Trim text and drop blank labels."""
        return NewAttendee(
            name=self.name.strip(),
            dietary_restrictions=[r.strip() for r in self.dietary_restrictions if r.strip()],
            food_preferences=[p.strip() for p in self.food_preferences if p.strip()],
            special_notes=(self.special_notes or "").strip() or None,
            dietary_severity=self.dietary_severity,
        )


class Attendee(NewAttendee):
    id: str
    meal_plan_id: str


# =============================================================================
# Workflow Outputs
# =============================================================================


class AgentDecision(BaseModel):
    """
    Append-only audit entry.

    One per reasoning call or gate outcome. Overridden decisions
    (e.g. an unrefined dietary analysis) stay in the log.
    """

    id: str
    meal_plan_id: str
    agent_type: AgentType
    decision_type: str
    decision_data: dict[str, Any] = Field(default_factory=dict)
    reasoning: str = ""
    confidence_score: float | None = Field(default=None, ge=0, le=1)
    created_at: datetime | None = None


class ScaledIngredient(BaseModel):
    """One ingredient line after scaling a recipe to a serving count."""

    id: int | None = None
    name: str
    amount: float = Field(ge=0)
    unit: str = ""
    original_amount: float = Field(default=0, ge=0)
    scale_factor: float = Field(default=1, ge=0)
    aisle: str | None = None


class SelectedRecipe(BaseModel):
    """The catalog recipe chosen for one meal slot."""

    id: str
    meal_plan_id: str
    meal_slot: str  # "breakfast_day1"
    catalog_recipe_id: int
    recipe_name: str
    selection_reasoning: str = ""
    estimated_servings: int = Field(ge=1)
    scaled_ingredients: list[ScaledIngredient] = Field(default_factory=list)
    confidence_score: float | None = Field(default=None, ge=0, le=1)


class ShoppingItem(BaseModel):
    """A consolidated, costed line on the shopping list."""

    id: str | None = None
    meal_plan_id: str | None = None
    ingredient_name: str
    quantity: float = Field(ge=0)
    unit: str = ""
    estimated_cost: float = Field(default=0, ge=0)
    store_section: str | None = None
    optimization_reasoning: str | None = None
    priority: int = Field(default=3, ge=1, le=5)


class BudgetAnalysis(BaseModel):
    """Snapshot of one budget optimization run."""

    id: str
    meal_plan_id: str
    total_cost: float = Field(ge=0)
    cost_breakdown: dict[str, Any] = Field(default_factory=dict)
    optimization_suggestions: str = ""
    reasoning: str = ""
    created_at: datetime | None = None


# =============================================================================
# Aggregate
# =============================================================================


class PlanSnapshot(MealPlan):
    """
    A plan with all of its children, as returned by PlanStore.get_plan.

    Ordering:
    - decisions: by created_at
    - recipes: by meal slot (day, then breakfast/lunch/dinner)
    - shopping_items: by store section, then priority descending
    - budget_analyses: by created_at (last one is authoritative)
    """

    attendees: list[Attendee] = Field(default_factory=list)
    decisions: list[AgentDecision] = Field(default_factory=list)
    recipes: list[SelectedRecipe] = Field(default_factory=list)
    shopping_items: list[ShoppingItem] = Field(default_factory=list)
    budget_analyses: list[BudgetAnalysis] = Field(default_factory=list)

    @property
    def latest_budget_analysis(self) -> BudgetAnalysis | None:
        if not self.budget_analyses:
            return None
        # Undated rows sort first; ties go to the later row
        undated = datetime.min.replace(tzinfo=UTC)
        ordered = enumerate(self.budget_analyses)
        return max(ordered, key=lambda pair: (pair[1].created_at or undated, pair[0]))[1]
