"""
Banquet - Workflow State Definition.

Holds three kinds of models:
- Structured reasoning outputs (validated by Instructor at the gateway)
- Stage results passed between graph nodes
- The step ledger and the final WorkflowResult
"""

from typing import Any, Literal, TypedDict

from pydantic import BaseModel, Field

from banquet.models.entities import AgentType, PlanSnapshot, ScaledIngredient, ShoppingItem
from banquet.tools.costs import ItemizedCost
from banquet.tools.dietary import AttendeeAnalysis, Complexity
from banquet.tools.quantities import ConsolidatedIngredient

# =============================================================================
# Reasoning Outputs
# =============================================================================


class DietaryAnalysis(BaseModel):
    """Group-level dietary analysis."""

    overall_complexity: Complexity
    primary_constraints: list[str] = Field(default_factory=list)
    cross_contamination_risks: list[str] = Field(default_factory=list)
    special_accommodations: list[str] = Field(default_factory=list)
    reasoning: str
    confidence_score: float = Field(ge=0, le=1)


class ConstraintPriority(BaseModel):
    constraint: str
    severity: Literal["critical", "important", "preferred"]
    reasoning: str = ""


class RefinedDietaryAnalysis(DietaryAnalysis):
    """Second-pass analysis with explicit constraint priorities."""

    constraint_priorities: list[ConstraintPriority]


class RecipeSelection(BaseModel):
    """One pick for one meal slot. The id must come from the offered candidates."""

    selected_recipe_id: int
    recipe_name: str
    selection_reasoning: str
    estimated_servings: int = Field(ge=1, description="Servings needed for the whole group")
    confidence_score: float = Field(ge=0, le=1)


class PriorityShoppingItem(BaseModel):
    item: str
    priority: int = Field(ge=1, le=5)
    reasoning: str = ""


class BudgetOptimization(BaseModel):
    total_estimated_cost: float = Field(ge=0)
    budget_status: Literal["within_budget", "over_budget", "no_budget_set"]
    cost_saving_opportunities: list[str] = Field(default_factory=list)
    priority_shopping_items: list[PriorityShoppingItem] = Field(default_factory=list)
    optimization_reasoning: str
    confidence_score: float = Field(ge=0, le=1)


# =============================================================================
# Stage Results
# =============================================================================


class DietaryStageResult(BaseModel):
    """What Stage 1 hands to Stage 2."""

    analysis: DietaryAnalysis
    local_analysis: AttendeeAnalysis | None = None
    refined: bool = False
    needs_refinement: bool = False


class SlotSelection(BaseModel):
    meal_slot: str
    catalog_recipe_id: int
    recipe_name: str
    selection_reasoning: str
    estimated_servings: int
    confidence_score: float
    scaled_ingredients: list[ScaledIngredient] = Field(default_factory=list)


class SelectionResult(BaseModel):
    selected_recipes: list[SlotSelection] = Field(default_factory=list)
    variety_score: float = 0
    avg_confidence: float = 0
    total_recipes_selected: int = 0
    quality_shortfall: bool = False


class ConsolidationResult(BaseModel):
    consolidated_ingredients: list[ConsolidatedIngredient] = Field(default_factory=list)
    total_recipes: int = 0


class BudgetResult(BaseModel):
    total_cost: float
    target_budget: float | None = None
    within_budget: bool | None = None
    budget_overage: float | None = None
    overrun_detected: bool = False
    itemized_costs: list[ItemizedCost] = Field(default_factory=list)
    consolidated_ingredients: list[ConsolidatedIngredient] = Field(default_factory=list)
    organized_shopping_list: dict[str, list[ConsolidatedIngredient]] = Field(default_factory=dict)
    ai_optimization: BudgetOptimization
    shopping_items: list[ShoppingItem] = Field(default_factory=list)


# =============================================================================
# Step Ledger
# =============================================================================

StepStatus = Literal["pending", "in_progress", "completed", "failed"]


class WorkflowStep(BaseModel):
    """
    One entry in a run's ledger.

    Observers receive the same object on every transition; result holds
    JSON-ready data so it can go straight onto the wire.
    """

    step_name: str
    agent_type: AgentType
    status: StepStatus = "pending"
    result: Any = None
    reasoning: str | None = None
    confidence_score: float | None = None
    execution_time_ms: int | None = None
    retry_count: int = 0


class WorkflowResult(BaseModel):
    success: bool
    meal_plan_id: str
    execution_time_ms: int
    steps: list[WorkflowStep] = Field(default_factory=list)
    final_plan: PlanSnapshot | None = None
    error: str | None = None
    usage: dict[str, Any] = Field(default_factory=dict)

    @property
    def completed_steps(self) -> int:
        return sum(1 for step in self.steps if step.status == "completed")

    @property
    def failed_steps(self) -> int:
        return sum(1 for step in self.steps if step.status == "failed")


# =============================================================================
# Graph State
# =============================================================================


class WorkflowState(TypedDict, total=False):
    """
    Shared state passed through the LangGraph nodes.

    Each node reads what earlier nodes produced and returns its own key.
    The step ledger is NOT here: it lives on the run so it survives a
    failing node.
    """

    plan_id: str
    plan: PlanSnapshot
    dietary: DietaryStageResult
    selection: SelectionResult
    consolidation: ConsolidationResult
    budget: BudgetResult
