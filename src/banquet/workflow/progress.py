"""
Banquet - Stored Progress.

Infers how far a plan got from what has been persisted, for clients that
were not attached to the run while it executed.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from banquet.models.entities import AgentDecision, PlanSnapshot, PlanStatus

TOTAL_STEPS = 4


class PlanProgress(BaseModel):
    meal_plan_id: str
    status: PlanStatus
    total_steps: int = TOTAL_STEPS
    completed_steps: int = 0
    current_step: str = "Not started"
    decisions: list[AgentDecision] = Field(default_factory=list)
    last_update: datetime | None = None


def infer_progress(plan: PlanSnapshot) -> PlanProgress:
    """
    Each persisted artifact marks a stage done:
    dietary decision → recipes → shopping items → budget analysis.
    """
    progress: dict[str, Any] = {"completed_steps": 0, "current_step": "Not started"}
    decision_types = {d.decision_type for d in plan.decisions}

    if decision_types & {"dietary_analysis", "dietary_refinement"}:
        progress.update(completed_steps=1, current_step="Dietary Analysis Complete")
    if plan.recipes:
        progress.update(
            completed_steps=progress["completed_steps"] + 1,
            current_step="Recipe Selection Complete",
        )
    if plan.shopping_items:
        progress.update(
            completed_steps=progress["completed_steps"] + 1,
            current_step="Quantity Calculations Complete",
        )
    if plan.budget_analyses:
        progress.update(completed_steps=TOTAL_STEPS, current_step="Budget Optimization Complete")

    return PlanProgress(
        meal_plan_id=plan.id,
        status=plan.status,
        decisions=plan.decisions,
        last_update=plan.decisions[-1].created_at if plan.decisions else plan.created_at,
        **progress,
    )
