"""
Banquet - Workflow Stages.

Each stage is a plain async function taking its collaborators as keyword
arguments, so the orchestrator graph and the per-stage HTTP routes share
one implementation.
"""

from banquet.workflow.stages.budget import optimize_budget
from banquet.workflow.stages.consolidation import consolidate_plan
from banquet.workflow.stages.dietary import (
    analyze_dietary,
    latest_dietary_analysis,
    needs_refinement,
    refine_dietary,
)
from banquet.workflow.stages.selection import select_recipes

__all__ = [
    "analyze_dietary",
    "consolidate_plan",
    "latest_dietary_analysis",
    "needs_refinement",
    "optimize_budget",
    "refine_dietary",
    "select_recipes",
]
