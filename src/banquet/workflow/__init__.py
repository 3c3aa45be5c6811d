"""
Banquet - Planning Workflow.

WorkflowOrchestrator runs dietary analysis, recipe selection, quantity
consolidation and budget optimization as one LangGraph run.
"""

from banquet.workflow.observers import (
    CollectingObserver,
    CompositeObserver,
    LoggingObserver,
    ProgressObserver,
    QueueObserver,
)
from banquet.workflow.orchestrator import WorkflowOrchestrator
from banquet.workflow.pacing import FixedDelayPacer
from banquet.workflow.progress import PlanProgress, infer_progress
from banquet.workflow.state import WorkflowResult, WorkflowStep

__all__ = [
    "CollectingObserver",
    "CompositeObserver",
    "FixedDelayPacer",
    "LoggingObserver",
    "PlanProgress",
    "ProgressObserver",
    "QueueObserver",
    "WorkflowOrchestrator",
    "WorkflowResult",
    "WorkflowStep",
    "infer_progress",
]
