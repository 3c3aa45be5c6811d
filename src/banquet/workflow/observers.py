"""
Banquet - Progress Observers.

The orchestrator calls on_step_transition(step) when a step starts and when
it completes or fails. Observers must not block: they run inline between
stages. Each call receives a snapshot, so later mutation of the ledger does
not change what an observer already saw.
"""

import asyncio
import logging
from typing import Protocol, runtime_checkable

from banquet.workflow.state import WorkflowStep

logger = logging.getLogger(__name__)


@runtime_checkable
class ProgressObserver(Protocol):
    def on_step_transition(self, step: WorkflowStep) -> None: ...


class LoggingObserver:
    """Default observer: one log line per transition."""

    def on_step_transition(self, step: WorkflowStep) -> None:
        if step.status == "failed":
            logger.warning(f"Step {step.step_name}: failed ({step.reasoning or 'no details'})")
        elif step.status == "completed":
            logger.info(f"Step {step.step_name}: completed in {step.execution_time_ms}ms")
        else:
            logger.info(f"Step {step.step_name}: {step.status}")


class CollectingObserver:
    """Keeps every transition in order (execute endpoint, tests)."""

    def __init__(self) -> None:
        self.updates: list[WorkflowStep] = []

    def on_step_transition(self, step: WorkflowStep) -> None:
        self.updates.append(step)


class QueueObserver:
    """
    Pushes transitions onto an asyncio.Queue for a streaming consumer.

    The queue is unbounded so put_nowait never blocks the workflow.
    """

    def __init__(self, queue: asyncio.Queue | None = None) -> None:
        self.queue: asyncio.Queue = queue or asyncio.Queue()

    def on_step_transition(self, step: WorkflowStep) -> None:
        self.queue.put_nowait(step)


class CompositeObserver:
    """Fans one transition out to several observers."""

    def __init__(self, *observers: ProgressObserver) -> None:
        self.observers = list(observers)

    def on_step_transition(self, step: WorkflowStep) -> None:
        for observer in self.observers:
            observer.on_step_transition(step)
