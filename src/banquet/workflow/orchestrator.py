"""
Banquet - Workflow Orchestrator.

Runs the four-stage planning workflow as a LangGraph StateGraph:

    dietary_analysis → (should_refine) → dietary_refinement? → recipe_selection
        → quantity_consolidation → budget_optimization → END

Plan status moves planning → processing → completed | failed, and only the
orchestrator writes it. Each run keeps an ordered step ledger outside the
graph state so a failing node never loses the steps before it.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Literal, TypeVar

from langgraph.graph import END, StateGraph

from banquet.catalog.client import CatalogClient
from banquet.config import Settings, get_settings
from banquet.db.adapter import PlanStore
from banquet.errors import (
    GatewayError,
    PlanNotFoundError,
    PlanValidationError,
    StageError,
    WorkflowAlreadyRunningError,
)
from banquet.llm.client import ReasoningGateway
from banquet.models.entities import AgentType, MealPlan, PlanStatus
from banquet.observability.usage import UsageTracker
from banquet.tools.meal_slots import parse_slot
from banquet.workflow.observers import CompositeObserver, LoggingObserver, ProgressObserver
from banquet.workflow.pacing import FixedDelayPacer, Pacer
from banquet.workflow.stages.budget import optimize_budget
from banquet.workflow.stages.consolidation import consolidate_plan
from banquet.workflow.stages.dietary import (
    analyze_dietary,
    latest_dietary_analysis,
    refine_dietary,
)
from banquet.workflow.stages.selection import select_for_slot, select_recipes
from banquet.workflow.state import (
    BudgetResult,
    ConsolidationResult,
    DietaryStageResult,
    RefinedDietaryAnalysis,
    SelectionResult,
    SlotSelection,
    WorkflowResult,
    WorkflowState,
    WorkflowStep,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class _Run:
    """Bookkeeping for one execution: ledger, observer, usage."""

    def __init__(self, plan_id: str, observer: ProgressObserver):
        self.plan_id = plan_id
        self.observer = observer
        self.steps: list[WorkflowStep] = []
        self.usage = UsageTracker()

    def notify(self, step: WorkflowStep) -> None:
        self.observer.on_step_transition(step.model_copy(deep=True))

    async def step(
        self,
        step_name: str,
        agent_type: AgentType,
        work: Callable[[WorkflowStep], Awaitable[T]],
        *,
        stage: str | None = None,
    ) -> T:
        """
        Run `work` as one ledger step.

        `work` fills in result/reasoning/confidence on the step it receives.
        On failure the step is marked failed; with `stage` set the error is
        wrapped as StageError, otherwise it propagates unchanged.
        """
        step = WorkflowStep(step_name=step_name, agent_type=agent_type, status="in_progress")
        self.steps.append(step)
        self.notify(step)
        started = time.monotonic()
        retries_before = self.usage.total_retries

        try:
            result = await work(step)
        except Exception as e:
            step.retry_count = self.usage.total_retries - retries_before
            if isinstance(e, GatewayError):
                step.retry_count += max(e.attempts - 1, 0)
            step.status = "failed"
            step.reasoning = step.reasoning or str(e)
            step.execution_time_ms = _elapsed_ms(started)
            self.notify(step)
            if stage is None:
                raise
            raise StageError(stage, e) from e

        step.retry_count = self.usage.total_retries - retries_before
        step.status = "completed"
        step.execution_time_ms = _elapsed_ms(started)
        self.notify(step)
        return result


class WorkflowOrchestrator:
    """
    Drives a plan through the workflow.

    Collaborators are injected so tests and the web app can supply their own.
    Only one run per plan id may be active in this process at a time.
    """

    def __init__(
        self,
        *,
        store: PlanStore,
        gateway: ReasoningGateway,
        catalog: CatalogClient,
        pacer: Pacer | None = None,
        observer: ProgressObserver | None = None,
        settings: Settings | None = None,
    ):
        self.settings = settings or get_settings()
        self.store = store
        self.gateway = gateway
        self.catalog = catalog
        self.pacer = pacer or FixedDelayPacer(self.settings.slot_delay_seconds)
        self.observer = observer or LoggingObserver()
        self._active: set[str] = set()

    def is_running(self, plan_id: str) -> bool:
        return plan_id in self._active

    # =========================================================================
    # Graph
    # =========================================================================

    def _build_graph(self, run: _Run):
        """Compile a graph whose nodes record into `run`."""
        settings = self.settings

        async def dietary_node(state: WorkflowState) -> dict[str, Any]:
            async def work(step: WorkflowStep) -> DietaryStageResult:
                result = await analyze_dietary(
                    state["plan"],
                    store=self.store,
                    gateway=self.gateway,
                    confidence_threshold=settings.refinement_confidence_threshold,
                    usage=run.usage,
                )
                step.result = result.analysis.model_dump(mode="json")
                step.reasoning = result.analysis.reasoning
                step.confidence_score = result.analysis.confidence_score
                return result

            return {"dietary": await run.step("Dietary Analysis", "dietary", work, stage="Dietary analysis")}

        def should_refine(state: WorkflowState) -> Literal["refine", "select"]:
            return "refine" if state["dietary"].needs_refinement else "select"

        async def refinement_node(state: WorkflowState) -> dict[str, Any]:
            initial = state["dietary"].analysis

            async def work(step: WorkflowStep) -> RefinedDietaryAnalysis:
                refined = await refine_dietary(
                    state["plan"], initial, store=self.store, gateway=self.gateway, usage=run.usage
                )
                step.result = refined.model_dump(mode="json")
                step.reasoning = (
                    f"Refined analysis improved confidence from "
                    f"{initial.confidence_score} to {refined.confidence_score}"
                )
                step.confidence_score = refined.confidence_score
                return refined

            try:
                refined = await run.step("Dietary Analysis Refinement", "dietary", work)
            except Exception as e:
                # Only local recovery in the workflow: keep the first-pass analysis
                logger.warning(f"Refinement failed, using original analysis: {e}")
                return {"dietary": state["dietary"]}
            return {"dietary": state["dietary"].model_copy(update={"analysis": refined, "refined": True})}

        async def selection_node(state: WorkflowState) -> dict[str, Any]:
            async def work(step: WorkflowStep) -> SelectionResult:
                result = await select_recipes(
                    state["plan"],
                    state["dietary"].analysis,
                    store=self.store,
                    gateway=self.gateway,
                    catalog=self.catalog,
                    pacer=self.pacer,
                    variety_threshold=settings.variety_threshold,
                    confidence_threshold=settings.selection_confidence_threshold,
                    usage=run.usage,
                )
                step.result = result.model_dump(mode="json")
                step.reasoning = (
                    f"Selected {result.total_recipes_selected} recipes with variety score "
                    f"{result.variety_score:.2f} and average confidence {result.avg_confidence:.2f}"
                )
                if result.quality_shortfall:
                    step.reasoning += "; quality below target, proceeding with current selection"
                step.confidence_score = result.avg_confidence
                return result

            return {"selection": await run.step("Recipe Selection", "meal_planner", work, stage="Recipe selection")}

        async def consolidation_node(state: WorkflowState) -> dict[str, Any]:
            async def work(step: WorkflowStep) -> ConsolidationResult:
                result = await consolidate_plan(state["plan_id"], store=self.store)
                step.result = result.model_dump(mode="json")
                step.reasoning = (
                    f"Consolidated {len(result.consolidated_ingredients)} unique ingredients "
                    f"from {result.total_recipes} recipes"
                )
                return result

            return {
                "consolidation": await run.step(
                    "Quantity Calculations", "orchestrator", work, stage="Quantity calculations"
                )
            }

        async def budget_node(state: WorkflowState) -> dict[str, Any]:
            async def work(step: WorkflowStep) -> BudgetResult:
                result = await optimize_budget(
                    state["plan_id"],
                    store=self.store,
                    gateway=self.gateway,
                    overrun_threshold=settings.budget_overrun_threshold,
                    usage=run.usage,
                )
                step.result = result.model_dump(mode="json", exclude={"shopping_items"})
                step.reasoning = result.ai_optimization.optimization_reasoning or "Budget optimization completed"
                step.confidence_score = result.ai_optimization.confidence_score
                return result

            return {"budget": await run.step("Budget Optimization", "budget", work, stage="Budget optimization")}

        graph = StateGraph(WorkflowState)

        graph.add_node("dietary_analysis", dietary_node)
        graph.add_node("dietary_refinement", refinement_node)
        graph.add_node("recipe_selection", selection_node)
        graph.add_node("quantity_consolidation", consolidation_node)
        graph.add_node("budget_optimization", budget_node)

        graph.set_entry_point("dietary_analysis")
        graph.add_conditional_edges(
            "dietary_analysis",
            should_refine,
            {
                "refine": "dietary_refinement",
                "select": "recipe_selection",
            },
        )
        graph.add_edge("dietary_refinement", "recipe_selection")
        graph.add_edge("recipe_selection", "quantity_consolidation")
        graph.add_edge("quantity_consolidation", "budget_optimization")
        graph.add_edge("budget_optimization", END)

        return graph.compile()

    # =========================================================================
    # Full Run
    # =========================================================================

    async def execute(self, plan_id: str, observer: ProgressObserver | None = None) -> WorkflowResult:
        """
        Run the whole workflow for a plan.

        Stage failures do not raise: the plan is marked failed and the result
        carries the error message and the partial step ledger.

        Raises:
            PlanNotFoundError: unknown plan id
            WorkflowAlreadyRunningError: a run for this plan is in progress
        """
        if plan_id in self._active:
            raise WorkflowAlreadyRunningError(plan_id)
        self._active.add(plan_id)
        try:
            return await self._execute(plan_id, observer)
        finally:
            self._active.discard(plan_id)

    async def _execute(self, plan_id: str, observer: ProgressObserver | None) -> WorkflowResult:
        started = time.monotonic()
        plan = await self.store.get_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)

        run = _Run(plan_id, CompositeObserver(self.observer, observer) if observer else self.observer)
        logger.info(
            f"Starting workflow for meal plan {plan_id}: {plan.attendee_count} attendees, "
            f"{len(plan.attendees)} attendee records"
        )

        try:
            await self.store.update_plan_status(plan_id, PlanStatus.PROCESSING)
            app = self._build_graph(run)
            await app.ainvoke({"plan_id": plan_id, "plan": plan})
            await self.store.update_plan_status(plan_id, PlanStatus.COMPLETED)
        except Exception as e:
            logger.error(f"Workflow failed for meal plan {plan_id}: {e}")
            await self.store.update_plan_status(plan_id, PlanStatus.FAILED)
            return WorkflowResult(
                success=False,
                meal_plan_id=plan_id,
                execution_time_ms=_elapsed_ms(started),
                steps=run.steps,
                final_plan=await self.store.get_plan(plan_id),
                error=str(e),
                usage=run.usage.summary(),
            )

        execution_ms = _elapsed_ms(started)
        logger.info(f"Workflow completed for meal plan {plan_id} in {execution_ms}ms")
        return WorkflowResult(
            success=True,
            meal_plan_id=plan_id,
            execution_time_ms=execution_ms,
            steps=run.steps,
            final_plan=await self.store.get_plan(plan_id),
            usage=run.usage.summary(),
        )

    # =========================================================================
    # Single Stages (HTTP agent routes)
    # =========================================================================

    def _guard(self, plan_id: str) -> None:
        if plan_id in self._active:
            raise WorkflowAlreadyRunningError(plan_id)

    async def run_dietary_analysis(self, plan_id: str) -> DietaryStageResult:
        """Stage 1 on its own, without refinement."""
        self._guard(plan_id)
        plan = await self.store.get_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        return await analyze_dietary(
            plan,
            store=self.store,
            gateway=self.gateway,
            confidence_threshold=self.settings.refinement_confidence_threshold,
        )

    async def run_slot_selection(self, plan_id: str, meal_slot: str) -> SlotSelection:
        """
        Fill a single slot using the plan's latest stored dietary analysis.

        Raises:
            PlanValidationError: bad slot key or no dietary analysis yet
        """
        self._guard(plan_id)
        plan = await self.store.get_plan(plan_id)
        if plan is None:
            raise PlanNotFoundError(plan_id)
        try:
            slot = parse_slot(meal_slot)
        except ValueError as e:
            raise PlanValidationError(str(e)) from e
        analysis = latest_dietary_analysis(plan)
        if analysis is None:
            raise PlanValidationError("No dietary analysis found. Run dietary analysis first.")
        return await select_for_slot(
            plan, slot, analysis, store=self.store, gateway=self.gateway, catalog=self.catalog
        )

    async def run_consolidation(self, plan_id: str) -> ConsolidationResult:
        return await consolidate_plan(plan_id, store=self.store)

    async def run_budget_optimization(self, plan_id: str) -> BudgetResult:
        self._guard(plan_id)
        return await optimize_budget(
            plan_id,
            store=self.store,
            gateway=self.gateway,
            overrun_threshold=self.settings.budget_overrun_threshold,
        )

    # =========================================================================
    # Status
    # =========================================================================

    async def update_status(self, plan_id: str, status: PlanStatus) -> MealPlan:
        """
        Manual status change. Refused while a run owns the plan's status.
        """
        self._guard(plan_id)
        return await self.store.update_plan_status(plan_id, status)
