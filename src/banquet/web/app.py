"""
Banquet Web - FastAPI application.

JSON API over the plan store and the planning workflow:
- /api/meal-plans: plan and attendee management
- /api/agents/*: individual stages, full runs, SSE progress stream
- /health

Collaborators are built in the lifespan (or injected through create_app for
tests) and closed on shutdown.
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator, model_validator
from sse_starlette.sse import EventSourceResponse

from banquet import __version__
from banquet.catalog.client import CatalogClient
from banquet.catalog.models import CatalogFilters
from banquet.config import configure_logging, get_settings
from banquet.db import create_plan_store
from banquet.errors import (
    BanquetError,
    PlanNotFoundError,
    PlanValidationError,
    SelectionConsistencyError,
    WorkflowAlreadyRunningError,
)
from banquet.llm.client import ReasoningGateway
from banquet.models.entities import NewAttendee, NewMealPlan, PlanStatus
from banquet.tools.meal_slots import MealType
from banquet.workflow.observers import CollectingObserver, QueueObserver
from banquet.workflow.orchestrator import WorkflowOrchestrator
from banquet.workflow.progress import infer_progress
from banquet.workflow.state import WorkflowResult

logger = logging.getLogger(__name__)


# =============================================================================
# Models
# =============================================================================


class CreateMealPlanRequest(NewMealPlan):
    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name is required")
        return value

    @model_validator(mode="after")
    def dates_in_order(self) -> "CreateMealPlanRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class AddAttendeesRequest(BaseModel):
    attendees: list[NewAttendee] = Field(min_length=1)


class StatusUpdateRequest(BaseModel):
    status: PlanStatus


class PlanRequest(BaseModel):
    meal_plan_id: str = Field(min_length=1)


class SlotSelectionRequest(PlanRequest):
    meal_slot: str = Field(min_length=1, examples=["breakfast_day1"])


class RecommendationRequest(BaseModel):
    dietary_restrictions: list[str] = Field(default_factory=list)
    meal_type: MealType
    servings: int = Field(ge=1, le=100)


# =============================================================================
# Helpers
# =============================================================================


def _http_error(e: BanquetError) -> HTTPException:
    if isinstance(e, PlanNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, WorkflowAlreadyRunningError):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, (PlanValidationError, SelectionConsistencyError)):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


def _summary(result: WorkflowResult) -> dict[str, Any]:
    return {
        "total_steps": len(result.steps),
        "execution_time_ms": result.execution_time_ms,
        "completed_steps": result.completed_steps,
        "failed_steps": result.failed_steps,
    }


def get_orchestrator(request: Request) -> WorkflowOrchestrator:
    return request.app.state.orchestrator


async def _require_attendees(orchestrator: WorkflowOrchestrator, plan_id: str) -> None:
    plan = await orchestrator.store.get_plan(plan_id)
    if plan is None:
        raise HTTPException(status_code=404, detail="Meal plan not found")
    if not plan.attendees:
        raise HTTPException(
            status_code=400, detail="No attendees found. Add attendees before executing workflow."
        )


# =============================================================================
# App
# =============================================================================


def create_app(orchestrator: WorkflowOrchestrator | None = None) -> FastAPI:
    """
    Build the API.

    Args:
        orchestrator: pre-wired orchestrator (tests). When omitted, the
            lifespan builds one from settings and closes it on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if orchestrator is not None:
            yield
            return

        settings = get_settings()
        configure_logging(settings.log_level)
        store = create_plan_store(settings)
        gateway = ReasoningGateway(settings=settings)
        catalog = CatalogClient(settings=settings)
        app.state.orchestrator = WorkflowOrchestrator(
            store=store, gateway=gateway, catalog=catalog, settings=settings
        )
        logger.info(f"Banquet {__version__} started ({settings.banquet_env})")
        try:
            yield
        finally:
            await catalog.aclose()
            await gateway.close()
            await store.close()

    app = FastAPI(title="Banquet", version=__version__, lifespan=lifespan)
    if orchestrator is not None:
        app.state.orchestrator = orchestrator

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"error": "Invalid request", "details": json.loads(json.dumps(exc.errors(), default=str))},
        )

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "version": __version__}

    # =========================================================================
    # Meal Plans
    # =========================================================================

    @app.post("/api/meal-plans", status_code=201)
    async def create_meal_plan(
        req: CreateMealPlanRequest, orch: WorkflowOrchestrator = Depends(get_orchestrator)
    ):
        plan = await orch.store.create_plan(NewMealPlan(**req.model_dump()))
        logger.info(f"Created meal plan {plan.id} ({plan.name})")
        return {"success": True, "meal_plan": plan.model_dump(mode="json")}

    @app.get("/api/meal-plans/{plan_id}")
    async def get_meal_plan(plan_id: str, orch: WorkflowOrchestrator = Depends(get_orchestrator)):
        plan = await orch.store.get_plan(plan_id)
        if plan is None:
            raise HTTPException(status_code=404, detail="Meal plan not found")
        return {
            "success": True,
            "meal_plan": plan.model_dump(mode="json"),
            "latest_budget_analysis": (
                plan.latest_budget_analysis.model_dump(mode="json") if plan.latest_budget_analysis else None
            ),
        }

    @app.post("/api/meal-plans/{plan_id}/attendees", status_code=201)
    async def add_attendees(
        plan_id: str,
        req: AddAttendeesRequest,
        orch: WorkflowOrchestrator = Depends(get_orchestrator),
    ):
        try:
            attendees = await orch.store.add_attendees(plan_id, req.attendees)
        except BanquetError as e:
            raise _http_error(e) from e
        return {"success": True, "attendees": [a.model_dump(mode="json") for a in attendees]}

    @app.put("/api/meal-plans/{plan_id}/status")
    async def update_status(
        plan_id: str,
        req: StatusUpdateRequest,
        orch: WorkflowOrchestrator = Depends(get_orchestrator),
    ):
        try:
            plan = await orch.update_status(plan_id, req.status)
        except BanquetError as e:
            raise _http_error(e) from e
        return {"success": True, "meal_plan": plan.model_dump(mode="json")}

    @app.delete("/api/meal-plans/{plan_id}")
    async def delete_meal_plan(plan_id: str, orch: WorkflowOrchestrator = Depends(get_orchestrator)):
        if orch.is_running(plan_id):
            raise _http_error(WorkflowAlreadyRunningError(plan_id))
        if not await orch.store.delete_plan(plan_id):
            raise HTTPException(status_code=404, detail="Meal plan not found")
        return {"success": True}

    # =========================================================================
    # Individual Stages
    # =========================================================================

    @app.post("/api/agents/dietary/analyze")
    async def analyze_dietary(req: PlanRequest, orch: WorkflowOrchestrator = Depends(get_orchestrator)):
        try:
            result = await orch.run_dietary_analysis(req.meal_plan_id)
        except BanquetError as e:
            raise _http_error(e) from e
        return {"success": True, **result.model_dump(mode="json")}

    @app.post("/api/agents/meal-planner/search")
    async def search_recipes(filters: CatalogFilters, orch: WorkflowOrchestrator = Depends(get_orchestrator)):
        try:
            result = await orch.catalog.search(filters)
        except BanquetError as e:
            raise _http_error(e) from e
        return {
            "success": True,
            "results": [r.model_dump(mode="json") for r in result.results],
            "total_results": result.total_results,
            "search_options": filters.model_dump(mode="json", exclude_defaults=True),
        }

    @app.post("/api/agents/meal-planner/recommendations")
    async def recommend_recipes(
        req: RecommendationRequest, orch: WorkflowOrchestrator = Depends(get_orchestrator)
    ):
        """Restriction-aware catalog search ranked for the group size."""
        try:
            recipes = await orch.catalog.get_recommendations(req.dietary_restrictions, req.meal_type, req.servings)
        except BanquetError as e:
            raise _http_error(e) from e
        return {"success": True, "recipes": [r.model_dump(mode="json") for r in recipes]}

    @app.post("/api/agents/meal-planner/select")
    async def select_recipe(
        req: SlotSelectionRequest, orch: WorkflowOrchestrator = Depends(get_orchestrator)
    ):
        try:
            selection = await orch.run_slot_selection(req.meal_plan_id, req.meal_slot)
        except BanquetError as e:
            raise _http_error(e) from e
        return {"success": True, "selection": selection.model_dump(mode="json")}

    @app.post("/api/agents/quantities/calculate")
    async def calculate_quantities(
        req: PlanRequest, orch: WorkflowOrchestrator = Depends(get_orchestrator)
    ):
        try:
            result = await orch.run_consolidation(req.meal_plan_id)
        except BanquetError as e:
            raise _http_error(e) from e
        return {"success": True, **result.model_dump(mode="json")}

    @app.post("/api/agents/budget/optimize")
    async def optimize_budget(req: PlanRequest, orch: WorkflowOrchestrator = Depends(get_orchestrator)):
        try:
            result = await orch.run_budget_optimization(req.meal_plan_id)
        except BanquetError as e:
            raise _http_error(e) from e
        return {"success": True, "budget_analysis": result.model_dump(mode="json")}

    # =========================================================================
    # Orchestrator
    # =========================================================================

    @app.post("/api/agents/orchestrator/execute")
    async def execute_workflow(req: PlanRequest, orch: WorkflowOrchestrator = Depends(get_orchestrator)):
        await _require_attendees(orch, req.meal_plan_id)
        observer = CollectingObserver()
        try:
            result = await orch.execute(req.meal_plan_id, observer=observer)
        except BanquetError as e:
            raise _http_error(e) from e

        body = {
            "success": result.success,
            "workflow_result": result.model_dump(mode="json"),
            "progress_updates": [step.model_dump(mode="json") for step in observer.updates],
            "summary": _summary(result),
        }
        if not result.success:
            body["error"] = result.error
            return JSONResponse(status_code=500, content=body)
        return body

    @app.post("/api/agents/orchestrator/stream")
    async def stream_workflow(req: PlanRequest, orch: WorkflowOrchestrator = Depends(get_orchestrator)):
        """Run the workflow and stream step transitions as server-sent events."""
        await _require_attendees(orch, req.meal_plan_id)
        if orch.is_running(req.meal_plan_id):
            raise _http_error(WorkflowAlreadyRunningError(req.meal_plan_id))

        observer = QueueObserver()
        # The run is not tied to the request: it finishes even if the client leaves
        task = asyncio.create_task(orch.execute(req.meal_plan_id, observer=observer))
        task.add_done_callback(lambda _: observer.queue.put_nowait(None))

        async def event_generator():
            while True:
                step = await observer.queue.get()
                if step is None:
                    break
                yield {"event": "progress", "data": step.model_dump_json()}

            try:
                result = task.result()
            except Exception as e:
                logger.exception("Stream workflow error")
                yield {"event": "error", "data": json.dumps({"error": str(e)})}
                return
            yield {
                "event": "done",
                "data": json.dumps({
                    "success": result.success,
                    "error": result.error,
                    "summary": _summary(result),
                }),
            }

        return EventSourceResponse(event_generator())

    @app.get("/api/agents/orchestrator/progress/{plan_id}")
    async def get_progress(plan_id: str, orch: WorkflowOrchestrator = Depends(get_orchestrator)):
        plan = await orch.store.get_plan(plan_id)
        if plan is None:
            raise HTTPException(status_code=404, detail="Meal plan not found")
        progress = infer_progress(plan)
        return {
            "success": True,
            "running": orch.is_running(plan_id),
            "progress": progress.model_dump(mode="json"),
        }

    return app


app = create_app()
