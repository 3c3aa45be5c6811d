"""
Pytest configuration and fixtures for Banquet tests.

Nothing here touches the network: reasoning calls go through FakeGateway,
catalog lookups through FakeCatalog, and plans live in InMemoryPlanStore.
"""

import asyncio
import os
import re
from collections.abc import Callable
from datetime import date
from typing import Any

import pytest

# Set test environment before importing banquet modules
os.environ["BANQUET_ENV"] = "development"
os.environ["BANQUET_LOG_PROMPTS"] = "false"
os.environ["SLOT_DELAY_SECONDS"] = "0"
os.environ.setdefault("OPENAI_API_KEY", "test-key-not-real")
os.environ.setdefault("SPOONACULAR_API_KEY", "test-key-not-real")
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("SUPABASE_KEY", None)

from banquet.catalog.models import (  # noqa: E402
    CatalogFilters,
    CatalogIngredient,
    CatalogRecipe,
    CatalogSearchResult,
)
from banquet.config import Settings  # noqa: E402
from banquet.db.memory import InMemoryPlanStore  # noqa: E402
from banquet.llm.client import GatewayResponse, TokenUsage  # noqa: E402
from banquet.models.entities import NewAttendee, NewMealPlan  # noqa: E402
from banquet.workflow.orchestrator import WorkflowOrchestrator  # noqa: E402
from banquet.workflow.state import (  # noqa: E402
    BudgetOptimization,
    DietaryAnalysis,
    PriorityShoppingItem,
    RecipeSelection,
)


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio needed)."""
    return asyncio.run(coro)


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class FakeGateway:
    """
    Scripted stand-in for ReasoningGateway.

    `handlers` maps a stage name to either a model instance, an exception,
    or a callable taking the user prompt and returning one of those.
    """

    def __init__(self, handlers: dict[str, Any] | None = None):
        self.handlers: dict[str, Any] = dict(handlers or {})
        self.calls: list[dict[str, Any]] = []
        self.hold: asyncio.Event | None = None

    async def call(self, *, system_prompt, user_prompt, response_model, stage="default", **kwargs):
        self.calls.append({"stage": stage, "system_prompt": system_prompt, "user_prompt": user_prompt})
        if self.hold is not None:
            await self.hold.wait()

        handler = self.handlers[stage]
        value = handler(user_prompt) if callable(handler) and not isinstance(handler, type) else handler
        if isinstance(value, Exception):
            raise value
        return GatewayResponse[response_model](
            text=value.model_dump_json(),
            structured=value,
            usage=TokenUsage(model="gpt-4o-mini", prompt_tokens=100, completion_tokens=50),
        )

    def stages(self) -> list[str]:
        return [c["stage"] for c in self.calls]

    async def close(self) -> None:
        pass


class FakeCatalog:
    """
    In-memory recipe catalog.

    Each search returns the recipes rotated by one, so consecutive slots see
    a different first candidate.
    """

    def __init__(self, recipes: list[CatalogRecipe], error: Exception | None = None):
        self.recipes = recipes
        self.error = error
        self.searches: list[CatalogFilters] = []
        self.detail_lookups: list[int] = []

    async def search(self, filters: CatalogFilters) -> CatalogSearchResult:
        self.searches.append(filters)
        if self.error is not None:
            raise self.error
        shift = (len(self.searches) - 1) % len(self.recipes) if self.recipes else 0
        rotated = self.recipes[shift:] + self.recipes[:shift]
        return CatalogSearchResult(results=rotated, total_results=len(rotated))

    async def get_details(self, recipe_id: int) -> CatalogRecipe:
        self.detail_lookups.append(recipe_id)
        return next(r for r in self.recipes if r.id == recipe_id)

    async def aclose(self) -> None:
        pass


class CountingPacer:
    def __init__(self) -> None:
        self.waits = 0

    async def wait(self) -> None:
        self.waits += 1


# ---------------------------------------------------------------------------
# Scripted responses
# ---------------------------------------------------------------------------


def dietary_analysis(**overrides) -> DietaryAnalysis:
    data = {
        "overall_complexity": "moderate",
        "primary_constraints": ["vegetarian"],
        "cross_contamination_risks": [],
        "special_accommodations": [],
        "reasoning": "One vegetarian, no allergies.",
        "confidence_score": 0.9,
    }
    data.update(overrides)
    return DietaryAnalysis(**data)


def pick_first_offered(confidence: float = 0.85) -> Callable[[str], RecipeSelection]:
    """Selection handler choosing the first candidate listed in the prompt."""

    def handler(user_prompt: str) -> RecipeSelection:
        recipe_id = int(re.search(r'"id": (\d+)', user_prompt).group(1))
        title = re.search(r'"title": "([^"]+)"', user_prompt).group(1)
        return RecipeSelection(
            selected_recipe_id=recipe_id,
            recipe_name=title,
            selection_reasoning="Fits the group",
            estimated_servings=2,
            confidence_score=confidence,
        )

    return handler


def budget_optimization(**overrides) -> BudgetOptimization:
    data = {
        "total_estimated_cost": 20.0,
        "budget_status": "within_budget",
        "cost_saving_opportunities": ["Buy rice in bulk"],
        "priority_shopping_items": [PriorityShoppingItem(item="chicken breast", priority=5)],
        "optimization_reasoning": "Costs are reasonable.",
        "confidence_score": 0.8,
    }
    data.update(overrides)
    return BudgetOptimization(**data)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def settings():
    return Settings(slot_delay_seconds=0)


@pytest.fixture
def store():
    return InMemoryPlanStore()


@pytest.fixture
def catalog_recipes():
    """Three small recipes, 4 servings each, with ingredient data."""
    return [
        CatalogRecipe(
            id=101,
            title="Veggie Omelette",
            readyInMinutes=15,
            servings=4,
            dishTypes=["breakfast"],
            extendedIngredients=[
                CatalogIngredient(name="eggs", amount=8, unit="", aisle="Milk, Eggs, Other Dairy"),
                CatalogIngredient(name="onion", amount=1, unit="lb", aisle="Produce"),
            ],
        ),
        CatalogRecipe(
            id=102,
            title="Rice Bowl",
            readyInMinutes=30,
            servings=4,
            dishTypes=["main course"],
            extendedIngredients=[
                CatalogIngredient(name="rice", amount=2, unit="lb", aisle="Pasta and Rice"),
                CatalogIngredient(name="onion", amount=1, unit="lb", aisle="Produce"),
            ],
        ),
        CatalogRecipe(
            id=103,
            title="Tomato Pasta",
            readyInMinutes=25,
            servings=4,
            dishTypes=["main course"],
            extendedIngredients=[
                CatalogIngredient(name="pasta", amount=1, unit="lb", aisle="Pasta and Rice"),
                CatalogIngredient(name="tomato", amount=2, unit="lb", aisle="Produce"),
            ],
        ),
    ]


@pytest.fixture
def fake_catalog(catalog_recipes):
    return FakeCatalog(catalog_recipes)


@pytest.fixture
def fake_gateway():
    return FakeGateway({
        "dietary": dietary_analysis(),
        "recipe_selection": pick_first_offered(),
        "budget": budget_optimization(),
    })


@pytest.fixture
def plan_with_attendees(store):
    """A one-day plan for two people with a $50 budget."""

    async def create():
        plan = await store.create_plan(
            NewMealPlan(
                name="Weekend Retreat",
                attendee_count=2,
                budget_total=50,
                start_date=date(2026, 6, 1),
                end_date=date(2026, 6, 1),
            )
        )
        await store.add_attendees(
            plan.id,
            [
                NewAttendee(name="Ana", dietary_restrictions=["vegetarian"], dietary_severity="moderate"),
                NewAttendee(name="Ben"),
            ],
        )
        return plan

    return _run(create())


@pytest.fixture
def orchestrator(store, fake_gateway, fake_catalog, settings):
    return WorkflowOrchestrator(
        store=store,
        gateway=fake_gateway,
        catalog=fake_catalog,
        pacer=CountingPacer(),
        settings=settings,
    )


@pytest.fixture
def mock_supabase():
    """Mock Supabase client: every table returns the same chainable mock."""
    from unittest.mock import MagicMock

    mock_client = MagicMock()

    mock_table = MagicMock()
    for method in ("select", "insert", "upsert", "update", "delete", "eq", "order"):
        getattr(mock_table, method).return_value = mock_table
    mock_table.execute.return_value = MagicMock(data=[])

    mock_client.table.return_value = mock_table
    return mock_client
