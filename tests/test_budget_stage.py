"""
Tests for Stages 3 and 4: quantity consolidation and budget optimization.
"""

from datetime import date

import pytest

from banquet.errors import PlanNotFoundError, PlanValidationError
from banquet.models.entities import NewMealPlan, ScaledIngredient
from banquet.workflow.stages.budget import (
    budget_overage,
    is_overrun,
    optimize_budget,
    priority_for,
)
from banquet.workflow.stages.consolidation import consolidate_plan
from banquet.workflow.state import PriorityShoppingItem

from conftest import FakeGateway, _run, budget_optimization


async def _plan_with_recipe(store, budget, saffron_amount):
    """One recipe whose cost is exactly 2.50 per saffron item (default price)."""
    plan = await store.create_plan(
        NewMealPlan(
            name="Budget Test",
            attendee_count=4,
            budget_total=budget,
            start_date=date(2026, 3, 1),
            end_date=date(2026, 3, 1),
        )
    )
    await store.save_selected_recipe(
        plan.id,
        "dinner_day1",
        42,
        "Saffron Rice",
        "Festive",
        4,
        [ScaledIngredient(name="saffron", amount=saffron_amount, unit="item", aisle="Spices")],
        0.9,
    )
    return plan


class TestConsolidatePlan:
    def test_consolidates_across_recipes(self, store):
        async def scenario():
            plan = await _plan_with_recipe(store, None, 2)
            await store.save_selected_recipe(
                plan.id, "lunch_day1", 43, "Saffron Soup", "", 4,
                [ScaledIngredient(name="Saffron", amount=1, unit="item")],
            )
            return await consolidate_plan(plan.id, store=store)

        result = _run(scenario())

        assert result.total_recipes == 2
        [item] = result.consolidated_ingredients
        assert item.total_amount == 3
        assert sorted(item.sources) == ["Saffron Rice", "Saffron Soup"]

    def test_no_recipes(self, store, plan_with_attendees):
        with pytest.raises(PlanValidationError, match="No recipes found"):
            _run(consolidate_plan(plan_with_attendees.id, store=store))


class TestBudgetHelpers:
    def test_overage(self):
        assert budget_overage(120, 100) == pytest.approx(0.2)
        assert budget_overage(80, 100) == pytest.approx(-0.2)

    def test_no_budget_means_no_gate(self):
        assert budget_overage(500, None) is None
        assert budget_overage(500, 0) is None
        assert is_overrun(500, None) is False

    def test_overrun_threshold(self):
        assert is_overrun(120, 100) is True
        assert is_overrun(110, 100) is False
        assert is_overrun(115, 100) is False

    def test_priority_for(self):
        priorities = [PriorityShoppingItem(item="Fresh chicken breast", priority=5)]

        assert priority_for("chicken", priorities) == 5
        assert priority_for("rice", priorities) == 3


class TestOptimizeBudget:
    def test_overrun_is_recorded(self, store):
        gateway = FakeGateway({"budget": budget_optimization(budget_status="over_budget")})

        async def scenario():
            plan = await _plan_with_recipe(store, 100, 48)
            result = await optimize_budget(plan.id, store=store, gateway=gateway)
            return result, await store.get_plan(plan.id)

        result, snapshot = _run(scenario())

        assert result.total_cost == 120
        assert result.within_budget is False
        assert result.budget_overage == pytest.approx(0.2)
        assert result.overrun_detected is True

        [decision] = [d for d in snapshot.decisions if d.decision_type == "budget_overrun_detected"]
        assert decision.agent_type == "orchestrator"
        assert decision.confidence_score == 0.8
        assert decision.decision_data["target_budget"] == 100
        assert decision.decision_data["total_cost"] == 120

    def test_small_overrun_not_recorded(self, store):
        gateway = FakeGateway({"budget": budget_optimization()})

        async def scenario():
            plan = await _plan_with_recipe(store, 100, 44)
            result = await optimize_budget(plan.id, store=store, gateway=gateway)
            return result, await store.get_plan(plan.id)

        result, snapshot = _run(scenario())

        assert result.total_cost == 110
        assert result.overrun_detected is False
        assert snapshot.decisions == []

    def test_persists_shopping_list_and_analysis(self, store):
        gateway = FakeGateway({
            "budget": budget_optimization(
                priority_shopping_items=[PriorityShoppingItem(item="saffron threads", priority=5)],
                cost_saving_opportunities=["Buy in bulk", "Use turmeric"],
            )
        })

        async def scenario():
            plan = await _plan_with_recipe(store, None, 4)
            await optimize_budget(plan.id, store=store, gateway=gateway)
            await optimize_budget(plan.id, store=store, gateway=gateway)
            return await store.get_plan(plan.id)

        snapshot = _run(scenario())

        # Shopping list is replaced, analyses accumulate
        [item] = snapshot.shopping_items
        assert item.ingredient_name == "saffron"
        assert item.estimated_cost == 10
        assert item.priority == 5
        assert item.store_section == "Spices"
        assert len(snapshot.budget_analyses) == 2
        assert snapshot.latest_budget_analysis.optimization_suggestions == "Buy in bulk; Use turmeric"
        assert "organized_by_section" in snapshot.latest_budget_analysis.cost_breakdown
        assert "Target Budget: No budget set" in gateway.calls[0]["user_prompt"]

    def test_no_suggestions_placeholder(self, store):
        gateway = FakeGateway({"budget": budget_optimization(cost_saving_opportunities=[])})

        async def scenario():
            plan = await _plan_with_recipe(store, 50, 1)
            await optimize_budget(plan.id, store=store, gateway=gateway)
            return await store.get_plan(plan.id)

        analysis = _run(scenario()).latest_budget_analysis
        assert analysis.optimization_suggestions == "No specific optimizations identified"

    def test_requires_recipes(self, store, plan_with_attendees):
        gateway = FakeGateway({"budget": budget_optimization()})

        with pytest.raises(PlanValidationError):
            _run(optimize_budget(plan_with_attendees.id, store=store, gateway=gateway))
        assert gateway.calls == []

    def test_unknown_plan(self, store):
        gateway = FakeGateway({"budget": budget_optimization()})

        with pytest.raises(PlanNotFoundError):
            _run(optimize_budget("missing", store=store, gateway=gateway))
