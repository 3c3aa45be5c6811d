"""
Tests for token usage and cost tracking.
"""

import pytest

from banquet.llm.client import TokenUsage
from banquet.observability.usage import UsageTracker, estimate_cost


class TestEstimateCost:
    def test_known_model(self):
        assert estimate_cost("gpt-4o-mini", 1_000_000, 1_000_000) == pytest.approx(0.75)

    def test_dated_snapshot_prices_like_base(self):
        assert estimate_cost("gpt-4o-mini-2024-07-18", 1000, 500) == estimate_cost("gpt-4o-mini", 1000, 500)

    def test_unknown_model_does_not_crash(self):
        assert estimate_cost("unknown-model", 1000, 500) >= 0


class TestUsageTracker:
    def test_record_and_summary(self):
        tracker = UsageTracker()
        tracker.record("dietary", TokenUsage(model="gpt-4", prompt_tokens=1000, completion_tokens=500))
        tracker.record("recipe_selection", TokenUsage(model="gpt-4o-mini", prompt_tokens=500, completion_tokens=200))
        tracker.record("recipe_selection", TokenUsage(model="gpt-4o-mini", prompt_tokens=500, completion_tokens=200))

        summary = tracker.summary()

        assert summary["total_calls"] == 3
        assert summary["total_input_tokens"] == 2000
        assert summary["total_output_tokens"] == 900
        assert set(summary["by_stage"]) == {"dietary", "recipe_selection"}
        assert summary["total_cost_usd"] == pytest.approx(sum(summary["by_stage"].values()), abs=1e-5)

    def test_empty(self):
        summary = UsageTracker().summary()
        assert summary["total_calls"] == 0
        assert summary["total_cost_usd"] == 0

    def test_retries_accumulate(self):
        tracker = UsageTracker()
        tracker.record("dietary", TokenUsage(model="gpt-4o-mini"), retries=2)
        tracker.record("budget", TokenUsage(model="gpt-4o-mini"))

        assert tracker.total_retries == 2
        assert tracker.summary()["total_retries"] == 2
        assert [c["retries"] for c in tracker.calls] == [2, 0]
