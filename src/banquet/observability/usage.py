"""
Banquet - Usage Tracking.

Accumulates token counts and estimated cost per stage for one workflow run.
"""

from datetime import UTC, datetime
from typing import Any

from banquet.llm.client import TokenUsage

# Per 1M tokens, USD
MODEL_COSTS: dict[str, dict[str, float]] = {
    "gpt-4": {"input": 30.00, "output": 60.00},
    "gpt-4-turbo": {"input": 10.00, "output": 30.00},
    "gpt-4o": {"input": 2.50, "output": 10.00},
    "gpt-4o-mini": {"input": 0.15, "output": 0.60},
    "gpt-4.1-mini": {"input": 0.40, "output": 1.60},
}
DEFAULT_MODEL_COST = MODEL_COSTS["gpt-4"]


def _costs_for(model: str) -> dict[str, float]:
    if model in MODEL_COSTS:
        return MODEL_COSTS[model]
    # Dated snapshots ("gpt-4o-mini-2024-07-18") price like their base model
    for name in sorted(MODEL_COSTS, key=len, reverse=True):
        if model.startswith(name):
            return MODEL_COSTS[name]
    return DEFAULT_MODEL_COST


def estimate_cost(model: str, input_tokens: int, output_tokens: int) -> float:
    """Estimate the cost of one call in USD."""
    costs = _costs_for(model)
    return (input_tokens / 1_000_000) * costs["input"] + (output_tokens / 1_000_000) * costs["output"]


class UsageTracker:
    """
    Track cumulative usage across a run.

    Usage:
        tracker = UsageTracker()
        tracker.record("dietary", response.usage)
        tracker.summary()["total_cost_usd"]
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_cost = 0.0
        self.total_retries = 0

    def record(self, stage: str, usage: TokenUsage, retries: int = 0) -> float:
        """Add a call and return its estimated cost. `retries` counts failed attempts before it."""
        cost = estimate_cost(usage.model, usage.prompt_tokens, usage.completion_tokens)
        self.calls.append({
            "timestamp": datetime.now(UTC).isoformat(),
            "model": usage.model,
            "stage": stage,
            "input_tokens": usage.prompt_tokens,
            "output_tokens": usage.completion_tokens,
            "cost": cost,
            "retries": retries,
        })
        self.total_input_tokens += usage.prompt_tokens
        self.total_output_tokens += usage.completion_tokens
        self.total_cost += cost
        self.total_retries += retries
        return cost

    def summary(self) -> dict[str, Any]:
        by_stage: dict[str, float] = {}
        for call in self.calls:
            by_stage[call["stage"]] = by_stage.get(call["stage"], 0.0) + call["cost"]
        return {
            "total_calls": len(self.calls),
            "total_input_tokens": self.total_input_tokens,
            "total_output_tokens": self.total_output_tokens,
            "total_cost_usd": round(self.total_cost, 6),
            "total_retries": self.total_retries,
            "by_stage": {k: round(v, 6) for k, v in by_stage.items()},
        }
