"""
Banquet - Observability.

Token and cost accounting per workflow run.
"""

from banquet.observability.usage import UsageTracker, estimate_cost

__all__ = ["UsageTracker", "estimate_cost"]
