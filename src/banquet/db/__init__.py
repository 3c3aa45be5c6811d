"""
Banquet - Plan Store.

create_plan_store() picks Supabase when configured, otherwise the
in-memory store.
"""

import logging

from banquet.config import Settings, get_settings
from banquet.db.adapter import PlanStore
from banquet.db.memory import InMemoryPlanStore

logger = logging.getLogger(__name__)


def create_plan_store(settings: Settings | None = None) -> PlanStore:
    settings = settings or get_settings()
    if settings.has_supabase:
        from banquet.db.client import SupabasePlanStore

        return SupabasePlanStore(settings=settings)
    logger.warning("Supabase not configured; using in-memory plan store (data is not persisted)")
    return InMemoryPlanStore()


__all__ = [
    "InMemoryPlanStore",
    "PlanStore",
    "create_plan_store",
]
