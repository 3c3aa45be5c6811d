"""
Banquet - Error types.

Taxonomy:
- PlanValidationError: plan state unusable for a stage (no attendees, no recipes, bad servings)
- GatewayError: reasoning call failed after all retries
- CatalogError: recipe catalog request failed
- SelectionConsistencyError: model picked an id that was never offered
- StageError: a workflow stage failed; wraps the cause with the stage name

Quality shortfalls (low confidence, low variety, budget overrun) are NOT errors.
They are recorded as decisions and the workflow continues.
"""


class BanquetError(Exception):
    """Base class for all Banquet errors."""


class PlanNotFoundError(BanquetError):
    def __init__(self, plan_id: str):
        super().__init__(f"Meal plan {plan_id} not found")
        self.plan_id = plan_id


class PlanValidationError(BanquetError):
    """Plan state is missing or malformed for the requested operation."""


class GatewayError(BanquetError):
    """Reasoning gateway exhausted its retries."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class CatalogError(BanquetError):
    """Recipe catalog search or lookup failed."""


class SelectionConsistencyError(BanquetError):
    """Selected recipe id is not among the candidates offered."""


class StageError(BanquetError):
    """A workflow stage failed."""

    def __init__(self, stage: str, cause: Exception):
        super().__init__(f"{stage} failed: {cause}")
        self.stage = stage
        self.cause = cause


class WorkflowAlreadyRunningError(BanquetError):
    def __init__(self, plan_id: str):
        super().__init__(f"Workflow already running for meal plan {plan_id}")
        self.plan_id = plan_id
