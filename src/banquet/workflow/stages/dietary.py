"""
Banquet - Stage 1: Dietary Analysis.

One reasoning call over the attendee list, plus an optional refinement pass
by a "senior" persona when the first result is very complex or
low-confidence. Both results are kept in the decision log.
"""

import json
import logging

from banquet.db.adapter import PlanStore
from banquet.errors import PlanValidationError
from banquet.llm.client import ReasoningGateway
from banquet.models.entities import Attendee, PlanSnapshot
from banquet.observability.usage import UsageTracker
from banquet.prompts.personas import DIETARY_SPECIALIST, get_refinement_persona
from banquet.tools.dietary import analyze_dietary_complexity
from banquet.workflow.state import DietaryAnalysis, DietaryStageResult, RefinedDietaryAnalysis

logger = logging.getLogger(__name__)


def _attendees_payload(attendees: list[Attendee]) -> str:
    rows = [
        {
            "name": a.name,
            "dietary_restrictions": a.dietary_restrictions,
            "food_preferences": a.food_preferences,
            "special_notes": a.special_notes,
            "dietary_severity": a.dietary_severity,
        }
        for a in attendees
    ]
    return json.dumps(rows, indent=2)


def needs_refinement(analysis: DietaryAnalysis, confidence_threshold: float = 0.7) -> bool:
    """Refine iff the group is very complex or the model is unsure."""
    return analysis.overall_complexity == "very_complex" or analysis.confidence_score < confidence_threshold


async def analyze_dietary(
    plan: PlanSnapshot,
    *,
    store: PlanStore,
    gateway: ReasoningGateway,
    confidence_threshold: float = 0.7,
    usage: UsageTracker | None = None,
) -> DietaryStageResult:
    """
    Run the first-pass analysis and persist a dietary_analysis decision.

    Raises:
        PlanValidationError: plan has no attendees (no gateway call is made)
    """
    if not plan.attendees:
        raise PlanValidationError("No attendees found for dietary analysis")

    user_prompt = f"""Please analyze the dietary requirements for this group meal plan.

Attendees: {_attendees_payload(plan.attendees)}

Provide a dietary analysis including complexity assessment, constraints, risks, and accommodations."""

    response = await gateway.call(
        system_prompt=DIETARY_SPECIALIST,
        user_prompt=user_prompt,
        response_model=DietaryAnalysis,
        stage="dietary",
    )
    if usage is not None:
        usage.record("dietary", response.usage, retries=response.retries)
    analysis = response.structured

    # Kept next to the AI result for comparison
    local_analysis = analyze_dietary_complexity(plan.attendees)

    await store.save_decision(
        plan.id,
        "dietary",
        "dietary_analysis",
        {
            "ai_analysis": analysis.model_dump(mode="json"),
            "local_analysis": local_analysis.model_dump(mode="json"),
        },
        analysis.reasoning,
        analysis.confidence_score,
    )

    refine = needs_refinement(analysis, confidence_threshold)
    if refine:
        logger.info(
            f"Dietary analysis: confidence {analysis.confidence_score:.2f}, "
            f"complexity {analysis.overall_complexity}, requesting refinement"
        )
    else:
        logger.info(f"Dietary analysis: confidence {analysis.confidence_score:.2f}")

    return DietaryStageResult(
        analysis=analysis,
        local_analysis=local_analysis,
        needs_refinement=refine,
    )


async def refine_dietary(
    plan: PlanSnapshot,
    initial: DietaryAnalysis,
    *,
    store: PlanStore,
    gateway: ReasoningGateway,
    usage: UsageTracker | None = None,
) -> RefinedDietaryAnalysis:
    """Second pass; persists a dietary_refinement decision carrying the original."""
    system_prompt = get_refinement_persona(
        initial.overall_complexity,
        initial.confidence_score,
        initial.primary_constraints,
    )
    user_prompt = f"""Please provide a refined dietary analysis for this group.

ATTENDEES: {_attendees_payload(plan.attendees)}

PREVIOUS ANALYSIS: {initial.model_dump_json(indent=2)}

Focus on improving confidence and giving actionable guidance for group meal planning."""

    response = await gateway.call(
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        response_model=RefinedDietaryAnalysis,
        stage="dietary_refinement",
    )
    if usage is not None:
        usage.record("dietary_refinement", response.usage, retries=response.retries)
    refined = response.structured

    await store.save_decision(
        plan.id,
        "dietary",
        "dietary_refinement",
        {
            "refined_analysis": refined.model_dump(mode="json"),
            "original_analysis": initial.model_dump(mode="json"),
        },
        refined.reasoning,
        refined.confidence_score,
    )
    logger.info(
        f"Dietary refinement: confidence {initial.confidence_score:.2f} -> {refined.confidence_score:.2f}"
    )
    return refined


def latest_dietary_analysis(plan: PlanSnapshot) -> DietaryAnalysis | None:
    """
    The analysis later stages should use: the newest refinement if there is
    one, otherwise the newest first-pass analysis.
    """
    for decision in reversed(plan.decisions):
        if decision.decision_type == "dietary_refinement":
            return RefinedDietaryAnalysis.model_validate(decision.decision_data["refined_analysis"])
        if decision.decision_type == "dietary_analysis":
            return DietaryAnalysis.model_validate(decision.decision_data["ai_analysis"])
    return None
