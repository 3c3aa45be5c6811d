"""
Banquet - Dietary Helpers.

Keyword mapping from free-text dietary constraints to catalog filters,
plus a local (non-LLM) complexity estimate kept alongside the AI analysis.
"""

from collections.abc import Iterable
from typing import Literal

from pydantic import BaseModel, Field

from banquet.models.entities import NewAttendee

Complexity = Literal["simple", "moderate", "complex", "very_complex"]

# Checked in order; first hit wins
DIET_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("vegan", ("vegan",)),
    ("vegetarian", ("vegetarian",)),
    ("ketogenic", ("ketogenic", "keto")),
    ("paleo", ("paleo",)),
    ("whole30", ("whole30",)),
]

# Every hit is collected
INTOLERANCE_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("dairy", ("dairy", "lactose")),
    ("gluten", ("gluten",)),
    ("egg", ("egg",)),
    ("peanut", ("nut", "peanut")),
    ("seafood", ("seafood", "shellfish")),
    ("soy", ("soy",)),
    ("sesame", ("sesame",)),
    ("sulfite", ("sulfite",)),
]

# Restriction label -> catalog filters (used by recommendations)
RESTRICTION_FILTERS: dict[str, dict] = {
    "vegetarian": {"diet": "vegetarian"},
    "vegan": {"diet": "vegan"},
    "gluten-free": {"intolerances": ["gluten"]},
    "dairy-free": {"intolerances": ["dairy"]},
    "nut-allergy": {"intolerances": ["tree nut", "peanut"]},
    "pescatarian": {"diet": "pescetarian"},
    "keto": {"diet": "ketogenic"},
    "paleo": {"diet": "paleo"},
    "kosher": {"diet": "kosher"},
    "halal": {"diet": "halal"},
}

MEAL_TYPE_TO_DISH_TYPE: dict[str, str] = {
    "breakfast": "breakfast",
    "lunch": "main course",
    "dinner": "main course",
}


def _joined(constraints: Iterable[str]) -> str:
    return " ".join(constraints).lower()


def extract_diet_type(constraints: Iterable[str]) -> str | None:
    """Pick a catalog diet from constraint text, or None."""
    text = _joined(constraints)
    for diet, keywords in DIET_KEYWORDS:
        if any(keyword in text for keyword in keywords):
            return diet
    return None


def extract_intolerances(constraints: Iterable[str]) -> list[str]:
    """Collect catalog intolerance tags mentioned in constraint text."""
    text = _joined(constraints)
    return [tag for tag, keywords in INTOLERANCE_KEYWORDS if any(k in text for k in keywords)]


def map_meal_type(meal_type: str) -> str:
    return MEAL_TYPE_TO_DISH_TYPE.get(meal_type, "main course")


class AttendeeAnalysis(BaseModel):
    """Deterministic complexity estimate from attendee records."""

    total_count: int
    dietary_complexity: Complexity
    restriction_counts: dict[str, int] = Field(default_factory=dict)
    severity_breakdown: dict[str, int] = Field(default_factory=dict)


def analyze_dietary_complexity(attendees: Iterable[NewAttendee]) -> AttendeeAnalysis:
    """
    Count restrictions and severities and bucket the group.

    - no restrictions -> simple
    - <=3 restrictions, no severe/medical -> moderate
    - <=8 restrictions, <=2 severe/medical -> complex
    - otherwise -> very_complex
    """
    attendees = list(attendees)
    restriction_counts: dict[str, int] = {}
    severity_breakdown: dict[str, int] = {}

    for attendee in attendees:
        for restriction in attendee.dietary_restrictions:
            key = restriction.lower()
            restriction_counts[key] = restriction_counts.get(key, 0) + 1
        severity = attendee.dietary_severity.lower()
        severity_breakdown[severity] = severity_breakdown.get(severity, 0) + 1

    total = sum(restriction_counts.values())
    high_severity = severity_breakdown.get("severe", 0) + severity_breakdown.get("medical", 0)

    if total == 0:
        complexity: Complexity = "simple"
    elif total <= 3 and high_severity == 0:
        complexity = "moderate"
    elif total <= 8 and high_severity <= 2:
        complexity = "complex"
    else:
        complexity = "very_complex"

    return AttendeeAnalysis(
        total_count=len(attendees),
        dietary_complexity=complexity,
        restriction_counts=restriction_counts,
        severity_breakdown=severity_breakdown,
    )
