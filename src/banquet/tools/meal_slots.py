"""
Banquet - Meal Slots.

A slot is one meal to fill: (meal type, day index). Slots are derived from
the plan's inclusive date range, three meals a day, in day order.
"""

import math
import re
from datetime import date, datetime
from typing import Literal, NamedTuple

MealType = Literal["breakfast", "lunch", "dinner"]
MEAL_TYPES: tuple[MealType, ...] = ("breakfast", "lunch", "dinner")

_SLOT_PATTERN = re.compile(r"^(breakfast|lunch|dinner)_day(\d+)$")


class MealSlot(NamedTuple):
    meal_type: MealType
    day: int  # 1-based

    @property
    def key(self) -> str:
        return f"{self.meal_type}_day{self.day}"

    @property
    def max_ready_time(self) -> int:
        """Minutes allowed for the recipe (quicker breakfasts)."""
        return 30 if self.meal_type == "breakfast" else 60


def count_days(start: date | datetime, end: date | datetime) -> int:
    """Days in an inclusive range: ceil((end - start) / 1 day) + 1."""
    seconds = (end - start).total_seconds()
    return math.ceil(seconds / 86400) + 1


def generate_meal_slots(start: date | datetime, end: date | datetime) -> list[MealSlot]:
    """
    Enumerate slots for a date range.

    Example: a 3-day plan yields breakfast_day1, lunch_day1, dinner_day1, ...
    dinner_day3 (9 slots).
    """
    days = count_days(start, end)
    return [MealSlot(meal_type, day) for day in range(1, days + 1) for meal_type in MEAL_TYPES]


def parse_slot(key: str) -> MealSlot:
    """Parse "lunch_day2" back into a MealSlot."""
    match = _SLOT_PATTERN.match(key)
    if not match:
        raise ValueError(f"Invalid meal slot: {key}")
    return MealSlot(match.group(1), int(match.group(2)))  # type: ignore[arg-type]


def slot_sort_key(key: str) -> tuple[int, int]:
    """Sort key putting slots in (day, meal order). Unknown keys sort last."""
    try:
        slot = parse_slot(key)
    except ValueError:
        return (10**9, 0)
    return (slot.day, MEAL_TYPES.index(slot.meal_type))
