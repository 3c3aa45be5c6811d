"""
Banquet - Deterministic calculators.

Pure functions with no I/O:
- quantities: recipe scaling and ingredient consolidation
- costs: price lookup, total cost, store sections
- meal_slots: slot enumeration from a date range
- dietary: constraint keyword mapping and local complexity estimate
"""

from banquet.tools.costs import (
    CostAnalysis,
    ItemizedCost,
    calculate_total_cost,
    estimate_ingredient_cost,
    organize_shopping_list,
    store_section_for,
)
from banquet.tools.dietary import (
    AttendeeAnalysis,
    analyze_dietary_complexity,
    extract_diet_type,
    extract_intolerances,
    map_meal_type,
)
from banquet.tools.meal_slots import MealSlot, count_days, generate_meal_slots, slot_sort_key
from banquet.tools.quantities import (
    ConsolidatedIngredient,
    consolidate_ingredients,
    ingredients_by_recipe,
    scale_recipe_ingredients,
)

__all__ = [
    # Quantities
    "ConsolidatedIngredient",
    "consolidate_ingredients",
    "ingredients_by_recipe",
    "scale_recipe_ingredients",
    # Costs
    "CostAnalysis",
    "ItemizedCost",
    "calculate_total_cost",
    "estimate_ingredient_cost",
    "organize_shopping_list",
    "store_section_for",
    # Slots
    "MealSlot",
    "count_days",
    "generate_meal_slots",
    "slot_sort_key",
    # Dietary
    "AttendeeAnalysis",
    "analyze_dietary_complexity",
    "extract_diet_type",
    "extract_intolerances",
    "map_meal_type",
]
