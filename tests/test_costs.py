"""
Tests for cost estimation and store-section grouping.
"""

from banquet.tools.costs import (
    OTHER_SECTION,
    STORE_SECTIONS,
    calculate_total_cost,
    estimate_ingredient_cost,
    organize_shopping_list,
    store_section_for,
)
from banquet.tools.quantities import ConsolidatedIngredient


def _item(name, amount, unit=""):
    return ConsolidatedIngredient(name=name, total_amount=amount, unit=unit)


class TestEstimateIngredientCost:
    def test_exact_match_same_unit(self):
        assert estimate_ingredient_cost("chicken", 2, "lb") == 13.98

    def test_substring_match(self):
        # "chicken breast" contains "chicken"
        assert estimate_ingredient_cost("chicken breast", 1, "lb") == 6.99

    def test_unit_conversion(self):
        # 16 oz of beef = 1 lb
        assert estimate_ingredient_cost("beef", 16, "oz") == 8.99

    def test_unknown_unit_counts_as_one(self):
        assert estimate_ingredient_cost("tomato", 2, "can") == 5.98

    def test_unknown_ingredient_uses_default(self):
        assert estimate_ingredient_cost("saffron", 3, "item") == 7.5


class TestCalculateTotalCost:
    def test_total_and_order(self):
        analysis = calculate_total_cost([_item("saffron", 2, "item"), _item("chicken", 1, "lb")])

        assert [c.name for c in analysis.itemized_costs] == ["saffron", "chicken"]
        assert analysis.total_cost == 11.99

    def test_empty(self):
        analysis = calculate_total_cost([])
        assert analysis.total_cost == 0
        assert analysis.itemized_costs == []


class TestOrganizeShoppingList:
    def test_all_sections_present(self):
        organized = organize_shopping_list([])
        assert set(organized) == {*STORE_SECTIONS, OTHER_SECTION}

    def test_items_bucketed_and_sorted(self):
        organized = organize_shopping_list([
            _item("tomato", 1),
            _item("garlic", 1),
            _item("salmon fillet", 1),
            _item("saffron", 1),
        ])

        assert [i.name for i in organized["Produce"]] == ["garlic", "tomato"]
        assert [i.name for i in organized["Meat & Seafood"]] == ["salmon fillet"]
        assert [i.name for i in organized["Other"]] == ["saffron"]

    def test_first_keyword_section_wins(self):
        # "butter" is Dairy; "peanut butter" has no earlier match
        assert store_section_for("peanut butter") == "Dairy"
        assert store_section_for("frozen peas") == "Frozen"
