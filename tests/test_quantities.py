"""
Tests for recipe scaling and ingredient consolidation.
"""

import pytest

from banquet.catalog.models import CatalogIngredient, CatalogRecipe
from banquet.errors import PlanValidationError
from banquet.models.entities import ScaledIngredient, SelectedRecipe
from banquet.tools.quantities import (
    consolidate_ingredients,
    ingredients_by_recipe,
    scale_recipe_ingredients,
)


def _recipe(servings, ingredients=None):
    return CatalogRecipe(
        id=1,
        title="Pancakes",
        servings=servings,
        extendedIngredients=ingredients,
    )


class TestScaleRecipeIngredients:
    def test_doubles_amounts(self):
        recipe = _recipe(4, [CatalogIngredient(name="flour", amount=2, unit="cup", aisle="Baking")])

        scaled = scale_recipe_ingredients(recipe, 8)

        assert len(scaled) == 1
        assert scaled[0].amount == 4
        assert scaled[0].original_amount == 2
        assert scaled[0].scale_factor == 2
        assert scaled[0].aisle == "Baking"

    def test_rounds_to_two_decimals(self):
        recipe = _recipe(3, [CatalogIngredient(name="milk", amount=1, unit="cup")])

        scaled = scale_recipe_ingredients(recipe, 2)

        assert scaled[0].amount == 0.67

    def test_zero_servings_rejected(self):
        with pytest.raises(PlanValidationError, match="invalid serving count"):
            scale_recipe_ingredients(_recipe(0, []), 4)

    def test_missing_servings_rejected(self):
        with pytest.raises(PlanValidationError):
            scale_recipe_ingredients(_recipe(None, []), 4)

    def test_no_ingredient_data_returns_empty(self):
        assert scale_recipe_ingredients(_recipe(4, None), 8) == []


class TestConsolidateIngredients:
    def test_merges_same_name_and_unit_case_insensitively(self):
        result = consolidate_ingredients({
            "Pancakes": [ScaledIngredient(name="Flour", amount=2, unit="cup")],
            "Bread": [ScaledIngredient(name="flour", amount=1.5, unit="Cup")],
        })

        assert len(result) == 1
        assert result[0].total_amount == 3.5
        assert result[0].sources == ["Pancakes", "Bread"]

    def test_different_units_stay_separate(self):
        result = consolidate_ingredients({
            "A": [ScaledIngredient(name="butter", amount=2, unit="tbsp")],
            "B": [ScaledIngredient(name="butter", amount=1, unit="cup")],
        })

        assert len(result) == 2

    def test_sorted_by_name_and_missing_aisle_is_other(self):
        result = consolidate_ingredients({
            "A": [
                ScaledIngredient(name="sugar", amount=1, unit="cup"),
                ScaledIngredient(name="apple", amount=2, unit="", aisle="Produce"),
            ],
        })

        assert [i.name for i in result] == ["apple", "sugar"]
        assert result[1].aisle == "Other"

    def test_source_listed_once_per_recipe(self):
        result = consolidate_ingredients({
            "Salad": [
                ScaledIngredient(name="oil", amount=1, unit="tbsp"),
                ScaledIngredient(name="oil", amount=2, unit="tbsp"),
            ],
        })

        assert result[0].total_amount == 3
        assert result[0].sources == ["Salad"]

    def test_same_input_same_output(self):
        data = {"A": [ScaledIngredient(name="rice", amount=1.333, unit="lb")]}
        assert consolidate_ingredients(data) == consolidate_ingredients(data)


class TestIngredientsByRecipe:
    def test_repeated_recipe_appends(self):
        line = ScaledIngredient(name="rice", amount=1, unit="lb")
        recipes = [
            SelectedRecipe(
                id=str(i),
                meal_plan_id="p",
                meal_slot=slot,
                catalog_recipe_id=1,
                recipe_name="Rice Bowl",
                estimated_servings=2,
                scaled_ingredients=[line],
            )
            for i, slot in enumerate(["lunch_day1", "dinner_day1"])
        ]

        grouped = ingredients_by_recipe(recipes)

        assert len(grouped["Rice Bowl"]) == 2
        assert consolidate_ingredients(grouped)[0].total_amount == 2


class TestReferenceNumbers:
    def test_four_to_twelve_servings(self):
        recipe = _recipe(4, [CatalogIngredient(name="flour", amount=2, unit="cup")])

        [line] = scale_recipe_ingredients(recipe, 12)

        assert line.amount == 6.0
        assert line.scale_factor == 3.0

    def test_flour_consolidation(self):
        result = consolidate_ingredients({
            "Bread": [ScaledIngredient(name="flour", amount=1.5, unit="cup")],
            "Cake": [ScaledIngredient(name="Flour", amount=2.25, unit="cup")],
        })

        assert result[0].total_amount == 3.75
        assert result[0].sources == ["Bread", "Cake"]
