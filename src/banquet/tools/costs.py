"""
Banquet - Cost Estimation.

Rough price lookup used to cost a consolidated shopping list.
Prices are placeholders; the lookup order is what matters:
exact name -> substring match (either direction) -> flat default.
"""

from collections.abc import Iterable

from pydantic import BaseModel

from banquet.tools.quantities import ConsolidatedIngredient


class UnitPrice(BaseModel):
    price_per_unit: float
    unit: str


INGREDIENT_PRICES: dict[str, UnitPrice] = {
    # Proteins
    "chicken": UnitPrice(price_per_unit=6.99, unit="lb"),
    "beef": UnitPrice(price_per_unit=8.99, unit="lb"),
    "salmon": UnitPrice(price_per_unit=12.99, unit="lb"),
    "eggs": UnitPrice(price_per_unit=3.49, unit="dozen"),
    # Vegetables
    "onion": UnitPrice(price_per_unit=1.29, unit="lb"),
    "garlic": UnitPrice(price_per_unit=0.50, unit="head"),
    "tomato": UnitPrice(price_per_unit=2.99, unit="lb"),
    "lettuce": UnitPrice(price_per_unit=1.99, unit="head"),
    # Pantry staples
    "rice": UnitPrice(price_per_unit=2.99, unit="lb"),
    "pasta": UnitPrice(price_per_unit=1.49, unit="lb"),
    "flour": UnitPrice(price_per_unit=3.99, unit="bag"),
    "oil": UnitPrice(price_per_unit=4.99, unit="bottle"),
}

DEFAULT_PRICE = UnitPrice(price_per_unit=2.50, unit="item")

# Rough factors into the priced unit (mostly lb); unknown units count as 1
UNIT_CONVERSIONS: dict[str, float] = {
    "oz": 0.0625,
    "gram": 0.00220462,
    "kg": 2.20462,
    "cup": 0.25,
    "tablespoon": 0.015625,
    "teaspoon": 0.005208,
}

# Checked in order; first keyword hit wins
STORE_SECTIONS: dict[str, list[str]] = {
    "Produce": ["vegetable", "fruit", "herb", "lettuce", "tomato", "onion", "garlic", "pepper"],
    "Meat & Seafood": ["chicken", "beef", "pork", "turkey", "salmon", "fish", "shrimp"],
    "Dairy": ["milk", "cheese", "yogurt", "butter", "cream", "eggs"],
    "Pantry": ["rice", "pasta", "flour", "sugar", "salt", "spice", "oil", "vinegar"],
    "Frozen": ["frozen"],
    "Bakery": ["bread", "bun", "roll"],
}
OTHER_SECTION = "Other"


class ItemizedCost(BaseModel):
    name: str
    amount: float
    unit: str
    estimated_cost: float


class CostAnalysis(BaseModel):
    total_cost: float
    itemized_costs: list[ItemizedCost]


def _lookup_price(name: str) -> UnitPrice:
    normalized = name.lower()
    if normalized in INGREDIENT_PRICES:
        return INGREDIENT_PRICES[normalized]
    for key, price in INGREDIENT_PRICES.items():
        if key in normalized or normalized in key:
            return price
    return DEFAULT_PRICE


def estimate_ingredient_cost(name: str, amount: float, unit: str) -> float:
    """Estimate the cost of an amount of an ingredient, rounded to cents."""
    pricing = _lookup_price(name)
    unit = (unit or "").lower()

    if unit != pricing.unit.lower():
        factor = UNIT_CONVERSIONS.get(unit, 1)
        cost = pricing.price_per_unit * (amount * factor)
    else:
        cost = pricing.price_per_unit * amount

    return round(cost * 100) / 100


def calculate_total_cost(ingredients: Iterable[ConsolidatedIngredient]) -> CostAnalysis:
    """Cost each consolidated ingredient and sum the total."""
    itemized = [
        ItemizedCost(
            name=ingredient.name,
            amount=ingredient.total_amount,
            unit=ingredient.unit,
            estimated_cost=estimate_ingredient_cost(
                ingredient.name, ingredient.total_amount, ingredient.unit
            ),
        )
        for ingredient in ingredients
    ]
    total = sum(item.estimated_cost for item in itemized)
    return CostAnalysis(total_cost=round(total * 100) / 100, itemized_costs=itemized)


def store_section_for(name: str) -> str:
    """Pick a store section by keyword match on the ingredient name."""
    lowered = name.lower()
    for section, keywords in STORE_SECTIONS.items():
        if any(keyword in lowered for keyword in keywords):
            return section
    return OTHER_SECTION


def organize_shopping_list(
    ingredients: Iterable[ConsolidatedIngredient],
) -> dict[str, list[ConsolidatedIngredient]]:
    """
    Bucket ingredients into store sections.

    Every section is present in the result (possibly empty); items within a
    section are sorted by name.
    """
    organized: dict[str, list[ConsolidatedIngredient]] = {
        section: [] for section in [*STORE_SECTIONS, OTHER_SECTION]
    }
    for ingredient in ingredients:
        organized[store_section_for(ingredient.name)].append(ingredient)
    for items in organized.values():
        items.sort(key=lambda item: item.name.lower())
    return organized
