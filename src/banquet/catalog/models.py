"""
Recipe catalog models.

Field aliases follow the Spoonacular JSON (camelCase) so API payloads
validate directly; Python code uses the snake_case names.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DishType = Literal[
    "main course", "side dish", "dessert", "appetizer", "salad", "bread",
    "breakfast", "soup", "beverage", "sauce", "marinade", "fingerfood",
    "snack", "drink",
]


class CatalogIngredient(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int | None = None
    name: str
    amount: float = 0
    unit: str = ""
    aisle: str | None = None


class CatalogRecipe(BaseModel):
    """A recipe as returned by search (summary) or information (full) endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: int
    title: str
    ready_in_minutes: int | None = Field(default=None, alias="readyInMinutes")
    servings: int | None = None
    image: str | None = None
    summary: str | None = None
    cuisines: list[str] = Field(default_factory=list)
    dish_types: list[str] = Field(default_factory=list, alias="dishTypes")
    diets: list[str] = Field(default_factory=list)
    extended_ingredients: list[CatalogIngredient] | None = Field(
        default=None, alias="extendedIngredients"
    )
    nutrition: dict | None = None
    instructions: str | None = None

    @property
    def has_ingredients(self) -> bool:
        return bool(self.extended_ingredients)


class CatalogFilters(BaseModel):
    """Search criteria for CatalogClient.search."""

    query: str | None = None
    diet: str | None = None
    intolerances: list[str] = Field(default_factory=list)
    type: DishType | None = None
    cuisine: str | None = None
    exclude_ingredients: list[str] = Field(default_factory=list)
    include_ingredients: list[str] = Field(default_factory=list)
    max_ready_time: int | None = None
    min_protein: int | None = None
    max_calories: int | None = None
    number: int = Field(default=10, ge=1, le=100)
    offset: int = Field(default=0, ge=0)

    def to_params(self) -> dict[str, str | int | bool]:
        """Build query params, leaving out anything unset."""
        params: dict[str, str | int | bool] = {
            "number": self.number,
            "offset": self.offset,
            "addRecipeInformation": True,
            "fillIngredients": True,
        }
        if self.query:
            params["query"] = self.query
        if self.diet:
            params["diet"] = self.diet
        if self.intolerances:
            params["intolerances"] = ",".join(self.intolerances)
        if self.type:
            params["type"] = self.type
        if self.cuisine:
            params["cuisine"] = self.cuisine
        if self.exclude_ingredients:
            params["excludeIngredients"] = ",".join(self.exclude_ingredients)
        if self.include_ingredients:
            params["includeIngredients"] = ",".join(self.include_ingredients)
        if self.max_ready_time:
            params["maxReadyTime"] = self.max_ready_time
        if self.min_protein:
            params["minProtein"] = self.min_protein
        if self.max_calories:
            params["maxCalories"] = self.max_calories
        return params


class CatalogSearchResult(BaseModel):
    results: list[CatalogRecipe] = Field(default_factory=list)
    total_results: int = 0
    offset: int = 0


class ScoredRecipe(CatalogRecipe):
    """A recommendation with its ranking score."""

    score: float = 0
