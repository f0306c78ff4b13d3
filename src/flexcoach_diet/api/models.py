"""Pydantic request models for the diet plan API.

Models only shape and rename the JSON body; field-level rules (required
names, known diet types, non-empty meals) are enforced by the services so
that every caller gets the same error enumeration.
"""

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FoodEntryIn(_CamelModel):
    food_name: str | None = Field(
        default=None, validation_alias=AliasChoices("foodName", "food_name", "name")
    )
    quantity: float | str | None = None
    unit: str | None = None
    calories: float | None = None


class MealIn(_CamelModel):
    name: str | None = None
    time: str | None = None
    foods: list[FoodEntryIn] = Field(default_factory=list)
    instructions: str | None = None
    total_calories: float | None = Field(
        default=None,
        validation_alias=AliasChoices("totalCalories", "total_calories"),
    )


class DietPlanIn(_CamelModel):
    """Body for ``POST /diet-plans`` (create-or-replace by name)."""

    name: str | None = None
    description: str | None = None
    owner_id: str | None = Field(
        default=None, validation_alias=AliasChoices("ownerId", "userId", "owner_id")
    )
    meals: list[MealIn] | None = None
    diet_type: str | None = Field(
        default=None, validation_alias=AliasChoices("dietType", "diet_type")
    )
    total_daily_calories: float | None = Field(
        default=None,
        validation_alias=AliasChoices("totalDailyCalories", "total_daily_calories"),
    )
    created_by: str | None = Field(
        default=None, validation_alias=AliasChoices("createdBy", "created_by")
    )

    def to_payload(self) -> dict[str, object]:
        """Return the snake_case payload consumed by the diet plan service."""
        return self.model_dump(exclude={"owner_id", "name"})


class DietPlanUpdateIn(_CamelModel):
    """Body for ``PUT /diet-plans/{id}``; only the fields sent are applied."""

    name: str | None = None
    description: str | None = None
    meals: list[MealIn] | None = None
    diet_type: str | None = Field(
        default=None, validation_alias=AliasChoices("dietType", "diet_type")
    )

    def to_payload(self) -> dict[str, object]:
        """Return only the fields present in the request body."""
        return self.model_dump(exclude_unset=True)
