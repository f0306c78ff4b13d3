"""Domain models for diet plans."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class DietType(Enum):
    """Closed set of plan goals."""

    WEIGHT_LOSS = "Weight Loss"
    WEIGHT_GAIN = "Weight Gain"
    MUSCLE_BUILDING = "Muscle Building"
    MAINTENANCE = "Maintenance"
    ATHLETIC_PERFORMANCE = "Athletic Performance"

    @classmethod
    def parse(cls, raw: object) -> "DietType | None":
        """Resolve a display value ("Weight Loss") or compact name ("WeightLoss")."""
        if isinstance(raw, DietType):
            return raw
        if not isinstance(raw, str):
            return None
        compact = raw.replace(" ", "").replace("_", "").lower()
        for member in cls:
            if member.value.replace(" ", "").lower() == compact:
                return member
        return None


MEAL_SLOTS = (
    "Morning",
    "Breakfast",
    "Snacks",
    "Lunch",
    "Post-Workout",
    "Dinner",
    "Evening",
)


@dataclass(frozen=True)
class FoodEntry:
    """A food inside a meal, with its quantity already normalized."""

    food_name: str
    quantity_raw: float | str
    quantity: float
    unit: str
    calories: float | None = None


@dataclass(frozen=True)
class Meal:
    """One meal slot inside a plan."""

    name: str
    time: str
    foods: list[FoodEntry]
    instructions: str
    total_calories: float


@dataclass(frozen=True)
class DietPlan:
    """A persisted meal plan."""

    id: UUID
    owner_id: str
    name: str
    description: str
    diet_type: DietType
    meals: list[Meal]
    total_daily_calories: float
    is_active: bool
    created_at: datetime
    updated_at: datetime
    created_by: str | None = None


@dataclass(frozen=True)
class PlanQuery:
    """Filters, ordering and paging for the administrative plan listing."""

    page: int = 1
    limit: int = 20
    diet_type: DietType | None = None
    is_active: bool | None = None
    sort_by: str = "created_at"
    descending: bool = True


@dataclass(frozen=True)
class Pagination:
    """Paging metadata for list responses."""

    current_page: int
    total_pages: int
    total_items: int
    items_per_page: int


@dataclass(frozen=True)
class PlanPage:
    """One page of plans with paging metadata."""

    plans: list[DietPlan]
    pagination: Pagination
