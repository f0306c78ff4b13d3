"""Supabase repository for diet plans."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from supabase import Client

from flexcoach_diet.adapters.supabase_errors import execute
from flexcoach_diet.domain.diet_plans import (
    DietPlan,
    DietType,
    FoodEntry,
    Meal,
    PlanQuery,
)
from flexcoach_diet.domain.errors import StorageError
from flexcoach_diet.services.diet_plans import DietPlanRepository
from flexcoach_diet.services.history import PlanHistoryRepository

_TABLE = "diet_plans"
_COLUMNS = (
    "id, owner_id, name, description, diet_type, meals, total_daily_calories, "
    "is_active, created_by, created_at, updated_at"
)


@dataclass
class SupabaseDietPlanRepository(DietPlanRepository, PlanHistoryRepository):
    """Supabase implementation for diet plan persistence.

    The ``diet_plans_active_name`` partial unique index rejects a second
    active row for the same owner and name; that rejection becomes
    ``ConflictError`` so the service can retry as an update.
    """

    client: Client

    def get_plan(self, plan_id: UUID) -> DietPlan | None:
        """Return a plan by id."""
        response = _run(
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("id", str(plan_id))
            .limit(1)
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def find_active_by_name(self, owner_id: str, name: str) -> DietPlan | None:
        """Return the active plan holding a name for an owner."""
        response = _run(
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("owner_id", owner_id)
            .eq("name", name)
            .eq("is_active", True)
            .limit(1)
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def create_plan(self, plan: DietPlan) -> DietPlan:
        """Insert a plan row."""
        response = _run(self.client.table(_TABLE).insert(_to_row(plan)))
        if not response.data:
            raise StorageError("Failed to create diet plan")
        return _parse_plan(response.data[0])

    def save_plan(self, plan: DietPlan) -> DietPlan | None:
        """Overwrite the mutable columns of a row that is still active."""
        row = _to_row(plan)
        for immutable in ("id", "owner_id", "created_at", "created_by"):
            row.pop(immutable)
        response = _run(
            self.client.table(_TABLE)
            .update(row)
            .eq("id", str(plan.id))
            .eq("is_active", True)
        )
        if not response.data:
            return None
        return _parse_plan(response.data[0])

    def delete_plan(self, plan_id: UUID) -> bool:
        """Delete a plan row."""
        response = _run(
            self.client.table(_TABLE).delete().eq("id", str(plan_id))
        )
        return bool(response.data)

    def list_plans(
        self,
        owner_id: str,
        is_active: bool | None = True,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[DietPlan]:
        """Return an owner's plans, newest first."""
        query = self.client.table(_TABLE).select(_COLUMNS).eq("owner_id", owner_id)
        if is_active is not None:
            query = query.eq("is_active", is_active)
        if start is not None:
            query = query.gte("created_at", start.isoformat())
        if end is not None:
            query = query.lte("created_at", end.isoformat())
        response = _run(query.order("created_at", desc=True))
        return [_parse_plan(row) for row in response.data or []]

    def search_plans(self, query: PlanQuery) -> tuple[list[DietPlan], int]:
        """Return one page of plans across owners with the total count."""
        builder = self.client.table(_TABLE).select(_COLUMNS, count="exact")
        if query.diet_type is not None:
            builder = builder.eq("diet_type", query.diet_type.value)
        if query.is_active is not None:
            builder = builder.eq("is_active", query.is_active)
        offset = (query.page - 1) * query.limit
        response = _run(
            builder.order(query.sort_by, desc=query.descending).range(
                offset, offset + query.limit - 1
            )
        )
        plans = [_parse_plan(row) for row in response.data or []]
        total = response.count if response.count is not None else len(plans)
        return plans, total


def _run(query: Any) -> Any:
    return execute(query, "Diet plan")


def _to_row(plan: DietPlan) -> dict[str, object]:
    return {
        "id": str(plan.id),
        "owner_id": plan.owner_id,
        "name": plan.name,
        "description": plan.description,
        "diet_type": plan.diet_type.value,
        "meals": [
            {
                "name": meal.name,
                "time": meal.time,
                "foods": [
                    {
                        "food_name": food.food_name,
                        "quantity_raw": food.quantity_raw,
                        "quantity": food.quantity,
                        "unit": food.unit,
                        "calories": food.calories,
                    }
                    for food in meal.foods
                ],
                "instructions": meal.instructions,
                "total_calories": meal.total_calories,
            }
            for meal in plan.meals
        ],
        "total_daily_calories": plan.total_daily_calories,
        "is_active": plan.is_active,
        "created_by": plan.created_by,
        "created_at": plan.created_at.isoformat(),
        "updated_at": plan.updated_at.isoformat(),
    }


def _parse_plan(row: dict[str, Any]) -> DietPlan:
    return DietPlan(
        id=UUID(row["id"]),
        owner_id=str(row["owner_id"]),
        name=str(row.get("name", "")),
        description=str(row.get("description") or ""),
        diet_type=DietType(row["diet_type"]),
        meals=[_parse_meal(meal) for meal in row.get("meals") or []],
        total_daily_calories=float(row.get("total_daily_calories") or 0.0),
        is_active=bool(row.get("is_active", True)),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
        created_by=row.get("created_by"),
    )


def _parse_meal(raw: dict[str, Any]) -> Meal:
    return Meal(
        name=str(raw.get("name", "")),
        time=str(raw.get("time", "")),
        foods=[
            FoodEntry(
                food_name=str(food.get("food_name", "")),
                quantity_raw=food.get("quantity_raw", ""),
                quantity=float(food.get("quantity", 1.0)),
                unit=str(food.get("unit") or ""),
                calories=(
                    float(food["calories"])
                    if food.get("calories") is not None
                    else None
                ),
            )
            for food in raw.get("foods") or []
        ],
        instructions=str(raw.get("instructions") or ""),
        total_calories=float(raw.get("total_calories") or 0.0),
    )
