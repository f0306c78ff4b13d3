"""Diet plan store: upsert-by-name, calorie policy and soft deletion."""

import logging
import math
import threading
from collections import Counter
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID, uuid4

from flexcoach_diet.domain.diet_plans import (
    DietPlan,
    DietType,
    FoodEntry,
    Meal,
    Pagination,
    PlanPage,
    PlanQuery,
)
from flexcoach_diet.domain.errors import (
    ConflictError,
    FieldError,
    FieldErrors,
    InternalError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from flexcoach_diet.services.audit import AuditService
from flexcoach_diet.services.quantities import normalize_quantity

_logger = logging.getLogger(__name__)

SORTABLE_FIELDS = frozenset({"created_at", "updated_at", "name", "total_daily_calories"})
MAX_PAGE_SIZE = 100


class DietPlanRepository(Protocol):
    """Persistence interface for diet plans."""

    def get_plan(self, plan_id: UUID) -> DietPlan | None:
        """Return a plan by id regardless of its active flag."""

    def find_active_by_name(self, owner_id: str, name: str) -> DietPlan | None:
        """Return the active plan holding a name for an owner, if any."""

    def create_plan(self, plan: DietPlan) -> DietPlan:
        """Insert a plan.

        Raises ``ConflictError`` when an active plan already holds the
        ``(owner_id, name)`` pair.
        """

    def save_plan(self, plan: DietPlan) -> DietPlan | None:
        """Overwrite the mutable fields of a plan that is still active.

        Returns None when the row is gone or was deactivated since it was
        read. Raises ``ConflictError`` when the new name is held by another
        active plan.
        """

    def delete_plan(self, plan_id: UUID) -> bool:
        """Remove a plan outright; return False when nothing was deleted."""

    def list_plans(
        self,
        owner_id: str,
        is_active: bool | None = True,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[DietPlan]:
        """Return an owner's plans, newest first, optionally bounded by createdAt."""

    def search_plans(self, query: PlanQuery) -> tuple[list[DietPlan], int]:
        """Return one page of plans across owners and the total match count."""


@dataclass(frozen=True)
class UpsertResult:
    """Outcome of an upsert: the stored plan and whether it was newly created."""

    plan: DietPlan
    created: bool


class _KeyedLocks:
    """Process-local locks keyed by ``(owner_id, name)``.

    A key's lock lives only while some thread holds or awaits it.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._users: Counter[tuple[str, str]] = Counter()

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, key: tuple[str, str]) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, threading.Lock())
            self._users[key] += 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class DietPlanService:
    """Application service that owns diet plan writes and listings.

    All creation goes through ``upsert`` so that an owner never holds two
    active plans with the same name. Writes for one ``(owner_id, name)`` pair
    are serialized in-process; the storage layer's unique index covers other
    processes, and a lost race is retried as an update.
    """

    repository: DietPlanRepository
    audit_service: AuditService
    max_upsert_attempts: int = 3
    clock: Callable[[], datetime] = _utcnow
    _locks: _KeyedLocks = field(default_factory=_KeyedLocks, repr=False)

    def upsert(
        self, owner_id: str, name: str, payload: dict[str, object]
    ) -> UpsertResult:
        """Create the named plan or replace the active plan holding the name."""
        errors = FieldErrors()
        owner = _require_text(owner_id, "owner_id", errors)
        plan_name = _require_text(name, "name", errors)
        diet_type = _parse_diet_type(payload.get("diet_type"), errors)
        meals = _parse_meals(payload.get("meals"), errors)
        errors.raise_if_any()
        description = _optional_text(payload.get("description"))
        created_by = _optional_text(payload.get("created_by")) or owner

        with self._locks.hold((owner, plan_name)):
            for attempt in range(1, self.max_upsert_attempts + 1):
                now = self.clock()
                existing = self.repository.find_active_by_name(owner, plan_name)
                if existing is not None:
                    updated = replace(
                        existing,
                        description=description,
                        diet_type=diet_type,
                        meals=meals,
                        total_daily_calories=_sum_meals(meals),
                        updated_at=now,
                    )
                    try:
                        saved = self.repository.save_plan(updated)
                    except ConflictError:
                        saved = None
                    if saved is None:
                        _logger.info(
                            "Plan %s changed before replace for owner=%s "
                            "name=%s (attempt %s/%s)",
                            existing.id,
                            owner,
                            plan_name,
                            attempt,
                            self.max_upsert_attempts,
                        )
                        continue
                    _logger.info(
                        "Replaced diet plan %s for owner=%s name=%s",
                        saved.id,
                        owner,
                        plan_name,
                    )
                    self._audit(owner, "updated", before=existing, after=saved)
                    return UpsertResult(plan=saved, created=False)

                plan = DietPlan(
                    id=uuid4(),
                    owner_id=owner,
                    name=plan_name,
                    description=description,
                    diet_type=diet_type,
                    meals=meals,
                    total_daily_calories=_sum_meals(meals),
                    is_active=True,
                    created_at=now,
                    updated_at=now,
                    created_by=created_by,
                )
                try:
                    created = self.repository.create_plan(plan)
                except ConflictError:
                    _logger.info(
                        "Upsert conflict for owner=%s name=%s (attempt %s/%s)",
                        owner,
                        plan_name,
                        attempt,
                        self.max_upsert_attempts,
                    )
                    continue
                _logger.info(
                    "Created diet plan %s for owner=%s name=%s",
                    created.id,
                    owner,
                    plan_name,
                )
                self._audit(owner, "created", before=None, after=created)
                return UpsertResult(plan=created, created=True)

        raise InternalError("Could not save diet plan after concurrent updates")

    def update(
        self,
        plan_id: UUID,
        payload: dict[str, object],
        owner_id: str | None = None,
    ) -> DietPlan:
        """Apply a partial update to an active plan."""
        current = self._resolve_active(plan_id, owner_id)
        errors = FieldErrors()
        changes: dict[str, object] = {}
        if "name" in payload:
            changes["name"] = _require_text(payload.get("name"), "name", errors)
        if "description" in payload:
            changes["description"] = _optional_text(payload.get("description"))
        if "diet_type" in payload:
            changes["diet_type"] = _parse_diet_type(payload.get("diet_type"), errors)
        if "meals" in payload:
            meals = _parse_meals(payload.get("meals"), errors)
            changes["meals"] = meals
            changes["total_daily_calories"] = _sum_meals(meals)
        errors.raise_if_any()

        new_name = str(changes.get("name", current.name))
        with self._locks.hold((current.owner_id, new_name)):
            if new_name != current.name:
                holder = self.repository.find_active_by_name(
                    current.owner_id, new_name
                )
                if holder is not None and holder.id != current.id:
                    raise _name_taken(new_name)
            updated = replace(current, **changes, updated_at=self.clock())
            try:
                saved = self.repository.save_plan(updated)
            except ConflictError as exc:
                raise _name_taken(new_name) from exc
            if saved is None:
                raise NotFoundError("Diet plan not found")
        self._audit(current.owner_id, "updated", before=current, after=saved)
        return saved

    def deactivate(self, plan_id: UUID, owner_id: str | None = None) -> DietPlan:
        """Soft-delete a plan so it drops out of listings and history."""
        current = self._resolve_active(plan_id, owner_id)
        saved = self.repository.save_plan(
            replace(current, is_active=False, updated_at=self.clock())
        )
        if saved is None:
            raise NotFoundError("Diet plan not found")
        _logger.info("Deactivated diet plan %s", plan_id)
        self._audit(current.owner_id, "deactivated", before=current, after=saved)
        return saved

    def hard_delete(self, plan_id: UUID) -> None:
        """Remove a plan record outright. Administrative use only."""
        current = self.repository.get_plan(plan_id)
        if current is None or not self.repository.delete_plan(plan_id):
            raise NotFoundError("Diet plan not found")
        _logger.info("Hard-deleted diet plan %s", plan_id)
        self._audit(current.owner_id, "deleted", before=current, after=None)

    def get_plan(self, plan_id: UUID) -> DietPlan:
        """Return a plan by id, active or not."""
        plan = self.repository.get_plan(plan_id)
        if plan is None:
            raise NotFoundError("Diet plan not found")
        return plan

    def list_active(self, owner_id: str) -> list[DietPlan]:
        """Return an owner's active plans, most recently created first."""
        return self.list_plans(owner_id, is_active=True)

    def list_plans(self, owner_id: str, is_active: bool | None = True) -> list[DietPlan]:
        """Return an owner's plans filtered by active flag, newest first."""
        plans = self.repository.list_plans(owner_id, is_active=is_active)
        return sorted(plans, key=_recency_key, reverse=True)

    def search(self, query: PlanQuery) -> PlanPage:
        """Return one page of plans across all owners."""
        if query.sort_by not in SORTABLE_FIELDS:
            raise ValidationError.from_fields(
                [FieldError("sort_by", f"must be one of {sorted(SORTABLE_FIELDS)}")]
            )
        page = max(1, query.page)
        limit = min(MAX_PAGE_SIZE, max(1, query.limit))
        plans, total = self.repository.search_plans(
            replace(query, page=page, limit=limit)
        )
        return PlanPage(
            plans=plans,
            pagination=Pagination(
                current_page=page,
                total_pages=math.ceil(total / limit),
                total_items=total,
                items_per_page=limit,
            ),
        )

    def _resolve_active(self, plan_id: UUID, owner_id: str | None) -> DietPlan:
        plan = self.repository.get_plan(plan_id)
        if plan is None or not plan.is_active:
            raise NotFoundError("Diet plan not found")
        if owner_id is not None and plan.owner_id != owner_id:
            raise OwnershipError("Diet plan not found")
        return plan

    def _audit(
        self,
        actor_id: str,
        event_type: str,
        before: DietPlan | None,
        after: DietPlan | None,
    ) -> None:
        subject = after or before
        if subject is None:
            return
        self.audit_service.record_event(
            actor_id=actor_id,
            entity_type="diet_plan",
            entity_id=subject.id,
            event_type=event_type,
            before=serialize_plan(before) if before else None,
            after=serialize_plan(after) if after else None,
        )


def serialize_plan(plan: DietPlan) -> dict[str, object]:
    """Return the wire representation of a plan."""
    return {
        "id": str(plan.id),
        "ownerId": plan.owner_id,
        "name": plan.name,
        "description": plan.description,
        "dietType": plan.diet_type.value,
        "meals": [
            {
                "name": meal.name,
                "time": meal.time,
                "foods": [
                    {
                        "foodName": food.food_name,
                        "quantityRaw": food.quantity_raw,
                        "quantity": food.quantity,
                        "unit": food.unit,
                        "calories": food.calories,
                    }
                    for food in meal.foods
                ],
                "instructions": meal.instructions,
                "totalCalories": meal.total_calories,
            }
            for meal in plan.meals
        ],
        "totalDailyCalories": plan.total_daily_calories,
        "isActive": plan.is_active,
        "createdBy": plan.created_by,
        "createdAt": plan.created_at.isoformat(),
        "updatedAt": plan.updated_at.isoformat(),
    }


def meal_calories(foods: list[FoodEntry], supplied: float | None) -> float:
    """Trust a non-zero caller total, otherwise sum the foods' calorie figures."""
    if supplied:
        return supplied
    return sum(food.calories or 0.0 for food in foods)


def _sum_meals(meals: list[Meal]) -> float:
    return sum(meal.total_calories for meal in meals)


def _recency_key(plan: DietPlan) -> tuple[datetime, str]:
    return plan.created_at, str(plan.id)


def _name_taken(name: str) -> ValidationError:
    return ValidationError.from_fields(
        [FieldError("name", f"an active plan named '{name}' already exists")]
    )


def _require_text(value: object, name: str, errors: FieldErrors) -> str:
    if not isinstance(value, str) or not value.strip():
        errors.add(name, "is required")
        return ""
    return value.strip()


def _optional_text(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _parse_diet_type(value: object, errors: FieldErrors) -> DietType:
    diet_type = DietType.parse(value)
    if diet_type is None:
        allowed = ", ".join(member.value for member in DietType)
        errors.add("diet_type", f"must be one of: {allowed}")
        return DietType.MAINTENANCE
    return diet_type


def _parse_number(
    value: object, name: str, errors: FieldErrors
) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int | float):
        errors.add(name, "must be a number")
        return None
    if not math.isfinite(value) or value < 0:
        errors.add(name, "must be a non-negative number")
        return None
    return float(value)


def _parse_meals(value: object, errors: FieldErrors) -> list[Meal]:
    if not isinstance(value, list) or not value:
        errors.add("meals", "must contain at least one meal")
        return []
    meals: list[Meal] = []
    for index, raw_meal in enumerate(value):
        prefix = f"meals[{index}]"
        if not isinstance(raw_meal, dict):
            errors.add(prefix, "must be an object")
            continue
        name = _require_text(raw_meal.get("name"), f"{prefix}.name", errors)
        time = _optional_text(raw_meal.get("time")) or name
        foods = _parse_foods(raw_meal.get("foods"), prefix, errors)
        supplied = _parse_number(
            raw_meal.get("total_calories"), f"{prefix}.total_calories", errors
        )
        meals.append(
            Meal(
                name=name,
                time=time,
                foods=foods,
                instructions=_optional_text(raw_meal.get("instructions")),
                total_calories=meal_calories(foods, supplied),
            )
        )
    return meals


def _parse_foods(value: object, prefix: str, errors: FieldErrors) -> list[FoodEntry]:
    if value is None:
        return []
    if not isinstance(value, list):
        errors.add(f"{prefix}.foods", "must be a list")
        return []
    foods: list[FoodEntry] = []
    for index, raw_food in enumerate(value):
        food_prefix = f"{prefix}.foods[{index}]"
        if not isinstance(raw_food, dict):
            errors.add(food_prefix, "must be an object")
            continue
        food_name = _require_text(
            raw_food.get("food_name"), f"{food_prefix}.food_name", errors
        )
        raw_quantity = raw_food.get("quantity")
        quantity, unit = normalize_quantity(raw_quantity)
        explicit_unit = _optional_text(raw_food.get("unit"))
        if explicit_unit and not unit:
            unit = explicit_unit
        foods.append(
            FoodEntry(
                food_name=food_name,
                quantity_raw=_raw_quantity(raw_quantity),
                quantity=quantity,
                unit=unit,
                calories=_parse_number(
                    raw_food.get("calories"), f"{food_prefix}.calories", errors
                ),
            )
        )
    return foods


def _raw_quantity(value: object) -> float | str:
    if isinstance(value, int | float) and not isinstance(value, bool):
        return value if math.isfinite(value) else str(value)
    if value is None:
        return ""
    return str(value)
