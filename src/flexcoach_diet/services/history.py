"""Diet history aggregation into day, week and month buckets."""

import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol

from flexcoach_diet.domain.diet_plans import DietPlan, Meal, Pagination
from flexcoach_diet.domain.history import (
    Granularity,
    HistoryBucket,
    HistoryPage,
    HistorySummary,
    MealSummary,
    PlanProjection,
)
from flexcoach_diet.services.quantities import format_quantity


class PlanHistoryRepository(Protocol):
    """Read interface for an owner's plans."""

    def list_plans(
        self,
        owner_id: str,
        is_active: bool | None = True,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[DietPlan]:
        """Return an owner's plans, optionally bounded by createdAt."""


@dataclass
class HistoryService:
    """Service that regroups an owner's active plans into time buckets."""

    repository: PlanHistoryRepository
    max_page_size: int = 100

    def aggregate(  # noqa: PLR0913
        self,
        owner_id: str,
        granularity: Granularity = Granularity.DAY,
        page: int = 1,
        page_size: int = 50,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> HistoryPage:
        """Return one page of buckets, most recent bucket first.

        Pagination counts buckets, not plans. Empty buckets are never emitted.
        """
        plans = [
            plan
            for plan in self.repository.list_plans(
                owner_id, is_active=True, start=start, end=end
            )
            if plan.is_active
        ]
        buckets = build_buckets(plans, granularity)

        page = max(1, page)
        page_size = min(self.max_page_size, max(1, page_size))
        offset = (page - 1) * page_size
        created = [plan.created_at for plan in plans]
        return HistoryPage(
            buckets=buckets[offset : offset + page_size],
            pagination=Pagination(
                current_page=page,
                total_pages=math.ceil(len(buckets) / page_size),
                total_items=len(buckets),
                items_per_page=page_size,
            ),
            summary=HistorySummary(
                total_buckets=len(buckets),
                total_plans=len(plans),
                date_from=min(created) if created else None,
                date_to=max(created) if created else None,
            ),
        )


def bucket_key(created_at: datetime, granularity: Granularity) -> str:
    """Derive the UTC day, ISO week or month key for a timestamp.

    Keys sort lexicographically in chronological order.
    """
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=UTC)
    day = created_at.astimezone(UTC).date()
    if granularity is Granularity.WEEK:
        iso = day.isocalendar()
        return f"{iso.year:04d}-W{iso.week:02d}"
    if granularity is Granularity.MONTH:
        return f"{day.year:04d}-{day.month:02d}"
    return day.isoformat()


def build_buckets(
    plans: list[DietPlan], granularity: Granularity
) -> list[HistoryBucket]:
    """Group plans by bucket key, newest bucket and newest plan first."""
    grouped: dict[str, list[DietPlan]] = defaultdict(list)
    for plan in plans:
        grouped[bucket_key(plan.created_at, granularity)].append(plan)

    buckets = []
    for key in sorted(grouped, reverse=True):
        members = sorted(
            grouped[key],
            key=lambda plan: (plan.created_at, str(plan.id)),
            reverse=True,
        )
        projections = [project_plan(plan) for plan in members]
        buckets.append(
            HistoryBucket(
                key=key,
                granularity=granularity,
                plans=projections,
                total_plans=len(projections),
                total_calories=sum(item.total_calories for item in projections),
            )
        )
    return buckets


def project_plan(plan: DietPlan) -> PlanProjection:
    """Project a plan into its history display shape."""
    return PlanProjection(
        id=plan.id,
        name=plan.name,
        description=plan.description,
        diet_type=plan.diet_type.value,
        total_calories=plan.total_daily_calories,
        meal_summaries=[_summarize_meal(meal) for meal in plan.meals],
        created_at=plan.created_at,
        updated_at=plan.updated_at,
    )


def _summarize_meal(meal: Meal) -> MealSummary:
    if meal.foods:
        details = "\n".join(
            f"{food.food_name} {format_quantity(food.quantity, food.unit)}"
            for food in meal.foods
        )
    elif meal.instructions:
        details = meal.instructions
    else:
        details = f"{meal.name} - {format_quantity(meal.total_calories, '')} calories"
    return MealSummary(
        time=meal.time,
        name=meal.name,
        details=details,
        total_calories=meal.total_calories,
    )
