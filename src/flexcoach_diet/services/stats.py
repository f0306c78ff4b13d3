"""Statistics over an owner's diet plans."""

from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from flexcoach_diet.domain.diet_plans import DietPlan
from flexcoach_diet.domain.history import Granularity, PeriodStatistics, Statistics
from flexcoach_diet.services.history import PlanHistoryRepository, bucket_key


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class StatsService:
    """Service for summary metrics over a trailing window."""

    repository: PlanHistoryRepository
    clock: Callable[[], datetime] = _utcnow

    def summarize(self, owner_id: str, period_days: int = 30) -> PeriodStatistics:
        """Return statistics for active plans created since ``now - period_days``.

        Plans stamped after ``now`` are included.
        """
        end = self.clock()
        start = end - timedelta(days=period_days)
        plans = [
            plan
            for plan in self.repository.list_plans(
                owner_id, is_active=True, start=start
            )
            if plan.is_active and plan.created_at >= start
        ]
        return PeriodStatistics(
            stats=compute_statistics(plans),
            period_days=period_days,
            start=start,
            end=end,
        )


def compute_statistics(plans: list[DietPlan]) -> Statistics:
    """Compute totals, per-day average, busiest day and diet-type counts.

    Only days with at least one plan count toward ``total_days``; ties for the
    busiest day go to the more recent day.
    """
    if not plans:
        return Statistics(
            total_plans=0,
            total_days=0,
            total_calories=0.0,
            average_calories_per_day=0.0,
            most_active_bucket_key=None,
            diet_type_breakdown={},
        )

    day_counts: Counter[str] = Counter()
    breakdown: Counter[str] = Counter()
    total_calories = 0.0
    for plan in plans:
        day_counts[bucket_key(plan.created_at, Granularity.DAY)] += 1
        breakdown[plan.diet_type.value] += 1
        total_calories += plan.total_daily_calories

    total_days = len(day_counts)
    most_active = max(day_counts, key=lambda key: (day_counts[key], key))
    return Statistics(
        total_plans=len(plans),
        total_days=total_days,
        total_calories=total_calories,
        average_calories_per_day=total_calories / total_days,
        most_active_bucket_key=most_active,
        diet_type_breakdown=dict(breakdown),
    )
