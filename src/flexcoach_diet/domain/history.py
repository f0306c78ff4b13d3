"""Domain models for diet history and statistics."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from flexcoach_diet.domain.diet_plans import Pagination


class Granularity(Enum):
    """Temporal resolution used to group plans."""

    DAY = "day"
    WEEK = "week"
    MONTH = "month"


@dataclass(frozen=True)
class MealSummary:
    """Display view of a meal inside a history bucket."""

    time: str
    name: str
    details: str
    total_calories: float


@dataclass(frozen=True)
class PlanProjection:
    """Display view of a plan inside a history bucket."""

    id: UUID
    name: str
    description: str
    diet_type: str
    total_calories: float
    meal_summaries: list[MealSummary]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class HistoryBucket:
    """Plans sharing a day, ISO week or month key."""

    key: str
    granularity: Granularity
    plans: list[PlanProjection]
    total_plans: int
    total_calories: float


@dataclass(frozen=True)
class HistorySummary:
    """Totals over every bucket of a history request, not just one page."""

    total_buckets: int
    total_plans: int
    date_from: datetime | None
    date_to: datetime | None


@dataclass(frozen=True)
class HistoryPage:
    """A page of buckets with paging metadata."""

    buckets: list[HistoryBucket]
    pagination: Pagination
    summary: HistorySummary


@dataclass(frozen=True)
class Statistics:
    """Summary metrics over a plan set."""

    total_plans: int
    total_days: int
    total_calories: float
    average_calories_per_day: float
    most_active_bucket_key: str | None
    diet_type_breakdown: dict[str, int]


@dataclass(frozen=True)
class PeriodStatistics:
    """Statistics for a trailing window of days."""

    stats: Statistics
    period_days: int
    start: datetime
    end: datetime
