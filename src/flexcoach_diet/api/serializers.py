"""JSON shapes for API responses."""

from datetime import UTC, datetime

from flexcoach_diet.domain.diet_plans import Pagination
from flexcoach_diet.domain.errors import FieldError
from flexcoach_diet.domain.history import (
    HistoryBucket,
    HistorySummary,
    PeriodStatistics,
    PlanProjection,
)


def serialize_pagination(pagination: Pagination) -> dict[str, int]:
    return {
        "currentPage": pagination.current_page,
        "totalPages": pagination.total_pages,
        "totalItems": pagination.total_items,
        "itemsPerPage": pagination.items_per_page,
    }


def serialize_bucket(bucket: HistoryBucket) -> dict[str, object]:
    return {
        "bucketKey": bucket.key,
        "groupType": bucket.granularity.value,
        "plans": [_serialize_projection(plan) for plan in bucket.plans],
        "totalPlans": bucket.total_plans,
        "totalCalories": bucket.total_calories,
    }


def serialize_history_summary(summary: HistorySummary) -> dict[str, object]:
    return {
        "totalBuckets": summary.total_buckets,
        "totalPlans": summary.total_plans,
        "dateRange": {
            "from": summary.date_from.isoformat() if summary.date_from else None,
            "to": summary.date_to.isoformat() if summary.date_to else None,
        },
    }


def serialize_period_statistics(result: PeriodStatistics) -> dict[str, object]:
    stats = result.stats
    return {
        "stats": {
            "totalPlans": stats.total_plans,
            "totalDays": stats.total_days,
            "totalCalories": stats.total_calories,
            "averageCaloriesPerDay": stats.average_calories_per_day,
            "mostActiveBucketKey": stats.most_active_bucket_key,
            "dietTypeBreakdown": stats.diet_type_breakdown,
        },
        "period": {
            "days": result.period_days,
            "startDate": result.start.isoformat(),
            "endDate": result.end.isoformat(),
        },
    }


def error_body(
    message: str, code: str, details: list[FieldError] | None = None
) -> dict[str, object]:
    """Return the uniform error envelope."""
    body: dict[str, object] = {
        "success": False,
        "error": message,
        "code": code,
        "timestamp": datetime.now(tz=UTC).isoformat(),
    }
    if details:
        body["details"] = [
            {"field": detail.field, "message": detail.message} for detail in details
        ]
    return body


def _serialize_projection(plan: PlanProjection) -> dict[str, object]:
    return {
        "id": str(plan.id),
        "name": plan.name,
        "description": plan.description,
        "dietType": plan.diet_type,
        "totalCalories": plan.total_calories,
        "mealSummaries": [
            {
                "time": meal.time,
                "name": meal.name,
                "details": meal.details,
                "totalCalories": meal.total_calories,
            }
            for meal in plan.meal_summaries
        ],
        "createdAt": plan.created_at.isoformat(),
        "updatedAt": plan.updated_at.isoformat(),
    }
