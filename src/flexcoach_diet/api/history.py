"""Diet history and statistics endpoints."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Query, Request

from flexcoach_diet.api.serializers import (
    serialize_bucket,
    serialize_history_summary,
    serialize_pagination,
    serialize_period_statistics,
)
from flexcoach_diet.domain.errors import FieldError, ValidationError
from flexcoach_diet.domain.history import Granularity

if TYPE_CHECKING:
    from flexcoach_diet.containers import AppContainer

router = APIRouter(prefix="/diet-history", tags=["diet-history"])

_GROUP_ALIASES = {"date": Granularity.DAY}


@router.get("/user/{owner_id}")
async def diet_history(  # noqa: PLR0913
    owner_id: str,
    request: Request,
    group_by: str = Query(default="day", alias="groupBy"),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1),
    start_date: datetime | None = Query(default=None, alias="startDate"),
    end_date: datetime | None = Query(default=None, alias="endDate"),
) -> dict[str, object]:
    """Return an owner's plans grouped by day, week or month."""
    container: AppContainer = request.app.state.container
    result = container.history_service.aggregate(
        owner_id,
        granularity=_parse_granularity(group_by),
        page=page,
        page_size=limit,
        start=_as_utc(start_date),
        end=_as_utc(end_date),
    )
    return {
        "success": True,
        "history": [serialize_bucket(bucket) for bucket in result.buckets],
        "pagination": serialize_pagination(result.pagination),
        "summary": serialize_history_summary(result.summary),
    }


@router.get("/stats/{owner_id}")
async def diet_history_stats(
    owner_id: str,
    request: Request,
    period: int = Query(default=30, ge=1, le=3650),
) -> dict[str, object]:
    """Return summary statistics over the trailing ``period`` days."""
    container: AppContainer = request.app.state.container
    result = container.stats_service.summarize(owner_id, period_days=period)
    return {"success": True, **serialize_period_statistics(result)}


@router.delete("/{plan_id}")
async def remove_from_history(
    plan_id: UUID,
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
) -> dict[str, object]:
    """Soft-delete a plan so it no longer appears in history."""
    container: AppContainer = request.app.state.container
    plan = container.diet_plan_service.deactivate(plan_id, owner_id=user_id)
    return {
        "success": True,
        "message": "Diet plan removed from history",
        "dietPlan": {"id": str(plan.id), "name": plan.name, "isActive": plan.is_active},
    }


def _parse_granularity(raw: str) -> Granularity:
    value = raw.strip().lower()
    if value in _GROUP_ALIASES:
        return _GROUP_ALIASES[value]
    try:
        return Granularity(value)
    except ValueError:
        raise ValidationError.from_fields(
            [FieldError("groupBy", "must be one of: day, week, month")]
        ) from None


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)
