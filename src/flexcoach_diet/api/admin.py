"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, Response, status

from flexcoach_diet.api.serializers import serialize_pagination
from flexcoach_diet.domain.diet_plans import DietType, PlanQuery
from flexcoach_diet.domain.errors import FieldError, ValidationError
from flexcoach_diet.services.diet_plans import serialize_plan

if TYPE_CHECKING:
    from flexcoach_diet.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])

_SORT_FIELDS = {
    "createdAt": "created_at",
    "updatedAt": "updated_at",
    "name": "name",
    "totalDailyCalories": "total_daily_calories",
}


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/diet-plans", dependencies=[Depends(require_admin)])
async def list_diet_plans(  # noqa: PLR0913
    request: Request,
    page: int = 1,
    limit: int = 20,
    diet_type: str | None = Query(default=None, alias="dietType"),
    is_active: bool | None = Query(default=None, alias="isActive"),
    sort_by: str = Query(default="createdAt", alias="sortBy"),
    sort_order: str = Query(default="desc", alias="sortOrder"),
) -> dict[str, object]:
    """Return a page of plans across all owners."""
    container: AppContainer = request.app.state.container
    errors: list[FieldError] = []
    parsed_type = DietType.parse(diet_type) if diet_type else None
    if diet_type and parsed_type is None:
        errors.append(FieldError("dietType", "unknown diet type"))
    if sort_by not in _SORT_FIELDS:
        errors.append(FieldError("sortBy", f"must be one of {sorted(_SORT_FIELDS)}"))
    if errors:
        raise ValidationError.from_fields(errors)

    result = container.diet_plan_service.search(
        PlanQuery(
            page=page,
            limit=limit,
            diet_type=parsed_type,
            is_active=is_active,
            sort_by=_SORT_FIELDS[sort_by],
            descending=sort_order.lower() != "asc",
        )
    )
    return {
        "success": True,
        "dietPlans": [serialize_plan(plan) for plan in result.plans],
        "pagination": serialize_pagination(result.pagination),
    }


@router.delete(
    "/diet-plans/{plan_id}",
    dependencies=[Depends(require_admin)],
    status_code=status.HTTP_204_NO_CONTENT,
)
async def hard_delete_diet_plan(plan_id: UUID, request: Request) -> Response:
    """Remove a plan record permanently."""
    container: AppContainer = request.app.state.container
    container.diet_plan_service.hard_delete(plan_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
