"""Diet plan endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID  # noqa: TC003

from fastapi import APIRouter, Depends, Header, Query, Request, Response, status

from flexcoach_diet.api.models import DietPlanIn, DietPlanUpdateIn
from flexcoach_diet.services.diet_plans import serialize_plan

if TYPE_CHECKING:
    from flexcoach_diet.containers import AppContainer

router = APIRouter(prefix="/diet-plans", tags=["diet-plans"])


def caller_owner_id(x_user_id: str | None = Header(default=None)) -> str | None:
    """Owner id forwarded by the auth gateway; absent for trusted backends."""
    return x_user_id or None


@router.post("")
async def upsert_diet_plan(
    body: DietPlanIn, request: Request, response: Response
) -> dict[str, object]:
    """Create a plan, or replace the owner's active plan with the same name."""
    container: AppContainer = request.app.state.container
    result = container.diet_plan_service.upsert(
        owner_id=body.owner_id or "",
        name=body.name or "",
        payload=body.to_payload(),
    )
    response.status_code = (
        status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    )
    return {
        "success": True,
        "message": (
            "Diet plan created successfully"
            if result.created
            else "Diet plan updated successfully"
        ),
        "dietPlan": serialize_plan(result.plan),
    }


@router.get("/user/{owner_id}")
async def list_user_diet_plans(
    owner_id: str,
    request: Request,
    is_active: bool = Query(default=True, alias="isActive"),
) -> dict[str, object]:
    """Return an owner's plans, newest first."""
    container: AppContainer = request.app.state.container
    plans = container.diet_plan_service.list_plans(owner_id, is_active=is_active)
    return {"success": True, "dietPlans": [serialize_plan(plan) for plan in plans]}


@router.get("/{plan_id}")
async def get_diet_plan(plan_id: UUID, request: Request) -> dict[str, object]:
    """Return a single plan."""
    container: AppContainer = request.app.state.container
    plan = container.diet_plan_service.get_plan(plan_id)
    return {"success": True, "dietPlan": serialize_plan(plan)}


@router.put("/{plan_id}")
async def update_diet_plan(
    plan_id: UUID,
    body: DietPlanUpdateIn,
    request: Request,
    owner_id: str | None = Depends(caller_owner_id),
) -> dict[str, object]:
    """Apply a partial update to an active plan."""
    container: AppContainer = request.app.state.container
    plan = container.diet_plan_service.update(
        plan_id, body.to_payload(), owner_id=owner_id
    )
    return {
        "success": True,
        "message": "Diet plan updated successfully",
        "dietPlan": serialize_plan(plan),
    }


@router.delete("/{plan_id}", status_code=status.HTTP_204_NO_CONTENT)
async def deactivate_diet_plan(
    plan_id: UUID,
    request: Request,
    owner_id: str | None = Depends(caller_owner_id),
) -> Response:
    """Soft-delete a plan."""
    container: AppContainer = request.app.state.container
    container.diet_plan_service.deactivate(plan_id, owner_id=owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
