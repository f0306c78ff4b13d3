"""Food catalog lookup endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request

if TYPE_CHECKING:
    from flexcoach_diet.containers import AppContainer

router = APIRouter(prefix="/foods", tags=["foods"])


@router.get("/search")
async def search_foods(
    request: Request,
    q: str = Query(min_length=1),
    limit: int = Query(default=5, ge=1, le=25),
) -> dict[str, object]:
    """Search the external food catalog by name."""
    container: AppContainer = request.app.state.container
    foods = await container.catalog_service.search(q, limit=limit)
    return {
        "success": True,
        "foods": [
            {
                "fdcId": food.fdc_id,
                "description": food.description,
                "brandOwner": food.brand_owner,
                "dataType": food.data_type,
            }
            for food in foods
        ],
    }
