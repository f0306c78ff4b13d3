"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from flexcoach_diet.adapters.fdc_client import FdcClient
from flexcoach_diet.config import Settings
from flexcoach_diet.containers import AppContainer
from flexcoach_diet.domain.diet_plans import DietPlan, PlanQuery
from flexcoach_diet.domain.errors import ConflictError
from flexcoach_diet.services.audit import AuditRepository, AuditService
from flexcoach_diet.services.cache import InMemoryCache
from flexcoach_diet.services.catalog import FoodCatalogService
from flexcoach_diet.services.diet_plans import DietPlanRepository, DietPlanService
from flexcoach_diet.services.history import HistoryService, PlanHistoryRepository
from flexcoach_diet.services.stats import StatsService


@dataclass
class InMemoryDietPlanRepository(DietPlanRepository, PlanHistoryRepository):
    """In-memory diet plan repository that enforces unique active names."""

    plans: dict[UUID, DietPlan] = field(default_factory=dict)
    conflicts_to_inject: int = 0
    conflict_plan: DietPlan | None = None

    def get_plan(self, plan_id: UUID) -> DietPlan | None:
        return self.plans.get(plan_id)

    def find_active_by_name(self, owner_id: str, name: str) -> DietPlan | None:
        for plan in self.plans.values():
            if plan.is_active and plan.owner_id == owner_id and plan.name == name:
                return plan
        return None

    def create_plan(self, plan: DietPlan) -> DietPlan:
        if self.conflicts_to_inject:
            self.conflicts_to_inject -= 1
            if self.conflict_plan is not None:
                self.plans[self.conflict_plan.id] = self.conflict_plan
                self.conflict_plan = None
            raise ConflictError("An active diet plan with this name exists")
        if self.find_active_by_name(plan.owner_id, plan.name) is not None:
            raise ConflictError("An active diet plan with this name exists")
        self.plans[plan.id] = plan
        return plan

    def save_plan(self, plan: DietPlan) -> DietPlan | None:
        stored = self.plans.get(plan.id)
        if stored is None or not stored.is_active:
            return None
        holder = self.find_active_by_name(plan.owner_id, plan.name)
        if plan.is_active and holder is not None and holder.id != plan.id:
            raise ConflictError("An active diet plan with this name exists")
        self.plans[plan.id] = plan
        return plan

    def delete_plan(self, plan_id: UUID) -> bool:
        return self.plans.pop(plan_id, None) is not None

    def list_plans(
        self,
        owner_id: str,
        is_active: bool | None = True,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[DietPlan]:
        plans = [
            plan
            for plan in self.plans.values()
            if plan.owner_id == owner_id
            and (is_active is None or plan.is_active == is_active)
            and (start is None or plan.created_at >= start)
            and (end is None or plan.created_at <= end)
        ]
        return sorted(plans, key=lambda plan: plan.created_at, reverse=True)

    def search_plans(self, query: PlanQuery) -> tuple[list[DietPlan], int]:
        plans = [
            plan
            for plan in self.plans.values()
            if (query.diet_type is None or plan.diet_type == query.diet_type)
            and (query.is_active is None or plan.is_active == query.is_active)
        ]
        plans.sort(key=lambda plan: getattr(plan, query.sort_by), reverse=query.descending)
        offset = (query.page - 1) * query.limit
        return plans[offset : offset + query.limit], len(plans)


@dataclass
class InMemoryAuditRepository(AuditRepository):
    """In-memory audit repository for tests."""

    events: list[dict[str, object]] = field(default_factory=list)
    fail: bool = False

    def create_event(  # noqa: PLR0913
        self,
        actor_id: str,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> None:
        if self.fail:
            raise RuntimeError("audit store down")
        self.events.append(
            {
                "actor_id": actor_id,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "event_type": event_type,
                "before": before,
                "after": after,
            }
        )


@dataclass
class FakeFdcClient(FdcClient):
    """Fake FDC client with in-memory responses."""

    search_payload: dict[str, object] = field(
        default_factory=lambda: {
            "foods": [
                {
                    "fdcId": 171077,
                    "description": "Chicken, broilers or fryers, breast, meat only",
                    "dataType": "SR Legacy",
                },
                {
                    "fdcId": 123456,
                    "description": "Kirkland Signature Chicken Breast",
                    "brandOwner": "Costco",
                    "dataType": "Branded",
                },
            ]
        }
    )
    calls: int = 0

    async def search_foods(self, query: str, page_size: int = 10) -> dict[str, object]:
        self.calls += 1
        return self.search_payload


class StepClock:
    """Deterministic clock that advances one second per call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 15, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


def breakfast_payload(**overrides: object) -> dict[str, object]:
    """Return a minimal valid plan payload in service (snake_case) form."""
    payload: dict[str, object] = {
        "diet_type": "Weight Loss",
        "description": "Lean week",
        "meals": [
            {
                "name": "Meal 1",
                "time": "Breakfast",
                "foods": [{"food_name": "Oats", "quantity": "50 g", "calories": 190}],
                "total_calories": 400,
            }
        ],
    }
    payload.update(overrides)
    return payload


def stored_plan(plan: DietPlan, created_at: datetime) -> DietPlan:
    """Return a copy of ``plan`` stamped with a fixed creation time."""
    return replace(plan, created_at=created_at, updated_at=created_at)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        admin_token="admin-token",
        fdc_api_key="fdc-key",
    )


@pytest.fixture
def plan_repository() -> InMemoryDietPlanRepository:
    return InMemoryDietPlanRepository()


@pytest.fixture
def audit_repository() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def diet_plan_service(
    plan_repository: InMemoryDietPlanRepository,
    audit_repository: InMemoryAuditRepository,
) -> DietPlanService:
    return DietPlanService(
        repository=plan_repository,
        audit_service=AuditService(audit_repository),
        clock=StepClock(),
    )


@pytest.fixture
def container(
    settings: Settings,
    plan_repository: InMemoryDietPlanRepository,
    audit_repository: InMemoryAuditRepository,
    diet_plan_service: DietPlanService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        diet_plan_service=diet_plan_service,
        history_service=HistoryService(plan_repository),
        stats_service=StatsService(plan_repository),
        audit_service=diet_plan_service.audit_service,
        catalog_service=FoodCatalogService(
            fdc_client=FakeFdcClient(), cache=InMemoryCache()
        ),
        close_resources=close_resources,
    )
