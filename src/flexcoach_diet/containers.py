"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from flexcoach_diet.adapters.fdc_client import HttpxFdcClient
from flexcoach_diet.adapters.supabase_audit_repository import SupabaseAuditRepository
from flexcoach_diet.adapters.supabase_diet_plan_repository import (
    SupabaseDietPlanRepository,
)
from flexcoach_diet.config import Settings
from flexcoach_diet.services.audit import AuditService
from flexcoach_diet.services.cache import InMemoryCache
from flexcoach_diet.services.catalog import FoodCatalogService
from flexcoach_diet.services.diet_plans import DietPlanService
from flexcoach_diet.services.history import HistoryService
from flexcoach_diet.services.stats import StatsService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    diet_plan_service: DietPlanService
    history_service: HistoryService
    stats_service: StatsService
    audit_service: AuditService
    catalog_service: FoodCatalogService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    diet_plan_repository = SupabaseDietPlanRepository(supabase_client)
    audit_service = AuditService(SupabaseAuditRepository(supabase_client))
    diet_plan_service = DietPlanService(
        repository=diet_plan_repository,
        audit_service=audit_service,
        max_upsert_attempts=resolved_settings.upsert_max_attempts,
    )
    history_service = HistoryService(
        repository=diet_plan_repository,
        max_page_size=resolved_settings.history_max_page_size,
    )
    stats_service = StatsService(diet_plan_repository)
    fdc_client = (
        HttpxFdcClient.create(
            api_key=resolved_settings.fdc_api_key,
            base_url=resolved_settings.fdc_base_url,
        )
        if resolved_settings.fdc_api_key
        else None
    )
    catalog_service = FoodCatalogService(fdc_client=fdc_client, cache=InMemoryCache())

    async def close_resources() -> None:
        if fdc_client is not None:
            await fdc_client.close()

    return AppContainer(
        settings=resolved_settings,
        diet_plan_service=diet_plan_service,
        history_service=history_service,
        stats_service=stats_service,
        audit_service=audit_service,
        catalog_service=catalog_service,
        close_resources=close_resources,
    )
