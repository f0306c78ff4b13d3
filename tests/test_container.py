"""Tests for container wiring."""

import asyncio

from flexcoach_diet.config import Settings
from flexcoach_diet.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert container.diet_plan_service is not None
    assert container.history_service.max_page_size == settings.history_max_page_size
    assert container.catalog_service.enabled is True
    asyncio.run(container.close_resources())


def test_build_container_without_catalog_key(settings: Settings) -> None:
    container = build_container(settings.model_copy(update={"fdc_api_key": None}))

    assert container.catalog_service.enabled is False
    asyncio.run(container.close_resources())
