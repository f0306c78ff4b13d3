"""Food catalog lookups against USDA FoodData Central."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import httpx

from flexcoach_diet.adapters.fdc_client import FdcClient
from flexcoach_diet.domain.catalog import FoodSummary
from flexcoach_diet.domain.errors import CatalogUnavailableError
from flexcoach_diet.services.cache import Cache

_logger = logging.getLogger(__name__)


@dataclass
class FoodCatalogService:
    """Cached, fail-soft catalog search.

    The catalog is an optional collaborator: with no client configured every
    lookup raises ``CatalogUnavailableError`` and nothing else is affected.
    """

    fdc_client: FdcClient | None
    cache: Cache
    search_ttl_seconds: int = 3600
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.3

    @property
    def enabled(self) -> bool:
        """Return True when a catalog client is configured."""
        return self.fdc_client is not None

    async def search(self, query: str, limit: int = 5) -> list[FoodSummary]:
        """Search catalog foods with caching."""
        client = self.fdc_client
        if client is None:
            raise CatalogUnavailableError("Food catalog is not configured")
        cache_key = f"fdc:search:{query.strip().lower()}:{limit}"
        cached = self.cache.get(cache_key)
        if isinstance(cached, list):
            return cached

        payload = await self._call_with_retry(
            lambda: client.search_foods(query, page_size=limit)
        )
        foods = [
            FoodSummary(
                fdc_id=int(food["fdcId"]),
                description=str(food.get("description", "")),
                brand_owner=food.get("brandOwner"),
                data_type=food.get("dataType"),
            )
            for food in payload.get("foods", [])
            if isinstance(food, dict) and "fdcId" in food
        ]
        self.cache.set(cache_key, foods, ttl_seconds=self.search_ttl_seconds)
        return foods

    async def _call_with_retry(
        self, func: Callable[[], Awaitable[dict[str, object]]]
    ) -> dict[str, object]:
        attempt = 0
        while True:
            try:
                return await func()
            except httpx.HTTPError as exc:
                attempt += 1
                _logger.warning(
                    "Catalog search failed (attempt %s/%s): %s",
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                if attempt > self.retry_attempts:
                    raise CatalogUnavailableError(
                        "Food catalog is temporarily unavailable"
                    ) from exc
                await asyncio.sleep(self.retry_delay_seconds)
