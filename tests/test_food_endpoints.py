"""Tests for food catalog endpoints."""

from dataclasses import replace

from fastapi.testclient import TestClient

from flexcoach_diet.api.app import create_app
from flexcoach_diet.containers import AppContainer
from flexcoach_diet.services.cache import InMemoryCache
from flexcoach_diet.services.catalog import FoodCatalogService


def test_food_search_returns_catalog_hits(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/foods/search", params={"q": "chicken", "limit": 2})

    assert response.status_code == 200
    foods = response.json()["foods"]
    assert foods[1] == {
        "fdcId": 123456,
        "description": "Kirkland Signature Chicken Breast",
        "brandOwner": "Costco",
        "dataType": "Branded",
    }


def test_food_search_unavailable_without_catalog(container: AppContainer) -> None:
    container = replace(
        container,
        catalog_service=FoodCatalogService(fdc_client=None, cache=InMemoryCache()),
    )
    client = TestClient(create_app(container))

    response = client.get("/foods/search", params={"q": "chicken"})

    assert response.status_code == 503
    assert response.json()["code"] == "SERVICE_UNAVAILABLE"


def test_food_search_requires_query(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/foods/search")

    assert response.status_code == 400
