"""Tests for diet history endpoints."""

from datetime import UTC, datetime, timedelta

from fastapi.testclient import TestClient

from flexcoach_diet.api.app import create_app
from flexcoach_diet.containers import AppContainer
from tests.conftest import InMemoryDietPlanRepository, breakfast_payload, stored_plan


def _seed(container: AppContainer, stamps: list[datetime]) -> list[str]:
    repository = container.history_service.repository
    assert isinstance(repository, InMemoryDietPlanRepository)
    ids = []
    for index, stamp in enumerate(stamps):
        plan = container.diet_plan_service.upsert(
            "u1", f"Plan {index}", breakfast_payload()
        ).plan
        repository.plans[plan.id] = stored_plan(plan, stamp)
        ids.append(str(plan.id))
    return ids


def test_history_groups_by_day(container: AppContainer) -> None:
    base = datetime(2024, 3, 10, 12, tzinfo=UTC)
    _seed(container, [base, base + timedelta(days=1), base + timedelta(days=2)])
    client = TestClient(create_app(container))

    response = client.get("/diet-history/user/u1", params={"groupBy": "day"})

    assert response.status_code == 200
    data = response.json()
    assert [bucket["bucketKey"] for bucket in data["history"]] == [
        "2024-03-12",
        "2024-03-11",
        "2024-03-10",
    ]
    bucket = data["history"][0]
    assert bucket["groupType"] == "day"
    assert bucket["totalPlans"] == 1
    assert bucket["totalCalories"] == 400
    assert bucket["plans"][0]["mealSummaries"][0] == {
        "time": "Breakfast",
        "name": "Meal 1",
        "details": "Oats 50 g",
        "totalCalories": 400,
    }
    assert data["pagination"] == {
        "currentPage": 1,
        "totalPages": 1,
        "totalItems": 3,
        "itemsPerPage": 50,
    }
    assert data["summary"]["totalBuckets"] == 3
    assert data["summary"]["dateRange"]["from"] == base.isoformat()


def test_history_accepts_date_alias_and_range(container: AppContainer) -> None:
    base = datetime(2024, 3, 10, 12, tzinfo=UTC)
    _seed(container, [base, base + timedelta(days=1), base + timedelta(days=2)])
    client = TestClient(create_app(container))

    response = client.get(
        "/diet-history/user/u1",
        params={
            "groupBy": "date",
            "startDate": "2024-03-11T00:00:00",
            "endDate": "2024-03-11T23:59:59Z",
        },
    )

    assert [bucket["bucketKey"] for bucket in response.json()["history"]] == [
        "2024-03-11"
    ]


def test_history_rejects_unknown_grouping(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/diet-history/user/u1", params={"groupBy": "year"})

    assert response.status_code == 400
    assert response.json()["details"][0]["field"] == "groupBy"


def test_history_rejects_page_zero(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    response = client.get("/diet-history/user/u1", params={"page": 0})

    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_FAILED"


def test_history_for_unknown_owner_is_empty(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    data = client.get("/diet-history/user/nobody").json()

    assert data["history"] == []
    assert data["pagination"]["totalItems"] == 0
    assert data["summary"]["dateRange"] == {"from": None, "to": None}


def test_stats_endpoint(container: AppContainer) -> None:
    now = datetime.now(tz=UTC)
    _seed(container, [now - timedelta(days=1), now - timedelta(days=2)])
    client = TestClient(create_app(container))

    response = client.get("/diet-history/stats/u1", params={"period": 7})

    data = response.json()
    assert response.status_code == 200
    assert data["stats"]["totalPlans"] == 2
    assert data["stats"]["totalDays"] == 2
    assert data["stats"]["averageCaloriesPerDay"] == 400
    assert data["stats"]["dietTypeBreakdown"] == {"Weight Loss": 2}
    assert data["period"]["days"] == 7


def test_stats_for_empty_owner(container: AppContainer) -> None:
    client = TestClient(create_app(container))

    stats = client.get("/diet-history/stats/nobody").json()["stats"]

    assert stats["totalPlans"] == 0
    assert stats["mostActiveBucketKey"] is None


def test_remove_from_history(container: AppContainer) -> None:
    plan_id = _seed(container, [datetime(2024, 3, 10, 12, tzinfo=UTC)])[0]
    client = TestClient(create_app(container))

    wrong_owner = client.delete(f"/diet-history/{plan_id}", params={"userId": "u2"})
    removed = client.delete(f"/diet-history/{plan_id}", params={"userId": "u1"})

    assert wrong_owner.status_code == 404
    assert removed.status_code == 200
    assert removed.json()["dietPlan"] == {
        "id": plan_id,
        "name": "Plan 0",
        "isActive": False,
    }
    assert client.get("/diet-history/user/u1").json()["history"] == []


def test_three_recent_days_give_three_single_plan_buckets(
    container: AppContainer,
) -> None:
    now = datetime.now(tz=UTC)
    _seed(container, [now - timedelta(days=offset) for offset in (1, 3, 5)])
    client = TestClient(create_app(container))

    response = client.get(
        "/diet-history/user/u1", params={"groupBy": "day", "page": 1, "limit": 10}
    )

    history = response.json()["history"]
    assert len(history) == 3
    assert [bucket["totalPlans"] for bucket in history] == [1, 1, 1]
    keys = [bucket["bucketKey"] for bucket in history]
    assert keys == sorted(keys, reverse=True)
