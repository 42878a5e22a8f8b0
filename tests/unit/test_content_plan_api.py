"""Unit tests for the content plan API routes."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from seoplanner.api.dependencies import (
    get_calendar_service,
    get_content_plan_service,
    get_keyword_data_client,
    get_seed_expander,
)
from seoplanner.config import settings
from seoplanner.core.database import get_session
from seoplanner.core.exceptions import ConcurrencyConflictError, NoUnusedKeywordsError, OnboardingAllocationError
from seoplanner.main import create_app
from seoplanner.models import Base
from tests.unit.fakes import FakeKeywordClient, suggestion

API = settings.api_v1_prefix
SEEDS = ["react", "nextjs", "typescript"]


def _keyword_client() -> FakeKeywordClient:
    suggestions = {seed: [suggestion(f"{seed} topic {n}", 1000 + n * 10) for n in range(4)] for seed in SEEDS}
    difficulty = {row["keyword"]: 15 for rows in suggestions.values() for row in rows}
    difficulty.update({f"{seed} impossible": 95 for seed in ("rust", "go", "zig")})
    suggestions.update({seed: [suggestion(f"{seed} impossible", 4000)] for seed in ("rust", "go", "zig")})
    return FakeKeywordClient(suggestions, difficulty)


@pytest.fixture
def client(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[TestClient]:
    db_path = tmp_path / "api.db"
    sync_engine = create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    session_maker = async_sessionmaker(
        create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async def _get_session() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session
            await session.commit()

    async def _get_keyword_client() -> AsyncGenerator[FakeKeywordClient, None]:
        yield _keyword_client()

    monkeypatch.setattr(settings, "research_suggestion_delay_seconds", 0.0)
    app = create_app()
    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_keyword_data_client] = _get_keyword_client
    app.dependency_overrides[get_seed_expander] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def _onboard(client: TestClient, seeds: list[str] | None = None) -> dict:
    response = client.post(
        f"{API}/websites/onboarding",
        json={
            "name": "Dev Blog",
            "url": "https://dev.example.com",
            "target_audience": "developers",
            "seed_keywords": seeds or SEEDS,
            "start_date": "2026-05-04",
        },
    )
    return {"status": response.status_code, "body": response.json()}


def test_health_reports_status() -> None:
    response = TestClient(create_app()).get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_onboarding_creates_pool_and_calendar(client: TestClient) -> None:
    result = _onboard(client)

    assert result["status"] == 201
    body = result["body"]
    assert body["pool"]["created"] == 12
    assert body["pool"]["degraded"] is False
    assert body["allocation"]["created"] == 7
    assert body["allocation"]["scheduled_dates"][0] == "2026-05-04"
    assert len(body["allocation"]["assignment_ids"]) == 7


def test_onboarding_with_too_few_seeds_is_bad_request(client: TestClient) -> None:
    result = _onboard(client, ["react", "nextjs"])

    assert result["status"] == 400


def test_onboarding_without_qualifying_keywords_is_unprocessable(client: TestClient) -> None:
    result = _onboard(client, ["rust", "go", "zig"])

    assert result["status"] == 422
    assert result["body"]["detail"]["reason"] == "no_qualifying_keywords"


def test_extend_calendar_fills_new_dates(client: TestClient) -> None:
    website_id = _onboard(client)["body"]["website_id"]

    full = client.post(f"{API}/websites/{website_id}/calendar/extend", json={"start_date": "2026-05-04"})
    later = client.post(f"{API}/websites/{website_id}/calendar/extend", json={"start_date": "2026-05-08"})

    assert full.status_code == 200
    assert full.json()["reason"] == "calendar_full"
    assert later.status_code == 200
    assert later.json()["created"] == 4
    assert later.json()["allocation"]["scheduled_dates"] == ["2026-05-11", "2026-05-12", "2026-05-13", "2026-05-14"]


def test_extend_calendar_unknown_website_is_not_found(client: TestClient) -> None:
    response = client.post(f"{API}/websites/missing/calendar/extend")

    assert response.status_code == 404


def test_change_keyword_and_record_article(client: TestClient) -> None:
    onboarding = _onboard(client)["body"]
    plan_id = onboarding["allocation"]["assignment_ids"][0]

    changed = client.post(f"{API}/content-plan/{plan_id}/change-keyword")
    generated = client.post(f"{API}/content-plan/{plan_id}/article-generated")

    assert changed.status_code == 200
    payload = changed.json()
    assert payload["keyword_id"] != payload["previous_keyword_id"]
    assert payload["title"].startswith("The Complete Guide to ")
    assert payload["scheduled_date"] == "2026-05-04"
    assert generated.status_code == 200
    assert generated.json()["generation_state"] == "article_generated"
    assert generated.json()["keyword_id"] == payload["keyword_id"]


def test_change_keyword_unknown_plan_is_not_found(client: TestClient) -> None:
    response = client.post(f"{API}/content-plan/missing/change-keyword")

    assert response.status_code == 404


@pytest.mark.parametrize(
    "error",
    [NoUnusedKeywordsError("site_1"), ConcurrencyConflictError("site_1", 3)],
)
def test_change_keyword_conflicts_map_to_409(error: Exception) -> None:
    async def _change_keyword(content_plan_id: str) -> None:
        raise error

    app = create_app()
    app.dependency_overrides[get_calendar_service] = lambda: SimpleNamespace(change_keyword=_change_keyword)

    response = TestClient(app).post(f"{API}/content-plan/plan_1/change-keyword")

    assert response.status_code == 409
    assert response.json()["detail"]["website_id"] == "site_1"


def test_onboarding_allocation_failure_returns_saved_website_id() -> None:
    async def _onboard_service(profile, seed_keywords, today) -> None:
        raise OnboardingAllocationError("site_1", ConcurrencyConflictError("site_1", 3))

    app = create_app()
    app.dependency_overrides[get_content_plan_service] = lambda: SimpleNamespace(onboard=_onboard_service)

    response = TestClient(app).post(
        f"{API}/websites/onboarding",
        json={"name": "Dev Blog", "url": "https://dev.example.com", "seed_keywords": SEEDS},
    )

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail["website_id"] == "site_1"
    assert detail["reason"] == "allocation_failed"
