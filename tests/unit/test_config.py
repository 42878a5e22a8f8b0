"""Unit tests for settings parsing and validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from seoplanner.config import Settings
from seoplanner.services.calendar_allocator import AllocationConfig
from seoplanner.services.keyword_research import ResearchConfig


def test_defaults_match_research_and_calendar_constants() -> None:
    settings = Settings(_env_file=None)

    research = ResearchConfig.from_settings(settings)
    allocation = AllocationConfig.from_settings(settings)

    assert research == ResearchConfig()
    assert allocation == AllocationConfig()
    assert settings.calendar_initial_days == 7
    assert settings.research_max_seed_keywords == 15


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("postgresql://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgres://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("postgresql+psycopg2://u:p@db/app", "postgresql+asyncpg://u:p@db/app"),
        ("sqlite+aiosqlite:///./local.db", "sqlite+aiosqlite:///./local.db"),
    ],
)
def test_database_url_is_normalized_for_async_driver(raw: str, expected: str) -> None:
    assert Settings(_env_file=None, database_url=raw).database_url == expected


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ('["https://a.example", "https://b.example"]', ["https://a.example", "https://b.example"]),
        ("https://a.example, https://b.example", ["https://a.example", "https://b.example"]),
        ("['https://a.example']", ["https://a.example"]),
        ("", []),
    ],
)
def test_cors_origins_accepts_several_formats(
    monkeypatch: pytest.MonkeyPatch,
    raw: str,
    expected: list[str],
) -> None:
    monkeypatch.setenv("CORS_ORIGINS", raw)

    assert Settings(_env_file=None).cors_origins == expected


def test_research_knobs_are_overridable_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("RESEARCH_DIFFICULTY_THRESHOLD", "50")
    monkeypatch.setenv("CALENDAR_SELECTION_WINDOW", "5")

    settings = Settings(_env_file=None)

    assert ResearchConfig.from_settings(settings).difficulty_threshold == 50
    assert AllocationConfig.from_settings(settings).selection_window == 5


@pytest.mark.parametrize(
    "overrides",
    [
        {"calendar_selection_window": 0},
        {"calendar_allocation_attempts": 0},
        {"research_difficulty_threshold": 150},
    ],
)
def test_invalid_knobs_are_rejected(overrides: dict[str, int]) -> None:
    with pytest.raises(ValidationError):
        Settings(_env_file=None, **overrides)


def test_get_model_prefers_environment_override() -> None:
    settings = Settings(_env_file=None, environment="production", prod_model_fast="openai:gpt-4.1-mini")

    assert settings.get_model("fast") == "openai:gpt-4.1-mini"


def test_dataforseo_configured_requires_both_credentials() -> None:
    assert Settings(_env_file=None, dataforseo_login="me", dataforseo_password="pw").dataforseo_configured
    assert not Settings(_env_file=None, dataforseo_login="me", dataforseo_password=None).dataforseo_configured


def test_get_llm_timeout_resolves_by_tier() -> None:
    settings = Settings(_env_file=None, llm_timeout_fast=12, llm_timeout_standard=90)

    assert settings.get_llm_timeout("fast") == 12
    assert settings.get_llm_timeout("standard") == 90
    assert settings.get_llm_timeout("unknown") == 90
