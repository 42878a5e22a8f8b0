"""Unit tests for per-website allocation locking."""

from __future__ import annotations

import asyncio
from types import SimpleNamespace
from typing import Any

import pytest

from seoplanner.services.allocation_lock import advisory_lock_key, website_allocation_lock


class _FakeSession:
    def __init__(self, dialect: str) -> None:
        self._bind = SimpleNamespace(dialect=SimpleNamespace(name=dialect))
        self.statements: list[tuple[str, dict[str, Any]]] = []

    def get_bind(self) -> SimpleNamespace:
        return self._bind

    async def execute(self, statement: Any, params: dict[str, Any]) -> None:
        self.statements.append((str(statement), params))


def test_advisory_lock_key_is_stable_signed_64_bit() -> None:
    key = advisory_lock_key("site_1")

    assert key == advisory_lock_key("site_1")
    assert key != advisory_lock_key("site_2")
    assert -(2**63) <= key < 2**63


@pytest.mark.asyncio
async def test_postgres_uses_transaction_advisory_lock() -> None:
    session = _FakeSession("postgresql")

    async with website_allocation_lock(session, "site_1"):
        pass

    assert session.statements == [
        ("SELECT pg_advisory_xact_lock(:key)", {"key": advisory_lock_key("site_1")}),
    ]


@pytest.mark.asyncio
async def test_other_dialects_serialize_per_website() -> None:
    session = _FakeSession("sqlite")
    events: list[str] = []

    async def _worker(name: str, website_id: str) -> None:
        async with website_allocation_lock(session, website_id):
            events.append(f"{name}:enter")
            await asyncio.sleep(0.01)
            events.append(f"{name}:exit")

    await asyncio.gather(_worker("a", "site_1"), _worker("b", "site_1"))

    assert events in (
        ["a:enter", "a:exit", "b:enter", "b:exit"],
        ["b:enter", "b:exit", "a:enter", "a:exit"],
    )
    assert session.statements == []


@pytest.mark.asyncio
async def test_different_websites_do_not_block_each_other() -> None:
    session = _FakeSession("sqlite")
    events: list[str] = []

    async def _worker(website_id: str) -> None:
        async with website_allocation_lock(session, website_id):
            events.append(f"{website_id}:enter")
            await asyncio.sleep(0.01)
            events.append(f"{website_id}:exit")

    await asyncio.gather(_worker("site_1"), _worker("site_2"))

    assert events[:2] == ["site_1:enter", "site_2:enter"]
