"""Unit tests for pool and calendar table constraints."""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from seoplanner.models import CalendarAssignment, PoolKeyword
from seoplanner.models.keyword import normalize_keyword


def test_normalize_keyword_collapses_case_and_whitespace() -> None:
    assert normalize_keyword("  React   Hooks ") == "react hooks"
    assert normalize_keyword("   ") == ""


@pytest.mark.asyncio
async def test_pool_rejects_duplicate_normalized_keyword(session, seed_website) -> None:
    website = await seed_website(session, [("react hooks", 100, 10)])
    session.add(
        PoolKeyword(
            website_id=website.id,
            keyword="React Hooks",
            keyword_normalized=normalize_keyword("React Hooks"),
            seed_keyword="react",
            difficulty=10,
            score=100,
        )
    )

    with pytest.raises(IntegrityError):
        await session.flush()


@pytest.mark.asyncio
async def test_calendar_rejects_second_keyword_on_same_date(session, seed_website) -> None:
    website = await seed_website(session, [("a", 100, 10), ("b", 100, 10)])
    first, second = (await session.scalars(select(PoolKeyword.id))).all()
    for keyword_id in (first, second):
        session.add(
            CalendarAssignment(
                website_id=website.id,
                keyword_id=keyword_id,
                scheduled_date=date(2026, 1, 1),
                target_keyword="a",
                title="The Complete Guide to A",
            )
        )

    with pytest.raises(IntegrityError):
        await session.flush()


@pytest.mark.asyncio
async def test_calendar_rejects_reusing_a_keyword(session, seed_website) -> None:
    website = await seed_website(session, [("a", 100, 10)])
    keyword_id = (await session.scalars(select(PoolKeyword.id))).one()
    for day in (1, 2):
        session.add(
            CalendarAssignment(
                website_id=website.id,
                keyword_id=keyword_id,
                scheduled_date=date(2026, 1, day),
                target_keyword="a",
                title="The Complete Guide to A",
            )
        )

    with pytest.raises(IntegrityError):
        await session.flush()
