"""Shared fixtures: an on-disk SQLite database and pool seeding helpers."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from seoplanner.models import Base, PoolKeyword, Website
from seoplanner.models.keyword import normalize_keyword
from seoplanner.services.keyword_research import compute_keyword_score


@pytest_asyncio.fixture
async def session_maker(tmp_path: Path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'seoplanner.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(session_maker: async_sessionmaker[AsyncSession]) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as db_session:
        yield db_session


@pytest.fixture
def seed_website():
    """Insert a website and a pool of `(keyword, volume, difficulty)` rows."""

    async def _seed(
        db_session: AsyncSession,
        keywords: list[tuple[str, int, int]],
        *,
        name: str = "Example",
    ) -> Website:
        website = Website(name=name, url="https://example.com", target_audience="developers")
        db_session.add(website)
        await db_session.flush()
        for keyword, volume, difficulty in keywords:
            db_session.add(
                PoolKeyword(
                    website_id=website.id,
                    keyword=keyword,
                    keyword_normalized=normalize_keyword(keyword),
                    seed_keyword="seed",
                    search_volume=volume,
                    competition=0.2,
                    difficulty=difficulty,
                    score=compute_keyword_score(volume, difficulty),
                )
            )
        await db_session.commit()
        return website

    return _seed
