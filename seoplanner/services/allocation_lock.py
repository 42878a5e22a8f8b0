"""Per-website serialization for calendar allocation."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import weakref
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_local_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def advisory_lock_key(website_id: str) -> int:
    """Stable signed 64-bit key for `pg_advisory_xact_lock`."""
    digest = hashlib.blake2b(
        f"calendar-allocation:{website_id}".encode("utf-8"),
        digest_size=8,
    ).digest()
    return int.from_bytes(digest, "big", signed=True)


def _local_lock(website_id: str) -> asyncio.Lock:
    lock = _local_locks.get(website_id)
    if lock is None:
        lock = asyncio.Lock()
        _local_locks[website_id] = lock
    return lock


@asynccontextmanager
async def website_allocation_lock(session: AsyncSession, website_id: str) -> AsyncIterator[None]:
    """Hold the allocation lock for `website_id` until the block exits.

    On Postgres this takes a transaction-scoped advisory lock, released by the
    commit/rollback that ends the caller's transaction, so the caller must
    finish its transaction inside the block. Other dialects fall back to an
    in-process lock.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        await session.execute(
            text("SELECT pg_advisory_xact_lock(:key)"),
            {"key": advisory_lock_key(website_id)},
        )
        yield
        return

    lock = _local_lock(website_id)
    if lock.locked():
        logger.debug("Waiting for calendar allocation lock", extra={"website_id": website_id})
    async with lock:
        yield
