"""Content calendar allocation: pool keywords -> calendar dates.

Every keyword is used at most once per website and every date holds at most
one keyword. Both rules are unique constraints on `content_plan`; the
per-website allocation lock keeps concurrent runs from colliding in the
first place, and a collision that still happens rolls the batch back and
retries it against a fresh read of the pool.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import TypeVar

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from seoplanner.config import Settings
from seoplanner.core.db_kernel import PermanentDbError, translate_db_error
from seoplanner.core.exceptions import (
    ConcurrencyConflictError,
    ContentPlanNotFoundError,
    InvalidInputError,
    NoAvailableKeywordsError,
    NoUnusedKeywordsError,
)
from seoplanner.models.content_plan import GENERATION_PLANNED, CalendarAssignment
from seoplanner.models.keyword import CONSUMPTION_ASSIGNED, CONSUMPTION_UNUSED, PoolKeyword
from seoplanner.services.allocation_lock import website_allocation_lock

logger = logging.getLogger(__name__)

_ResultT = TypeVar("_ResultT")


def build_title(keyword: str) -> str:
    """Display title for a scheduled keyword."""
    cleaned = " ".join(keyword.split())
    if not cleaned:
        raise ValueError("keyword must not be empty")
    return f"The Complete Guide to {cleaned[0].upper()}{cleaned[1:]}"


@dataclass(frozen=True)
class AllocationConfig:
    """Tunables for calendar allocation."""

    # Picks are uniform over this many top-scoring unused keywords
    selection_window: int = 20
    max_attempts: int = 3

    @classmethod
    def from_settings(cls, settings: Settings) -> AllocationConfig:
        return cls(
            selection_window=settings.calendar_selection_window,
            max_attempts=settings.calendar_allocation_attempts,
        )


@dataclass
class AllocationResult:
    """Outcome of one `assign` call."""

    website_id: str
    requested_days: int
    created: int = 0
    scheduled_dates: list[date] = field(default_factory=list)
    assignment_ids: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return self.created < self.requested_days


@dataclass
class KeywordChangeResult:
    """Outcome of swapping the keyword on one calendar assignment."""

    content_plan_id: str
    scheduled_date: date
    title: str
    keyword_id: str
    keyword: str
    search_volume: int
    difficulty: int
    previous_keyword_id: str
    previous_keyword: str


class CalendarAllocator:
    """Assigns unused pool keywords to calendar dates for one session.

    Methods that write commit the session themselves, because the commit has
    to happen while the per-website allocation lock is held.
    """

    def __init__(
        self,
        session: AsyncSession,
        config: AllocationConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.session = session
        self.config = config or AllocationConfig()
        self._rng = rng or random.Random()

    async def assign(self, website_id: str, start_date: date, num_days: int) -> AllocationResult:
        """Fill the open dates in `[start_date, start_date + num_days)`.

        Dates that already hold an assignment are left alone, so calling this
        twice for the same window is a no-op the second time. When fewer
        unused keywords exist than open dates, only that many dates (the
        earliest ones) are filled.

        Raises:
            InvalidInputError: `num_days` < 1.
            NoAvailableKeywordsError: the pool has no unused keyword left.
            ConcurrencyConflictError: retries exhausted against concurrent writers.
        """
        if num_days < 1:
            raise InvalidInputError("num_days must be >= 1", details={"num_days": num_days})

        async def _attempt() -> AllocationResult:
            async with website_allocation_lock(self.session, website_id):
                result = await self._assign_once(website_id, start_date, num_days)
                await self.session.commit()
            return result

        result = await self._run_with_conflict_retry(
            _attempt,
            website_id=website_id,
            operation_name="calendar_assign",
        )

        logger.info(
            "Calendar allocation completed",
            extra={
                "website_id": website_id,
                "start_date": start_date.isoformat(),
                "requested_days": num_days,
                "created": result.created,
            },
        )
        return result

    async def change_keyword(self, content_plan_id: str) -> KeywordChangeResult:
        """Swap a calendar assignment's keyword for a random unused one.

        The replaced keyword goes back to `unused` in the same transaction,
        so the pool does not shrink on every change.

        Raises:
            ContentPlanNotFoundError: unknown `content_plan_id`.
            NoUnusedKeywordsError: every pool keyword is already scheduled.
        """
        plan = await self.session.get(CalendarAssignment, content_plan_id)
        if plan is None:
            raise ContentPlanNotFoundError(content_plan_id)
        website_id = plan.website_id

        async def _attempt() -> KeywordChangeResult:
            async with website_allocation_lock(self.session, website_id):
                result = await self._change_keyword_once(content_plan_id)
                await self.session.commit()
            return result

        result = await self._run_with_conflict_retry(
            _attempt,
            website_id=website_id,
            operation_name="calendar_change_keyword",
        )

        logger.info(
            "Calendar keyword changed",
            extra={
                "website_id": website_id,
                "content_plan_id": content_plan_id,
                "old_keyword": result.previous_keyword,
                "new_keyword": result.keyword,
            },
        )
        return result

    async def find_open_dates(self, website_id: str, start_date: date, num_days: int) -> list[date]:
        """Dates in `[start_date, start_date + num_days)` with no assignment."""
        if num_days < 1:
            return []
        end_date = start_date + timedelta(days=num_days - 1)
        taken = set(
            (
                await self.session.scalars(
                    select(CalendarAssignment.scheduled_date).where(
                        CalendarAssignment.website_id == website_id,
                        CalendarAssignment.scheduled_date >= start_date,
                        CalendarAssignment.scheduled_date <= end_date,
                    )
                )
            ).all()
        )
        return [
            day
            for day in (start_date + timedelta(days=offset) for offset in range(num_days))
            if day not in taken
        ]

    async def count_unused(self, website_id: str) -> int:
        """Pool keywords not referenced by any calendar assignment."""
        count = await self.session.scalar(
            select(func.count(PoolKeyword.id)).where(
                PoolKeyword.website_id == website_id,
                PoolKeyword.id.not_in(self._assigned_keyword_ids(website_id)),
            )
        )
        return int(count or 0)

    @staticmethod
    def _assigned_keyword_ids(website_id: str):
        return select(CalendarAssignment.keyword_id).where(
            CalendarAssignment.website_id == website_id,
        )

    async def _load_unused(self, website_id: str) -> list[PoolKeyword]:
        result = await self.session.scalars(
            select(PoolKeyword)
            .where(
                PoolKeyword.website_id == website_id,
                PoolKeyword.id.not_in(self._assigned_keyword_ids(website_id)),
            )
            .order_by(PoolKeyword.score.desc(), PoolKeyword.id)
        )
        return list(result.all())

    async def _assign_once(self, website_id: str, start_date: date, num_days: int) -> AllocationResult:
        remaining = await self._load_unused(website_id)
        if not remaining:
            raise NoAvailableKeywordsError(website_id)

        open_dates = await self.find_open_dates(website_id, start_date, num_days)
        effective_days = min(len(open_dates), len(remaining))
        if effective_days < len(open_dates):
            logger.warning(
                "Fewer unused keywords than open dates; allocating partially",
                extra={
                    "website_id": website_id,
                    "open_dates": len(open_dates),
                    "unused_keywords": len(remaining),
                },
            )

        result = AllocationResult(website_id=website_id, requested_days=num_days)
        assignments: list[CalendarAssignment] = []
        for scheduled_date in open_dates[:effective_days]:
            window = min(self.config.selection_window, len(remaining))
            keyword = remaining.pop(self._rng.randrange(window))
            keyword.consumption_state = CONSUMPTION_ASSIGNED
            assignment = CalendarAssignment(
                website_id=website_id,
                keyword_id=keyword.id,
                scheduled_date=scheduled_date,
                target_keyword=keyword.keyword,
                title=build_title(keyword.keyword),
                generation_state=GENERATION_PLANNED,
            )
            self.session.add(assignment)
            assignments.append(assignment)

        await self.session.flush()

        result.created = len(assignments)
        result.scheduled_dates = [assignment.scheduled_date for assignment in assignments]
        result.assignment_ids = [assignment.id for assignment in assignments]
        return result

    async def _change_keyword_once(self, content_plan_id: str) -> KeywordChangeResult:
        plan = await self.session.get(CalendarAssignment, content_plan_id, populate_existing=True)
        if plan is None:
            raise ContentPlanNotFoundError(content_plan_id)

        candidates = await self._load_unused(plan.website_id)
        if not candidates:
            raise NoUnusedKeywordsError(plan.website_id)

        new_keyword = self._rng.choice(candidates)
        previous_keyword = await self.session.get(PoolKeyword, plan.keyword_id)
        previous_text = plan.target_keyword
        previous_id = plan.keyword_id

        plan.keyword_id = new_keyword.id
        plan.target_keyword = new_keyword.keyword
        plan.title = build_title(new_keyword.keyword)
        new_keyword.consumption_state = CONSUMPTION_ASSIGNED
        if previous_keyword is not None:
            previous_keyword.consumption_state = CONSUMPTION_UNUSED

        await self.session.flush()

        return KeywordChangeResult(
            content_plan_id=plan.id,
            scheduled_date=plan.scheduled_date,
            title=plan.title,
            keyword_id=new_keyword.id,
            keyword=new_keyword.keyword,
            search_volume=new_keyword.search_volume,
            difficulty=new_keyword.difficulty,
            previous_keyword_id=previous_id,
            previous_keyword=previous_text,
        )

    async def _run_with_conflict_retry(
        self,
        operation: Callable[[], Awaitable[_ResultT]],
        *,
        website_id: str,
        operation_name: str,
    ) -> _ResultT:
        attempts = self.config.max_attempts
        for attempt in range(1, attempts + 1):
            try:
                return await operation()
            except SQLAlchemyError as exc:
                await self.session.rollback()
                translated = translate_db_error(exc)
                if isinstance(translated, PermanentDbError):
                    raise translated from exc
                logger.warning(
                    "Calendar write conflicted; re-reading pool and retrying",
                    extra={
                        "operation": operation_name,
                        "website_id": website_id,
                        "attempt": attempt,
                        "max_attempts": attempts,
                        "failure_class": type(translated).__name__,
                    },
                )
            except Exception:
                await self.session.rollback()
                raise

        raise ConcurrencyConflictError(website_id, attempts)
