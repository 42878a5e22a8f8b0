"""Content plan triggers: onboarding, calendar extension, keyword swaps."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from seoplanner.config import Settings
from seoplanner.core.exceptions import ContentPlanNotFoundError, OnboardingAllocationError, WebsiteNotFoundError
from seoplanner.models.content_plan import GENERATION_ARTICLE_GENERATED, CalendarAssignment
from seoplanner.models.website import Website
from seoplanner.services.calendar_allocator import (
    AllocationConfig,
    AllocationResult,
    CalendarAllocator,
    KeywordChangeResult,
)
from seoplanner.services.keyword_pool import KeywordPoolService, PoolGenerationResult
from seoplanner.services.keyword_research import KeywordResearchEngine

logger = logging.getLogger(__name__)

REASON_CALENDAR_FULL = "calendar_full"
REASON_NO_UNUSED_KEYWORDS = "no_unused_keywords"


@dataclass(frozen=True)
class WebsiteProfile:
    name: str
    url: str
    description: str | None = None
    target_audience: str | None = None

    @property
    def audience(self) -> str:
        return self.target_audience or self.description or ""


@dataclass
class OnboardingResult:
    website_id: str
    pool: PoolGenerationResult
    allocation: AllocationResult


@dataclass
class CalendarExtension:
    """What `generate_more_days` found and did."""

    website_id: str
    open_dates: list[date]
    unused_keywords: int
    allocation: AllocationResult | None = None
    reason: str | None = None

    @property
    def created(self) -> int:
        return self.allocation.created if self.allocation else 0


class ContentPlanService:
    """Entry points the web layer calls to build and maintain a calendar."""

    def __init__(
        self,
        session: AsyncSession,
        research_engine: KeywordResearchEngine | None = None,
        allocation_config: AllocationConfig | None = None,
        *,
        initial_days: int = 7,
        horizon_days: int = 7,
        max_seed_keywords: int = 15,
        max_candidates: int = 200,
        rng: random.Random | None = None,
    ) -> None:
        self.session = session
        self.initial_days = initial_days
        self.horizon_days = horizon_days
        self._pool: KeywordPoolService | None = None
        if research_engine is not None:
            self._pool = KeywordPoolService(
                session,
                research_engine,
                max_seed_keywords=max_seed_keywords,
                max_candidates=max_candidates,
            )
        self.allocator = CalendarAllocator(session, allocation_config, rng=rng)

    @property
    def pool(self) -> KeywordPoolService:
        if self._pool is None:
            raise RuntimeError("ContentPlanService was created without a research engine")
        return self._pool

    @classmethod
    def from_settings(
        cls,
        session: AsyncSession,
        research_engine: KeywordResearchEngine | None,
        settings: Settings,
    ) -> ContentPlanService:
        return cls(
            session,
            research_engine,
            AllocationConfig.from_settings(settings),
            initial_days=settings.calendar_initial_days,
            horizon_days=settings.calendar_horizon_days,
            max_seed_keywords=settings.research_max_seed_keywords,
            max_candidates=settings.research_max_candidates,
        )

    async def onboard(
        self,
        profile: WebsiteProfile,
        seed_keywords: list[str],
        today: date,
    ) -> OnboardingResult:
        """Create the website, build its keyword pool and fill the first days.

        The website and pool are committed before allocation starts so an
        allocation retry never discards them. If the pool cannot be built the
        website row is rolled back as well. If allocation fails afterwards,
        `OnboardingAllocationError` carries the saved website id so the caller
        can extend the calendar rather than onboard a duplicate.
        """
        pool_service = self.pool
        website = Website(
            name=profile.name,
            url=profile.url,
            description=profile.description,
            target_audience=profile.target_audience,
            seed_keywords=list(seed_keywords),
        )
        self.session.add(website)
        try:
            await self.session.flush()
            pool = await pool_service.generate_pool(website.id, seed_keywords, profile.audience)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        website_id = website.id
        try:
            allocation = await self.allocator.assign(website_id, today, self.initial_days)
        except Exception as exc:
            logger.warning(
                "Initial calendar allocation failed; website and pool kept",
                extra={"website_id": website_id, "error": repr(exc)},
            )
            raise OnboardingAllocationError(website_id, exc) from exc

        logger.info(
            "Website onboarded",
            extra={
                "website_id": website_id,
                "keywords_created": pool.created,
                "days_allocated": allocation.created,
                "degraded": pool.degraded,
            },
        )
        return OnboardingResult(website_id=website_id, pool=pool, allocation=allocation)

    async def generate_more_days(self, website_id: str, today: date) -> CalendarExtension:
        """Fill any open dates in the `horizon_days` starting at `today`."""
        if await self.session.get(Website, website_id) is None:
            raise WebsiteNotFoundError(website_id)

        open_dates = await self.allocator.find_open_dates(website_id, today, self.horizon_days)
        unused = await self.allocator.count_unused(website_id)
        extension = CalendarExtension(website_id=website_id, open_dates=open_dates, unused_keywords=unused)

        if not open_dates:
            extension.reason = REASON_CALENDAR_FULL
        elif unused == 0:
            extension.reason = REASON_NO_UNUSED_KEYWORDS
            logger.warning(
                "Calendar has open dates but the keyword pool is exhausted",
                extra={"website_id": website_id, "open_dates": len(open_dates)},
            )
        else:
            extension.allocation = await self.allocator.assign(website_id, today, self.horizon_days)

        if extension.reason:
            logger.info(
                "Calendar extension skipped",
                extra={"website_id": website_id, "reason": extension.reason},
            )
        return extension

    async def change_keyword(self, content_plan_id: str) -> KeywordChangeResult:
        return await self.allocator.change_keyword(content_plan_id)

    async def record_article_generated(self, content_plan_id: str) -> CalendarAssignment:
        """Mark a planned assignment as having its article generated."""
        plan = await self.session.get(CalendarAssignment, content_plan_id)
        if plan is None:
            raise ContentPlanNotFoundError(content_plan_id)

        if plan.generation_state != GENERATION_ARTICLE_GENERATED:
            plan.generation_state = GENERATION_ARTICLE_GENERATED
            await self.session.commit()
            logger.info(
                "Article generation recorded",
                extra={"content_plan_id": content_plan_id, "website_id": plan.website_id},
            )
        return plan
