"""Keyword pool persistence: research results -> `keywords` rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from seoplanner.core.exceptions import InvalidInputError, NoQualifyingKeywordsError
from seoplanner.models.content_plan import CalendarAssignment
from seoplanner.models.keyword import CONSUMPTION_ASSIGNED, CONSUMPTION_UNUSED, PoolKeyword, normalize_keyword
from seoplanner.services.keyword_research import KeywordResearchEngine

logger = logging.getLogger(__name__)


@dataclass
class PoolGenerationResult:
    """Summary of one pool generation run."""

    website_id: str
    created: int = 0
    skipped_existing: int = 0
    keywords_researched: int = 0
    expanded_seeds: list[str] = field(default_factory=list)
    degraded_seeds: list[str] = field(default_factory=list)
    difficulty_degraded: bool = False
    keyword_ids: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.degraded_seeds) or self.difficulty_degraded


class KeywordPoolService:
    """Fill and inspect a website's keyword pool.

    Writes are flushed, not committed; the caller owns the transaction.
    """

    def __init__(
        self,
        session: AsyncSession,
        engine: KeywordResearchEngine,
        *,
        max_seed_keywords: int = 15,
        max_candidates: int = 200,
    ) -> None:
        self.session = session
        self.engine = engine
        self.max_seed_keywords = max_seed_keywords
        self.max_candidates = max_candidates

    async def generate_pool(
        self,
        website_id: str,
        seed_keywords: list[str],
        audience: str,
        max_candidates: int | None = None,
    ) -> PoolGenerationResult:
        """Research `seed_keywords` and add the qualifying keywords as `unused`.

        Keywords already in the website's pool (compared case-insensitively)
        are skipped, so re-running with overlapping seeds only adds new rows.

        Raises:
            InvalidInputError: too few or too many seed keywords.
            NoQualifyingKeywordsError: nothing passed the difficulty filter.
        """
        seeds = self.engine.normalize_seeds(seed_keywords)
        if len(seeds) > self.max_seed_keywords:
            raise InvalidInputError(
                f"At most {self.max_seed_keywords} seed keywords are allowed",
                details={"seed_count": len(seeds)},
            )

        research = await self.engine.research(
            seeds,
            audience,
            max_candidates=max_candidates or self.max_candidates,
        )
        if not research.candidates:
            raise NoQualifyingKeywordsError(
                self.engine.config.difficulty_threshold,
                researched=research.keywords_researched,
            )

        existing = set(
            (
                await self.session.scalars(
                    select(PoolKeyword.keyword_normalized).where(PoolKeyword.website_id == website_id)
                )
            ).all()
        )

        result = PoolGenerationResult(
            website_id=website_id,
            keywords_researched=research.keywords_researched,
            expanded_seeds=research.expanded_seeds,
            degraded_seeds=research.degraded_seeds,
            difficulty_degraded=research.difficulty_degraded,
        )
        rows: list[PoolKeyword] = []
        for candidate in research.candidates:
            key = normalize_keyword(candidate.keyword)
            if key in existing:
                result.skipped_existing += 1
                continue
            existing.add(key)
            rows.append(
                PoolKeyword(
                    website_id=website_id,
                    keyword=candidate.keyword,
                    keyword_normalized=key,
                    seed_keyword=candidate.seed_keyword,
                    search_volume=candidate.search_volume,
                    competition=candidate.competition_ratio,
                    difficulty=candidate.difficulty,
                    score=candidate.score,
                    suggestion_source=candidate.suggestion_source,
                    difficulty_source=candidate.difficulty_source,
                    consumption_state=CONSUMPTION_UNUSED,
                )
            )

        self.session.add_all(rows)
        await self.session.flush()

        result.created = len(rows)
        result.keyword_ids = [row.id for row in rows]
        logger.info(
            "Keyword pool generated",
            extra={
                "website_id": website_id,
                "created": result.created,
                "skipped_existing": result.skipped_existing,
                "degraded": result.degraded,
            },
        )
        return result

    async def count_unused(self, website_id: str) -> int:
        """Pool keywords not referenced by any calendar assignment."""
        assigned = select(CalendarAssignment.keyword_id).where(CalendarAssignment.website_id == website_id)
        count = await self.session.scalar(
            select(func.count(PoolKeyword.id)).where(
                PoolKeyword.website_id == website_id,
                PoolKeyword.id.not_in(assigned),
            )
        )
        return int(count or 0)

    async def count_by_state(self, website_id: str) -> dict[str, int]:
        """Pool size per consumption state; both states are always present."""
        rows = await self.session.execute(
            select(PoolKeyword.consumption_state, func.count(PoolKeyword.id))
            .where(PoolKeyword.website_id == website_id)
            .group_by(PoolKeyword.consumption_state)
        )
        counts = {CONSUMPTION_UNUSED: 0, CONSUMPTION_ASSIGNED: 0}
        for state, count in rows.all():
            counts[state] = int(count)
        return counts
