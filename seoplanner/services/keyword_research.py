"""Keyword research: seed keywords -> scored, difficulty-filtered candidates.

Pipeline:
1. Validate seeds and, for small seed sets, ask the seed expander for 2-3 more
2. Fetch suggestions per seed (sequential, rate-limit delay between calls)
3. Normalize, dedupe case-insensitively, keep the top `max_candidates` by volume
4. Enrich with bulk keyword difficulty
5. Score, drop anything at/above the difficulty threshold, rank by score

External failures never abort the pipeline. A failed suggestion call is
replaced with template suggestions for that seed, a failed difficulty call
with synthesized values, and the result carries flags saying so.
"""

from __future__ import annotations

import asyncio
import logging
import math
import random
import time
import zlib
from dataclasses import dataclass, field
from typing import Any, Protocol

from seoplanner.config import Settings
from seoplanner.core.exceptions import InvalidInputError
from seoplanner.models.keyword import normalize_keyword
from seoplanner.services.seed_expansion import SeedExpander

logger = logging.getLogger(__name__)

SOURCE_DATAFORSEO = "dataforseo"
SOURCE_TEMPLATE = "template"
SOURCE_SYNTHESIZED = "synthesized"
SOURCE_DEFAULT = "default"

# Difficulty assumed for keywords the difficulty service had no value for
MISSING_DIFFICULTY = 50
SYNTHESIZED_DIFFICULTY_RANGE = (15, 84)
TEMPLATE_VOLUME_RANGE = (500, 10_499)
TEMPLATE_MAX_COMPETITION = 0.8

REASON_NO_QUALIFYING_KEYWORDS = "no_qualifying_keywords"

SUGGESTION_TEMPLATES = (
    "{seed} tutorial",
    "{seed} guide",
    "{seed} examples",
    "best {seed}",
    "{seed} tips",
    "{seed} for beginners",
    "{seed} vs",
    "{seed} course",
    "{seed} development",
    "{seed} framework",
    "{seed} library",
    "{seed} documentation",
    "{seed} features",
    "{seed} performance",
    "{seed} testing",
)


class KeywordDataClient(Protocol):
    """Keyword suggestion + bulk difficulty provider (DataForSEO in production)."""

    async def get_keyword_suggestions(
        self,
        seed: str,
        location_code: int = ...,
        language_code: str = ...,
        limit: int = ...,
    ) -> list[dict[str, Any]]: ...

    async def get_bulk_keyword_difficulty(
        self,
        keywords: list[str],
        location_code: int = ...,
        language_code: str = ...,
    ) -> list[dict[str, Any]]: ...


def compute_keyword_score(search_volume: int, difficulty: int) -> int:
    """Reward volume and ease equally; volume contributes at most 100 points."""
    volume_score = min(search_volume / 50, 100)
    difficulty_score = max(100 - difficulty, 0)
    # Half-up rounding, not banker's rounding
    return math.floor(volume_score + difficulty_score + 0.5)


@dataclass(frozen=True)
class ResearchConfig:
    """Tunables for a research run. Defaults match production behaviour."""

    min_seed_keywords: int = 3
    expansion_threshold: int = 5
    max_suggestions_per_seed: int = 100
    suggestion_delay_seconds: float = 0.2
    difficulty_threshold: int = 35
    call_timeout_seconds: float = 30.0
    location_code: int = 2840
    language_code: str = "en"

    @classmethod
    def from_settings(cls, settings: Settings) -> ResearchConfig:
        return cls(
            min_seed_keywords=settings.research_min_seed_keywords,
            expansion_threshold=settings.research_expansion_threshold,
            max_suggestions_per_seed=settings.research_max_suggestions_per_seed,
            suggestion_delay_seconds=settings.research_suggestion_delay_seconds,
            difficulty_threshold=settings.research_difficulty_threshold,
            call_timeout_seconds=settings.research_call_timeout_seconds,
            location_code=settings.dataforseo_location_code,
            language_code=settings.dataforseo_language_code,
        )


@dataclass(frozen=True)
class KeywordSuggestion:
    """One suggestion row, tagged with the seed that produced it."""

    keyword: str
    search_volume: int
    competition_ratio: float
    competition_level: str
    seed_keyword: str
    source: str = SOURCE_DATAFORSEO


@dataclass(frozen=True)
class KeywordCandidate:
    """A researched keyword; `score` is derived from volume and difficulty."""

    keyword: str
    search_volume: int
    competition_ratio: float
    difficulty: int
    seed_keyword: str
    suggestion_source: str = SOURCE_DATAFORSEO
    difficulty_source: str = SOURCE_DATAFORSEO

    @property
    def score(self) -> int:
        return compute_keyword_score(self.search_volume, self.difficulty)


@dataclass
class ResearchResult:
    """Ranked candidates plus what was degraded along the way."""

    candidates: list[KeywordCandidate]
    expanded_seeds: list[str]
    keywords_researched: int = 0
    degraded_seeds: list[str] = field(default_factory=list)
    difficulty_degraded: bool = False
    reason: str | None = None

    @property
    def suggestions_degraded(self) -> bool:
        return bool(self.degraded_seeds)

    @property
    def degraded(self) -> bool:
        return self.suggestions_degraded or self.difficulty_degraded


def build_template_suggestions(seed: str, limit: int) -> list[KeywordSuggestion]:
    """Fallback suggestions for one seed.

    Keyword text comes from fixed templates; metrics come from a generator
    seeded by the seed text, so the same seed always yields the same rows.
    """
    rng = random.Random(zlib.crc32(normalize_keyword(seed).encode("utf-8")))
    rows: list[KeywordSuggestion] = []
    for template in SUGGESTION_TEMPLATES[: max(limit, 0)]:
        rows.append(
            KeywordSuggestion(
                keyword=template.format(seed=seed),
                search_volume=rng.randint(*TEMPLATE_VOLUME_RANGE),
                competition_ratio=round(rng.random() * TEMPLATE_MAX_COMPETITION, 4),
                competition_level="MEDIUM" if rng.random() > 0.5 else "LOW",
                seed_keyword=seed,
                source=SOURCE_TEMPLATE,
            )
        )
    return rows


def dedupe_suggestions(
    suggestions: list[KeywordSuggestion],
    max_candidates: int,
) -> list[KeywordSuggestion]:
    """Trim, drop empties, keep the first of case-insensitive duplicates,
    then keep the `max_candidates` highest-volume rows (stable order)."""
    seen: set[str] = set()
    unique: list[KeywordSuggestion] = []
    for suggestion in suggestions:
        keyword = suggestion.keyword.strip()
        key = normalize_keyword(keyword)
        if not key or key in seen:
            continue
        seen.add(key)
        if keyword != suggestion.keyword:
            suggestion = KeywordSuggestion(
                keyword=keyword,
                search_volume=suggestion.search_volume,
                competition_ratio=suggestion.competition_ratio,
                competition_level=suggestion.competition_level,
                seed_keyword=suggestion.seed_keyword,
                source=suggestion.source,
            )
        unique.append(suggestion)

    unique.sort(key=lambda s: s.search_volume, reverse=True)
    return unique[:max_candidates]


def _coerce_int(value: Any, *, low: int, high: int | None = None) -> int:
    try:
        number = int(round(float(value)))
    except (TypeError, ValueError):
        number = low
    number = max(number, low)
    if high is not None:
        number = min(number, high)
    return number


def _coerce_ratio(value: Any) -> float:
    try:
        ratio = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(ratio):
        return 0.0
    return min(max(ratio, 0.0), 1.0)


class KeywordResearchEngine:
    """Turn a handful of seed keywords into a ranked candidate list.

    The engine holds no persistent state; persistence is the caller's job.
    """

    def __init__(
        self,
        client: KeywordDataClient,
        seed_expander: SeedExpander | None = None,
        config: ResearchConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.client = client
        self.seed_expander = seed_expander
        self.config = config or ResearchConfig()
        self._rng = rng or random.Random()

    def normalize_seeds(self, seed_keywords: list[str]) -> list[str]:
        """Trim, drop empties and case-insensitive repeats; enforce the minimum."""
        seeds: list[str] = []
        seen: set[str] = set()
        for raw in seed_keywords:
            if not isinstance(raw, str):
                continue
            seed = raw.strip()
            key = normalize_keyword(seed)
            if not key or key in seen:
                continue
            seen.add(key)
            seeds.append(seed)

        if len(seeds) < self.config.min_seed_keywords:
            raise InvalidInputError(
                f"Need at least {self.config.min_seed_keywords} seed keywords for proper research",
                details={"seed_count": len(seeds)},
            )
        return seeds

    async def research(
        self,
        seed_keywords: list[str],
        audience_description: str,
        max_candidates: int = 200,
    ) -> ResearchResult:
        """Run the full research pipeline.

        Raises:
            InvalidInputError: fewer than `min_seed_keywords` usable seeds, or
                `max_candidates` < 1. No external call is made in that case.
        """
        seeds = self.normalize_seeds(seed_keywords)
        if max_candidates < 1:
            raise InvalidInputError("max_candidates must be >= 1")

        started = time.perf_counter()
        logger.info(
            "Keyword research started",
            extra={"seeds": seeds, "max_candidates": max_candidates},
        )

        expanded_seeds = seeds
        if len(seeds) < self.config.expansion_threshold and self.seed_expander is not None:
            expanded_seeds = await self.seed_expander.expand(seeds, audience_description)

        per_seed_limit = min(
            self.config.max_suggestions_per_seed,
            math.ceil(max_candidates / len(expanded_seeds)),
        )
        suggestions, degraded_seeds = await self._fetch_suggestions(expanded_seeds, per_seed_limit)
        unique = dedupe_suggestions(suggestions, max_candidates)

        difficulty_by_keyword, difficulty_degraded = await self._fetch_difficulty(
            [suggestion.keyword for suggestion in unique]
        )

        candidates: list[KeywordCandidate] = []
        missing = 0
        for suggestion in unique:
            key = normalize_keyword(suggestion.keyword)
            if key in difficulty_by_keyword:
                difficulty = difficulty_by_keyword[key]
                difficulty_source = SOURCE_SYNTHESIZED if difficulty_degraded else SOURCE_DATAFORSEO
            else:
                missing += 1
                difficulty = MISSING_DIFFICULTY
                difficulty_source = SOURCE_DEFAULT
            candidates.append(
                KeywordCandidate(
                    keyword=suggestion.keyword,
                    search_volume=suggestion.search_volume,
                    competition_ratio=suggestion.competition_ratio,
                    difficulty=difficulty,
                    seed_keyword=suggestion.seed_keyword,
                    suggestion_source=suggestion.source,
                    difficulty_source=difficulty_source,
                )
            )

        threshold = self.config.difficulty_threshold
        qualifying = [candidate for candidate in candidates if candidate.difficulty < threshold]
        # sorted() is stable, so equal scores keep their volume order
        ranked = sorted(qualifying, key=lambda candidate: candidate.score, reverse=True)

        result = ResearchResult(
            candidates=ranked,
            expanded_seeds=expanded_seeds,
            keywords_researched=len(unique),
            degraded_seeds=degraded_seeds,
            difficulty_degraded=difficulty_degraded,
            reason=None if ranked else REASON_NO_QUALIFYING_KEYWORDS,
        )

        log_extra = {
            "keywords_researched": len(unique),
            "keywords_qualifying": len(ranked),
            "difficulty_missing": missing,
            "difficulty_threshold": threshold,
            "degraded": result.degraded,
            "degraded_seeds": degraded_seeds,
            "difficulty_degraded": difficulty_degraded,
            "duration_s": round(time.perf_counter() - started, 2),
        }
        if ranked:
            logger.info("Keyword research completed", extra=log_extra)
        else:
            logger.warning("Keyword research found no qualifying keywords", extra=log_extra)
        return result

    async def _fetch_suggestions(
        self,
        seeds: list[str],
        per_seed_limit: int,
    ) -> tuple[list[KeywordSuggestion], list[str]]:
        suggestions: list[KeywordSuggestion] = []
        degraded_seeds: list[str] = []

        for index, seed in enumerate(seeds):
            if index > 0 and self.config.suggestion_delay_seconds > 0:
                await asyncio.sleep(self.config.suggestion_delay_seconds)

            try:
                rows = await asyncio.wait_for(
                    self.client.get_keyword_suggestions(
                        seed=seed,
                        location_code=self.config.location_code,
                        language_code=self.config.language_code,
                        limit=per_seed_limit,
                    ),
                    timeout=self.config.call_timeout_seconds,
                )
                seed_suggestions: list[KeywordSuggestion] = []
                for row in rows[:per_seed_limit]:
                    keyword = row.get("keyword")
                    if not isinstance(keyword, str):
                        continue
                    seed_suggestions.append(
                        KeywordSuggestion(
                            keyword=keyword,
                            search_volume=_coerce_int(row.get("search_volume"), low=0),
                            competition_ratio=_coerce_ratio(row.get("competition")),
                            competition_level=str(row.get("competition_level") or "LOW"),
                            seed_keyword=seed,
                        )
                    )
            except Exception as exc:
                logger.warning(
                    "Keyword suggestion call failed; using template suggestions",
                    extra={"seed": seed, "error": repr(exc), "degraded": True},
                )
                degraded_seeds.append(seed)
                suggestions.extend(build_template_suggestions(seed, per_seed_limit))
                continue

            suggestions.extend(seed_suggestions)

        return suggestions, degraded_seeds

    async def _fetch_difficulty(self, keywords: list[str]) -> tuple[dict[str, int], bool]:
        """Difficulty by normalized keyword, and whether values were synthesized."""
        if not keywords:
            return {}, False

        try:
            rows = await asyncio.wait_for(
                self.client.get_bulk_keyword_difficulty(
                    keywords=keywords,
                    location_code=self.config.location_code,
                    language_code=self.config.language_code,
                ),
                timeout=self.config.call_timeout_seconds,
            )
        except Exception as exc:
            logger.warning(
                "Bulk difficulty call failed; synthesizing difficulty",
                extra={"keyword_count": len(keywords), "error": repr(exc), "degraded": True},
            )
            return {
                normalize_keyword(keyword): self._rng.randint(*SYNTHESIZED_DIFFICULTY_RANGE)
                for keyword in keywords
            }, True

        difficulty: dict[str, int] = {}
        for row in rows:
            keyword = row.get("keyword")
            value = row.get("difficulty")
            if not isinstance(keyword, str) or value is None:
                continue
            difficulty.setdefault(normalize_keyword(keyword), _coerce_int(value, low=0, high=100))
        return difficulty, False
