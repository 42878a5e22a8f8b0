"""Best-effort seed enrichment backed by the seed expansion agent."""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from seoplanner.agents.seed_expander import (
    SeedExpansionAgent,
    SeedExpansionInput,
    SeedExpansionOutput,
)
from seoplanner.models.keyword import normalize_keyword

logger = logging.getLogger(__name__)


class SeedExpansionRunner(Protocol):
    async def run(self, input_data: SeedExpansionInput) -> SeedExpansionOutput: ...


class SeedExpander:
    """Append a few related terms to an under-sized seed list.

    Never raises for service failures: on error or timeout the original
    seeds come back unchanged.
    """

    def __init__(
        self,
        agent: SeedExpansionRunner | None = None,
        *,
        timeout_seconds: float = 30.0,
        max_new_keywords: int = 3,
    ) -> None:
        self._agent = agent
        self.timeout_seconds = timeout_seconds
        self.max_new_keywords = max_new_keywords

    @property
    def agent(self) -> SeedExpansionRunner:
        if self._agent is None:
            self._agent = SeedExpansionAgent()
        return self._agent

    async def expand(self, seed_keywords: list[str], target_audience: str) -> list[str]:
        """Return `seed_keywords` followed by up to `max_new_keywords` new terms."""
        try:
            output = await asyncio.wait_for(
                self.agent.run(
                    SeedExpansionInput(
                        seed_keywords=seed_keywords,
                        target_audience=target_audience,
                        max_new_keywords=self.max_new_keywords,
                    )
                ),
                timeout=self.timeout_seconds,
            )
        except TimeoutError:
            logger.warning(
                "Seed expansion timed out; continuing with original seeds",
                extra={"seed_count": len(seed_keywords), "timeout_s": self.timeout_seconds, "degraded": True},
            )
            return list(seed_keywords)
        except Exception as exc:
            logger.warning(
                "Seed expansion failed; continuing with original seeds",
                extra={"seed_count": len(seed_keywords), "error": repr(exc), "degraded": True},
            )
            return list(seed_keywords)

        seen = {normalize_keyword(seed) for seed in seed_keywords}
        added: list[str] = []
        for raw in output.keywords:
            keyword = raw.strip()
            key = normalize_keyword(keyword)
            if not key or key in seen:
                continue
            seen.add(key)
            added.append(keyword)
            if len(added) >= self.max_new_keywords:
                break

        logger.info(
            "Seed keywords expanded",
            extra={"original": len(seed_keywords), "added": added},
        )
        return [*seed_keywords, *added]
