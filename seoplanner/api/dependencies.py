"""Dependencies shared by the API routes."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from seoplanner.agents.seed_expander import SeedExpansionAgent
from seoplanner.config import settings
from seoplanner.core.database import get_session
from seoplanner.integrations.dataforseo import DataForSEOClient
from seoplanner.services.content_plan import ContentPlanService
from seoplanner.services.keyword_research import KeywordDataClient, KeywordResearchEngine, ResearchConfig
from seoplanner.services.seed_expansion import SeedExpander

DbSession = Annotated[AsyncSession, Depends(get_session)]


async def get_keyword_data_client() -> AsyncGenerator[KeywordDataClient, None]:
    """DataForSEO client scoped to one request."""
    async with DataForSEOClient.from_settings(settings) as client:
        yield client


def get_seed_expander() -> SeedExpander | None:
    """Seed expander, or None when expansion is switched off."""
    if not settings.research_seed_expansion_enabled:
        return None
    return SeedExpander(timeout_seconds=settings.get_llm_timeout(SeedExpansionAgent.model_tier))


def get_research_engine(
    client: Annotated[KeywordDataClient, Depends(get_keyword_data_client)],
    seed_expander: Annotated[SeedExpander | None, Depends(get_seed_expander)],
) -> KeywordResearchEngine:
    return KeywordResearchEngine(
        client,
        seed_expander=seed_expander,
        config=ResearchConfig.from_settings(settings),
    )


def get_content_plan_service(
    session: DbSession,
    engine: Annotated[KeywordResearchEngine, Depends(get_research_engine)],
) -> ContentPlanService:
    return ContentPlanService.from_settings(session, engine, settings)


ContentPlanServiceDep = Annotated[ContentPlanService, Depends(get_content_plan_service)]


def get_calendar_service(session: DbSession) -> ContentPlanService:
    """Content plan service for routes that never run keyword research."""
    return ContentPlanService.from_settings(session, None, settings)


CalendarServiceDep = Annotated[ContentPlanService, Depends(get_calendar_service)]
