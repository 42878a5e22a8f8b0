"""Website onboarding and content calendar API endpoints."""

import logging
from datetime import date

from fastapi import APIRouter, HTTPException, status

from seoplanner.api.dependencies import CalendarServiceDep, ContentPlanServiceDep
from seoplanner.core.exceptions import (
    ConcurrencyConflictError,
    ContentPlanNotFoundError,
    InvalidInputError,
    NoAvailableKeywordsError,
    NoQualifyingKeywordsError,
    NoUnusedKeywordsError,
    OnboardingAllocationError,
    SEOPlannerError,
    WebsiteNotFoundError,
)
from seoplanner.schemas.content_plan import (
    AllocationSummary,
    CalendarExtendRequest,
    CalendarExtendResponse,
    ContentPlanResponse,
    KeywordChangeResponse,
    OnboardingRequest,
    OnboardingResponse,
    PoolSummary,
)
from seoplanner.services.calendar_allocator import AllocationResult
from seoplanner.services.content_plan import WebsiteProfile

logger = logging.getLogger(__name__)

router = APIRouter()

_STATUS_BY_ERROR: tuple[tuple[type[SEOPlannerError], int], ...] = (
    (InvalidInputError, status.HTTP_400_BAD_REQUEST),
    (WebsiteNotFoundError, status.HTTP_404_NOT_FOUND),
    (ContentPlanNotFoundError, status.HTTP_404_NOT_FOUND),
    (NoAvailableKeywordsError, status.HTTP_409_CONFLICT),
    (NoUnusedKeywordsError, status.HTTP_409_CONFLICT),
    (ConcurrencyConflictError, status.HTTP_409_CONFLICT),
    (OnboardingAllocationError, status.HTTP_409_CONFLICT),
    (NoQualifyingKeywordsError, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def _http_error(exc: SEOPlannerError) -> HTTPException:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(
                status_code=status_code,
                detail={"message": exc.message, **exc.details},
            )
    logger.error("Unmapped application error", extra={"error": repr(exc)})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"message": exc.message},
    )


def _allocation_summary(result: AllocationResult) -> AllocationSummary:
    return AllocationSummary(
        requested_days=result.requested_days,
        created=result.created,
        scheduled_dates=result.scheduled_dates,
        assignment_ids=result.assignment_ids,
    )


@router.post(
    "/websites/onboarding",
    response_model=OnboardingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Onboard website",
    description=(
        "Create a website, research its keyword pool from 3-15 seed keywords and allocate "
        "the first week of the content calendar. If the website is saved but allocation "
        "fails, the 409 detail carries its website_id; extend that calendar instead of retrying."
    ),
)
async def onboard_website(
    request: OnboardingRequest,
    service: ContentPlanServiceDep,
) -> OnboardingResponse:
    """Onboard a website and build its initial content calendar."""
    profile = WebsiteProfile(
        name=request.name,
        url=request.url,
        description=request.description,
        target_audience=request.target_audience,
    )
    try:
        result = await service.onboard(profile, request.seed_keywords, request.start_date or date.today())
    except SEOPlannerError as e:
        raise _http_error(e) from e

    pool = result.pool
    return OnboardingResponse(
        website_id=result.website_id,
        pool=PoolSummary(
            created=pool.created,
            skipped_existing=pool.skipped_existing,
            keywords_researched=pool.keywords_researched,
            expanded_seeds=pool.expanded_seeds,
            degraded=pool.degraded,
            degraded_seeds=pool.degraded_seeds,
            difficulty_degraded=pool.difficulty_degraded,
        ),
        allocation=_allocation_summary(result.allocation),
    )


@router.post(
    "/websites/{website_id}/calendar/extend",
    response_model=CalendarExtendResponse,
    summary="Extend calendar",
    description="Fill open dates in the upcoming calendar horizon with unused pool keywords.",
)
async def extend_calendar(
    website_id: str,
    service: CalendarServiceDep,
    request: CalendarExtendRequest | None = None,
) -> CalendarExtendResponse:
    """Backfill the content calendar for a website."""
    today = request.start_date if request and request.start_date else date.today()
    try:
        extension = await service.generate_more_days(website_id, today)
    except SEOPlannerError as e:
        raise _http_error(e) from e

    return CalendarExtendResponse(
        website_id=website_id,
        open_dates=extension.open_dates,
        unused_keywords=extension.unused_keywords,
        created=extension.created,
        allocation=_allocation_summary(extension.allocation) if extension.allocation else None,
        reason=extension.reason,
    )


@router.post(
    "/content-plan/{content_plan_id}/change-keyword",
    response_model=KeywordChangeResponse,
    summary="Change keyword",
    description="Replace the keyword of a calendar entry with a random unused pool keyword.",
)
async def change_keyword(
    content_plan_id: str,
    service: CalendarServiceDep,
) -> KeywordChangeResponse:
    """Swap a calendar entry's keyword."""
    try:
        result = await service.change_keyword(content_plan_id)
    except SEOPlannerError as e:
        raise _http_error(e) from e

    return KeywordChangeResponse(
        content_plan_id=result.content_plan_id,
        scheduled_date=result.scheduled_date,
        title=result.title,
        keyword_id=result.keyword_id,
        keyword=result.keyword,
        search_volume=result.search_volume,
        difficulty=result.difficulty,
        previous_keyword_id=result.previous_keyword_id,
        previous_keyword=result.previous_keyword,
    )


@router.post(
    "/content-plan/{content_plan_id}/article-generated",
    response_model=ContentPlanResponse,
    summary="Record article generation",
    description="Mark a calendar entry as having its article generated.",
)
async def record_article_generated(
    content_plan_id: str,
    service: CalendarServiceDep,
) -> ContentPlanResponse:
    """Record that the article for a calendar entry was generated."""
    try:
        plan = await service.record_article_generated(content_plan_id)
    except SEOPlannerError as e:
        raise _http_error(e) from e

    return ContentPlanResponse.model_validate(plan)
