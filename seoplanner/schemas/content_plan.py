"""Onboarding and content calendar schemas."""

from datetime import date

from pydantic import BaseModel, Field


class OnboardingRequest(BaseModel):
    """Schema for onboarding a website."""

    name: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1, max_length=2048)
    description: str | None = None
    target_audience: str | None = None
    # Count (3-15) is enforced by the pool service so it maps to a 400
    seed_keywords: list[str]
    start_date: date | None = None


class CalendarExtendRequest(BaseModel):
    """Schema for extending a website's calendar."""

    start_date: date | None = None


class PoolSummary(BaseModel):
    """Keyword pool generation summary."""

    created: int
    skipped_existing: int
    keywords_researched: int
    expanded_seeds: list[str]
    degraded: bool
    degraded_seeds: list[str]
    difficulty_degraded: bool


class AllocationSummary(BaseModel):
    """Calendar allocation summary."""

    requested_days: int
    created: int
    scheduled_dates: list[date]
    assignment_ids: list[str]


class OnboardingResponse(BaseModel):
    """Schema for onboarding response."""

    website_id: str
    pool: PoolSummary
    allocation: AllocationSummary


class CalendarExtendResponse(BaseModel):
    """Schema for calendar extension response."""

    website_id: str
    open_dates: list[date]
    unused_keywords: int
    created: int
    allocation: AllocationSummary | None = None
    reason: str | None = None


class KeywordChangeResponse(BaseModel):
    """Schema for a calendar keyword swap."""

    content_plan_id: str
    scheduled_date: date
    title: str
    keyword_id: str
    keyword: str
    search_volume: int
    difficulty: int
    previous_keyword_id: str
    previous_keyword: str


class ContentPlanResponse(BaseModel):
    """Schema for a calendar assignment."""

    id: str
    website_id: str
    keyword_id: str
    scheduled_date: date
    target_keyword: str
    title: str
    generation_state: str

    model_config = {"from_attributes": True}
