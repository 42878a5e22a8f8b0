"""Content calendar assignment model."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Literal

from sqlalchemy import Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from seoplanner.models.base import Base, StringUUID, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from seoplanner.models.keyword import PoolKeyword
    from seoplanner.models.website import Website


GenerationState = Literal["planned", "article_generated"]

GENERATION_PLANNED: GenerationState = "planned"
GENERATION_ARTICLE_GENERATED: GenerationState = "article_generated"


class CalendarAssignment(Base, UUIDMixin, TimestampMixin):
    """One pool keyword scheduled for one calendar date."""

    __tablename__ = "content_plan"
    __table_args__ = (
        UniqueConstraint("website_id", "scheduled_date", name="uq_content_plan_website_date"),
        UniqueConstraint("keyword_id", name="uq_content_plan_keyword"),
    )

    website_id: Mapped[str] = mapped_column(
        StringUUID(),
        ForeignKey("websites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    keyword_id: Mapped[str] = mapped_column(
        StringUUID(),
        ForeignKey("keywords.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # Pure calendar date; never a timestamp
    scheduled_date: Mapped[date] = mapped_column(Date, nullable=False)
    target_keyword: Mapped[str] = mapped_column(String(500), nullable=False)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    generation_state: Mapped[str] = mapped_column(
        String(30),
        default=GENERATION_PLANNED,
        nullable=False,
    )

    website: Mapped[Website] = relationship("Website", back_populates="content_plan")
    keyword: Mapped[PoolKeyword] = relationship("PoolKeyword")

    def __repr__(self) -> str:
        return f"<CalendarAssignment {self.scheduled_date} {self.target_keyword}>"
