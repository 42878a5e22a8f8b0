"""Keyword pool model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from sqlalchemy import Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from seoplanner.models.base import Base, StringUUID, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from seoplanner.models.website import Website


ConsumptionState = Literal["unused", "assigned"]

CONSUMPTION_UNUSED: ConsumptionState = "unused"
CONSUMPTION_ASSIGNED: ConsumptionState = "assigned"


def normalize_keyword(keyword: str) -> str:
    """Case-insensitive comparison key for a keyword."""
    return " ".join(keyword.split()).lower()


class PoolKeyword(Base, UUIDMixin, TimestampMixin):
    """Researched keyword waiting in (or consumed from) a website's pool."""

    __tablename__ = "keywords"
    __table_args__ = (
        UniqueConstraint("website_id", "keyword_normalized", name="uq_keywords_website_keyword"),
        Index("ix_keywords_website_score", "website_id", "score"),
    )

    website_id: Mapped[str] = mapped_column(
        StringUUID(),
        ForeignKey("websites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    keyword: Mapped[str] = mapped_column(String(500), nullable=False)
    keyword_normalized: Mapped[str] = mapped_column(String(500), nullable=False)
    seed_keyword: Mapped[str] = mapped_column(String(255), nullable=False)

    # Metrics
    search_volume: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    competition: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    difficulty: Mapped[int] = mapped_column(Integer, nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    suggestion_source: Mapped[str] = mapped_column(String(20), default="dataforseo", nullable=False)
    difficulty_source: Mapped[str] = mapped_column(String(20), default="dataforseo", nullable=False)

    # Only ever moves unused -> assigned, except when change-keyword releases it
    consumption_state: Mapped[str] = mapped_column(
        String(20),
        default=CONSUMPTION_UNUSED,
        nullable=False,
    )

    website: Mapped[Website] = relationship("Website", back_populates="keywords")

    def __repr__(self) -> str:
        return f"<PoolKeyword {self.keyword} ({self.consumption_state})>"
