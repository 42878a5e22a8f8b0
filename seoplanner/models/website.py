"""Website model: the owner of a keyword pool and content calendar."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from seoplanner.models.base import Base, TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from seoplanner.models.content_plan import CalendarAssignment
    from seoplanner.models.keyword import PoolKeyword


class Website(Base, UUIDMixin, TimestampMixin):
    """A user's website onboarded for content planning."""

    __tablename__ = "websites"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_audience: Mapped[str | None] = mapped_column(Text, nullable=True)
    seed_keywords: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)

    keywords: Mapped[list[PoolKeyword]] = relationship(
        "PoolKeyword",
        back_populates="website",
        cascade="all, delete-orphan",
    )
    content_plan: Mapped[list[CalendarAssignment]] = relationship(
        "CalendarAssignment",
        back_populates="website",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Website {self.name}>"
