"""SQLAlchemy database models."""
from seoplanner.models.base import Base
from seoplanner.models.content_plan import CalendarAssignment
from seoplanner.models.keyword import PoolKeyword
from seoplanner.models.website import Website

__all__ = [
    "Base",
    "Website",
    "PoolKeyword",
    "CalendarAssignment",
]
