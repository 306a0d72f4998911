"""Base model class and common mixins for SQLAlchemy models.

This module provides the declarative base for all models and the timestamp
patterns shared by the logistics schema.
"""

from datetime import UTC, datetime
from typing import ClassVar

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models.

    Provides type_annotation_map for automatic type inference from Python types.
    """

    type_annotation_map: ClassVar[dict] = {
        datetime: DateTime(timezone=True),
    }


class TimestampMixin:
    """Mixin for models that need created_at and updated_at timestamps."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class TimestampCreatedMixin:
    """Mixin for append-only records that only need created_at."""

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )


def utc_now() -> datetime:
    """Get current UTC time with timezone awareness."""
    return datetime.now(UTC)


def enum_check(column: str, values: type) -> str:
    """Render an ``IN (...)`` check constraint body for a StrEnum."""

    quoted = ", ".join(f"'{member.value}'" for member in values)
    return f"{column} IN ({quoted})"
