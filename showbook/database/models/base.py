"""
Base Classes and Mixins
------------------------

Foundational ORM classes for the Showbook database.

Classes:
    - Base: Declarative base for all SQLAlchemy models
    - UTCDateTime: Column type storing naive UTC, returning aware UTC
    - TimestampMixin: created_at / updated_at columns
    - SoftDeleteMixin: Soft delete columns and helpers
    - SocialLinksMixin: Social/web link columns shared by venues and artists
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# --- Third party ---
from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime column for SQLite.

    SQLite has no timezone support, so values are normalized to UTC and
    stored naive; they come back with ``tzinfo=timezone.utc`` attached.
    This keeps comparisons between stored and freshly parsed dates valid.
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.replace(tzinfo=None)

    def process_result_value(
        self, value: Optional[datetime], dialect: Dialect
    ) -> Optional[datetime]:
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


# --- Base ORM class ---
class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Serves as the declarative base for SQLAlchemy models and provides
    access to the metadata object for table creation and migrations.
    """

    pass


class TimestampMixin:
    """Creation and last-update timestamps, maintained by SQLAlchemy."""

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), default=utc_now, onupdate=utc_now, nullable=False
    )


# --- Soft Delete ---
class SoftDeleteMixin:
    """
    Mixin providing soft delete functionality for models.

    Soft-deleted shows stay in the database (and keep blocking discovery
    re-imports of the same external event) but disappear from listings.

    Attributes:
        deleted_at: Timestamp when the record was soft deleted
        deleted_by: User id of whoever deleted the record
        deletion_reason: Optional explanation for the deletion
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(), nullable=True, doc="Timestamp of soft deletion"
    )
    deleted_by: Mapped[Optional[int]] = mapped_column(
        Integer, nullable=True, doc="User that deleted the record"
    )
    deletion_reason: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, doc="Reason for deletion"
    )

    def soft_delete(
        self, deleted_by: Optional[int] = None, reason: Optional[str] = None
    ) -> None:
        """
        Mark record as soft deleted.

        Args:
            deleted_by: User id of whoever is deleting the record
            reason: Explanation for the deletion
        """
        self.deleted_at = utc_now()
        self.deleted_by = deleted_by
        self.deletion_reason = reason


SOCIAL_FIELDS = (
    "instagram",
    "facebook",
    "twitter",
    "youtube",
    "spotify",
    "soundcloud",
    "bandcamp",
    "website",
)


class SocialLinksMixin:
    """Optional social and web links for venues and artists."""

    instagram: Mapped[Optional[str]] = mapped_column(String(500))
    facebook: Mapped[Optional[str]] = mapped_column(String(500))
    twitter: Mapped[Optional[str]] = mapped_column(String(500))
    youtube: Mapped[Optional[str]] = mapped_column(String(500))
    spotify: Mapped[Optional[str]] = mapped_column(String(500))
    soundcloud: Mapped[Optional[str]] = mapped_column(String(500))
    bandcamp: Mapped[Optional[str]] = mapped_column(String(500))
    website: Mapped[Optional[str]] = mapped_column(String(500))

    @property
    def social(self) -> Dict[str, Any]:
        """Non-empty social links keyed by platform."""
        return {
            name: getattr(self, name)
            for name in SOCIAL_FIELDS
            if getattr(self, name)
        }
