"""
Moderation Models
------------------

Models:
    - PendingVenueEdit: A queued, unapplied change to a venue

The proposed field diff is stored as an opaque JSON blob rather than one
column per field; the editable field set is validated by the edit queue,
not by the schema. A partial unique index guarantees at most one pending
edit per (venue, user) even under concurrent proposals.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Optional

from sqlalchemy import JSON, Enum as SAEnum, ForeignKey, Index, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin, UTCDateTime
from .enums import VenueEditStatus

if TYPE_CHECKING:
    from .catalog import Venue


class PendingVenueEdit(TimestampMixin, Base):
    """
    A proposed venue change awaiting admin review.

    Attributes:
        id: Primary key
        venue_id: Venue the edit targets
        submitted_by: User id of the proposer
        proposed_changes: Field name to new value
        status: VenueEditStatus
        rejection_reason: Reason given on reject
        reviewed_by: Admin user id who reviewed the edit
        reviewed_at: When the review happened
    """

    __tablename__ = "pending_venue_edits"
    __table_args__ = (
        Index(
            "uq_pending_venue_edit_per_user",
            "venue_id",
            "submitted_by",
            unique=True,
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    venue_id: Mapped[int] = mapped_column(
        ForeignKey("venues.id", ondelete="CASCADE"), nullable=False, index=True
    )
    submitted_by: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    proposed_changes: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    status: Mapped[VenueEditStatus] = mapped_column(
        SAEnum(
            VenueEditStatus,
            name="venue_edit_status",
            values_callable=lambda x: [e.value for e in x],
            create_constraint=True,
        ),
        nullable=False,
        default=VenueEditStatus.PENDING,
        index=True,
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)
    reviewed_by: Mapped[Optional[int]] = mapped_column(Integer)
    reviewed_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())

    venue: Mapped["Venue"] = relationship("Venue", back_populates="pending_edits")

    @property
    def is_reviewed(self) -> bool:
        return self.status != VenueEditStatus.PENDING

    def __repr__(self) -> str:
        return (
            f"<PendingVenueEdit(id={self.id}, venue_id={self.venue_id}, "
            f"submitted_by={self.submitted_by}, status='{self.status.value}')>"
        )
