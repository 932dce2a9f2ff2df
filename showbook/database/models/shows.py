"""
Show Models
------------

Models:
    - Show: A single scheduled event with a moderation status
    - ShowArtist: Association object linking a show to an artist with
      billing position and set type

A show always has at least one venue and one artist. The assembler is the
only writer of these associations; managers never leave a show bare.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Enum as SAEnum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .associations import show_venues
from .base import Base, SoftDeleteMixin, TimestampMixin, UTCDateTime
from .enums import SetType, ShowSource, ShowStatus

if TYPE_CHECKING:
    from .catalog import Artist, Venue


class Show(SoftDeleteMixin, TimestampMixin, Base):
    """
    A scheduled live-music event.

    Attributes:
        id: Primary key
        title: Display title
        slug: Unique URL slug (date-headliner-at-venue)
        event_date: Start time, UTC
        city / state: Location shorthand copied from the first venue
        price: Ticket price, if known
        age_requirement: Free text ("21+", "All Ages")
        description: Free text
        status: ShowStatus, driven by the lifecycle state machine only
        rejection_reason: Reason given on reject
        is_sold_out / is_cancelled: Flags outside the state machine
        submitted_by: User id of the submitter (None for discovery imports)
        source: ShowSource (user or discovery)
        source_venue: Venue slug the discovery event was scraped from
        source_event_id: External event id from the scraper
        scraped_at: When the discovery event was scraped
        duplicate_of_show_id: Existing show this one may duplicate

    Relationships:
        venues: Many-to-many with Venue
        artist_links: ShowArtist rows, ordered by position
    """

    __tablename__ = "shows"
    __table_args__ = (
        CheckConstraint("title != ''", name="ck_show_non_empty_title"),
        UniqueConstraint(
            "source_venue", "source_event_id", name="uq_show_source_event"
        ),
        Index("ix_shows_status_date", "status", "event_date"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    slug: Mapped[Optional[str]] = mapped_column(String(500), unique=True)
    event_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    city: Mapped[Optional[str]] = mapped_column(String(255))
    state: Mapped[Optional[str]] = mapped_column(String(50))
    price: Mapped[Optional[float]] = mapped_column(Float)
    age_requirement: Mapped[Optional[str]] = mapped_column(String(50))
    description: Mapped[Optional[str]] = mapped_column(Text)

    # ---- Moderation ----
    status: Mapped[ShowStatus] = mapped_column(
        SAEnum(
            ShowStatus,
            name="show_status",
            values_callable=lambda x: [e.value for e in x],
            create_constraint=True,
        ),
        nullable=False,
        default=ShowStatus.PENDING,
        index=True,
    )
    rejection_reason: Mapped[Optional[str]] = mapped_column(Text)
    is_sold_out: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    submitted_by: Mapped[Optional[int]] = mapped_column(Integer, index=True)

    # ---- Source tracking ----
    source: Mapped[ShowSource] = mapped_column(
        SAEnum(
            ShowSource,
            name="show_source",
            values_callable=lambda x: [e.value for e in x],
            create_constraint=True,
        ),
        nullable=False,
        default=ShowSource.USER,
    )
    source_venue: Mapped[Optional[str]] = mapped_column(String(300))
    source_event_id: Mapped[Optional[str]] = mapped_column(String(300))
    scraped_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime())
    duplicate_of_show_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("shows.id", ondelete="SET NULL")
    )

    # ---- Relationships ----
    venues: Mapped[List["Venue"]] = relationship(
        "Venue", secondary=show_venues, back_populates="shows"
    )
    artist_links: Mapped[List["ShowArtist"]] = relationship(
        "ShowArtist",
        back_populates="show",
        cascade="all, delete-orphan",
        order_by="ShowArtist.position",
        passive_deletes=True,
    )
    duplicate_of: Mapped[Optional["Show"]] = relationship(
        "Show", remote_side="Show.id"
    )

    # ---- Computed properties ----
    @property
    def artists(self) -> List["Artist"]:
        """Artists in billing order."""
        return [link.artist for link in self.artist_links]

    @property
    def headliner(self) -> Optional["Artist"]:
        """First headlining artist, else the first billed artist."""
        for link in self.artist_links:
            if link.set_type == SetType.HEADLINER:
                return link.artist
        return self.artist_links[0].artist if self.artist_links else None

    @property
    def all_venues_verified(self) -> bool:
        """True when every attached venue is verified."""
        return all(venue.verified for venue in self.venues)

    def __repr__(self) -> str:
        return f"<Show(id={self.id}, title='{self.title}', status='{self.status.value}')>"


class ShowArtist(Base):
    """
    Billing entry for an artist on a show.

    Attributes:
        show_id / artist_id: Composite primary key
        position: 0-based billing order
        set_type: SetType (headliner, opener, performer)
    """

    __tablename__ = "show_artists"

    show_id: Mapped[int] = mapped_column(
        ForeignKey("shows.id", ondelete="CASCADE"), primary_key=True
    )
    artist_id: Mapped[int] = mapped_column(
        ForeignKey("artists.id", ondelete="RESTRICT"), primary_key=True, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    set_type: Mapped[SetType] = mapped_column(
        SAEnum(
            SetType,
            name="set_type",
            values_callable=lambda x: [e.value for e in x],
            create_constraint=True,
        ),
        nullable=False,
        default=SetType.PERFORMER,
    )

    show: Mapped["Show"] = relationship("Show", back_populates="artist_links")
    artist: Mapped["Artist"] = relationship("Artist", back_populates="show_links")

    @property
    def is_headliner(self) -> bool:
        return self.set_type == SetType.HEADLINER

    def __repr__(self) -> str:
        return (
            f"<ShowArtist(show_id={self.show_id}, artist_id={self.artist_id}, "
            f"position={self.position}, set_type='{self.set_type.value}')>"
        )
