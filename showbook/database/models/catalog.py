"""
Catalog Models
---------------

Shared catalog entities referenced by shows.

Models:
    - Venue: A place shows happen at, subject to verification
    - Artist: A performer appearing on show bills

Venues and artists are created by the entity resolver and are shared by
every show that references them, so their identity is enforced in the
database with case-insensitive unique indexes. Concurrent resolvers that
race to create the same entity trip these indexes and fall back to a
re-select.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .associations import show_venues
from .base import Base, SocialLinksMixin, TimestampMixin

if TYPE_CHECKING:
    from .moderation import PendingVenueEdit
    from .shows import Show, ShowArtist


class Venue(SocialLinksMixin, TimestampMixin, Base):
    """
    A venue shows are booked at.

    Attributes:
        id: Primary key
        name: Venue name
        slug: Unique URL slug
        address: Street address (hidden from the public while unverified)
        city: City
        state: State code
        zipcode: Postal code
        verified: Whether an admin has vouched for this venue. Only ever
            moves from False to True.
        submitted_by: User id of whoever first created the venue

    Relationships:
        shows: Many-to-many with Show
        pending_edits: Queued edits awaiting review
    """

    __tablename__ = "venues"
    __table_args__ = (
        CheckConstraint("name != ''", name="ck_venue_non_empty_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(300), nullable=False, unique=True)
    address: Mapped[Optional[str]] = mapped_column(String(500))
    city: Mapped[str] = mapped_column(String(255), nullable=False)
    state: Mapped[str] = mapped_column(String(50), nullable=False)
    zipcode: Mapped[Optional[str]] = mapped_column(String(20))
    verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="0"
    )
    submitted_by: Mapped[Optional[int]] = mapped_column(Integer, index=True)

    shows: Mapped[List["Show"]] = relationship(
        "Show", secondary=show_venues, back_populates="venues"
    )
    pending_edits: Mapped[List["PendingVenueEdit"]] = relationship(
        "PendingVenueEdit",
        back_populates="venue",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Venue(id={self.id}, name='{self.name}', city='{self.city}', state='{self.state}')>"


Index(
    "uq_venues_identity",
    func.lower(Venue.name),
    func.lower(Venue.city),
    func.lower(Venue.state),
    unique=True,
)


class Artist(SocialLinksMixin, TimestampMixin, Base):
    """
    A performer.

    Attributes:
        id: Primary key
        name: Artist name (unique, case-insensitive)
        slug: Unique URL slug
        city: Home city, if known
        state: Home state, if known

    Relationships:
        show_links: ShowArtist association rows (billing position per show)
    """

    __tablename__ = "artists"
    __table_args__ = (
        CheckConstraint("name != ''", name="ck_artist_non_empty_name"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(300), nullable=False, unique=True)
    city: Mapped[Optional[str]] = mapped_column(String(255))
    state: Mapped[Optional[str]] = mapped_column(String(50))

    show_links: Mapped[List["ShowArtist"]] = relationship(
        "ShowArtist", back_populates="artist", passive_deletes=True
    )

    @property
    def shows(self) -> List["Show"]:
        """Shows this artist appears on."""
        return [link.show for link in self.show_links]

    def __repr__(self) -> str:
        return f"<Artist(id={self.id}, name='{self.name}')>"


Index("uq_artists_name", func.lower(Artist.name), unique=True)
