"""
Database Models Package
------------------------

SQLAlchemy ORM models for the Showbook database.

- base: Base class, UTC datetime type and mixins
- enums: ShowStatus, ShowSource, SetType, VenueEditStatus
- associations: show_venues table
- catalog: Venue, Artist
- shows: Show, ShowArtist
- moderation: PendingVenueEdit

Usage:
    from showbook.database.models import Show, Venue, Artist
"""
# Base classes
from .base import (
    SOCIAL_FIELDS,
    Base,
    SocialLinksMixin,
    SoftDeleteMixin,
    TimestampMixin,
    UTCDateTime,
    utc_now,
)

# Enumerations
from .enums import SetType, ShowSource, ShowStatus, VenueEditStatus

# Association tables
from .associations import show_venues

# Entities
from .catalog import Artist, Venue
from .shows import Show, ShowArtist
from .moderation import PendingVenueEdit

__all__ = [
    # Base
    "Base",
    "SoftDeleteMixin",
    "TimestampMixin",
    "SocialLinksMixin",
    "UTCDateTime",
    "SOCIAL_FIELDS",
    "utc_now",
    # Enums
    "ShowStatus",
    "ShowSource",
    "SetType",
    "VenueEditStatus",
    # Associations
    "show_venues",
    # Entities
    "Venue",
    "Artist",
    "Show",
    "ShowArtist",
    "PendingVenueEdit",
]
