"""
Enumeration Types
------------------

Enum classes for the Showbook database models.

Enums:
    - ShowStatus: Moderation status of a show
    - ShowSource: Where a show came from (user submission or discovery)
    - SetType: Billing position of an artist on a show
    - VenueEditStatus: Review status of a queued venue edit
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum


class ShowStatus(str, Enum):
    """
    Moderation status of a show.

    - PENDING: Awaiting admin review
    - APPROVED: Publicly listed
    - REJECTED: Refused by an admin (terminal)
    - PRIVATE: Visible to the submitter only
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    PRIVATE = "private"


class ShowSource(str, Enum):
    """Origin of a show record."""

    USER = "user"
    DISCOVERY = "discovery"


class SetType(str, Enum):
    """
    Billing position of an artist on a show.

    - HEADLINER: Top of the bill
    - OPENER: Supporting act
    - PERFORMER: Unranked performer (festival-style bills)
    """

    HEADLINER = "headliner"
    OPENER = "opener"
    PERFORMER = "performer"

    @classmethod
    def from_value(cls, value: object) -> "SetType":
        """Lenient conversion used by importers; unknown values mean performer."""
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.PERFORMER


class VenueEditStatus(str, Enum):
    """Review status of a pending venue edit."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
