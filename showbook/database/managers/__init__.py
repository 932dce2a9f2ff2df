#!/usr/bin/env python3
"""
managers package
--------------------
Entity managers for the Showbook database.

Each manager handles plain data work for one entity type inside the
caller's session and inherits its helpers from BaseManager. Authorization
and status decisions live in showbook.pipeline, not here.

Available Managers:
    BaseManager: Abstract base class with common utilities
    VenueManager: Venue lookup, find-or-create, verification, edits
    ArtistManager: Artist lookup and find-or-create
    ShowManager: Show rows, venue/billing associations, duplicate lookups
    VenueEditManager: PendingVenueEdit storage

Usage:
    from showbook.database.managers import VenueManager

    venue_mgr = VenueManager(session, logger)
"""
from .base_manager import BaseManager
from .venue_manager import VenueManager
from .artist_manager import ArtistManager
from .show_manager import ShowManager
from .venue_edit_manager import VenueEditManager

__all__ = [
    "BaseManager",
    "VenueManager",
    "ArtistManager",
    "ShowManager",
    "VenueEditManager",
]
