"""
Association Tables
-------------------

Pure many-to-many tables for the Showbook database.

Only show_venues lives here: it carries no metadata. The show/artist link
carries billing order and set type, so it is the ShowArtist association
object in shows.py instead.
"""
# --- Third party imports ---
from sqlalchemy import Column, ForeignKey, Integer, Table

# --- Local imports ---
from .base import Base

show_venues = Table(
    "show_venues",
    Base.metadata,
    Column(
        "show_id",
        Integer,
        ForeignKey("shows.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "venue_id",
        Integer,
        ForeignKey("venues.id", ondelete="RESTRICT"),
        primary_key=True,
        index=True,
    ),
)
