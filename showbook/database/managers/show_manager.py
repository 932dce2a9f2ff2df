#!/usr/bin/env python3
"""
show_manager.py
--------------------
Manages Show entities and their venue/artist associations.

Shows are the only catalog entity with a moderation status. The manager
performs plain data work (create, associate, look up, delete); status
changes are decided by the lifecycle state machine and field updates by
the show assembler, both of which call into this manager.

Key Features:
    - Creation with unique date-headliner-venue slugs
    - Venue and billing (ShowArtist) association replacement
    - Duplicate lookups: same headliner at the same venue on the same UTC
      day, rejected shows on a day, discovery source keys
    - Soft delete (default) and hard delete

Usage:
    show_mgr = ShowManager(session, logger)

    show = show_mgr.create({
        "title": "The Beths",
        "event_date": datetime(2026, 3, 1, 3, 0, tzinfo=timezone.utc),
        "status": ShowStatus.PENDING,
    })
    show_mgr.set_venues(show, [venue])
    show_mgr.set_artists(show, [(artist, SetType.HEADLINER)])
    show_mgr.assign_slug(show)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence, Tuple

# --- Third party imports ---
from sqlalchemy import func, select

# --- Local imports ---
from showbook.core.exceptions import ValidationError
from showbook.core.validators import DataValidator
from showbook.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from showbook.database.models import (
    Artist,
    SetType,
    Show,
    ShowArtist,
    ShowSource,
    ShowStatus,
    Venue,
)
from showbook.utils.slugify import generate_show_slug, generate_unique_slug
from .base_manager import BaseManager

# Scalar fields settable through create/update
_SHOW_FIELD_CONFIGS = [
    ("title", DataValidator.normalize_string),
    ("event_date", DataValidator.normalize_datetime),
    ("city", DataValidator.normalize_string, True),
    ("state", DataValidator.normalize_state, True),
    ("price", DataValidator.normalize_price, True),
    ("age_requirement", DataValidator.normalize_string, True),
    ("description", DataValidator.normalize_text, True),
]
UPDATABLE_SHOW_FIELDS = tuple(config[0] for config in _SHOW_FIELD_CONFIGS)


def utc_day_bounds(moment: datetime) -> Tuple[datetime, datetime]:
    """Start (inclusive) and end (exclusive) of the UTC day containing ``moment``."""
    moment = DataValidator.ensure_utc(moment)
    start = moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


class ShowManager(BaseManager):
    """Manages Show table operations and show associations."""

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    @handle_db_errors
    def get(self, show_id: int, include_deleted: bool = False) -> Optional[Show]:
        """Retrieve a show by id; soft-deleted shows are hidden by default."""
        return self._get_by_id(Show, show_id, include_deleted=include_deleted)

    @handle_db_errors
    def require(self, show_id: int) -> Show:
        """Retrieve a live show by id or raise NotFoundError."""
        return self._resolve_object(show_id, Show)

    @handle_db_errors
    def get_by_slug(self, slug: str) -> Optional[Show]:
        stmt = select(Show).where(Show.slug == slug, Show.deleted_at.is_(None))
        return self.session.scalars(stmt).first()

    @handle_db_errors
    def find_by_source(self, source_venue: str, source_event_id: str) -> Optional[Show]:
        """
        Find the show imported from a discovery event.

        Soft-deleted shows are included: their source key is still taken.
        """
        stmt = select(Show).where(
            Show.source_venue == source_venue,
            Show.source_event_id == source_event_id,
        )
        return self.session.scalars(stmt).first()

    @handle_db_errors
    def find_headliner_show(
        self,
        headliner_name: str,
        venue_name: str,
        event_date: datetime,
        exclude_statuses: Sequence[ShowStatus] = (),
        exclude_show_id: Optional[int] = None,
    ) -> Optional[Show]:
        """
        Find a live show where this artist headlines this venue on the same UTC day.

        Names are matched case-insensitively.

        Args:
            headliner_name: Headlining artist name
            venue_name: Venue name
            event_date: Any moment on the day to check
            exclude_statuses: Statuses that do not count as a clash
            exclude_show_id: Show to ignore (the show being updated)

        Returns:
            The earliest matching show or None
        """
        start, end = utc_day_bounds(event_date)
        stmt = (
            select(Show)
            .join(ShowArtist, ShowArtist.show_id == Show.id)
            .join(Artist, Artist.id == ShowArtist.artist_id)
            .join(Show.venues)
            .where(
                func.lower(Artist.name) == headliner_name.strip().lower(),
                func.lower(Venue.name) == venue_name.strip().lower(),
                ShowArtist.set_type == SetType.HEADLINER,
                Show.event_date >= start,
                Show.event_date < end,
                Show.deleted_at.is_(None),
            )
            .order_by(Show.id)
        )
        if exclude_statuses:
            stmt = stmt.where(Show.status.not_in(list(exclude_statuses)))
        if exclude_show_id is not None:
            stmt = stmt.where(Show.id != exclude_show_id)
        return self.session.scalars(stmt.limit(1)).first()

    @handle_db_errors
    def find_rejected_on_day(self, venue: Venue, event_date: datetime) -> Optional[Show]:
        """A rejected show at ``venue`` on the UTC day of ``event_date``, if any."""
        start, end = utc_day_bounds(event_date)
        stmt = (
            select(Show)
            .join(Show.venues)
            .where(
                Venue.id == venue.id,
                Show.status == ShowStatus.REJECTED,
                Show.event_date >= start,
                Show.event_date < end,
            )
            .order_by(Show.id)
            .limit(1)
        )
        return self.session.scalars(stmt).first()

    # -------------------------------------------------------------------------
    # Create / Update
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("create_show")
    @validate_metadata(["title", "event_date"])
    def create(self, metadata: Dict[str, Any]) -> Show:
        """
        Create a bare show row.

        The caller attaches venues and artists and then assigns the slug;
        the show is flushed so it has an id.

        Args:
            metadata: Dictionary with keys:
                - title (required)
                - event_date (required, any form normalize_datetime accepts)
                - city, state, price, age_requirement, description
                - status, submitted_by, source, source_venue,
                  source_event_id, scraped_at, duplicate_of_show_id

        Returns:
            Created Show
        """
        title = DataValidator.normalize_string(metadata.get("title"))
        event_date = DataValidator.normalize_datetime(metadata.get("event_date"))
        if not title or event_date is None:
            raise ValidationError("Show requires a title and an event date")

        show = Show(
            title=title,
            event_date=event_date,
            status=ShowStatus(metadata.get("status", ShowStatus.PENDING)),
            source=ShowSource(metadata.get("source", ShowSource.USER)),
            submitted_by=metadata.get("submitted_by"),
            source_venue=DataValidator.normalize_string(metadata.get("source_venue")),
            source_event_id=DataValidator.normalize_string(metadata.get("source_event_id")),
            scraped_at=DataValidator.normalize_datetime(metadata.get("scraped_at")),
            duplicate_of_show_id=metadata.get("duplicate_of_show_id"),
            is_sold_out=bool(metadata.get("is_sold_out", False)),
            is_cancelled=bool(metadata.get("is_cancelled", False)),
        )
        self._update_scalar_fields(show, metadata, _SHOW_FIELD_CONFIGS[2:])
        self.session.add(show)
        self.session.flush()
        return show

    @handle_db_errors
    @log_database_operation("update_show")
    def update_fields(self, show: Show, updates: Dict[str, Any]) -> List[str]:
        """
        Update scalar show fields.

        Args:
            show: Show to update
            updates: Subset of UPDATABLE_SHOW_FIELDS

        Returns:
            Names of fields that changed

        Raises:
            ValidationError: On unknown fields or a blanked title/date
        """
        unknown = sorted(set(updates) - set(UPDATABLE_SHOW_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown show fields: {', '.join(unknown)}")
        for required in ("title", "event_date"):
            if required in updates and updates[required] in (None, ""):
                raise ValidationError(f"Show {required} cannot be empty")
        changed = self._update_scalar_fields(show, updates, _SHOW_FIELD_CONFIGS)
        self.session.flush()
        return changed

    @handle_db_errors
    def set_venues(self, show: Show, venues: Sequence[Venue]) -> None:
        """Replace the show's venues, keeping order and dropping repeats."""
        if not venues:
            raise ValidationError("A show needs at least one venue")
        unique: List[Venue] = []
        for venue in venues:
            if venue not in unique:
                unique.append(venue)
        show.venues = unique
        self.session.flush()

    @handle_db_errors
    def set_artists(
        self, show: Show, billing: Sequence[Tuple[Artist, SetType]]
    ) -> None:
        """
        Replace the show's bill.

        Args:
            show: Show to update
            billing: (artist, set_type) in billing order; positions are the
                list indices. A repeated artist keeps its first slot.
        """
        if not billing:
            raise ValidationError("A show needs at least one artist")

        show.artist_links.clear()
        self.session.flush()

        seen = set()
        position = 0
        for artist, set_type in billing:
            if artist.id in seen:
                continue
            seen.add(artist.id)
            show.artist_links.append(
                ShowArtist(artist=artist, position=position, set_type=set_type)
            )
            position += 1
        self.session.flush()

    @handle_db_errors
    def assign_slug(self, show: Show) -> str:
        """Give the show a unique slug from its date, headliner and first venue."""
        headliner = show.headliner
        venue = show.venues[0] if show.venues else None
        base = generate_show_slug(
            show.event_date,
            headliner.name if headliner else "unknown",
            venue.name if venue else "unknown",
        )

        def is_taken(candidate: str) -> bool:
            stmt = select(Show.id).where(Show.slug == candidate, Show.id != show.id)
            return self.session.scalar(stmt.limit(1)) is not None

        show.slug = generate_unique_slug(base, is_taken)
        self.session.flush()
        return show.slug

    # -------------------------------------------------------------------------
    # Delete
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("soft_delete_show")
    def soft_delete(
        self, show: Show, deleted_by: Optional[int] = None, reason: Optional[str] = None
    ) -> None:
        show.soft_delete(deleted_by=deleted_by, reason=reason)
        self.session.flush()

    @handle_db_errors
    @log_database_operation("hard_delete_show")
    def hard_delete(self, show: Show) -> None:
        """Delete the show row together with its venue and billing rows."""
        show.venues = []
        show.artist_links.clear()
        self.session.flush()
        self.session.delete(show)
        self.session.flush()
