#!/usr/bin/env python3
"""
venue_manager.py
--------------------
Manages Venue entities.

Venues are shared catalog rows: many shows point at the same venue, so a
venue is looked up by case-insensitive (name, city, state) identity before
anything new is created. Verification is one-way (False -> True).

Key Features:
    - Lookup by id, slug and identity
    - Race-safe find-or-create
    - Verification
    - Field updates for direct admin edits and approved pending edits
    - Delete guarded against attached shows

Usage:
    venue_mgr = VenueManager(session, logger)

    venue, created = venue_mgr.get_or_create({
        "name": "Valley Bar",
        "city": "Phoenix",
        "state": "AZ",
    }, submitted_by=7, verified=False)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Dict, List, Optional, Tuple

# --- Third party imports ---
from sqlalchemy import func, select

# --- Local imports ---
from showbook.core.exceptions import ConflictError, ValidationError
from showbook.core.validators import DataValidator
from showbook.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from showbook.database.models import SOCIAL_FIELDS, Venue, show_venues
from showbook.utils.slugify import generate_venue_slug
from .base_manager import BaseManager

# Fields a venue edit may touch
EDITABLE_VENUE_FIELDS = ("name", "address", "city", "state", "zipcode") + SOCIAL_FIELDS
REQUIRED_VENUE_FIELDS = ("name", "city", "state")

_VENUE_FIELD_CONFIGS = [
    ("name", DataValidator.normalize_string),
    ("city", DataValidator.normalize_string),
    ("state", DataValidator.normalize_state),
    ("address", DataValidator.normalize_string, True),
    ("zipcode", DataValidator.normalize_string, True),
] + [(name, DataValidator.normalize_string, True) for name in SOCIAL_FIELDS]


class VenueManager(BaseManager):
    """Manages Venue table operations."""

    @handle_db_errors
    def get(self, venue_id: int) -> Optional[Venue]:
        """Retrieve a venue by id."""
        return self._get_by_id(Venue, venue_id)

    @handle_db_errors
    def require(self, venue_id: int) -> Venue:
        """Retrieve a venue by id or raise NotFoundError."""
        return self._resolve_object(venue_id, Venue)

    @handle_db_errors
    def get_by_slug(self, slug: str) -> Optional[Venue]:
        """Retrieve a venue by its slug."""
        if not slug:
            return None
        stmt = select(Venue).where(Venue.slug == slug.strip().lower())
        return self.session.scalars(stmt).first()

    @handle_db_errors
    def find(self, name: str, city: str, state: str) -> Optional[Venue]:
        """
        Find a venue by case-insensitive (name, city, state).

        Returns:
            Matching venue or None. Never writes.
        """
        normalized = self._normalize_identity(name, city, state)
        if normalized is None:
            return None
        return self._find_case_insensitive(Venue, normalized)

    @handle_db_errors
    @log_database_operation("get_or_create_venue")
    @validate_metadata(list(REQUIRED_VENUE_FIELDS))
    def get_or_create(
        self,
        metadata: Dict[str, Any],
        submitted_by: Optional[int] = None,
        verified: bool = False,
    ) -> Tuple[Venue, bool]:
        """
        Return the venue matching (name, city, state), creating it if needed.

        A matched venue is returned unchanged; only a new venue picks up the
        supplied address, zipcode and social links.

        Args:
            metadata: name, city, state (required); address, zipcode and
                social link keys (optional)
            submitted_by: User id recorded on a new venue
            verified: Verification flag for a new venue

        Returns:
            (venue, created)

        Raises:
            ValidationError: If name, city or state is missing
        """
        identity = self._normalize_identity(
            metadata.get("name"), metadata.get("city"), metadata.get("state")
        )
        if identity is None:
            raise ValidationError("Venue requires name, city and state")

        existing = self._find_case_insensitive(Venue, identity)
        if existing is not None:
            return existing, False

        extra: Dict[str, Any] = {
            "slug": self._unique_slug(
                Venue,
                generate_venue_slug(identity["name"], identity["city"], identity["state"]),
            ),
            "verified": verified,
            "submitted_by": submitted_by,
        }
        for field_name in ("address", "zipcode") + SOCIAL_FIELDS:
            value = DataValidator.normalize_string(metadata.get(field_name))
            if value is not None:
                extra[field_name] = value

        return self._execute_with_retry(
            lambda: self._get_or_create(Venue, identity, extra)
        )

    @handle_db_errors
    @log_database_operation("verify_venue")
    def verify(self, venue: Venue) -> bool:
        """
        Mark a venue verified.

        Returns:
            True if the flag changed, False if already verified
        """
        if venue.verified:
            return False
        venue.verified = True
        self.session.flush()
        return True

    @handle_db_errors
    @log_database_operation("update_venue")
    def apply_changes(self, venue: Venue, changes: Dict[str, Any]) -> List[str]:
        """
        Apply a field diff to a venue.

        Args:
            venue: Venue to update
            changes: Editable field name -> new value

        Returns:
            Names of fields that changed

        Raises:
            ValidationError: On unknown fields or blank required fields
        """
        self.validate_changes(changes)
        changed = self._update_scalar_fields(venue, changes, _VENUE_FIELD_CONFIGS)
        if {"name", "city", "state"} & set(changed):
            base = generate_venue_slug(venue.name, venue.city, venue.state)
            if base != venue.slug:
                venue.slug = self._unique_slug(Venue, base)
        self.session.flush()
        return changed

    @staticmethod
    def validate_changes(changes: Dict[str, Any]) -> None:
        """
        Validate a proposed venue diff.

        Raises:
            ValidationError: If the diff is empty, names unknown fields or
                blanks a required field
        """
        if not changes:
            raise ValidationError("No venue changes supplied")
        unknown = sorted(set(changes) - set(EDITABLE_VENUE_FIELDS))
        if unknown:
            raise ValidationError(f"Unknown venue fields: {', '.join(unknown)}")
        for field_name in REQUIRED_VENUE_FIELDS:
            if field_name in changes and not DataValidator.normalize_string(changes[field_name]):
                raise ValidationError(f"Venue {field_name} cannot be empty")

    @handle_db_errors
    def show_count(self, venue: Venue) -> int:
        """Number of shows referencing the venue."""
        stmt = (
            select(func.count())
            .select_from(show_venues)
            .where(show_venues.c.venue_id == venue.id)
        )
        return int(self.session.scalar(stmt) or 0)

    @handle_db_errors
    @log_database_operation("delete_venue")
    def delete(self, venue: Venue) -> None:
        """
        Hard delete a venue.

        Raises:
            ConflictError: If any show still references the venue
        """
        count = self.show_count(venue)
        if count:
            raise ConflictError(
                f"Venue '{venue.name}' has {count} show(s) attached and cannot be deleted"
            )
        self.session.delete(venue)
        self.session.flush()

    @handle_db_errors
    def list_unverified(
        self, limit: int = 50, offset: int = 0
    ) -> Tuple[List[Venue], int]:
        """
        Page through unverified venues, oldest first.

        Returns:
            (venues on this page, total unverified venues)
        """
        base = select(Venue).where(Venue.verified.is_(False))
        total = self.session.scalar(select(func.count()).select_from(base.subquery()))
        stmt = base.order_by(Venue.id).limit(limit).offset(offset)
        return list(self.session.scalars(stmt)), int(total or 0)

    @staticmethod
    def _normalize_identity(
        name: Any, city: Any, state: Any
    ) -> Optional[Dict[str, Optional[str]]]:
        name = DataValidator.normalize_string(name)
        city = DataValidator.normalize_string(city)
        state = DataValidator.normalize_state(state)
        if not (name and city and state):
            return None
        return {"name": name, "city": city, "state": state}
