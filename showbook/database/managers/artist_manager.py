#!/usr/bin/env python3
"""
artist_manager.py
--------------------
Manages Artist entities.

Artists are identified by case-insensitive name alone. Home city and state
are informational and never part of the identity.

Usage:
    artist_mgr = ArtistManager(session, logger)
    artist, created = artist_mgr.get_or_create({"name": "Calexico"})
"""
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import select

from showbook.core.exceptions import ValidationError
from showbook.core.validators import DataValidator
from showbook.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from showbook.database.models import SOCIAL_FIELDS, Artist
from showbook.utils.slugify import generate_artist_slug
from .base_manager import BaseManager


class ArtistManager(BaseManager):
    """Manages Artist table operations."""

    @handle_db_errors
    def get(self, artist_id: int) -> Optional[Artist]:
        """Retrieve an artist by id."""
        return self._get_by_id(Artist, artist_id)

    @handle_db_errors
    def require(self, artist_id: int) -> Artist:
        """Retrieve an artist by id or raise NotFoundError."""
        return self._resolve_object(artist_id, Artist)

    @handle_db_errors
    def find(self, name: str) -> Optional[Artist]:
        """Find an artist by case-insensitive name. Never writes."""
        name = DataValidator.normalize_string(name)
        if not name:
            return None
        return self._find_case_insensitive(Artist, {"name": name})

    @handle_db_errors
    def get_by_slug(self, slug: str) -> Optional[Artist]:
        if not slug:
            return None
        return self.session.scalars(
            select(Artist).where(Artist.slug == slug.strip().lower())
        ).first()

    @handle_db_errors
    @log_database_operation("get_or_create_artist")
    @validate_metadata(["name"])
    def get_or_create(self, metadata: Dict[str, Any]) -> Tuple[Artist, bool]:
        """
        Return the artist with this name, creating it if needed.

        Args:
            metadata: name (required); city, state and social link keys

        Returns:
            (artist, created)
        """
        name = DataValidator.normalize_string(metadata.get("name"))
        if not name:
            raise ValidationError("Artist requires a name")

        existing = self._find_case_insensitive(Artist, {"name": name})
        if existing is not None:
            return existing, False

        extra: Dict[str, Any] = {
            "slug": self._unique_slug(Artist, generate_artist_slug(name)),
            "city": DataValidator.normalize_string(metadata.get("city")),
            "state": DataValidator.normalize_state(metadata.get("state")),
        }
        for field_name in SOCIAL_FIELDS:
            value = DataValidator.normalize_string(metadata.get(field_name))
            if value is not None:
                extra[field_name] = value

        return self._execute_with_retry(
            lambda: self._get_or_create(Artist, {"name": name}, extra)
        )
