#!/usr/bin/env python3
"""
resolver.py
--------------------
Entity resolution: map a venue or artist description onto a catalog row.

Every entry point (direct submission, markdown import, discovery) goes
through the same resolver, so a venue typed as "valley bar / phoenix / az"
and one scraped as "Valley Bar / Phoenix / AZ" land on the same row.

Rules:
    - A spec with an id is a direct lookup; an unknown id is NotFoundError.
    - Otherwise venues match on case-insensitive (name, city, state) and
      artists on case-insensitive name.
    - A match is returned as-is. Existing rows are never updated or merged.
    - With no match a new row is created; venues start verified only when
      an admin created them.
    - read_only resolution (import preview) never writes: a miss returns an
      unsaved entity flagged was_created=True.

Concurrent creators are handled by BaseManager._get_or_create (SAVEPOINT
insert, re-select on a uniqueness violation).
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Mapping, Optional, TypeVar

# --- Third party imports ---
from sqlalchemy.orm import Session

# --- Local imports ---
from showbook.core.exceptions import ValidationError
from showbook.core.logging_manager import ShowbookLogger
from showbook.core.validators import DataValidator
from showbook.database.managers import ArtistManager, VenueManager
from showbook.database.models import SOCIAL_FIELDS, Artist, Venue

E = TypeVar("E")


@dataclass
class VenueSpec:
    """A venue reference: either an id or descriptive fields."""

    id: Optional[int] = None
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    zipcode: Optional[str] = None
    social: Dict[str, Optional[str]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "VenueSpec":
        social = dict(data.get("social") or {})
        for key in SOCIAL_FIELDS:
            if data.get(key):
                social[key] = data[key]
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            city=data.get("city"),
            state=data.get("state"),
            address=data.get("address"),
            zipcode=data.get("zipcode"),
            social=social,
        )

    def as_metadata(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "name": self.name,
            "city": self.city,
            "state": self.state,
            "address": self.address,
            "zipcode": self.zipcode,
        }
        metadata.update({k: v for k, v in self.social.items() if k in SOCIAL_FIELDS})
        return metadata


@dataclass
class ArtistSpec:
    """
    An artist reference plus its billing on the show being assembled.

    ``is_headliner`` of None means "decide by position": the first artist
    headlines and the rest open. ``set_type`` (from imports) wins over both.
    """

    id: Optional[int] = None
    name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    social: Dict[str, Optional[str]] = field(default_factory=dict)
    is_headliner: Optional[bool] = None
    set_type: Optional[str] = None
    position: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ArtistSpec":
        social = dict(data.get("social") or {})
        for key in SOCIAL_FIELDS:
            if data.get(key):
                social[key] = data[key]
        for alias, key in (("bandcamp_url", "bandcamp"), ("spotify_url", "spotify")):
            if data.get(alias):
                social.setdefault(key, data[alias])
        position = data.get("position")
        return cls(
            id=data.get("id"),
            name=data.get("name"),
            city=data.get("city"),
            state=data.get("state"),
            social=social,
            is_headliner=DataValidator.normalize_bool(data.get("is_headliner")),
            set_type=data.get("set_type"),
            position=int(position) if position is not None else None,
        )

    def as_metadata(self) -> Dict[str, Any]:
        metadata: Dict[str, Any] = {
            "name": self.name,
            "city": self.city,
            "state": self.state,
        }
        metadata.update({k: v for k, v in self.social.items() if k in SOCIAL_FIELDS})
        return metadata


@dataclass
class Resolution(Generic[E]):
    """
    Result of resolving one entity.

    Attributes:
        entity: The matched or created row (unsaved when read-only)
        was_created: True when no existing row matched
    """

    entity: E
    was_created: bool

    @property
    def existing_id(self) -> Optional[int]:
        return None if self.was_created else getattr(self.entity, "id", None)


class EntityResolver(ABC):
    """Find-or-create for venues and artists."""

    @abstractmethod
    def resolve_venue(
        self,
        spec: VenueSpec,
        is_admin: bool = False,
        submitted_by: Optional[int] = None,
        read_only: bool = False,
    ) -> Resolution[Venue]:
        """Resolve a venue reference to a catalog row."""

    @abstractmethod
    def resolve_artist(
        self, spec: ArtistSpec, read_only: bool = False
    ) -> Resolution[Artist]:
        """Resolve an artist reference to a catalog row."""


ResolverFactory = Callable[[Session, Optional[ShowbookLogger]], EntityResolver]


class CatalogResolver(EntityResolver):
    """Resolver backed by the venue and artist managers of one session."""

    def __init__(self, session: Session, logger: Optional[ShowbookLogger] = None) -> None:
        self.session = session
        self.logger = logger
        self.venues = VenueManager(session, logger)
        self.artists = ArtistManager(session, logger)

    def resolve_venue(
        self,
        spec: VenueSpec,
        is_admin: bool = False,
        submitted_by: Optional[int] = None,
        read_only: bool = False,
    ) -> Resolution[Venue]:
        if spec.id is not None:
            return Resolution(self.venues.require(int(spec.id)), False)

        name = DataValidator.normalize_string(spec.name)
        city = DataValidator.normalize_string(spec.city)
        state = DataValidator.normalize_state(spec.state)
        if not (name and city and state):
            raise ValidationError(
                f"Venue '{spec.name or ''}' requires name, city and state"
            )

        if read_only:
            existing = self.venues.find(name, city, state)
            if existing is not None:
                return Resolution(existing, False)
            return Resolution(
                Venue(
                    name=name,
                    city=city,
                    state=state,
                    address=DataValidator.normalize_string(spec.address),
                    zipcode=DataValidator.normalize_string(spec.zipcode),
                    verified=is_admin,
                    submitted_by=submitted_by,
                ),
                True,
            )

        venue, created = self.venues.get_or_create(
            spec.as_metadata(), submitted_by=submitted_by, verified=is_admin
        )
        return Resolution(venue, created)

    def resolve_artist(
        self, spec: ArtistSpec, read_only: bool = False
    ) -> Resolution[Artist]:
        if spec.id is not None:
            return Resolution(self.artists.require(int(spec.id)), False)

        name = DataValidator.normalize_string(spec.name)
        if not name:
            raise ValidationError("Artist requires a name")

        if read_only:
            existing = self.artists.find(name)
            if existing is not None:
                return Resolution(existing, False)
            return Resolution(Artist(name=name), True)

        artist, created = self.artists.get_or_create(spec.as_metadata())
        return Resolution(artist, created)
