#!/usr/bin/env python3
"""
assembler.py
--------------------
Builds and updates shows from resolved venues and artists.

The assembler is the only writer of a show's venue and billing rows, so
the "at least one venue and one artist" rule is checked here for every
entry point. It runs inside the caller's transaction and never commits.

Billing rules:
    - An explicit set_type wins.
    - Otherwise is_headliner=True means headliner and False means opener.
    - With neither, the first billed artist headlines and the rest open.
    - Billing order follows each artist's position when given, else the
      order supplied.

Usage:
    assembler = CatalogShowAssembler(session, logger)
    assembled = assembler.create(ShowRequest.from_mapping(payload), actor)
    assembled.show.slug   # "2026-03-01-the-beths-at-valley-bar"
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

# --- Third party imports ---
from sqlalchemy.orm import Session

# --- Local imports ---
from showbook.core.exceptions import DuplicateShowError, ValidationError
from showbook.core.logging_manager import ShowbookLogger, safe_logger
from showbook.core.validators import DataValidator
from showbook.database.managers import ShowManager
from showbook.database.models import Artist, SetType, Show, ShowSource, ShowStatus, Venue
from .actor import Actor
from .events import (
    ArtistCreatedEvent,
    NotificationEvent,
    ShowSummary,
    VenueSummary,
    emit,
)
from .lifecycle import initial_status
from .resolver import (
    ArtistSpec,
    CatalogResolver,
    EntityResolver,
    Resolution,
    ResolverFactory,
    VenueSpec,
)

# Statuses that never count as a clashing booking
NON_BLOCKING_STATUSES = (ShowStatus.REJECTED,)


@dataclass
class ShowRequest:
    """
    Everything needed to create a show.

    Attributes:
        title / event_date: Required
        venues / artists: At least one of each
        is_private: Submitter asked for a private show
        status: Forced initial status (discovery imports are always pending)
        source, source_venue, source_event_id, scraped_at: Provenance
        duplicate_of_show_id: Existing show this one may duplicate
    """

    title: Optional[str]
    event_date: Optional[datetime]
    venues: List[VenueSpec] = field(default_factory=list)
    artists: List[ArtistSpec] = field(default_factory=list)
    city: Optional[str] = None
    state: Optional[str] = None
    price: Optional[float] = None
    age_requirement: Optional[str] = None
    description: Optional[str] = None
    is_private: bool = False
    is_sold_out: bool = False
    is_cancelled: bool = False
    status: Optional[ShowStatus] = None
    source: ShowSource = ShowSource.USER
    source_venue: Optional[str] = None
    source_event_id: Optional[str] = None
    scraped_at: Optional[datetime] = None
    duplicate_of_show_id: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ShowRequest":
        """Build a request from a plain dict (API payload, CLI JSON)."""
        return cls(
            title=data.get("title"),
            event_date=DataValidator.normalize_datetime(data.get("event_date")),
            venues=[VenueSpec.from_mapping(v) for v in data.get("venues") or []],
            artists=[ArtistSpec.from_mapping(a) for a in data.get("artists") or []],
            city=data.get("city"),
            state=data.get("state"),
            price=DataValidator.normalize_price(data.get("price")),
            age_requirement=data.get("age_requirement"),
            description=data.get("description"),
            is_private=bool(DataValidator.normalize_bool(data.get("is_private"))),
        )

    def validate(self) -> None:
        """
        Raises:
            ValidationError: On a missing title or date, or no venues/artists
        """
        if not DataValidator.normalize_string(self.title):
            raise ValidationError("Show title is required")
        if self.event_date is None:
            raise ValidationError("Show event date is required")
        if not self.venues:
            raise ValidationError("At least one venue is required")
        if not self.artists:
            raise ValidationError("At least one artist is required")


@dataclass
class AssembledShow:
    """A created show plus how each of its venues and artists was resolved."""

    show: Show
    venue_resolutions: List[Resolution[Venue]] = field(default_factory=list)
    artist_resolutions: List[Resolution[Artist]] = field(default_factory=list)

    @property
    def new_venues(self) -> List[Venue]:
        return [r.entity for r in self.venue_resolutions if r.was_created]

    @property
    def new_artists(self) -> List[Artist]:
        return [r.entity for r in self.artist_resolutions if r.was_created]

    def emit_created(
        self,
        session: Session,
        submitter_id: Optional[int],
        discover_music: bool = True,
    ) -> None:
        """Queue new-show, new-venue and new-artist events for after commit."""
        emit(
            session,
            NotificationEvent(
                "notify_new_show",
                {"show": ShowSummary.from_show(self.show), "submitter_id": submitter_id},
            ),
        )
        for venue in self.new_venues:
            emit(
                session,
                NotificationEvent(
                    "notify_new_venue",
                    {"venue": VenueSummary.from_venue(venue), "submitter_id": submitter_id},
                ),
            )
        if discover_music:
            for artist in self.new_artists:
                emit(session, ArtistCreatedEvent(artist.id, artist.name))


def billing_for(specs: Sequence[ArtistSpec]) -> List[Tuple[ArtistSpec, SetType]]:
    """Order artist specs for billing and decide each one's set type."""
    indexed = list(enumerate(specs))
    indexed.sort(
        key=lambda pair: (pair[1].position if pair[1].position is not None else pair[0], pair[0])
    )
    billing = []
    for slot, (_, spec) in enumerate(indexed):
        if spec.set_type:
            set_type = SetType.from_value(spec.set_type)
        elif spec.is_headliner is not None:
            set_type = SetType.HEADLINER if spec.is_headliner else SetType.OPENER
        else:
            set_type = SetType.HEADLINER if slot == 0 else SetType.OPENER
        billing.append((spec, set_type))
    return billing


class ShowAssembler(ABC):
    """Creates and updates shows with their associations."""

    @abstractmethod
    def create(
        self,
        request: ShowRequest,
        actor: Optional[Actor],
        check_duplicates: bool = True,
    ) -> AssembledShow:
        """Resolve entities and create a show in the current transaction."""

    @abstractmethod
    def update(
        self,
        show: Show,
        updates: Mapping[str, Any],
        actor: Optional[Actor],
        venues: Optional[Sequence[VenueSpec]] = None,
        artists: Optional[Sequence[ArtistSpec]] = None,
    ) -> List[str]:
        """Update fields and optionally replace associations; return changed names."""


class CatalogShowAssembler(ShowAssembler):
    """Assembler writing through ShowManager and a CatalogResolver."""

    def __init__(
        self,
        session: Session,
        logger: Optional[ShowbookLogger] = None,
        resolver: Optional[EntityResolver] = None,
    ) -> None:
        self.session = session
        self.logger = logger
        self.resolver = resolver or CatalogResolver(session, logger)
        self.shows = ShowManager(session, logger)

    def create(
        self,
        request: ShowRequest,
        actor: Optional[Actor],
        check_duplicates: bool = True,
    ) -> AssembledShow:
        """
        Create a show, resolving (and possibly creating) its venues and artists.

        Args:
            request: Show fields and entity references
            actor: Submitter; None for discovery imports
            check_duplicates: Raise when a headliner is already booked at
                one of the venues on the same day

        Returns:
            AssembledShow

        Raises:
            ValidationError: Incomplete request or unresolvable entity spec
            NotFoundError: Unknown venue or artist id
            DuplicateShowError: Headliner already booked (check_duplicates)
        """
        request.validate()
        is_admin = bool(actor and actor.is_admin)
        submitter_id = actor.user_id if actor else None

        venue_resolutions = [
            self.resolver.resolve_venue(spec, is_admin=is_admin, submitted_by=submitter_id)
            for spec in request.venues
        ]
        billing = billing_for(request.artists)
        artist_resolutions = [self.resolver.resolve_artist(spec) for spec, _ in billing]

        venues = [r.entity for r in venue_resolutions]
        bill = [
            (resolution.entity, set_type)
            for resolution, (_, set_type) in zip(artist_resolutions, billing)
        ]

        if check_duplicates:
            self._check_headliner_conflicts(bill, venues, request.event_date)

        status = request.status or initial_status(
            request.is_private, is_admin, all(v.verified for v in venues)
        )
        first_venue = venues[0]
        show = self.shows.create(
            {
                "title": request.title,
                "event_date": request.event_date,
                "city": request.city or first_venue.city,
                "state": request.state or first_venue.state,
                "price": request.price,
                "age_requirement": request.age_requirement,
                "description": request.description,
                "status": status,
                "submitted_by": submitter_id,
                "is_sold_out": request.is_sold_out,
                "is_cancelled": request.is_cancelled,
                "source": request.source,
                "source_venue": request.source_venue,
                "source_event_id": request.source_event_id,
                "scraped_at": request.scraped_at,
                "duplicate_of_show_id": request.duplicate_of_show_id,
            }
        )
        self.shows.set_venues(show, venues)
        self.shows.set_artists(show, bill)
        self.shows.assign_slug(show)

        safe_logger(self.logger).log_operation(
            "show_assembled",
            {
                "show_id": show.id,
                "status": show.status.value,
                "source": show.source.value,
                "new_venues": sum(r.was_created for r in venue_resolutions),
                "new_artists": sum(r.was_created for r in artist_resolutions),
            },
        )
        return AssembledShow(show, venue_resolutions, artist_resolutions)

    def update(
        self,
        show: Show,
        updates: Mapping[str, Any],
        actor: Optional[Actor],
        venues: Optional[Sequence[VenueSpec]] = None,
        artists: Optional[Sequence[ArtistSpec]] = None,
    ) -> List[str]:
        """
        Update a show's fields and, when given, replace its venues or bill.

        A non-None empty list is rejected: a show never loses its last
        venue or artist. The slug is regenerated when the date, venues or
        bill change.
        """
        is_admin = bool(actor and actor.is_admin)
        submitter_id = actor.user_id if actor else None

        changed = self.shows.update_fields(show, dict(updates)) if updates else []

        if venues is not None:
            if not venues:
                raise ValidationError("At least one venue is required")
            resolved = [
                self.resolver.resolve_venue(spec, is_admin=is_admin, submitted_by=submitter_id).entity
                for spec in venues
            ]
            self.shows.set_venues(show, resolved)
            changed.append("venues")

        if artists is not None:
            if not artists:
                raise ValidationError("At least one artist is required")
            billing = billing_for(artists)
            bill = [
                (self.resolver.resolve_artist(spec).entity, set_type)
                for spec, set_type in billing
            ]
            self.shows.set_artists(show, bill)
            changed.append("artists")

        if {"event_date", "venues", "artists"} & set(changed):
            self._check_headliner_conflicts(
                [(link.artist, link.set_type) for link in show.artist_links],
                list(show.venues),
                show.event_date,
                exclude_show_id=show.id,
            )
            self.shows.assign_slug(show)

        return changed

    def _check_headliner_conflicts(
        self,
        bill: Sequence[Tuple[Artist, SetType]],
        venues: Sequence[Venue],
        event_date: datetime,
        exclude_show_id: Optional[int] = None,
    ) -> None:
        headliners = [artist for artist, set_type in bill if set_type == SetType.HEADLINER]
        for artist in headliners:
            for venue in venues:
                existing = self.shows.find_headliner_show(
                    artist.name,
                    venue.name,
                    event_date,
                    exclude_statuses=NON_BLOCKING_STATUSES,
                    exclude_show_id=exclude_show_id,
                )
                if existing is not None:
                    raise DuplicateShowError(artist.name, venue.name, existing.id)


AssemblerFactory = Callable[[Session, Optional[ShowbookLogger]], ShowAssembler]


def catalog_assembler_factory(
    resolver_factory: Optional[ResolverFactory] = None,
) -> AssemblerFactory:
    """Build CatalogShowAssemblers that resolve through ``resolver_factory``."""
    resolver_factory = resolver_factory or CatalogResolver

    def build(session: Session, logger: Optional[ShowbookLogger] = None) -> ShowAssembler:
        resolver = resolver_factory(session, logger)
        return CatalogShowAssembler(session, logger, resolver=resolver)

    return build
