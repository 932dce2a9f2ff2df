#!/usr/bin/env python3
"""
discovery.py
--------------------
Ingestion of events scraped from venue websites.

The scraper emits a JSON list of DiscoveredEvent records, keyed by the
venue's own event id and the venue slug. Each event is classified and,
when new, turned into a pending show. Discovery never approves anything;
an admin reviews every imported show.

Classification order (first match wins):
    1. error           - missing id or venue slug
    2. rejected        - venue slug unknown
    3. duplicate       - already imported (same slug + event id); with
                         allow_updates the mutable fields are refreshed
                         instead and the event counts as updated
    4. rejected        - an admin already rejected a show at this venue
                         on this UTC day
    5. pending_review  - same headliner at the same venue on the same UTC
                         day; the show is created anyway and linked to
                         the suspected original
    6. imported        - everything else
Anything unexpected while handling an event is an error for that event
only.

Every event runs in its own transaction. In a dry run the same work is
done and then rolled back, so the counts describe what a real run would
do.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

# --- Third party imports ---
from sqlalchemy.orm import Session

# --- Local imports ---
from showbook.core.config import ShowbookConfig
from showbook.core.exceptions import ValidationError
from showbook.core.logging_manager import ShowbookLogger, safe_logger
from showbook.core.validators import DataValidator
from showbook.database.manager import ShowbookDB
from showbook.database.managers import ShowManager, VenueManager
from showbook.database.models import Show, ShowSource, ShowStatus, Venue, utc_now
from showbook.utils.parsers import (
    build_event_description,
    parse_artists_from_title,
    parse_event_date,
)
from .assembler import AssemblerFactory, ShowRequest, catalog_assembler_factory
from .events import ArtistCreatedEvent, emit
from .resolver import ArtistSpec, VenueSpec

# Suspected duplicates never match shows in these statuses
_NON_DUPLICATE_STATUSES = (ShowStatus.REJECTED, ShowStatus.PRIVATE)


class DiscoveryStatus(str, Enum):
    IMPORTED = "imported"
    UPDATED = "updated"
    DUPLICATE = "duplicate"
    REJECTED = "rejected"
    PENDING_REVIEW = "pending_review"
    ERROR = "error"


@dataclass
class DiscoveredEvent:
    """
    One scraped event.

    Attributes:
        external_id: The venue's own id for the event
        venue_slug: Catalog slug of the venue ("valley-bar")
        title: Event title, usually the bill
        date: "YYYY-MM-DD" or RFC3339
        show_time / doors_time: Local times as printed ("7:00 pm")
        artists: Bill in order; empty means split the title
    """

    external_id: Optional[str]
    venue_slug: Optional[str]
    title: str = ""
    date: Optional[str] = None
    venue_name: Optional[str] = None
    show_time: Optional[str] = None
    doors_time: Optional[str] = None
    ticket_url: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[float] = None
    is_sold_out: bool = False
    is_cancelled: bool = False
    artists: List[str] = field(default_factory=list)
    scraped_at: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DiscoveredEvent":
        """Build from scraper JSON (camelCase) or snake_case keys."""

        def pick(*keys: str) -> Any:
            for key in keys:
                if data.get(key) not in (None, ""):
                    return data[key]
            return None

        external_id = pick("external_id", "id")
        return cls(
            external_id=str(external_id) if external_id is not None else None,
            venue_slug=pick("venue_slug", "venueSlug"),
            title=str(pick("title") or "").strip(),
            date=pick("date"),
            venue_name=pick("venue", "venue_name"),
            show_time=pick("show_time", "showTime"),
            doors_time=pick("doors_time", "doorsTime"),
            ticket_url=pick("ticket_url", "ticketUrl"),
            image_url=pick("image_url", "imageUrl"),
            price=DataValidator.normalize_price(pick("price")),
            is_sold_out=bool(DataValidator.normalize_bool(pick("is_sold_out", "isSoldOut"))),
            is_cancelled=bool(
                DataValidator.normalize_bool(pick("is_cancelled", "isCancelled"))
            ),
            artists=[str(a).strip() for a in (pick("artists") or []) if str(a).strip()],
            scraped_at=pick("scraped_at", "scrapedAt"),
        )

    @property
    def key(self) -> Tuple[Optional[str], Optional[str]]:
        return self.external_id, self.venue_slug


def events_from_payload(payload: Any) -> List[DiscoveredEvent]:
    """
    Read scraper output: a list of events, or a mapping of venue slug to
    a list of events. In the mapping form the key fills in a missing
    venue slug.

    Raises:
        ValidationError: Any other shape
    """
    if isinstance(payload, dict):
        items: List[Any] = []
        for venue_slug, venue_events in payload.items():
            if not isinstance(venue_events, list):
                raise ValidationError("Discovery payload values must be lists of events")
            items.extend(
                {"venueSlug": venue_slug, **item} if isinstance(item, dict) else item
                for item in venue_events
            )
    elif isinstance(payload, list):
        items = payload
    else:
        raise ValidationError("Discovery payload must be a list or a mapping of lists")

    if not all(isinstance(item, dict) for item in items):
        raise ValidationError("Every discovered event must be a mapping")
    return [DiscoveredEvent.from_mapping(item) for item in items]


@dataclass
class EventStatus:
    exists: bool
    show_id: Optional[int] = None
    status: Optional[str] = None


@dataclass
class EventOutcome:
    """How one discovered event was handled."""

    external_id: Optional[str]
    venue_slug: Optional[str]
    title: str
    status: DiscoveryStatus
    message: str
    show_id: Optional[int] = None
    duplicate_of_show_id: Optional[int] = None
    changed_fields: List[str] = field(default_factory=list)


@dataclass
class DiscoveryResult:
    """Counts, one message per event, and per-event detail."""

    dry_run: bool = False
    total: int = 0
    imported: int = 0
    updated: int = 0
    duplicates: int = 0
    rejected: int = 0
    pending_review: int = 0
    errors: int = 0
    messages: List[str] = field(default_factory=list)
    events: List[EventOutcome] = field(default_factory=list)

    def record(self, outcome: EventOutcome) -> None:
        self.events.append(outcome)
        self.messages.append(outcome.message)
        if outcome.status is DiscoveryStatus.IMPORTED:
            self.imported += 1
        elif outcome.status is DiscoveryStatus.UPDATED:
            self.updated += 1
        elif outcome.status is DiscoveryStatus.DUPLICATE:
            self.duplicates += 1
        elif outcome.status is DiscoveryStatus.REJECTED:
            self.rejected += 1
        elif outcome.status is DiscoveryStatus.PENDING_REVIEW:
            self.pending_review += 1
        else:
            self.errors += 1

    def as_dict(self) -> Dict[str, Any]:
        return {
            "dry_run": self.dry_run,
            "total": self.total,
            "imported": self.imported,
            "updated": self.updated,
            "duplicates": self.duplicates,
            "rejected": self.rejected,
            "pending_review": self.pending_review,
            "errors": self.errors,
            "messages": list(self.messages),
        }


class DiscoveryEngine(ABC):
    """Turns scraped events into catalog shows."""

    @abstractmethod
    def check_events(
        self, keys: Sequence[Tuple[str, str]]
    ) -> Dict[str, EventStatus]: ...

    @abstractmethod
    def import_events(
        self,
        events: Sequence[DiscoveredEvent],
        dry_run: bool = False,
        allow_updates: bool = False,
    ) -> DiscoveryResult: ...


class DiscoveryImporter(DiscoveryEngine):
    """
    Discovery engine over a ShowbookDB.

    Attributes:
        db: Database; one transaction per event
        config: Batch limits and state timezones
        logger: Component logger ("discovery")
        assembler_factory: Builds the assembler that creates imported shows
    """

    def __init__(
        self,
        db: ShowbookDB,
        config: Optional[ShowbookConfig] = None,
        logger: Optional[ShowbookLogger] = None,
        assembler_factory: Optional[AssemblerFactory] = None,
    ) -> None:
        self.db = db
        self.config = config or ShowbookConfig()
        self.logger = safe_logger(logger).child("discovery")
        self.assembler_factory = assembler_factory or catalog_assembler_factory()

    def check_events(
        self, keys: Sequence[Tuple[str, str]]
    ) -> Dict[str, EventStatus]:
        """
        Report which (external_id, venue_slug) pairs were already imported.

        Raises:
            ValidationError: More keys than the discovery_check limit
        """
        limit = self.config.limits.discovery_check
        if len(keys) > limit:
            raise ValidationError(f"Maximum {limit} events can be checked at once")

        statuses: Dict[str, EventStatus] = {}
        with self.db.session_scope(dry_run=True) as session:
            shows = ShowManager(session, self.db.logger)
            for external_id, venue_slug in keys:
                if not external_id or not venue_slug:
                    continue
                show = shows.find_by_source(venue_slug, str(external_id))
                if show is None:
                    statuses[str(external_id)] = EventStatus(exists=False)
                else:
                    statuses[str(external_id)] = EventStatus(
                        exists=True, show_id=show.id, status=show.status.value
                    )
        return statuses

    def import_events(
        self,
        events: Sequence[DiscoveredEvent],
        dry_run: bool = False,
        allow_updates: bool = False,
    ) -> DiscoveryResult:
        """
        Classify and import scraped events, one transaction each.

        Raises:
            ValidationError: More events than the discovery_import limit
        """
        limit = self.config.limits.discovery_import
        if len(events) > limit:
            raise ValidationError(f"Maximum {limit} events can be imported at once")

        result = DiscoveryResult(dry_run=dry_run, total=len(events))
        for event in events:
            try:
                with self.db.session_scope(dry_run=dry_run) as session:
                    outcome = self._import_event(session, event, dry_run, allow_updates)
            except Exception as e:
                self.logger.log_warning(
                    "discovery_event_failed",
                    {
                        "external_id": event.external_id,
                        "venue_slug": event.venue_slug,
                        "error": f"{type(e).__name__}: {e}",
                    },
                )
                outcome = EventOutcome(
                    event.external_id,
                    event.venue_slug,
                    event.title,
                    DiscoveryStatus.ERROR,
                    f"ERROR: {event.title or event.external_id}: {e}",
                )
            result.record(outcome)

        self.logger.log_operation(
            "discovery_import_complete",
            {key: value for key, value in result.as_dict().items() if key != "messages"},
        )
        return result

    # ---- Per-event ----
    def _import_event(
        self,
        session: Session,
        event: DiscoveredEvent,
        dry_run: bool,
        allow_updates: bool,
    ) -> EventOutcome:
        def outcome(status: DiscoveryStatus, message: str, **extra: Any) -> EventOutcome:
            return EventOutcome(
                event.external_id, event.venue_slug, event.title, status, message, **extra
            )

        if not event.external_id or not event.venue_slug:
            return outcome(
                DiscoveryStatus.ERROR,
                f"ERROR: Missing required fields (id={event.external_id or ''}, "
                f"venue_slug={event.venue_slug or ''})",
            )

        venue = VenueManager(session, self.db.logger).get_by_slug(event.venue_slug)
        if venue is None:
            return outcome(
                DiscoveryStatus.REJECTED,
                f"REJECTED: {event.title}: unknown venue slug '{event.venue_slug}'",
            )

        shows = ShowManager(session, self.db.logger)
        event_date = parse_event_date(
            event.date, event.show_time, self.config.timezone_for_state(venue.state)
        )
        when = f"{venue.name} on {event_date.strftime('%Y-%m-%d %H:%M')}"

        existing = shows.find_by_source(event.venue_slug, event.external_id)
        if existing is not None:
            if not allow_updates:
                return outcome(
                    DiscoveryStatus.DUPLICATE,
                    f"DUPLICATE: {event.title} (ID: {event.external_id}) already "
                    f"imported as show #{existing.id}",
                    show_id=existing.id,
                )
            changed = self._refresh(shows, existing, event, event_date)
            verb = "WOULD UPDATE" if dry_run else "UPDATED"
            detail = ", ".join(changed) if changed else "no changes"
            return outcome(
                DiscoveryStatus.UPDATED,
                f"{verb}: {event.title} (show #{existing.id}): {detail}",
                show_id=existing.id,
                changed_fields=changed,
            )

        rejected = shows.find_rejected_on_day(venue, event_date)
        if rejected is not None:
            return outcome(
                DiscoveryStatus.REJECTED,
                f"REJECTED: {event.title} matches previously rejected show "
                f"#{rejected.id} at {venue.name} on {event_date.strftime('%Y-%m-%d')}",
            )

        artist_names = event.artists or parse_artists_from_title(event.title)
        duplicate = None
        if artist_names:
            duplicate = shows.find_headliner_show(
                artist_names[0],
                venue.name,
                event_date,
                exclude_statuses=_NON_DUPLICATE_STATUSES,
            )

        show = self._create_show(session, event, venue, event_date, artist_names, duplicate)

        if duplicate is not None:
            verb = "WOULD FLAG FOR REVIEW" if dry_run else "FLAGGED FOR REVIEW"
            return outcome(
                DiscoveryStatus.PENDING_REVIEW,
                f"{verb}: {event.title} at {when} "
                f"(potential duplicate of show #{duplicate.id}: {duplicate.title})",
                show_id=None if dry_run else show.id,
                duplicate_of_show_id=duplicate.id,
            )

        verb = "WOULD IMPORT" if dry_run else "IMPORTED"
        return outcome(
            DiscoveryStatus.IMPORTED,
            f"{verb}: {event.title} at {when}",
            show_id=None if dry_run else show.id,
        )

    def _create_show(
        self,
        session: Session,
        event: DiscoveredEvent,
        venue: Venue,
        event_date: datetime,
        artist_names: Iterable[str],
        duplicate: Optional[Show],
    ) -> Show:
        request = ShowRequest(
            title=event.title,
            event_date=event_date,
            venues=[VenueSpec(id=venue.id)],
            artists=[
                ArtistSpec(name=name, position=position)
                for position, name in enumerate(artist_names)
            ],
            city=venue.city,
            state=venue.state,
            price=event.price,
            description=build_event_description(
                event.doors_time, event.show_time, event.ticket_url
            ),
            is_sold_out=event.is_sold_out,
            is_cancelled=event.is_cancelled,
            status=ShowStatus.PENDING,
            source=ShowSource.DISCOVERY,
            source_venue=event.venue_slug,
            source_event_id=event.external_id,
            scraped_at=_scraped_at(event.scraped_at),
            duplicate_of_show_id=duplicate.id if duplicate is not None else None,
        )
        assembled = self.assembler_factory(session, self.db.logger).create(
            request, actor=None, check_duplicates=False
        )
        for artist in assembled.new_artists:
            emit(session, ArtistCreatedEvent(artist.id, artist.name))
        return assembled.show

    @staticmethod
    def _refresh(
        shows: ShowManager, show: Show, event: DiscoveredEvent, event_date: datetime
    ) -> List[str]:
        """Apply the scraper's current sold-out, cancelled, price, time and description."""
        updates: Dict[str, Any] = {"event_date": event_date}
        if event.price is not None:
            updates["price"] = event.price
        description = build_event_description(
            event.doors_time, event.show_time, event.ticket_url
        )
        if description:
            updates["description"] = description
        changed = shows.update_fields(show, updates)

        for flag in ("is_sold_out", "is_cancelled"):
            value = getattr(event, flag)
            if getattr(show, flag) != value:
                setattr(show, flag, value)
                changed.append(flag)
        if event.scraped_at:
            show.scraped_at = _scraped_at(event.scraped_at)
        shows.session.flush()
        return changed


def _scraped_at(value: Optional[str]) -> datetime:
    """Scrape timestamp, or now when missing or unreadable."""
    try:
        parsed = DataValidator.normalize_datetime(value)
    except ValidationError:
        parsed = None
    return parsed or utc_now()
