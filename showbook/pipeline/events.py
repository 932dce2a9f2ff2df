#!/usr/bin/env python3
"""
events.py
--------------------
Post-commit side effects for the Showbook pipeline.

Pipeline code never calls the audit log, the notifier or music discovery
directly. It queues events on the SQLAlchemy session with ``emit()``;
ShowbookDB.session_scope hands the queue to the EventBus only after the
transaction commits, and drops it on rollback. A failing subscriber is
logged and skipped: its error never reaches the caller and never undoes
the committed work.

Events carry plain snapshots (ShowSummary, VenueSummary) rather than ORM
objects so subscribers never touch a closed session.

Usage:
    emit(session, AuditEvent(actor.user_id, "approve_show", "show", show.id))
    emit(session, NotificationEvent("notify_show_approved", {"show": ShowSummary.from_show(show)}))

    bus = EventBus(audit_log=LoggingAuditLog(logger), notifier=LoggingNotifier(logger))
    db = ShowbookDB(db_path, alembic_dir, event_bus=bus)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Union

# --- Third party imports ---
from sqlalchemy.orm import Session

# --- Local imports ---
from showbook.core.logging_manager import ShowbookLogger, safe_logger

SESSION_EVENTS_KEY = "events"


# ----- Snapshots -----
@dataclass(frozen=True)
class VenueSummary:
    id: int
    name: str
    city: str
    state: str
    verified: bool
    slug: Optional[str] = None

    @classmethod
    def from_venue(cls, venue: Any) -> "VenueSummary":
        return cls(
            id=venue.id,
            name=venue.name,
            city=venue.city,
            state=venue.state,
            verified=bool(venue.verified),
            slug=venue.slug,
        )


@dataclass(frozen=True)
class ShowSummary:
    id: int
    title: str
    slug: Optional[str]
    event_date: datetime
    status: str
    submitted_by: Optional[int]
    venues: List[str] = field(default_factory=list)
    artists: List[str] = field(default_factory=list)

    @classmethod
    def from_show(cls, show: Any) -> "ShowSummary":
        return cls(
            id=show.id,
            title=show.title,
            slug=show.slug,
            event_date=show.event_date,
            status=show.status.value,
            submitted_by=show.submitted_by,
            venues=[venue.name for venue in show.venues],
            artists=[artist.name for artist in show.artists],
        )


# ----- Events -----
@dataclass(frozen=True)
class AuditEvent:
    """A moderation action to record in the audit log."""

    actor_id: Optional[int]
    action: str
    entity_type: str
    entity_id: int
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationEvent:
    """A call to make on the Notifier: ``method`` with keyword ``payload``."""

    method: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ArtistCreatedEvent:
    """A newly created artist to enrich with music links."""

    artist_id: int
    name: str


PipelineEvent = Union[AuditEvent, NotificationEvent, ArtistCreatedEvent]


def emit(session: Session, event: PipelineEvent) -> None:
    """Queue an event for dispatch once the session's transaction commits."""
    session.info.setdefault(SESSION_EVENTS_KEY, []).append(event)


def pending_events(session: Session) -> List[PipelineEvent]:
    """Events queued on the session so far (read-only view for callers/tests)."""
    return list(session.info.get(SESSION_EVENTS_KEY, []))


def take_events(session: Session) -> List[PipelineEvent]:
    """Remove and return the session's queued events."""
    return session.info.pop(SESSION_EVENTS_KEY, [])


# ----- Subscriber interfaces -----
class AuditLog(ABC):
    """Records moderation actions."""

    @abstractmethod
    def log_action(
        self,
        actor_id: Optional[int],
        action: str,
        entity_type: str,
        entity_id: int,
        metadata: Dict[str, Any],
    ) -> None: ...


class Notifier(ABC):
    """Outbound notification sink (chat, email, ...)."""

    @abstractmethod
    def notify_show_approved(self, show: ShowSummary) -> None: ...

    @abstractmethod
    def notify_show_rejected(self, show: ShowSummary, reason: str) -> None: ...

    @abstractmethod
    def notify_new_show(self, show: ShowSummary, submitter_id: Optional[int]) -> None: ...

    @abstractmethod
    def notify_new_venue(self, venue: VenueSummary, submitter_id: Optional[int]) -> None: ...

    @abstractmethod
    def notify_pending_venue_edit(
        self,
        edit_id: int,
        venue: VenueSummary,
        submitter_id: int,
        changes: Dict[str, Any],
    ) -> None: ...


class MusicDiscovery(ABC):
    """Looks up music links for newly created artists."""

    @abstractmethod
    def discover_music_for_artist(self, artist_id: int, name: str) -> None: ...


# ----- Shipped subscribers -----
class LoggingAuditLog(AuditLog):
    """Writes audit entries to the ``audit`` component log."""

    def __init__(self, logger: Optional[ShowbookLogger] = None) -> None:
        self.logger = safe_logger(logger).child("audit")

    def log_action(self, actor_id, action, entity_type, entity_id, metadata) -> None:
        self.logger.log_operation(
            action,
            {
                "actor_id": actor_id,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "metadata": metadata,
            },
        )


class LoggingNotifier(Notifier):
    """Writes notifications to the ``notifications`` component log."""

    def __init__(self, logger: Optional[ShowbookLogger] = None) -> None:
        self.logger = safe_logger(logger).child("notifications")

    def notify_show_approved(self, show: ShowSummary) -> None:
        self.logger.log_info(f"Show approved: {show.title}", _summary(show))

    def notify_show_rejected(self, show: ShowSummary, reason: str) -> None:
        self.logger.log_info(
            f"Show rejected: {show.title}", {**_summary(show), "reason": reason}
        )

    def notify_new_show(self, show: ShowSummary, submitter_id: Optional[int]) -> None:
        self.logger.log_info(
            f"New show submitted: {show.title}",
            {**_summary(show), "submitter_id": submitter_id},
        )

    def notify_new_venue(self, venue: VenueSummary, submitter_id: Optional[int]) -> None:
        self.logger.log_info(
            f"New venue: {venue.name} ({venue.city}, {venue.state})",
            {**asdict(venue), "submitter_id": submitter_id},
        )

    def notify_pending_venue_edit(self, edit_id, venue, submitter_id, changes) -> None:
        self.logger.log_info(
            f"Venue edit awaiting review: {venue.name}",
            {
                "edit_id": edit_id,
                "venue_id": venue.id,
                "submitter_id": submitter_id,
                "fields": sorted(changes),
            },
        )


class NullMusicDiscovery(MusicDiscovery):
    def discover_music_for_artist(self, artist_id: int, name: str) -> None:
        pass


def _summary(show: ShowSummary) -> Dict[str, Any]:
    details = asdict(show)
    details["event_date"] = show.event_date.isoformat()
    return details


# ----- Bus -----
class EventBus:
    """
    Routes committed pipeline events to their subscribers.

    Attributes:
        audit_log: Receives AuditEvent
        notifier: Receives NotificationEvent
        music_discovery: Receives ArtistCreatedEvent
        logger: Where subscriber failures are reported
    """

    def __init__(
        self,
        audit_log: Optional[AuditLog] = None,
        notifier: Optional[Notifier] = None,
        music_discovery: Optional[MusicDiscovery] = None,
        logger: Optional[ShowbookLogger] = None,
    ) -> None:
        self.audit_log = audit_log
        self.notifier = notifier
        self.music_discovery = music_discovery
        self.logger = logger

    @classmethod
    def with_logging(cls, logger: Optional[ShowbookLogger] = None) -> "EventBus":
        """Bus wired to the shipped logging subscribers."""
        return cls(
            audit_log=LoggingAuditLog(logger),
            notifier=LoggingNotifier(logger),
            music_discovery=NullMusicDiscovery(),
            logger=logger,
        )

    def dispatch(self, events: Iterable[PipelineEvent]) -> int:
        """
        Deliver events in order.

        Returns:
            Number of events whose subscriber call failed
        """
        failures = 0
        for event in events:
            try:
                self._deliver(event)
            except Exception as e:
                failures += 1
                safe_logger(self.logger).log_error(
                    e,
                    {
                        "operation": "dispatch_event",
                        "event_type": type(event).__name__,
                    },
                )
        return failures

    def _deliver(self, event: PipelineEvent) -> None:
        if isinstance(event, AuditEvent):
            if self.audit_log is not None:
                self.audit_log.log_action(
                    event.actor_id,
                    event.action,
                    event.entity_type,
                    event.entity_id,
                    dict(event.metadata),
                )
        elif isinstance(event, NotificationEvent):
            if self.notifier is not None:
                getattr(self.notifier, event.method)(**event.payload)
        elif isinstance(event, ArtistCreatedEvent):
            if self.music_discovery is not None:
                self.music_discovery.discover_music_for_artist(event.artist_id, event.name)
        else:
            raise TypeError(f"Unknown pipeline event: {event!r}")
