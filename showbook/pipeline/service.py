#!/usr/bin/env python3
"""
service.py
--------------------
ShowService: the public entry point of the submission and moderation
pipeline.

Every method is one unit of work. It authorizes the actor, opens a
ShowbookDB.session_scope, delegates to the resolver, assembler,
lifecycle or edit queue, and queues audit and notification events that
the database hands to the EventBus once the transaction commits.

Results are returned as snapshots (ShowSummary, VenueSummary) or as
objects whose scalar fields were loaded before the session closed.

Usage:
    service = ShowService(db, config=config, logger=logger)
    summary = service.create_show(request, Actor(user_id=7))
    service.approve_show(summary.id, Actor.admin(1), verify_venues=True)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

# --- Local imports ---
from showbook.core.config import ShowbookConfig
from showbook.core.exceptions import ValidationError
from showbook.core.logging_manager import ShowbookLogger, safe_logger
from showbook.database.manager import ShowbookDB
from showbook.database.models import PendingVenueEdit
from .actor import Actor, require_admin, require_identity, require_owner_or_admin
from .assembler import AssemblerFactory, ShowRequest, catalog_assembler_factory
from .codec import MarkdownShowCodec, ShowCodec
from .discovery import DiscoveredEvent, DiscoveryImporter, DiscoveryResult, EventStatus
from .edit_queue import EditOutcome, EditQueueFactory, VenueEditQueue
from .events import AuditEvent, NotificationEvent, ShowSummary, VenueSummary, emit
from .importer import BulkConfirmResult, BulkPreview, ConfirmResult, ImportPreview, ShowImporter
from .lifecycle import LifecycleFactory, ShowAction, ShowLifecycle
from .resolver import ArtistSpec, CatalogResolver, ResolverFactory, VenueSpec

Content = Union[bytes, str]


class ShowService:
    """
    Façade over the pipeline components.

    Attributes:
        db: Database with an event bus attached
        codec: Markdown import/export format
        config: Batch limits and timezones
        importer: Markdown preview/confirm orchestrator
        discovery: Scraped event ingestion

    Each pipeline component is built per transaction by a factory taking
    (session, logger); the defaults build the catalog-backed classes.
    """

    def __init__(
        self,
        db: ShowbookDB,
        codec: Optional[ShowCodec] = None,
        config: Optional[ShowbookConfig] = None,
        logger: Optional[ShowbookLogger] = None,
        resolver_factory: Optional[ResolverFactory] = None,
        assembler_factory: Optional[AssemblerFactory] = None,
        lifecycle_factory: Optional[LifecycleFactory] = None,
        edit_queue_factory: Optional[EditQueueFactory] = None,
    ) -> None:
        self.db = db
        self.codec = codec or MarkdownShowCodec()
        self.config = config or ShowbookConfig()
        self.logger = safe_logger(logger).child("service")
        self.resolver_factory = resolver_factory or CatalogResolver
        self.assembler_factory = assembler_factory or catalog_assembler_factory(
            self.resolver_factory
        )
        self.lifecycle_factory = lifecycle_factory or ShowLifecycle
        self.edit_queue_factory = edit_queue_factory or VenueEditQueue
        self.importer = ShowImporter(
            db,
            self.codec,
            self.config.limits,
            logger,
            resolver_factory=self.resolver_factory,
            assembler_factory=self.assembler_factory,
        )
        self.discovery = DiscoveryImporter(
            db, self.config, logger, assembler_factory=self.assembler_factory
        )

    # -------------------------------------------------------------------------
    # Shows
    # -------------------------------------------------------------------------

    def create_show(
        self, request: Union[ShowRequest, Mapping[str, Any]], actor: Optional[Actor]
    ) -> ShowSummary:
        """
        Submit a show.

        Admins with only verified venues publish immediately; everyone else
        lands in the review queue (or private, when asked).

        Raises:
            UnauthorizedError, ValidationError, NotFoundError,
            DuplicateShowError
        """
        actor = require_identity(actor)
        if not isinstance(request, ShowRequest):
            request = ShowRequest.from_mapping(request)

        with self.db.session_scope() as session:
            assembled = self.assembler_factory(session, self.db.logger).create(request, actor)
            assembled.emit_created(session, actor.user_id, discover_music=True)
            summary = ShowSummary.from_show(assembled.show)
        return summary

    def update_show(
        self,
        show_id: int,
        updates: Mapping[str, Any],
        actor: Optional[Actor],
        venues: Optional[Sequence[Union[VenueSpec, Mapping[str, Any]]]] = None,
        artists: Optional[Sequence[Union[ArtistSpec, Mapping[str, Any]]]] = None,
    ) -> ShowSummary:
        """Edit a show's fields; a non-None venue or artist list replaces the old one."""
        with self.db.session_scope() as session:
            show = self.db.shows.require(show_id)
            actor = require_owner_or_admin(actor, show.submitted_by, "edit this show")
            self.assembler_factory(session, self.db.logger).update(
                show,
                updates,
                actor,
                venues=_venue_specs(venues),
                artists=_artist_specs(artists),
            )
            summary = ShowSummary.from_show(show)
        return summary

    def delete_show(
        self,
        show_id: int,
        actor: Optional[Actor],
        hard: bool = False,
        reason: Optional[str] = None,
    ) -> None:
        """Soft delete a show, or remove it with its join rows when ``hard``."""
        with self.db.session_scope() as session:
            show = self.db.shows.require(show_id)
            actor = require_owner_or_admin(actor, show.submitted_by, "delete this show")
            if hard:
                self.db.shows.hard_delete(show)
            else:
                self.db.shows.soft_delete(show, deleted_by=actor.user_id, reason=reason)
            emit(
                session,
                AuditEvent(
                    actor.user_id,
                    "delete_show",
                    "show",
                    show_id,
                    {"hard": hard, "reason": reason},
                ),
            )

    def approve_show(
        self, show_id: int, actor: Optional[Actor], verify_venues: bool = False
    ) -> ShowSummary:
        """
        Approve a pending show.

        With ``verify_venues`` every unverified venue of the show is
        verified in the same transaction; each one gets its own audit entry.
        """
        with self.db.session_scope() as session:
            show = self.db.shows.require(show_id)
            result = self.lifecycle_factory(session, self.db.logger).apply(
                show, ShowAction.APPROVE, actor, verify_venues=verify_venues
            )
            summary = ShowSummary.from_show(show)

            emit(
                session,
                AuditEvent(
                    actor.user_id,
                    "approve_show",
                    "show",
                    show.id,
                    {"verified_venues": list(result.verified_venue_ids)},
                ),
            )
            for venue_id in result.verified_venue_ids:
                emit(
                    session,
                    AuditEvent(
                        actor.user_id,
                        "verify_venue",
                        "venue",
                        venue_id,
                        {"via_show_id": show.id},
                    ),
                )
            emit(session, NotificationEvent("notify_show_approved", {"show": summary}))
        return summary

    def reject_show(
        self, show_id: int, actor: Optional[Actor], reason: Optional[str]
    ) -> ShowSummary:
        """Reject a pending show; the reason is stored and sent to the submitter."""
        with self.db.session_scope() as session:
            show = self.db.shows.require(show_id)
            self.lifecycle_factory(session, self.db.logger).apply(
                show, ShowAction.REJECT, actor, reason=reason
            )
            summary = ShowSummary.from_show(show)
            emit(
                session,
                AuditEvent(
                    actor.user_id,
                    "reject_show",
                    "show",
                    show.id,
                    {"reason": show.rejection_reason},
                ),
            )
            emit(
                session,
                NotificationEvent(
                    "notify_show_rejected",
                    {"show": summary, "reason": show.rejection_reason},
                ),
            )
        return summary

    def publish_show(self, show_id: int, actor: Optional[Actor]) -> ShowSummary:
        return self._transition(show_id, ShowAction.PUBLISH, actor)

    def unpublish_show(self, show_id: int, actor: Optional[Actor]) -> ShowSummary:
        return self._transition(show_id, ShowAction.UNPUBLISH, actor)

    def make_private_show(self, show_id: int, actor: Optional[Actor]) -> ShowSummary:
        return self._transition(show_id, ShowAction.MAKE_PRIVATE, actor)

    def set_show_sold_out(
        self, show_id: int, actor: Optional[Actor], value: bool = True
    ) -> ShowSummary:
        return self._set_flag(show_id, actor, "is_sold_out", value)

    def set_show_cancelled(
        self, show_id: int, actor: Optional[Actor], value: bool = True
    ) -> ShowSummary:
        return self._set_flag(show_id, actor, "is_cancelled", value)

    def _transition(
        self, show_id: int, action: ShowAction, actor: Optional[Actor]
    ) -> ShowSummary:
        with self.db.session_scope() as session:
            show = self.db.shows.require(show_id)
            self.lifecycle_factory(session, self.db.logger).apply(show, action, actor)
            summary = ShowSummary.from_show(show)
        return summary

    def _set_flag(
        self, show_id: int, actor: Optional[Actor], flag: str, value: bool
    ) -> ShowSummary:
        with self.db.session_scope() as session:
            show = self.db.shows.require(show_id)
            actor = require_owner_or_admin(actor, show.submitted_by, "update this show")
            setattr(show, flag, bool(value))
            session.flush()
            summary = ShowSummary.from_show(show)

        self.logger.log_operation(
            f"set_{flag}", {"show_id": show_id, "value": bool(value), "actor_id": actor.user_id}
        )
        return summary

    # -------------------------------------------------------------------------
    # Venues
    # -------------------------------------------------------------------------

    def verify_venue(self, venue_id: int, actor: Optional[Actor]) -> VenueSummary:
        """Mark a venue verified. Verifying a verified venue is a no-op."""
        actor = require_admin(actor, "verify venues")
        with self.db.session_scope() as session:
            venue = self.db.venues.require(venue_id)
            if self.db.venues.verify(venue):
                emit(session, AuditEvent(actor.user_id, "verify_venue", "venue", venue.id))
            summary = VenueSummary.from_venue(venue)
        return summary

    def delete_venue(self, venue_id: int, actor: Optional[Actor]) -> None:
        """Delete a venue that no show references."""
        actor = require_admin(actor, "delete venues")
        with self.db.session_scope() as session:
            venue = self.db.venues.require(venue_id)
            name = venue.name
            self.db.venues.delete(venue)
            emit(
                session,
                AuditEvent(actor.user_id, "delete_venue", "venue", venue_id, {"name": name}),
            )

    def list_unverified_venues(
        self, actor: Optional[Actor], limit: int = 50, offset: int = 0
    ) -> Tuple[List[VenueSummary], int]:
        """Unverified venues awaiting an admin, oldest first, with the total."""
        require_admin(actor, "review unverified venues")
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        with self.db.session_scope(dry_run=True):
            venues, total = self.db.venues.list_unverified(limit=limit, offset=offset)
            return [VenueSummary.from_venue(venue) for venue in venues], total

    def propose_venue_edit(
        self, venue_id: int, actor: Optional[Actor], changes: Mapping[str, Any]
    ) -> EditOutcome:
        with self.db.session_scope() as session:
            queue = self.edit_queue_factory(session, self.db.logger)
            return queue.propose_edit(venue_id, actor, changes)

    def approve_venue_edit(self, edit_id: int, actor: Optional[Actor]) -> VenueSummary:
        with self.db.session_scope() as session:
            venue = self.edit_queue_factory(session, self.db.logger).approve_edit(edit_id, actor)
            summary = VenueSummary.from_venue(venue)
        return summary

    def reject_venue_edit(
        self, edit_id: int, actor: Optional[Actor], reason: Optional[str]
    ) -> PendingVenueEdit:
        with self.db.session_scope() as session:
            queue = self.edit_queue_factory(session, self.db.logger)
            return queue.reject_edit(edit_id, actor, reason)

    def cancel_venue_edit(self, edit_id: int, actor: Optional[Actor]) -> None:
        with self.db.session_scope() as session:
            self.edit_queue_factory(session, self.db.logger).cancel_edit(edit_id, actor)

    def get_pending_venue_edit(
        self, venue_id: int, actor: Optional[Actor]
    ) -> Optional[PendingVenueEdit]:
        """The caller's own pending edit for a venue, if any."""
        actor = require_identity(actor)
        with self.db.session_scope() as session:
            queue = self.edit_queue_factory(session, self.db.logger)
            return queue.get_pending_edit_for_venue(venue_id, actor.user_id)

    def list_pending_venue_edits(
        self, actor: Optional[Actor], limit: int = 50, offset: int = 0
    ) -> Tuple[List[PendingVenueEdit], int]:
        require_admin(actor, "review venue edits")
        with self.db.session_scope() as session:
            queue = self.edit_queue_factory(session, self.db.logger)
            return queue.list_pending_edits(limit, offset)

    # -------------------------------------------------------------------------
    # Import / Export
    # -------------------------------------------------------------------------

    def preview_show_import(self, content: Content, actor: Optional[Actor]) -> ImportPreview:
        return self.importer.preview(content, actor)

    def confirm_show_import(self, content: Content, actor: Optional[Actor]) -> ConfirmResult:
        return self.importer.confirm(content, actor)

    def preview_bulk_import(
        self, contents: Sequence[Content], actor: Optional[Actor]
    ) -> BulkPreview:
        return self.importer.preview_bulk(contents, actor)

    def confirm_bulk_import(
        self, contents: Sequence[Content], actor: Optional[Actor]
    ) -> BulkConfirmResult:
        return self.importer.confirm_bulk(contents, actor)

    def export_show(self, show_id: int) -> Tuple[bytes, str]:
        """Markdown content and filename for one show."""
        with self.db.session_scope(dry_run=True):
            return self.codec.export(self.db.shows.require(show_id))

    def export_shows(self, show_ids: Sequence[int]) -> List[Tuple[bytes, str]]:
        """
        Export several shows.

        Raises:
            ValidationError: Empty list or more than the bulk_export limit
            NotFoundError: Any id that is not a live show
        """
        limit = self.config.limits.bulk_export
        if not show_ids:
            raise ValidationError("At least one show is required")
        if len(show_ids) > limit:
            raise ValidationError(f"Maximum {limit} shows can be exported at once")

        with self.db.session_scope(dry_run=True):
            return [self.codec.export(self.db.shows.require(show_id)) for show_id in show_ids]

    # -------------------------------------------------------------------------
    # Discovery
    # -------------------------------------------------------------------------

    def check_events(self, keys: Sequence[Tuple[str, str]]) -> Dict[str, EventStatus]:
        return self.discovery.check_events(keys)

    def import_events(
        self,
        events: Sequence[Union[DiscoveredEvent, Mapping[str, Any]]],
        dry_run: bool = False,
        allow_updates: bool = False,
    ) -> DiscoveryResult:
        parsed = [
            event if isinstance(event, DiscoveredEvent) else DiscoveredEvent.from_mapping(event)
            for event in events
        ]
        return self.discovery.import_events(parsed, dry_run=dry_run, allow_updates=allow_updates)


def _venue_specs(
    items: Optional[Sequence[Union[VenueSpec, Mapping[str, Any]]]],
) -> Optional[List[VenueSpec]]:
    if items is None:
        return None
    return [i if isinstance(i, VenueSpec) else VenueSpec.from_mapping(i) for i in items]


def _artist_specs(
    items: Optional[Sequence[Union[ArtistSpec, Mapping[str, Any]]]],
) -> Optional[List[ArtistSpec]]:
    if items is None:
        return None
    return [i if isinstance(i, ArtistSpec) else ArtistSpec.from_mapping(i) for i in items]
