#!/usr/bin/env python3
"""
importer.py
--------------------
Two-phase markdown import: preview, then confirm.

Preview parses a show file and resolves every venue and artist read-only,
reporting what would be matched or created and anything that blocks the
import. It writes nothing and reserves nothing.

Confirm parses the same content again and does the real work in one
transaction: resolve (creating as needed), assemble, commit. It does not
reuse the preview, so if the catalog changed in between (say another
import created the venue first) confirm simply matches what is there now.
That drift is expected and is never reported as an error.

Bulk variants run each file in its own transaction; one bad file never
blocks the rest.

Usage:
    importer = ShowImporter(db, logger=logger)
    preview = importer.preview(content, actor)
    if preview.can_import:
        result = importer.confirm(content, actor)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

# --- Local imports ---
from showbook.core.config import BatchLimits
from showbook.core.exceptions import ShowbookError, ValidationError
from showbook.core.logging_manager import ShowbookLogger, safe_logger
from showbook.database.manager import ShowbookDB
from showbook.database.managers import ShowManager
from showbook.database.models import SetType, ShowStatus
from .actor import Actor, require_identity
from .assembler import AssemblerFactory, billing_for, catalog_assembler_factory
from .codec import MarkdownShowCodec, ParsedShowImport, ShowCodec
from .events import ShowSummary
from .resolver import CatalogResolver, ResolverFactory

Content = Union[bytes, str]

WARNING_MISSING_DATE = "Missing event date"
WARNING_MISSING_TITLE = "Missing title"
WARNING_NO_VENUES = "No venues specified"
WARNING_NO_ARTISTS = "No artists specified"


@dataclass
class VenueMatchResult:
    name: Optional[str]
    city: Optional[str]
    state: Optional[str]
    existing_id: Optional[int] = None
    will_create: bool = False


@dataclass
class ArtistMatchResult:
    name: Optional[str]
    position: int
    set_type: str
    existing_id: Optional[int] = None
    will_create: bool = False


@dataclass
class ImportPreview:
    """
    What confirming this content would do right now.

    Attributes:
        show: Parsed show fields (title, event_date, city, state, ...)
        venues / artists: Per-entity match results
        warnings: Human-readable problems
        can_import: False when any warning blocks the import
    """

    show: Dict[str, Any]
    venues: List[VenueMatchResult] = field(default_factory=list)
    artists: List[ArtistMatchResult] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    can_import: bool = True

    def block(self, warning: str) -> None:
        self.warnings.append(warning)
        self.can_import = False


@dataclass
class ConfirmResult:
    """A committed import."""

    show: ShowSummary
    new_venue_ids: List[int] = field(default_factory=list)
    new_artist_ids: List[int] = field(default_factory=list)


@dataclass
class BulkPreviewSummary:
    total_shows: int = 0
    new_artists: int = 0
    new_venues: int = 0
    existing_artists: int = 0
    existing_venues: int = 0
    warning_count: int = 0
    can_import_all: bool = True


@dataclass
class BulkPreview:
    previews: List[ImportPreview]
    summary: BulkPreviewSummary


@dataclass
class BulkImportItem:
    success: bool
    show: Optional[ShowSummary] = None
    error: Optional[str] = None


@dataclass
class BulkConfirmResult:
    results: List[BulkImportItem] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for item in self.results if item.success)

    @property
    def error_count(self) -> int:
        return sum(1 for item in self.results if not item.success)


class ShowImporter:
    """
    Preview/confirm orchestrator for single and bulk markdown imports.

    Attributes:
        db: Database providing one transaction per import
        codec: Show file format (markdown by default)
        limits: Batch caps
        logger: Component logger ("importer")
        resolver_factory: Builds the read-only resolver used by previews
        assembler_factory: Builds the assembler used by confirms
    """

    def __init__(
        self,
        db: ShowbookDB,
        codec: Optional[ShowCodec] = None,
        limits: Optional[BatchLimits] = None,
        logger: Optional[ShowbookLogger] = None,
        resolver_factory: Optional[ResolverFactory] = None,
        assembler_factory: Optional[AssemblerFactory] = None,
    ) -> None:
        self.db = db
        self.codec = codec or MarkdownShowCodec()
        self.limits = limits or BatchLimits()
        self.logger = safe_logger(logger).child("importer")
        self.resolver_factory = resolver_factory or CatalogResolver
        self.assembler_factory = assembler_factory or catalog_assembler_factory(
            self.resolver_factory
        )

    # ---- Single ----
    def preview(self, content: Content, actor: Optional[Actor]) -> ImportPreview:
        """
        Dry-run an import.

        Raises:
            UnauthorizedError: No identity
            ParseError: Content is not a show file
        """
        actor = require_identity(actor)
        parsed = self.codec.parse(content)

        with self.db.session_scope(dry_run=True) as session:
            preview = self._build_preview(session, parsed, actor)

        self.logger.log_debug(
            "import_preview",
            {
                "title": parsed.title,
                "can_import": preview.can_import,
                "warnings": len(preview.warnings),
            },
        )
        return preview

    def confirm(self, content: Content, actor: Optional[Actor]) -> ConfirmResult:
        """
        Import a show file in one transaction.

        Admin imports create verified venues. After commit, queues a
        new-show notification and music discovery for each new artist.

        Raises:
            UnauthorizedError: No identity
            ParseError: Content is not a show file
            ValidationError: Missing title, date, venues or artists
            DuplicateShowError: Headliner already booked at the venue that day
        """
        actor = require_identity(actor)
        parsed = self.codec.parse(content)

        with self.db.session_scope() as session:
            assembler = self.assembler_factory(session, self.db.logger)
            assembled = assembler.create(parsed.to_request(), actor)
            assembled.emit_created(session, actor.user_id, discover_music=True)
            result = ConfirmResult(
                show=ShowSummary.from_show(assembled.show),
                new_venue_ids=[venue.id for venue in assembled.new_venues],
                new_artist_ids=[artist.id for artist in assembled.new_artists],
            )

        self.logger.log_operation(
            "import_confirmed",
            {
                "show_id": result.show.id,
                "actor_id": actor.user_id,
                "new_venues": len(result.new_venue_ids),
                "new_artists": len(result.new_artist_ids),
            },
        )
        return result

    # ---- Bulk ----
    def preview_bulk(
        self, contents: Sequence[Content], actor: Optional[Actor]
    ) -> BulkPreview:
        """
        Preview several files; a file that fails to parse becomes a blocked
        preview rather than an error for the batch.
        """
        actor = require_identity(actor)
        self._check_batch(contents)

        previews: List[ImportPreview] = []
        summary = BulkPreviewSummary(total_shows=len(contents))
        for index, content in enumerate(contents, 1):
            try:
                preview = self.preview(content, actor)
            except ShowbookError as e:
                preview = ImportPreview(show={})
                preview.block(f"Show {index}: {e}")

            previews.append(preview)
            for venue in preview.venues:
                if venue.will_create:
                    summary.new_venues += 1
                else:
                    summary.existing_venues += 1
            for artist in preview.artists:
                if artist.will_create:
                    summary.new_artists += 1
                else:
                    summary.existing_artists += 1
            summary.warning_count += len(preview.warnings)
            if not preview.can_import:
                summary.can_import_all = False

        return BulkPreview(previews=previews, summary=summary)

    def confirm_bulk(
        self, contents: Sequence[Content], actor: Optional[Actor]
    ) -> BulkConfirmResult:
        """Confirm several files, one transaction each; failures are per item."""
        actor = require_identity(actor)
        self._check_batch(contents)

        result = BulkConfirmResult()
        for index, content in enumerate(contents, 1):
            try:
                confirmed = self.confirm(content, actor)
            except Exception as e:
                self.logger.log_warning(
                    "bulk_import_item_failed",
                    {"index": index, "error": f"{type(e).__name__}: {e}"},
                )
                result.results.append(BulkImportItem(success=False, error=str(e)))
                continue
            result.results.append(BulkImportItem(success=True, show=confirmed.show))

        self.logger.log_operation(
            "bulk_import_complete",
            {
                "actor_id": actor.user_id,
                "success_count": result.success_count,
                "error_count": result.error_count,
            },
        )
        return result

    # ---- Helpers ----
    def _check_batch(self, contents: Sequence[Content]) -> None:
        if not contents:
            raise ValidationError("At least one show is required")
        if len(contents) > self.limits.bulk_import:
            raise ValidationError(
                f"Maximum {self.limits.bulk_import} shows can be imported at once"
            )

    def _build_preview(
        self, session, parsed: ParsedShowImport, actor: Actor
    ) -> ImportPreview:
        resolver = self.resolver_factory(session, self.db.logger)
        shows = ShowManager(session, self.db.logger)

        preview = ImportPreview(
            show={
                "title": parsed.title,
                "event_date": parsed.event_date,
                "city": parsed.city,
                "state": parsed.state,
                "price": parsed.price,
                "age_requirement": parsed.age_requirement,
                "status": parsed.status,
                "description": parsed.description,
            }
        )
        preview.warnings.extend(parsed.problems)

        if not parsed.title:
            preview.block(WARNING_MISSING_TITLE)
        if parsed.event_date is None:
            preview.block(WARNING_MISSING_DATE)
        if not parsed.venues:
            preview.block(WARNING_NO_VENUES)
        if not parsed.artists:
            preview.block(WARNING_NO_ARTISTS)

        venue_names: List[str] = []
        for spec in parsed.venues:
            match = VenueMatchResult(name=spec.name, city=spec.city, state=spec.state)
            preview.venues.append(match)
            if spec.id is None and not (spec.name and spec.city and spec.state):
                preview.block(
                    f"Venue '{spec.name or '(unnamed)'}' is missing city or state"
                )
                continue
            try:
                resolution = resolver.resolve_venue(
                    spec,
                    is_admin=actor.is_admin,
                    submitted_by=actor.user_id,
                    read_only=True,
                )
            except ShowbookError as e:
                preview.block(str(e))
                continue
            match.name = resolution.entity.name
            match.existing_id = resolution.existing_id
            match.will_create = resolution.was_created
            venue_names.append(resolution.entity.name)

        headliners: List[str] = []
        for spec, set_type in billing_for(parsed.artists):
            match = ArtistMatchResult(
                name=spec.name,
                position=spec.position if spec.position is not None else len(preview.artists),
                set_type=set_type.value,
            )
            preview.artists.append(match)
            try:
                resolution = resolver.resolve_artist(spec, read_only=True)
            except ShowbookError as e:
                preview.block(str(e))
                continue
            match.name = resolution.entity.name
            match.existing_id = resolution.existing_id
            match.will_create = resolution.was_created
            if set_type == SetType.HEADLINER:
                headliners.append(resolution.entity.name)

        if parsed.event_date is not None:
            for headliner in headliners:
                for venue_name in venue_names:
                    existing = shows.find_headliner_show(
                        headliner,
                        venue_name,
                        parsed.event_date,
                        exclude_statuses=(ShowStatus.REJECTED,),
                    )
                    if existing is not None:
                        preview.block(
                            f"Headliner '{headliner}' already has a show at "
                            f"'{venue_name}' on this date"
                        )
        return preview
