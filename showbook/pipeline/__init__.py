#!/usr/bin/env python3
"""
Showbook Pipeline Package
--------------------------
Submission, resolution and moderation of shows.

- resolver: venue/artist find-or-create
- assembler: show creation and association replacement
- lifecycle: moderation state machine
- edit_queue: moderated venue edits
- codec: markdown import/export format
- importer: preview/confirm markdown imports
- discovery: scraped event ingestion
- events: post-commit audit, notification and music discovery
- service: ShowService façade
"""

from .actor import Actor
from .assembler import CatalogShowAssembler, ShowAssembler, ShowRequest
from .codec import MarkdownShowCodec, ParsedShowImport, ShowCodec
from .discovery import (
    DiscoveredEvent,
    DiscoveryEngine,
    DiscoveryImporter,
    DiscoveryResult,
    DiscoveryStatus,
)
from .edit_queue import EditOutcome, EditQueue, VenueEditQueue
from .events import (
    AuditLog,
    EventBus,
    LoggingAuditLog,
    LoggingNotifier,
    MusicDiscovery,
    Notifier,
    NullMusicDiscovery,
    ShowSummary,
    VenueSummary,
)
from .importer import ImportPreview, ShowImporter
from .lifecycle import ShowAction, ShowLifecycle, ShowStateMachine
from .resolver import ArtistSpec, CatalogResolver, EntityResolver, VenueSpec
from .service import ShowService

__all__ = [
    "Actor",
    # Resolution and assembly
    "EntityResolver",
    "CatalogResolver",
    "VenueSpec",
    "ArtistSpec",
    "ShowAssembler",
    "CatalogShowAssembler",
    "ShowRequest",
    # Moderation
    "ShowAction",
    "ShowStateMachine",
    "ShowLifecycle",
    "EditQueue",
    "VenueEditQueue",
    "EditOutcome",
    # Import / export
    "ShowCodec",
    "MarkdownShowCodec",
    "ParsedShowImport",
    "ShowImporter",
    "ImportPreview",
    # Discovery
    "DiscoveryEngine",
    "DiscoveryImporter",
    "DiscoveredEvent",
    "DiscoveryResult",
    "DiscoveryStatus",
    # Events
    "EventBus",
    "AuditLog",
    "Notifier",
    "MusicDiscovery",
    "LoggingAuditLog",
    "LoggingNotifier",
    "NullMusicDiscovery",
    "ShowSummary",
    "VenueSummary",
    # Façade
    "ShowService",
]
