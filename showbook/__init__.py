"""
Showbook
========

Live-music show listings: submission, entity resolution and moderation.

Shows reach the catalog through three doors: direct submission, markdown
import (single or bulk, with a preview/confirm step) and batches of events
scraped from venue calendars. Every door funnels into the same resolver and
assembler, and every show is then governed by the moderation lifecycle.

Main Components:
    - core: Logging, validation, configuration, paths, exceptions
    - database: SQLAlchemy ORM models, entity managers, CLI
    - pipeline: Resolver, assembler, lifecycle, edit queue, codec,
      import orchestrator, discovery engine, post-commit events
    - utils: Markdown and slug helpers

Example Usage:
    >>> from showbook import ShowbookDB, ShowService, Actor
    >>> from showbook.core.paths import DB_PATH, ALEMBIC_DIR, LOG_DIR
    >>> db = ShowbookDB(db_path=DB_PATH, alembic_dir=ALEMBIC_DIR, log_dir=LOG_DIR)
    >>> service = ShowService(db)
    >>> service.approve_show(42, Actor(user_id=1, is_admin=True), verify_venues=True)
"""

__version__ = "1.0.0"

from showbook.database.manager import ShowbookDB
from showbook.pipeline.actor import Actor
from showbook.pipeline.service import ShowService

__all__ = [
    "ShowbookDB",
    "ShowService",
    "Actor",
]
