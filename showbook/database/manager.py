#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the Showbook catalog.

Provides the ShowbookDB class for interacting with the SQLite database.
Handles:
    - Initialization of the database engine and sessionmaker
    - Transactional session scopes with bound entity managers
    - Post-commit dispatch of queued pipeline events
    - Migration management via Alembic

Key Features:
    - One transaction per scope, committed on success, rolled back on error
    - Dry-run scopes that always roll back
    - SQLite foreign keys enforced on every connection
    - SAVEPOINT support for race-safe find-or-create
    - Fresh databases are created from the ORM models and stamped to head

Notes
==============
- Migrations live in showbook/migrations
- All datetime fields are UTC-aware
- Entity managers are bound per thread, so concurrent scopes in different
  threads never share a session
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

# --- Third party ---
from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import Engine, create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker

# --- Local imports ---
from showbook.core.exceptions import DatabaseError
from showbook.core.logging_manager import ShowbookLogger
from showbook.core.paths import ALEMBIC_INI
from .decorators import handle_db_errors, log_database_operation
from .managers import ArtistManager, ShowManager, VenueEditManager, VenueManager
from .models import Base


def fold_case(value: Optional[str]) -> Optional[str]:
    """Unicode-aware replacement for SQLite's ASCII-only lower()."""
    return None if value is None else value.lower()


def register_sqlite_functions(dbapi_connection) -> None:
    """Install the lower() used by the case-insensitive unique indexes."""
    dbapi_connection.create_function("lower", 1, fold_case, deterministic=True)


class ShowbookDB:
    """
    Main database manager for the Showbook catalog.

    Attributes:
        db_path: Filesystem path to the SQLite database file
        alembic_dir: Filesystem path to the Alembic directory
        engine: SQLAlchemy engine instance
        SessionLocal: SQLAlchemy session factory
        event_bus: Receives queued events after each successful commit

    Usage:
        db = ShowbookDB("data/showbook.db", ALEMBIC_DIR, event_bus=bus)
        with db.session_scope() as session:
            venue, created = db.venues.get_or_create({...})
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path],
        alembic_dir: Union[str, Path],
        log_dir: Optional[Union[str, Path]] = None,
        event_bus: Optional[Any] = None,
        logger: Optional[ShowbookLogger] = None,
    ) -> None:
        """
        Initialize database engine and session factory.

        Args:
            db_path: Path to the SQLite file
            alembic_dir: Path to the Alembic directory
            log_dir: Directory for log files (optional)
            event_bus: Object with a ``dispatch(events)`` method (optional)
            logger: Existing logger to use instead of creating one
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.alembic_dir = Path(alembic_dir).expanduser().resolve()
        self.event_bus = event_bus

        # --- Logging ---
        if logger is not None:
            self.logger: Optional[ShowbookLogger] = logger
        elif log_dir:
            self.logger = ShowbookLogger(
                Path(log_dir).expanduser().resolve(),
                component_name="database",
            )
        else:
            self.logger = None

        self._local = threading.local()
        self._setup_engine()

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        try:
            if self.logger:
                self.logger.log_operation(
                    "database_init_start",
                    {
                        "db_path": str(self.db_path),
                        "alembic_dir": str(self.alembic_dir),
                    },
                )

            is_new = not self.db_path.exists()
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self.engine: Engine = create_engine(
                f"sqlite:///{self.db_path}",
                echo=False,
                pool_pre_ping=True,
                connect_args={"timeout": 30},
            )
            self._configure_sqlite(self.engine)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            self.alembic_cfg: Config = self._setup_alembic()

            if is_new:
                self.initialize_schema()

            if self.logger:
                self.logger.log_operation("database_init_complete", {"success": True})

        except DatabaseError:
            raise
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    @staticmethod
    def _configure_sqlite(engine: Engine) -> None:
        """
        Enforce foreign keys and hand transaction control to SQLAlchemy.

        pysqlite defers BEGIN until the first DML statement, which breaks
        SAVEPOINT; emitting BEGIN ourselves keeps nested transactions intact.
        """

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            register_sqlite_functions(dbapi_connection)
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN")

    # ---- Session Management ----
    @contextmanager
    def session_scope(self, dry_run: bool = False) -> Iterator[Session]:
        """
        Provide a transactional scope around a unit of work.

        The entity managers (db.venues, db.artists, db.shows, db.venue_edits)
        are bound to the scope's session for its duration. Events queued on
        the session are dispatched to the event bus after a successful
        commit and discarded otherwise.

        Args:
            dry_run: Roll back instead of committing; no events are dispatched

        Usage:
            with db.session_scope() as session:
                show = db.shows.require(show_id)
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        previous = getattr(self._local, "managers", None)
        self._local.managers = self._bind_managers(session)
        events: list = []

        if self.logger:
            self.logger.log_debug("session_start", {"session_id": session_id})

        try:
            yield session
            if dry_run:
                session.rollback()
                session.info.pop("events", None)
                if self.logger:
                    self.logger.log_debug("session_dry_run_rollback", {"session_id": session_id})
            else:
                session.commit()
                events = session.info.pop("events", [])
                if self.logger:
                    self.logger.log_debug("session_commit", {"session_id": session_id})

        except Exception as e:
            session.rollback()
            session.info.pop("events", None)
            if self.logger:
                self.logger.log_error(
                    e, {"operation": "session_rollback", "session_id": session_id}
                )
            raise
        finally:
            self._local.managers = previous
            session.close()
            if self.logger:
                self.logger.log_debug("session_close", {"session_id": session_id})

        if events and self.event_bus is not None:
            self.event_bus.dispatch(events)

    def _bind_managers(self, session: Session) -> Dict[str, Any]:
        return {
            "venues": VenueManager(session, self.logger),
            "artists": ArtistManager(session, self.logger),
            "shows": ShowManager(session, self.logger),
            "venue_edits": VenueEditManager(session, self.logger),
        }

    def _manager(self, name: str) -> Any:
        managers = getattr(self._local, "managers", None)
        if managers is None:
            raise DatabaseError(
                f"db.{name} requires an active session. "
                "Use within session_scope: "
                f"with db.session_scope() as session: db.{name}..."
            )
        return managers[name]

    # -------------------------------------------------------------------------
    # Entity Manager Properties
    # -------------------------------------------------------------------------

    @property
    def venues(self) -> VenueManager:
        """
        Access VenueManager for venue operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._manager("venues")

    @property
    def artists(self) -> ArtistManager:
        """Access ArtistManager for artist operations."""
        return self._manager("artists")

    @property
    def shows(self) -> ShowManager:
        """Access ShowManager for show operations."""
        return self._manager("shows")

    @property
    def venue_edits(self) -> VenueEditManager:
        """Access VenueEditManager for pending venue edit storage."""
        return self._manager("venue_edits")

    # ---- Alembic setup ----
    def _setup_alembic(self) -> Config:
        """Setup Alembic configuration."""
        try:
            if self.logger:
                self.logger.log_debug("Setting up Alembic configuration...")

            alembic_cfg = Config(str(ALEMBIC_INI)) if ALEMBIC_INI.exists() else Config()
            alembic_cfg.set_main_option("script_location", str(self.alembic_dir))
            alembic_cfg.set_main_option("sqlalchemy.url", f"sqlite:///{self.db_path}")
            return alembic_cfg
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "setup_alembic"})
            raise DatabaseError(f"Alembic configuration failed: {e}") from e

    @handle_db_errors
    @log_database_operation("initialize_schema")
    def initialize_schema(self) -> None:
        """
        Initialize database - create tables if needed and run migrations.

        Actions:
            If the database has no tables, creates them from the ORM models
            and stamps the Alembic revision to head.
            Otherwise runs pending migrations.
        """
        try:
            table_names = inspect(self.engine).get_table_names()

            if not table_names:
                Base.metadata.create_all(bind=self.engine)
                try:
                    command.stamp(self.alembic_cfg, "head")
                    if self.logger:
                        self.logger.log_operation(
                            "fresh_database_created",
                            {"tables_created": len(Base.metadata.tables)},
                        )
                except Exception as e:
                    if self.logger:
                        self.logger.log_error(e, {"operation": "stamp_database"})
            else:
                self.upgrade_database()
                if self.logger:
                    self.logger.log_operation(
                        "existing_database_migrated",
                        {"table_count": len(table_names)},
                    )

        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Could not initialize database: {e}") from e

    @handle_db_errors
    @log_database_operation("upgrade_database")
    def upgrade_database(self, revision: str = "head") -> None:
        """
        Upgrade the database schema to the specified Alembic revision.

        Args:
            revision: Target revision (default 'head')
        """
        try:
            command.upgrade(self.alembic_cfg, revision)
        except Exception as e:
            raise DatabaseError(f"Database upgrade failed: {e}") from e

    def get_migration_history(self) -> Dict[str, Optional[str]]:
        """
        Get the current migration status of the database.

        Returns:
            Dictionary with 'current_revision' and 'status'
            ('up_to_date' or 'needs_migration'), or 'error'.
        """
        try:
            with self.engine.connect() as conn:
                context = MigrationContext.configure(conn)
                current_rev = context.get_current_revision()

            return {
                "current_revision": current_rev,
                "status": "up_to_date" if current_rev else "needs_migration",
            }
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "get_migration_history"})
            return {"error": str(e)}
