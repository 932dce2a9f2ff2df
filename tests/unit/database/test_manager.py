"""
Tests for ShowbookDB: schema setup, session scopes, manager binding and
post-commit event dispatch, against a real temporary SQLite database.
"""
import pytest
from unittest.mock import MagicMock

from sqlalchemy import inspect, select

from showbook.core.exceptions import DatabaseError
from showbook.core.logging_manager import ShowbookLogger
from showbook.database.manager import ShowbookDB
from showbook.database.models import Venue
from showbook.pipeline.events import AuditEvent, EventBus, emit, pending_events


class TestSchema:
    def test_fresh_database_has_all_tables(self, test_db):
        tables = set(inspect(test_db.engine).get_table_names())
        assert {
            "venues",
            "artists",
            "shows",
            "show_venues",
            "show_artists",
            "pending_venue_edits",
        } <= tables

    def test_fresh_database_stamped_to_head(self, test_db):
        history = test_db.get_migration_history()
        assert history["current_revision"] == "3c1f9a7e2b10"
        assert history["status"] == "up_to_date"

    def test_reopening_existing_database(self, test_db, test_db_path, test_alembic_dir):
        """A second instance on the same file migrates instead of recreating."""
        with test_db.session_scope():
            test_db.venues.get_or_create({"name": "Valley Bar", "city": "Phoenix", "state": "AZ"})

        reopened = ShowbookDB(test_db_path, test_alembic_dir)
        with reopened.session_scope():
            assert reopened.venues.find("valley bar", "phoenix", "az") is not None
        reopened.engine.dispose()

    def test_logger_records_init(self, test_db_path, test_alembic_dir):
        mock_logger = MagicMock(spec=ShowbookLogger)

        db = ShowbookDB(test_db_path, test_alembic_dir, logger=mock_logger)

        operations = [call[0][0] for call in mock_logger.log_operation.call_args_list]
        assert "database_init_start" in operations
        assert "database_init_complete" in operations
        db.engine.dispose()

    def test_sqlite_foreign_keys_enabled(self, test_db):
        with test_db.session_scope() as session:
            assert session.connection().exec_driver_sql("PRAGMA foreign_keys").scalar() == 1

    def test_lower_folds_non_ascii(self, test_db):
        with test_db.session_scope() as session:
            folded = session.connection().exec_driver_sql("SELECT lower('CAFÉ MØ')").scalar()
        assert folded == "café mø"


class TestSessionScope:
    def test_managers_require_active_scope(self, test_db):
        with pytest.raises(DatabaseError, match="requires an active session"):
            test_db.venues

    def test_managers_bound_inside_scope(self, test_db):
        with test_db.session_scope() as session:
            assert test_db.venues.session is session
            assert test_db.shows.session is session
            assert test_db.artists.session is session
            assert test_db.venue_edits.session is session

    def test_commit_on_success(self, test_db):
        with test_db.session_scope():
            test_db.venues.get_or_create({"name": "Valley Bar", "city": "Phoenix", "state": "AZ"})

        with test_db.session_scope() as session:
            assert session.scalars(select(Venue)).all()

    def test_rollback_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            with test_db.session_scope():
                test_db.venues.get_or_create(
                    {"name": "Valley Bar", "city": "Phoenix", "state": "AZ"}
                )
                raise RuntimeError("abort")

        with test_db.session_scope() as session:
            assert session.scalars(select(Venue)).all() == []

    def test_dry_run_rolls_back(self, test_db):
        with test_db.session_scope(dry_run=True):
            venue, created = test_db.venues.get_or_create(
                {"name": "Valley Bar", "city": "Phoenix", "state": "AZ"}
            )
            assert created
            assert venue.id is not None

        with test_db.session_scope() as session:
            assert session.scalars(select(Venue)).all() == []

    def test_nested_scopes_restore_outer_managers(self, test_db):
        with test_db.session_scope() as outer:
            with test_db.session_scope() as inner:
                assert test_db.venues.session is inner
            assert test_db.venues.session is outer


class TestEventDispatch:
    def test_events_dispatched_after_commit(self, test_db, audit_log):
        with test_db.session_scope() as session:
            emit(session, AuditEvent(1, "verify_venue", "venue", 3))
            assert pending_events(session)
            assert audit_log.entries == []

        assert audit_log.actions() == ["verify_venue"]

    def test_events_dropped_on_rollback(self, test_db, audit_log):
        with pytest.raises(RuntimeError):
            with test_db.session_scope() as session:
                emit(session, AuditEvent(1, "verify_venue", "venue", 3))
                raise RuntimeError("abort")

        assert audit_log.entries == []

    def test_events_dropped_on_dry_run(self, test_db, audit_log):
        with test_db.session_scope(dry_run=True) as session:
            emit(session, AuditEvent(1, "verify_venue", "venue", 3))

        assert audit_log.entries == []

    def test_failing_subscriber_does_not_fail_scope(self, test_db_path, test_alembic_dir):
        broken = MagicMock()
        broken.log_action.side_effect = RuntimeError("audit store down")
        db = ShowbookDB(
            test_db_path, test_alembic_dir, event_bus=EventBus(audit_log=broken)
        )

        with db.session_scope() as session:
            db.venues.get_or_create({"name": "Valley Bar", "city": "Phoenix", "state": "AZ"})
            emit(session, AuditEvent(1, "verify_venue", "venue", 1))

        with db.session_scope():
            assert db.venues.find("Valley Bar", "Phoenix", "AZ") is not None
        db.engine.dispose()
