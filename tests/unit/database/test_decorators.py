"""Tests for database decorators and context managers."""
import pytest
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from showbook.core.exceptions import DatabaseError, ValidationError
from showbook.core.logging_manager import ShowbookLogger
from showbook.database.decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)


class TestDatabaseOperation:
    """Tests for DatabaseOperation context manager."""

    def test_successful_operation(self):
        """DatabaseOperation should log completion on success."""
        mock_logger = MagicMock(spec=ShowbookLogger)

        with DatabaseOperation(mock_logger, "approve_venue_edit"):
            result = 1 + 1

        assert result == 2
        mock_logger.log_operation.assert_called_once()
        call_args = mock_logger.log_operation.call_args
        assert call_args[0][0] == "approve_venue_edit_completed"
        assert call_args[0][1]["success"] is True
        assert isinstance(call_args[0][1]["duration_seconds"], float)

    def test_none_logger(self):
        """DatabaseOperation should work with None logger (uses NullLogger)."""
        with DatabaseOperation(None, "approve_venue_edit"):
            pass

    def test_integrity_error_raises_database_error(self):
        mock_logger = MagicMock(spec=ShowbookLogger)

        with pytest.raises(DatabaseError) as exc_info:
            with DatabaseOperation(mock_logger, "propose_venue_edit"):
                raise IntegrityError("statement", {}, Exception("duplicate"))

        assert "Data integrity violation" in str(exc_info.value)
        mock_logger.log_error.assert_called_once()

    def test_sqlalchemy_error_raises_database_error(self):
        mock_logger = MagicMock(spec=ShowbookLogger)

        with pytest.raises(DatabaseError) as exc_info:
            with DatabaseOperation(mock_logger, "propose_venue_edit"):
                raise SQLAlchemyError("connection failed")

        assert "Database operation failed" in str(exc_info.value)

    def test_pipeline_errors_propagate_unchanged(self):
        """Non-SQLAlchemy exceptions are logged and re-raised as they are."""
        mock_logger = MagicMock(spec=ShowbookLogger)

        with pytest.raises(ValidationError):
            with DatabaseOperation(mock_logger, "admin_venue_edit"):
                raise ValidationError("Unknown venue fields: capacity")

        mock_logger.log_error.assert_called_once()

    def test_log_start_option(self):
        mock_logger = MagicMock(spec=ShowbookLogger)

        with DatabaseOperation(mock_logger, "test_operation", log_start=True):
            pass

        mock_logger.log_debug.assert_called_once()
        assert "Starting test_operation" in mock_logger.log_debug.call_args[0][0]

    def test_no_log_start_by_default(self):
        mock_logger = MagicMock(spec=ShowbookLogger)

        with DatabaseOperation(mock_logger, "test_operation"):
            pass

        mock_logger.log_debug.assert_not_called()


class _Worker:
    """Minimal object shaped like a manager for decorator tests."""

    def __init__(self, logger=None):
        self.logger = logger

    @log_database_operation("do_work")
    def work(self, value):
        return value * 2

    @log_database_operation("do_work")
    def fail(self):
        raise ValueError("nope")

    @validate_metadata(["name", "city"])
    def create(self, metadata):
        return metadata["name"]

    @handle_db_errors
    def locked(self):
        raise OperationalError("UPDATE venues", {}, Exception("database is locked"))


class TestLogDatabaseOperation:
    def test_logs_start_and_completion(self):
        mock_logger = MagicMock(spec=ShowbookLogger)

        assert _Worker(mock_logger).work(21) == 42

        assert "Starting do_work" in mock_logger.log_debug.call_args[0][0]
        assert mock_logger.log_operation.call_args[0][0] == "do_work_completed"

    def test_logs_and_reraises_errors(self):
        mock_logger = MagicMock(spec=ShowbookLogger)

        with pytest.raises(ValueError):
            _Worker(mock_logger).fail()

        context = mock_logger.log_error.call_args[0][1]
        assert context["operation"] == "do_work"
        mock_logger.log_operation.assert_not_called()

    def test_without_logger(self):
        assert _Worker().work(1) == 2


class TestValidateMetadata:
    def test_passes_complete_metadata(self):
        assert _Worker().create({"name": "Valley Bar", "city": "Phoenix"}) == "Valley Bar"

    def test_keyword_metadata(self):
        assert _Worker().create(metadata={"name": "Valley Bar", "city": "Phoenix"}) == "Valley Bar"

    def test_missing_field(self):
        with pytest.raises(ValidationError, match="'city'"):
            _Worker().create({"name": "Valley Bar"})


class TestHandleDbErrors:
    def test_operational_error_converted(self):
        with pytest.raises(DatabaseError, match="Database operation failed"):
            _Worker().locked()
