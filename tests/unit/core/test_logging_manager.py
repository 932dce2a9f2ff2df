"""
Tests for logging_manager module.

Tests the ShowbookLogger file output, the safe_logger function and the
NullLogger class that provide null-safe logging throughout the codebase,
and the shared CLI error handler.
"""
import pytest
from unittest.mock import MagicMock

from showbook.core.exceptions import NotFoundError
from showbook.core.logging_manager import (
    NullLogger,
    ShowbookLogger,
    handle_cli_error,
    safe_logger,
)


class TestNullLogger:
    """Tests for NullLogger class."""

    def test_null_logger_methods_are_no_ops(self):
        """NullLogger logging methods should do nothing."""
        logger = NullLogger()
        logger.log_operation("test_op", {"key": "value"})
        logger.log_error(ValueError("test error"), {"context": "test"})
        logger.log_debug("debug message", {"key": "value"})
        logger.log_info("info message")
        logger.log_warning("warning message", {"key": "value"})

    def test_null_logger_child_is_itself(self):
        """Child loggers of a NullLogger are the same NullLogger."""
        logger = NullLogger()
        assert logger.child("audit") is logger

    def test_null_logger_log_cli_error_returns_formatted(self):
        """NullLogger.log_cli_error should return formatted error string."""
        result = NullLogger().log_cli_error(ValueError("test error"))
        assert result == "❌ ValueError: test error"


class TestSafeLogger:
    """Tests for safe_logger function."""

    def test_safe_logger_returns_logger_when_provided(self):
        mock_logger = MagicMock(spec=ShowbookLogger)
        assert safe_logger(mock_logger) is mock_logger

    def test_safe_logger_returns_shared_null_logger(self):
        """safe_logger(None) should always return the same NullLogger."""
        first = safe_logger(None)
        assert isinstance(first, NullLogger)
        assert safe_logger(None) is first

    def test_works_with_log_details(self):
        mock_logger = MagicMock(spec=ShowbookLogger)
        details = {"show_id": 42}

        safe_logger(mock_logger).log_operation("approve_show", details)
        mock_logger.log_operation.assert_called_once_with("approve_show", details)

        safe_logger(None).log_operation("approve_show", details)


class TestShowbookLogger:
    """Tests for file output of ShowbookLogger."""

    def test_creates_log_dir_and_component_file(self, tmp_dir):
        log_dir = tmp_dir / "logs"
        logger = ShowbookLogger(log_dir, "importer")

        logger.log_operation("import_confirmed", {"show_id": 3})

        content = (log_dir / "importer.log").read_text(encoding="utf-8")
        assert 'OPERATION - import_confirmed: {"show_id": 3}' in content

    def test_errors_go_to_shared_error_log(self, tmp_dir):
        logger = ShowbookLogger(tmp_dir, "discovery")

        logger.log_error(ValueError("boom"), {"event": "abc"})

        content = (tmp_dir / "errors.log").read_text(encoding="utf-8")
        assert "ERROR [discovery] - ValueError: boom" in content
        assert '"event": "abc"' in content

    def test_child_shares_log_dir(self, tmp_dir):
        parent = ShowbookLogger(tmp_dir, "cli", max_bytes=1024, backup_count=2)

        child = parent.child("audit")
        child.log_info("entry")

        assert child.log_dir == parent.log_dir
        assert child.component_name == "audit"
        assert child.max_bytes == 1024
        assert (tmp_dir / "audit.log").exists()

    def test_log_cli_error_message(self, tmp_dir):
        logger = ShowbookLogger(tmp_dir, "cli")
        message = logger.log_cli_error(NotFoundError("show", 7))
        assert message == "❌ NotFoundError: Show not found: 7"


class TestHandleCliError:
    """Tests for the shared CLI error handler."""

    def test_echoes_message_and_exits(self, capsys):
        ctx = MagicMock()
        ctx.obj = {"logger": None, "verbose": False}

        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ctx, NotFoundError("venue", 3), "verify_venue")

        assert exc_info.value.code == 1
        assert "❌ NotFoundError: Venue not found: 3" in capsys.readouterr().err

    def test_logs_through_context_logger(self):
        mock_logger = MagicMock(spec=ShowbookLogger)
        mock_logger.log_cli_error.return_value = "❌ ValueError: bad"
        ctx = MagicMock()
        ctx.obj = {"logger": mock_logger, "verbose": False}

        with pytest.raises(SystemExit):
            handle_cli_error(ctx, ValueError("bad"), "export", {"show_ids": [1]})

        context = mock_logger.log_cli_error.call_args[0][1]
        assert context == {"operation": "export", "show_ids": [1]}
