#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Centralized logging for Showbook operations.

Every component (database, importer, discovery, audit, notifications) gets
its own rotating log file under the configured log directory, plus a shared
errors.log for quick scanning. Details are written as JSON so log lines can
be grepped and parsed.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click


_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _details(details: Optional[Dict[str, Any]]) -> str:
    return json.dumps(details, default=str)


def _fresh_logger(name: str, level: int) -> logging.Logger:
    """Named logger with its previous handlers closed and removed."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    return logger


class ShowbookLogger:
    """
    Structured, rotating logger for one Showbook component.

    Component loggers are named ``showbook.<component>``. Operations land in
    ``<component>.log``; errors from every component also land in the
    shared ``errors.log``. Console output starts at WARNING so CLI runs stay
    quiet unless something goes wrong.

    Attributes:
        log_dir: Directory for log files
        component_name: Name of the component using this logger
        main_logger: Logger for all operations of the component
        error_logger: Logger feeding errors.log
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "showbook",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
        console_level: int = logging.WARNING,
    ) -> None:
        """
        Args:
            log_dir: Directory for log files (created when missing)
            component_name: Log file stem, e.g. 'database', 'discovery', 'audit'
            max_bytes: Size at which a log file rotates (default: 10MB)
            backup_count: Rotated files kept per log (default: 5)
            console_level: Minimum level echoed to stderr
        """
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.console_level = console_level

        self.log_dir.mkdir(parents=True, exist_ok=True)
        name = f"showbook.{component_name}"

        self.main_logger = _fresh_logger(name, logging.DEBUG)
        self.main_logger.addHandler(
            self._rotating(self.log_dir / f"{component_name}.log", logging.DEBUG)
        )
        console = logging.StreamHandler()
        console.setLevel(console_level)
        console.setFormatter(logging.Formatter(_LINE_FORMAT, datefmt="%H:%M:%S"))
        self.main_logger.addHandler(console)

        self.error_logger = _fresh_logger(f"{name}.errors", logging.ERROR)
        self.error_logger.addHandler(self._rotating(self.log_dir / "errors.log", logging.ERROR))

    def _rotating(self, file_path: Path, level: int) -> RotatingFileHandler:
        handler = RotatingFileHandler(
            file_path,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(_LINE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        return handler

    def child(self, component_name: str) -> "ShowbookLogger":
        """Logger for a sibling component, sharing directory and rotation settings."""
        return ShowbookLogger(
            self.log_dir,
            component_name=component_name,
            max_bytes=self.max_bytes,
            backup_count=self.backup_count,
            console_level=self.console_level,
        )

    def _write(
        self, level: int, tag: str, message: str, details: Optional[Dict[str, Any]]
    ) -> None:
        line = f"{tag} - {message}"
        if details:
            line = f"{line}: {_details(details)}"
        self.main_logger.log(level, line)

    def log_operation(
        self, operation: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Record a completed operation, e.g. ``approve_show`` with its ids.

        The details dict is always written, even when empty, so operation
        lines have one shape.
        """
        self.main_logger.info(f"OPERATION - {operation}: {_details(details or {})}")

    def log_error(
        self, error: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Write an error, its context and the active traceback to errors.log.

        Args:
            error: Exception that occurred
            context: Where it happened (operation, ids, file)
        """
        self.error_logger.error(
            f"ERROR [{self.component_name}] - {type(error).__name__}: {error}"
        )
        if context:
            self.error_logger.error(f"Context: {_details(context)}")
        self.error_logger.error(f"Traceback:\n{traceback.format_exc()}")

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._write(logging.DEBUG, "DEBUG", message, details)

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._write(logging.INFO, "INFO", message, details)

    def log_warning(
        self, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self._write(logging.WARNING, "WARNING", message, details)

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """
        Log full error details and return the short line shown in the terminal.

        Examples:
            >>> logger.log_cli_error(NotFoundError("show", 7))
            '❌ NotFoundError: Show not found: 7'
        """
        self.log_error(error, context or {"source": "cli"})
        message = _cli_message(error)
        if show_traceback:
            return f"{message}\n\n{traceback.format_exc()}"
        return message


def _cli_message(error: Exception) -> str:
    return f"❌ {type(error).__name__}: {error}"


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Standardized error handling for all CLI commands.

    Logs the error through the logger stored in the click context, echoes a
    one-line message (or the traceback with --verbose) and exits.

    Args:
        ctx: Click context object containing logger and verbose flag
        error: Exception that occurred
        operation: Name of the operation that failed (e.g. 'approve_show')
        additional_context: Optional extra context (show id, file path, etc.)
        exit_code: Exit code for sys.exit() (default: 1)

    Note:
        This function never returns - it always calls sys.exit()
    """
    logger: Optional[ShowbookLogger] = ctx.obj.get("logger")
    verbose: bool = ctx.obj.get("verbose", False)

    context: Dict[str, Any] = {"operation": operation}
    if additional_context:
        context.update(additional_context)

    error_msg = safe_logger(logger).log_cli_error(error, context, show_traceback=verbose)

    click.echo(error_msg, err=True)
    sys.exit(exit_code)


class NullLogger:
    """
    Logger with the ShowbookLogger interface that discards everything.

    Lets components accept ``logger=None`` without sprinkling ``if logger:``
    checks through the code.
    """

    def child(self, component_name: str) -> "NullLogger":
        return self

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return _cli_message(error)


_null_logger = NullLogger()


def safe_logger(logger: Optional[ShowbookLogger]) -> ShowbookLogger:
    """
    Return the provided logger or a shared NullLogger if None.

    Use:
        safe_logger(self.logger).log_info("message")

    Args:
        logger: ShowbookLogger instance or None

    Returns:
        The provided logger or a NullLogger instance
    """
    return logger if logger is not None else _null_logger  # type: ignore[return-value]
