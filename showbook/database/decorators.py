#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators and context managers for database operations.

- log_database_operation: timing + completion/error logging for methods
- validate_metadata: required-field validation for metadata dicts
- handle_db_errors: SQLAlchemy errors -> DatabaseError
- DatabaseOperation: the context-manager form of the three above
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from datetime import datetime
from functools import wraps
from types import TracebackType
from typing import Callable, List, Optional, Type

# --- Third party imports ---
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

# --- Local imports ---
from showbook.core.exceptions import DatabaseError
from showbook.core.logging_manager import ShowbookLogger, safe_logger
from showbook.core.validators import DataValidator


def log_database_operation(operation_name: str):
    """
    Decorator to log database operations with timing and context.

    Args:
        operation_name: Name of the operation being logged

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            start_time = datetime.now()
            operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"
            logger = safe_logger(getattr(self, "logger", None))

            logger.log_debug(
                f"Starting {operation_name}",
                {
                    "operation_id": operation_id,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                },
            )

            try:
                result = function(self, *args, **kwargs)
            except Exception as e:
                logger.log_error(
                    e,
                    {
                        "operation": operation_name,
                        "operation_id": operation_id,
                        "duration_seconds": (datetime.now() - start_time).total_seconds(),
                    },
                )
                raise

            logger.log_operation(
                f"{operation_name}_completed",
                {
                    "operation_id": operation_id,
                    "duration_seconds": (datetime.now() - start_time).total_seconds(),
                    "success": True,
                },
            )
            return result

        return wrapper

    return decorator


def validate_metadata(required_fields: List[str]):
    """
    Decorator to validate a metadata dict before processing.

    The metadata is taken from the ``metadata`` keyword or, failing that,
    the last positional argument.

    Args:
        required_fields: List of required field names

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            metadata = kwargs.get("metadata", args[-1] if args else {})
            DataValidator.validate_required_fields(metadata, required_fields)
            return function(self, *args, **kwargs)

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator converting SQLAlchemy errors into DatabaseError.

    Args:
        function: Function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except IntegrityError as e:
            raise DatabaseError(f"Data integrity violation: {e}") from e
        except SQLAlchemyError as e:
            raise DatabaseError(f"Database operation failed: {e}") from e

    return wrapper


class DatabaseOperation:
    """
    Context manager wrapping a block of database work.

    Logs completion with duration on success; on failure logs the error and
    converts SQLAlchemy errors to DatabaseError. Other exceptions propagate
    unchanged.

    Usage:
        with DatabaseOperation(self.logger, "approve_venue_edit"):
            ...
    """

    def __init__(
        self,
        logger: Optional[ShowbookLogger],
        operation_name: str,
        log_start: bool = False,
    ) -> None:
        self.logger = safe_logger(logger)
        self.operation_name = operation_name
        self.log_start = log_start
        self._started = 0.0

    def __enter__(self) -> "DatabaseOperation":
        self._started = time.perf_counter()
        if self.log_start:
            self.logger.log_debug(f"Starting {self.operation_name}")
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> bool:
        duration = float(time.perf_counter() - self._started)

        if exc is None:
            self.logger.log_operation(
                f"{self.operation_name}_completed",
                {"success": True, "duration_seconds": duration},
            )
            return False

        if not isinstance(exc, Exception):
            return False

        self.logger.log_error(
            exc,
            {"operation": self.operation_name, "duration_seconds": duration},
        )
        if isinstance(exc, IntegrityError):
            raise DatabaseError(f"Data integrity violation: {exc}") from exc
        if isinstance(exc, SQLAlchemyError):
            raise DatabaseError(f"Database operation failed: {exc}") from exc
        return False
