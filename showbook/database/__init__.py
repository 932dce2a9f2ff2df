#!/usr/bin/env python3
"""
Showbook Database Package
---------------------------
Persistence layer for the Showbook catalog:

- ShowbookDB: engine, session scopes, migrations
- managers: per-entity data operations
- models: SQLAlchemy ORM models
- decorators: logging and error conversion for database work
"""

from .manager import ShowbookDB
from showbook.core.exceptions import DatabaseError, ValidationError
from .decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)

__all__ = [
    # Main manager
    "ShowbookDB",
    # Exceptions
    "DatabaseError",
    "ValidationError",
    # Decorators
    "DatabaseOperation",
    "log_database_operation",
    "handle_db_errors",
    "validate_metadata",
]
