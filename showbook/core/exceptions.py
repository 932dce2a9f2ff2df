#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Showbook project.

This module defines a hierarchy of exceptions used throughout the project
to report failures of the submission, resolution and moderation pipeline.

Exception Hierarchy:
    Exception (built-in)
    └── ShowbookError - Base for every pipeline failure
        ├── ValidationError - Malformed or incomplete input
        ├── NotFoundError - Unknown ID or slug
        ├── UnauthorizedError - No identity supplied
        ├── ForbiddenError - Identity lacks ownership or admin rights
        ├── ConflictError - Request clashes with current state
        │   ├── InvalidTransitionError - Illegal lifecycle transition
        │   ├── DuplicateShowError - Headliner already booked at venue/date
        │   └── PendingEditExistsError - Active venue edit already queued
        ├── ParseError - Unparseable markdown import
        └── DatabaseError - Storage failure (PersistenceFailure)

Usage:
    from showbook.core.exceptions import ConflictError, NotFoundError

    try:
        service.approve_show(show_id, actor)
    except NotFoundError as e:
        logger.log_warning(f"Unknown show: {e}")
    except ConflictError as e:
        logger.log_warning(f"Cannot approve: {e}")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Optional


class ShowbookError(Exception):
    """
    Base exception for all Showbook pipeline errors.

    Catch this to handle any anticipated failure of a pipeline operation.
    Bulk operations catch it per item so one failing item never aborts the
    rest of the batch.
    """

    pass


class ValidationError(ShowbookError):
    """
    Exception for data validation failures.

    Raised before any write when input is malformed:
    - Missing required fields (title, event date, venue, artist)
    - Empty batch or batch over its cap
    - Unknown editable venue fields
    - Invalid configuration values

    Examples:
        >>> raise ValidationError("Required field 'title' missing or empty")
        >>> raise ValidationError("Bulk import is limited to 50 items")
    """

    pass


class NotFoundError(ShowbookError):
    """
    Exception for lookups of unknown entities.

    Attributes:
        entity_type: Kind of entity that was looked up (show, venue, ...)
        entity_id: Identifier that did not resolve

    Examples:
        >>> raise NotFoundError("show", 42)
    """

    def __init__(self, entity_type: str, entity_id: object) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type.capitalize()} not found: {entity_id}")


class UnauthorizedError(ShowbookError):
    """Raised when an operation is attempted without an identity."""

    pass


class ForbiddenError(ShowbookError):
    """
    Exception for authorization failures.

    Raised when the supplied identity is known but lacks rights:
    - Non-admin attempting an admin-only action
    - User acting on a show or venue they did not submit
    - User cancelling someone else's pending edit
    """

    pass


class ConflictError(ShowbookError):
    """
    Exception for requests that clash with current state.

    Parent of the more specific lifecycle, duplicate-show and pending-edit
    conflicts. Also raised directly, e.g. when deleting a venue that still
    has shows attached.
    """

    pass


class InvalidTransitionError(ConflictError):
    """
    Exception for illegal lifecycle transitions.

    Attributes:
        current: Status the show is in
        action: Action that was requested

    Examples:
        >>> raise InvalidTransitionError("rejected", "publish")
    """

    def __init__(self, current: str, action: str) -> None:
        self.current = current
        self.action = action
        super().__init__(f"Cannot {action} a show with status '{current}'")


class DuplicateShowError(ConflictError):
    """Raised when a headliner already has a show at the same venue and date."""

    def __init__(
        self, headliner: str, venue: str, existing_show_id: Optional[int] = None
    ) -> None:
        self.headliner = headliner
        self.venue = venue
        self.existing_show_id = existing_show_id
        super().__init__(
            f"Headliner '{headliner}' already has a show at '{venue}' on this date"
        )


class PendingEditExistsError(ConflictError):
    """Raised when a user already has a pending edit queued for a venue."""

    pass


class ParseError(ShowbookError):
    """
    Exception for markdown import parsing failures.

    Raised when import text cannot be turned into a structured record:
    - Missing opening or closing frontmatter delimiter
    - Invalid YAML syntax
    - Frontmatter that is not a mapping

    Examples:
        >>> raise ParseError("Missing closing frontmatter delimiter (---)")
    """

    pass


class DatabaseError(ShowbookError):
    """
    Base exception for database-related errors.

    Raised when storage operations fail due to connection issues, query
    errors, integrity violations, or other database problems. The enclosing
    transaction is rolled back; the core never retries except on SQLite
    lock contention.

    Examples:
        >>> raise DatabaseError("Data integrity violation: UNIQUE constraint failed")
    """

    pass
