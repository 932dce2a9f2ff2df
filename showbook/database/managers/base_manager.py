#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing common lookup, creation and update helpers.
All entity managers inherit from this class.

Key Features:
    - Retry logic for SQLite lock contention
    - Case-insensitive lookups on identity fields
    - Race-safe find-or-create (SAVEPOINT insert, re-select on conflict)
    - Unique slug allocation
    - Object resolution helpers raising NotFoundError
    - Soft-delete aware fetching

Usage:
    class VenueManager(BaseManager):
        def get(self, venue_id: int) -> Optional[Venue]:
            return self._get_by_id(Venue, venue_id)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple, Type, TypeVar, Union

# --- Third party imports ---
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Mapped, Session

# --- Local imports ---
from showbook.core.exceptions import DatabaseError, NotFoundError
from showbook.core.logging_manager import ShowbookLogger, safe_logger
from showbook.utils.slugify import generate_unique_slug


class HasId(Protocol):
    """Protocol for objects that have an id attribute."""

    id: Mapped[int]


T = TypeVar("T", bound=HasId)


class BaseManager(ABC):
    """
    Abstract base manager shared by all entity managers.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[ShowbookLogger] = None):
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable,
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> Any:
        """
        Execute database operation with retry on lock.

        Args:
            operation: Callable that performs the operation
            max_retries: Maximum number of retry attempts
            retry_delay: Base delay between retries (exponential backoff)

        Returns:
            Result of the operation

        Raises:
            OperationalError: If all retries exhausted or not a lock error
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except OperationalError as e:
                error_msg = str(e).lower()

                if (
                    "locked" in error_msg or "busy" in error_msg
                ) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)
                    safe_logger(self.logger).log_debug(
                        f"Database locked, retrying in {wait_time}s",
                        {"attempt": attempt + 1, "max_retries": max_retries},
                    )
                    time.sleep(wait_time)
                    continue
                raise

        raise DatabaseError("Retry loop completed without success")

    def _find_case_insensitive(
        self, model_class: Type[T], lookup_fields: Dict[str, Optional[str]]
    ) -> Optional[T]:
        """
        Find a row whose string fields match case-insensitively.

        Args:
            model_class: ORM model class to query
            lookup_fields: field name -> value; None matches NULL

        Returns:
            First matching row (lowest id) or None
        """
        stmt = select(model_class)
        for field_name, value in lookup_fields.items():
            column = getattr(model_class, field_name)
            if value is None:
                stmt = stmt.where(column.is_(None))
            else:
                stmt = stmt.where(func.lower(column) == value.lower())
        stmt = stmt.order_by(model_class.id).limit(1)
        return self.session.scalars(stmt).first()

    def _get_or_create(
        self,
        model_class: Type[T],
        lookup_fields: Dict[str, Optional[str]],
        extra_fields: Optional[Dict[str, Any]] = None,
    ) -> Tuple[T, bool]:
        """
        Get an existing row by case-insensitive identity or create it.

        The insert runs inside a SAVEPOINT. If a concurrent writer created
        the same identity first, the unique index raises IntegrityError; the
        savepoint is rolled back and the winner's row re-selected, leaving
        the enclosing transaction intact.

        Args:
            model_class: ORM model class to query or create
            lookup_fields: Identity fields (matched case-insensitively)
            extra_fields: Additional fields for new object creation only

        Returns:
            (instance, created) tuple

        Raises:
            DatabaseError: If creation fails and no row can be re-selected
        """
        obj = self._find_case_insensitive(model_class, lookup_fields)
        if obj is not None:
            return obj, False

        fields = dict(lookup_fields)
        if extra_fields:
            fields.update(extra_fields)

        try:
            with self.session.begin_nested():
                obj = model_class(**fields)
                self.session.add(obj)
            return obj, True
        except IntegrityError as e:
            obj = self._find_case_insensitive(model_class, lookup_fields)
            if obj is not None:
                safe_logger(self.logger).log_debug(
                    f"{model_class.__name__} created concurrently, reusing existing row",
                    {"id": obj.id},
                )
                return obj, False
            raise DatabaseError(
                f"Failed to create {model_class.__name__} even after handling race condition"
            ) from e

    def _resolve_object(self, item: Union[T, int], model_class: Type[T]) -> T:
        """
        Resolve an ORM instance or integer ID to a persisted object.

        Raises:
            NotFoundError: If no row has the given ID
            TypeError: If item type is invalid
        """
        if isinstance(item, model_class):
            if item.id is None:
                raise ValueError(f"{model_class.__name__} instance must be persisted")
            return item
        if isinstance(item, int) and not isinstance(item, bool):
            obj = self._get_by_id(model_class, item)
            if obj is None:
                raise NotFoundError(model_class.__name__.lower(), item)
            return obj
        raise TypeError(
            f"Expected {model_class.__name__} instance or int, got {type(item)}"
        )

    # -------------------------------------------------------------------------
    # Generic Query Helpers
    # -------------------------------------------------------------------------

    def _get_by_id(
        self,
        model_class: Type[T],
        entity_id: int,
        include_deleted: bool = False,
    ) -> Optional[T]:
        """
        Get entity by ID with optional soft-delete filtering.

        Returns:
            Entity if found, None otherwise
        """
        entity = self.session.get(model_class, entity_id)
        if entity is None:
            return None
        if not include_deleted and getattr(entity, "deleted_at", None) is not None:
            return None
        return entity

    def _unique_slug(self, model_class: Type[T], base_slug: str) -> str:
        """Allocate a slug not yet used by any row of ``model_class``."""

        def is_taken(candidate: str) -> bool:
            stmt = select(model_class.id).where(model_class.slug == candidate).limit(1)
            return self.session.scalar(stmt) is not None

        return generate_unique_slug(base_slug, is_taken)

    # -------------------------------------------------------------------------
    # Scalar Field Update Helpers
    # -------------------------------------------------------------------------

    def _update_scalar_fields(
        self,
        entity: Any,
        metadata: Dict[str, Any],
        field_configs: List[tuple],
    ) -> List[str]:
        """
        Update scalar fields from metadata using normalizers.

        Args:
            entity: Entity to update
            metadata: Dictionary containing field values
            field_configs: List of tuples:
                - (field_name, normalizer) for required fields
                - (field_name, normalizer, allow_none) for optional fields

        Returns:
            Names of fields whose value changed

        Example:
            self._update_scalar_fields(venue, changes, [
                ("name", DataValidator.normalize_string),
                ("zipcode", DataValidator.normalize_string, True),
            ])
        """
        changed = []
        for config in field_configs:
            field_name = config[0]
            normalizer = config[1]
            allow_none = config[2] if len(config) > 2 else False

            if field_name not in metadata:
                continue

            value = normalizer(metadata[field_name])
            if value is None and not allow_none:
                continue
            if getattr(entity, field_name) != value:
                setattr(entity, field_name, value)
                changed.append(field_name)
        return changed
