#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities shared by managers, the
markdown codec and the discovery engine.

Provides type-safe conversion of loosely typed input (YAML frontmatter,
scraped JSON, CLI options) into the values the ORM models expect.
"""
from __future__ import annotations

import re
from datetime import date, datetime, time, timezone
from typing import Any, Dict, List, Optional

from .exceptions import ValidationError

_PRICE_RE = re.compile(r"(\d+(?:\.\d+)?)")


class DataValidator:
    """Centralized data validation for pipeline operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If validation fails
        """
        for field in required_fields:
            value = data.get(field)
            if isinstance(value, str):
                value = value.strip()
            if value is None or value == "" or value == []:
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Strip and collapse internal whitespace.

        Returns:
            Normalized string, or None for empty input
        """
        if value is None:
            return None
        text = re.sub(r"\s+", " ", str(value)).strip()
        return text or None

    @staticmethod
    def normalize_text(value: Any) -> Optional[str]:
        """Strip free text, keeping its line breaks."""
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def normalize_state(value: Any) -> Optional[str]:
        """Normalize a state/province code (upper-cased, trimmed)."""
        text = DataValidator.normalize_string(value)
        return text.upper() if text and len(text) <= 3 else text

    @staticmethod
    def normalize_bool(value: Any) -> Optional[bool]:
        """
        Convert various inputs to boolean.

        Raises:
            ValidationError: If conversion fails
        """
        if isinstance(value, bool):
            return value
        elif isinstance(value, (int, float)):
            if value in (0, 1):
                return bool(value)
            raise ValidationError(f"Cannot convert numeric '{value}' to boolean")
        elif isinstance(value, str):
            if value.lower() in ("true", "1", "yes", "on"):
                return True
            elif value.lower() in ("false", "0", "no", "off"):
                return False
            raise ValidationError(f"Cannot convert '{value}' to boolean")
        elif value is not None:
            return bool(value)
        return None

    @staticmethod
    def normalize_price(value: Any) -> Optional[float]:
        """
        Convert a price to float.

        Accepts numbers and scraped strings such as "$15", "$15.00" or
        "$12 ADV / $15 DOS" (first amount wins). "Free" maps to 0.0.

        Returns:
            Price as float, or None if no amount is present
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return float(value)
        text = str(value).strip()
        if not text:
            return None
        if text.lower() == "free":
            return 0.0
        match = _PRICE_RE.search(text.replace(",", ""))
        return float(match.group(1)) if match else None

    @staticmethod
    def normalize_datetime(value: Any) -> Optional[datetime]:
        """
        Normalize a date or datetime input to a timezone-aware UTC datetime.

        Accepts datetime/date objects, "YYYY-MM-DD" and RFC3339 strings
        (including a trailing "Z"). Naive datetimes are assumed to be UTC.

        Raises:
            ValidationError: If a string cannot be parsed
        """
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            dt = value
        elif isinstance(value, date):
            dt = datetime.combine(value, time.min)
        elif isinstance(value, str):
            text = value.strip()
            if text.endswith("Z"):
                text = text[:-1] + "+00:00"
            try:
                dt = datetime.fromisoformat(text)
            except ValueError as e:
                raise ValidationError(f"Invalid date '{value}': {e}") from e
        else:
            raise ValidationError(f"Unsupported date value: {value!r}")

        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)

    @staticmethod
    def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
        """Attach UTC to naive datetimes read back from SQLite."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
