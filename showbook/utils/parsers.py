#!/usr/bin/env python3
"""
parsers.py
--------------------
Parsing utilities for loosely formatted scraped event data.

Functions:
    parse_artists_from_title: Split an event title into artist names
    parse_show_time: Parse "7:00 pm" / "19:30" style times
    parse_event_date: Combine an event date and local show time into UTC
    build_event_description: Join doors/show/ticket info into one line

Usage:
    from showbook.utils.parsers import parse_artists_from_title

    parse_artists_from_title("Hovvdy with Friendship")
    # ["Hovvdy", "Friendship"]
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import re
from datetime import datetime, time, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# --- Local imports ---
from showbook.core.exceptions import ValidationError
from showbook.core.validators import DataValidator

_TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?\s*([ap])?\.?\s*m?\.?$", re.IGNORECASE)

# Tried in order; " with " and " & " are handled separately
_TITLE_SEPARATORS = (" / ", " | ", " + ")


def _split_and_trim(text: str, separator: str) -> List[str]:
    return [part.strip() for part in text.split(separator) if part.strip()]


def parse_artists_from_title(title: str) -> List[str]:
    """
    Extract artist names from an event title.

    Separators, in order of precedence: comma, " with ", " / ", " | ",
    " + ". " & " only splits when both sides are longer than 10
    characters, so duos like "Tom & Jerry" stay together.

    Examples:
        >>> parse_artists_from_title("Hovvdy with Friendship")
        ['Hovvdy', 'Friendship']
        >>> parse_artists_from_title("Hovvdy, Friendship, Lomelda")
        ['Hovvdy', 'Friendship', 'Lomelda']
        >>> parse_artists_from_title("Tom & Jerry")
        ['Tom & Jerry']
    """
    title = title.strip()
    if not title:
        return []

    if "," in title:
        return _split_and_trim(title, ",")

    with_index = title.lower().find(" with ")
    if with_index > 0:
        return [title[:with_index].strip()] + _split_and_trim(
            title[with_index + len(" with ") :], ","
        )

    for separator in _TITLE_SEPARATORS:
        if separator in title:
            return _split_and_trim(title, separator)

    if " & " in title:
        parts = title.split(" & ")
        if len(parts) == 2 and all(len(part.strip()) > 10 for part in parts):
            return _split_and_trim(title, " & ")

    return [title]


def parse_show_time(value: Optional[str]) -> Optional[time]:
    """
    Parse a show time such as "7:00 pm", "7pm", "12:30 AM" or "19:30".

    Returns:
        time object, or None if the value is empty or unparseable
    """
    if not value:
        return None
    match = _TIME_RE.match(value.strip())
    if not match:
        return None

    hour = int(match.group(1))
    minute = int(match.group(2) or 0)
    period = (match.group(3) or "").lower()

    if period == "p" and hour != 12:
        hour += 12
    elif period == "a" and hour == 12:
        hour = 0

    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def parse_event_date(
    date_value: str,
    show_time: Optional[str] = None,
    tz_name: str = "America/Phoenix",
) -> datetime:
    """
    Parse an event date and optional local show time into a UTC datetime.

    Args:
        date_value: "YYYY-MM-DD" or an RFC3339 timestamp
        show_time: Optional local start time ("7:00 pm")
        tz_name: IANA timezone the show time is expressed in

    Returns:
        Timezone-aware UTC datetime

    Raises:
        ValidationError: If the date cannot be parsed

    Examples:
        >>> parse_event_date("2026-03-01", "7:00 pm", "America/Phoenix")
        datetime.datetime(2026, 3, 2, 2, 0, tzinfo=datetime.timezone.utc)
    """
    if not date_value:
        raise ValidationError("Event date is required")
    parsed = DataValidator.normalize_datetime(date_value)
    assert parsed is not None

    start = parse_show_time(show_time)
    if start is None:
        return parsed

    try:
        zone = ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        zone = timezone.utc
    local = datetime.combine(parsed.date(), start, tzinfo=zone)
    return local.astimezone(timezone.utc)


def build_event_description(
    doors_time: Optional[str],
    show_time: Optional[str],
    ticket_url: Optional[str],
) -> Optional[str]:
    """Build "Doors: x | Show: y | Tickets: url" from the parts present."""
    parts = []
    if doors_time:
        parts.append(f"Doors: {doors_time}")
    if show_time:
        parts.append(f"Show: {show_time}")
    if ticket_url:
        parts.append(f"Tickets: {ticket_url}")
    return " | ".join(parts) or None
