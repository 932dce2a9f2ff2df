#!/usr/bin/env python3
"""
slugify.py
----------
Slug generation for shows, venues and artists.

Slugs are URL-safe, lowercase, ASCII-only identifiers. Base slugs are made
unique against the catalog with ``generate_unique_slug`` which appends
``-2``, ``-3``, ... until the supplied predicate reports the candidate free.

Usage:
    from showbook.utils.slugify import slugify, generate_show_slug

    slugify("Crescent Ballroom")                      # "crescent-ballroom"
    generate_show_slug(dt, "The Beths", "Valley Bar")  # "2026-03-01-the-beths-at-valley-bar"
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import re
import unicodedata
from datetime import datetime
from typing import Callable, Optional


def slugify(text: Optional[str], max_length: int = 200) -> str:
    """
    Convert text to a URL-safe slug.

    Args:
        text: Input text to slugify
        max_length: Maximum slug length (default 200)

    Returns:
        Slugified string

    Examples:
        >>> slugify("Café Tacvba")
        'cafe-tacvba'
        >>> slugify("Rock & Roll Hotel")
        'rock-and-roll-hotel'
        >>> slugify("Mr. Bungle (reunion)")
        'mr-bungle-reunion'
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    text = text.lower()
    text = text.replace("'", "")
    text = re.sub(r"[(){}\[\]]", " ", text)
    text = text.replace("&", " and ")
    text = text.replace("/", "-")
    text = re.sub(r"[\s_.]+", "-", text)
    text = re.sub(r"[^a-z0-9-]", "", text)
    text = re.sub(r"-+", "-", text)
    text = text.strip("-")

    if len(text) > max_length:
        text = text[:max_length].rstrip("-")

    return text


def generate_venue_slug(name: str, city: Optional[str], state: Optional[str]) -> str:
    """Base slug for a venue: name, city and state."""
    return slugify(" ".join(part for part in (name, city, state) if part))


def generate_artist_slug(name: str) -> str:
    """Base slug for an artist."""
    return slugify(name)


def generate_show_slug(
    event_date: datetime, headliner: Optional[str], venue: Optional[str]
) -> str:
    """
    Base slug for a show: ``YYYY-MM-DD-<headliner>-at-<venue>``.

    Examples:
        >>> generate_show_slug(datetime(2026, 3, 1), "The Beths", "Valley Bar")
        '2026-03-01-the-beths-at-valley-bar'
    """
    parts = [event_date.strftime("%Y-%m-%d")]
    if headliner:
        parts.append(slugify(headliner))
    if venue:
        parts.append("at")
        parts.append(slugify(venue))
    return "-".join(p for p in parts if p)


def generate_unique_slug(base: str, is_taken: Callable[[str], bool]) -> str:
    """
    Make a slug unique by appending a numeric suffix.

    Args:
        base: Base slug
        is_taken: Predicate returning True when a candidate is already used

    Returns:
        ``base`` if free, else the first free ``base-N`` (N >= 2)
    """
    base = base or "untitled"
    if not is_taken(base):
        return base
    suffix = 2
    while is_taken(f"{base}-{suffix}"):
        suffix += 1
    return f"{base}-{suffix}"


def show_export_filename(event_date: datetime, title: str) -> str:
    """
    Filename for a show exported to markdown.

    Examples:
        >>> show_export_filename(datetime(2026, 3, 1), "The Beths at Valley Bar")
        'show-2026-03-01-the-beths-at-valley-bar.md'
    """
    title_slug = slugify(title, max_length=80) or "untitled"
    return f"show-{event_date.strftime('%Y-%m-%d')}-{title_slug}.md"
