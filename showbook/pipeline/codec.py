#!/usr/bin/env python3
"""
codec.py
--------------------
Markdown import/export format for shows.

A show file is YAML frontmatter followed by a markdown body:

    ---
    version: "1.0"
    exported_at: "2026-01-01T00:00:00Z"
    show:
      title: The Beths
      event_date: "2026-03-01T03:00:00Z"
      city: Phoenix
      state: AZ
      price: 15.0
      age_requirement: 21+
      status: approved
    venues:
      - name: Valley Bar
        city: Phoenix
        state: AZ
    artists:
      - name: The Beths
        position: 0
        set_type: headliner
    ---

    ## Description

    Free text up to the next ## heading.

export() and parse() are inverses for title, date, venues and artists:
parsing an exported show and importing it lands on the same entities.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

# --- Third party imports ---
import yaml

# --- Local imports ---
from showbook.core.exceptions import ParseError, ValidationError
from showbook.core.validators import DataValidator
from showbook.database.models import SOCIAL_FIELDS, Show
from showbook.utils.md import extract_section, render_section, split_frontmatter
from showbook.utils.slugify import show_export_filename
from .assembler import ShowRequest
from .resolver import ArtistSpec, VenueSpec

FORMAT_VERSION = "1.0"
DESCRIPTION_HEADING = "Description"


@dataclass
class ParsedShowImport:
    """
    Structured content of one show file.

    ``event_date`` is None when missing or unreadable; the reason is kept
    in ``problems`` so preview can report it instead of failing.
    """

    title: Optional[str]
    event_date: Optional[datetime]
    venues: List[VenueSpec] = field(default_factory=list)
    artists: List[ArtistSpec] = field(default_factory=list)
    city: Optional[str] = None
    state: Optional[str] = None
    price: Optional[float] = None
    age_requirement: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    version: Optional[str] = None
    exported_at: Optional[datetime] = None
    problems: List[str] = field(default_factory=list)

    def to_request(self) -> ShowRequest:
        """Show request for the assembler (the file's status is informational)."""
        return ShowRequest(
            title=self.title,
            event_date=self.event_date,
            venues=list(self.venues),
            artists=list(self.artists),
            city=self.city,
            state=self.state,
            price=self.price,
            age_requirement=self.age_requirement,
            description=self.description,
        )


class ShowCodec(ABC):
    """Text format for moving shows in and out of the catalog."""

    @abstractmethod
    def parse(self, content: Union[bytes, str]) -> ParsedShowImport:
        """Parse a show file; raise ParseError when it is not one."""

    @abstractmethod
    def export(self, show: Show) -> Tuple[bytes, str]:
        """Serialize a show; return (content, filename)."""


class MarkdownShowCodec(ShowCodec):
    """YAML-frontmatter markdown codec."""

    def __init__(self, clock: Optional[Callable[[], datetime]] = None) -> None:
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    # ---- Parsing ----
    def parse(self, content: Union[bytes, str]) -> ParsedShowImport:
        """
        Parse markdown show content.

        Raises:
            ParseError: Not UTF-8, missing delimiters, invalid YAML, or
                frontmatter/sections of the wrong shape
        """
        if isinstance(content, bytes):
            try:
                content = content.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ParseError(f"Import file is not valid UTF-8: {e}") from e

        frontmatter, body_lines = split_frontmatter(content, strict=True)
        try:
            data = yaml.safe_load(frontmatter) if frontmatter.strip() else {}
        except yaml.YAMLError as e:
            raise ParseError(f"Invalid YAML frontmatter: {e}") from e
        if not isinstance(data, dict):
            raise ParseError("Frontmatter must be a YAML mapping")

        show_data = data.get("show") or {}
        if not isinstance(show_data, dict):
            raise ParseError("'show' must be a mapping")
        venues_data = self._list_of_mappings(data.get("venues"), "venues")
        artists_data = self._list_of_mappings(data.get("artists"), "artists")

        problems: List[str] = []
        event_date = None
        raw_date = show_data.get("event_date")
        if raw_date not in (None, ""):
            try:
                event_date = DataValidator.normalize_datetime(raw_date)
            except ValidationError:
                problems.append(f"Unreadable event date '{raw_date}'")

        exported_at = None
        try:
            exported_at = DataValidator.normalize_datetime(data.get("exported_at"))
        except ValidationError:
            problems.append(f"Unreadable exported_at '{data.get('exported_at')}'")

        description = extract_section(body_lines, DESCRIPTION_HEADING)
        if description is None:
            description = DataValidator.normalize_text(show_data.get("description"))

        artists = []
        for index, item in enumerate(artists_data):
            spec = ArtistSpec.from_mapping(item)
            if spec.position is None:
                spec.position = index
            artists.append(spec)

        return ParsedShowImport(
            title=DataValidator.normalize_string(show_data.get("title")),
            event_date=event_date,
            venues=[VenueSpec.from_mapping(item) for item in venues_data],
            artists=artists,
            city=DataValidator.normalize_string(show_data.get("city")),
            state=DataValidator.normalize_state(show_data.get("state")),
            price=DataValidator.normalize_price(show_data.get("price")),
            age_requirement=DataValidator.normalize_string(show_data.get("age_requirement")),
            status=DataValidator.normalize_string(show_data.get("status")),
            description=description,
            version=str(data["version"]) if data.get("version") is not None else None,
            exported_at=exported_at,
            problems=problems,
        )

    @staticmethod
    def _list_of_mappings(value: Any, key: str) -> List[Dict[str, Any]]:
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
            raise ParseError(f"'{key}' must be a list of mappings")
        return value

    # ---- Export ----
    def export(self, show: Show) -> Tuple[bytes, str]:
        """
        Serialize a show to markdown.

        Returns:
            (UTF-8 content, "show-YYYY-MM-DD-<title-slug>.md")
        """
        frontmatter = {
            "version": FORMAT_VERSION,
            "exported_at": _rfc3339(self.clock()),
            "show": _drop_none(
                {
                    "title": show.title,
                    "event_date": _rfc3339(show.event_date),
                    "city": show.city,
                    "state": show.state,
                    "price": show.price,
                    "age_requirement": show.age_requirement,
                    "status": show.status.value,
                }
            ),
            "venues": [
                _drop_none(
                    {
                        "name": venue.name,
                        "city": venue.city,
                        "state": venue.state,
                        "address": venue.address,
                        "zipcode": venue.zipcode,
                        "social": _social(venue),
                    }
                )
                for venue in show.venues
            ],
            "artists": [
                _drop_none(
                    {
                        "name": link.artist.name,
                        "position": link.position,
                        "set_type": link.set_type.value,
                        "city": link.artist.city,
                        "state": link.artist.state,
                        "social": _social(link.artist),
                    }
                )
                for link in sorted(show.artist_links, key=lambda link: link.position)
            ],
        }

        dumped = yaml.safe_dump(
            frontmatter, sort_keys=False, allow_unicode=True, default_flow_style=False
        )
        parts = ["---", dumped.rstrip("\n"), "---", ""]
        if show.description:
            parts.append(render_section(DESCRIPTION_HEADING, show.description))
        text = "\n".join(parts)
        if not text.endswith("\n"):
            text += "\n"
        return text.encode("utf-8"), show_export_filename(show.event_date, show.title)


def _rfc3339(value: datetime) -> str:
    value = DataValidator.ensure_utc(value)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def _social(entity: Any) -> Optional[Dict[str, str]]:
    links = {name: getattr(entity, name) for name in SOCIAL_FIELDS if getattr(entity, name)}
    return links or None


def _drop_none(data: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}
