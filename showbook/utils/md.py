#!/usr/bin/env python3
"""
md.py
-------------------
Markdown utilities for show import/export files.

Provides:
- Frontmatter extraction and splitting
- Section extraction by ``## Heading``
- Section rendering

Type conversion and validation of the frontmatter values is left to
DataValidator and the markdown codec.
"""
from __future__ import annotations

# --- Standard library imports ---
from typing import List, Optional

# --- Local imports ---
from showbook.core.exceptions import ParseError

FRONTMATTER_DELIMITER = "---"


def split_frontmatter(content: str, strict: bool = False) -> tuple[str, List[str]]:
    """
    Split markdown content into YAML frontmatter and body.

    Expected format:
        ---
        yaml: content
        ---

        Body content here...

    Args:
        content: Full markdown file content
        strict: Raise ParseError instead of returning empty frontmatter
            when either delimiter is missing

    Returns:
        Tuple of (frontmatter_text, body_lines)

    Raises:
        ParseError: In strict mode, if the delimiters are missing

    Examples:
        >>> fm, body = split_frontmatter("---\\nshow:\\n  title: X\\n---\\n\\nBody")
        >>> fm
        'show:\\n  title: X'
        >>> body
        ['Body']
    """
    lines = content.lstrip("\ufeff").splitlines()

    if not lines or lines[0].strip() != FRONTMATTER_DELIMITER:
        if strict:
            raise ParseError("Missing opening frontmatter delimiter (---)")
        return "", lines

    frontmatter_end = None
    for i, line in enumerate(lines[1:], 1):
        if line.strip() == FRONTMATTER_DELIMITER:
            frontmatter_end = i
            break

    if frontmatter_end is None:
        if strict:
            raise ParseError("Missing closing frontmatter delimiter (---)")
        return "", lines

    frontmatter_lines = lines[1:frontmatter_end]
    body_lines = lines[frontmatter_end + 1 :]

    while body_lines and body_lines[0].strip() == "":
        body_lines.pop(0)

    return "\n".join(frontmatter_lines), body_lines


def extract_section(body_lines: List[str], heading: str) -> Optional[str]:
    """
    Extract the text under a level-2 heading, up to the next ``##`` heading.

    Args:
        body_lines: Markdown body split into lines
        heading: Heading text without the ``##`` marker

    Returns:
        Stripped section text, or None if the heading is absent or empty
    """
    target = heading.strip().lower()
    collected: List[str] = []
    inside = False

    for line in body_lines:
        stripped = line.strip()
        if stripped.startswith("## "):
            if inside:
                break
            inside = stripped[3:].strip().lower() == target
            continue
        if inside:
            collected.append(line)

    text = "\n".join(collected).strip()
    return text or None


def render_section(heading: str, text: str) -> str:
    """Render a ``## Heading`` block followed by its text."""
    return f"## {heading}\n\n{text.strip()}\n"
