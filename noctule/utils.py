"""Utility functions for Noctule.

Small string and path helpers shared by the loader, generator and CLI.

Key functions:
    remove_extension: Drop the last suffix from a file name.
    get_extension: Return the last suffix of a file name without the dot.
    format_fields_for_sort_by_order: Split short sort specs into fields and directions.
    slugify: Convert arbitrary text to a URL slug.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from filename prefix.
    format_elapsed: Human-readable build duration.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import datetime
from pathlib import PurePosixPath

_EXTENSION_RE = re.compile(r"\.\w+$")


def remove_extension(filename: str) -> str:
    """Remove the last extension from a file name.

    Examples:
        >>> remove_extension("posts/a.md")
        'posts/a'
    """
    return _EXTENSION_RE.sub("", filename)


def get_extension(filename: str) -> str:
    """Return the extension of a file name without the leading dot.

    The case is preserved; a name without a suffix yields ``""``.
    """
    return PurePosixPath(filename).suffix[1:]


def format_fields_for_sort_by_order(
    short_fields: Iterable[str],
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Split short sort specs into field names and directions.

    Args:
        short_fields: Field names, each optionally prefixed with ``-`` for
            descending order.

    Returns:
        Tuple of (field names, directions) where each direction is
        ``"asc"`` or ``"desc"``.

    Examples:
        >>> format_fields_for_sort_by_order(["foo", "-bar"])
        (('foo', 'bar'), ('asc', 'desc'))
    """
    fields: list[str] = []
    directions: list[str] = []
    for field in short_fields:
        if field.startswith("-"):
            fields.append(field[1:])
            directions.append("desc")
        else:
            fields.append(field)
            directions.append("asc")
    return tuple(fields), tuple(directions)


def slugify(text: str) -> str:
    """Convert text to a lowercase, hyphen-separated slug.

    Args:
        text: Any text, e.g. a tag or a filename stem.

    Returns:
        URL-friendly slug, ``"untitled"`` when nothing survives.
    """
    cleaned = re.sub(r"[^\w]+", "-", str(text).lower())
    return cleaned.strip("-_") or "untitled"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'

        >>> titleize("getting-started.md")
        'Getting Started'
    """
    base = PurePosixPath(filename).stem
    if "-" in base:
        parts = base.split("-")
        if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
            base = "-".join(parts[3:])
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        datetime object if a valid date prefix is found, None otherwise.
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        try:
            return datetime(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def format_elapsed(seconds: float) -> str:
    """Format a duration the way the CLI reports it.

    Examples:
        >>> format_elapsed(65.2)
        '1m 5s'
        >>> format_elapsed(0.3)
        'a moment'
    """
    total = int(seconds)
    minutes = (total // 60) % 60
    secs = total % 60
    if not minutes and not secs:
        return "a moment"
    parts = []
    if minutes:
        parts.append(f"{minutes}m")
    if secs:
        parts.append(f"{secs}s")
    return " ".join(parts)
