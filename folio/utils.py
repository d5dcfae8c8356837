"""Utility functions for Folio.

This module contains small pure helpers used throughout the Folio codebase:
filename handling, ISO-8601 date parsing and display formatting, and
output directory management.

Key functions:
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from filename prefix.
    parse_iso_date: Parse an ISO-8601 date or datetime string.
    normalize_date: Normalize a front matter date value to an ISO string.
    format_date: Format an ISO date string for display.
    is_markdown: Check if a path is a Markdown file.
    is_draft: Check if a path is a draft (leading underscore).
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import date, datetime, timezone
from pathlib import Path

DISPLAY_DATE_FORMAT = "%B %-d, %Y"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Args:
        filename: Filename with or without extension.

    Returns:
        Human-readable title string.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'

        >>> titleize("ssg-ssr.md")
        'Ssg Ssr'
    """
    base = Path(filename).stem
    if "-" in base:
        parts = base.split("-")
        if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
            base = "-".join(parts[3:])
    words = re.split(r"[\s\-_]+", base.lstrip("_"))
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> date | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        date object if a valid date prefix is found, None otherwise.

    Examples:
        >>> extract_date_from_name("2024-01-15-hello-world")
        datetime.date(2024, 1, 15)

        >>> extract_date_from_name("hello-world") is None
        True
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        try:
            return date(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def parse_iso_date(value: str) -> datetime:
    """Parse an ISO-8601 date or datetime string.

    Timezone-aware values are converted to UTC and made naive so that
    dates from different sources stay comparable.

    Args:
        value: ISO-8601 string such as ``2024-01-15`` or
            ``2024-01-15T09:30:00+02:00``.

    Returns:
        Naive datetime.

    Raises:
        ValueError: If the string is not a valid ISO-8601 date.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def normalize_date(value: object) -> str:
    """Normalize a front matter date value to an ISO-8601 string.

    YAML turns unquoted dates into ``date``/``datetime`` objects while
    quoted ones stay strings; all three are accepted.

    Args:
        value: Raw front matter value.

    Returns:
        ISO-8601 string.

    Raises:
        ValueError: If the value cannot be interpreted as a date.
    """
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        parse_iso_date(value)
        return value.strip()
    raise ValueError(f"Unsupported date value: {value!r}")


def format_date(value: str, fmt: str = DISPLAY_DATE_FORMAT) -> str:
    """Format an ISO-8601 date string for display.

    Month and weekday names follow the active ``LC_TIME`` locale. The
    ``%-d`` directive (day without padding) is supported on every platform.

    Args:
        value: ISO-8601 date string.
        fmt: strftime format.

    Returns:
        Formatted date, e.g. ``January 2, 2020``.

    Examples:
        >>> format_date("2020-01-02")
        'January 2, 2020'
    """
    parsed = parse_iso_date(value)
    return parsed.strftime(fmt.replace("%-d", str(parsed.day)))


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def is_draft(path: Path) -> bool:
    """Check if a path is a draft file (name starts with an underscore)."""
    return path.name.startswith("_")


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty.

    If the directory exists, removes all contents. Creates the
    directory if it doesn't exist.

    Args:
        path: Directory path to clean or create.
    """
    if path.exists():
        shutil.rmtree(str(path))
    path.mkdir(parents=True, exist_ok=True)
