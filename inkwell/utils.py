"""Utility functions for Inkwell.

String and path helpers shared by the content pipeline, the CLI and the build.

Key functions:
    slugify: Convert filenames or titles to URL slugs.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from filename prefix.
    strip_date_prefix: Drop a ``YYYY-MM-DD-`` prefix from a name.
    prune_text: Shorten text on a word boundary.
    is_markdown / is_mdx / is_template / is_html: File type checks.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from datetime import date, datetime
from pathlib import Path

ELLIPSIS = "…"


def strip_date_prefix(name: str) -> str:
    """Drop a leading ``YYYY-MM-DD-`` from a filename stem.

    Examples:
        >>> strip_date_prefix("2024-01-15-hello-world")
        'hello-world'
    """
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return "-".join(parts[3:])
    return name


def slugify(name: str) -> str:
    """Convert a filename stem or a title to a slug, dropping any date prefix.

    Args:
        name: Filename stem or free text.

    Returns:
        URL-friendly slug, ``index`` when nothing usable remains.
    """
    cleaned = strip_date_prefix(name)
    cleaned = re.sub(r"\[.*?\]", "", cleaned)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Examples:
        >>> titleize("2024-01-15-hello-world.mdx")
        'Hello World'
    """
    base = strip_date_prefix(Path(filename).stem)
    base = re.sub(r"\[.*?\]", "", base)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Examples:
        >>> extract_date_from_name("2024-01-15-hello-world")
        datetime.datetime(2024, 1, 15, 0, 0)
        >>> extract_date_from_name("hello-world") is None
        True
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        try:
            return datetime(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def coerce_datetime(value) -> datetime | None:
    """Turn a YAML date value into a naive datetime.

    PyYAML already parses ``2024-01-15`` into a ``date``; strings are tried as
    ISO dates as a courtesy.
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).replace(tzinfo=None)
        except ValueError:
            return None
    return None


def prune_text(text: str, limit: int = 140) -> str:
    """Shorten text to at most ``limit`` characters on a word boundary.

    A trailing ellipsis is added when the text was cut.

    Examples:
        >>> prune_text("one two three", limit=9)
        'one two…'
    """
    collapsed = " ".join(text.split())
    if len(collapsed) <= limit:
        return collapsed
    cut = collapsed[:limit]
    if " " in cut and collapsed[limit] != " ":
        cut = cut.rsplit(" ", 1)[0]
    return cut.rstrip(" ,.;:") + ELLIPSIS


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def is_markdown(path: Path) -> bool:
    """Check if a path is a plain Markdown file."""
    return path.suffix.lower() == ".md"


def is_mdx(path: Path) -> bool:
    """Check if a path is an MDX file."""
    return path.suffix.lower() == ".mdx"


def is_template(path: Path) -> bool:
    """Check if a path is a Jinja template file (``.jinja`` or ``.html.jinja``)."""
    return path.suffix == ".jinja"


def is_html(path: Path) -> bool:
    """Check if a path is a plain HTML file (not a Jinja template)."""
    return path.suffix.lower() == ".html"


def is_content(path: Path) -> bool:
    """Check if a path is any kind of file the content pipeline renders."""
    return is_markdown(path) or is_mdx(path) or is_template(path) or is_html(path)
