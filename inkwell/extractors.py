"""Metadata extractors for Inkwell.

Each extractor pulls one kind of metadata out of a content file. The
``CompositeMetadataExtractor`` runs them in order and merges the results;
frontmatter always runs first so later extractors can defer to it.

Key classes:
- FrontmatterExtractor: Splits the YAML metadata header from the body.
- TitleExtractor: Title from frontmatter, first heading or filename.
- DateExtractor: Date from frontmatter, filename or file metadata.
- ExcerptExtractor: Plain-text excerpt and short description of the body.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path
from typing import Any

import mistune
import yaml

from .errors import ContentError
from .html_utils import html_to_text
from .protocols import MetadataExtractor
from .utils import coerce_datetime, extract_date_from_name, prune_text, titleize

FRONTMATTER_RE = re.compile(r"^---\s*\n(.*?)\n---\s*(?:\n|$)", re.DOTALL)
MDX_STATEMENT_RE = re.compile(r"^(?:import|export)\s")

DEFAULT_EXCERPT_LENGTH = 140
DESCRIPTION_LENGTH = 160


def read_source(path: Path) -> str:
    """Read a content file as UTF-8.

    Raises:
        ContentError: If the file is not valid UTF-8.
    """
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ContentError(path, "File is not valid UTF-8", exc) from exc


def extract_frontmatter(text: str, path: Path | None = None) -> tuple[dict[str, Any], str]:
    """Split YAML frontmatter from content.

    Args:
        text: Raw file content.
        path: Source file, used for error reporting.

    Returns:
        Tuple of (frontmatter dict, remaining content).

    Raises:
        ContentError: If the header is present but is not a YAML mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    source = path or Path("<string>")
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        raise ContentError(source, f"Invalid frontmatter: {exc}", exc) from exc
    if not isinstance(data, dict):
        raise ContentError(source, "Frontmatter must be a mapping of keys to values")
    return data, text[match.end() :]


def strip_mdx_statements(text: str) -> str:
    """Remove top-level MDX ``import``/``export`` statements.

    Statements inside fenced code blocks are content and are kept. A
    statement continues over following lines until its braces, brackets and
    parentheses balance.
    """
    lines = []
    in_fence = False
    depth = 0
    for line in text.splitlines(keepends=True):
        stripped = line.strip()
        if depth > 0:
            depth += _bracket_balance(line)
            continue
        if stripped.startswith(("```", "~~~")):
            in_fence = not in_fence
        elif not in_fence and MDX_STATEMENT_RE.match(line):
            depth = max(_bracket_balance(line), 0)
            continue
        lines.append(line)
    return "".join(lines)


def _bracket_balance(line: str) -> int:
    opened = sum(line.count(c) for c in "{[(")
    closed = sum(line.count(c) for c in "}])")
    return opened - closed


def iter_prose_blocks(text: str):
    """Yield the prose paragraphs of a Markdown/MDX body.

    Headings, fenced code, MDX import/export statements, images, raw HTML
    blocks and thematic breaks are skipped.
    """
    in_fence = False
    block: list[str] = []
    for line in strip_mdx_statements(text).splitlines():
        stripped = line.strip()
        if stripped.startswith(("```", "~~~")):
            in_fence = not in_fence
            if block:
                yield "\n".join(block)
                block = []
            continue
        if in_fence:
            continue
        if not stripped:
            if block:
                yield "\n".join(block)
                block = []
            continue
        if not block and stripped.startswith(("#", "![", "<", "---", "***", ">")):
            continue
        block.append(stripped)
    if block:
        yield "\n".join(block)


def plain_text(text: str) -> str:
    """Render the prose of a Markdown body and strip it down to plain text."""
    pieces = [html_to_text(mistune.html(block)) for block in iter_prose_blocks(text)]
    return " ".join(p for p in pieces if p)


class FrontmatterExtractor:
    """Extracts the YAML metadata header and the remaining body."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        frontmatter, body = extract_frontmatter(content, path)
        return {"frontmatter": frontmatter, "body": body}


class TitleExtractor:
    """Resolves the title of a document.

    Frontmatter ``title`` wins, then the first level-1 heading, then the
    titleized filename.
    """

    def extract(self, content: str, path: Path, frontmatter: dict[str, Any]) -> dict[str, Any]:
        title = frontmatter.get("title")
        if title:
            return {"title": str(title).strip()}
        for line in content.splitlines():
            stripped = line.strip()
            if stripped.startswith("# "):
                return {"title": stripped[2:].strip()}
        return {"title": titleize(path.name)}


class DateExtractor:
    """Resolves the publication date.

    Frontmatter ``date`` wins, then a ``YYYY-MM-DD-`` filename prefix, then
    the file modification time.
    """

    def extract(self, content: str, path: Path, frontmatter: dict[str, Any]) -> dict[str, Any]:
        if "date" in frontmatter:
            date = coerce_datetime(frontmatter["date"])
            if date is None:
                raise ContentError(path, f"Unrecognized date: {frontmatter['date']!r}")
            return {"date": date}
        date = extract_date_from_name(path.stem)
        if date is None:
            date = datetime.fromtimestamp(path.stat().st_mtime)
        return {"date": date}


class ExcerptExtractor:
    """Builds the excerpt and description of a document.

    The excerpt is the plain text of the body's prose pruned to
    ``length`` characters on a word boundary. A frontmatter ``excerpt``
    replaces it verbatim. The description is frontmatter ``description`` or
    the excerpt text cut to 160 characters.
    """

    def __init__(self, length: int = DEFAULT_EXCERPT_LENGTH):
        self.length = length

    def extract(self, content: str, path: Path, frontmatter: dict[str, Any]) -> dict[str, Any]:
        text = plain_text(content) if path.suffix.lower() in (".md", ".mdx") else html_to_text(content)
        excerpt = frontmatter.get("excerpt")
        excerpt = " ".join(str(excerpt).split()) if excerpt else prune_text(text, self.length)
        description = frontmatter.get("description") or prune_text(
            text, DESCRIPTION_LENGTH
        )
        return {"excerpt": excerpt, "description": str(description)}


class CompositeMetadataExtractor:
    """Runs the frontmatter extractor, then every field extractor on the body.

    Later extractors override earlier ones on key collisions.
    """

    def __init__(
        self,
        extractors: list[MetadataExtractor] | None = None,
        excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
    ):
        self._frontmatter = FrontmatterExtractor()
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                ExcerptExtractor(excerpt_length),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor: MetadataExtractor) -> None:
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        result = self._frontmatter.extract(content, path)
        for extractor in self._extractors:
            result.update(extractor.extract(result["body"], path, result["frontmatter"]))
        return result


default_metadata_extractor = CompositeMetadataExtractor()
