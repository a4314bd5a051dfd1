"""Interfaces of the pluggable parts of Inkwell.

Renderers, metadata extractors, loaders and page builders are looked up
through these protocols so alternative implementations can be dropped in.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .content import Page, PostSummary


@runtime_checkable
class ContentRenderer(Protocol):
    """Renders the body of one kind of source file to HTML."""

    source_type: str

    def can_render(self, path: Path) -> bool:
        ...

    def render(self, content: str, folder: str) -> str:
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Extracts one kind of metadata from a body and its frontmatter."""

    def extract(self, content: str, path: Path, frontmatter: dict[str, Any]) -> dict[str, Any]:
        ...


@runtime_checkable
class ContentLoader(Protocol):
    """Discovers content files."""

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        ...


@runtime_checkable
class PageBuilder(Protocol):
    """Builds a Page from a source file."""

    def build(self, path: Path, draft: bool = False) -> Page:
        ...


@runtime_checkable
class PreviewRenderer(Protocol):
    """Turns a post summary into preview markup."""

    def render(self, post: PostSummary) -> str:
        ...
