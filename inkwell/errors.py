"""Exceptions raised while loading content and building a blog.

Every error carries the source file it is about so the CLI can point the
author at the offending post.
"""

from __future__ import annotations

from pathlib import Path


class BuildError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the source file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = source_path
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class ContentError(BuildError):
    """A content file has missing or malformed metadata."""


class DuplicateSlugError(ContentError):
    """Two published pages resolve to the same url.

    Attributes:
        url: The contested url.
        other_path: Source file that claimed the url first.
    """

    def __init__(self, source_path: Path, url: str, other_path: Path):
        self.url = url
        self.other_path = other_path
        super().__init__(
            source_path, f"slug '{url}' is already used by {other_path.name}"
        )


class ImageProcessingError(ContentError):
    """An image referenced by a post cannot be read or resized."""
