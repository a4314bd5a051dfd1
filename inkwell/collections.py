from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from .content import Page
from .utils import strip_date_prefix


class PageCollection(Sequence[Page]):
    """Read-only list of pages with the filters templates use to list posts."""

    def __init__(self, pages: Iterable[Page]):
        self._pages = list(pages)

    def __iter__(self) -> Iterator[Page]:
        return iter(self._pages)

    def __len__(self) -> int:
        return len(self._pages)

    def __getitem__(self, item):
        return self._pages[item]

    def group(self, name: str) -> PageCollection:
        return PageCollection(p for p in self._pages if p.group == name)

    def posts(self) -> PageCollection:
        return PageCollection(p for p in self._pages if p.is_post)

    def by_author(self, author: str) -> PageCollection:
        return PageCollection(p for p in self._pages if p.author == author)

    def drafts(self) -> PageCollection:
        return PageCollection(p for p in self._pages if p.draft)

    def published(self) -> PageCollection:
        return PageCollection(p for p in self._pages if not p.draft)

    def sorted(self, reverse: bool = True) -> PageCollection:
        """Sort pages by date, ties broken by filename without date prefix.

        Args:
            reverse: If True (default), newest first.
        """

        def sort_key(p: Page):
            return (p.date, strip_date_prefix(p.path.stem).lower())

        return PageCollection(sorted(self._pages, key=sort_key, reverse=reverse))

    def latest(self, count: int = 5) -> PageCollection:
        return PageCollection(self.sorted()[:count])

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PageCollection({len(self._pages)} pages)"
