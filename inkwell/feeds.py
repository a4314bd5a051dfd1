"""Feed generation for Inkwell.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml for every page.
    RSSGenerator: Generates an RSS 2.0 feed of the blog posts.
    FeedRegistry: Runs every registered generator.

Functions:
    create_default_feed_registry: Create a registry with default generators.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from markupsafe import escape

if TYPE_CHECKING:
    from .content import Page

RFC_822 = "%a, %d %b %Y %H:%M:%S +0000"


class FeedGenerator(ABC):
    """Base class for feed generators.

    ``generate`` returns None when the feed cannot be produced, typically
    because the site has no ``url`` configured.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        ...

    @abstractmethod
    def generate(self, pages: Iterable[Page], data: dict[str, Any]) -> str | None:
        ...

    def write(self, output_dir: Path, pages: Iterable[Page], data: dict[str, Any]) -> bool:
        """Generate and write the feed; False if it was skipped."""
        content = self.generate(pages, data)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


class SitemapGenerator(FeedGenerator):
    """Lists every page with its last modification date."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, pages: Iterable[Page], data: dict[str, Any]) -> str | None:
        base_url = str(data.get("url", "")).rstrip("/")
        if not base_url:
            return None
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for page in sorted(pages, key=lambda p: p.url):
            lastmod = page.date.strftime("%Y-%m-%d")
            lines.append(
                f"  <url><loc>{escape(base_url + page.url)}</loc><lastmod>{lastmod}</lastmod></url>"
            )
        lines.append("</urlset>")
        return "\n".join(lines)


class RSSGenerator(FeedGenerator):
    """Publishes posts newest first.

    Uses ``title`` and ``description`` from site data for the channel; each
    item carries the post title, link, author (as
    ``dc:creator``) and excerpt.
    """

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(self, pages: Iterable[Page], data: dict[str, Any]) -> str | None:
        base_url = str(data.get("url", "")).rstrip("/")
        if not base_url:
            return None
        posts = [p for p in pages if p.is_post and not p.draft]
        items = []
        for post in sorted(posts, key=lambda p: p.date, reverse=True):
            link = escape(f"{base_url}{post.url}")
            author = f"<dc:creator>{escape(post.author)}</dc:creator>" if post.author else ""
            items.append(
                f"<item><title>{escape(post.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid>{author}"
                f"<description>{escape(post.excerpt or post.title)}</description>"
                f"<pubDate>{post.date.strftime(RFC_822)}</pubDate></item>"
            )
        build_date = datetime.now(timezone.utc).strftime(RFC_822)
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/"><channel>',
            f"<title>{escape(data.get('title', 'Inkwell Blog'))}</title>",
            f"<link>{escape(base_url)}/</link>",
            f"<description>{escape(data.get('description', ''))}</description>",
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss)


class FeedRegistry:
    """Runs a list of feed generators against the built pages."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self, output_dir: Path, pages: Iterable[Page], data: dict[str, Any]
    ) -> list[str]:
        """Generate all feeds.

        Returns:
            Filenames that were written.
        """
        pages_list = list(pages)
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, pages_list, data):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
