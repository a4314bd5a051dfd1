"""Template rendering engine for Inkwell.

Pages are rendered with Jinja2. Templates are looked up in the site's own
``_layouts`` and ``_partials`` folders first and in the built-in theme second,
so a site can override any layout or partial by shipping a file with the same
name.

Key class:
- TemplateEngine: Renders pages into their layouts with site-wide context.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, TemplateNotFound, select_autoescape
from pygments.formatters import HtmlFormatter

from .collections import PageCollection
from .content import Page, PostSummary
from .html_utils import join_root_url
from .images import FluidImage
from .preview import THEME_DIR, PostPreview
from .protocols import PreviewRenderer

__all__ = ["TemplateEngine"]

LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html", "")


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        site_dir: Directory containing content and site templates.
        data: Global site data.
        env: Jinja2 environment.
        pages: All loaded pages.
        posts: Published posts, newest first.
        summaries: Preview data of ``posts``, in the same order.
        hero_images: Processed hero image per post url.
    """

    def __init__(
        self,
        site_dir: Path,
        data: dict[str, Any],
        root_url: str | None = None,
    ):
        self.site_dir = site_dir
        self.data = data
        self.root_url = (
            root_url or (data.get("root_url") if isinstance(data, dict) else "")
        ) or ""
        self.env = Environment(
            loader=FileSystemLoader(
                [
                    site_dir / "_layouts",
                    site_dir / "_partials",
                    site_dir,
                    THEME_DIR / "_layouts",
                    THEME_DIR / "_partials",
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
        )
        self.pages = PageCollection([])
        self.posts = PageCollection([])
        self.summaries: list[PostSummary] = []
        self.hero_images: dict[str, FluidImage] = {}
        self.preview: PreviewRenderer = PostPreview(self.env)
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.globals["data"] = self.data
        self.env.globals["pages"] = self.pages
        self.env.globals["posts"] = self.posts
        self.env.globals["summaries"] = self.summaries
        self.env.globals["url_for"] = self.url_for
        self.env.globals["post_preview"] = self.preview
        self.env.globals["pygments_css"] = self._pygments_css

    @staticmethod
    def _pygments_css() -> str:
        return HtmlFormatter().get_style_defs(".highlight")

    def update_collections(
        self,
        pages: Iterable[Page],
        summaries: Iterable[PostSummary] = (),
        hero_images: Mapping[str, FluidImage] | None = None,
    ) -> None:
        """Make the loaded pages and post previews available to templates.

        Args:
            pages: Every loaded page.
            summaries: Post previews in display order.
            hero_images: Processed hero image keyed by post url.
        """
        self.pages = PageCollection(pages)
        self.posts = self.pages.posts().published().sorted()
        self.summaries = list(summaries)
        self.hero_images = dict(hero_images or {})
        self.env.globals["pages"] = self.pages
        self.env.globals["posts"] = self.posts
        self.env.globals["summaries"] = self.summaries

    def url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured.

        The site ``url`` from data is only used by feeds; without a
        ``root_url`` links stay root-relative.
        """
        if path.startswith(("http://", "https://", "//")):
            return path
        normalized = path if path.startswith("/") else f"/{path}"
        return join_root_url(self.root_url, normalized)

    def render_page(self, page: Page) -> str:
        """Render a page with its layout."""
        context = {
            "current_page": page,
            "frontmatter": page.frontmatter,
            "hero": self.hero_images.get(page.url),
        }
        body_html = self._render_body(page, context)
        layout_template = self._resolve_layout_template(page.layout)
        return layout_template.render(page_content=body_html, **context)

    def render_not_found(self) -> str:
        """Render the 404 page."""
        template = self._resolve_layout_template("404")
        return template.render(page_content="", current_page=None, frontmatter={}, hero=None)

    def _render_body(self, page: Page, context: dict[str, Any]) -> str:
        if page.source_type == "jinja":
            return self.env.from_string(page.content).render(**context)
        return page.content

    def _resolve_layout_template(self, layout: str):
        names = [f"{layout}{suffix}" for suffix in LAYOUT_SUFFIXES]
        if layout != "default":
            names.extend(f"default{suffix}" for suffix in LAYOUT_SUFFIXES)
        for name in names:
            try:
                return self.env.get_template(name)
            except TemplateNotFound:
                continue
        print(f"No layout found for {layout!r}; rendering page body only.")
        return self.env.from_string("{{ page_content | safe }}")
