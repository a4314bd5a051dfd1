"""Body renderers for Inkwell.

Each renderer turns one kind of source body into HTML.

Key classes:
- MarkdownRenderer: Markdown to HTML with heading anchors and Pygments highlighting.
- MdxRenderer: Markdown renderer that first drops MDX import/export statements.
- HTMLRenderer: Passes HTML through.
- JinjaContentRenderer: Defers Jinja bodies to the template engine.
- RendererRegistry: Picks a renderer for a file.
"""

from __future__ import annotations

import re
from pathlib import Path

import mistune
from markupsafe import escape
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .extractors import strip_mdx_statements
from .protocols import ContentRenderer
from .utils import is_html, is_markdown, is_mdx, is_template

MARKDOWN_PLUGINS = ["strikethrough", "footnotes", "table", "url"]


def generate_heading_id(text: str) -> str:
    """Generate a URL-friendly anchor id from heading text."""
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


def rewrite_image_path(src: str, folder: str) -> str:
    """Point a relative image source at the assets directory.

    Absolute URLs, root-relative paths, data URIs and Jinja expressions are
    returned unchanged.
    """
    if src.startswith(("http://", "https://", "//", "/", "data:")) or "{{" in src:
        return src
    prefix = Path(folder) if folder else Path()
    normalized = (prefix / src).as_posix()
    return f"/assets/images/{normalized}"


class _HighlightRenderer(mistune.HTMLRenderer):
    """mistune renderer adding heading anchors, image rewriting and highlighting."""

    def __init__(self, folder: str):
        super().__init__(escape=False)
        self.folder = folder
        self._issued_ids: set[str] = set()

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = generate_heading_id(text) or "section"
        heading_id = base_id
        suffix = 0
        while heading_id in self._issued_ids:
            suffix += 1
            heading_id = f"{base_id}-{suffix}"
        self._issued_ids.add(heading_id)
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def image(self, text: str, url: str, title: str | None = None) -> str:
        return super().image(text, rewrite_image_path(url or "", self.folder), title)

    def block_code(self, code: str, info: str | None = None) -> str:
        lang = info.split()[0] if info else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(cssclass="highlight")
                return highlight(code, lexer, formatter)
        lang_class = f' class="language-{escape(lang)}"' if lang else ""
        return f"<pre><code{lang_class}>{escape(code)}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown bodies to HTML."""

    source_type = "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str, folder: str) -> str:
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(folder), plugins=MARKDOWN_PLUGINS
        )
        return markdown(content)


class MdxRenderer(MarkdownRenderer):
    """Renders MDX bodies.

    Module statements are dropped and everything else is treated as
    Markdown; inline JSX elements pass through as raw HTML.
    """

    source_type = "mdx"

    def can_render(self, path: Path) -> bool:
        return is_mdx(path)

    def render(self, content: str, folder: str) -> str:
        return super().render(strip_mdx_statements(content), folder)


class HTMLRenderer:
    """Passes plain HTML bodies through unchanged."""

    source_type = "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str, folder: str) -> str:
        return content


class JinjaContentRenderer:
    """Marks Jinja bodies; the template engine renders them with site context."""

    source_type = "jinja"

    def can_render(self, path: Path) -> bool:
        return is_template(path)

    def render(self, content: str, folder: str) -> str:
        return content


class RendererRegistry:
    """Ordered list of renderers; the first that accepts a file renders it."""

    def __init__(self):
        self._renderers: list[ContentRenderer] = []
        self.register(MdxRenderer())
        self.register(MarkdownRenderer())
        self.register(JinjaContentRenderer())
        self.register(HTMLRenderer())

    def register(self, renderer: ContentRenderer) -> None:
        self._renderers.append(renderer)

    def get_renderer(self, path: Path) -> ContentRenderer | None:
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


default_renderer_registry = RendererRegistry()
