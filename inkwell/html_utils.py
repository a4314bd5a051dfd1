"""HTML utility functions for Inkwell.

Functions:
    join_root_url: Join a base URL with a path.
    absolutize_html_urls: Convert root-relative URLs to absolute in HTML.
    html_to_text: Reduce a fragment of HTML to plain text.
"""

from __future__ import annotations

import re
from html import unescape

_URL_ATTR_RE = re.compile(
    r'(?P<prefix>\b(?:href|src|action)=["\'])(?P<url>[^"\']+)(?P<suffix>["\'])'
)
_SRCSET_RE = re.compile(r'(?P<prefix>\bsrcset=["\'])(?P<value>[^"\']+)(?P<suffix>["\'])')
_BLOCK_TAG_RE = re.compile(
    r"</?(?:p|div|br|hr|li|ul|ol|dl|dt|dd|h[1-6]|blockquote|pre|table|thead|tbody|tr|td|th|section|article|header|footer|figure|figcaption)\b[^>]*>",
    re.IGNORECASE,
)
_TAG_RE = re.compile(r"<[^>]+>")

_URL_SKIP_PREFIXES = (
    "http://",
    "https://",
    "//",
    "mailto:",
    "tel:",
    "#",
    "javascript:",
    "data:",
)


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('https://example.com/', 'about')
        'https://example.com/about'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def _absolutize(url: str, root_url: str) -> str:
    if not url or url.startswith(_URL_SKIP_PREFIXES) or not url.startswith("/"):
        return url
    return join_root_url(root_url, url)


def absolutize_html_urls(html: str, root_url: str) -> str:
    """Rewrite root-relative URLs in HTML to absolute URLs.

    ``href``, ``src``, ``action`` and each candidate of a ``srcset`` are
    rewritten. External URLs, anchors, relative paths and special schemes are
    left alone.

    Examples:
        >>> absolutize_html_urls('<a href="/about/">About</a>', 'https://example.com')
        '<a href="https://example.com/about/">About</a>'
    """
    if not root_url:
        return html

    def repl(match: re.Match) -> str:
        absolute = _absolutize(match.group("url"), root_url)
        return f"{match.group('prefix')}{absolute}{match.group('suffix')}"

    def repl_srcset(match: re.Match) -> str:
        candidates = []
        for candidate in match.group("value").split(","):
            parts = candidate.strip().split(maxsplit=1)
            if not parts:
                continue
            parts[0] = _absolutize(parts[0], root_url)
            candidates.append(" ".join(parts))
        return f"{match.group('prefix')}{', '.join(candidates)}{match.group('suffix')}"

    html = _URL_ATTR_RE.sub(repl, html)
    return _SRCSET_RE.sub(repl_srcset, html)


def html_to_text(html: str) -> str:
    """Strip tags and entities from an HTML fragment, collapsing whitespace.

    Block-level tags become word breaks; inline tags vanish so punctuation
    stays attached to the word before it.
    """
    text = _TAG_RE.sub("", _BLOCK_TAG_RE.sub(" ", html))
    return " ".join(unescape(text).split())
