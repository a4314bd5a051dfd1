"""Content processing for Inkwell.

This module discovers content files under ``site/``, extracts their metadata,
renders their bodies and builds ``Page`` objects. Files under ``site/posts/``
are blog posts; every other content file is a standalone page.

Key classes:
- Page: Dataclass representing one rendered content file.
- PostSummary: The read-only data a post preview card needs.
- FileContentLoader: Discovers content files.
- LayoutResolver: Picks the layout template for a page.
- UrlDeriver: Derives the routable path of a page.
- DefaultPageBuilder: Builds a Page from a source file.
- ContentProcessor: Facade loading every page and checking url uniqueness.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .errors import ContentError, DuplicateSlugError
from .extractors import (
    CompositeMetadataExtractor,
    default_metadata_extractor,
    read_source,
)
from .renderers import RendererRegistry, default_renderer_registry, rewrite_image_path
from .utils import is_content, slugify

if TYPE_CHECKING:
    from .images import FluidImage
    from .protocols import ContentLoader, PageBuilder

IMAGE_SRC_RE = re.compile(r'<img\s+[^>]*src="([^"]+)"', re.IGNORECASE)

POSTS_GROUP = "posts"
LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html")


@dataclass(frozen=True)
class PostSummary:
    """The minimal data needed to render a preview for one post.

    Attributes:
        slug: Unique routable path of the post, e.g. ``/hello-world/``.
        title: Display title.
        excerpt: Short plain-text excerpt.
        image: Processed thumbnail image.
    """

    slug: str
    title: str
    excerpt: str
    image: FluidImage


@dataclass
class Page:
    """Represents a content file with all its metadata and rendered body.

    Attributes:
        title: Human-readable title.
        body: Body text from the source file, frontmatter removed.
        content: Rendered HTML content.
        description: Short description for meta tags and feeds.
        excerpt: Plain-text excerpt shown on preview cards.
        url: Routable path of the page.
        slug: Bare slug, e.g. ``hello-world``.
        date: Publication date.
        author: Author name, empty when unknown.
        image: Path to the hero image source, if any.
        draft: Whether this is a draft.
        layout: Layout template to use.
        group: ``posts`` for blog posts, otherwise the top folder.
        path: Path to the source file.
        folder: Folder path relative to the site directory.
        filename: Name of the source file.
        source_type: "markdown", "mdx", "html" or "jinja".
        frontmatter: Raw metadata header.
    """

    title: str
    body: str
    content: str
    description: str
    excerpt: str
    url: str
    slug: str
    date: datetime
    author: str
    image: Path | None
    draft: bool
    layout: str
    group: str
    path: Path
    folder: str
    filename: str
    source_type: str
    frontmatter: dict[str, Any] = field(default_factory=dict)

    @property
    def is_post(self) -> bool:
        return self.group == POSTS_GROUP

    def summary(self, image: FluidImage) -> PostSummary:
        """Build the preview data of this post from its processed image."""
        return PostSummary(slug=self.url, title=self.title, excerpt=self.excerpt, image=image)


class FileContentLoader:
    """Discovers content files in a site directory.

    Folders starting with ``_`` are internal and never loaded; files starting
    with ``_`` are drafts.
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        files: list[Path] = []
        for path in sorted(self.site_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.site_dir)
            if any(part.startswith("_") for part in rel.parts[:-1]):
                continue
            if rel.name.startswith("_") and not include_drafts:
                continue
            if is_content(path):
                files.append(path)
        return files


class LayoutResolver:
    """Resolves layout templates for pages.

    Order of preference:
    1. The frontmatter ``layout`` key.
    2. ``post`` for posts, ``home`` for the root index.
    3. ``{folder}/{name}``, then ``{group}``, then ``{name}`` if such a layout
       exists in the site's ``_layouts`` folder.
    4. ``default``.
    """

    def __init__(self, site_dir: Path):
        self.site_dir = site_dir
        self.layout_dir = site_dir / "_layouts"

    def resolve(self, path: Path, folder: str, frontmatter: dict[str, Any] | None = None) -> str:
        if frontmatter and frontmatter.get("layout"):
            return str(frontmatter["layout"])
        group = self.group_from_folder(folder)
        name = path.name.split(".")[0]
        if group == POSTS_GROUP:
            return "post"
        if not folder and name == "index":
            return "home"

        candidates = [f"{folder}/{name}", group] if folder else [name]
        for candidate in candidates:
            for suffix in LAYOUT_SUFFIXES:
                if (self.layout_dir / f"{candidate}{suffix}").exists():
                    return candidate
        return "default"

    @staticmethod
    def group_from_folder(folder: str) -> str:
        if not folder:
            return ""
        return Path(folder).parts[0]


class UrlDeriver:
    """Derives routable paths for pages.

    Posts live at ``/<slug>/`` regardless of the folder they are stored in;
    other pages mirror the folder structure.
    """

    def derive(self, rel: Path, slug: str, is_post: bool = False) -> str:
        if is_post:
            return f"/{slug}/"
        segments = [p for p in rel.parent.parts if p]
        url_parts = segments if slug == "index" else segments + [slug]
        path = "/".join(url_parts)
        return f"/{path}/" if path else "/"


class DefaultPageBuilder:
    """Builds Page objects from source files.

    Attributes:
        site_dir: Directory containing site content.
        project_root: Project directory; ``assets/images`` is searched for
            hero images not found next to the post.
        renderer_registry: Registry of body renderers.
        metadata_extractor: Composite metadata extractor.
    """

    def __init__(
        self,
        site_dir: Path,
        renderer_registry: RendererRegistry | None = None,
        metadata_extractor: CompositeMetadataExtractor | None = None,
    ):
        self.site_dir = site_dir
        self.project_root = site_dir.parent
        self.renderer_registry = renderer_registry or default_renderer_registry
        self.metadata_extractor = metadata_extractor or default_metadata_extractor
        self.layout_resolver = LayoutResolver(site_dir)
        self.url_deriver = UrlDeriver()

    def build(self, path: Path, draft: bool = False) -> Page:
        """Build a Page object from a source file.

        Raises:
            ContentError: If the metadata of a post is incomplete.
        """
        rel = path.relative_to(self.site_dir)
        folder = rel.parent.as_posix() if rel.parent != Path(".") else ""
        group = self.layout_resolver.group_from_folder(folder)
        is_post = group == POSTS_GROUP
        raw = read_source(path)

        metadata = self.metadata_extractor.extract(raw, path)
        frontmatter = metadata["frontmatter"]
        body = metadata["body"]

        renderer = self.renderer_registry.get_renderer(path)
        if renderer is None:
            raise ContentError(path, "No renderer for this file type")
        content = self._rewrite_inline_images(renderer.render(body, folder), folder)

        slug = slugify(str(frontmatter["slug"])) if frontmatter.get("slug") else slugify(path.name.split(".")[0])
        image = self._resolve_image(path, frontmatter.get("image"))
        if is_post:
            self._validate_post(path, frontmatter, image)

        return Page(
            title=metadata["title"],
            body=body,
            content=content,
            description=metadata.get("description", ""),
            excerpt=metadata.get("excerpt", ""),
            url=self.url_deriver.derive(rel, slug, is_post=is_post),
            slug=slug,
            date=metadata["date"],
            author=str(frontmatter.get("author") or ""),
            image=image,
            draft=draft or bool(frontmatter.get("draft", False)),
            layout=self.layout_resolver.resolve(path, folder, frontmatter),
            group=group,
            path=path,
            folder=folder,
            filename=path.name,
            source_type=renderer.source_type,
            frontmatter=frontmatter,
        )

    def _resolve_image(self, path: Path, reference: Any) -> Path | None:
        """Find the hero image file for a page.

        The reference is tried relative to the source file, then to
        ``assets/images``. Unresolvable references come back as the
        path next to the source so validation can report them.
        """
        if not reference:
            return None
        reference = str(reference).lstrip("/")
        candidates = [
            path.parent / reference,
            self.project_root / "assets" / "images" / reference,
            self.project_root / reference,
        ]
        for candidate in candidates:
            if candidate.is_file():
                return candidate
        return candidates[0]

    def _validate_post(self, path: Path, frontmatter: dict[str, Any], image: Path | None) -> None:
        if not str(frontmatter.get("title") or "").strip():
            raise ContentError(path, "Post is missing a 'title' in its frontmatter")
        if image is None:
            raise ContentError(path, "Post is missing an 'image' in its frontmatter")
        if not image.is_file():
            raise ContentError(path, f"Image not found: {frontmatter['image']}")

    def _rewrite_inline_images(self, html: str, folder: str) -> str:
        def repl(match: re.Match) -> str:
            src = match.group(1)
            return match.group(0).replace(src, rewrite_image_path(src, folder))

        return IMAGE_SRC_RE.sub(repl, html)


class ContentProcessor:
    """Loads every content file of a site into Page objects.

    Attributes:
        site_dir: Directory containing site content.
    """

    def __init__(
        self,
        site_dir: Path,
        content_loader: ContentLoader | None = None,
        page_builder: PageBuilder | None = None,
    ):
        self.site_dir = site_dir
        self._content_loader = content_loader or FileContentLoader(site_dir)
        self._page_builder = page_builder or DefaultPageBuilder(site_dir)

    def load(self, include_drafts: bool = False) -> list[Page]:
        """Load all content files and create Page objects.

        Pages marked ``draft: true`` in their frontmatter are dropped unless
        drafts are requested.

        Raises:
            ContentError: If a file has invalid metadata.
            DuplicateSlugError: If two pages resolve to the same url.
        """
        pages: list[Page] = []
        seen: dict[str, Path] = {}
        for path in self._content_loader.iter_files(include_drafts):
            page = self._page_builder.build(path, draft=path.name.startswith("_"))
            if page.draft and not include_drafts:
                continue
            if page.url in seen:
                raise DuplicateSlugError(path, page.url, seen[page.url])
            seen[page.url] = path
            pages.append(page)
        return pages
