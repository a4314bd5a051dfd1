"""Site building for Inkwell.

Loads configuration and site data, processes content, resizes post images,
renders templates and writes the static site.

Key functions:
- build_site: Build the entire site.
- load_config: Load configuration from inkwell.yaml.
- load_data: Load site data from YAML files in the data directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError

from .assets import AssetPipeline
from .collections import PageCollection
from .content import ContentProcessor, DefaultPageBuilder, Page, PostSummary
from .errors import BuildError, ContentError
from .extractors import CompositeMetadataExtractor
from .feeds import create_default_feed_registry
from .html_utils import absolutize_html_urls
from .images import FluidImage, ImageSharp
from .templates import TemplateEngine
from .utils import ensure_clean_dir

__all__ = [
    "BuildError",
    "BuildResult",
    "build_site",
    "load_config",
    "load_data",
]

CONFIG_FILENAME = "inkwell.yaml"

DEFAULT_CONFIG = {
    "output_dir": "output",
    "port": 4000,
    "root_url": "",
    "thumbnail_width": 100,
    "hero_width": 800,
    "excerpt_length": 140,
}


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        pages: Every page written.
        output_dir: Directory where the site was built.
        data: Global site data.
        summaries: Preview data of the published posts, newest first.
        feeds: Feed filenames written.
    """

    pages: list[Page]
    output_dir: Path
    data: dict[str, Any]
    summaries: list[PostSummary] = field(default_factory=list)
    feeds: list[str] = field(default_factory=list)


def _read_yaml(path: Path) -> Any:
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise BuildError(path, f"Invalid YAML: {exc}", exc) from exc


def load_config(project_root: Path) -> dict[str, Any]:
    """Load configuration from inkwell.yaml, with defaults applied."""
    config = DEFAULT_CONFIG.copy()
    config_path = project_root / CONFIG_FILENAME
    if config_path.exists():
        loaded = _read_yaml(config_path) or {}
        if not isinstance(loaded, dict):
            raise BuildError(config_path, "Configuration must be a mapping")
        config.update(loaded)
    return config


def load_data(project_root: Path) -> dict[str, Any]:
    """Load site data from ``data/*.yaml``.

    ``site.yaml`` is merged into the top level; other files are keyed by their
    stem (``data/nav.yaml`` becomes ``data.nav``).
    """
    data_dir = project_root / "data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    for path in sorted(data_dir.glob("*.yaml")):
        payload = _read_yaml(path)
        if payload is None:
            continue
        if path.name == "site.yaml":
            if not isinstance(payload, dict):
                raise BuildError(path, "site.yaml must be a mapping")
            data.update(payload)
        else:
            data[path.stem] = payload
    return data


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project.
        include_drafts: Whether to include drafts.
        root_url: Optional base URL to absolutize links with.
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Write here instead of the configured output_dir.

    Raises:
        BuildError: If any content file, image or template fails.
    """
    config = load_config(project_root)
    if root_url is not None:
        config["root_url"] = root_url
    output_dir = output_dir_override or (project_root / config["output_dir"])
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    data = load_data(project_root)
    resolved_root = str(config.get("root_url") or "")
    if resolved_root:
        data.setdefault("root_url", resolved_root)

    site_dir = project_root / "site"
    if not site_dir.exists():
        raise FileNotFoundError(f"Expected site directory at {site_dir}")
    builder = DefaultPageBuilder(
        site_dir,
        metadata_extractor=CompositeMetadataExtractor(
            excerpt_length=int(config["excerpt_length"])
        ),
    )
    pages = ContentProcessor(site_dir, page_builder=builder).load(include_drafts=include_drafts)

    sharp = ImageSharp(output_dir)
    posts = PageCollection(pages).posts().sorted()
    summaries = [
        post.summary(_process_image(sharp, post, int(config["thumbnail_width"])))
        for post in posts
    ]
    hero_images = {
        post.url: _process_image(sharp, post, int(config["hero_width"])) for post in posts
    }

    engine = TemplateEngine(site_dir, data, root_url=resolved_root)
    engine.update_collections(pages, summaries, hero_images)
    for page in pages:
        rendered = _render(engine, page)
        if resolved_root:
            rendered = absolutize_html_urls(rendered, resolved_root)
        _write_page(output_dir, page, rendered)

    not_found = engine.render_not_found()
    if resolved_root:
        not_found = absolutize_html_urls(not_found, resolved_root)
    (output_dir / "404.html").write_text(not_found, encoding="utf-8")

    AssetPipeline(project_root, output_dir).run()
    feeds = create_default_feed_registry().generate_all(output_dir, pages, data)
    return BuildResult(
        pages=pages, output_dir=output_dir, data=data, summaries=summaries, feeds=feeds
    )


def _process_image(sharp: ImageSharp, post: Page, width: int) -> FluidImage:
    if post.image is None:
        raise ContentError(post.path, "Post is missing an 'image' in its frontmatter")
    return sharp.fluid(post.image, width)


def _render(engine: TemplateEngine, page: Page) -> str:
    try:
        return engine.render_page(page)
    except TemplateSyntaxError as exc:
        raise BuildError(
            page.path,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except Exception as exc:
        raise BuildError(page.path, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TemplateNotFound":
        return f"Template not found: {error_msg}"
    return f"{error_type}: {error_msg}"


def _write_page(output_dir: Path, page: Page, rendered: str) -> None:
    target_dir = output_dir / page.url.strip("/")
    target_dir.mkdir(parents=True, exist_ok=True)
    (target_dir / "index.html").write_text(rendered, encoding="utf-8")
