"""Command-line interface for Inkwell.

Commands:
- new: Scaffold a new blog.
- build: Build the blog into the output directory.
- serve: Run the development server with live reload.
- post: Create a new post interactively.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from datetime import date
from pathlib import Path

import click
import questionary
import yaml
from PIL import Image, ImageDraw

from . import __version__
from .errors import ContentError
from .utils import slugify

_STARTER_DIR = Path(__file__).parent / "starter"

# Hero images generated for the starter posts: (path, background, accent).
_STARTER_IMAGES = (
    ("site/posts/images/hello-world.jpg", (38, 70, 83), (233, 196, 106)),
    ("site/posts/images/context-and-reducers.jpg", (42, 157, 143), (244, 162, 97)),
)


@click.group()
@click.version_option(version=__version__, prog_name="inkwell")
def cli():
    """Inkwell static blog generator."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new blog."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Inkwell blog created at {target}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft posts")
def build(drafts: bool):
    """Build the blog into the output directory."""
    project_root = Path.cwd()
    from .build import build_site
    from .errors import BuildError

    try:
        result = build_site(project_root, include_drafts=drafts)
    except BuildError as exc:
        try:
            shown = exc.source_path.relative_to(project_root)
        except ValueError:
            shown = exc.source_path
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {shown}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.pages)} pages ({len(result.summaries)} posts) into {result.output_dir}"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include draft posts")
@click.option("--port", type=int, required=False, help="HTTP port (overrides inkwell.yaml)")
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Live reload websocket port (overrides inkwell.yaml ws_port)",
)
def serve(drafts: bool, port: int | None, ws_port: int | None):
    """Run the dev server with live reload."""
    project_root = Path.cwd()
    from .server import DevServer

    server = DevServer(project_root, http_port=port, ws_port=ws_port)
    server.start(include_drafts=drafts)


@cli.command()
def post():
    """Create a new post interactively."""
    project_root = Path.cwd()
    posts_dir = project_root / "site" / "posts"
    if not (project_root / "site").exists():
        raise click.ClickException(
            "No site/ directory found. Run this command from an Inkwell project root."
        )

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    slug = questionary.text(
        "Slug:", default=slugify(title), style=_questionary_style()
    ).ask()
    if slug is None:
        raise click.Abort()
    slug = slugify(slug)

    author = questionary.text(
        "Author:", default=_default_author(project_root), style=_questionary_style()
    ).ask()
    if author is None:
        raise click.Abort()

    try:
        existing = _existing_slugs(posts_dir)
    except ContentError as exc:
        raise click.ClickException(str(exc)) from exc
    if slug in existing:
        raise click.ClickException(
            f"A post with slug '{slug}' already exists: {existing[slug].name}"
        )

    target = posts_dir / f"{date.today().isoformat()}-{slug}.mdx"
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(_post_template(title, slug, author.strip()), encoding="utf-8")
    click.echo(f"Created {target.relative_to(project_root)}")
    click.echo(f"Add a hero image at site/posts/images/{slug}.jpg before building.")


def _post_template(title: str, slug: str, author: str) -> str:
    frontmatter = {
        "title": title,
        "slug": slug,
        "author": author,
        "image": f"images/{slug}.jpg",
    }
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    return f"---\n{header}---\n\nWrite your post here.\n"


def _existing_slugs(posts_dir: Path) -> dict[str, Path]:
    """Map every post slug under ``posts_dir`` to its file."""
    from .extractors import extract_frontmatter, read_source
    from .utils import is_content

    slugs: dict[str, Path] = {}
    if not posts_dir.exists():
        return slugs
    for path in sorted(posts_dir.rglob("*")):
        if not path.is_file() or not is_content(path):
            continue
        frontmatter, _ = extract_frontmatter(read_source(path), path)
        slug = frontmatter.get("slug") or path.name.split(".")[0]
        slugs[slugify(str(slug))] = path
    return slugs


def _default_author(project_root: Path) -> str:
    from .build import load_data

    return str(load_data(project_root).get("author") or "")


def _questionary_style():
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Copy the starter blog into ``root`` and draw its hero images."""
    for src_path in _STARTER_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        dest_path = root / src_path.relative_to(_STARTER_DIR)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)
    for rel, background, accent in _STARTER_IMAGES:
        _draw_placeholder(root / rel, background, accent)
    _try_git_init(root)


def _draw_placeholder(path: Path, background: tuple, accent: tuple) -> None:
    """Write a simple 1200x675 banner image."""
    path.parent.mkdir(parents=True, exist_ok=True)
    img = Image.new("RGB", (1200, 675), background)
    draw = ImageDraw.Draw(img)
    draw.ellipse((780, 180, 1100, 500), fill=accent)
    draw.rectangle((100, 420, 640, 460), fill=accent)
    img.save(path, quality=85)


def _try_git_init(root: Path) -> None:
    """Initialize a git repository if git is available."""
    if os.environ.get("INKWELL_SKIP_GIT_INIT") == "1":
        return
    git_bin = shutil.which("git")
    if not git_bin:
        return
    try:
        subprocess.run([git_bin, "init"], cwd=root, check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError):
        click.echo("git init failed; run it yourself if you want version control.", err=True)
