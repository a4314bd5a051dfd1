from pathlib import Path

import pytest
from PIL import Image


def write_image(path: Path, size=(400, 200), color="red") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new("RGB", size, color=color).save(path)
    return path


def write_post(site: Path, name: str, frontmatter: str, body: str = "Body text.") -> Path:
    path = site / "posts" / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{frontmatter}\n---\n\n{body}\n", encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A small blog with two posts, an about page and a home intro."""
    site = tmp_path / "site"
    (site / "_layouts").mkdir(parents=True)
    (site / "_partials").mkdir()
    (tmp_path / "data").mkdir()
    (tmp_path / "inkwell.yaml").write_text(
        "output_dir: output\nthumbnail_width: 100\nhero_width: 200\n", encoding="utf-8"
    )
    (tmp_path / "data" / "site.yaml").write_text(
        "title: Test Blog\ndescription: A blog for tests\nurl: https://example.com\n",
        encoding="utf-8",
    )
    (site / "index.md").write_text("Welcome to the blog.", encoding="utf-8")
    (site / "about.md").write_text("---\ntitle: About\n---\n\n# About\n\nHi.", encoding="utf-8")
    write_image(site / "posts" / "images" / "first.jpg")
    write_image(site / "posts" / "images" / "second.png", size=(300, 300), color="blue")
    write_post(
        site,
        "2024-01-01-first.mdx",
        "title: First Post\nslug: first-post\nauthor: Ada\nimage: images/first.jpg",
        "import { Thing } from './thing';\n\nThe first post body.\n\n```python\nprint('hi')\n```",
    )
    write_post(
        site,
        "2024-02-01-second.md",
        "title: Second & Last\nslug: second\nauthor: Grace\nimage: images/second.png",
        "The second post body.",
    )
    return tmp_path
