from datetime import datetime
from pathlib import Path

import pytest

from conftest import write_image, write_post
from inkwell.content import (
    ContentProcessor,
    DefaultPageBuilder,
    FileContentLoader,
    LayoutResolver,
    UrlDeriver,
)
from inkwell.errors import ContentError, DuplicateSlugError
from inkwell.protocols import ContentLoader, PageBuilder


def test_loader_skips_internal_folders_and_drafts(project):
    site = project / "site"
    (site / "_layouts" / "custom.html.jinja").write_text("x", encoding="utf-8")
    (site / "_notes.md").write_text("draft", encoding="utf-8")
    (site / "notes.txt").write_text("ignored", encoding="utf-8")
    loader = FileContentLoader(site)
    names = [p.name for p in loader.iter_files()]
    assert names == ["about.md", "index.md", "2024-01-01-first.mdx", "2024-02-01-second.md"]
    assert "_notes.md" in [p.name for p in loader.iter_files(include_drafts=True)]
    assert isinstance(loader, ContentLoader)


def test_url_deriver():
    deriver = UrlDeriver()
    assert deriver.derive(Path("index.md"), "index") == "/"
    assert deriver.derive(Path("about.md"), "about") == "/about/"
    assert deriver.derive(Path("docs/index.md"), "index") == "/docs/"
    assert deriver.derive(Path("docs/setup.md"), "setup") == "/docs/setup/"
    assert deriver.derive(Path("posts/2024/a.mdx"), "hello", is_post=True) == "/hello/"


def test_layout_resolver(tmp_path):
    site = tmp_path / "site"
    (site / "_layouts").mkdir(parents=True)
    (site / "_layouts" / "docs.html.jinja").write_text("", encoding="utf-8")
    resolver = LayoutResolver(site)
    assert resolver.resolve(site / "posts" / "a.md", "posts") == "post"
    assert resolver.resolve(site / "index.html.jinja", "") == "home"
    assert resolver.resolve(site / "docs" / "a.md", "docs") == "docs"
    assert resolver.resolve(site / "about.md", "") == "default"
    assert resolver.resolve(site / "about.md", "", {"layout": "wide"}) == "wide"


def test_build_post_page(project):
    site = project / "site"
    builder = DefaultPageBuilder(site)
    page = builder.build(site / "posts" / "2024-01-01-first.mdx")
    assert isinstance(builder, PageBuilder)
    assert page.is_post
    assert page.title == "First Post"
    assert page.slug == "first-post"
    assert page.url == "/first-post/"
    assert page.author == "Ada"
    assert page.date == datetime(2024, 1, 1)
    assert page.layout == "post"
    assert page.source_type == "mdx"
    assert page.image == site / "posts" / "images" / "first.jpg"
    assert page.excerpt == "The first post body."
    assert "import" not in page.content
    assert 'class="highlight"' in page.content


def test_post_summary_uses_url_as_slug(project):
    site = project / "site"
    page = DefaultPageBuilder(site).build(site / "posts" / "2024-02-01-second.md")
    summary = page.summary(image="thumb")
    assert summary.slug == "/second/"
    assert summary.title == "Second & Last"
    assert summary.excerpt == "The second post body."
    assert summary.image == "thumb"


def test_slug_falls_back_to_filename(project):
    site = project / "site"
    path = write_post(site, "2024-03-01-no-slug.md", "title: T\nimage: images/first.jpg")
    page = DefaultPageBuilder(site).build(path)
    assert page.url == "/no-slug/"


def test_image_resolved_from_assets(project):
    site = project / "site"
    write_image(project / "assets" / "images" / "shared.jpg")
    path = write_post(site, "shared.md", "title: Shared\nimage: /shared.jpg")
    page = DefaultPageBuilder(site).build(path)
    assert page.image == project / "assets" / "images" / "shared.jpg"


@pytest.mark.parametrize(
    "frontmatter, message",
    [
        ("image: images/first.jpg", "title"),
        ("title: No Image", "image"),
        ("title: Gone\nimage: images/gone.jpg", "Image not found"),
    ],
)
def test_post_validation(project, frontmatter, message):
    site = project / "site"
    path = write_post(site, "broken.md", frontmatter)
    with pytest.raises(ContentError) as info:
        DefaultPageBuilder(site).build(path)
    assert message in info.value.message
    assert info.value.source_path == path


def test_processor_loads_pages_and_drops_drafts(project):
    site = project / "site"
    write_post(site, "hidden.md", "title: Hidden\nimage: images/first.jpg\ndraft: true")
    write_post(site, "_underscore.md", "title: Under\nimage: images/first.jpg")
    processor = ContentProcessor(site)
    urls = sorted(p.url for p in processor.load())
    assert urls == ["/", "/about/", "/first-post/", "/second/"]

    with_drafts = {p.url: p for p in processor.load(include_drafts=True)}
    assert with_drafts["/hidden/"].draft
    assert with_drafts["/underscore/"].draft


def test_processor_rejects_duplicate_slugs(project):
    site = project / "site"
    write_post(site, "2024-05-05-copy.md", "title: Copy\nslug: first-post\nimage: images/first.jpg")
    with pytest.raises(DuplicateSlugError) as info:
        ContentProcessor(site).load()
    assert info.value.url == "/first-post/"
    assert info.value.other_path.name == "2024-01-01-first.mdx"
    assert "already used by 2024-01-01-first.mdx" in str(info.value)


def test_non_utf8_file_is_a_content_error(project):
    site = project / "site"
    path = site / "posts" / "latin1.md"
    path.write_bytes(b"---\ntitle: Caf\xe9\nimage: images/first.jpg\n---\n\nCaf\xe9.\n")
    with pytest.raises(ContentError) as info:
        ContentProcessor(site).load()
    assert info.value.source_path == path
    assert "not valid UTF-8" in info.value.message
