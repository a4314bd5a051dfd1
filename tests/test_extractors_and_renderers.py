import re
from datetime import datetime
from pathlib import Path

import pytest

from inkwell.errors import ContentError
from inkwell.extractors import (
    CompositeMetadataExtractor,
    DateExtractor,
    ExcerptExtractor,
    TitleExtractor,
    extract_frontmatter,
    plain_text,
)
from inkwell.protocols import ContentRenderer, MetadataExtractor
from inkwell.renderers import (
    HTMLRenderer,
    JinjaContentRenderer,
    MarkdownRenderer,
    MdxRenderer,
    RendererRegistry,
    generate_heading_id,
    rewrite_image_path,
    strip_mdx_statements,
)

# --- Extractors ---


def test_extract_frontmatter_splits_header():
    data, body = extract_frontmatter("---\ntitle: Hi\nslug: hi\n---\n\nBody")
    assert data == {"title": "Hi", "slug": "hi"}
    assert body.strip() == "Body"


def test_extract_frontmatter_absent_and_invalid():
    assert extract_frontmatter("No header") == ({}, "No header")
    with pytest.raises(ContentError):
        extract_frontmatter("---\ntitle: [unclosed\n---\n", Path("bad.md"))
    with pytest.raises(ContentError):
        extract_frontmatter("---\n- a list\n---\n", Path("list.md"))


def test_title_extractor_precedence():
    extractor = TitleExtractor()
    assert extractor.extract("# Heading", Path("x.md"), {"title": "Meta"})["title"] == "Meta"
    assert extractor.extract("# Heading\n\nText", Path("x.md"), {})["title"] == "Heading"
    assert extractor.extract("Text", Path("my-file.md"), {})["title"] == "My File"


def test_date_extractor_sources(tmp_path):
    extractor = DateExtractor()
    dated = tmp_path / "2024-01-15-test.md"
    dated.write_text("x", encoding="utf-8")
    assert extractor.extract("", dated, {})["date"] == datetime(2024, 1, 15)
    assert extractor.extract("", dated, {"date": "2023-05-06"})["date"] == datetime(2023, 5, 6)

    undated = tmp_path / "test.md"
    undated.write_text("x", encoding="utf-8")
    assert isinstance(extractor.extract("", undated, {})["date"], datetime)

    with pytest.raises(ContentError):
        extractor.extract("", undated, {"date": "someday"})


def test_plain_text_skips_non_prose():
    body = (
        "import X from './x'\n\n"
        "# Title\n\n"
        "First **bold** and [a link](/x/).\n\n"
        "```js\nconst skipped = true;\n```\n\n"
        "![alt](pic.png)\n\n"
        "<Callout>jsx</Callout>\n\n"
        "Second paragraph."
    )
    assert plain_text(body) == "First bold and a link. Second paragraph."


def test_excerpt_extractor_prunes_and_respects_frontmatter():
    extractor = ExcerptExtractor(length=20)
    result = extractor.extract("A fairly long opening sentence here.", Path("p.mdx"), {})
    assert result["excerpt"] == "A fairly long…"
    assert result["description"] == "A fairly long opening sentence here."

    custom = extractor.extract("Body", Path("p.mdx"), {"excerpt": "Hand\nwritten", "description": "D"})
    assert custom == {"excerpt": "Hand written", "description": "D"}

    html = extractor.extract("<p>Some <b>html</b></p>", Path("p.html"), {})
    assert html["excerpt"] == "Some html"


def test_composite_extractor_merges(tmp_path):
    path = tmp_path / "2024-01-15-post.mdx"
    text = "---\ntitle: Post\n---\n\nHello there."
    path.write_text(text, encoding="utf-8")
    result = CompositeMetadataExtractor().extract(text, path)
    assert result["frontmatter"] == {"title": "Post"}
    assert result["title"] == "Post"
    assert result["date"] == datetime(2024, 1, 15)
    assert result["excerpt"] == "Hello there."

    class AuthorExtractor:
        def extract(self, content, path, frontmatter):
            return {"author": "someone"}

    composite = CompositeMetadataExtractor(extractors=[])
    composite.add_extractor(AuthorExtractor())
    assert isinstance(AuthorExtractor(), MetadataExtractor)
    assert composite.extract(text, path)["author"] == "someone"


# --- Renderers ---


def test_heading_ids_and_image_paths():
    assert generate_heading_id("Hello, World!") == "hello-world"
    assert generate_heading_id("<code>x</code> y") == "x-y"
    assert rewrite_image_path("pic.png", "posts") == "/assets/images/posts/pic.png"
    assert rewrite_image_path("/static/pic.png", "posts") == "/static/pic.png"
    assert rewrite_image_path("https://cdn/x.png", "") == "https://cdn/x.png"


def test_markdown_renderer_highlights_and_anchors():
    html = MarkdownRenderer().render(
        "## Intro\n\n## Intro\n\n```python\nx = 1\n```\n\n```nolang\n<b>\n```\n\n![alt](a.png)",
        "posts",
    )
    assert '<h2 id="intro">Intro</h2>' in html
    assert '<h2 id="intro-1">Intro</h2>' in html
    assert 'class="highlight"' in html
    assert '<pre><code class="language-nolang">&lt;b&gt;' in html
    assert 'src="/assets/images/posts/a.png"' in html


def test_strip_mdx_statements_keeps_code_fences():
    source = (
        "import A from 'a'\n"
        "export const meta = {\n  title: 'x',\n}\n"
        "Text\n\n"
        "```js\nimport B from 'b'\n```\n"
    )
    stripped = strip_mdx_statements(source)
    assert "import A" not in stripped
    assert "export const" not in stripped
    assert "title: 'x'" not in stripped
    assert "Text" in stripped
    assert "import B from 'b'" in stripped


def test_mdx_renderer_passes_jsx_through():
    html = MdxRenderer().render("import X from 'x'\n\nHello\n\n<Callout>Note</Callout>\n", "")
    assert "import" not in html
    assert "<p>Hello</p>" in html
    assert "<Callout>Note</Callout>" in html


def test_registry_selects_by_file_type():
    registry = RendererRegistry()
    assert isinstance(registry.get_renderer(Path("a.mdx")), MdxRenderer)
    assert type(registry.get_renderer(Path("a.md"))) is MarkdownRenderer
    assert isinstance(registry.get_renderer(Path("a.html.jinja")), JinjaContentRenderer)
    assert isinstance(registry.get_renderer(Path("a.html")), HTMLRenderer)
    assert registry.get_renderer(Path("a.txt")) is None
    assert all(
        isinstance(r, ContentRenderer)
        for r in (MdxRenderer(), MarkdownRenderer(), HTMLRenderer(), JinjaContentRenderer())
    )
    assert HTMLRenderer().render("<p>x</p>", "") == "<p>x</p>"


def test_excerpt_skips_multiline_mdx_exports():
    body = "export const meta = {\n  secret: 'hidden',\n}\n\nReal prose here."
    result = ExcerptExtractor().extract(body, Path("p.mdx"), {})
    assert result["excerpt"] == "Real prose here."
    assert plain_text("import {\n  A,\n  B,\n} from 'x'\n\nText.") == "Text."


def test_plain_text_keeps_punctuation_after_inline_markup():
    assert plain_text("See *this*, `code` and [docs](/d/)!") == "See this, code and docs!"
    assert plain_text("One.\n\nTwo.") == "One. Two."


def test_heading_ids_stay_unique_when_text_matches_a_suffix():
    html = MarkdownRenderer().render("# Intro\n\n# Intro\n\n# Intro 1\n", "")
    ids = re.findall(r'id="([^"]+)"', html)
    assert ids == ["intro", "intro-1", "intro-1-1"]
