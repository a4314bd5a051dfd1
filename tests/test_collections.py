from datetime import datetime
from pathlib import Path

from inkwell.collections import PageCollection
from inkwell.content import Page


def make_page(name, group="posts", date=None, author="", draft=False):
    return Page(
        title=name,
        body="",
        content="",
        description="",
        excerpt="",
        url=f"/{name}/",
        slug=name,
        date=date or datetime(2024, 1, 1),
        author=author,
        image=None,
        draft=draft,
        layout="post" if group == "posts" else "default",
        group=group,
        path=Path(f"site/{group}/{name}.md"),
        folder=group,
        filename=f"{name}.md",
        source_type="markdown",
    )


def test_filters():
    pages = PageCollection(
        [
            make_page("a", author="Ada"),
            make_page("b", author="Grace", draft=True),
            make_page("about", group=""),
        ]
    )
    assert [p.slug for p in pages.posts()] == ["a", "b"]
    assert [p.slug for p in pages.group("")] == ["about"]
    assert [p.slug for p in pages.by_author("Ada")] == ["a"]
    assert [p.slug for p in pages.drafts()] == ["b"]
    assert [p.slug for p in pages.published()] == ["a", "about"]
    assert len(pages) == 3
    assert pages[0].slug == "a"


def test_sorted_newest_first_with_name_tiebreak():
    pages = PageCollection(
        [
            make_page("old", date=datetime(2023, 1, 1)),
            make_page("beta", date=datetime(2024, 1, 1)),
            make_page("alpha", date=datetime(2024, 1, 1)),
        ]
    )
    assert [p.slug for p in pages.sorted()] == ["beta", "alpha", "old"]
    assert [p.slug for p in pages.sorted(reverse=False)] == ["old", "alpha", "beta"]
    assert [p.slug for p in pages.latest(1)] == ["beta"]
