"""Post preview cards.

A preview card shows one post on listing pages: a thumbnail and a title that
both link to the post, followed by the excerpt. Rendering is pure: the same
summary always produces the same markup and nothing outside the returned
string is touched.

The markup comes from the ``post-preview.html.jinja`` partial. A site can
override it by shipping its own copy in ``site/_partials/``.
"""

from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .content import PostSummary

THEME_DIR = Path(__file__).parent / "theme"


def theme_environment() -> Environment:
    """Jinja environment that only sees the built-in theme."""
    return Environment(
        loader=FileSystemLoader([THEME_DIR / "_layouts", THEME_DIR / "_partials"]),
        autoescape=select_autoescape(["html", "xml", "jinja"]),
    )


class PostPreview:
    """Renders ``PostSummary`` objects as preview cards.

    Attributes:
        env: Jinja environment used to look up the partial.
    """

    template_name = "post-preview.html.jinja"

    def __init__(self, env: Environment | None = None):
        self.env = env or theme_environment()

    def render(self, post: PostSummary) -> Markup:
        """Return the card markup for ``post``.

        Both links of the card point at ``post.slug``.
        """
        template = self.env.get_template(self.template_name)
        return Markup(template.render(post=post).strip())

    __call__ = render


def render_post_preview(post: PostSummary, env: Environment | None = None) -> Markup:
    """Render a single preview card with the built-in (or given) templates."""
    return PostPreview(env).render(post)
