"""Inkwell static blog generator.

This package turns a folder of Markdown/MDX posts with YAML metadata headers into
a static personal blog. The home page lists every post as a preview card with a
thumbnail, a title and an excerpt, each linking to the post.

The main entry point is the CLI module, which provides commands for scaffolding a
new blog, building it, running the development server and creating posts.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
