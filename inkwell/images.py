"""Responsive image processing for Inkwell.

Post hero images are resized into a small set of widths so pages can serve a
``srcset`` and let the browser pick. The output location is derived from the
image bytes and the requested width, so processing the same image twice gives
the same result and reuses the files already written.

Key classes:
- FluidImage: A processed responsive image ready to be rendered.
- ImageSharp: Resizes source images into the output directory.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from .errors import ImageProcessingError

# Multiples of the requested width written for every image.
WIDTH_FACTORS = (0.25, 0.5, 1, 1.5, 2)


@dataclass(frozen=True)
class FluidImage:
    """A responsive image.

    Attributes:
        src: URL of the variant matching the requested width.
        srcset: Comma separated ``<url> <width>w`` candidates.
        sizes: ``sizes`` attribute value.
        aspect_ratio: Width divided by height of the source image.
        width: Width of the ``src`` variant.
        height: Height of the ``src`` variant.
    """

    src: str
    srcset: str
    sizes: str
    aspect_ratio: float
    width: int
    height: int

    @property
    def padding_bottom(self) -> str:
        """Percentage used to reserve the image's box before it loads."""
        return f"{100 / self.aspect_ratio:.4f}%"


def target_widths(max_width: int, source_width: int) -> list[int]:
    """Widths to generate for an image.

    Multiples of ``max_width`` are kept only when they do not upscale the
    source; the source width itself is added when it falls below the widest
    multiple so the largest candidate is never missing.
    """
    widths = {round(max_width * factor) for factor in WIDTH_FACTORS}
    kept = {w for w in widths if 0 < w <= source_width}
    if source_width < max(widths):
        kept.add(source_width)
    return sorted(kept)


class ImageSharp:
    """Writes resized variants of images under ``<output>/assets/images``.

    Attributes:
        output_dir: Root of the built site.
        url_prefix: URL path the variants are served under.
    """

    def __init__(self, output_dir: Path, url_prefix: str = "/assets/images"):
        self.output_dir = output_dir
        self.url_prefix = url_prefix.rstrip("/")
        self._cache: dict[tuple[Path, int], FluidImage] = {}

    def fluid(self, source: Path, max_width: int) -> FluidImage:
        """Process ``source`` for display at up to ``max_width`` CSS pixels.

        Raises:
            ImageProcessingError: If the file is missing or not an image.
        """
        key = (source.resolve(), max_width)
        if key in self._cache:
            return self._cache[key]
        try:
            payload = source.read_bytes()
        except OSError as exc:
            raise ImageProcessingError(source, f"Cannot read image: {exc}", exc) from exc
        digest = hashlib.sha1(payload + str(max_width).encode()).hexdigest()[:12]
        try:
            with Image.open(source) as img:
                img.load()
                fluid = self._write_variants(img, source, digest, max_width)
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            raise ImageProcessingError(source, f"Cannot process image: {exc}", exc) from exc
        self._cache[key] = fluid
        return fluid

    def _write_variants(
        self, img: Image.Image, source: Path, digest: str, max_width: int
    ) -> FluidImage:
        source_width, source_height = img.size
        aspect_ratio = source_width / source_height
        candidates: list[str] = []
        chosen: tuple[str, int, int] | None = None
        for width in target_widths(max_width, source_width):
            height = max(1, round(width / aspect_ratio))
            rel = Path(digest) / str(width) / source.name
            dest = self.output_dir / "assets" / "images" / rel
            if not dest.exists():
                dest.parent.mkdir(parents=True, exist_ok=True)
                resized = img if width == source_width else img.resize((width, height), Image.Resampling.LANCZOS)
                resized.save(dest, optimize=True)
            url = f"{self.url_prefix}/{rel.as_posix()}"
            candidates.append(f"{url} {width}w")
            if chosen is None or width <= max_width:
                chosen = (url, width, height)
        src, width, height = chosen
        return FluidImage(
            src=src,
            srcset=", ".join(candidates),
            sizes=f"(max-width: {max_width}px) 100vw, {max_width}px",
            aspect_ratio=aspect_ratio,
            width=width,
            height=height,
        )
