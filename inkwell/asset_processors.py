"""Asset processors for Inkwell.

Each processor handles one kind of static asset. The registry picks the
highest priority processor that accepts a file.

Key classes:
- ImageProcessor: Re-saves raster images with Pillow's optimizer.
- JSProcessor: Minifies JavaScript with rjsmin.
- StaticAssetProcessor: Copies anything else unchanged.
- AssetProcessorRegistry: Registry for managing asset processors.
"""

from __future__ import annotations

import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from PIL import Image, UnidentifiedImageError
from rjsmin import jsmin


class BaseAssetProcessor(ABC):
    """Base class for asset processors."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, path: Path) -> bool:
        ...

    @abstractmethod
    def process(self, source: Path, dest: Path) -> bool:
        """Write the processed ``source`` to ``dest``.

        Returns:
            True if the asset was written.
        """
        ...

    def ensure_dest_dir(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)


class ImageProcessor(BaseAssetProcessor):
    """Optimizes PNG, JPEG and WebP files.

    Files Pillow cannot read are copied as they are.
    """

    SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

    @property
    def priority(self) -> int:
        return 100

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)
        try:
            with Image.open(source) as img:
                img.save(dest, optimize=True)
        except (UnidentifiedImageError, OSError) as exc:
            print(f"Could not optimize {source.name} ({exc}); copying as is.")
            shutil.copy2(source, dest)
        return True


class JSProcessor(BaseAssetProcessor):
    """Minifies JavaScript files; ``*.min.js`` files are copied."""

    @property
    def priority(self) -> int:
        return 80

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".js"

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)
        if source.name.endswith(".min.js"):
            shutil.copy2(source, dest)
            return True
        dest.write_text(jsmin(source.read_text(encoding="utf-8")), encoding="utf-8")
        return True


class StaticAssetProcessor(BaseAssetProcessor):
    """Copies assets that need no processing (CSS, fonts, SVGs, ...)."""

    @property
    def priority(self) -> int:
        return 0

    def can_process(self, path: Path) -> bool:
        return True

    def process(self, source: Path, dest: Path) -> bool:
        self.ensure_dest_dir(dest)
        shutil.copy2(source, dest)
        return True


class AssetProcessorRegistry:
    """Registry of asset processors kept sorted by priority, highest first."""

    def __init__(self):
        self._processors: list[BaseAssetProcessor] = []

    def register(self, processor: BaseAssetProcessor) -> None:
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: Path) -> BaseAssetProcessor | None:
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None

    def process(self, source: Path, dest: Path) -> bool:
        """Process an asset; False when no processor accepts it."""
        processor = self.get_processor(source)
        if processor:
            return processor.process(source, dest)
        return False


def create_default_registry() -> AssetProcessorRegistry:
    registry = AssetProcessorRegistry()
    registry.register(ImageProcessor())
    registry.register(JSProcessor())
    registry.register(StaticAssetProcessor())
    return registry
