"""Static asset pipeline for Inkwell.

Copies ``<project>/assets/`` into ``<output>/assets/`` through the processor
registry and installs the theme stylesheet next to them.
"""

from __future__ import annotations

import shutil
from pathlib import Path

from .asset_processors import AssetProcessorRegistry, create_default_registry
from .preview import THEME_DIR

THEME_STYLESHEET = THEME_DIR / "css" / "inkwell.css"


class AssetPipeline:
    """Processes the static assets of a project.

    Attributes:
        project_root: Root directory of the project.
        assets_dir: Directory containing source assets.
        output_dir: Root of the built site.
        processor_registry: Registry of asset processors.
    """

    def __init__(
        self,
        project_root: Path,
        output_dir: Path,
        processor_registry: AssetProcessorRegistry | None = None,
    ):
        self.project_root = project_root
        self.assets_dir = project_root / "assets"
        self.output_dir = output_dir
        self.processor_registry = processor_registry or create_default_registry()

    def run(self) -> list[Path]:
        """Process every asset.

        Returns:
            Output paths written, the theme stylesheet included.
        """
        target = self.output_dir / "assets"
        target.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []
        if self.assets_dir.exists():
            for item in sorted(self.assets_dir.rglob("*")):
                if item.is_dir():
                    continue
                dest = target / item.relative_to(self.assets_dir)
                if self.processor_registry.process(item, dest):
                    written.append(dest)
        written.append(self._install_theme_stylesheet(target))
        return written

    def _install_theme_stylesheet(self, target: Path) -> Path:
        """Copy the theme CSS unless the project ships its own ``css/inkwell.css``."""
        dest = target / "css" / "inkwell.css"
        if (self.assets_dir / "css" / "inkwell.css").exists():
            return dest
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(THEME_STYLESHEET, dest)
        return dest
