"""Print design model: typed representation of design.yaml.

Loaded once by the print renderer. Only the print stylesheet depends on it;
on-screen layout classes come from the layout engine.
"""
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class PageDimensions(BaseModel):
    width_mm: float = 210.0
    height_mm: float = 297.0
    margin_mm: float = 12.0

    def for_orientation(self, orientation: Literal["portrait", "landscape"]) -> tuple[float, float]:
        """Return (width, height) in mm, swapped for landscape pages."""
        short, long_ = sorted((self.width_mm, self.height_mm))
        if orientation == "landscape":
            return long_, short
        return short, long_


class ColorPalette(BaseModel):
    primary: str = "#1E3A8A"
    text: str = "#1F2937"
    muted: str = "#6B7280"
    background: str = "#FFFFFF"


class Fonts(BaseModel):
    body: str = "DejaVu Sans"
    serif: str = "DejaVu Serif"
    body_size_pt: float = 10.5


class DesignSystem(BaseModel):
    """Complete print design loaded from design.yaml.

    Provides defaults for every field so it is usable even when design.yaml
    is absent or partially specified.
    """
    page: PageDimensions = Field(default_factory=PageDimensions)
    colors: ColorPalette = Field(default_factory=ColorPalette)
    fonts: Fonts = Field(default_factory=Fonts)

    @classmethod
    def load(cls, path: Path) -> "DesignSystem":
        """Load from a YAML file. Missing fields use Pydantic defaults.

        Raises FileNotFoundError if path does not exist.
        """
        import yaml  # lazy — only needed at load time
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        return cls.model_validate(data)

    @classmethod
    def load_or_default(cls, path: Path) -> "DesignSystem":
        """Load from path if it exists, otherwise return the default design."""
        if path.exists():
            return cls.load(path)
        return cls()
