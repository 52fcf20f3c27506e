from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from PIL import ImageFont

FONT_RESOLVED = "resolved"
FONT_FALLBACK = "fallback"


@dataclass(slots=True)
class TextLayer:
    """One free-form layer. ``x``/``y`` are percentages of the image size."""

    id: str
    text: str
    x: float
    y: float
    font_size: int
    color: str = "#FFFFFF"
    font_family: str = "Impact"
    stroke_color: str = "#000000"
    stroke_width: int = 0


@dataclass(slots=True)
class Caption:
    text: str
    position: str
    font_size: int | None = None


@dataclass(slots=True)
class GlyphStyle:
    font_size: int
    font_family: str
    fill_color: str
    stroke_color: str
    stroke_width: int = 0


@dataclass(slots=True)
class RenderedLine:
    text: str
    pixel_y: float


@dataclass(slots=True)
class FontResolution:
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont
    status: str
    path: Path | None = None

    @property
    def fallback_used(self) -> bool:
        return self.status == FONT_FALLBACK


@dataclass(slots=True)
class RenderResult:
    image: str
    width: int
    height: int
    entries: int

    def to_dict(self) -> dict[str, Any]:
        return {"success": True, "image": self.image}
