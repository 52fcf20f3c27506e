from __future__ import annotations

import math

from PIL import Image, ImageDraw

from memestamp.errors import InvalidGeometry
from memestamp.models import FontResolution, GlyphStyle
from memestamp.render.typography import resolve_font

# Glyph runs are centered on the anchor both ways.
TEXT_ANCHOR = "mm"


def require_finite(**values: float) -> None:
    for name, value in values.items():
        if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
            raise InvalidGeometry(f"{name} must be a finite number, got {value!r}")


def draw_line(
    surface: Image.Image,
    text: str,
    anchor_x: float,
    anchor_y: float,
    style: GlyphStyle,
    resolution: FontResolution | None = None,
) -> FontResolution:
    """Burn one uppercased line of text into ``surface``, centered on the anchor.

    The outline is painted first and the fill second. ``style.stroke_width`` is the
    nominal width: Pillow strokes that many pixels on each side of the glyph edge, so
    the visible outline is twice as thick, which keeps it legible at small sizes.
    FreeType's stroker joins segments with round joins, so sharp glyph corners never
    produce miter spikes.

    ``resolution`` lets callers that already measured with a font reuse it.
    """
    require_finite(anchor_x=anchor_x, anchor_y=anchor_y)
    if style.font_size <= 0:
        raise InvalidGeometry(f"font size must be positive, got {style.font_size!r}")
    if style.stroke_width < 0:
        raise InvalidGeometry(f"stroke width must not be negative, got {style.stroke_width!r}")

    if resolution is None:
        resolution = resolve_font(style.font_family, style.font_size)
    line = text.upper()
    draw = ImageDraw.Draw(surface)
    xy = (anchor_x, anchor_y)

    if style.stroke_width > 0:
        draw.text(
            xy,
            line,
            font=resolution.font,
            fill=style.stroke_color,
            anchor=TEXT_ANCHOR,
            stroke_width=style.stroke_width,
            stroke_fill=style.stroke_color,
        )
    draw.text(xy, line, font=resolution.font, fill=style.fill_color, anchor=TEXT_ANCHOR)
    return resolution
