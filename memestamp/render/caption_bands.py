from __future__ import annotations

import logging
from typing import Sequence

from PIL import Image, ImageFont

from memestamp.constants import (
    BAND_MARGIN_RATIO,
    CAPTION_FILL,
    CAPTION_POSITIONS,
    CAPTION_STROKE,
    DEFAULT_FONT_FAMILY,
    FONT_SIZE_DIVISOR,
    LINE_HEIGHT_RATIO,
    SIDE_MARGIN_PX,
    STROKE_DIVISOR,
)
from memestamp.errors import InvalidGeometry
from memestamp.models import Caption, GlyphStyle, RenderedLine
from memestamp.render import glyphs
from memestamp.render.typography import measure_width, resolve_font

LOGGER = logging.getLogger(__name__)


def caption_font_size(caption: Caption, image_width: int) -> int:
    if caption.font_size is not None:
        return int(caption.font_size)
    return image_width // FONT_SIZE_DIVISOR


def band_anchor_y(position: str, font_size: int, image_height: int) -> float:
    margin = font_size * BAND_MARGIN_RATIO
    if position == "top":
        return margin + font_size / 2
    if position == "bottom":
        return image_height - margin - font_size / 2
    if position == "center":
        return image_height / 2
    raise InvalidGeometry(f"unknown caption position: {position!r}")


def wrap_caption(
    text: str,
    font: ImageFont.FreeTypeFont | ImageFont.ImageFont,
    max_width: float,
) -> list[str]:
    """Greedy word wrap of the uppercased text against ``max_width``.

    Words are never split: a word wider than the budget gets a line of its own.
    """
    words = text.upper().split()
    if not words:
        return []
    lines: list[str] = []
    current = words[0]
    for word in words[1:]:
        candidate = f"{current} {word}"
        if measure_width(candidate, font) <= max_width:
            current = candidate
        else:
            lines.append(current)
            current = word
    lines.append(current)
    return lines


def layout_caption_lines(lines: Sequence[str], anchor_y: float, font_size: int) -> list[RenderedLine]:
    line_height = font_size * LINE_HEIGHT_RATIO
    start_y = anchor_y - (len(lines) - 1) * line_height / 2
    return [RenderedLine(text=line, pixel_y=start_y + index * line_height) for index, line in enumerate(lines)]


def validate_caption(caption: Caption) -> None:
    """Reject unknown positions and explicit non-positive sizes.

    A derived size of 0 (images narrower than 15px) is not an error: the caption is skipped.
    """
    if caption.position not in CAPTION_POSITIONS:
        raise InvalidGeometry(
            f"caption position must be one of {', '.join(CAPTION_POSITIONS)}, got {caption.position!r}"
        )
    if caption.font_size is None:
        return
    glyphs.require_finite(font_size=caption.font_size)
    if caption.font_size <= 0:
        raise InvalidGeometry(f"caption font size must be positive, got {caption.font_size}")


def compose_captions(
    surface: Image.Image,
    captions: Sequence[Caption],
    font_family: str = DEFAULT_FONT_FAMILY,
) -> None:
    """Draw each caption as a centered, wrapped block in its band, in list order.

    The palette is always white fill with a black outline of ``font_size // 10``.
    """
    width, height = surface.size
    for caption in captions:
        validate_caption(caption)

    max_width = width - 2 * SIDE_MARGIN_PX
    center_x = width / 2
    for caption in captions:
        font_size = caption_font_size(caption, width)
        if font_size <= 0:
            LOGGER.debug("caption %s skipped: %spx is too narrow for a font size", caption.position, width)
            continue
        resolution = resolve_font(font_family, font_size)
        lines = wrap_caption(caption.text, resolution.font, max_width)
        anchor_y = band_anchor_y(caption.position, font_size, height)
        style = GlyphStyle(
            font_size=font_size,
            font_family=font_family,
            fill_color=CAPTION_FILL,
            stroke_color=CAPTION_STROKE,
            # Nominal width; Pillow strokes it outward, so the drawn outline is twice as wide.
            stroke_width=font_size // STROKE_DIVISOR,
        )
        for line in layout_caption_lines(lines, anchor_y, font_size):
            glyphs.draw_line(surface, line.text, center_x, line.pixel_y, style, resolution=resolution)
        LOGGER.debug("caption %s: %s line(s) at %spx", caption.position, len(lines), font_size)
