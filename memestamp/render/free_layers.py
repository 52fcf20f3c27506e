from __future__ import annotations

import logging
from typing import Sequence

from PIL import Image, ImageColor

from memestamp.errors import InvalidGeometry, ValidationError
from memestamp.models import GlyphStyle, TextLayer
from memestamp.render import glyphs

LOGGER = logging.getLogger(__name__)


def percent_to_pixel(x: float, y: float, width: int, height: int) -> tuple[float, float]:
    return x / 100.0 * width, y / 100.0 * height


def _check_color(value: str, field_name: str, layer_id: str) -> None:
    try:
        ImageColor.getrgb(value)
    except (ValueError, AttributeError) as exc:
        raise ValidationError(f"layer {layer_id!r}: invalid {field_name} {value!r}") from exc


def validate_layer(layer: TextLayer) -> None:
    try:
        glyphs.require_finite(x=layer.x, y=layer.y, font_size=layer.font_size, stroke_width=layer.stroke_width)
    except InvalidGeometry as exc:
        raise InvalidGeometry(f"layer {layer.id!r}: {exc}") from exc
    if not (0.0 <= layer.x <= 100.0 and 0.0 <= layer.y <= 100.0):
        raise InvalidGeometry(f"layer {layer.id!r}: x/y must be percentages in [0, 100], got ({layer.x}, {layer.y})")
    if layer.font_size <= 0:
        raise InvalidGeometry(f"layer {layer.id!r}: font size must be positive, got {layer.font_size}")
    if layer.stroke_width < 0:
        raise InvalidGeometry(f"layer {layer.id!r}: stroke width must not be negative, got {layer.stroke_width}")
    _check_color(layer.color, "color", layer.id)
    if layer.stroke_width > 0:
        _check_color(layer.stroke_color, "stroke color", layer.id)


def compose_layers(surface: Image.Image, layers: Sequence[TextLayer]) -> None:
    """Draw each layer at its own percentage anchor, in list order.

    Layers are single lines: nothing is wrapped or shrunk, so wide text may run off the
    image. Every layer is validated before the first one is drawn.
    """
    for layer in layers:
        validate_layer(layer)

    width, height = surface.size
    for layer in layers:
        pixel_x, pixel_y = percent_to_pixel(layer.x, layer.y, width, height)
        style = GlyphStyle(
            font_size=int(layer.font_size),
            font_family=layer.font_family,
            fill_color=layer.color,
            stroke_color=layer.stroke_color,
            stroke_width=int(layer.stroke_width),
        )
        resolution = glyphs.draw_line(surface, layer.text, pixel_x, pixel_y, style)
        if resolution.fallback_used:
            LOGGER.debug("layer %s rendered with fallback font for %r", layer.id, layer.font_family)
