"""Entry points for the two compositing requests.

Both take the JSON payload the web client sends, validate it, decode the image,
composite every entry onto one surface and return the encoded PNG data URL. The
surface only leaves this module once every entry has been drawn.
"""
from __future__ import annotations

import logging
import math
from typing import Any, Mapping

from memestamp.constants import DEFAULT_FONT_FAMILY
from memestamp.decoders.image_codec import decode_image, describe_source, encode_image
from memestamp.errors import InvalidGeometry, ValidationError
from memestamp.models import Caption, RenderResult, TextLayer
from memestamp.render.caption_bands import compose_captions
from memestamp.render.free_layers import compose_layers

LOGGER = logging.getLogger(__name__)


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _as_float(value: Any, field_name: str, where: str) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{where}: {field_name} must be a number, got {value!r}")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{where}: {field_name} must be a number, got {value!r}") from exc


def _as_int(value: Any, field_name: str, where: str) -> int:
    number = _as_float(value, field_name, where)
    if not math.isfinite(number):
        raise InvalidGeometry(f"{where}: {field_name} must be a finite number, got {value!r}")
    return int(number)


def layer_from_dict(data: Mapping[str, Any], index: int = 0) -> TextLayer:
    if not isinstance(data, Mapping):
        raise ValidationError(f"text layer #{index} must be an object")
    layer_id = str(_pick(data, "id", default=f"layer-{index}"))
    where = f"layer {layer_id!r}"
    text = _pick(data, "text")
    if text is None:
        raise ValidationError(f"{where}: text is required")
    for required in ("x", "y"):
        if _pick(data, required) is None:
            raise ValidationError(f"{where}: {required} is required")
    font_size = _pick(data, "fontSize", "font_size")
    if font_size is None:
        raise ValidationError(f"{where}: fontSize is required")
    return TextLayer(
        id=layer_id,
        text=str(text),
        x=_as_float(data["x"], "x", where),
        y=_as_float(data["y"], "y", where),
        font_size=_as_int(font_size, "fontSize", where),
        color=str(_pick(data, "color", default="#FFFFFF")),
        font_family=str(_pick(data, "fontFamily", "font_family", default=DEFAULT_FONT_FAMILY)),
        stroke_color=str(_pick(data, "strokeColor", "stroke_color", default="#000000")),
        stroke_width=_as_int(_pick(data, "strokeWidth", "stroke_width", default=0), "strokeWidth", where),
    )


def caption_from_dict(data: Mapping[str, Any], index: int = 0) -> Caption:
    if not isinstance(data, Mapping):
        raise ValidationError(f"caption #{index} must be an object")
    where = f"caption #{index}"
    text = _pick(data, "text")
    if text is None:
        raise ValidationError(f"{where}: text is required")
    position = _pick(data, "position")
    if position is None:
        raise ValidationError(f"{where}: position is required")
    font_size = _pick(data, "fontSize", "font_size")
    return Caption(
        text=str(text),
        position=str(position).strip().lower(),
        font_size=None if font_size is None else _as_int(font_size, "fontSize", where),
    )


def _require_list(value: Any, field_name: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise ValidationError(f"{field_name} must be a list")
    return list(value)


def add_text_layers(
    payload: Mapping[str, Any],
    *,
    timeout: float | None = None,
    allow_local_paths: bool = False,
) -> RenderResult:
    """Free-layer request: ``{imageUrl, textLayers}``."""
    image_url = _pick(payload, "imageUrl", "image_url")
    raw_layers = _require_list(_pick(payload, "textLayers", "text_layers"), "textLayers")
    if not image_url or not raw_layers:
        raise ValidationError("Image URL and text layers are required")
    layers = [layer_from_dict(item, index) for index, item in enumerate(raw_layers)]
    seen: set[str] = set()
    for layer in layers:
        if layer.id in seen:
            raise ValidationError(f"duplicate text layer id: {layer.id!r}")
        seen.add(layer.id)

    LOGGER.info("adding text to image %s (%s layer(s))", describe_source(str(image_url)), len(layers))
    surface = decode_image(str(image_url), timeout=timeout, allow_local_paths=allow_local_paths)
    compose_layers(surface, layers)
    encoded = encode_image(surface)
    return RenderResult(image=encoded, width=surface.width, height=surface.height, entries=len(layers))


def add_captions(
    payload: Mapping[str, Any],
    *,
    font_family: str = DEFAULT_FONT_FAMILY,
    timeout: float | None = None,
    allow_local_paths: bool = False,
) -> RenderResult:
    """Caption-band request: ``{image, captions}``. An empty caption list re-encodes the input."""
    image = _pick(payload, "image")
    if not image:
        raise ValidationError("Image is required")
    captions = [
        caption_from_dict(item, index)
        for index, item in enumerate(_require_list(_pick(payload, "captions"), "captions"))
    ]

    LOGGER.info("captioning image %s (%s caption(s))", describe_source(str(image)), len(captions))
    surface = decode_image(str(image), timeout=timeout, allow_local_paths=allow_local_paths)
    compose_captions(surface, captions, font_family=font_family)
    encoded = encode_image(surface)
    return RenderResult(image=encoded, width=surface.width, height=surface.height, entries=len(captions))


def status_for_error(exc: BaseException) -> int:
    """400 for malformed input, 500 for codec and any other render failure."""
    if isinstance(exc, (ValidationError, InvalidGeometry)):
        return 400
    return 500
