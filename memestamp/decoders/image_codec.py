from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from pathlib import Path

import requests
from PIL import Image, ImageOps, UnidentifiedImageError

from memestamp.constants import OUTPUT_FORMAT
from memestamp.errors import DecodeError, EncodeError, ValidationError

LOGGER = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r"^data:image/[\w.+-]+;base64,", re.IGNORECASE)
_REMOTE_SCHEMES = ("http://", "https://")
_BASE64_RE = re.compile(r"^[A-Za-z0-9+/]+={0,2}$")
_MIME_TYPES = {"png": "image/png", "jpeg": "image/jpeg", "webp": "image/webp"}


def describe_source(source: str, limit: int = 50) -> str:
    text = str(source)
    return text if len(text) <= limit else text[:limit] + "..."


def strip_data_url(value: str) -> str:
    return _DATA_URL_RE.sub("", value.strip(), count=1)


def decode_base64_payload(value: str) -> bytes:
    payload = "".join(strip_data_url(value).split())
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecodeError(f"invalid base64 image payload: {exc}") from exc


def _fetch_remote(url: str, timeout: float | None) -> bytes:
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        raise DecodeError(f"failed to fetch image {describe_source(url)}: {exc}") from exc
    return response.content


def _read_local(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise DecodeError(f"failed to read image {path}: {exc}") from exc


def _looks_like_base64(text: str) -> bool:
    compact = "".join(text.split())
    return len(compact) % 4 == 0 and bool(_BASE64_RE.match(compact))


def _is_local_file(text: str) -> bool:
    # Base64 payloads can exceed the OS name limits (ENAMETOOLONG) or hold NUL bytes.
    try:
        return Path(text).expanduser().is_file()
    except (OSError, ValueError):
        return False


def _load_source_bytes(source: str | Path, timeout: float | None, allow_local_paths: bool) -> bytes:
    if isinstance(source, Path):
        if not allow_local_paths:
            raise ValidationError("local file paths are not accepted as an image source")
        return _read_local(source)
    text = source.strip()
    if not text:
        raise DecodeError("image source is empty")
    if _DATA_URL_RE.match(text):
        return decode_base64_payload(text)
    if text.lower().startswith(_REMOTE_SCHEMES):
        return _fetch_remote(text, timeout)
    if allow_local_paths and _is_local_file(text):
        return _read_local(Path(text).expanduser())
    if _looks_like_base64(text):
        return decode_base64_payload(text)
    if allow_local_paths:
        raise DecodeError(f"image source is neither a readable file nor base64: {describe_source(text)}")
    raise ValidationError(
        f"image must be a data URL, base64 payload or http(s) URL, got {describe_source(text)}"
    )


def decode_bytes(data: bytes) -> Image.Image:
    try:
        with Image.open(io.BytesIO(data)) as image:
            return ImageOps.exif_transpose(image).convert("RGBA").copy()
    except (UnidentifiedImageError, OSError, ValueError) as exc:
        raise DecodeError(f"unsupported or corrupt image data: {exc}") from exc


def decode_image(
    source: str | Path,
    *,
    timeout: float | None = None,
    allow_local_paths: bool = False,
) -> Image.Image:
    """Decode a data URL, bare base64 payload, remote URL or local path into an RGBA surface.

    Remote sources are fetched synchronously; ``timeout`` is only applied when the caller
    passes one. Local paths are read only with ``allow_local_paths=True``; otherwise a
    source that is none of the other forms raises ``ValidationError``.
    """
    data = _load_source_bytes(source, timeout, allow_local_paths)
    image = decode_bytes(data)
    LOGGER.debug("decoded %s -> %sx%s", describe_source(str(source)), image.width, image.height)
    return image


def encode_image(surface: Image.Image, fmt: str = OUTPUT_FORMAT) -> str:
    fmt = fmt.lower()
    if fmt == "jpg":
        fmt = "jpeg"
    mime = _MIME_TYPES.get(fmt)
    if mime is None:
        raise EncodeError(f"unsupported output format: {fmt!r}")
    image = surface.convert("RGB") if fmt == "jpeg" else surface
    buffer = io.BytesIO()
    try:
        image.save(buffer, format=fmt.upper())
    except (OSError, ValueError) as exc:
        raise EncodeError(f"failed to encode image as {fmt}: {exc}") from exc
    payload = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:{mime};base64,{payload}"
