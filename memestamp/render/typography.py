from __future__ import annotations

import logging
import os
import platform
import re
from functools import lru_cache
from pathlib import Path
from typing import Iterable

from PIL import ImageFont

from memestamp.constants import FALLBACK_FONT_STEMS
from memestamp.models import FONT_FALLBACK, FONT_RESOLVED, FontResolution

LOGGER = logging.getLogger(__name__)

_FONT_FILE_SUFFIXES = {".ttf", ".ttc", ".otf", ".otc"}
_BOLD_SUFFIXES = ("bold", "bd", "black", "heavy")
_NAME_NOISE = re.compile(r"[\s_\-]+")

_extra_font_dirs: tuple[str, ...] = ()


def configure_font_dirs(dirs: Iterable[str | Path]) -> None:
    """Register extra font directories (e.g. from the config file) ahead of system ones."""
    global _extra_font_dirs
    normalized = tuple(str(Path(d).expanduser()) for d in dirs if str(d).strip())
    if normalized != _extra_font_dirs:
        _extra_font_dirs = normalized
        font_index.cache_clear()
        find_font_path.cache_clear()


def _platform_font_roots() -> list[Path]:
    system = platform.system().lower()
    home = Path.home()
    if "windows" in system:
        roots = [Path(os.environ.get("WINDIR", r"C:\Windows")) / "Fonts"]
        if os.environ.get("LOCALAPPDATA"):
            roots.append(Path(os.environ["LOCALAPPDATA"]) / "Microsoft" / "Windows" / "Fonts")
        return roots
    if "darwin" in system:
        return [Path("/System/Library/Fonts"), Path("/Library/Fonts"), home / "Library" / "Fonts"]
    return [Path("/usr/share/fonts"), Path("/usr/local/share/fonts"), home / ".fonts", home / ".local/share/fonts"]


def font_search_roots() -> list[Path]:
    """Configured directories first, then the platform's; duplicates dropped."""
    return list(dict.fromkeys([Path(d) for d in _extra_font_dirs] + _platform_font_roots()))


def _scan_font_files(root: Path) -> list[Path]:
    # os.walk yields nothing for a missing root and skips unreadable subdirectories.
    found = [
        Path(dir_path) / name
        for dir_path, _dir_names, file_names in os.walk(root, onerror=lambda _err: None)
        for name in file_names
        if Path(name).suffix.lower() in _FONT_FILE_SUFFIXES
    ]
    return sorted(found)


def _normalize_name(name: str) -> str:
    return _NAME_NOISE.sub("", name).lower()


def index_font_files(paths: Iterable[Path]) -> dict[str, Path]:
    """Map each normalized file stem to the first path carrying it."""
    index: dict[str, Path] = {}
    for path in paths:
        index.setdefault(_normalize_name(path.stem), path)
    return index


@lru_cache(maxsize=1)
def font_index() -> dict[str, Path]:
    """Stem index of every installed font file, built once per font-dir configuration."""
    index = index_font_files(path for root in font_search_roots() for path in _scan_font_files(root))
    LOGGER.debug("indexed %s font file(s)", len(index))
    return index


def list_available_font_paths() -> list[Path]:
    return sorted(font_index().values(), key=lambda path: (path.stem.lower(), str(path).lower()))


def _bold_candidates(family: str) -> list[str]:
    base = _normalize_name(family)
    if not base:
        return []
    if base.endswith(_BOLD_SUFFIXES):
        return [base]
    # Display faces like Impact ship a single heavy weight under the plain name.
    return [base + suffix for suffix in _BOLD_SUFFIXES] + [base]


@lru_cache(maxsize=256)
def find_font_path(family: str) -> Path | None:
    """Return the file of the bold weight of ``family``, or None when it is not installed."""
    index = font_index()
    for stem in _bold_candidates(family):
        if stem in index:
            return index[stem]
    return None


def _load_truetype(path: Path, size: int) -> ImageFont.FreeTypeFont | None:
    try:
        return ImageFont.truetype(str(path), size=size)
    except OSError:
        LOGGER.debug("font file could not be loaded: %s", path)
        return None


def resolve_font(family: str, size: int) -> FontResolution:
    """Load the bold weight of ``family`` at ``size`` px.

    A missing family is not an error: the first available generic bold sans-serif is
    substituted, then Pillow's built-in font, and the substitution is reported through
    ``FontResolution.status``.
    """
    path = find_font_path(family) if family else None
    if path is not None:
        font = _load_truetype(path, size)
        if font is not None:
            return FontResolution(font=font, status=FONT_RESOLVED, path=path)

    for stem in FALLBACK_FONT_STEMS:
        fallback_path = find_font_path(stem)
        if fallback_path is None:
            continue
        font = _load_truetype(fallback_path, size)
        if font is not None:
            LOGGER.debug("font %r unavailable, using %s", family, fallback_path.name)
            return FontResolution(font=font, status=FONT_FALLBACK, path=fallback_path)

    LOGGER.debug("font %r unavailable and no bold fallback installed, using built-in font", family)
    return FontResolution(font=ImageFont.load_default(size=size), status=FONT_FALLBACK)


def measure_width(text: str, font: ImageFont.FreeTypeFont | ImageFont.ImageFont) -> float:
    return float(font.getlength(text))

