from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any

import typer

from memestamp import service
from memestamp.config import fetch_timeout, load_config, write_default_config
from memestamp.constants import DEFAULT_FONT_FAMILY
from memestamp.decoders.image_codec import decode_base64_payload
from memestamp.errors import MemeStampError
from memestamp.models import RenderResult
from memestamp.render.typography import configure_font_dirs, list_available_font_paths

app = typer.Typer(add_completion=False, no_args_is_help=True, help="Meme text compositor CLI.")
LOGGER = logging.getLogger("memestamp")


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _prepare(log_level: str | None) -> dict[str, Any]:
    cfg = load_config()
    _setup_logging(log_level or str(cfg.get("log_level", "info")))
    configure_font_dirs(cfg.get("font_dirs") or [])
    return cfg


def _fail(message: str) -> None:
    typer.secho(message, err=True, fg=typer.colors.RED)
    raise typer.Exit(1)


def _default_output(source: str) -> Path:
    candidate = Path(source)
    if candidate.suffix and candidate.exists():
        return candidate.with_name(f"{candidate.stem}__meme.png")
    return Path("meme.png")


def _write_result(result: RenderResult, out: Path, t0: float) -> None:
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(decode_base64_payload(result.image))
    LOGGER.info(
        "OK   %sx%s (%s entries) -> %s  (%.2fs)",
        result.width,
        result.height,
        result.entries,
        out,
        time.perf_counter() - t0,
    )


@app.command()
def layers(
    image: str = typer.Argument(..., help="Image path, URL or data URL."),
    layers_file: Path = typer.Option(..., "--layers", exists=True, dir_okay=False, help="JSON list of text layers."),
    out: Path | None = typer.Option(None, "--out", help="Output PNG path."),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Draw free-positioned text layers onto an image."""
    cfg = _prepare(log_level)
    t0 = time.perf_counter()
    try:
        raw_layers = json.loads(layers_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _fail(f"Layers file could not be read: {exc}")
    payload = {"imageUrl": image, "textLayers": raw_layers}
    try:
        result = service.add_text_layers(payload, timeout=fetch_timeout(cfg), allow_local_paths=True)
    except MemeStampError as exc:
        _fail(f"Failed to add text to image: {exc}")
    _write_result(result, out or _default_output(image), t0)


@app.command()
def captions(
    image: str = typer.Argument(..., help="Image path, URL or data URL."),
    top: str | None = typer.Option(None, "--top", help="Top caption."),
    bottom: str | None = typer.Option(None, "--bottom", help="Bottom caption."),
    center: str | None = typer.Option(None, "--center", help="Center caption."),
    font_size: int | None = typer.Option(None, "--font-size", min=1, help="Override the width-derived font size."),
    font_family: str | None = typer.Option(None, "--font", help="Font family (default from config)."),
    out: Path | None = typer.Option(None, "--out", help="Output PNG path."),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Draw classic top/center/bottom meme captions onto an image."""
    cfg = _prepare(log_level)
    t0 = time.perf_counter()
    entries: list[dict[str, Any]] = []
    for position, text in (("top", top), ("center", center), ("bottom", bottom)):
        if text:
            entry: dict[str, Any] = {"text": text, "position": position}
            if font_size is not None:
                entry["fontSize"] = font_size
            entries.append(entry)
    family = font_family or str(cfg.get("default_font_family") or DEFAULT_FONT_FAMILY)
    try:
        result = service.add_captions(
            {"image": image, "captions": entries},
            font_family=family,
            timeout=fetch_timeout(cfg),
            allow_local_paths=True,
        )
    except MemeStampError as exc:
        _fail(f"Failed to add text to image: {exc}")
    _write_result(result, out or _default_output(image), t0)


@app.command()
def fonts() -> None:
    """List font files the renderer can resolve families from."""
    _prepare("warning")
    paths = list_available_font_paths()
    if not paths:
        typer.echo("No font files found; the built-in font will be used.")
        return
    for path in paths:
        typer.echo(f"{path.stem}\t{path}")


@app.command("init-config")
def init_config(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config file."),
) -> None:
    path = write_default_config(force=force)
    typer.echo(f"Config initialized: {path}")


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
    log_level: str | None = typer.Option(None, "--log-level"),
) -> None:
    """Serve the compositing endpoints over HTTP."""
    cfg = _prepare(log_level)
    try:
        import uvicorn

        from memestamp.api import create_app
    except ImportError as exc:
        _fail(f"HTTP server is unavailable: {exc}")

    server_cfg = cfg.get("server") or {}
    uvicorn.run(
        create_app(cfg),
        host=host or str(server_cfg.get("host", "127.0.0.1")),
        port=int(port or server_cfg.get("port", 8000)),
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
