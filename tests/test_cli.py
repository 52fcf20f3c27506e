import json
from pathlib import Path

import pytest
from PIL import Image
from typer.testing import CliRunner

from memestamp.cli import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch, tmp_path: Path) -> Path:
    path = tmp_path / "config.yaml"
    monkeypatch.setenv("MEMESTAMP_CONFIG", str(path))
    return path


def test_captions_command_writes_png(tmp_path: Path) -> None:
    source = tmp_path / "base.jpg"
    Image.new("RGB", (300, 300), color="#808080").save(source)
    out = tmp_path / "out.png"

    result = runner.invoke(app, ["captions", str(source), "--top", "hello", "--bottom", "world", "--out", str(out)])

    assert result.exit_code == 0, result.output
    with Image.open(out) as rendered:
        assert rendered.size == (300, 300)
        assert rendered.format == "PNG"


def test_layers_command_writes_png(tmp_path: Path) -> None:
    source = tmp_path / "base.png"
    Image.new("RGBA", (200, 100), color="#FFFFFF").save(source)
    layers_file = tmp_path / "layers.json"
    layers_file.write_text(
        json.dumps([{"id": "a", "text": "hi", "x": 50, "y": 50, "fontSize": 30, "color": "#FF0000"}]),
        encoding="utf-8",
    )

    result = runner.invoke(app, ["layers", str(source), "--layers", str(layers_file)])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "base__meme.png").exists()


def test_layers_command_reports_validation_errors(tmp_path: Path) -> None:
    source = tmp_path / "base.png"
    Image.new("RGBA", (20, 20)).save(source)
    layers_file = tmp_path / "layers.json"
    layers_file.write_text("[]", encoding="utf-8")

    result = runner.invoke(app, ["layers", str(source), "--layers", str(layers_file), "--out", str(tmp_path / "x.png")])

    assert result.exit_code == 1
    assert not (tmp_path / "x.png").exists()


def test_init_config_writes_file(isolated_config: Path) -> None:
    result = runner.invoke(app, ["init-config"])

    assert result.exit_code == 0
    assert isolated_config.exists()


def test_fonts_command_lists_without_error() -> None:
    result = runner.invoke(app, ["fonts"])

    assert result.exit_code == 0
