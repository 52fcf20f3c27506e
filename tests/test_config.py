from pathlib import Path

from memestamp.config import DEFAULT_CONFIG, fetch_timeout, get_config_path, load_config, write_default_config


def test_load_config_without_file_returns_defaults(tmp_path: Path) -> None:
    cfg = load_config(tmp_path / "missing.yaml")

    assert cfg == DEFAULT_CONFIG
    assert cfg is not DEFAULT_CONFIG


def test_load_config_deep_merges_user_values(tmp_path: Path) -> None:
    path = tmp_path / "config.yaml"
    path.write_text("server:\n  port: 9001\nfont_dirs: /opt/fonts\nfetch_timeout: 7\n", encoding="utf-8")

    cfg = load_config(path)

    assert cfg["server"] == {"host": "127.0.0.1", "port": 9001}
    assert cfg["font_dirs"] == ["/opt/fonts"]
    assert fetch_timeout(cfg) == 7.0
    assert cfg["default_font_family"] == DEFAULT_CONFIG["default_font_family"]


def test_fetch_timeout_is_unset_by_default() -> None:
    assert fetch_timeout(DEFAULT_CONFIG) is None


def test_write_default_config_respects_force(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "config.yaml"

    assert write_default_config(path) == path
    assert load_config(path) == DEFAULT_CONFIG

    path.write_text("log_level: debug\n", encoding="utf-8")
    write_default_config(path)
    assert load_config(path)["log_level"] == "debug"

    write_default_config(path, force=True)
    assert load_config(path)["log_level"] == "info"


def test_config_path_env_override(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MEMESTAMP_CONFIG", str(tmp_path / "custom.yaml"))

    assert get_config_path() == tmp_path / "custom.yaml"
