"""Tests for configuration loading."""

from __future__ import annotations

from pagecounts.config import load_config


def test_defaults(tmp_path):
    config = load_config(tmp_path / "missing.yaml")
    assert config.index.mode == "load"
    assert config.index.time_format == "%Y%m%d-%H"
    assert config.index.verify_on_load is True
    assert config.logging.format == "console"


def test_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "index:\n"
        "  mode: build\n"
        "  source: raw.tsv\n"
        "  unknown_key: ignored\n"
        "limits:\n"
        "  max_top_k: 50\n"
        "logging:\n"
    )
    config = load_config(path)
    assert config.index.mode == "build"
    assert config.index.source == "raw.tsv"
    assert config.limits.max_top_k == 50
    assert not hasattr(config.index, "unknown_key")


def test_env_overrides_win(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("index:\n  mode: build\nserver:\n  port: 9000\n")
    monkeypatch.setenv("PAGECOUNTS_INDEX_MODE", "load")
    monkeypatch.setenv("PAGECOUNTS_SERVER_PORT", "8081")
    monkeypatch.setenv("PAGECOUNTS_INDEX_VERIFY_ON_LOAD", "false")
    monkeypatch.setenv("PAGECOUNTS_LIMITS_MAX_TOP_K", "7")

    config = load_config(path)
    assert config.index.mode == "load"
    assert config.server.port == 8081
    assert config.index.verify_on_load is False
    assert config.limits.max_top_k == 7


def test_config_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("index:\n  snapshot: elsewhere.bin\n")
    monkeypatch.setenv("PAGECOUNTS_CONFIG", str(path))
    assert load_config().index.snapshot == "elsewhere.bin"
