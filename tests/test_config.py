"""Tests for configuration loading."""

from pathlib import Path

import pytest
import yaml

from ideaboard.config import CSV_FILENAME, Config


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("IDEABOARD_HOME", "IDEABOARD_BACKEND_URL", "IDEABOARD_WEBHOOK_URL", "IDEABOARD_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


def test_defaults(tmp_path: Path):
    config = Config.load(tmp_path)

    assert config.workspace_path == tmp_path
    assert config.demo_mode is True
    assert config.page_size == 10
    assert config.export_path == tmp_path / CSV_FILENAME


def test_yaml_values_applied(tmp_path: Path):
    (tmp_path / "config.yaml").write_text(
        yaml.dump({"backend_url": "https://backend.example/exec", "page_size": 5, "webhook_url": None})
    )
    config = Config.load(tmp_path)

    assert config.backend_url == "https://backend.example/exec"
    assert config.page_size == 5
    assert config.webhook_url == ""
    assert config.demo_mode is False


def test_env_overrides_yaml(tmp_path: Path, monkeypatch):
    (tmp_path / "config.yaml").write_text(yaml.dump({"backend_url": "https://from-file"}))
    monkeypatch.setenv("IDEABOARD_BACKEND_URL", "https://from-env")
    monkeypatch.setenv("IDEABOARD_LOG_LEVEL", "DEBUG")

    config = Config.load(tmp_path)

    assert config.backend_url == "https://from-env"
    assert config.log_level == "DEBUG"


def test_home_env(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("IDEABOARD_HOME", str(tmp_path / "home"))
    assert Config.load().workspace_path == tmp_path / "home"


def test_save_roundtrip(tmp_path: Path):
    config = Config(workspace_path=tmp_path / "ws", webhook_url="https://hooks.example/run")
    config.save()

    loaded = Config.load(tmp_path / "ws")
    assert loaded.webhook_url == "https://hooks.example/run"
    assert loaded.demo_latency_max == config.demo_latency_max
