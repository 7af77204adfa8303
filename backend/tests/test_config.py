"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from hapds.core.config import Settings


def test_defaults_without_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("HAPDS_STORE_URL", raising=False)
    monkeypatch.delenv("HAPDS_LOG_JSON", raising=False)
    settings = Settings.from_yaml(tmp_path / "absent.yaml")
    assert settings.store_url == "https://127.0.0.1:27124"
    assert settings.store_verify_ssl is False
    assert settings.log_json is True


def test_yaml_sections_map_to_fields(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("HAPDS_STORE_URL", raising=False)
    config = tmp_path / "config.yaml"
    config.write_text(
        "store:\n  url: https://vault.example:27124/\n  api_key: abc\n  timeout: 5\nlogging:\n  level: debug\n",
        encoding="utf-8",
    )
    settings = Settings.from_yaml(config)
    assert settings.store_url == "https://vault.example:27124"
    assert settings.store_api_key == "abc"
    assert settings.store_timeout == 5.0
    assert settings.log_level == "DEBUG"


def test_env_overrides_yaml(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("store:\n  url: https://from-yaml:1\n", encoding="utf-8")
    monkeypatch.setenv("HAPDS_CONFIG", str(config))
    monkeypatch.setenv("HAPDS_STORE_URL", "https://from-env:2")
    monkeypatch.setenv("HAPDS_STORE_VERIFY_SSL", "true")
    settings = Settings.from_yaml()
    assert settings.store_url == "https://from-env:2"
    assert settings.store_verify_ssl is True


def test_invalid_timeout_rejected() -> None:
    with pytest.raises(ValueError):
        Settings(store_timeout=0)
