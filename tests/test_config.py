from __future__ import annotations

import pytest

from codable_fetch.config import ENV_CONFIG_PATH, FetchSettings, load_settings, parse_fetch_settings


def test_parse_fetch_settings_reads_known_keys():
    settings = parse_fetch_settings(
        {
            "http": {
                "timeout": 3,
                "max_attempts": 2,
                "max_workers": 8,
                "user_agent": "tests",
                "success_status": [200, 204],
                "headers": {"X-Token": "abc"},
            },
            "jsonplaceholder": {"base_url": "https://example.test/"},
        }
    )

    assert settings.timeout == 3.0
    assert settings.max_attempts == 2
    assert settings.max_workers == 8
    assert settings.success_status == range(200, 205)
    assert settings.base_url == "https://example.test"
    assert settings.headers() == {"User-Agent": "tests", "Accept": "application/json", "X-Token": "abc"}


def test_parse_fetch_settings_ignores_malformed_values():
    settings = parse_fetch_settings({"http": {"timeout": -1, "max_attempts": 0, "success_status": [300, 200]}, "jsonplaceholder": "nope"})

    assert settings == FetchSettings()


def test_load_settings_from_env(tmp_path, monkeypatch):
    config = tmp_path / "config.toml"
    config.write_text('[http]\ntimeout = 7.5\n', encoding="utf-8")
    monkeypatch.setenv(ENV_CONFIG_PATH, str(config))

    bundle = load_settings()

    assert bundle.source_path == config
    assert bundle.fetch.timeout == 7.5


def test_load_settings_defaults_without_file(tmp_path, monkeypatch):
    monkeypatch.delenv(ENV_CONFIG_PATH, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("codable_fetch.config._discover_project_root", lambda: None)

    bundle = load_settings()

    assert bundle.source_path is None
    assert bundle.fetch == FetchSettings()
    with pytest.raises(FileNotFoundError):
        load_settings(strict=True)
