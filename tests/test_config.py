from __future__ import annotations

from pathlib import Path

from lcassist import paths
from lcassist.config import (
    DEFAULT_BACKEND_URL,
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_QUESTION_URL_PATTERN,
    DEFAULT_REQUEST_TIMEOUT_S,
    AssistantConfig,
    load_config,
)


def test_defaults_without_environment() -> None:
    config = load_config()
    assert config == AssistantConfig()
    assert config.backend_url == DEFAULT_BACKEND_URL
    assert config.question_url_pattern == DEFAULT_QUESTION_URL_PATTERN
    assert config.poll_interval_s == DEFAULT_POLL_INTERVAL_S
    assert config.request_timeout_s == DEFAULT_REQUEST_TIMEOUT_S
    assert config.resolved_storage_path() == paths.state_dir() / "storage.json"


def test_environment_overrides(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("LCASSIST_BACKEND_URL", "http://localhost:8000/")
    monkeypatch.setenv("LCASSIST_POLL_INTERVAL_S", "0.5")
    monkeypatch.setenv("LCASSIST_REQUEST_TIMEOUT_S", "10")
    monkeypatch.setenv("LCASSIST_STORAGE_PATH", str(tmp_path / "store.json"))

    config = load_config()

    assert config.backend_url == "http://localhost:8000"
    assert config.poll_interval_s == 0.5
    assert config.request_timeout_s == 10.0
    assert config.resolved_storage_path() == tmp_path / "store.json"


def test_invalid_numbers_fall_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("LCASSIST_POLL_INTERVAL_S", "soon")
    monkeypatch.setenv("LCASSIST_REQUEST_TIMEOUT_S", "-1")

    config = load_config()

    assert config.poll_interval_s == DEFAULT_POLL_INTERVAL_S
    assert config.request_timeout_s == DEFAULT_REQUEST_TIMEOUT_S


def test_user_env_file_is_loaded_without_overriding(monkeypatch) -> None:
    paths.user_env_file().write_text(
        "LCASSIST_BACKEND_URL=http://from-file\nLCASSIST_POLL_INTERVAL_S=5\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("LCASSIST_POLL_INTERVAL_S", "3")

    config = load_config()

    assert config.backend_url == "http://from-file"
    assert config.poll_interval_s == 3.0


def test_working_directory_env_file_is_loaded() -> None:
    (Path.cwd() / ".env").write_text("LCASSIST_QUESTION_URL_PATTERN=leetcode\\.cn/problems/\n", encoding="utf-8")
    config = load_config()
    assert config.question_url_pattern == "leetcode\\.cn/problems/"
