from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def _isolate_home(tmp_path_factory, monkeypatch):
    """Force tests to use a temporary HOME/XDG dirs and a clean LCASSIST_* environment."""
    base = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(base))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(base / ".config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(base / ".local" / "state"))
    monkeypatch.setenv("XDG_DATA_HOME", str(base / ".local" / "share"))
    monkeypatch.setenv("XDG_CACHE_HOME", str(base / ".cache"))
    monkeypatch.setattr(Path, "home", lambda: base)
    monkeypatch.chdir(base)
    for name in (
        "LCASSIST_BACKEND_URL",
        "LCASSIST_QUESTION_URL_PATTERN",
        "LCASSIST_POLL_INTERVAL_S",
        "LCASSIST_REQUEST_TIMEOUT_S",
        "LCASSIST_STORAGE_PATH",
        "LCASSIST_LOG_LEVEL",
        "LCASSIST_LOG_DIR",
        "LCASSIST_LOG_STDERR",
        "LCASSIST_LOG_JSON",
    ):
        monkeypatch.delenv(name, raising=False)
