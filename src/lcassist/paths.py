"""Per-user locations for config, durable state and logs (platformdirs)."""

from __future__ import annotations

from pathlib import Path

from platformdirs import PlatformDirs

APP_NAME = "lcassist"
STORAGE_FILE_NAME = "storage.json"
ENV_FILE_NAME = ".env"


def _dirs() -> PlatformDirs:
    return PlatformDirs(appname=APP_NAME, appauthor=False)


def _created(path: Path) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    return path


def config_dir() -> Path:
    """Holds the user-level `.env` read by `load_config`."""
    return _created(Path(_dirs().user_config_path))


def state_dir() -> Path:
    return _created(Path(_dirs().user_state_path))


def log_dir() -> Path:
    return _created(Path(_dirs().user_log_path))


def storage_file() -> Path:
    """Durable key-value store holding the session record and initialized map."""
    return state_dir() / STORAGE_FILE_NAME


def user_env_file() -> Path:
    return config_dir() / ENV_FILE_NAME
