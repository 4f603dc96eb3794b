"""Runtime configuration loaded from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import find_dotenv, load_dotenv

from lcassist.paths import storage_file, user_env_file

DEFAULT_BACKEND_URL = "https://backend-j8gu.onrender.com"
DEFAULT_QUESTION_URL_PATTERN = r"https?://leetcode\.com/problems/"
DEFAULT_POLL_INTERVAL_S = 2.0
DEFAULT_REQUEST_TIMEOUT_S = 30.0


@dataclass(frozen=True)
class AssistantConfig:
    backend_url: str = DEFAULT_BACKEND_URL
    question_url_pattern: str = DEFAULT_QUESTION_URL_PATTERN
    poll_interval_s: float = DEFAULT_POLL_INTERVAL_S
    request_timeout_s: float = DEFAULT_REQUEST_TIMEOUT_S
    storage_path: Path | None = None

    def resolved_storage_path(self) -> Path:
        return self.storage_path or storage_file()


def _parse_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_config() -> AssistantConfig:
    """Build the config from `LCASSIST_*` variables.

    The user-level `.env` in the config dir is read first, then one in the
    working directory; neither overrides variables already set.
    """

    load_dotenv(user_env_file(), override=False)
    load_dotenv(find_dotenv(usecwd=True), override=False)

    storage_raw = os.getenv("LCASSIST_STORAGE_PATH")
    return AssistantConfig(
        backend_url=(os.getenv("LCASSIST_BACKEND_URL") or DEFAULT_BACKEND_URL).rstrip("/"),
        question_url_pattern=os.getenv("LCASSIST_QUESTION_URL_PATTERN") or DEFAULT_QUESTION_URL_PATTERN,
        poll_interval_s=_parse_float(os.getenv("LCASSIST_POLL_INTERVAL_S"), DEFAULT_POLL_INTERVAL_S),
        request_timeout_s=_parse_float(os.getenv("LCASSIST_REQUEST_TIMEOUT_S"), DEFAULT_REQUEST_TIMEOUT_S),
        storage_path=Path(storage_raw).expanduser() if storage_raw else None,
    )
