"""Logging setup plus structured event and context helpers.

Modules log through `logging.getLogger(__name__)`. Stable event names go
through `log_event`, and identifiers that apply to a whole operation (session
id, question number) are attached once with `log_context`.
"""

from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import os
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Iterator

from lcassist.paths import log_dir

ENV_PREFIX = "LCASSIST_LOG_"
DEFAULT_LOG_MAX_BYTES = 2_000_000
DEFAULT_LOG_BACKUPS = 3
TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
QUIET_LOGGERS = ("httpx", "httpcore")

_LOG_CONTEXT: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar("lcassist_log_context", default={})


@dataclass(frozen=True)
class LogConfig:
    """Configuration for log setup.

    The terminal client owns stdout, so logs go to a rotating file unless
    stderr output is requested explicitly.
    """

    log_file: Path
    level: int = logging.INFO
    stderr: bool = False
    json: bool = False
    max_bytes: int = DEFAULT_LOG_MAX_BYTES
    backup_count: int = DEFAULT_LOG_BACKUPS
    logger_levels: Dict[str, int] = field(default_factory=dict)


def _env(name: str) -> str | None:
    value = os.getenv(f"{ENV_PREFIX}{name}")
    return value.strip() if value is not None else None


def _env_level(name: str, default: int) -> int:
    value = _env(name)
    if not value:
        return default
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    return level if isinstance(level, int) else default


def _env_flag(name: str) -> bool:
    return (_env(name) or "").lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = _env(name)
    if value is None:
        return default
    with contextlib.suppress(ValueError):
        return int(value)
    return default


def build_log_config(*, log_file_name: str, default_level: int = logging.INFO) -> LogConfig:
    """Read `LCASSIST_LOG_{DIR,LEVEL,STDERR,JSON,MAX_BYTES,BACKUPS}`."""

    directory = Path(_env("DIR") or log_dir())
    directory.mkdir(parents=True, exist_ok=True)
    return LogConfig(
        log_file=directory / log_file_name,
        level=_env_level("LEVEL", default_level),
        stderr=_env_flag("STDERR"),
        json=_env_flag("JSON"),
        max_bytes=_env_int("MAX_BYTES", DEFAULT_LOG_MAX_BYTES),
        backup_count=_env_int("BACKUPS", DEFAULT_LOG_BACKUPS),
        logger_levels={name: logging.WARNING for name in QUIET_LOGGERS},
    )


def _handlers(config: LogConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = [
        RotatingFileHandler(
            config.log_file,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    ]
    if config.stderr:
        handlers.append(logging.StreamHandler())
    formatter = JsonFormatter() if config.json else ContextFormatter(TEXT_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(ContextFilter())
    return handlers


def configure_logging(config: LogConfig) -> None:
    """Replace the root handlers so repeated calls never duplicate output."""

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    root.setLevel(config.level)
    for handler in _handlers(config):
        root.addHandler(handler)
    for name, level in config.logger_levels.items():
        logging.getLogger(name).setLevel(level)


@contextlib.contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Attach fields to every record logged inside the block.

    Fields set to None are dropped so callers can pass optional identifiers
    without branching.
    """

    merged = {**_LOG_CONTEXT.get(), **{k: v for k, v in fields.items() if v is not None}}
    token = _LOG_CONTEXT.set(merged)
    try:
        yield
    finally:
        _LOG_CONTEXT.reset(token)


def log_event(logger: logging.Logger, event: str, *, level: int = logging.INFO, **fields: Any) -> None:
    logger.log(level, event, extra={"event_fields": fields})


def format_fields(fields: Dict[str, Any]) -> str:
    """Render `key=value` pairs sorted by key, skipping None values."""
    parts: list[str] = []
    for key in sorted(fields):
        value = fields[key]
        if value is None:
            continue
        if isinstance(value, (dict, list, tuple)):
            rendered = json.dumps(value, ensure_ascii=True, separators=(",", ":"))
        elif isinstance(value, str) and (not value or any(ch.isspace() or ch in '="' for ch in value)):
            rendered = json.dumps(value)
        else:
            rendered = str(value)
        parts.append(f"{key}={rendered}")
    return " ".join(parts)


class ContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # noqa: A003 - logging API name
        record.context_fields = dict(_LOG_CONTEXT.get())
        record.event_fields = getattr(record, "event_fields", {})
        return True


class ContextFormatter(logging.Formatter):
    """Plain text lines with context then event fields appended."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extra = " ".join(
            part
            for part in (
                format_fields(getattr(record, "context_fields", {})),
                format_fields(getattr(record, "event_fields", {})),
            )
            if part
        )
        return f"{base} {extra}" if extra else base


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context_fields", {})
        fields = getattr(record, "event_fields", {})
        if context:
            payload["context"] = context
        if fields:
            payload["fields"] = fields
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)
