"""Durable key-value storage for the session record and initialized-question map."""

from __future__ import annotations

import copy
import json
import logging
import os
import time
from pathlib import Path
from typing import Any

from lcassist.errors import StorageFailure
from lcassist.interfaces import KeyValueStore
from lcassist.models import Session

SESSION_KEY = "lcassist.session"
INITIALIZED_KEY = "lcassist.initialized"

logger = logging.getLogger(__name__)


class JsonFileStore:
    """Key-value store backed by a single JSON object on disk."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self._path

    async def get(self, key: str) -> Any:
        return self._read_all().get(key)

    async def set(self, key: str, value: Any) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    async def remove(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            data.pop(key)
            self._write_all(data)

    def _read_all(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable store at %s", self._path)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        try:
            self._path.write_text(json.dumps(data, indent=2, sort_keys=True), encoding="utf-8")
        except OSError as exc:
            logger.error("Failed to write store at %s: %s", self._path, exc)
            raise StorageFailure() from exc
        try:
            os.chmod(self._path, 0o600)
        except OSError:
            pass


class MemoryStore:
    """In-process store; values are deep-copied so callers cannot alias them."""

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.data: dict[str, Any] = copy.deepcopy(initial or {})

    async def get(self, key: str) -> Any:
        return copy.deepcopy(self.data.get(key))

    async def set(self, key: str, value: Any) -> None:
        self.data[key] = copy.deepcopy(value)

    async def remove(self, key: str) -> None:
        self.data.pop(key, None)


def now_ms() -> int:
    return int(time.time() * 1000)


class SessionRepository:
    """Typed access to the two durable entries: the session and the initialized map."""

    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    async def load_session(self) -> Session | None:
        """Return the stored session, discarding records without an auth token."""
        raw = await self._store.get(SESSION_KEY)
        if raw is None:
            return None
        session = Session.from_dict(raw) if isinstance(raw, dict) else None
        if session is None or not session.is_valid:
            logger.info("Discarding stored session without id or auth token")
            await self._store.remove(SESSION_KEY)
            return None
        return session

    async def save_session(self, session: Session) -> None:
        await self._store.set(SESSION_KEY, session.to_dict())

    async def clear_session(self) -> None:
        await self._store.remove(SESSION_KEY)

    async def initialized_map(self) -> dict[str, dict[str, int]]:
        raw = await self._store.get(INITIALIZED_KEY)
        return raw if isinstance(raw, dict) else {}

    async def is_initialized(self, session_id: str, question_number: int) -> bool:
        session_map = (await self.initialized_map()).get(session_id) or {}
        return bool(session_map.get(str(question_number)))

    async def mark_initialized(self, session_id: str, question_number: int, timestamp: int | None = None) -> None:
        init_map = await self.initialized_map()
        session_map = dict(init_map.get(session_id) or {})
        session_map[str(question_number)] = timestamp if timestamp is not None else now_ms()
        init_map[session_id] = session_map
        await self._store.set(INITIALIZED_KEY, init_map)

    async def forget_session(self, session_id: str) -> None:
        init_map = await self.initialized_map()
        if session_id in init_map:
            init_map.pop(session_id)
            await self._store.set(INITIALIZED_KEY, init_map)

    async def destroy_local(self, session: Session | None) -> None:
        """Clear the durable session and its initialized entries."""
        await self.clear_session()
        if session is not None and session.session_id:
            await self.forget_session(session.session_id)
