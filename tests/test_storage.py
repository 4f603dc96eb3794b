from __future__ import annotations

import json
import stat

import pytest

from lcassist.errors import StorageFailure
from lcassist.models import Session
from lcassist.storage import INITIALIZED_KEY, SESSION_KEY, JsonFileStore, MemoryStore, SessionRepository

SESSION = Session(session_id="s1", username="ada", auth_token="tok")


@pytest.mark.asyncio
async def test_json_file_store_round_trip_and_permissions(tmp_path) -> None:
    path = tmp_path / "nested" / "storage.json"
    store = JsonFileStore(path)

    await store.set("a", {"x": 1})
    await store.set("b", [1, 2])
    await store.remove("b")

    assert await store.get("a") == {"x": 1}
    assert await store.get("b") is None
    assert json.loads(path.read_text(encoding="utf-8")) == {"a": {"x": 1}}
    assert stat.S_IMODE(path.stat().st_mode) == 0o600


@pytest.mark.asyncio
async def test_json_file_store_treats_corrupt_file_as_empty(tmp_path) -> None:
    path = tmp_path / "storage.json"
    path.write_text("{not json", encoding="utf-8")
    store = JsonFileStore(path)

    assert await store.get(SESSION_KEY) is None
    await store.set("k", "v")
    assert await store.get("k") == "v"


@pytest.mark.asyncio
async def test_json_file_store_write_failure_raises_storage_failure(tmp_path) -> None:
    path = tmp_path / "storage.json"
    path.mkdir()
    store = JsonFileStore(path)

    assert await store.get(SESSION_KEY) is None
    with pytest.raises(StorageFailure):
        await store.set(SESSION_KEY, SESSION.to_dict())


@pytest.mark.asyncio
async def test_memory_store_copies_values() -> None:
    store = MemoryStore()
    value = {"nested": {"n": 1}}
    await store.set("k", value)
    value["nested"]["n"] = 2
    assert await store.get("k") == {"nested": {"n": 1}}


@pytest.mark.asyncio
async def test_session_round_trip_uses_camel_case_keys() -> None:
    store = MemoryStore()
    repo = SessionRepository(store)

    await repo.save_session(SESSION)

    assert store.data[SESSION_KEY] == {"sessionId": "s1", "username": "ada", "authToken": "tok"}
    assert await repo.load_session() == SESSION


@pytest.mark.asyncio
async def test_session_without_token_is_removed_on_load() -> None:
    store = MemoryStore({SESSION_KEY: {"sessionId": "s1", "username": "ada"}})
    repo = SessionRepository(store)

    assert await repo.load_session() is None
    assert SESSION_KEY not in store.data


@pytest.mark.asyncio
async def test_initialized_map_tracks_questions_per_session() -> None:
    store = MemoryStore()
    repo = SessionRepository(store)

    await repo.mark_initialized("s1", 42, timestamp=1000)
    await repo.mark_initialized("s1", 17, timestamp=2000)
    await repo.mark_initialized("s2", 42, timestamp=3000)

    assert store.data[INITIALIZED_KEY] == {"s1": {"42": 1000, "17": 2000}, "s2": {"42": 3000}}
    assert await repo.is_initialized("s1", 17)
    assert not await repo.is_initialized("s2", 17)


@pytest.mark.asyncio
async def test_destroy_local_clears_session_and_its_entries_only() -> None:
    store = MemoryStore()
    repo = SessionRepository(store)
    await repo.save_session(SESSION)
    await repo.mark_initialized("s1", 1, timestamp=1)
    await repo.mark_initialized("other", 2, timestamp=2)

    await repo.destroy_local(SESSION)

    assert await repo.load_session() is None
    assert await repo.initialized_map() == {"other": {"2": 2}}
