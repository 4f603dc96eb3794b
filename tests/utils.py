from __future__ import annotations

import asyncio
from typing import Any

from lcassist.errors import AssistantError, StorageFailure
from lcassist.extractor import WRONG_SITE_REASON, is_question_url
from lcassist.interfaces import KeyValueStore
from lcassist.models import PageInfo, Role, Session, Tab, Turn
from lcassist.storage import MemoryStore, SessionRepository
from lcassist.sync import QuestionSync
from lcassist.tabs import ManualTabSource

QUESTION_URL = "https://leetcode.com/problems/two-sum/"
OTHER_QUESTION_URL = "https://leetcode.com/problems/merge-sorted-array/"


class FakeExtractor:
    """Serve canned `PageInfo` results keyed by URL."""

    def __init__(self, pages: dict[str, PageInfo] | None = None) -> None:
        self.pages = dict(pages or {})
        self.calls: list[str] = []
        self.gates: dict[str, asyncio.Event] = {}

    async def extract(self, tab: Tab) -> PageInfo:
        self.calls.append(tab.url)
        gate = self.gates.get(tab.url)
        if gate is not None:
            await gate.wait()
        if not is_question_url(tab.url):
            return PageInfo(ok=False, reason=WRONG_SITE_REASON)
        return self.pages.get(tab.url, PageInfo(ok=False, reason="Unable to read the page"))


class FakeBackend:
    """In-memory backend recording every call."""

    def __init__(self) -> None:
        self.created: list[str] = []
        self.registered: list[tuple[str, int, str | None]] = []
        self.deleted: list[str] = []
        self.chats: list[str] = []
        self.messages: list[Turn] = []
        self.fail: dict[str, AssistantError] = {}
        self.register_gate: asyncio.Event | None = None
        self._next_id = 0

    def _maybe_fail(self, operation: str) -> None:
        error = self.fail.get(operation)
        if error is not None:
            raise error

    async def create_session(self, username: str) -> Session:
        self._maybe_fail("create_session")
        self._next_id += 1
        self.created.append(username)
        return Session(session_id=f"s{self._next_id}", username=username, auth_token=f"tok{self._next_id}")

    async def register_question(self, session: Session, number: int, title: str | None) -> None:
        if self.register_gate is not None:
            await self.register_gate.wait()
        self._maybe_fail("register_question")
        self.registered.append((session.session_id, number, title))

    async def fetch_transcript(self, session: Session) -> list[Turn] | None:
        self._maybe_fail("fetch_transcript")
        return list(self.messages)

    async def send_chat(self, session: Session, text: str) -> None:
        self._maybe_fail("send_chat")
        self.chats.append(text)
        index = len(self.messages)
        self.messages.extend(
            [
                Turn(Role.USER, text, f"u{index}"),
                Turn(Role.ASSISTANT, f"Reply to {text}", f"a{index + 1}"),
            ]
        )

    async def delete_session(self, session: Session) -> None:
        self.deleted.append(session.session_id)
        self._maybe_fail("delete_session")


def ready_page(number: int, title: str | None = None) -> PageInfo:
    return PageInfo(ok=True, question_id=str(number), title=title)


def make_sync(
    url: str | None = QUESTION_URL,
    pages: dict[str, PageInfo] | None = None,
    stored: Session | None = None,
    store: KeyValueStore | None = None,
) -> tuple[QuestionSync, FakeBackend, FakeExtractor, ManualTabSource, SessionRepository]:
    backend = FakeBackend()
    extractor = FakeExtractor(pages if pages is not None else {QUESTION_URL: ready_page(1, "1. Two Sum")})
    tabs = ManualTabSource(url)
    if store is None:
        store = MemoryStore({"lcassist.session": stored.to_dict()} if stored else None)
    repository = SessionRepository(store)
    sync = QuestionSync(backend=backend, repository=repository, tabs=tabs, extractor=extractor)
    return sync, backend, extractor, tabs, repository


class ReadOnlyStore(MemoryStore):
    """Memory store whose writes fail the way a full or read-only disk does."""

    async def set(self, key: str, value: Any) -> None:
        raise StorageFailure()

    async def remove(self, key: str) -> None:
        raise StorageFailure()
