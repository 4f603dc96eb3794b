"""Protocol interfaces for the collaborators the sync state machine depends on."""

from __future__ import annotations

from typing import Any, Callable, Protocol

from lcassist.models import PageInfo, Session, Tab, TabEvent, Turn

TabListener = Callable[[TabEvent], None]


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any: ...

    async def set(self, key: str, value: Any) -> None: ...

    async def remove(self, key: str) -> None: ...


class TabSource(Protocol):
    async def active_tab(self) -> Tab | None: ...

    def add_listener(self, listener: TabListener) -> None: ...

    def remove_listener(self, listener: TabListener) -> None: ...


class PageExtractor(Protocol):
    async def extract(self, tab: Tab) -> PageInfo: ...


class Backend(Protocol):
    async def create_session(self, username: str) -> Session: ...

    async def register_question(self, session: Session, number: int, title: str | None) -> None: ...

    async def fetch_transcript(self, session: Session) -> list[Turn] | None: ...

    async def send_chat(self, session: Session, text: str) -> None: ...

    async def delete_session(self, session: Session) -> None: ...
