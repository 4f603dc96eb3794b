"""Tab sources that feed the sync state machine."""

from __future__ import annotations

import logging

from lcassist.interfaces import TabListener
from lcassist.models import Tab, TabEvent, TabEventKind

logger = logging.getLogger(__name__)


class ManualTabSource:
    """A single "tab" whose URL the terminal user sets explicitly.

    Opening a URL fires an `updated` event to registered listeners, the same
    way a browser reports navigation.
    """

    def __init__(self, url: str | None = None) -> None:
        self._tab = Tab(id=1, url=url) if url else None
        self._listeners: list[TabListener] = []

    async def active_tab(self) -> Tab | None:
        return self._tab

    def add_listener(self, listener: TabListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: TabListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def open(self, url: str) -> Tab:
        previous = self._tab.url if self._tab else None
        self._tab = Tab(id=self._tab.id if self._tab else 1, url=url)
        self._emit(TabEvent(TabEventKind.UPDATED, tab=self._tab, url_changed=url != previous, complete=True))
        return self._tab

    def close(self) -> None:
        self._tab = None
        self._emit(TabEvent(TabEventKind.ACTIVATED))

    def _emit(self, event: TabEvent) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                logger.exception("Tab listener failed")
