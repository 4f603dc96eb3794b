"""Polling and tab-event driven background detection."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Coroutine

from lcassist.config import DEFAULT_POLL_INTERVAL_S
from lcassist.interfaces import TabSource
from lcassist.models import TabEvent, TabEventKind
from lcassist.sync import QuestionSync

logger = logging.getLogger(__name__)


class TabWatcher:
    """Funnel polling ticks and tab events into `QuestionSync` detection.

    `stop()` removes the listener and cancels the poll task together with any
    detection it scheduled, so nothing runs after teardown.
    """

    def __init__(self, sync: QuestionSync, tabs: TabSource, *, interval_s: float = DEFAULT_POLL_INTERVAL_S) -> None:
        self._sync = sync
        self._tabs = tabs
        self._interval_s = interval_s
        self._poll_task: asyncio.Task[None] | None = None
        self._tasks: set[asyncio.Task[Any]] = set()
        self._stopped = True

    @property
    def running(self) -> bool:
        return not self._stopped

    def start(self) -> None:
        if not self._stopped:
            return
        self._stopped = False
        self._tabs.add_listener(self._handle_event)
        self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        if self._stopped:
            return
        self._stopped = True
        self._tabs.remove_listener(self._handle_event)
        tasks = [task for task in (self._poll_task, *self._tasks) if task is not None]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._poll_task = None
        self._tasks.clear()

    async def _poll_loop(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self._interval_s)
            await self._check_active_tab()

    async def _check_active_tab(self) -> None:
        if self._stopped:
            return
        try:
            await self._sync.check_active_tab()
        except Exception:  # noqa: BLE001
            logger.warning("Tab check failed", exc_info=True)

    def _handle_event(self, event: TabEvent) -> None:
        if self._stopped:
            return
        if event.kind is TabEventKind.UPDATED:
            if event.url_changed or event.complete:
                self._sync.note_tab_url(event.tab.url if event.tab else None)
                self._schedule(self._sync.detect_question_for_tab(event.tab))
        elif event.kind is TabEventKind.ACTIVATED:
            self._schedule(self._check_active_tab())

    def _schedule(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
