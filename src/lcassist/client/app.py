"""Wiring of the assistant components for the terminal client."""

from __future__ import annotations

import logging
from typing import Any

from lcassist.backend import BackendClient
from lcassist.chat import ChatController
from lcassist.config import AssistantConfig
from lcassist.extractor import HttpPageExtractor
from lcassist.log_utils import log_event
from lcassist.storage import JsonFileStore, SessionRepository
from lcassist.sync import AssistantState, QuestionSync
from lcassist.tabs import ManualTabSource
from lcassist.watcher import TabWatcher

logger = logging.getLogger(__name__)


class AssistantApp:
    """Own every long-lived component so the REPL and slash commands share them."""

    def __init__(
        self,
        config: AssistantConfig,
        *,
        url: str | None = None,
        backend: Any | None = None,
        extractor: Any | None = None,
    ) -> None:
        self.config = config
        self.tabs = ManualTabSource(url)
        self.backend = backend or BackendClient(config.backend_url, timeout=config.request_timeout_s)
        self.extractor = extractor or HttpPageExtractor(
            url_pattern=config.question_url_pattern, timeout=config.request_timeout_s
        )
        self.store = JsonFileStore(config.resolved_storage_path())
        self.repository = SessionRepository(self.store)
        self.sync = QuestionSync(
            backend=self.backend,
            repository=self.repository,
            tabs=self.tabs,
            extractor=self.extractor,
            url_pattern=config.question_url_pattern,
        )
        self.chat = ChatController(self.sync, self.backend)
        self.watcher = TabWatcher(self.sync, self.tabs, interval_s=config.poll_interval_s)
        self.should_exit = False

    @property
    def state(self) -> AssistantState:
        return self.sync.state

    async def start(self) -> None:
        log_event(logger, "client.start", backend=self.config.backend_url, storage=str(self.store.path))
        await self.sync.bootstrap()
        self.watcher.start()

    async def close(self) -> None:
        await self.watcher.stop()
        for component in (self.extractor, self.backend):
            aclose = getattr(component, "aclose", None)
            if aclose is not None:
                await aclose()
        log_event(logger, "client.stop")
