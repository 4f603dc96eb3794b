"""Question/session synchronization state machine.

Three inputs change independently: the active tab URL, the question detected on
that tab, and the locally held chat session. `QuestionSync` owns the single
`AssistantState` that reconciles them, decides when a differently numbered
question becomes a `PendingQuestion`, and moves the session across an explicit
reload.

Every background detection re-derives its result from the tab as it is when
the detection runs. Detections are numbered when they start, and a result is
dropped if a detection that started later has already been applied, so the
newest observation always wins without locks.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from lcassist.config import DEFAULT_QUESTION_URL_PATTERN
from lcassist.errors import AssistantError, AuthMissing, ExtractionFailure
from lcassist.extractor import NO_NUMBER_REASON, is_question_url
from lcassist.interfaces import Backend, PageExtractor, TabSource
from lcassist.log_utils import log_context, log_event
from lcassist.models import PageInfo, PendingQuestion, Question, QuestionStatus, Session, Tab
from lcassist.storage import SessionRepository
from lcassist.transcript import Transcript

logger = logging.getLogger(__name__)

StateListener = Callable[["AssistantState"], None]


class SyncPhase(str, Enum):
    NO_TAB = "no_tab"
    WRONG_SITE = "wrong_site"
    DETECTING = "detecting"
    QUESTION_ERROR = "question_error"
    READY_NO_SESSION = "ready_no_session"
    READY_UNINITIALIZED = "ready_uninitialized"
    READY_INITIALIZED = "ready_initialized"


@dataclass
class AssistantState:
    question: Question = field(default_factory=Question.checking)
    pending: PendingQuestion | None = None
    session: Session | None = None
    username: str = ""
    transcript: Transcript = field(default_factory=Transcript)
    status: str = ""
    busy: bool = False
    sending: bool = False
    refreshing: bool = False
    active_tab: Tab | None = None
    tab_checked: bool = False
    last_tab_url: str | None = None
    initialized_for: tuple[str, int] | None = None

    @property
    def phase(self) -> SyncPhase:
        question = self.question
        if question.status is QuestionStatus.READY:
            if self.session is None:
                return SyncPhase.READY_NO_SESSION
            if self.initialized_for == (self.session.session_id, question.number):
                return SyncPhase.READY_INITIALIZED
            return SyncPhase.READY_UNINITIALIZED
        if question.status is QuestionStatus.NOT_APPLICABLE:
            return SyncPhase.WRONG_SITE
        if question.status is QuestionStatus.ERROR:
            if self.tab_checked and self.active_tab is None:
                return SyncPhase.NO_TAB
            return SyncPhase.QUESTION_ERROR
        return SyncPhase.DETECTING


def default_title(number: int | str) -> str:
    return f"LeetCode Question #{number}"


class QuestionSync:
    def __init__(
        self,
        *,
        backend: Backend,
        repository: SessionRepository,
        tabs: TabSource,
        extractor: PageExtractor,
        url_pattern: str = DEFAULT_QUESTION_URL_PATTERN,
        state: AssistantState | None = None,
    ) -> None:
        self._backend = backend
        self._repository = repository
        self._tabs = tabs
        self._extractor = extractor
        self._url_pattern = url_pattern
        self.state = state or AssistantState()
        self._listeners: list[StateListener] = []
        self._detections_started = 0
        self._detection_applied = 0
        self._inflight_init: dict[tuple[str, int], asyncio.Future[bool]] = {}

    @property
    def phase(self) -> SyncPhase:
        return self.state.phase

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self.state)
            except Exception:  # noqa: BLE001
                logger.exception("State listener failed")

    def set_username(self, username: str) -> None:
        self.state.username = username
        self.notify()

    def note_tab_url(self, url: str | None) -> None:
        if url:
            self.state.last_tab_url = url

    def _set_question(self, question: Question) -> None:
        self.state.question = question
        pending = self.state.pending
        if question.is_ready and pending is not None and pending.number == question.number:
            self.state.pending = None
        self.notify()

    def _next_detection(self) -> int:
        self._detections_started += 1
        return self._detections_started

    async def _detect(self, tab: Tab) -> PendingQuestion:
        """Extract the question on a tab, raising `ExtractionFailure` when there is none."""
        info: PageInfo = await self._extractor.extract(tab)
        if not info.ok or not info.question_id:
            raise ExtractionFailure(info.reason)
        try:
            number = int(info.question_id)
        except ValueError as exc:
            raise ExtractionFailure(NO_NUMBER_REASON) from exc
        return PendingQuestion(number, info.title or default_title(number))

    def _settle_bootstrap(self, generation: int, question: Question) -> None:
        """Adopt a bootstrap result, dropping pending unless a newer detection already applied."""
        if generation >= self._detection_applied:
            self._detection_applied = generation
            self.state.pending = None
        self._set_question(question)

    async def bootstrap(self) -> Question | None:
        """Load the durable session, then detect the question on the active tab."""
        generation = self._next_detection()
        state = self.state

        try:
            stored = await self._repository.load_session()
        except AssistantError as exc:
            logger.error("Failed to load stored session: %s", exc)
            state.status = exc.user_message
            stored = None
        if stored is not None:
            state.session = stored
            state.username = stored.username or ""

        tab = await self._tabs.active_tab()
        state.active_tab = tab
        state.tab_checked = True
        if tab is None:
            self._settle_bootstrap(generation, Question.error("No active tab found."))
            return None

        if not is_question_url(tab.url, self._url_pattern):
            self._settle_bootstrap(generation, Question.not_applicable())
            log_event(logger, "sync.bootstrap", url=tab.url, status=QuestionStatus.NOT_APPLICABLE.value)
            return None

        self._set_question(Question.loading())
        try:
            detected = await self._detect(tab)
        except AssistantError as exc:
            self._settle_bootstrap(generation, Question.error(exc.user_message))
            log_event(logger, "sync.bootstrap", level=logging.WARNING, url=tab.url, reason=exc.user_message)
            return None

        number = detected.number
        question = Question.ready(number, detected.title)
        self._settle_bootstrap(generation, question)
        state.last_tab_url = tab.url
        log_event(logger, "sync.bootstrap", url=tab.url, question=number)

        if stored is not None:
            await self.initialize_for_question(stored, number, question.title)
        return question

    async def initialize_for_question(self, session: Session, number: int, title: str | None) -> bool:
        """Register the question for the session once, then hydrate the transcript.

        Failures are reported through the status line; the question stays Ready
        so the user can retry by sending a message or resetting.
        """
        state = self.state
        state.status = "Syncing question with backend..."
        self.notify()
        with log_context(session_id=session.session_id, question=number):
            try:
                if not session.auth_token:
                    raise AuthMissing()
                await self.ensure_question_initialized(session, number, title)
                state.initialized_for = (session.session_id, number)
                await self.hydrate_transcript(session)
            except AssistantError as exc:
                logger.error("Question initialization failed: %s", exc)
                state.status = exc.user_message or "Failed to initialize question."
                self.notify()
                return False
            state.status = ""
            self.notify()
            log_event(logger, "sync.initialized")
            return True

    async def ensure_question_initialized(self, session: Session, number: int, title: str | None) -> bool:
        """Return True when this call (or one it joined) registered the question."""
        key = (session.session_id, number)
        inflight = self._inflight_init.get(key)
        if inflight is None:
            inflight = asyncio.ensure_future(self._register_question(session, number, title))
            self._inflight_init[key] = inflight
            inflight.add_done_callback(functools.partial(self._forget_inflight, key))
        return await asyncio.shield(inflight)

    def _forget_inflight(self, key: tuple[str, int], _future: asyncio.Future[bool]) -> None:
        self._inflight_init.pop(key, None)

    async def _register_question(self, session: Session, number: int, title: str | None) -> bool:
        if await self._repository.is_initialized(session.session_id, number):
            return False
        await self._backend.register_question(session, number, title)
        await self._repository.mark_initialized(session.session_id, number)
        log_event(logger, "sync.question_registered", session_id=session.session_id, question=number)
        return True

    async def hydrate_transcript(self, session: Session) -> None:
        turns = await self._backend.fetch_transcript(session)
        if turns is not None:
            self.state.transcript.replace_all(turns)
            self.notify()

    async def create_session(self, username: str | None = None, question: Question | None = None) -> bool:
        state = self.state
        name = (state.username if username is None else username).strip()
        if not name or state.busy:
            return False

        target = question or state.question
        state.username = name
        state.busy = True
        state.status = "Creating session..."
        self.notify()
        try:
            session = await self._backend.create_session(name)
            state.session = session
            state.initialized_for = None
            await self._repository.save_session(session)
            state.transcript.clear()
            log_event(logger, "session.created", session_id=session.session_id, username=session.username)

            initialized = True
            if target.is_ready and target.number is not None:
                initialized = await self.initialize_for_question(session, target.number, target.title)
            if initialized:
                state.status = "Session ready."
            return True
        except AssistantError as exc:
            logger.error("Session creation failed: %s", exc)
            state.status = exc.user_message or "Session creation failed."
            return False
        finally:
            state.busy = False
            self.notify()

    async def _destroy_session(self, session: Session) -> str:
        """Best-effort remote delete followed by unconditional local cleanup."""
        error_message = ""
        try:
            await self._backend.delete_session(session)
        except AssistantError as exc:
            logger.error("Failed to delete session %s: %s", session.session_id, exc)
            error_message = exc.user_message or "Failed to reset session."
        try:
            await self._repository.destroy_local(session)
        except AssistantError as exc:
            logger.error("Failed to clear stored session %s: %s", session.session_id, exc)
            error_message = error_message or exc.user_message
        finally:
            state = self.state
            state.session = None
            state.initialized_for = None
            state.transcript.clear()
        return error_message

    async def reset_session(self) -> None:
        state = self.state
        current = state.session
        state.busy = True
        state.status = "Resetting session..."
        self.notify()
        error_message = ""
        try:
            if current is not None:
                error_message = await self._destroy_session(current)
            else:
                state.transcript.clear()
                try:
                    await self._repository.clear_session()
                except AssistantError as exc:
                    logger.error("Failed to clear stored session: %s", exc)
                    error_message = exc.user_message
        finally:
            state.busy = False
            state.status = error_message
            self.notify()
        log_event(logger, "session.reset", session_id=current.session_id if current else None, error=error_message or None)

    async def reload_for_new_question(self) -> Question | None:
        """Drop the current session, re-detect the question and start over.

        When a username was entered before, a fresh session is created for the
        newly detected question.
        """
        state = self.state
        if state.refreshing:
            return None
        state.refreshing = True
        state.pending = None
        self._set_question(Question.loading())
        current = state.session
        username = state.username.strip()
        try:
            if current is not None:
                await self._destroy_session(current)
                self.notify()
            latest = await self.bootstrap()
            if username:
                await self.create_session(username, latest or state.question)
            log_event(logger, "sync.reloaded", question=latest.number if latest else None)
            return latest
        finally:
            state.refreshing = False
            self.notify()

    async def detect_question_for_tab(self, tab: Tab | None) -> bool:
        """Re-run detection for a tab and update the pending question.

        Returns True when the pending question changed.
        """
        generation = self._next_detection()
        try:
            if tab is None or not is_question_url(tab.url, self._url_pattern):
                return self._apply_detection(generation, None)
            try:
                detected = await self._detect(tab)
            except AssistantError as exc:
                logger.info("No question on %s: %s", tab.url, exc)
                return self._apply_detection(generation, None)
            return self._apply_detection(generation, detected)
        except Exception:  # noqa: BLE001
            logger.warning("Failed to detect question change", exc_info=True)
            return False

    def _apply_detection(self, generation: int, candidate: PendingQuestion | None) -> bool:
        if generation < self._detection_applied:
            logger.debug("Dropping stale detection %s (applied %s)", generation, self._detection_applied)
            return False
        self._detection_applied = generation

        state = self.state
        current = state.question
        if candidate is not None and current.is_ready and current.number == candidate.number:
            candidate = None

        if candidate is None:
            if state.pending is None:
                return False
            state.pending = None
        else:
            if state.pending is not None and state.pending.number == candidate.number:
                return False
            state.pending = candidate
            log_event(logger, "sync.pending_question", question=candidate.number, current=current.number)
        self.notify()
        return True

    async def check_active_tab(self) -> bool:
        """Detect only when the active tab URL differs from the last one seen."""
        tab = await self._tabs.active_tab()
        if tab is None or tab.url == self.state.last_tab_url:
            return False
        self.state.last_tab_url = tab.url
        await self.detect_question_for_tab(tab)
        return True
