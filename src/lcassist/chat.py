"""Chat turns against the session and question the sync state machine holds."""

from __future__ import annotations

import logging

from lcassist.errors import AssistantError, AuthMissing
from lcassist.interfaces import Backend
from lcassist.log_utils import log_context, log_event
from lcassist.sync import QuestionSync

logger = logging.getLogger(__name__)


class ChatController:
    def __init__(self, sync: QuestionSync, backend: Backend) -> None:
        self._sync = sync
        self._backend = backend

    async def send(self, text: str) -> bool:
        """Send one user turn.

        A user turn and a "Thinking..." placeholder are appended at once. On
        success the whole transcript is replaced by the backend copy; on
        failure the placeholder becomes a local error turn and nothing is
        re-fetched.
        """
        sync = self._sync
        state = sync.state
        session = state.session
        question = state.question
        if session is None or not question.is_ready or state.sending:
            return False
        if not session.auth_token:
            state.status = AuthMissing.default_message
            sync.notify()
            return False
        message = text.strip()
        if not message:
            return False

        state.sending = True
        state.transcript.add_pending(message)
        state.status = "Sending message..."
        sync.notify()
        with log_context(session_id=session.session_id, question=question.number):
            try:
                await self._backend.send_chat(session, message)
                await sync.hydrate_transcript(session)
            except AssistantError as exc:
                logger.error("Chat send failed: %s", exc)
                state.transcript.fail_pending(exc.user_message or "Something went wrong")
                state.status = exc.user_message or "Could not send message."
                return False
            finally:
                state.sending = False
                sync.notify()
            state.transcript.discard_pending()
            state.status = ""
            sync.notify()
            log_event(logger, "chat.sent", chars=len(message))
            return True
