from __future__ import annotations

import pytest

from lcassist.chat import ChatController
from lcassist.errors import AuthMissing, NetworkFailure
from lcassist.models import Role, Session, TurnKind
from lcassist.transcript import THINKING_PLACEHOLDER, Transcript
from tests.utils import make_sync


async def _ready_chat():
    sync, backend, *_ = make_sync()
    await sync.bootstrap()
    await sync.create_session("ada")
    return sync, backend, ChatController(sync, backend)


@pytest.mark.asyncio
async def test_send_replaces_transcript_with_backend_copy() -> None:
    sync, backend, chat = await _ready_chat()
    seen_pending: list[bool] = []
    sync.add_listener(lambda state: seen_pending.append(state.transcript.has_pending))

    assert await chat.send("  how do I start?  ") is True

    assert backend.chats == ["how do I start?"]
    assert [(turn.role, turn.content) for turn in sync.state.transcript] == [
        (Role.USER, "how do I start?"),
        (Role.ASSISTANT, "Reply to how do I start?"),
    ]
    assert seen_pending[0] is True
    assert not sync.state.transcript.has_pending
    assert sync.state.sending is False
    assert sync.state.status == ""


@pytest.mark.asyncio
async def test_failed_send_keeps_user_turn_and_adds_local_error() -> None:
    sync, backend, chat = await _ready_chat()
    backend.fail["send_chat"] = NetworkFailure()

    assert await chat.send("hello") is False

    turns = sync.state.transcript.turns
    assert [turn.content for turn in turns] == ["hello", f"Error: {NetworkFailure.default_message}"]
    assert turns[-1].kind is TurnKind.LOCAL_ERROR
    assert sync.state.status == NetworkFailure.default_message
    assert sync.state.sending is False


@pytest.mark.asyncio
async def test_send_requires_session_and_ready_question() -> None:
    sync, backend, *_ = make_sync(url="https://example.com/")
    await sync.bootstrap()
    chat = ChatController(sync, backend)

    assert await chat.send("hi") is False
    sync.state.session = Session("s1", "ada", "tok")
    assert await chat.send("hi") is False
    assert backend.chats == []


@pytest.mark.asyncio
async def test_send_ignores_blank_text() -> None:
    sync, backend, chat = await _ready_chat()
    assert await chat.send("   ") is False
    assert backend.chats == []
    assert len(sync.state.transcript) == 0


@pytest.mark.asyncio
async def test_send_without_token_reports_auth_missing() -> None:
    sync, backend, chat = await _ready_chat()
    sync.state.session = Session("s1", "ada", "")

    assert await chat.send("hi") is False
    assert sync.state.status == AuthMissing.default_message
    assert backend.chats == []


def test_transcript_pending_lifecycle() -> None:
    transcript = Transcript()
    transcript.add_pending("question")
    assert [turn.content for turn in transcript] == ["question", THINKING_PLACEHOLDER]
    assert transcript.has_pending

    transcript.fail_pending("offline")
    assert [turn.content for turn in transcript] == ["question", "Error: offline"]
    assert not transcript.has_pending

    transcript.replace_all([])
    assert len(transcript) == 0
