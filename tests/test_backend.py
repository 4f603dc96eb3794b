from __future__ import annotations

import json

import httpx
import pytest

from lcassist.backend import BackendClient, MessagePayload, auth_headers, turns_from_payload
from lcassist.errors import AuthMissing, BackendRejection, NetworkFailure
from lcassist.models import Role, Session

BASE_URL = "https://backend.test"
SESSION = Session(session_id="abc", username="ada", auth_token="tok")


def _client(handler) -> BackendClient:
    transport = httpx.MockTransport(handler)
    return BackendClient(BASE_URL, http_client=httpx.AsyncClient(transport=transport))


@pytest.mark.asyncio
async def test_create_session_quotes_username_and_parses_response() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"session_id": 7, "username": "ada l", "auth_token": "tok"})

    client = _client(handler)
    session = await client.create_session("  ada l ")

    assert seen[0].method == "POST"
    assert seen[0].url.raw_path == b"/create_session/ada%20l"
    assert "X-Session-ID" not in seen[0].headers
    assert session == Session(session_id="7", username="ada l", auth_token="tok")


@pytest.mark.asyncio
async def test_create_session_without_token_raises_auth_missing() -> None:
    client = _client(lambda _req: httpx.Response(200, json={"session_id": "s1", "username": "ada"}))
    with pytest.raises(AuthMissing, match="auth token"):
        await client.create_session("ada")


@pytest.mark.asyncio
async def test_create_session_rejects_empty_username_without_request() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    client = _client(handler)
    with pytest.raises(BackendRejection):
        await client.create_session("   ")
    assert calls == []


@pytest.mark.asyncio
async def test_register_question_sends_wire_fields_and_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"ok": True})

    client = _client(handler)
    await client.register_question(SESSION, 42, "42. Trapping Rain Water")

    request = seen[0]
    assert request.url.path == "/questions"
    assert request.headers["X-Session-ID"] == "abc"
    assert request.headers["X-Session-Auth"] == "tok"
    assert json.loads(request.content) == {
        "lc_question_number": 42,
        "lc_question_title": "42. Trapping Rain Water",
    }


@pytest.mark.asyncio
async def test_missing_token_fails_before_any_request() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    client = _client(handler)
    with pytest.raises(AuthMissing):
        await client.send_chat(Session(session_id="abc", username="ada", auth_token=""), "hi")
    assert calls == []


@pytest.mark.asyncio
async def test_fetch_transcript_maps_roles_and_keys() -> None:
    body = {
        "messages": [
            {"role": "user", "content": "hi", "ts": 1700},
            {"role": "model", "content": "**hello**"},
        ]
    }
    client = _client(lambda _req: httpx.Response(200, json=body))
    turns = await client.fetch_transcript(SESSION)

    assert turns is not None
    assert [(turn.role, turn.content, turn.key) for turn in turns] == [
        (Role.USER, "hi", "1700"),
        (Role.ASSISTANT, "**hello**", "assistant-1"),
    ]


@pytest.mark.asyncio
async def test_fetch_transcript_without_messages_returns_none() -> None:
    client = _client(lambda _req: httpx.Response(200, json={"username": "ada"}))
    assert await client.fetch_transcript(SESSION) is None


@pytest.mark.asyncio
async def test_error_message_prefers_error_then_detail() -> None:
    responses = iter(
        [
            httpx.Response(400, json={"error": "Question already registered"}),
            httpx.Response(422, json={"detail": [{"msg": "field required"}, {"msg": "bad type"}]}),
            httpx.Response(500, text="oops"),
        ]
    )
    client = _client(lambda _req: next(responses))

    with pytest.raises(BackendRejection, match="Question already registered") as first:
        await client.register_question(SESSION, 1, None)
    assert first.value.status_code == 400
    with pytest.raises(BackendRejection, match="field required; bad type"):
        await client.send_chat(SESSION, "hi")
    with pytest.raises(BackendRejection, match="Failed to delete session."):
        await client.delete_session(SESSION)


@pytest.mark.asyncio
async def test_ok_false_is_rejection_on_success_status() -> None:
    client = _client(lambda _req: httpx.Response(200, json={"ok": False, "error": "Chat disabled"}))
    with pytest.raises(BackendRejection, match="Chat disabled"):
        await client.send_chat(SESSION, "hi")


@pytest.mark.asyncio
async def test_transport_error_becomes_network_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("boom", request=request)

    client = _client(handler)
    with pytest.raises(NetworkFailure):
        await client.delete_session(SESSION)


def test_auth_headers_require_both_values() -> None:
    assert auth_headers(SESSION) == {"X-Session-ID": "abc", "X-Session-Auth": "tok"}
    with pytest.raises(AuthMissing):
        auth_headers(None)
    with pytest.raises(AuthMissing):
        auth_headers(Session(session_id="", username="ada", auth_token="tok"))


def test_turns_from_payload_coerces_missing_content() -> None:
    payload = [MessagePayload.model_validate({"role": "USER", "content": None})]
    turns = turns_from_payload(payload)
    assert turns[0].role is Role.USER
    assert turns[0].content == ""
    assert turns[0].key == "user-0"
