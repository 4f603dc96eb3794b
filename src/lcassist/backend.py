"""HTTP client for the chat backend."""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from lcassist.config import DEFAULT_BACKEND_URL, DEFAULT_REQUEST_TIMEOUT_S
from lcassist.errors import AuthMissing, BackendRejection, NetworkFailure
from lcassist.models import Role, Session, Turn

SESSION_ID_HEADER = "X-Session-ID"
SESSION_AUTH_HEADER = "X-Session-Auth"
_ERROR_BODY_MAX = 240

logger = logging.getLogger(__name__)


class CreateSessionResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    session_id: str | None = None
    username: str | None = None
    auth_token: str | None = None

    @field_validator("session_id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class MessagePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    role: Role = Role.ASSISTANT
    content: str = ""
    ts: str | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _coerce_role(cls, value: Any) -> Any:
        if isinstance(value, str) and value.lower() == Role.USER.value:
            return Role.USER
        return Role.ASSISTANT

    @field_validator("content", mode="before")
    @classmethod
    def _coerce_content(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @field_validator("ts", mode="before")
    @classmethod
    def _coerce_ts(cls, value: Any) -> Any:
        return None if value in (None, "") else str(value)


class WhoAmIResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    messages: list[MessagePayload] | None = None


def auth_headers(session: Session | None) -> dict[str, str]:
    """Build the session auth headers, refusing to proceed without both values."""
    if session is None or not session.session_id or not session.auth_token:
        raise AuthMissing("Session auth token missing.")
    return {
        SESSION_ID_HEADER: session.session_id,
        SESSION_AUTH_HEADER: session.auth_token,
    }


def turns_from_payload(messages: list[MessagePayload]) -> list[Turn]:
    return [
        Turn(role=message.role, content=message.content, key=message.ts or f"{message.role.value}-{idx}")
        for idx, message in enumerate(messages)
    ]


class BackendClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BACKEND_URL,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT_S,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "BackendClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def create_session(self, username: str) -> Session:
        name = username.strip()
        if not name:
            raise BackendRejection("Username is required.")
        data = await self._request(
            "POST",
            f"/create_session/{quote(name, safe='')}",
            default_error="Unable to create session.",
        )
        parsed = _validate(CreateSessionResponse, data, "Unable to create session.")
        if not parsed.auth_token:
            raise AuthMissing("Server did not return an auth token.")
        if not parsed.session_id:
            raise BackendRejection("Server did not return a session id.")
        return Session(session_id=parsed.session_id, username=parsed.username or name, auth_token=parsed.auth_token)

    async def register_question(self, session: Session, number: int, title: str | None) -> None:
        await self._request(
            "POST",
            "/questions",
            session=session,
            payload={"lc_question_number": int(number), "lc_question_title": title or None},
            default_error="Backend rejected the question.",
        )

    async def fetch_transcript(self, session: Session) -> list[Turn] | None:
        """Return the authoritative transcript, or None when the body carries none."""
        data = await self._request(
            "GET",
            "/whoami",
            session=session,
            default_error="Could not load session messages.",
        )
        parsed = _validate(WhoAmIResponse, data, "Could not load session messages.")
        if parsed.messages is None:
            return None
        return turns_from_payload(parsed.messages)

    async def send_chat(self, session: Session, text: str) -> None:
        await self._request(
            "POST",
            "/chat",
            session=session,
            payload={"text": text},
            default_error="Chat request failed.",
        )

    async def delete_session(self, session: Session) -> None:
        await self._request(
            "POST",
            "/delete_session",
            session=session,
            default_error="Failed to delete session.",
        )

    async def _request(
        self,
        method: str,
        path: str,
        *,
        default_error: str,
        session: Session | None = None,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        headers = {"Accept": "application/json"}
        if session is not None:
            headers.update(auth_headers(session))
        url = f"{self._base_url}{path}"
        try:
            response = await self._client.request(method, url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Backend %s %s failed: %s", method, path, exc)
            raise NetworkFailure() from exc

        data = _json_body(response)
        if response.is_error or data.get("ok") is False:
            logger.warning(
                "Backend %s %s returned HTTP %s body=%s",
                method,
                path,
                response.status_code,
                _truncate(response.text, _ERROR_BODY_MAX),
            )
            raise BackendRejection(_error_message(data, default_error), status_code=response.status_code)
        return data


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _error_message(data: dict[str, Any], default: str) -> str:
    for key in ("error", "detail"):
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value
        if isinstance(value, list):
            messages = [str(item.get("msg")) for item in value if isinstance(item, dict) and item.get("msg")]
            if messages:
                return "; ".join(messages)
    return default


def _validate(model: type[BaseModel], data: dict[str, Any], default_error: str) -> Any:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        logger.warning("Unexpected backend payload for %s: %s", model.__name__, exc)
        raise BackendRejection(default_error) from exc


def _truncate(value: str, limit: int) -> str:
    if len(value) <= limit:
        return value
    return f"{value[:limit]}..."
