"""Core data models shared across the assistant."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class QuestionStatus(str, Enum):
    CHECKING = "checking"
    LOADING = "loading"
    NOT_APPLICABLE = "not_applicable"
    ERROR = "error"
    READY = "ready"


@dataclass(frozen=True)
class Question:
    """Detected question state; replaced wholesale on every detection."""

    status: QuestionStatus
    number: int | None = None
    title: str | None = None
    message: str | None = None

    @classmethod
    def checking(cls) -> "Question":
        return cls(QuestionStatus.CHECKING)

    @classmethod
    def loading(cls) -> "Question":
        return cls(QuestionStatus.LOADING)

    @classmethod
    def not_applicable(cls) -> "Question":
        return cls(QuestionStatus.NOT_APPLICABLE)

    @classmethod
    def error(cls, message: str) -> "Question":
        return cls(QuestionStatus.ERROR, message=message)

    @classmethod
    def ready(cls, number: int, title: str) -> "Question":
        return cls(QuestionStatus.READY, number=number, title=title)

    @property
    def is_ready(self) -> bool:
        return self.status is QuestionStatus.READY


@dataclass(frozen=True)
class PendingQuestion:
    number: int
    title: str


@dataclass(frozen=True)
class Session:
    session_id: str
    username: str
    auth_token: str

    @property
    def is_valid(self) -> bool:
        return bool(self.session_id and self.auth_token)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "username": self.username,
            "authToken": self.auth_token,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        return cls(
            session_id=str(data.get("sessionId") or ""),
            username=str(data.get("username") or ""),
            auth_token=str(data.get("authToken") or ""),
        )


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class TurnKind(str, Enum):
    CONFIRMED = "confirmed"
    PENDING = "pending"
    LOCAL_ERROR = "local_error"


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str
    key: str
    kind: TurnKind = TurnKind.CONFIRMED

    @property
    def is_pending(self) -> bool:
        return self.kind is TurnKind.PENDING


@dataclass(frozen=True)
class Tab:
    id: int
    url: str


class TabEventKind(str, Enum):
    UPDATED = "updated"
    ACTIVATED = "activated"


@dataclass(frozen=True)
class TabEvent:
    kind: TabEventKind
    tab: Tab | None = None
    url_changed: bool = False
    complete: bool = False


@dataclass(frozen=True)
class PageInfo:
    """Snapshot produced by a page extractor."""

    ok: bool
    question_id: str | None = None
    title: str | None = None
    reason: str | None = None
