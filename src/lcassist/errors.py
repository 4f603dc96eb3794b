"""Error taxonomy shared by the sync state machine, backend client and extractor."""

from __future__ import annotations


class AssistantError(RuntimeError):
    """Base class for failures that are reported to the user as a status line."""

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        return str(self) or self.default_message


class ExtractionFailure(AssistantError):
    """The page is not a question page or has no recognizable question number."""

    default_message = "Couldn't read question details."


class AuthMissing(AssistantError):
    """No session id or auth token is available for an authenticated call."""

    default_message = "Session auth token missing. Reset the session."


class BackendRejection(AssistantError):
    """The backend answered with a non-success response."""

    default_message = "Backend rejected the request."

    def __init__(self, message: str | None = None, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NetworkFailure(AssistantError):
    """The request never produced a usable response."""

    default_message = "Network request failed. Check your connection and retry."


class StorageFailure(AssistantError):
    """The local store could not be written."""

    default_message = "Couldn't save local session data."
