"""Status UI rendering for the terminal client."""

from __future__ import annotations

from prompt_toolkit.utils import get_cwidth  # type: ignore

from lcassist.models import QuestionStatus
from lcassist.sync import AssistantState, SyncPhase

_PHASE_LABELS = {
    SyncPhase.NO_TAB: "No page open",
    SyncPhase.WRONG_SITE: "Idle",
    SyncPhase.DETECTING: "Reading page",
    SyncPhase.QUESTION_ERROR: "Page error",
    SyncPhase.READY_NO_SESSION: "Question detected",
    SyncPhase.READY_UNINITIALIZED: "Syncing",
    SyncPhase.READY_INITIALIZED: "Question detected",
}


def is_error_status(status: str) -> bool:
    return "fail" in status.lower()


def format_question(state: AssistantState) -> str:
    question = state.question
    if question.status is QuestionStatus.READY:
        return f"{question.title} ( #{question.number} )"
    if question.status is QuestionStatus.ERROR:
        return question.message or "Something went wrong while reading the page."
    if question.status is QuestionStatus.NOT_APPLICABLE:
        return "Only active on a LeetCode question page"
    return "Reading the LeetCode page..."


def format_session(state: AssistantState) -> str:
    if state.session is None:
        return "none, send /session <username>"
    return f"{state.session.username} ({state.session.session_id})"


def build_status_toolbar(state: AssistantState) -> list[tuple[str, str]]:
    gap = ("", "  ")
    question = state.question
    question_text = f"#{question.number}" if question.is_ready else _PHASE_LABELS[state.phase]
    parts: list[tuple[str, str]] = [
        ("class:toolbar.label", "Question: "),
        ("class:toolbar.value", question_text),
        gap,
        ("class:toolbar.label", "User: "),
        ("class:toolbar.value", state.session.username if state.session else "-"),
    ]
    if state.pending is not None:
        parts.extend([gap, ("class:toolbar.alert", f"New question #{state.pending.number}: /reload")])
    if state.sending or state.busy or state.refreshing:
        parts.extend([gap, ("class:toolbar.value", "working...")])
    parts.extend([gap, ("class:toolbar.label", "Ctrl-D: "), ("class:toolbar.value", "exit")])
    return parts


def render_status_box(state: AssistantState) -> str:
    lines = [
        "LeetCode Solution Assistant",
        "Send /help for help information.",
        "",
        f"Status: {_PHASE_LABELS[state.phase]}",
        f"Question: {format_question(state)}",
        f"Session: {format_session(state)}",
        f"Page: {state.active_tab.url if state.active_tab else '<none>'}",
    ]
    if state.pending is not None:
        lines.append(f"New question detected: {state.pending.title} (#{state.pending.number})")
    if state.status:
        lines.append(f"Note: {state.status}")

    content_width = max(_display_width(line) for line in lines)
    padded = [f" {_pad_to_width(line, content_width)} " for line in lines]
    width = content_width + 2
    green = "\x1b[32m"
    bold = "\x1b[1m"
    reset = "\x1b[0m"

    top = f"{green}┌{'─' * width}┐{reset}"
    body: list[str] = []
    for idx, line in enumerate(padded):
        content = f"{bold}{line}{reset}" if idx == 0 else line
        body.append(f"{green}│{reset}{content}{green}│{reset}")
    bottom = f"{green}└{'─' * width}┘{reset}"
    return "\n".join([top, *body, bottom, ""])


def _display_width(text: str) -> int:
    return get_cwidth(text)


def _pad_to_width(text: str, width: int) -> str:
    padding = max(0, width - _display_width(text))
    if padding:
        return f"{text}{' ' * padding}"
    return text
