"""Interactive REPL loop for the assistant client."""

from __future__ import annotations

import sys

from prompt_toolkit import PromptSession  # type: ignore
from prompt_toolkit.patch_stdout import patch_stdout  # type: ignore
from prompt_toolkit.styles import Style  # type: ignore

from lcassist.client.app import AssistantApp
from lcassist.client.display import print_info, print_pending_question, print_status, print_transcript, print_turn
from lcassist.client.slash import handle_slash_command
from lcassist.client.status_box import build_status_toolbar, render_status_box
from lcassist.models import PendingQuestion, Role, Turn
from lcassist.sync import AssistantState

TOOLBAR_STYLE = Style.from_dict(
    {
        "toolbar.label": "bold",
        "toolbar.alert": "bold ansimagenta",
    }
)


class PendingAnnouncer:
    """Print a notice once per newly detected question."""

    def __init__(self) -> None:
        self._announced: int | None = None

    def __call__(self, state: AssistantState) -> None:
        pending: PendingQuestion | None = state.pending
        if pending is None:
            self._announced = None
            return
        if pending.number == self._announced:
            return
        self._announced = pending.number
        print_pending_question(pending)


def _prompt_text(state: AssistantState) -> str:
    question = state.question
    label = f"#{question.number}" if question.is_ready else "-"
    return f"🧩 {label}> "


async def interactive_loop(app: AssistantApp) -> None:
    """Read lines until EOF or /quit; lines without a slash are chat messages."""
    announcer = PendingAnnouncer()
    app.sync.add_listener(announcer)
    session: PromptSession = PromptSession(
        bottom_toolbar=lambda: build_status_toolbar(app.state),
        style=TOOLBAR_STYLE,
        refresh_interval=1.0,
    )
    print(render_status_box(app.state))
    if app.state.transcript:
        print_transcript(app.state.transcript)

    try:
        while not app.should_exit:
            try:
                with patch_stdout():
                    line = await session.prompt_async(_prompt_text(app.state))
            except EOFError:
                break
            except KeyboardInterrupt:
                print("", file=sys.stderr)
                continue

            line = line.strip()
            if not line:
                continue

            if line.startswith("/"):
                handled = await handle_slash_command(line, app)
                if not handled:
                    print(f"Unknown command {line.split()[0]}. Send /help for the list.")
                continue

            await _send_chat(app, line)
    finally:
        app.sync.remove_listener(announcer)


async def _send_chat(app: AssistantApp, line: str) -> None:
    state = app.state
    if state.session is None:
        print_info("Start a session first with /session <username>.")
        return
    if not state.question.is_ready:
        print_info("Open a LeetCode question with /open <url> before chatting.")
        return

    before = len(state.transcript)
    sent = await app.chat.send(line)
    if not sent:
        print_status(state.status)
    if not sent and len(state.transcript) == before:
        return
    for turn in _trailing_replies(state.transcript.turns):
        print_turn(turn)


def _trailing_replies(turns: list[Turn]) -> list[Turn]:
    replies: list[Turn] = []
    for turn in reversed(turns):
        if turn.role is not Role.ASSISTANT:
            break
        replies.append(turn)
    return list(reversed(replies))
