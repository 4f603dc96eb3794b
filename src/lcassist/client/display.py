"""Shared rich console utilities for client output."""

from __future__ import annotations

from io import StringIO
from threading import Lock
from typing import Any, Iterable

from prompt_toolkit.formatted_text import ANSI  # type: ignore
from prompt_toolkit.shortcuts import print_formatted_text  # type: ignore
from rich.console import Console
from rich.markdown import Markdown
from rich.text import Text

from lcassist.client.status_box import is_error_status
from lcassist.models import PendingQuestion, Role, Turn, TurnKind

_render_buffer = StringIO()
_render_console = Console(
    file=_render_buffer,
    force_terminal=True,
    color_system="standard",
    markup=False,
    highlight=False,
)
_render_lock = Lock()


def _render_and_print(*args: Any, **kwargs: Any) -> bool:
    end = kwargs.get("end")
    if end is None:
        kwargs["end"] = "\n"
    with _render_lock:
        _render_buffer.seek(0)
        _render_buffer.truncate(0)
        _render_console.print(*args, **kwargs)
        output = _render_buffer.getvalue()
    if output:
        print_formatted_text(ANSI(output), end="")
        return output.endswith("\n")
    return False


def print_turn(turn: Turn) -> None:
    if turn.role is Role.USER:
        _render_and_print(Text(f"You: {turn.content}", style="cyan"))
        return
    if turn.kind is TurnKind.PENDING:
        _render_and_print(Text(f"AI: {turn.content}", style="#aaaaaa"))
        return
    if turn.kind is TurnKind.LOCAL_ERROR:
        _render_and_print(Text(f"AI: {turn.content}", style="red"))
        return
    _render_and_print(Text("AI:", style="green"))
    _render_and_print(Markdown(turn.content))


def print_transcript(turns: Iterable[Turn]) -> None:
    shown = False
    for turn in turns:
        print_turn(turn)
        shown = True
    if not shown:
        print_info("No messages yet. Ask something about this question.")


def print_status(status: str) -> None:
    if not status:
        return
    style = "red" if is_error_status(status) else "yellow"
    _render_and_print(Text(f"[{status}]", style=style))


def print_info(message: str) -> None:
    _render_and_print(Text(message, style="#aaaaaa"))


def print_pending_question(pending: PendingQuestion) -> None:
    _render_and_print(
        Text(f"New question detected: {pending.title} (#{pending.number})", style="magenta"),
    )
    print_info("Send /reload to sync the assistant with the current page.")
