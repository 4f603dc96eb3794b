"""Client-side slash command registry and dispatch."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Awaitable, Callable

from lcassist.client.display import print_info, print_status, print_transcript
from lcassist.client.status_box import render_status_box
from lcassist.export import export_transcript
from lcassist.extractor import is_question_url

if TYPE_CHECKING:
    from lcassist.client.app import AssistantApp

logger = logging.getLogger(__name__)

SlashHandler = Callable[["AssistantApp", str], Awaitable[bool] | bool]


@dataclass
class SlashCommandDef:
    description: str
    hint: str
    handler: SlashHandler


SLASH_HANDLERS: dict[str, SlashCommandDef] = {}


def register_slash_command(
    name: str, description: str, hint: str
) -> Callable[[SlashHandler], SlashHandler]:
    """Decorator to register a slash command."""

    def _decorator(func: SlashHandler) -> SlashHandler:
        SLASH_HANDLERS[name] = SlashCommandDef(description=description, hint=hint, handler=func)
        return func

    return _decorator


@register_slash_command("/help", description="Show available slash commands.", hint="/help")
def _handle_help(_app: AssistantApp, _argument: str) -> bool:
    print("Available slash commands:")
    for entry in SLASH_HANDLERS.values():
        print(f"{entry.hint:<18} - {entry.description}")
    return True


@register_slash_command(
    "/open", description="Point the assistant at a question page.", hint="/open <url>"
)
def _handle_open(app: AssistantApp, argument: str) -> bool:
    if not argument:
        print("Usage: /open <url>")
        return True
    url = argument.split()[0]
    app.tabs.open(url)
    if not is_question_url(url, app.config.question_url_pattern):
        print_info("That page is not a LeetCode question; the assistant stays idle there.")
    return True


@register_slash_command(
    "/session", description="Start a chat session under the given username.", hint="/session <username>"
)
async def _handle_session(app: AssistantApp, argument: str) -> bool:
    username = argument.strip()
    if not username:
        print("Usage: /session <username>")
        return True
    if app.state.session is not None:
        print_info("A session is already active. Use /reset first.")
        return True
    app.sync.set_username(username)
    await app.sync.create_session(username)
    print_status(app.state.status)
    return True


@register_slash_command("/reset", description="Delete the current session.", hint="/reset")
async def _handle_reset(app: AssistantApp, _argument: str) -> bool:
    await app.sync.reset_session()
    if app.state.status:
        print_status(app.state.status)
    else:
        print_info("Session cleared.")
    return True


@register_slash_command(
    "/reload", description="Start over for the question now on the page.", hint="/reload"
)
async def _handle_reload(app: AssistantApp, _argument: str) -> bool:
    latest = await app.sync.reload_for_new_question()
    if latest is not None:
        print_info(f"Now on {latest.title} (#{latest.number}).")
    print_status(app.state.status)
    return True


@register_slash_command(
    "/status", description="Show question, session and page state.", hint="/status"
)
def _handle_status(app: AssistantApp, _argument: str) -> bool:
    print(render_status_box(app.state))
    return True


@register_slash_command("/history", description="Show the chat transcript.", hint="/history")
def _handle_history(app: AssistantApp, _argument: str) -> bool:
    print_transcript(app.state.transcript)
    return True


@register_slash_command(
    "/export", description="Write the transcript to an HTML file.", hint="/export <path>"
)
def _handle_export(app: AssistantApp, argument: str) -> bool:
    if not argument:
        print("Usage: /export <path>")
        return True
    question = app.state.question
    title = question.title if question.is_ready and question.title else "LeetCode Solution Assistant"
    target = export_transcript(Path(argument), title, app.state.transcript)
    print_info(f"Transcript written to {target}")
    return True


@register_slash_command("/quit", description="Exit the client.", hint="/quit")
def _handle_quit(app: AssistantApp, _argument: str) -> bool:
    app.should_exit = True
    return True


async def handle_slash_command(line: str, app: AssistantApp) -> bool:
    """Dispatch client-side slash commands, returning True if handled."""
    trimmed = line.strip()
    if not trimmed.startswith("/"):
        return False

    parts = trimmed.split(maxsplit=1)
    command = parts[0] if parts else ""
    argument = parts[1].strip() if len(parts) > 1 else ""

    entry = SLASH_HANDLERS.get(command)
    if entry is None:
        return False

    try:
        result = entry.handler(app, argument)
        if asyncio.iscoroutine(result):
            return bool(await result)
        return bool(result)
    except SystemExit:
        raise
    except Exception as exc:  # noqa: BLE001
        logger.error("Slash command failed (%s): %s", command, exc)
        print(f"[{command} failed: {exc}]")
        return True
