"""Command line entry point for the LeetCode solution assistant."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from lcassist import __version__
from lcassist.client.app import AssistantApp
from lcassist.client.display import print_status
from lcassist.client.repl import interactive_loop
from lcassist.config import load_config
from lcassist.log_utils import build_log_config, configure_logging, log_event
from lcassist.markdown import render_markdown

logger = logging.getLogger(__name__)


async def run_chat(url: str | None, username: str | None) -> int:
    config = load_config()
    app = AssistantApp(config, url=url)
    try:
        await app.start()
        if username:
            app.sync.set_username(username)
            if app.state.session is None:
                await app.sync.create_session(username)
                print_status(app.state.status)
        await interactive_loop(app)
        return 0
    except KeyboardInterrupt:
        return 130
    finally:
        await app.close()


def run_render(source: str | None) -> int:
    if source is None or source == "-":
        text = sys.stdin.read()
    else:
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            print(f"Cannot read {path}: {exc}", file=sys.stderr)
            return 1
    sys.stdout.write(render_markdown(text))
    sys.stdout.write("\n")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="lcassist", description="LeetCode solution assistant.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    chat = subparsers.add_parser("chat", help="Run the interactive assistant.")
    chat.add_argument("--url", help="Question page to open on start.")
    chat.add_argument("--username", help="Create a session under this name if none is stored.")

    render = subparsers.add_parser("render", help="Render Markdown to markup on stdout.")
    render.add_argument("file", nargs="?", help="Markdown file to read (default: stdin).")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    command = args.command or "chat"

    if command == "render":
        return run_render(args.file)

    configure_logging(build_log_config(log_file_name="lcassist.log"))
    log_event(logger, "client.command", command=command)
    return asyncio.run(run_chat(getattr(args, "url", None), getattr(args, "username", None)))


def main_entry() -> int:
    try:
        return main()
    except KeyboardInterrupt:
        return 130
