"""Standalone HTML export of a chat transcript."""

from __future__ import annotations

import html
from pathlib import Path
from typing import Iterable

from lcassist.markdown import render_markdown
from lcassist.models import Role, Turn


def render_turn(turn: Turn) -> str:
    if turn.role is Role.ASSISTANT:
        label = "AI"
        body = f'<div class="markdown">{render_markdown(turn.content)}</div>'
    else:
        label = "You"
        body = f"<div>{html.escape(turn.content)}</div>"
    return (
        f'<div class="bubble {turn.role.value} {turn.kind.value}">'
        f'<div class="from">{label}</div>{body}</div>'
    )


def render_document(title: str, turns: Iterable[Turn]) -> str:
    escaped_title = html.escape(title)
    bubbles = "\n".join(render_turn(turn) for turn in turns)
    if not bubbles:
        bubbles = '<div class="helper">No messages yet.</div>'
    return f"""<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8"/>
  <meta name="viewport" content="width=device-width, initial-scale=1"/>
  <title>{escaped_title}</title>
  <style>
    :root {{ color-scheme: light dark; --border: #d1d5db; --code-bg: #e5e7eb; }}
    body {{ font-family: system-ui, sans-serif; max-width: 52rem; margin: 2rem auto; padding: 0 1rem; }}
    .bubble {{ border: 1px solid var(--border); border-radius: 8px; padding: 0.5rem 0.75rem; margin: 0.5rem 0; }}
    .bubble.user {{ margin-left: 4rem; }}
    .bubble.local_error {{ border-color: #dc2626; }}
    .from {{ font-size: 0.75rem; opacity: 0.7; }}
    pre {{ background: var(--code-bg); padding: 0.5rem; overflow-x: auto; }}
    .helper {{ opacity: 0.7; }}
  </style>
</head>
<body>
<h1>{escaped_title}</h1>
{bubbles}
</body>
</html>
"""


def export_transcript(path: Path, title: str, turns: Iterable[Turn]) -> Path:
    target = path.expanduser()
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(render_document(title, turns), encoding="utf-8")
    return target
