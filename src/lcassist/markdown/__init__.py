"""Lightweight Markdown-to-markup rendering for untrusted assistant text."""

from __future__ import annotations

from typing import Any

from lcassist.markdown.parser import parse_blocks, parse_inline
from lcassist.markdown.render import escape, render_blocks


def render_markdown(text: Any) -> str:
    """Render raw Markdown to markup in a single pass.

    Every character taken from the source is escaped; only tags introduced
    by the renderer itself appear unescaped. Running the output through the
    renderer again is not supported.
    """

    if not isinstance(text, str):
        return ""
    return render_blocks(parse_blocks(text))


__all__ = ["escape", "parse_blocks", "parse_inline", "render_blocks", "render_markdown"]
