"""Render parsed Markdown nodes to safe markup."""

from __future__ import annotations

import html
from typing import Iterable

from lcassist.markdown.nodes import (
    Block,
    Code,
    CodeBlock,
    Emphasis,
    Heading,
    Inline,
    Link,
    OrderedList,
    Paragraph,
    Quote,
    Strong,
    Text,
    UnorderedList,
)


def escape(value: str) -> str:
    return html.escape(value, quote=True)


def render_inline(nodes: Iterable[Inline]) -> str:
    parts: list[str] = []
    for node in nodes:
        if isinstance(node, Text):
            parts.append(escape(node.text))
        elif isinstance(node, Code):
            parts.append(f"<code>{escape(node.code)}</code>")
        elif isinstance(node, Strong):
            parts.append(f"<strong>{render_inline(node.children)}</strong>")
        elif isinstance(node, Emphasis):
            parts.append(f"<em>{render_inline(node.children)}</em>")
        elif isinstance(node, Link):
            parts.append(
                f'<a href="{escape(node.url)}" target="_blank" rel="noopener noreferrer">'
                f"{render_inline(node.label)}</a>"
            )
        else:
            raise TypeError(f"Unknown inline node: {node!r}")
    return "".join(parts)


def _render_items(items: Iterable[tuple[Inline, ...]]) -> str:
    return "".join(f"<li>{render_inline(item)}</li>" for item in items)


def render_block(block: Block) -> str:
    if isinstance(block, Heading):
        return f"<h{block.level}>{render_inline(block.children)}</h{block.level}>"
    if isinstance(block, Quote):
        return f"<blockquote><p>{render_inline(block.children)}</p></blockquote>"
    if isinstance(block, OrderedList):
        return f"<ol>{_render_items(block.items)}</ol>"
    if isinstance(block, UnorderedList):
        return f"<ul>{_render_items(block.items)}</ul>"
    if isinstance(block, Paragraph):
        return f"<p>{render_inline(block.children)}</p>"
    if isinstance(block, CodeBlock):
        class_attr = f' class="language-{escape(block.language)}"' if block.language else ""
        return f"<pre><code{class_attr}>{escape(block.code)}</code></pre>"
    raise TypeError(f"Unknown block node: {block!r}")


def render_blocks(blocks: Iterable[Block]) -> str:
    return "".join(render_block(block) for block in blocks)
