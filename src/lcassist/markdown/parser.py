"""Tokenize untrusted Markdown into block and inline nodes.

Parsing happens in a fixed order so that nothing produced by one step is
re-read by a later one:

1. fenced code blocks are cut out of the raw text before anything else;
2. the remaining text is split into lines and classified as headings,
   blockquotes, ordered list runs, unordered list runs or paragraph lines;
3. inline spans are resolved per block: code spans, links, bold, italic.

Inline steps replace each match with an opaque marker that refers to the node
it produced. Later steps may wrap a marker (italic around bold) but can never
look inside one, so delimiter characters in code spans or link URLs are never
treated as markup.
"""

from __future__ import annotations

import re
from typing import Callable, Pattern

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

FENCE_RE = re.compile(r"```([\s\S]*?)```")
FENCE_INFO_RE = re.compile(r"^([\w+#.-]*)[ \t]*\n")
HEADING_RE = re.compile(r"^(#{1,6})\s+(.+)$")
QUOTE_RE = re.compile(r"^>\s?(.*)$")
ORDERED_ITEM_RE = re.compile(r"^\s*\d+\.\s+(.+)$")
UNORDERED_ITEM_RE = re.compile(r"^\s*[-*+]\s+(.+)$")

INLINE_CODE_RE = re.compile(r"`([^`]+)`")
LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)\s\x00]+)\)")
BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
ITALIC_RE = re.compile(r"(\*|_)([^*_]+)\1")
SCHEME_RE = re.compile(r"^([a-zA-Z][a-zA-Z0-9+.-]*):")

SAFE_LINK_SCHEMES = {"http", "https", "mailto"}

_MARKER = "\x00"
_MARKER_RE = re.compile(r"\x00(\d+)\x00")


def normalize_source(text: str) -> str:
    """Unify line endings and neutralize NUL, which is reserved for inline markers."""
    return text.replace("\r\n", "\n").replace("\r", "\n").replace(_MARKER, "\ufffd")


def is_safe_url(url: str) -> bool:
    match = SCHEME_RE.match(url)
    return match is None or match.group(1).lower() in SAFE_LINK_SCHEMES


def parse_blocks(text: str) -> list[Block]:
    source = normalize_source(text)
    blocks: list[Block] = []
    pos = 0
    for match in FENCE_RE.finditer(source):
        blocks.extend(_parse_text_blocks(source[pos : match.start()]))
        blocks.append(_code_block(match.group(1)))
        pos = match.end()
    blocks.extend(_parse_text_blocks(source[pos:]))
    return blocks


def _code_block(raw: str) -> CodeBlock:
    language: str | None = None
    info = FENCE_INFO_RE.match(raw)
    if info:
        language = info.group(1) or None
        raw = raw[info.end() :]
    return CodeBlock(code=raw.rstrip(), language=language)


def _parse_text_blocks(segment: str) -> list[Block]:
    blocks: list[Block] = []
    paragraph: list[str] = []
    lines = segment.split("\n")

    def flush_paragraph() -> None:
        text = "\n".join(paragraph).strip()
        paragraph.clear()
        if text:
            blocks.append(Paragraph(parse_inline(text)))

    index = 0
    while index < len(lines):
        line = lines[index]
        if not line.strip():
            flush_paragraph()
            index += 1
            continue

        heading = HEADING_RE.match(line)
        if heading:
            flush_paragraph()
            blocks.append(Heading(len(heading.group(1)), parse_inline(heading.group(2).strip())))
            index += 1
            continue

        quote = QUOTE_RE.match(line)
        if quote:
            flush_paragraph()
            blocks.append(Quote(parse_inline(quote.group(1).strip())))
            index += 1
            continue

        if ORDERED_ITEM_RE.match(line):
            flush_paragraph()
            items, index = _collect_list(lines, index, ORDERED_ITEM_RE)
            blocks.append(OrderedList(items))
            continue

        if UNORDERED_ITEM_RE.match(line):
            flush_paragraph()
            items, index = _collect_list(lines, index, UNORDERED_ITEM_RE)
            blocks.append(UnorderedList(items))
            continue

        paragraph.append(line)
        index += 1

    flush_paragraph()
    return blocks


def _collect_list(
    lines: list[str], start: int, item_re: Pattern[str]
) -> tuple[tuple[tuple[Inline, ...], ...], int]:
    """Collect a run of items; blank lines only continue it when another item follows."""
    items: list[tuple[Inline, ...]] = []
    index = start
    while index < len(lines):
        match = item_re.match(lines[index])
        if match:
            items.append(parse_inline(match.group(1).strip()))
            index += 1
            continue
        if not lines[index].strip():
            lookahead = index
            while lookahead < len(lines) and not lines[lookahead].strip():
                lookahead += 1
            if lookahead < len(lines) and item_re.match(lines[lookahead]):
                index = lookahead
                continue
        break
    return tuple(items), index


def parse_inline(text: str) -> tuple[Inline, ...]:
    return _InlineParser().parse(text)


class _InlineParser:
    def __init__(self) -> None:
        self._nodes: list[Inline] = []
        self._stages: list[Callable[[str, int], str]] = [
            self._code_spans,
            self._links,
            self._bold,
            self._italic,
        ]

    def parse(self, text: str) -> tuple[Inline, ...]:
        return self._children(text, 0)

    def _children(self, text: str, stage: int) -> tuple[Inline, ...]:
        for index in range(stage, len(self._stages)):
            text = self._stages[index](text, index + 1)
        return tuple(self._expand(text))

    def _stash(self, node: Inline) -> str:
        self._nodes.append(node)
        return f"{_MARKER}{len(self._nodes) - 1}{_MARKER}"

    def _expand(self, text: str) -> list[Inline]:
        nodes: list[Inline] = []
        pos = 0
        for match in _MARKER_RE.finditer(text):
            if match.start() > pos:
                nodes.append(Text(text[pos : match.start()]))
            nodes.append(self._nodes[int(match.group(1))])
            pos = match.end()
        if pos < len(text):
            nodes.append(Text(text[pos:]))
        return nodes

    def _code_spans(self, text: str, _next_stage: int) -> str:
        return INLINE_CODE_RE.sub(lambda m: self._stash(Code(m.group(1))), text)

    def _links(self, text: str, next_stage: int) -> str:
        def _replace(match: re.Match[str]) -> str:
            url = match.group(2)
            if not is_safe_url(url):
                return match.group(0)
            return self._stash(Link(self._children(match.group(1), next_stage), url))

        return LINK_RE.sub(_replace, text)

    def _bold(self, text: str, next_stage: int) -> str:
        return BOLD_RE.sub(lambda m: self._stash(Strong(self._children(m.group(1), next_stage))), text)

    def _italic(self, text: str, next_stage: int) -> str:
        return ITALIC_RE.sub(lambda m: self._stash(Emphasis(self._children(m.group(2), next_stage))), text)
