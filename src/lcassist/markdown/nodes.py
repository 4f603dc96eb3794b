"""Typed nodes produced by the Markdown parser."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class Code:
    code: str


@dataclass(frozen=True)
class Strong:
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class Emphasis:
    children: tuple["Inline", ...]


@dataclass(frozen=True)
class Link:
    label: tuple["Inline", ...]
    url: str


Inline = Text | Code | Strong | Emphasis | Link


@dataclass(frozen=True)
class Heading:
    level: int
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class Quote:
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class OrderedList:
    items: tuple[tuple[Inline, ...], ...]


@dataclass(frozen=True)
class UnorderedList:
    items: tuple[tuple[Inline, ...], ...]


@dataclass(frozen=True)
class Paragraph:
    children: tuple[Inline, ...]


@dataclass(frozen=True)
class CodeBlock:
    code: str
    language: str | None = None


Block = Heading | Quote | OrderedList | UnorderedList | Paragraph | CodeBlock
