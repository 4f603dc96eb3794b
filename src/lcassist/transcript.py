"""Local transcript copy with optimistic pending turns."""

from __future__ import annotations

import itertools
from typing import Iterable, Iterator

from lcassist.models import Role, Turn, TurnKind

THINKING_PLACEHOLDER = "Thinking..."

_local_keys = itertools.count(1)


def _local_key(prefix: str) -> str:
    return f"{prefix}-{next(_local_keys)}"


class Transcript:
    """Ordered turns for the active session.

    The backend copy is authoritative: `replace_all` swaps it in wholesale and
    drops anything pending. Local turns only exist between a send and its
    outcome.
    """

    def __init__(self, turns: Iterable[Turn] = ()) -> None:
        self._turns: list[Turn] = list(turns)

    def __iter__(self) -> Iterator[Turn]:
        return iter(self._turns)

    def __len__(self) -> int:
        return len(self._turns)

    @property
    def turns(self) -> list[Turn]:
        return list(self._turns)

    @property
    def has_pending(self) -> bool:
        return any(turn.is_pending for turn in self._turns)

    def replace_all(self, turns: Iterable[Turn]) -> None:
        self._turns = [turn for turn in turns if not turn.is_pending]

    def clear(self) -> None:
        self._turns = []

    def add_pending(self, text: str) -> None:
        self._turns.extend(
            [
                Turn(Role.USER, text, _local_key("local-user")),
                Turn(Role.ASSISTANT, THINKING_PLACEHOLDER, _local_key("pending"), kind=TurnKind.PENDING),
            ]
        )

    def discard_pending(self) -> None:
        self._turns = [turn for turn in self._turns if not turn.is_pending]

    def fail_pending(self, message: str) -> None:
        self.discard_pending()
        self._turns.append(Turn(Role.ASSISTANT, f"Error: {message}", _local_key("local-error"), kind=TurnKind.LOCAL_ERROR))
