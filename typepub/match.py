"""Keystroke matching against a Document.

The engine keeps one MatchStatus per stream position and a cursor. A
position only ever moves between PENDING and a typed state; getting from
CORRECT to INCORRECT (or back) always goes through a backspace.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, Mapping, NamedTuple, Optional

from .constants import TypingConstants
from .document import Character, Document

logger = logging.getLogger(__name__)


class MatchStatus(Enum):
    PENDING = "pending"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class KeyOutcome(Enum):
    """What a single engine operation did."""
    CORRECT = "correct"
    INCORRECT = "incorrect"
    ERASED = "erased"
    AT_START = "at_start"  # backspace with nothing typed; no-op
    AT_END = "at_end"  # typing past the end of the chapter; no-op


class Progress(NamedTuple):
    typed: int
    correct: int
    incorrect: int

    @property
    def accuracy(self) -> float:
        """Fraction of typed characters that are correct (1.0 when nothing typed)."""
        if self.typed == 0:
            return 1.0
        return self.correct / self.typed


class MatchEngine:
    """Tracks what the user has typed against a Document's stream."""

    def __init__(
        self,
        document: Document,
        advance_key: str = TypingConstants.ADVANCE_KEY,
        equivalents: Optional[Mapping[str, str]] = None,
    ):
        """Bind a fresh engine to document.

        Args:
            document: The chapter being typed.
            advance_key: The only input accepted as correct at a paragraph break.
            equivalents: Map from a book character to an extra input
                accepted for it (e.g. straight quotes for curly ones).
                None means exact, case-sensitive matching only.
        """
        self.document = document
        self.advance_key = advance_key
        self.equivalents = dict(equivalents or {})
        self.reset()

    def reset(self) -> None:
        """Forget all typing: every position PENDING, cursor at 0."""
        self._statuses: list[MatchStatus] = [MatchStatus.PENDING] * len(self.document)
        self._typed: list[str] = []
        self._cursor = 0
        self._correct = 0
        self._incorrect = 0

    # --- State queries ---

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def at_end(self) -> bool:
        return self._cursor == len(self._statuses)

    @property
    def cursor_line(self) -> int:
        return self.document.position_to_line(self._cursor)

    @property
    def statuses(self) -> tuple[MatchStatus, ...]:
        return tuple(self._statuses)

    def status_at(self, position: int) -> MatchStatus:
        return self._statuses[position]

    def typed_at(self, position: int) -> Optional[str]:
        """The input the user gave for position, or None if not reached."""
        if position < len(self._typed):
            return self._typed[position]
        return None

    def progress(self) -> Progress:
        return Progress(self._cursor, self._correct, self._incorrect)

    def matches(self, expected: str, typed: str) -> bool:
        if expected == typed:
            return True
        return self.equivalents.get(expected) == typed

    # --- Mutations ---

    def type_char(self, char: str) -> KeyOutcome:
        """Record char as the input for the cursor position and advance.

        At a paragraph break only the advance key counts as correct; any
        other input is recorded as INCORRECT and still moves past the break.
        """
        if self.at_end:
            return KeyOutcome.AT_END

        position = self._cursor
        if self.document.is_break(position):
            correct = char == self.advance_key
        else:
            correct = self.matches(self.document.stream[position], char)

        if correct:
            self._statuses[position] = MatchStatus.CORRECT
            self._correct += 1
        else:
            self._statuses[position] = MatchStatus.INCORRECT
            self._incorrect += 1
        self._typed.append(char)
        self._cursor += 1
        return KeyOutcome.CORRECT if correct else KeyOutcome.INCORRECT

    def backspace(self) -> KeyOutcome:
        """Step the cursor back one position and make it PENDING again."""
        if self._cursor == 0:
            return KeyOutcome.AT_START

        self._cursor -= 1
        previous = self._statuses[self._cursor]
        if previous is MatchStatus.CORRECT:
            self._correct -= 1
        elif previous is MatchStatus.INCORRECT:
            self._incorrect -= 1
        self._statuses[self._cursor] = MatchStatus.PENDING
        self._typed.pop()
        return KeyOutcome.ERASED

    def delete_word(self) -> int:
        """Erase the last typed word, like Ctrl-W in a shell.

        Whitespace typed after the word is erased first, then everything
        back to the previous whitespace. Returns the number of positions
        erased.
        """
        erased = 0
        found_word = False
        while self._typed:
            is_space = self._typed[-1].isspace()
            if found_word and is_space:
                break
            found_word = found_word or not is_space
            self.backspace()
            erased += 1
        return erased

    # --- Read projections for rendering ---

    def visible_lines(self, line_indices: Iterable[int]) -> list[list[tuple[Character, MatchStatus]]]:
        """Annotated characters for each requested line, in ascending order."""
        out = []
        for index in sorted(set(line_indices)):
            out.append([(ch, self._statuses[ch.position]) for ch in self.document.characters(index)])
        return out

    def visible_range(self, line_indices: Iterable[int]) -> list[tuple[Character, MatchStatus]]:
        """Annotated characters of the requested lines, flattened in stream order."""
        return [cell for line in self.visible_lines(line_indices) for cell in line]
