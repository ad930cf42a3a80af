"""The wrapped, read-only text of one chapter."""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass
from typing import AbstractSet, Iterator

from .errors import IndexOutOfRange
from .normalizer import NormalizedText
from .wrapper import Line, wrap

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Character:
    value: str
    position: int


class Document:
    """Character stream of a chapter plus its lines at one width.

    Lines are kept in a list together with a parallel list of their start
    offsets so a stream position maps to its line with a binary search.
    A Document never changes; a new width or chapter means a new Document.
    """

    def __init__(self, stream: str, breaks: AbstractSet[int], width: int, title: str = ""):
        self.stream = stream
        self.breaks = frozenset(breaks)
        self.width = width
        self.title = title
        self.lines: list[Line] = wrap(stream, self.breaks, width)
        self._starts = [line.start for line in self.lines]
        logger.debug("Built document %r: %d chars, %d lines at width %d",
                     title, len(stream), len(self.lines), width)

    @classmethod
    def build(cls, stream: str, breaks: AbstractSet[int], width: int, title: str = "") -> "Document":
        return cls(stream, breaks, width, title=title)

    @classmethod
    def from_normalized(cls, text: NormalizedText, width: int, title: str = "") -> "Document":
        return cls(text.stream, text.breaks, width, title=title)

    def __len__(self) -> int:
        return len(self.stream)

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def line_at(self, index: int) -> Line:
        """Return line number index.

        Raises:
            IndexOutOfRange: index is negative or past the last line.
        """
        if not 0 <= index < len(self.lines):
            raise IndexOutOfRange(
                f"line {index} out of range (document has {len(self.lines)} lines)"
            )
        return self.lines[index]

    def position_to_line(self, position: int) -> int:
        """Return the index of the line holding stream position.

        The end-of-stream position belongs to the last line, which is where
        the cursor sits once the chapter is finished.
        """
        if not 0 <= position <= len(self.stream):
            raise IndexOutOfRange(
                f"position {position} out of range (document has {len(self.stream)} chars)"
            )
        return max(0, bisect.bisect_right(self._starts, position) - 1)

    def column_of(self, position: int) -> int:
        """Column of position within its line."""
        return position - self.lines[self.position_to_line(position)].start

    def line_text(self, index: int) -> str:
        """Drawn text of a line, without its trailing space or break."""
        line = self.line_at(index)
        return self.stream[line.start:line.start + line.width]

    def character(self, position: int) -> Character:
        if not 0 <= position < len(self.stream):
            raise IndexOutOfRange(f"position {position} out of range")
        return Character(self.stream[position], position)

    def is_break(self, position: int) -> bool:
        return position in self.breaks

    def characters(self, line_index: int) -> Iterator[Character]:
        """Every character of a line's range, including hidden ones."""
        line = self.line_at(line_index)
        for position in range(line.start, line.end):
            yield Character(self.stream[position], position)
