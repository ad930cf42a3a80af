"""Greedy word wrap of a normalized stream into display lines."""

from __future__ import annotations

from dataclasses import dataclass
from typing import AbstractSet


@dataclass(frozen=True)
class Line:
    """A span [start, end) of the stream shown on one row.

    width is the number of columns actually drawn: trailing spaces and a
    closing paragraph break belong to the line's range but are not counted.
    """
    start: int
    end: int
    width: int

    def __len__(self) -> int:
        return self.end - self.start

    def __contains__(self, position: int) -> bool:
        return self.start <= position < self.end


def wrap(stream: str, breaks: AbstractSet[int], width: int) -> list[Line]:
    """Wrap stream into lines no wider than width.

    Words (runs of non-space characters with the spaces that follow them)
    are placed on the current line while they fit. A paragraph break
    closes the current line and is included in its range. Words longer
    than width are split at the width boundary.

    Returns a list of Line partitioning [0, len(stream)); an empty stream
    gives a single empty line.
    """
    if width < 1:
        raise ValueError(f"width must be at least 1, got {width}")

    n = len(stream)
    lines: list[Line] = []
    line_start = 0
    line_len = 0  # columns used so far, including spaces after words
    content_end = 0  # end of the last word placed on the current line

    pos = 0
    while pos < n:
        if pos in breaks:
            lines.append(Line(line_start, pos + 1, content_end - line_start))
            pos += 1
            line_start = content_end = pos
            line_len = 0
            continue

        word_start = pos
        while pos < n and stream[pos] != " " and pos not in breaks:
            pos += 1
        word_end = pos
        while pos < n and stream[pos] == " " and pos not in breaks:
            pos += 1
        word_len = word_end - word_start

        # Word does not fit after what is already on the line
        if line_len > 0 and word_len > 0 and line_len + word_len > width:
            lines.append(Line(line_start, word_start, content_end - line_start))
            line_start = content_end = word_start
            line_len = 0

        # Hard split of a word wider than a whole line
        while word_len > width:
            lines.append(Line(word_start, word_start + width, width))
            word_start += width
            word_len -= width
            line_start = content_end = word_start

        line_len += pos - word_start
        if word_len > 0:
            content_end = word_end

    if line_start < n or not lines:
        lines.append(Line(line_start, n, content_end - line_start))
    return lines
