"""Turn raw chapter text chunks into one typeable character stream.

Each chunk handed in by the book loader is one block of text (a paragraph,
a heading, a list item). Inside a chunk whitespace collapses to single
spaces; between non-empty chunks a paragraph break is inserted. Breaks are
represented in the stream by PARAGRAPH_BREAK and their positions are
returned alongside it.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Iterable, Mapping, NamedTuple, Optional, Union

from .constants import TYPING_SUBSTITUTIONS
from .errors import DecodeError

PARAGRAPH_BREAK = "\n"

_SPACE_RUN = re.compile(r" {2,}")


class NormalizedText(NamedTuple):
    stream: str
    breaks: frozenset[int]


def _decode(chunk: Union[str, bytes], index: int) -> str:
    if isinstance(chunk, (bytes, bytearray)):
        try:
            return bytes(chunk).decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecodeError(f"chunk {index} is not valid UTF-8: {e}") from e
    try:
        # Lone surrogates survive in str but cannot be displayed or typed
        chunk.encode("utf-8")
    except UnicodeEncodeError as e:
        raise DecodeError(f"chunk {index} contains invalid characters: {e}") from e
    return chunk


def clean_chunk(text: str, substitutions: Optional[Mapping[str, str]] = None) -> str:
    """Normalize a single chunk: NFC, substitutions, whitespace, controls.

    Returns the chunk with every whitespace run collapsed to one space,
    control and format characters removed, and no leading or trailing
    space. The result contains no PARAGRAPH_BREAK.
    """
    text = unicodedata.normalize("NFC", text)
    for old, new in (substitutions or {}).items():
        if old in text:
            text = text.replace(old, new)

    out: list[str] = []
    for ch in text:
        if ch.isspace():
            out.append(" ")
        elif unicodedata.category(ch)[0] == "C":
            # Cc, Cf, Cs, Co, Cn: controls, zero-width and soft hyphens, etc.
            continue
        else:
            out.append(ch)
    return _SPACE_RUN.sub(" ", "".join(out)).strip(" ")


def normalize(
    chunks: Iterable[Union[str, bytes]],
    substitutions: Optional[Mapping[str, str]] = TYPING_SUBSTITUTIONS,
) -> NormalizedText:
    """Normalize chapter chunks into (stream, paragraph break positions).

    Args:
        chunks: Text blocks in reading order, as str or UTF-8 bytes.
        substitutions: Character replacements applied before whitespace
            handling. Pass None to keep the text exactly as written.

    Returns:
        NormalizedText with the stream and the set of break positions.

    Raises:
        DecodeError: A chunk is not valid UTF-8 or holds lone surrogates.
    """
    parts: list[str] = []
    for index, chunk in enumerate(chunks):
        cleaned = clean_chunk(_decode(chunk, index), substitutions)
        if cleaned:
            parts.append(cleaned)

    stream = PARAGRAPH_BREAK.join(parts)
    breaks = frozenset(i for i, ch in enumerate(stream) if ch == PARAGRAPH_BREAK)
    return NormalizedText(stream, breaks)
