"""typepub - practise touch typing on the text of EPUB books."""

from .document import Character, Document
from .epub import Author, Chapter, Epub, Library
from .errors import DecodeError, IndexOutOfRange, LoadError, TypepubError
from .match import KeyOutcome, MatchEngine, MatchStatus, Progress
from .normalizer import NormalizedText, normalize
from .scroller import ViewportScroller
from .wrapper import Line, wrap

__all__ = [
    'Author',
    'Chapter',
    'Character',
    'DecodeError',
    'Document',
    'Epub',
    'IndexOutOfRange',
    'KeyOutcome',
    'Library',
    'Line',
    'LoadError',
    'MatchEngine',
    'MatchStatus',
    'NormalizedText',
    'Progress',
    'TypepubError',
    'ViewportScroller',
    'normalize',
    'wrap',
]
