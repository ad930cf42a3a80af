"""Exceptions raised by the typepub core and its book loader."""


class TypepubError(Exception):
    """Base class for all typepub errors."""


class DecodeError(TypepubError, ValueError):
    """Chapter text could not be decoded into Unicode.

    Fatal to the chapter load; the caller reports it and keeps going
    without building a Document.
    """


class LoadError(TypepubError):
    """The EPUB container or one of its chapters could not be read."""


class IndexOutOfRange(TypepubError, IndexError):
    """A Document was asked for a line that does not exist."""
