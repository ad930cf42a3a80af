"""typepub CLI entry point.

Allows running via `python -m typepub` and provides the console script
defined in `pyproject.toml`.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import TypingConstants
from .errors import DecodeError, LoadError
from .version import get_version_string

USAGE = """\
usage: typepub [options] BOOK

BOOK is the path of an .epub file or part of a book title to look for
in the book directory.

options:
  --width N      line width in characters (default from settings, else {width})
  --chapter N    start at chapter N (1-based)
  --dir DIR      book directory to search (default ~/books)
  --list         print the book's chapters and exit
  --log FILE     write a debug log to FILE
  --version      print version and exit
  -h, --help     show this help and exit
""".format(width=TypingConstants.DEFAULT_WIDTH)


class UsageError(Exception):
    pass


@dataclass
class Options:
    book: Optional[str] = None
    width: Optional[int] = None
    chapter: Optional[int] = None  # 0-based once parsed
    directory: Optional[str] = None
    list_chapters: bool = False
    log_file: Optional[str] = None
    show_version: bool = False
    show_help: bool = False


def _int_option(name: str, value: str, minimum: int, maximum: Optional[int] = None) -> int:
    try:
        number = int(value)
    except ValueError:
        raise UsageError(f"{name} needs a number, got {value!r}") from None
    if number < minimum or (maximum is not None and number > maximum):
        bounds = f"{minimum}..{maximum}" if maximum is not None else f">= {minimum}"
        raise UsageError(f"{name} must be {bounds}, got {number}")
    return number


def parse_args(args: list[str]) -> Options:
    """Parse command line arguments (without the program name)."""
    options = Options()
    takes_value = {"--width", "--chapter", "--dir", "--log"}
    i = 0
    while i < len(args):
        arg = args[i]
        value = None
        if arg.startswith("--") and "=" in arg:
            arg, value = arg.split("=", 1)
        if arg in takes_value and value is None:
            if i + 1 >= len(args):
                raise UsageError(f"{arg} needs a value")
            i += 1
            value = args[i]

        if arg in ("--version", "-V"):
            options.show_version = True
        elif arg in ("--help", "-h"):
            options.show_help = True
        elif arg == "--list":
            options.list_chapters = True
        elif arg == "--width":
            options.width = _int_option(arg, value, TypingConstants.MIN_WIDTH, TypingConstants.MAX_WIDTH)
        elif arg == "--chapter":
            options.chapter = _int_option(arg, value, 1) - 1
        elif arg == "--dir":
            options.directory = value
        elif arg == "--log":
            options.log_file = value
        elif arg.startswith("-") and arg != "-":
            raise UsageError(f"unknown option {arg}")
        elif options.book is None:
            options.book = arg
        else:
            # Unquoted multi-word titles
            options.book = f"{options.book} {arg}"
        i += 1
    return options


def configure_logging(log_file: Optional[str]) -> None:
    """Send logs to log_file, or nowhere; the trainer owns the screen."""
    if log_file:
        logging.basicConfig(
            filename=log_file,
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    else:
        logging.getLogger().addHandler(logging.NullHandler())


def open_book(target: str, directory: Optional[str] = None):
    """Open BOOK as a file path, or search the library for it by title."""
    from .epub import Epub, Library

    path = Path(target).expanduser()
    if path.suffix.lower() == ".epub" or path.exists():
        return Epub.open(path)

    library = Library(Path(directory).expanduser()) if directory else Library.from_home()
    book = library.search(target)
    if book is None:
        raise LoadError(f"no book with a title matching {target!r} in {library.directory}")
    return book


def list_chapters(book) -> None:
    header = book.title
    if book.author is not None:
        header = f"{header} by {book.author}"
    print(header)
    for number, title in enumerate(book.chapter_titles(), start=1):
        print(f"{number:4}. {title}")


def main(argv: Optional[list[str]] = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    try:
        options = parse_args(args)
    except UsageError as e:
        print(f"typepub: {e}", file=sys.stderr)
        print(USAGE, file=sys.stderr, end='')
        return 2

    if options.show_version:
        print(get_version_string())
        return 0
    if options.show_help:
        print(USAGE, end='')
        return 0
    if options.book is None:
        print(USAGE, file=sys.stderr, end='')
        return 2

    configure_logging(options.log_file)

    try:
        book = open_book(options.book, options.directory)
    except (LoadError, DecodeError) as e:
        print(f"typepub: {e}", file=sys.stderr)
        return 1

    with book:
        try:
            if options.list_chapters:
                list_chapters(book)
                return 0
            if options.chapter is not None and options.chapter >= len(book):
                print(f"typepub: --chapter must be at most {len(book)}", file=sys.stderr)
                return 2

            # Lazy import to avoid importing UI deps for --list
            from .trainer import Trainer
            trainer = Trainer()
            trainer.open_book(book, chapter=options.chapter, width=options.width)
        except (LoadError, DecodeError) as e:
            print(f"typepub: {e}", file=sys.stderr)
            return 1
        trainer.run()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
