"""Main trainer controller: owns the chapter being typed and the event loop."""

import logging
import os
import sys
import select
import signal
import termios
import time
from typing import Iterable, Optional

from .terminal import TerminalInterface
from .keyboard import KeyboardHandler, KeyEvent
from .constants import TypingConstants, TYPOGRAPHIC_EQUIVALENTS
from .commands import CommandRegistry, QuitCommand
from .document import Document
from .epub import Epub
from .errors import DecodeError, LoadError
from .match import KeyOutcome, MatchEngine
from .normalizer import NormalizedText, PARAGRAPH_BREAK, normalize
from .scroller import ViewportScroller
from .settings import Settings, SettingsKeys, get_settings

logger = logging.getLogger(__name__)


class Trainer:
    """Typing trainer application controller.

    The trainer holds exactly one Document/MatchEngine pair. Changing the
    chapter or the effective line width builds a new pair; typing state
    never carries across.
    """

    def __init__(self, terminal: Optional[TerminalInterface] = None,
                 settings: Optional[Settings] = None):
        """Initialize the trainer components."""
        self.terminal = terminal or TerminalInterface()
        self.keyboard = KeyboardHandler(self.terminal)
        self.command_registry = CommandRegistry()
        self.scroller = ViewportScroller()
        self.settings = settings or get_settings()
        self.width = TypingConstants.DEFAULT_WIDTH  # Preferred width; the terminal may force less
        self.use_equivalents = True
        self.running = False
        self.error_mode = False  # True when terminal is too narrow
        self.help_visible = False
        self.status_message: Optional[str] = None
        # Resize signaling pipe, open only while run() is active
        self._resize_pipe_r: Optional[int] = None
        self._resize_pipe_w: Optional[int] = None
        # Book state
        self.book: Optional[Epub] = None
        self.chapter_index = 0
        self.chapter_title = ""
        self.started_at: Optional[float] = None
        self.text = NormalizedText("", frozenset())
        self.document: Document
        self.engine: MatchEngine
        self._install(Document.from_normalized(self.text, self.layout_width()))

    # --- Loading ---

    def open_book(self, book: Epub, chapter: Optional[int] = None, width: Optional[int] = None):
        """Open book at a chapter, using stored settings for anything not given.

        Raises:
            LoadError, DecodeError: The chapter could not be read. The
                trainer keeps whatever it had before.
        """
        stored = self.settings.load(str(book.path))
        if chapter is None:
            chapter = stored[SettingsKeys.CHAPTER]
            if chapter >= len(book):
                chapter = 0
        previous = (self.book, self.width, self.use_equivalents)
        self.book = book
        self.width = width if width is not None else stored[SettingsKeys.WIDTH]
        self.use_equivalents = stored[SettingsKeys.TYPOGRAPHIC_EQUIVALENTS]
        try:
            self.load_chapter(chapter)
        except (LoadError, DecodeError):
            self.book, self.width, self.use_equivalents = previous
            raise

    def load_chapter(self, index: int):
        """Replace the current chapter with chapter index of the open book.

        Nothing is changed unless the new chapter loads and normalizes.
        """
        if self.book is None:
            raise LoadError("no book is open")
        chapter = self.book.chapter(index)
        text = normalize(chapter.chunks)
        document = Document.from_normalized(text, self.layout_width(), chapter.title)
        self.chapter_index = index
        self.chapter_title = chapter.title
        self.text = text
        self._install(document)
        logger.info("Loaded chapter %d (%r), %d characters", index, chapter.title, len(document))

    def set_text(self, chunks: Iterable, title: str = ""):
        """Type arbitrary paragraphs instead of a book chapter."""
        text = normalize(chunks)
        document = Document.from_normalized(text, self.layout_width(), title)
        self.chapter_title = title
        self.text = text
        self._install(document)

    def _install(self, document: Document):
        self.document = document
        equivalents = TYPOGRAPHIC_EQUIVALENTS if self.use_equivalents else None
        self.engine = MatchEngine(document, equivalents=equivalents)
        self.scroller.reset()
        self.started_at = None

    def layout_width(self) -> int:
        """Line width actually used: the preferred width, narrowed to fit the terminal.

        One column is kept free for the trailing space or paragraph glyph.
        """
        available = self.terminal.width - 1
        return max(TypingConstants.MIN_WIDTH, min(self.width, available))

    def rebuild(self):
        """Re-wrap the current text at the layout width. Typing state is reset."""
        document = Document.from_normalized(self.text, self.layout_width(), self.document.title)
        logger.debug("Rebuilt document at width %d", document.width)
        self._install(document)

    def save_settings(self):
        if self.book is None:
            return
        self.settings.save(str(self.book.path), {
            SettingsKeys.WIDTH: self.width,
            SettingsKeys.CHAPTER: self.chapter_index,
            SettingsKeys.TYPOGRAPHIC_EQUIVALENTS: self.use_equivalents,
        })

    # --- Actions invoked by commands ---

    def type_char(self, char: str) -> KeyOutcome:
        if self.started_at is None:
            self.started_at = time.monotonic()
        outcome = self.engine.type_char(char)
        if self.engine.at_end and outcome is not KeyOutcome.AT_END:
            self.status_message = TypingConstants.CHAPTER_DONE_MESSAGE
        return outcome

    def backspace(self) -> KeyOutcome:
        return self.engine.backspace()

    def delete_word(self) -> int:
        return self.engine.delete_word()

    def restart_chapter(self):
        self.engine.reset()
        self.scroller.reset()
        self.started_at = None

    def change_chapter(self, delta: int):
        """Move delta chapters through the book.

        Load failures are reported in the status line and the current
        chapter stays.
        """
        if self.book is None:
            return
        index = self.chapter_index + delta
        if not 0 <= index < len(self.book):
            self.status_message = "No next chapter" if delta > 0 else "Already at the first chapter"
            return
        try:
            self.load_chapter(index)
        except (LoadError, DecodeError) as e:
            logger.warning("Could not load chapter %d: %s", index, e)
            self.status_message = f"Could not load chapter {index + 1}: {e}"
            return
        self.save_settings()

    def change_width(self, delta: int):
        """Adjust the preferred width, rebuilding if the layout changes."""
        width = max(TypingConstants.MIN_WIDTH, min(TypingConstants.MAX_WIDTH, self.width + delta))
        if width == self.width:
            return
        self.width = width
        if self.layout_width() != self.document.width:
            self.rebuild()
        self.status_message = f"Width: {self.width}"
        self.save_settings()

    def show_help(self):
        """Show the help screen."""
        self.help_visible = True

    def hide_help(self):
        """Hide the help screen and return to the text."""
        self.help_visible = False
        self.terminal.invalidate_frame()

    # --- Event loop ---

    def _handle_resize(self, signum, frame):
        """Handle terminal resize signal."""
        del signum, frame  # Unused
        # Write to pipe to wake up select()
        os.write(self._resize_pipe_w, TypingConstants.RESIZE_PIPE_MARKER)

    def run(self):
        """Run the main trainer loop."""
        self.terminal.setup()
        self.running = True
        self._resize_pipe_r, self._resize_pipe_w = os.pipe()

        original_winch_handler = signal.signal(signal.SIGWINCH, self._handle_resize)

        try:
            with self.terminal.term.cbreak():
                # Disable flow control so Ctrl-Q reaches us
                old_settings = None
                try:
                    old_settings = termios.tcgetattr(sys.stdin)
                    new_settings = list(old_settings)
                    new_settings[0] &= ~(termios.IXON | termios.IXOFF)
                    termios.tcsetattr(sys.stdin, termios.TCSANOW, new_settings)
                except (termios.error, AttributeError, OSError):
                    pass

                need_draw = True

                while self.running:
                    if need_draw:
                        self._draw()
                        need_draw = False

                    # Use file descriptor 0 for stdin to work in all environments
                    ready, _, _ = select.select([0, self._resize_pipe_r], [], [])

                    if self._resize_pipe_r in ready:
                        os.read(self._resize_pipe_r, 1024)
                        self.terminal.invalidate_frame()
                        need_draw = True
                    elif 0 in ready:
                        key_event = self.keyboard.get_key_event(timeout=0)
                        if key_event:
                            self._handle_key_event(key_event)
                            need_draw = True

                if old_settings:
                    try:
                        termios.tcsetattr(sys.stdin, termios.TCSANOW, old_settings)
                    except termios.error:
                        pass

        except KeyboardInterrupt:
            pass
        finally:
            signal.signal(signal.SIGWINCH, original_winch_handler)
            os.close(self._resize_pipe_r)
            os.close(self._resize_pipe_w)
            self._resize_pipe_r = self._resize_pipe_w = None
            self.terminal.cleanup()
            self.save_settings()

    def _handle_key_event(self, key_event: KeyEvent):
        """Handle a keyboard event."""
        # If help is visible, any key dismisses it
        if self.help_visible:
            self.hide_help()
            return

        if self.status_message:
            self.status_message = None

        if self.error_mode:
            # Only quitting works while the terminal is too narrow
            command = self.command_registry.get_command(key_event.key_type, key_event.value)
            if not isinstance(command, QuitCommand):
                return

        self.command_registry.execute(self, key_event)

    # --- Drawing ---

    def _draw(self):
        if self.terminal.width < TypingConstants.MIN_TERMINAL_WIDTH:
            self.error_mode = True
            self._draw_error()
            return
        self.error_mode = False

        if self.help_visible:
            self._draw_help()
            return

        if self.layout_width() != self.document.width:
            self.rebuild()

        rows, cursor_y, cursor_x = self.visible_rows(self.terminal.height)
        view_width = self.document.width + 1
        left_margin = max(0, (self.terminal.width - view_width) // 2)
        self.terminal.update_frame(rows, cursor_y, cursor_x, left_margin, view_width,
                                   status=self.status_line())

    def visible_rows(self, viewport_height: int):
        """Rows of (glyph, status) cells for the window around the cursor.

        Returns:
            (rows, cursor_y, cursor_x) with the cursor relative to the first row
        """
        first, last = self.scroller.window(
            self.engine.cursor_line, self.document.line_count, viewport_height)
        rows = []
        for line in self.engine.visible_lines(range(first, last)):
            rows.append([(_glyph(ch.value), status) for ch, status in line])
        cursor = self.engine.cursor
        return rows, self.engine.cursor_line - first, self.document.column_of(cursor)

    def words_per_minute(self) -> float:
        """Correct characters per minute over five, since the first keystroke."""
        if self.started_at is None:
            return 0.0
        elapsed = time.monotonic() - self.started_at
        if elapsed <= 0:
            return 0.0
        return self.engine.progress().correct / 5 / (elapsed / 60)

    def status_line(self) -> str:
        if self.status_message:
            return f" {self.status_message}"
        progress = self.engine.progress()
        parts = []
        if self.book is not None:
            parts.append(self.book.title)
            parts.append(f"{self.chapter_title} ({self.chapter_index + 1}/{len(self.book)})")
        elif self.chapter_title:
            parts.append(self.chapter_title)
        parts.append(f"{progress.typed}/{len(self.document)}")
        parts.append(f"{progress.accuracy:.0%}")
        parts.append(f"{self.words_per_minute():.0f} wpm")
        parts.append("F1 help")
        return " " + " | ".join(parts)

    def _draw_error(self):
        """Draw error message when terminal is too narrow."""
        self.terminal.draw_error_message(
            TypingConstants.TERMINAL_TOO_NARROW_MESSAGE.format(TypingConstants.MIN_TERMINAL_WIDTH),
            TypingConstants.CURRENT_WIDTH_MESSAGE.format(self.terminal.width)
        )

    def _draw_help(self):
        """Draw the help screen."""
        term = self.terminal.term
        print(term.home + term.clear, end='')

        title = "TYPEPUB HELP"
        print(f"{term.move(1, max(0, (term.width - len(title)) // 2))}{term.bold}{title}{term.normal}", end='')

        help_lines = TypingConstants.HELP_LINES
        content_start_y = max(3, (term.height - len(help_lines)) // 2)
        max_line_length = max(len(line) for line in help_lines)
        left_margin = max(0, (term.width - max_line_length) // 2)
        for i, line in enumerate(help_lines):
            print(f"{term.move(content_start_y + i, left_margin)}{line}", end='')

        print(f"{term.move(term.height - 1, 0)} Press any key to continue", end='')
        print(term.hide_cursor, end='', flush=True)
        self.terminal.invalidate_frame()


def _glyph(char: str) -> str:
    if char == PARAGRAPH_BREAK:
        return TypingConstants.PARAGRAPH_TERMINATOR
    return char
