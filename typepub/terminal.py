"""Terminal interface using Blessed for display and Curtsies for input."""

import logging
import select
import sys
from typing import Optional, Sequence

import blessed

from .match import MatchStatus

# One drawn cell: the character shown and the match status it is styled by
Cell = tuple[str, MatchStatus]

logger = logging.getLogger(__name__)


class TerminalInterface:
    """Handles terminal I/O using Blessed."""

    def __init__(self, terminal: Optional[blessed.Terminal] = None):
        """Initialize with a terminal instance (or create one)."""
        self.term = terminal or blessed.Terminal()
        self.is_fullscreen = False
        self._curtsies_input: Optional[object] = None
        self._curtsies_active: bool = False
        # Virtual screen state for minimal updates
        self._last_rows: list[str] | None = None
        self._last_status: str | None = None
        self._last_left_margin: int | None = None
        self._last_view_width: int | None = None

    def setup(self):
        """Enter fullscreen mode and prepare terminal."""
        print(self.term.enter_fullscreen)
        print(self.term.hide_cursor)
        print(self.term.clear)
        self.is_fullscreen = True
        if self._curtsies_input is None:
            try:
                from curtsies import Input  # type: ignore
                # Enter raw mode immediately so reads work
                self._curtsies_input = Input(keynames='curtsies')  # type: ignore
                self._curtsies_input.__enter__()
                self._curtsies_active = True
            except Exception:
                # No tty (pipes, CI): run without keyboard input
                logger.warning("Keyboard input unavailable", exc_info=True)
                self._curtsies_input = None
                self._curtsies_active = False

    def cleanup(self):
        """Exit fullscreen mode and restore terminal."""
        if self.is_fullscreen:
            print(self.term.exit_fullscreen)
            print(self.term.normal_cursor)
            self.is_fullscreen = False
        if self._curtsies_input is not None:
            try:
                if self._curtsies_active:
                    self._curtsies_input.__exit__(None, None, None)  # type: ignore
            except Exception:
                logger.debug("Could not leave raw input mode", exc_info=True)
            finally:
                self._curtsies_input = None
                self._curtsies_active = False

    def invalidate_frame(self) -> None:
        """Forget the cached frame so the next update repaints everything.

        Needed after the help screen or an error box has drawn over the
        text area.
        """
        self._last_rows = None
        self._last_status = None
        self._last_left_margin = None
        self._last_view_width = None

    def _style_for(self, status: MatchStatus) -> str:
        if status is MatchStatus.INCORRECT:
            return self.term.reverse + self.term.red
        if status is MatchStatus.PENDING:
            return self.term.bright_black
        return ''

    def compose_row(self, cells: Sequence[Cell], view_width: int) -> str:
        """Render one row of cells padded to view_width.

        Attributes are only emitted where the status changes from the
        previous cell, and reset at the end of the row.
        """
        out = []
        active: Optional[MatchStatus] = None
        for ch, status in cells[:view_width]:
            if status is not active:
                out.append(self.term.normal)
                out.append(self._style_for(status))
                active = status
            out.append(ch)
        if active is not None:
            out.append(self.term.normal)
        out.append(' ' * max(0, view_width - len(cells)))
        return ''.join(out)

    def update_frame(
        self,
        rows: Sequence[Sequence[Cell]],
        cursor_y: int,
        cursor_x: int,
        left_margin: int,
        view_width: int,
        status: str = "",
    ) -> None:
        """Diff against last frame and write only changed rows.

        Falls back to a full clear on first paint or when geometry changes.
        Rows below the text are blanked.
        """
        height = self.height
        need_full_clear = (
            self._last_rows is None
            or self._last_left_margin != left_margin
            or self._last_view_width != view_width
            or len(self._last_rows) != height
        )
        if need_full_clear:
            print(self.term.home + self.term.clear, end='')
            self._last_rows = ["" for _ in range(height)]
            self._last_status = None
            self._last_left_margin = left_margin
            self._last_view_width = view_width

        for y in range(height):
            cells = rows[y] if y < len(rows) else ()
            new_disp = self.compose_row(cells, view_width)
            if new_disp != self._last_rows[y]:
                print(self.term.move(y, left_margin) + new_disp, end='')
                self._last_rows[y] = new_disp

        status_text = status[:self.term.width].ljust(self.term.width)
        if status_text != (self._last_status or ""):
            print(self.term.move(self.term.height - 1, 0) + self.term.reverse + status_text
                  + self.term.normal, end='')
            self._last_status = status_text

        print(self.term.move(cursor_y, cursor_x + left_margin) + self.term.normal_cursor, end='', flush=True)

    def draw_error_message(self, message1: str, message2: str = ""):
        """Draw an error message in the center of the screen.

        Args:
            message1: Primary error message
            message2: Secondary information
        """
        print(self.term.home + self.term.clear, end='')

        center_y = self.term.height // 2
        box_width = max(len(message1), len(message2)) + 4
        left_margin = max(0, (self.term.width - box_width) // 2)

        print(self.term.move(center_y - 2, left_margin) + "╔" + "═" * (box_width - 2) + "╗", end='')
        print(self.term.move(center_y - 1, left_margin) + "║ " + message1.center(box_width - 4) + " ║", end='')
        if message2:
            print(self.term.move(center_y, left_margin) + "║ " + message2.center(box_width - 4) + " ║", end='')
            print(self.term.move(center_y + 1, left_margin) + "╚" + "═" * (box_width - 2) + "╝", end='')
        else:
            print(self.term.move(center_y, left_margin) + "╚" + "═" * (box_width - 2) + "╝", end='')

        help_text = "Ctrl-Q to quit | Resize terminal to continue"
        help_pos = max(0, (self.term.width - len(help_text)) // 2)
        print(self.term.move(self.term.height - 1, help_pos), end='')
        print(help_text, end='', flush=True)
        self.invalidate_frame()

    def get_key(self, timeout=None):
        """Get a single keypress from the user.

        Args:
            timeout: Timeout in seconds (None for blocking, 0 for non-blocking)

        Returns:
            The curtsies key name as a string, or None when nothing arrived
            or input is unavailable.
        """
        if self._curtsies_input is None:
            return None
        if timeout is None:
            return str(next(self._curtsies_input))
        r, _, _ = select.select([sys.stdin], [], [], float(timeout))
        if not r:
            return None
        return str(next(self._curtsies_input))

    @property
    def width(self):
        """Terminal width in columns."""
        return self.term.width

    @property
    def height(self):
        """Terminal height in rows (excluding status line)."""
        return self.term.height - 1  # Reserve one line for status
