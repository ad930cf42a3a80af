"""Which lines are on screen."""


class ViewportScroller:
    """Keeps the cursor's line inside a window of viewport_height lines.

    The window only moves when the cursor line leaves it, and then only
    as far as needed: forward so the cursor line is the last visible one,
    backward so it is the first.
    """

    def __init__(self):
        self.top = 0

    def reset(self) -> None:
        self.top = 0

    def window(self, cursor_line: int, total_lines: int, viewport_height: int) -> tuple[int, int]:
        """Return the visible lines as a half-open range (first, last).

        Args:
            cursor_line: Index of the line holding the cursor.
            total_lines: Number of lines in the document.
            viewport_height: Rows available for text.
        """
        height = max(1, viewport_height)
        total = max(0, total_lines)

        if cursor_line < self.top:
            self.top = cursor_line
        elif cursor_line >= self.top + height:
            self.top = cursor_line - height + 1

        # Never show rows past the end, and use the space when lines shrink
        self.top = max(0, min(self.top, total - height))
        return self.top, min(total, self.top + height)
