"""Constants and configuration defaults for typepub."""


class TypingConstants:
    """Central configuration constants for the trainer."""

    # Layout
    DEFAULT_WIDTH = 60  # Default line width in characters
    MIN_WIDTH = 1
    MAX_WIDTH = 200
    WIDTH_STEP = 5  # Columns added/removed by the width keys
    PARAGRAPH_TERMINATOR = "¶"  # Glyph drawn where Enter is expected

    # Input
    ADVANCE_KEY = "\n"  # What the Enter key types into the engine

    # Library
    BOOKS_DIRNAME = "books"  # ~/books, searched when no directory is given

    # Terminal
    MIN_TERMINAL_WIDTH = 20  # Below this the too-narrow screen is shown

    # Resize handling
    RESIZE_PIPE_MARKER = b'R'  # Byte written to pipe to signal resize

    # Status messages
    TERMINAL_TOO_NARROW_MESSAGE = "Terminal too narrow! Need at least {} columns."
    CURRENT_WIDTH_MESSAGE = "Current width: {} columns."
    CHAPTER_DONE_MESSAGE = "Chapter complete. PgDn for the next chapter."

    # Help screen
    HELP_LINES = (
        "TYPING                          CHAPTERS",
        "  Enter      Paragraph break    PgDn, Ctrl-N   Next chapter",
        "  Bksp, ^H   Erase one          PgUp, Ctrl-P   Previous chapter",
        "  Ctrl-W     Erase word         Ctrl-R         Restart chapter",
        "  Alt-Bksp   Erase word",
        "",
        "LAYOUT                          OTHER",
        "  Alt-=      Wider lines        F1             Help",
        "  Alt--      Narrower lines     Ctrl-Q, Esc    Quit",
    )


# Typed characters accepted in place of typographic ones in the book
TYPOGRAPHIC_EQUIVALENTS = {
    '‘': "'",  # LEFT SINGLE QUOTATION MARK
    '’': "'",  # RIGHT SINGLE QUOTATION MARK
    '“': '"',  # LEFT DOUBLE QUOTATION MARK
    '”': '"',  # RIGHT DOUBLE QUOTATION MARK
}

# Replacements applied while normalizing so the text stays typeable
TYPING_SUBSTITUTIONS = {
    '—': "--",  # EM DASH
    '…': "...",  # HORIZONTAL ELLIPSIS
}
