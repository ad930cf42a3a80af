"""Test terminal rendering of styled cells."""

import blessed
import pytest
from unittest.mock import patch, PropertyMock
from typepub.match import MatchStatus
from typepub.terminal import TerminalInterface

C = MatchStatus.CORRECT
I = MatchStatus.INCORRECT
P = MatchStatus.PENDING


@pytest.fixture
def terminal():
    return TerminalInterface(blessed.Terminal(force_styling=True))


def cells(text, status):
    return [(ch, status) for ch in text]


def test_compose_row_styles_runs(terminal):
    term = terminal.term
    row = terminal.compose_row(cells("ab", C) + cells("c", I) + cells("d", P), 6)
    expected = (
        term.normal + "ab"
        + term.normal + term.reverse + term.red + "c"
        + term.normal + term.bright_black + "d"
        + term.normal + "  "
    )
    assert row == expected


def test_compose_row_empty_is_padding(terminal):
    assert terminal.compose_row([], 4) == "    "


def test_compose_row_truncates(terminal):
    row = terminal.compose_row(cells("abcdef", C), 3)
    assert "abc" in row
    assert "d" not in row


def test_height_reserves_status_line(terminal):
    with patch.object(blessed.Terminal, 'height', new_callable=PropertyMock, return_value=24):
        assert terminal.height == 23


def test_update_frame_only_redraws_changes(terminal):
    rows = [cells("one", C), cells("two", P)]
    with patch.object(blessed.Terminal, 'height', new_callable=PropertyMock, return_value=5), \
            patch.object(blessed.Terminal, 'width', new_callable=PropertyMock, return_value=40):
        with patch('builtins.print') as mock_print:
            terminal.update_frame(rows, 0, 0, left_margin=2, view_width=10, status=" status")
            # clear, four text rows, status line, cursor
            assert mock_print.call_count == 7

        with patch('builtins.print') as mock_print:
            terminal.update_frame(rows, 0, 1, left_margin=2, view_width=10, status=" status")
            # cursor only
            assert mock_print.call_count == 1

        rows[1] = cells("two", C)
        with patch('builtins.print') as mock_print:
            terminal.update_frame(rows, 1, 0, left_margin=2, view_width=10, status=" status")
            assert mock_print.call_count == 2


def test_invalidate_frame_forces_full_redraw(terminal):
    rows = [cells("one", C)]
    with patch.object(blessed.Terminal, 'height', new_callable=PropertyMock, return_value=3), \
            patch.object(blessed.Terminal, 'width', new_callable=PropertyMock, return_value=40):
        with patch('builtins.print'):
            terminal.update_frame(rows, 0, 0, left_margin=0, view_width=10)
        terminal.invalidate_frame()
        with patch('builtins.print') as mock_print:
            terminal.update_frame(rows, 0, 0, left_margin=0, view_width=10)
            assert mock_print.call_count == 5


def test_get_key_without_input_returns_none(terminal):
    assert terminal.get_key(timeout=0) is None
