"""Keyboard input handling using curtsies-style tokens."""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class KeyType(Enum):
    """Types of key events."""
    REGULAR = "regular"
    ALT = "alt"
    CTRL = "ctrl"
    SPECIAL = "special"


@dataclass
class KeyEvent:
    """Represents a parsed keyboard event."""
    key_type: KeyType
    value: str  # The base key (e.g., 'a', 'backspace', 'page_down')
    raw: str  # The raw key token
    is_alt: bool = False
    is_ctrl: bool = False


SPECIAL_KEYS = frozenset({
    'left', 'right', 'up', 'down', 'home', 'end', 'enter', 'backspace',
    'delete', 'page_up', 'page_down', 'insert', 'tab',
    'f1', 'f2', 'f3', 'f4', 'f5', 'f6', 'f7', 'f8', 'f9', 'f10', 'f11', 'f12',
})

_ALIASES = {
    'pageup': 'page_up',
    'pagedown': 'page_down',
    'return': 'enter',
    'esc': 'escape',
    'space': ' ',
    'spacebar': ' ',
    'spc': ' ',
}


class KeyboardHandler:
    """Turns terminal key tokens into KeyEvents."""

    def __init__(self, terminal_interface):
        """Initialize with a terminal interface."""
        self.terminal = terminal_interface

    def get_key_event(self, timeout: Optional[float] = None) -> Optional[KeyEvent]:
        """Get next key event, or None if no key arrived in time."""
        key = self.terminal.get_key(timeout)
        if not key:
            return None
        return self.parse_key(key)

    def parse_key(self, key) -> KeyEvent:
        """Parse a key token such as 'a', '<Ctrl-w>', '<PAGEDOWN>' or '\\x17'.

        Ctrl-J and Ctrl-M are Enter, as terminals send them for Return.
        """
        key_str = str(key)

        if key_str.startswith('<') and key_str.endswith('>') and len(key_str) > 2:
            return self._parse_token(key_str)

        # Single-byte ASCII control chars (Ctrl-<letter>)
        if len(key_str) == 1:
            o = ord(key_str)
            if o == 127:
                return KeyEvent(KeyType.SPECIAL, 'backspace', key_str)
            if 1 <= o <= 26:
                ch = chr(ord('a') + o - 1)
                if ch in ('j', 'm'):
                    return KeyEvent(KeyType.SPECIAL, 'enter', key_str)
                return KeyEvent(KeyType.CTRL, ch, key_str, is_ctrl=True)

        if key_str == '\x1b':
            return KeyEvent(KeyType.SPECIAL, 'escape', key_str)

        return KeyEvent(KeyType.REGULAR, key_str, key_str)

    def _parse_token(self, key_str: str) -> KeyEvent:
        name = key_str[1:-1]
        # Support both '-' and '+' as modifier separators (e.g., '<Esc+u>')
        lower = name.lower().replace('+', '-')
        if lower.endswith('-') and len(lower) > 1:
            # '<Ctrl-->' style tokens name the '-' key itself
            parts = lower[:-2].split('-') + ['-']
        else:
            parts = lower.split('-')
        base = _ALIASES.get(parts[-1], parts[-1])
        mods = set(parts[:-1])
        if mods & {'meta', 'esc'}:
            mods.add('alt')

        if not mods:
            if base == ' ':
                return KeyEvent(KeyType.REGULAR, ' ', ' ')
            if base == 'escape':
                return KeyEvent(KeyType.SPECIAL, 'escape', '\x1b')
            if len(name) == 1:
                return KeyEvent(KeyType.REGULAR, name, key_str)
            return KeyEvent(KeyType.SPECIAL, base, key_str)

        if 'ctrl' in mods and len(base) == 1:
            if base in ('j', 'm'):
                return KeyEvent(KeyType.SPECIAL, 'enter', key_str)
            return KeyEvent(KeyType.CTRL, base, key_str, is_ctrl=True)
        if 'ctrl' in mods and base in SPECIAL_KEYS:
            return KeyEvent(KeyType.CTRL, base, key_str, is_ctrl=True)
        if 'alt' in mods:
            return KeyEvent(KeyType.ALT, base, key_str, is_alt=True)
        # Shift+special and anything unknown
        return KeyEvent(KeyType.SPECIAL, base, key_str)
