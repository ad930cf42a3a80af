"""Persistent per-book preferences.

Settings are stored in an OS-appropriate location, indexed by the absolute
path of the EPUB, and survive application restarts. Only layout and
position preferences live here; typing results are never stored.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs

from .constants import TypingConstants

logger = logging.getLogger(__name__)


class SettingsKeys:
    """Keys used in a book's settings dict."""

    WIDTH = "width"  # Line width in characters
    CHAPTER = "chapter"  # Index of the last chapter opened
    TYPOGRAPHIC_EQUIVALENTS = "typographic_equivalents"  # Accept ' for ’ etc.


DEFAULT_SETTINGS: Dict[str, Any] = {
    SettingsKeys.WIDTH: TypingConstants.DEFAULT_WIDTH,
    SettingsKeys.CHAPTER: 0,
    SettingsKeys.TYPOGRAPHIC_EQUIVALENTS: True,
}


class Settings:
    """Manages persistent storage of per-book settings.

    Settings are kept in a JSON file in the user's config directory,
    indexed by the absolute path of the book.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        self._config_dir = Path(config_dir or platformdirs.user_config_dir("typepub"))
        self._settings_file = self._config_dir / "settings.json"
        self._settings_cache: Optional[Dict[str, Dict[str, Any]]] = None

    def _load_all(self) -> Dict[str, Dict[str, Any]]:
        """Load every book's settings, or {} if the file is missing or bad."""
        if self._settings_cache is not None:
            return self._settings_cache

        self._settings_cache = {}
        if not self._settings_file.exists():
            return self._settings_cache

        try:
            with open(self._settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Could not load settings from {self._settings_file}: {e}")
            return self._settings_cache

        if not isinstance(data, dict):
            logger.warning("Settings file has invalid format (not a dict), ignoring")
            return self._settings_cache

        self._settings_cache = data
        return self._settings_cache

    def _save_all(self, settings: Dict[str, Dict[str, Any]]) -> bool:
        """Write every book's settings atomically (temp file + rename)."""
        temp_file = self._settings_file.with_suffix('.tmp')
        try:
            self._config_dir.mkdir(parents=True, exist_ok=True)
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(settings, f, indent=2)
            temp_file.replace(self._settings_file)
        except OSError as e:
            logger.warning(f"Could not save settings to {self._settings_file}: {e}")
            try:
                if temp_file.exists():
                    temp_file.unlink()
            except OSError:
                pass
            return False

        self._settings_cache = settings
        return True

    def load(self, book_path: Optional[str]) -> Dict[str, Any]:
        """Settings for a book, with defaults for anything unset or invalid.

        Args:
            book_path: Path to the EPUB. None gives the defaults.
        """
        settings = dict(DEFAULT_SETTINGS)
        if book_path is None:
            return settings

        stored = self._load_all().get(os.path.abspath(book_path), {})
        if not isinstance(stored, dict):
            logger.warning(f"Settings for {book_path} are not a dict, ignoring")
            return settings

        for key, value in stored.items():
            if validate_setting(key, value):
                settings[key] = value
            else:
                logger.warning(f"Ignoring invalid setting {key}={value!r} for {book_path}")
        return settings

    def save(self, book_path: Optional[str], settings: Dict[str, Any]) -> bool:
        """Store settings for a book. Returns False when nothing was written."""
        if book_path is None:
            return False
        all_settings = dict(self._load_all())
        all_settings[os.path.abspath(book_path)] = dict(settings)
        return self._save_all(all_settings)

    def clear_cache(self) -> None:
        self._settings_cache = None


def validate_setting(key: str, value: Any) -> bool:
    """Check that a stored value has the type and range its key needs.

    Unknown keys are accepted so newer settings files still load.
    """
    if key == SettingsKeys.WIDTH:
        return (isinstance(value, int) and not isinstance(value, bool)
                and TypingConstants.MIN_WIDTH <= value <= TypingConstants.MAX_WIDTH)
    if key == SettingsKeys.CHAPTER:
        return isinstance(value, int) and not isinstance(value, bool) and value >= 0
    if key == SettingsKeys.TYPOGRAPHIC_EQUIVALENTS:
        return isinstance(value, bool)
    return True


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
