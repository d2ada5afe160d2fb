"""Persisted display theme."""

from typing import Literal, Optional, get_args

import structlog

from ..repositories.base import StateStorage
from ..repositories.memory import MemoryStorage

logger = structlog.get_logger()

STORAGE_KEY = "k-exaone-theme"

Theme = Literal["light", "dark"]
THEMES = get_args(Theme)
DEFAULT_THEME: Theme = "light"


class ThemeStore:
    """Light/dark theme preference, stored independently of conversations."""

    def __init__(self, storage: Optional[StateStorage] = None) -> None:
        self._storage = storage if storage is not None else MemoryStorage()
        data = self._storage.get_json(STORAGE_KEY, {})
        theme = data.get("theme") if isinstance(data, dict) else None
        self._theme: Theme = theme if theme in THEMES else DEFAULT_THEME

    @property
    def theme(self) -> Theme:
        return self._theme

    def set_theme(self, theme: Theme) -> None:
        if theme not in THEMES:
            raise ValueError(f"Unknown theme: {theme}")
        self._theme = theme
        self._storage.set_json(STORAGE_KEY, {"theme": theme})
        logger.info("theme_changed", theme=theme)

    def toggle_theme(self) -> Theme:
        """Switch between light and dark and return the new theme."""
        self.set_theme("dark" if self._theme == "light" else "light")
        return self._theme
