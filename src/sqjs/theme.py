"""Theme selection and cache invalidation on theme change."""

import logging
from typing import Any, Callable, Optional

from sqjs.config import THEMES, Configuration, Theme

log = logging.getLogger(__name__)


class ThemeManager:
    """
    Keeps active theme in configuration.

    Render results are theme specific, so changing the theme calls ``on_change``
    (normally :meth:`DiagramRenderer.clear_cache`) before next render.
    """

    def __init__(
        self,
        config: Configuration,
        on_change: Optional[Callable[[], None]] = None,
        save: Optional[Callable[[Configuration], None]] = None,
    ):
        self.config = config
        self.on_change = on_change
        self.save = save

    @property
    def theme(self) -> Theme:
        return self.config.theme

    @staticmethod
    def is_valid_theme(value: Any) -> bool:
        return value in THEMES

    def set_theme(self, theme: str) -> bool:
        """
        Activate theme.

        :param theme: new theme name
        :return: True if theme changed
        :raises ValueError: If theme is not supported
        """
        if not self.is_valid_theme(theme):
            raise ValueError(f'Invalid theme: "{theme}". Must be one of: {", ".join(THEMES)}.')
        if self.config.theme == theme:
            return False
        log.info(f"Theme changed from {self.config.theme} to {theme}")
        self.config.theme = theme
        if self.save is not None:
            self.save(self.config)
        if self.on_change is not None:
            self.on_change()
        return True
