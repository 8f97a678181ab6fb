"""Tests for theme.py - theme switching and render cache invalidation."""

import asyncio
import pytest
from unittest.mock import Mock
from sqjs.model import DiagramSource
from sqjs.theme import ThemeManager


class TestThemeManager:
    def test_default_theme(self, config):
        assert ThemeManager(config).theme == "simple"

    @pytest.mark.parametrize("value,expected", [("simple", True), ("hand-drawn", True), ("dark", False), (None, False)])
    def test_is_valid_theme(self, value, expected):
        assert ThemeManager.is_valid_theme(value) == expected

    def test_change_fires_hooks(self, config):
        on_change = Mock()
        save = Mock()
        manager = ThemeManager(config, on_change=on_change, save=save)

        assert manager.set_theme("hand-drawn")

        assert manager.theme == "hand-drawn"
        assert config.theme == "hand-drawn"
        save.assert_called_once_with(config)
        on_change.assert_called_once_with()

    def test_same_theme_is_noop(self, config):
        on_change = Mock()
        manager = ThemeManager(config, on_change=on_change)
        assert not manager.set_theme("simple")
        on_change.assert_not_called()

    def test_invalid_theme(self, config):
        on_change = Mock()
        manager = ThemeManager(config, on_change=on_change)
        with pytest.raises(ValueError, match="Invalid theme"):
            manager.set_theme("neon")
        assert manager.theme == "simple"
        on_change.assert_not_called()

    def test_change_clears_render_cache(self, config, renderer, compiler, simple_diagram):
        source = DiagramSource.from_text(simple_diagram)
        asyncio.run(renderer.render(source, config.theme))
        assert len(renderer.cache) == 1

        ThemeManager(config, on_change=renderer.clear_cache).set_theme("hand-drawn")

        assert len(renderer.cache) == 0
