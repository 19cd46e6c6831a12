"""Tests for the site handler registry."""

from unittest.mock import Mock

import pytest

from vidfetch.errors import NotFoundError
from vidfetch.plugins.base import HandlerCapability
from vidfetch.plugins.registry import HandlerRegistry
from vidfetch.plugins.resolver import PLUGIN_MODULE_PREFIX


class TestCandidateNames:
    """Test handler ordering."""

    def test_builtins_only(self, config):
        """Test that the fallback is last."""
        assert HandlerRegistry(config).candidate_names() == ["Direct", "Generic"]

    def test_installed_before_fallback(self, config, write_plugin):
        """Test that new installed handlers are tried before the fallback."""
        write_plugin("ExampleTube")
        assert HandlerRegistry(config).candidate_names() == ["Direct", "ExampleTube", "Generic"]

    def test_installed_builtin_name_not_duplicated(self, config, write_plugin):
        """Test that overriding a built-in keeps its position."""
        write_plugin("Direct", filename="direct.py")
        assert HandlerRegistry(config).candidate_names() == ["Direct", "Generic"]


class TestResolve:
    """Test URL resolution."""

    def test_direct_media_url(self, config):
        """Test that media URLs go to the direct handler."""
        handler, url = HandlerRegistry(config).resolve("https://cdn.example.com/clip.mp4")
        assert handler.name == "Direct"
        assert url == "https://cdn.example.com/clip.mp4"

    def test_page_falls_back_to_generic(self, config):
        """Test that unknown pages use the fallback."""
        handler, _ = HandlerRegistry(config).resolve("https://example.org/some/page")
        assert handler.name == "Generic"

    def test_installed_handler_matches_first(self, config, write_plugin):
        """Test that an installed site handler beats the fallback."""
        write_plugin("ExampleTube")
        handler, _ = HandlerRegistry(config).resolve("https://example.com/watch/42")
        assert handler.name == "ExampleTube"

    def test_installed_copy_replaces_builtin(self, config, write_plugin):
        """Test that an installed Direct.py is used instead of the bundled one."""
        write_plugin("Direct", pattern=r"\.mp4$")
        handler, _ = HandlerRegistry(config).resolve("https://cdn.example.com/clip.mp4")

        assert type(handler).__module__ == f"{PLUGIN_MODULE_PREFIX}Direct"

    def test_no_match(self, config):
        """Test that unclaimed URLs raise NotFoundError."""
        with pytest.raises(NotFoundError):
            HandlerRegistry(config).resolve("ftp://example.com/file")

    def test_broken_plugin_skipped(self, config):
        """Test that a plugin that fails to load does not stop resolution."""
        config.plugin_dir.mkdir(parents=True)
        (config.plugin_dir / "Broken.py").write_text("def broken(:\n")
        registry = HandlerRegistry(config)

        handler, _ = registry.resolve("https://example.org/page")

        assert handler.name == "Generic"
        assert [h.name for h in registry.handlers()] == ["Direct", "Generic"]

    def test_canonical_url(self, config):
        """Test that the handler may rewrite the URL."""
        handler = Mock()
        handler.name = "Rewriter"
        handler.can_handle.return_value = True
        handler.canonical_url.return_value = "https://example.com/embed/1"
        registry = HandlerRegistry(config)
        registry.handlers = Mock(return_value=[handler])

        assert registry.resolve("https://example.com/watch?v=1") == (
            handler,
            "https://example.com/embed/1",
        )


class TestPrepare:
    """Test session preparation."""

    def test_pre_inspect_with_capability(self, config):
        """Test that handlers declaring PRE_INSPECT are called."""
        handler = Mock()
        handler.has_capability.side_effect = lambda c: c is HandlerCapability.PRE_INSPECT
        session = Mock()

        HandlerRegistry(config).prepare(handler, session, "https://example.com/1")

        handler.pre_inspect.assert_called_once_with(session, "https://example.com/1")

    def test_no_pre_inspect_without_capability(self, config):
        """Test that other handlers are left alone."""
        handler = Mock()
        handler.has_capability.return_value = False

        HandlerRegistry(config).prepare(handler, Mock(), "https://example.com/1")

        handler.pre_inspect.assert_not_called()


class TestSearchers:
    """Test search-capable handler listing."""

    def test_builtins_cannot_search(self, config):
        """Test that bundled handlers do not search."""
        assert HandlerRegistry(config).searchers() == []
