"""Tests for handler name resolution and loading."""

import logging
import sys

import pytest

from vidfetch.errors import PluginError
from vidfetch.plugins.base import SiteHandler
from vidfetch.plugins.builtin import BUILTIN_HANDLERS
from vidfetch.plugins.registry import BUILTIN_PACKAGE, default_resolvers
from vidfetch.plugins.resolver import (
    PLUGIN_MODULE_PREFIX,
    BuiltinResolver,
    InstalledPluginResolver,
    load_handler_class,
)


class TestInstalledPluginResolver:
    """Test the plugin directory resolver."""

    def test_exact_name(self, config, write_plugin):
        """Test finding <Name>.py."""
        path = write_plugin("ExampleTube")
        source = InstalledPluginResolver(config.plugin_dir).resolve("ExampleTube")

        assert source is not None
        assert source.path == path
        assert source.origin == "installed"
        assert source.module_name == f"{PLUGIN_MODULE_PREFIX}ExampleTube"

    def test_case_insensitive_stem(self, config, write_plugin):
        """Test that the file name need not match the case of the handler name."""
        path = write_plugin("ExampleTube", filename="exampletube.py")
        source = InstalledPluginResolver(config.plugin_dir).resolve("ExampleTube")

        assert source is not None
        assert source.path == path

    def test_missing_is_none(self, config):
        """Test that absence is None, not an error."""
        assert InstalledPluginResolver(config.plugin_dir).resolve("Nothing") is None

    def test_probe_logged(self, config, caplog):
        """Test that each probe is logged at debug level with its path."""
        with caplog.at_level(logging.DEBUG, logger="vidfetch.plugins.resolver"):
            InstalledPluginResolver(config.plugin_dir).resolve("Nothing")

        assert str(config.plugin_dir / "Nothing.py") in caplog.text

    def test_available_skips_private_files(self, config, write_plugin):
        """Test listing installed names."""
        write_plugin("ExampleTube")
        write_plugin("Helper", filename="_helper.py")

        assert InstalledPluginResolver(config.plugin_dir).available() == ["ExampleTube"]

    def test_open_reads_source(self, config, write_plugin):
        """Test that a resolved source can be read as bytes."""
        write_plugin("ExampleTube")
        source = InstalledPluginResolver(config.plugin_dir).resolve("ExampleTube")

        with source.open() as f:
            assert b"class ExampleTube" in f.read()


class TestBuiltinResolver:
    """Test the built-in package resolver."""

    def test_known_name(self):
        """Test resolving a bundled handler."""
        source = BuiltinResolver(BUILTIN_PACKAGE, BUILTIN_HANDLERS).resolve("Direct")

        assert source is not None
        assert source.origin == "builtin"
        assert source.module_name == "vidfetch.plugins.builtin.direct"

    def test_unknown_name(self):
        """Test that unknown names are None."""
        assert BuiltinResolver(BUILTIN_PACKAGE, BUILTIN_HANDLERS).resolve("Nothing") is None


class TestResolverChain:
    """Test resolver ordering."""

    def test_installed_preferred_over_builtin(self, config, write_plugin):
        """Test that an installed copy of a built-in name wins."""
        write_plugin("Generic")
        source = default_resolvers(config).resolve("Generic")

        assert source.origin == "installed"

    def test_builtin_when_not_installed(self, config):
        """Test falling back to the bundled handler."""
        assert default_resolvers(config).resolve("Generic").origin == "builtin"

    def test_neither_is_none(self, config):
        """Test that an unknown name resolves to None."""
        chain = default_resolvers(config)
        assert chain.resolve("Nothing") is None
        assert chain.load("Nothing") is None

    def test_get_by_name(self, config):
        """Test looking up a resolver by name."""
        chain = default_resolvers(config)
        assert isinstance(chain.get("installed"), InstalledPluginResolver)
        assert chain.get("missing") is None


class TestLoadHandlerClass:
    """Test loading handler classes from sources."""

    def test_load_installed(self, config, write_plugin):
        """Test loading an installed plugin into a module."""
        write_plugin("ExampleTube")
        source = InstalledPluginResolver(config.plugin_dir).resolve("ExampleTube")

        handler_class = load_handler_class(source)

        assert issubclass(handler_class, SiteHandler)
        assert handler_class().name == "ExampleTube"
        assert source.module_name in sys.modules

    def test_load_builtin(self):
        """Test importing a built-in handler."""
        source = BuiltinResolver(BUILTIN_PACKAGE, BUILTIN_HANDLERS).resolve("Generic")
        assert load_handler_class(source).__name__ == "Generic"

    def test_syntax_error(self, config):
        """Test that unparsable plugins raise PluginError."""
        config.plugin_dir.mkdir(parents=True)
        (config.plugin_dir / "Broken.py").write_text("def broken(:\n")
        source = InstalledPluginResolver(config.plugin_dir).resolve("Broken")

        with pytest.raises(PluginError):
            load_handler_class(source)

    def test_runtime_error(self, config):
        """Test that plugins failing at import raise PluginError."""
        config.plugin_dir.mkdir(parents=True)
        (config.plugin_dir / "Failing.py").write_text("raise RuntimeError('boom')\n")
        source = InstalledPluginResolver(config.plugin_dir).resolve("Failing")

        with pytest.raises(PluginError):
            load_handler_class(source)
        assert source.module_name not in sys.modules

    def test_no_handler_class(self, config):
        """Test that a file without a handler raises PluginError."""
        config.plugin_dir.mkdir(parents=True)
        (config.plugin_dir / "Empty.py").write_text("VALUE = 1\n")
        source = InstalledPluginResolver(config.plugin_dir).resolve("Empty")

        with pytest.raises(PluginError):
            load_handler_class(source)

    def test_loaded_from_plugin_file(self, config, write_plugin):
        """Test that installed plugins are real modules backed by their file."""
        path = write_plugin("ExampleTube")
        source = InstalledPluginResolver(config.plugin_dir).resolve("ExampleTube")

        module = sys.modules[load_handler_class(source).__module__]

        assert module.__file__ == str(path)
        assert module.__spec__.origin == str(path)

    def test_prefers_class_named_after_file(self, config):
        """Test that the class matching the file stem wins over helper handlers."""
        config.plugin_dir.mkdir(parents=True)
        (config.plugin_dir / "ExampleTube.py").write_text(
            "from vidfetch.extraction import HttpStream, Single\n"
            "from vidfetch.plugins.base import HandlerInfo, SiteHandler\n"
            "\n"
            "\n"
            "class AaaMirror(SiteHandler):\n"
            "    @property\n"
            "    def info(self):\n"
            "        return HandlerInfo(name='AaaMirror')\n"
            "\n"
            "    def extract(self, session, url, preferences):\n"
            "        return Single(HttpStream(url))\n"
            "\n"
            "\n"
            "class ExampleTube(AaaMirror):\n"
            "    @property\n"
            "    def info(self):\n"
            "        return HandlerInfo(name='ExampleTube')\n"
        )
        source = InstalledPluginResolver(config.plugin_dir).resolve("ExampleTube")

        assert load_handler_class(source).__name__ == "ExampleTube"
