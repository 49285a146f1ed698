"""Unit tests for pipefmt.plugins.registry — PluginRegistry, error types
and lazy entry-point loading.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from unittest.mock import MagicMock, patch

import pytest

from pipefmt.plugins.registry import (
    PluginAlreadyRegisteredError,
    PluginNotFoundError,
    PluginRegistry,
)
from pipefmt.syntax import SyntaxNode, SyntaxTree, SyntaxTreeProvider

_ENTRY_POINTS = "pipefmt.plugins.registry.importlib.metadata.entry_points"


# ---------------------------------------------------------------------------
# Test providers
# ---------------------------------------------------------------------------


class FlatProvider(SyntaxTreeProvider):
    def parse(self, lines: Sequence[str], language: str) -> SyntaxTree:
        return SyntaxTree(lines, SyntaxNode(language, (0, 0, len(lines), 0)))


class OtherProvider(FlatProvider):
    pass


class NotAProvider:
    """Does not subclass SyntaxTreeProvider."""


def _fresh_registry(group: str | None = None) -> PluginRegistry[SyntaxTreeProvider]:
    return PluginRegistry(SyntaxTreeProvider, "test-syntax", group=group)


def _entry_point(name: str, loaded: object = None, error: Exception | None = None) -> MagicMock:
    ep = MagicMock()
    ep.name = name
    if error is not None:
        ep.load.side_effect = error
    else:
        ep.load.return_value = loaded
    return ep


# ===========================================================================
# Error types
# ===========================================================================


class TestErrors:
    def test_not_found_is_key_error(self) -> None:
        with pytest.raises(KeyError):
            raise PluginNotFoundError("toml", "syntax", [])

    def test_not_found_lists_available(self) -> None:
        error = PluginNotFoundError("toml", "syntax", ["fenced", "html"])
        assert error.plugin_name == "toml"
        assert error.registry_name == "syntax"
        assert "fenced, html" in str(error)

    def test_not_found_with_nothing_available(self) -> None:
        assert "(none)" in str(PluginNotFoundError("toml", "syntax", []))

    def test_already_registered_is_value_error(self) -> None:
        error = PluginAlreadyRegisteredError("fenced", "syntax")
        assert isinstance(error, ValueError)
        assert error.plugin_name == "fenced"


# ===========================================================================
# Registration
# ===========================================================================


class TestRegistration:
    def test_decorator_registers_and_returns_class(self) -> None:
        registry = _fresh_registry()

        @registry.register("flat")
        class LocalProvider(FlatProvider):
            pass

        assert registry.get("flat") is LocalProvider
        assert "flat" in registry
        assert len(registry) == 1

    def test_duplicate_name_rejected(self) -> None:
        registry = _fresh_registry()
        registry.register_class("flat", FlatProvider)
        with pytest.raises(PluginAlreadyRegisteredError):
            registry.register_class("flat", OtherProvider)

    def test_wrong_base_class_rejected(self) -> None:
        with pytest.raises(TypeError):
            _fresh_registry().register_class("bad", NotAProvider)  # type: ignore[arg-type]

    def test_non_class_rejected(self) -> None:
        with pytest.raises(TypeError):
            _fresh_registry().register_class("bad", "fenced")  # type: ignore[arg-type]

    def test_registration_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        with caplog.at_level(logging.DEBUG, logger="pipefmt.plugins.registry"):
            registry.register_class("logged", FlatProvider)
        assert "logged" in caplog.text

    def test_deregister(self) -> None:
        registry = _fresh_registry()
        registry.register_class("flat", FlatProvider)
        registry.deregister("flat")
        assert "flat" not in registry

    def test_deregister_unknown(self) -> None:
        with pytest.raises(PluginNotFoundError):
            _fresh_registry().deregister("ghost")

    def test_list_plugins_sorted(self) -> None:
        registry = _fresh_registry()
        registry.register_class("zeta", FlatProvider)
        registry.register_class("alpha", OtherProvider)
        assert registry.list_plugins() == ["alpha", "zeta"]

    def test_repr(self) -> None:
        registry = _fresh_registry()
        registry.register_class("flat", FlatProvider)
        text = repr(registry)
        assert "test-syntax" in text
        assert "SyntaxTreeProvider" in text
        assert "'flat'" in text


# ===========================================================================
# Lookup and entry-points
# ===========================================================================


class TestEntrypoints:
    def test_get_unknown_without_group(self) -> None:
        with pytest.raises(PluginNotFoundError):
            _fresh_registry().get("ghost")

    def test_get_loads_entrypoints_lazily(self) -> None:
        registry = _fresh_registry(group="pipefmt.syntax.test")
        with patch(_ENTRY_POINTS, return_value=[_entry_point("flat", FlatProvider)]) as entry_points:
            assert registry.get("flat") is FlatProvider
        entry_points.assert_called_once_with(group="pipefmt.syntax.test")

    def test_entrypoints_scanned_only_once(self) -> None:
        registry = _fresh_registry(group="pipefmt.syntax.test")
        with patch(_ENTRY_POINTS, return_value=[]) as entry_points:
            with pytest.raises(PluginNotFoundError):
                registry.get("ghost")
            with pytest.raises(PluginNotFoundError):
                registry.get("ghost")
        assert entry_points.call_count == 1

    def test_registered_name_skips_load(self) -> None:
        registry = _fresh_registry()
        registry.register_class("flat", FlatProvider)
        ep = _entry_point("flat", OtherProvider)
        with patch(_ENTRY_POINTS, return_value=[ep]):
            registry.load_entrypoints("pipefmt.syntax.test")
        ep.load.assert_not_called()
        assert registry.get("flat") is FlatProvider

    def test_self_registering_module_not_reported(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        ep = _entry_point("flat")
        ep.load.side_effect = lambda: registry.register_class("flat", FlatProvider) or FlatProvider
        with patch(_ENTRY_POINTS, return_value=[ep]):
            with caplog.at_level(logging.WARNING, logger="pipefmt.plugins.registry"):
                registry.load_entrypoints("pipefmt.syntax.test")
        assert registry.get("flat") is FlatProvider
        assert caplog.records == []

    def test_import_failure_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        ep = _entry_point("broken", error=ImportError("no module named broken"))
        with patch(_ENTRY_POINTS, return_value=[ep]):
            with caplog.at_level(logging.ERROR, logger="pipefmt.plugins.registry"):
                registry.load_entrypoints("pipefmt.syntax.test")
        assert len(registry) == 0
        assert "broken" in caplog.text

    def test_wrong_type_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = _fresh_registry()
        with patch(_ENTRY_POINTS, return_value=[_entry_point("odd", NotAProvider)]):
            with caplog.at_level(logging.WARNING, logger="pipefmt.plugins.registry"):
                registry.load_entrypoints("pipefmt.syntax.test")
        assert "odd" not in registry
        assert "odd" in caplog.text
