"""Typed plugin registry for pipefmt.

Syntax-tree providers (and any future pluggable collaborator) are kept
in a ``PluginRegistry``.  Built-in implementations register themselves
with the ``@register`` decorator; third-party packages declare
entry-points that ``load_entrypoints`` imports on demand.

Example
-------
::

    from pipefmt.syntax import SyntaxTreeProvider, syntax_providers

    @syntax_providers.register("my-lang")
    class MyLangProvider(SyntaxTreeProvider):
        def parse(self, lines, language):
            ...

In a downstream package's ``pyproject.toml``::

    [project.entry-points."pipefmt.syntax"]
    my-lang = "my_package.syntax:MyLangProvider"
"""
from __future__ import annotations

import importlib.metadata
import logging
from abc import ABC
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=ABC)


class PluginNotFoundError(KeyError):
    """Raised when a requested plugin name is not in the registry."""

    def __init__(self, name: str, registry_name: str, available: list[str]) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        super().__init__(
            f"Plugin {name!r} is not registered in the {registry_name!r} registry. "
            f"Available: {', '.join(available) or '(none)'}."
        )


class PluginAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a name that already exists."""

    def __init__(self, name: str, registry_name: str) -> None:
        self.plugin_name = name
        self.registry_name = registry_name
        super().__init__(f"Plugin {name!r} is already registered in the {registry_name!r} registry.")


class PluginRegistry(Generic[T]):
    """Name -> class mapping restricted to subclasses of ``base_class``.

    Parameters
    ----------
    base_class:
        The abstract base class all plugins must subclass.
    name:
        A human-readable name for this registry (used in error messages).
    group:
        Entry-point group scanned by ``load_entrypoints``.
    """

    def __init__(self, base_class: type[T], name: str, group: str | None = None) -> None:
        self._base_class = base_class
        self._name = name
        self._group = group
        self._plugins: dict[str, type[T]] = {}
        self._entrypoints_loaded = False

    def register(self, name: str) -> Callable[[type[T]], type[T]]:
        """Return a class decorator that registers the decorated class under ``name``."""

        def decorator(cls: type[T]) -> type[T]:
            self.register_class(name, cls)
            return cls

        return decorator

    def register_class(self, name: str, cls: type[T]) -> None:
        """Register ``cls`` under ``name``.

        Raises
        ------
        PluginAlreadyRegisteredError
            If ``name`` is already registered.
        TypeError
            If ``cls`` is not a subclass of ``base_class``.
        """
        if name in self._plugins:
            raise PluginAlreadyRegisteredError(name, self._name)
        if not (isinstance(cls, type) and issubclass(cls, self._base_class)):
            raise TypeError(
                f"Cannot register {cls!r} under {name!r}: "
                f"it must be a subclass of {self._base_class.__name__}."
            )
        self._plugins[name] = cls
        logger.debug("Registered %r -> %s in %r", name, cls.__qualname__, self._name)

    def deregister(self, name: str) -> None:
        """Remove ``name`` from the registry.

        Raises
        ------
        PluginNotFoundError
            If ``name`` is not currently registered.
        """
        if name not in self._plugins:
            raise PluginNotFoundError(name, self._name, self.list_plugins())
        del self._plugins[name]

    def get(self, name: str) -> type[T]:
        """Return the class registered under ``name``.

        Entry-points are loaded the first time a name is missing.

        Raises
        ------
        PluginNotFoundError
            If no plugin is registered under ``name``.
        """
        if name not in self._plugins and self._group and not self._entrypoints_loaded:
            self.load_entrypoints(self._group)
        try:
            return self._plugins[name]
        except KeyError:
            raise PluginNotFoundError(name, self._name, self.list_plugins()) from None

    def list_plugins(self) -> list[str]:
        """Return registered names in alphabetical order."""
        return sorted(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def __repr__(self) -> str:
        return (
            f"PluginRegistry(name={self._name!r}, "
            f"base_class={self._base_class.__name__}, "
            f"plugins={self.list_plugins()})"
        )

    def load_entrypoints(self, group: str) -> None:
        """Import and register every entry-point declared in ``group``.

        Names that are already registered are skipped, so repeated calls
        are harmless.  Entry-points that fail to import are logged and
        skipped.
        """
        self._entrypoints_loaded = True
        for ep in importlib.metadata.entry_points(group=group):
            if ep.name in self._plugins:
                logger.debug("Entry-point %r already registered in %r; skipping.", ep.name, self._name)
                continue
            try:
                cls = ep.load()
            except Exception:
                logger.exception("Failed to load entry-point %r from group %r; skipping.", ep.name, group)
                continue
            if self._plugins.get(ep.name) is cls:
                # Importing the module ran its @register decorator.
                continue
            try:
                self.register_class(ep.name, cls)
            except (PluginAlreadyRegisteredError, TypeError):
                logger.warning(
                    "Entry-point %r loaded but could not be registered in %r; skipping.",
                    ep.name,
                    self._name,
                )
