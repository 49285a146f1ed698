"""Plugin subsystem for pipefmt.

Third-party syntax providers register through ``importlib.metadata``
entry-points under the "pipefmt.syntax" group.
"""
from __future__ import annotations

from pipefmt.plugins.registry import PluginAlreadyRegisteredError, PluginNotFoundError, PluginRegistry

__all__ = ["PluginAlreadyRegisteredError", "PluginNotFoundError", "PluginRegistry"]
