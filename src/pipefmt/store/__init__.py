"""Text store module.

Exports the ``TextStore`` base class, ``MemoryStore``, ``FileStore`` and
the minimal-edit helpers.
"""
from __future__ import annotations

from pipefmt.store.store import FileStore, MemoryStore, TextStore, apply_edits_to, minimal_edits

__all__ = ["FileStore", "MemoryStore", "TextStore", "apply_edits_to", "minimal_edits"]
