"""Diagnostics module.

Exports ``Notice``, ``NoticeLevel`` and the ``Diagnostics`` sink.
"""
from __future__ import annotations

from pipefmt.diagnostics.diagnostics import SOURCE, Diagnostics, Notice, NoticeLevel

__all__ = ["SOURCE", "Diagnostics", "Notice", "NoticeLevel"]
