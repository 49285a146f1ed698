"""Range splice module.

Exports ``FormatRange``, ``splice`` and ``merge_replacements``.
"""
from __future__ import annotations

from pipefmt.splice.splice import FormatRange, merge_replacements, splice

__all__ = ["FormatRange", "merge_replacements", "splice"]
