"""Injection discovery module.

Exports ``Injection`` and ``InjectionFinder``.
"""
from __future__ import annotations

from pipefmt.injections.discovery import Injection, InjectionFinder, leading_blank_lines

__all__ = ["Injection", "InjectionFinder", "leading_blank_lines"]
