"""Scheduler module.

Exports ``wrap``, ``join`` and ``yield_to_host``.
"""
from __future__ import annotations

from pipefmt.scheduler.scheduler import DEFAULT_CONCURRENCY, join, wrap, yield_to_host

__all__ = ["DEFAULT_CONCURRENCY", "join", "wrap", "yield_to_host"]
