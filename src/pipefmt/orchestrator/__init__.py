"""Orchestrator module.

Exports ``Formatter`` with its request, state and result types, and the
shutdown guard.
"""
from __future__ import annotations

from pipefmt.orchestrator.orchestrator import (
    FormatMode,
    FormatRequest,
    FormatResult,
    Formatter,
    RequestState,
    RunState,
)
from pipefmt.orchestrator.shutdown import ShutdownGuard, default_guard

__all__ = [
    "FormatMode",
    "FormatRequest",
    "FormatResult",
    "Formatter",
    "RequestState",
    "RunState",
    "ShutdownGuard",
    "default_guard",
]
