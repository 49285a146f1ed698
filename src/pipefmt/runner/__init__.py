"""Process runner module.

Exports ``ProcessRunner``, ``ProcessHandle`` and ``ProcessResult``.
"""
from __future__ import annotations

from pipefmt.runner.process import DEFAULT_TIMEOUT, LAUNCH_FAILURE, ProcessHandle, ProcessResult, ProcessRunner

__all__ = ["DEFAULT_TIMEOUT", "LAUNCH_FAILURE", "ProcessHandle", "ProcessResult", "ProcessRunner"]
