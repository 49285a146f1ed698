"""Pipeline module.

Exports ``PipelineExecutor`` and ``resolve_executable``.
"""
from __future__ import annotations

from pipefmt.pipeline.executor import PipelineExecutor, resolve_executable

__all__ = ["PipelineExecutor", "resolve_executable"]
