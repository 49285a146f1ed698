"""Configuration module.

Exports the stage model, the YAML configuration loader and the
executable health report.
"""
from __future__ import annotations

from pipefmt.config.health import ExecutableStatus, check_executables, configured_executables
from pipefmt.config.loader import (
    FormatterConfig,
    config_from_dict,
    find_config,
    load_config,
)
from pipefmt.config.stages import FormatterStage, normalize_stages

__all__ = [
    "ExecutableStatus",
    "FormatterConfig",
    "FormatterStage",
    "check_executables",
    "config_from_dict",
    "configured_executables",
    "find_config",
    "load_config",
    "normalize_stages",
]
