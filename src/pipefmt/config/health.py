"""Configuration health report: which configured executables are installed.

Used by ``pipefmt check`` to show, per executable, the filetypes that
rely on it and whether it can be found on ``PATH``.
"""
from __future__ import annotations

import shutil
from collections.abc import Callable
from dataclasses import dataclass

from pipefmt.config.loader import FormatterConfig


@dataclass(frozen=True)
class ExecutableStatus:
    """Availability of one configured executable.

    Parameters
    ----------
    exe:
        Executable name as written in the configuration.
    filetypes:
        Sorted filetypes whose pipelines use ``exe``.
    path:
        Resolved location, or ``None`` when not found.
    """

    exe: str
    filetypes: tuple[str, ...]
    path: str | None

    @property
    def found(self) -> bool:
        return self.path is not None


def configured_executables(config: FormatterConfig) -> dict[str, list[str]]:
    """Return filetype -> executables, in configured stage order."""
    return {ft: [stage.exe for stage in stages] for ft, stages in config.filetypes.items() if stages}


def check_executables(
    config: FormatterConfig,
    which: Callable[[str], str | None] = shutil.which,
) -> list[ExecutableStatus]:
    """Group configured executables and look each one up.

    Parameters
    ----------
    config:
        The configuration to inspect.
    which:
        Lookup function, ``shutil.which`` by default.

    Returns
    -------
    list[ExecutableStatus]
        One entry per distinct executable, sorted by name.
    """
    exe_to_filetypes: dict[str, set[str]] = {}
    for ft, exes in configured_executables(config).items():
        for exe in exes:
            exe_to_filetypes.setdefault(exe, set()).add(ft)

    return [
        ExecutableStatus(exe=exe, filetypes=tuple(sorted(fts)), path=which(exe))
        for exe, fts in sorted(exe_to_filetypes.items())
    ]
