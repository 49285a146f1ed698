"""Formatter stage records and stage-shape normalization.

A filetype's formatters may be written in several shapes:

- a single command string, ``"black -q -"``
- a single mapping, ``{"exe": "stylua", "args": ["-"]}``
- a list mixing both forms

``normalize_stages`` turns any of these into a tuple of
``FormatterStage`` records so that the pipeline never has to branch on
the configured shape.

Usage
-----
::

    from pipefmt.config.stages import normalize_stages

    stages = normalize_stages(["isort -", {"exe": "black", "args": ["-q", "-"]}])
    [s.exe for s in stages]
    ['isort', 'black']
"""
from __future__ import annotations

import shlex
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field

from pipefmt.errors import ConfigError

_STAGE_KEYS = frozenset({"exe", "args", "cwd", "cond"})


@dataclass(frozen=True)
class FormatterStage:
    """One external formatter invocation.

    Parameters
    ----------
    exe:
        Executable name or path, resolved against ``PATH``.
    args:
        Arguments passed after the executable.
    cwd:
        Working directory for the process; ``None`` inherits the caller's.
    cond:
        Optional guard.  When it returns ``False`` the stage is skipped.
    """

    exe: str
    args: tuple[str, ...] = ()
    cwd: str | None = None
    cond: Callable[[], bool] | None = field(default=None, compare=False)

    @property
    def command(self) -> list[str]:
        """Return the full argv for this stage."""
        return [self.exe, *self.args]

    def __str__(self) -> str:
        return shlex.join(self.command)


def _from_string(value: str, where: str) -> FormatterStage:
    try:
        parts = shlex.split(value)
    except ValueError as exc:
        raise ConfigError(f"cannot split command {value!r}: {exc}", where) from None
    if not parts:
        raise ConfigError("empty formatter command", where)
    return FormatterStage(exe=parts[0], args=tuple(parts[1:]))


def _from_mapping(value: Mapping[str, object], where: str) -> FormatterStage:
    unknown = set(value) - _STAGE_KEYS
    if unknown:
        raise ConfigError(f"unknown stage key(s): {', '.join(sorted(map(str, unknown)))}", where)

    exe = value.get("exe")
    if not isinstance(exe, str) or not exe:
        raise ConfigError("stage requires a non-empty 'exe' string", where)

    args = value.get("args") or ()
    if isinstance(args, str):
        args = shlex.split(args)
    if not isinstance(args, Sequence) or not all(isinstance(a, (str, int, float)) for a in args):
        raise ConfigError("'args' must be a list of strings", where)

    cwd = value.get("cwd")
    if cwd is not None and not isinstance(cwd, str):
        raise ConfigError("'cwd' must be a string", where)

    cond = value.get("cond")
    if cond is not None and not callable(cond):
        raise ConfigError("'cond' must be callable", where)

    return FormatterStage(
        exe=exe,
        args=tuple(str(a) for a in args),
        cwd=cwd,
        cond=cond,  # type: ignore[arg-type]
    )


def _one(value: object, where: str) -> FormatterStage:
    if isinstance(value, FormatterStage):
        return value
    if isinstance(value, str):
        return _from_string(value, where)
    if isinstance(value, Mapping):
        return _from_mapping(value, where)
    raise ConfigError(f"unsupported stage definition of type {type(value).__name__}", where)


def normalize_stages(value: object, where: str = "stages") -> tuple[FormatterStage, ...]:
    """Normalize any supported stage shape into an ordered stage tuple.

    Parameters
    ----------
    value:
        A command string, a stage mapping, a ``FormatterStage``, a list
        of any of those, or ``None``.
    where:
        Location used in error messages, e.g. ``"filetype.python"``.

    Returns
    -------
    tuple[FormatterStage, ...]
        The stages in configured order.  ``None`` yields an empty tuple.

    Raises
    ------
    ConfigError
        If any element has an unsupported shape.
    """
    if value is None:
        return ()
    if isinstance(value, (str, Mapping, FormatterStage)):
        return (_one(value, where),)
    if isinstance(value, Sequence):
        return tuple(_one(item, f"{where}[{i}]") for i, item in enumerate(value))
    raise ConfigError(f"unsupported stage definition of type {type(value).__name__}", where)
