"""pipefmt — run external formatter pipelines over text, embedded languages included.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import pipefmt

    config = pipefmt.load_config("pipefmt.yaml")

    # Format a list of lines in memory
    lines = pipefmt.format_lines(["x=1"], "python", config)

    # Format a file in place, fenced code blocks included
    result = pipefmt.format_file("README.md", config, mode="all")

    pipefmt.__version__
    '0.1.0'
"""
from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from pipefmt.config.loader import FormatterConfig
    from pipefmt.diagnostics import Diagnostics
    from pipefmt.orchestrator import FormatResult
    from pipefmt.splice import FormatRange


def load_config(path: str | Path) -> "FormatterConfig":
    """Load a YAML configuration file.

    Raises
    ------
    pipefmt.errors.ConfigError
        If the file is missing or malformed.
    """
    from pipefmt.config.loader import load_config as _load_config

    return _load_config(path)


def format_lines(
    lines: Sequence[str],
    filetype: str,
    config: "FormatterConfig",
    mode: str = "basic",
    range: "FormatRange | None" = None,  # noqa: A002
    diagnostics: "Diagnostics | None" = None,
) -> list[str]:
    """Format ``lines`` as ``filetype`` and return the result.

    Parameters
    ----------
    lines:
        The text to format.
    filetype:
        Selects the pipeline from ``config``.
    config:
        Stages and injection policies.
    mode:
        ``"basic"``, ``"injections"`` or ``"all"``.
    range:
        Optional 1-indexed inclusive line range to restrict formatting to.
    diagnostics:
        Receives notices about skipped or failed stages.

    Returns
    -------
    list[str]
        The formatted lines; the input unchanged if nothing applied.
    """
    from pipefmt.orchestrator import Formatter
    from pipefmt.store import MemoryStore

    store = MemoryStore(lines)
    result = Formatter(config, diagnostics=diagnostics).run(store, mode, range=range, filetype=filetype)
    return list(result.output)


def format_file(
    path: str | Path,
    config: "FormatterConfig",
    mode: str = "basic",
    range: "FormatRange | None" = None,  # noqa: A002
    filetype: str | None = None,
    diagnostics: "Diagnostics | None" = None,
) -> "FormatResult":
    """Format the file at ``path`` in place.

    The filetype is guessed from the file suffix unless given.
    """
    from pipefmt.orchestrator import Formatter
    from pipefmt.store import FileStore

    formatter = Formatter(config, diagnostics=diagnostics)
    return formatter.run(FileStore(path), mode, range=range, filetype=filetype)


__all__ = [
    "__version__",
    "format_file",
    "format_lines",
    "load_config",
]
