"""Exception types shared across pipefmt.

Per-stage and per-injection failures never raise; they are reported as
notices through ``pipefmt.diagnostics``.  The exceptions here cover the
remaining cases: malformed configuration, invalid ranges, and missing
syntax parsers.
"""
from __future__ import annotations


class PipefmtError(Exception):
    """Base class for all pipefmt errors."""


class ConfigError(PipefmtError):
    """Raised when a configuration file or stage definition is malformed.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    source:
        The file (or key path) the bad value came from, if known.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.message = message
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


class InvalidRangeError(PipefmtError, ValueError):
    """Raised when a line range does not fit the text it is applied to."""

    def __init__(self, start: int, end: int, length: int) -> None:
        self.start = start
        self.end = end
        self.length = length
        super().__init__(
            f"Invalid range {start}:{end} for text of {length} line(s); "
            "expected 1 <= start <= end <= length"
        )


class ParserUnavailableError(PipefmtError):
    """Raised by a syntax provider that cannot parse the requested language."""

    def __init__(self, language: str | None) -> None:
        self.language = language
        super().__init__(f"No parser available for language {language!r}")
