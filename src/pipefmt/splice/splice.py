"""Line-range splicing.

``splice`` replaces one inclusive, 1-indexed line range of a text with
new lines.  ``merge_replacements`` applies many independently computed
replacements to the same base text.  It always works from the bottom of
the text upwards, because a splice shifts every line below it and would
otherwise invalidate the line numbers of the replacements still pending.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from pipefmt.errors import InvalidRangeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, order=True)
class FormatRange:
    """Inclusive, 1-indexed line range ``[start, end]``."""

    start: int
    end: int

    def __repr__(self) -> str:
        return f"FormatRange({self.start}:{self.end})"

    def __len__(self) -> int:
        return self.end - self.start + 1

    @classmethod
    def parse(cls, text: str) -> "FormatRange":
        """Parse ``"START:END"`` (or a single ``"LINE"``) into a range.

        Raises
        ------
        ValueError
            If the text is not one or two integers separated by ``:``.
        """
        parts = text.split(":")
        if len(parts) not in (1, 2):
            raise ValueError(f"expected START:END, got {text!r}")
        try:
            numbers = [int(p) for p in parts]
        except ValueError:
            raise ValueError(f"expected START:END, got {text!r}") from None
        return cls(start=numbers[0], end=numbers[-1])

    def validate(self, length: int) -> "FormatRange":
        """Return ``self`` if it fits a text of ``length`` lines.

        Raises
        ------
        InvalidRangeError
            Unless ``1 <= start <= end <= length``.
        """
        if not 1 <= self.start <= self.end <= length:
            raise InvalidRangeError(self.start, self.end, length)
        return self

    def contains(self, other: "FormatRange") -> bool:
        """Return True if ``other`` lies entirely inside this range."""
        return self.start <= other.start and other.end <= self.end

    def slice(self, lines: Sequence[str]) -> list[str]:
        """Return the lines covered by this range."""
        return list(lines[self.start - 1 : self.end])


def splice(base: Sequence[str], replacement: Sequence[str], range: FormatRange) -> list[str]:  # noqa: A002
    """Replace lines ``range.start``..``range.end`` of ``base``.

    Parameters
    ----------
    base:
        The original lines; not modified.
    replacement:
        Lines to put in place of the range.  May be longer or shorter
        than the range.
    range:
        The inclusive, 1-indexed range to remove.

    Returns
    -------
    list[str]
        A new list with every line outside the range preserved in order.

    Raises
    ------
    InvalidRangeError
        If the range does not fit ``base``.
    """
    range.validate(len(base))
    return [*base[: range.start - 1], *replacement, *base[range.end :]]


def merge_replacements(
    base: Sequence[str],
    replacements: Iterable[tuple[FormatRange, Sequence[str]]],
) -> list[str]:
    """Splice several replacements into ``base``.

    The ranges must not overlap and refer to line numbers of ``base``.
    They are applied in descending order of start line whatever order
    they arrive in.

    Parameters
    ----------
    base:
        The text all ranges refer to.
    replacements:
        ``(range, lines)`` pairs.

    Returns
    -------
    list[str]
        The merged text.
    """
    ordered = sorted(replacements, key=lambda item: item[0].start, reverse=True)
    result = list(base)
    for range_, lines in ordered:
        logger.debug("Splicing %d line(s) over %r", len(lines), range_)
        result = splice(result, lines, range_)
    return result
