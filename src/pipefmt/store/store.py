"""Destination text stores.

A ``TextStore`` is the text a formatting request reads from and writes
back to.  It exposes its lines, a ``changedtick`` that increases on
every mutation (used to detect edits made while formatting was in
progress), and ``apply_edits`` which updates only the lines that differ.

- ``MemoryStore`` keeps the lines in memory.
- ``FileStore`` is backed by a file; changes made to the file on disk by
  someone else also advance its ``changedtick``.
"""
from __future__ import annotations

import difflib
import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)

Edit = tuple[int, int, list[str]]


def minimal_edits(old: Sequence[str], new: Sequence[str]) -> list[Edit]:
    """Return the ``(start, end, lines)`` replacements turning ``old`` into ``new``.

    Indices are 0-based and end-exclusive into ``old``; edits are in
    ascending order and never overlap.
    """
    matcher = difflib.SequenceMatcher(None, list(old), list(new), autojunk=False)
    return [
        (i1, i2, list(new[j1:j2]))
        for tag, i1, i2, j1, j2 in matcher.get_opcodes()
        if tag != "equal"
    ]


def apply_edits_to(lines: list[str], edits: Sequence[Edit]) -> None:
    """Apply ``edits`` to ``lines`` in place, bottom first."""
    for start, end, replacement in reversed(edits):
        lines[start:end] = replacement


class TextStore(ABC):
    """The text a formatting request reads and writes back to."""

    name: str = "<text>"

    @abstractmethod
    def lines(self) -> list[str]:
        """Return a copy of the current lines."""

    @property
    @abstractmethod
    def changedtick(self) -> int:
        """A counter that increases on every change to the text."""

    @property
    def writable(self) -> bool:
        return True

    @abstractmethod
    def apply_edits(self, old: Sequence[str], new: Sequence[str]) -> None:
        """Replace ``old`` with ``new``, touching only the lines that differ."""

    def save(self) -> None:
        """Persist the text; a no-op for stores with nowhere to persist to."""


class MemoryStore(TextStore):
    """An in-memory text.

    Parameters
    ----------
    lines:
        Initial content.
    name:
        Display name used in notices.
    writable:
        When ``False`` formatting requests are refused.
    """

    def __init__(self, lines: Sequence[str], name: str = "<memory>", writable: bool = True) -> None:
        self._lines = list(lines)
        self.name = name
        self._writable = writable
        self._tick = 0
        self.saves = 0

    def lines(self) -> list[str]:
        return list(self._lines)

    @property
    def changedtick(self) -> int:
        return self._tick

    @property
    def writable(self) -> bool:
        return self._writable

    def set_lines(self, lines: Sequence[str]) -> None:
        """Replace the whole text, as an outside edit would."""
        self._lines = list(lines)
        self._tick += 1

    def apply_edits(self, old: Sequence[str], new: Sequence[str]) -> None:
        edits = minimal_edits(old, new)
        if not edits:
            return
        apply_edits_to(self._lines, edits)
        self._tick += 1
        logger.debug("Applied %d edit(s) to %s", len(edits), self.name)

    def save(self) -> None:
        self.saves += 1


class FileStore(TextStore):
    """A text backed by a file on disk.

    The file is read once on construction.  ``changedtick`` advances on
    every ``apply_edits`` and whenever the file's modification time or
    size changes behind the store's back.

    Parameters
    ----------
    path:
        The file to format.
    encoding:
        Text encoding used for reading and writing.
    """

    def __init__(self, path: str | Path, encoding: str = "utf-8") -> None:
        self.path = Path(path)
        self.name = str(path)
        self._encoding = encoding
        self._tick = 0
        self._dirty = False
        self._load()

    def _stat(self) -> tuple[int, int]:
        st = self.path.stat()
        return st.st_mtime_ns, st.st_size

    def _load(self) -> None:
        text = self.path.read_text(encoding=self._encoding)
        self._final_newline = text.endswith("\n")
        if self._final_newline:
            text = text[:-1]
        self._lines = text.split("\n")
        self._signature = self._stat()

    def lines(self) -> list[str]:
        self._refresh()
        return list(self._lines)

    @property
    def changedtick(self) -> int:
        self._refresh()
        return self._tick

    @property
    def writable(self) -> bool:
        return os.access(self.path, os.W_OK)

    def _refresh(self) -> None:
        try:
            signature = self._stat()
        except OSError:
            return
        if signature != self._signature:
            logger.debug("%s changed on disk", self.path)
            self._load()
            self._dirty = False
            self._tick += 1

    def apply_edits(self, old: Sequence[str], new: Sequence[str]) -> None:
        edits = minimal_edits(old, new)
        if not edits:
            return
        apply_edits_to(self._lines, edits)
        self._dirty = True
        self._tick += 1
        logger.debug("Applied %d edit(s) to %s", len(edits), self.path)

    def text(self) -> str:
        """Return the current content as one string."""
        return "\n".join(self._lines) + ("\n" if self._final_newline else "")

    def save(self) -> None:
        if not self._dirty:
            return
        self.path.write_text(self.text(), encoding=self._encoding)
        self._signature = self._stat()
        self._dirty = False
        logger.debug("Saved %s", self.path)
