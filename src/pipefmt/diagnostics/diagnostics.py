"""Notice types and the diagnostics sink.

A ``Notice`` is a leveled, user-facing message emitted while formatting.
Notices are the only error signal the formatting core produces: stage
failures, missing executables, timeouts and write-back conflicts are all
reported here and never raised.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

logger = logging.getLogger(__name__)

SOURCE = "Formatter"


class NoticeLevel(Enum):
    """Severity levels for notices, mapped onto ``logging`` levels."""

    ERROR = logging.ERROR
    WARNING = logging.WARNING
    INFO = logging.INFO


@dataclass(frozen=True)
class Notice:
    """A single message addressed to the user.

    Parameters
    ----------
    level:
        How serious the notice is.
    message:
        Human-readable text.
    source:
        Fixed tag identifying the emitter.
    """

    level: NoticeLevel
    message: str
    source: str = field(default=SOURCE)

    def __str__(self) -> str:
        return f"[{self.source}] {self.level.name}: {self.message}"

    @property
    def is_error(self) -> bool:
        """Return True if this notice reports a failure."""
        return self.level == NoticeLevel.ERROR


class Diagnostics:
    """Collects notices, de-duplicating those sent with ``notify_once``.

    Parameters
    ----------
    listener:
        Optional callable invoked with every accepted notice, e.g. to
        print it as it arrives.
    """

    def __init__(self, listener: Callable[[Notice], None] | None = None) -> None:
        self._notices: list[Notice] = []
        self._seen: set[tuple[NoticeLevel, str]] = set()
        self._listener = listener

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> Notice:
        """Record ``message`` at ``level`` and return the notice."""
        notice = Notice(level=level, message=message)
        self._notices.append(notice)
        self._seen.add((level, message))
        logger.log(level.value, "%s", message)
        if self._listener is not None:
            self._listener(notice)
        return notice

    def notify_once(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> Notice | None:
        """Like ``notify`` but drops a message already sent at that level."""
        if (level, message) in self._seen:
            return None
        return self.notify(message, level)

    @property
    def notices(self) -> list[Notice]:
        """All notices in emission order."""
        return list(self._notices)

    @property
    def has_errors(self) -> bool:
        return any(n.is_error for n in self._notices)

    def clear(self) -> None:
        """Forget all notices, including the ``notify_once`` history."""
        self._notices.clear()
        self._seen.clear()

    def __len__(self) -> int:
        return len(self._notices)
