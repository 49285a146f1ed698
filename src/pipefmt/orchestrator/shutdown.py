"""Shutdown guard: keep the interpreter alive while a write-back is pending.

``Formatter.format`` runs inside ``guard.track()``.  Once ``install`` has
been called, interpreter exit blocks until every tracked request has
finished or the guard's timeout has elapsed, so a half-finished edit is
not cut off by teardown.
"""
from __future__ import annotations

import atexit
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DEFAULT_SHUTDOWN_TIMEOUT = 5.0


class ShutdownGuard:
    """Counts in-flight formatting requests across threads.

    Parameters
    ----------
    timeout:
        Longest time, in seconds, ``wait`` blocks by default.
    """

    def __init__(self, timeout: float = DEFAULT_SHUTDOWN_TIMEOUT) -> None:
        self.timeout = timeout
        self._condition = threading.Condition()
        self._active = 0
        self._installed = False

    @contextmanager
    def track(self) -> Iterator[None]:
        """Mark one request as in flight for the duration of the block."""
        with self._condition:
            self._active += 1
        try:
            yield
        finally:
            with self._condition:
                self._active -= 1
                self._condition.notify_all()

    @property
    def in_flight(self) -> int:
        with self._condition:
            return self._active

    def wait(self, timeout: float | None = None) -> bool:
        """Block until no request is in flight.

        Returns
        -------
        bool
            ``False`` if the timeout expired first.
        """
        with self._condition:
            return self._condition.wait_for(
                lambda: self._active == 0,
                self.timeout if timeout is None else timeout,
            )

    def install(self) -> None:
        """Register the exit hook; later calls do nothing."""
        if self._installed:
            return
        atexit.register(self._on_exit)
        self._installed = True

    def _on_exit(self) -> None:
        if not self.wait():
            logger.warning("Exiting with %d formatting request(s) still running", self.in_flight)


default_guard = ShutdownGuard()
