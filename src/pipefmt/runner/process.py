"""External process execution for formatter stages.

``ProcessRunner.spawn`` starts one formatter, feeds it the input lines
on stdin and reports a ``ProcessResult`` through a callback once the
process has exited and its output has been fully read.  A timer armed
at spawn time kills the process (SIGKILL, not a polite terminate) when
it outlives the runner's timeout.  Each formatter leads its own process
group so that wrapper scripts and their children die together.

``ProcessRunner.run`` is the awaitable form used by the pipeline.

Usage
-----
::

    runner = ProcessRunner(timeout=5.0)
    result = await runner.run(FormatterStage("black", ("-q", "-")), lines)
    if result.ok:
        lines = result.output_lines()
"""
from __future__ import annotations

import asyncio
import logging
import os
import signal
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pipefmt.config.stages import FormatterStage
from pipefmt.scheduler import wrap

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0

# Exit status reported when the executable could not be launched at all.
LAUNCH_FAILURE = 127

# Seconds to wait for output pipes to close once the process group is killed.
KILL_GRACE = 1.0


@dataclass(frozen=True)
class ProcessResult:
    """Outcome of one formatter process.

    Parameters
    ----------
    returncode:
        Process exit status.  Negative values are signals on POSIX.
    stdout:
        Everything the process wrote to standard output.
    stderr:
        Everything the process wrote to standard error.
    timed_out:
        True when the process was killed by the timeout timer.
    elapsed:
        Wall-clock seconds from spawn to exit.
    """

    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False
    elapsed: float = 0.0

    @property
    def ok(self) -> bool:
        """True when the process exited cleanly on its own."""
        return not self.timed_out and self.returncode == 0

    @property
    def error_output(self) -> str:
        """Return stderr if it has content, stdout otherwise."""
        return self.stderr.strip() or self.stdout.strip()

    def output_lines(self) -> list[str]:
        """Split stdout into lines.

        A single trailing newline terminates the last line rather than
        starting an empty one; empty output is one empty line.
        """
        stdout = self.stdout[:-1] if self.stdout.endswith("\n") else self.stdout
        return stdout.split("\n")


class ProcessHandle:
    """Handle to a spawned formatter process.

    The handle exists before the OS process does; ``kill`` is a no-op
    until the process has started and after its output has been read.
    A leader that has already exited does not stop ``kill``: children
    still holding its pipes are in the same group.
    """

    def __init__(self, stage: FormatterStage) -> None:
        self.stage = stage
        self.process: asyncio.subprocess.Process | None = None
        self.timed_out = False
        self.finished = False
        self.task: asyncio.Task[None] | None = None

    def is_closing(self) -> bool:
        """Return True once the process has exited and released its output."""
        return self.finished

    def kill(self) -> None:
        """Forcibly kill the process and its process group."""
        if self.process is None or self.finished:
            return
        logger.debug("Killing %s (pid %s) after timeout", self.stage.exe, self.process.pid)
        self.timed_out = True
        try:
            if hasattr(os, "killpg"):
                os.killpg(self.process.pid, signal.SIGKILL)
            else:
                self.process.kill()
        except ProcessLookupError:
            # Group already gone.
            pass


class ProcessRunner:
    """Spawns formatter processes with a per-process timeout.

    Parameters
    ----------
    timeout:
        Seconds a process may run before it is killed.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    def spawn(
        self,
        stage: FormatterStage,
        input_lines: Sequence[str],
        on_exit: Callable[[ProcessResult], None],
    ) -> ProcessHandle:
        """Start ``stage`` and call ``on_exit`` with its result.

        Must be called from inside a running event loop.

        Parameters
        ----------
        stage:
            The formatter to run.
        input_lines:
            Lines written, newline-joined, to the process's stdin.
        on_exit:
            Invoked exactly once with the ``ProcessResult``.

        Returns
        -------
        ProcessHandle
            A handle that can kill the process early.
        """
        loop = asyncio.get_running_loop()
        handle = ProcessHandle(stage)
        handle.task = loop.create_task(self._execute(handle, list(input_lines), on_exit))
        return handle

    async def run(self, stage: FormatterStage, input_lines: Sequence[str]) -> ProcessResult:
        """Run ``stage`` to completion and return its result."""
        result: ProcessResult = await wrap(self.spawn)(stage, input_lines)
        return result

    async def _execute(
        self,
        handle: ProcessHandle,
        input_lines: list[str],
        on_exit: Callable[[ProcessResult], None],
    ) -> None:
        stage = handle.stage
        started = time.monotonic()
        try:
            result = await self._communicate(handle, input_lines)
        except OSError as exc:
            logger.debug("Could not launch %s: %s", stage.exe, exc)
            result = ProcessResult(
                returncode=LAUNCH_FAILURE,
                stdout="",
                stderr=str(exc),
                elapsed=time.monotonic() - started,
            )
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while running %s", stage.exe)
            result = ProcessResult(
                returncode=-1,
                stdout="",
                stderr=f"{type(exc).__name__}: {exc}",
                elapsed=time.monotonic() - started,
            )
        on_exit(result)

    async def _communicate(self, handle: ProcessHandle, input_lines: list[str]) -> ProcessResult:
        stage = handle.stage
        loop = asyncio.get_running_loop()
        started = time.monotonic()

        logger.debug("Spawning %s", stage)
        process = await asyncio.create_subprocess_exec(
            *stage.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=stage.cwd,
            start_new_session=True,
        )
        handle.process = process
        timer = loop.call_later(self.timeout, handle.kill)
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate("\n".join(input_lines).encode("utf-8")),
                self.timeout + KILL_GRACE,
            )
        except asyncio.TimeoutError:
            # A descendant outside the group still holds the pipes.
            handle.kill()
            logger.warning(
                "%s did not close its output %.1fs after being killed", stage.exe, KILL_GRACE
            )
            stdout, stderr = b"", b""
        finally:
            timer.cancel()
            handle.finished = True

        elapsed = time.monotonic() - started
        logger.debug(
            "%s exited with %s after %.3fs%s",
            stage.exe,
            process.returncode,
            elapsed,
            " (timed out)" if handle.timed_out else "",
        )
        return ProcessResult(
            returncode=process.returncode if process.returncode is not None else -1,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            timed_out=handle.timed_out,
            elapsed=elapsed,
        )
