"""Pipeline execution: fold formatter stages over a text.

Each stage receives the previous stage's output.  A stage that is
skipped (guard returned false, executable missing) or that fails
(non-zero exit, timeout) leaves the text unchanged and the fold moves on
to the next stage; no single stage can abort the pipeline.

Usage
-----
::

    executor = PipelineExecutor(ProcessRunner(), Diagnostics(), name="main.py")
    formatted = await executor.run(stages, lines)
"""
from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Sequence

from pipefmt.config.stages import FormatterStage
from pipefmt.diagnostics import Diagnostics, NoticeLevel
from pipefmt.runner import ProcessRunner
from pipefmt.scheduler import yield_to_host
from pipefmt.splice import FormatRange, splice

logger = logging.getLogger(__name__)


def resolve_executable(stage: FormatterStage) -> str | None:
    """Locate ``stage.exe`` the way the process spawn will.

    Relative paths containing a separator are resolved against the
    stage's working directory.
    """
    exe = stage.exe
    if stage.cwd and os.sep in exe and not os.path.isabs(exe):
        exe = os.path.join(stage.cwd, exe)
    return shutil.which(exe)


class PipelineExecutor:
    """Runs stage sequences for one formatting request.

    Parameters
    ----------
    runner:
        Spawns the formatter processes.
    diagnostics:
        Receives a notice for every skipped or failed stage.
    name:
        Name of the text being formatted, used in notices.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        diagnostics: Diagnostics,
        name: str = "<text>",
    ) -> None:
        self._runner = runner
        self._diagnostics = diagnostics
        self._name = name
        self._missing: set[str] = set()

    async def run(
        self,
        stages: Sequence[FormatterStage],
        lines: Sequence[str],
        range: FormatRange | None = None,  # noqa: A002
    ) -> list[str]:
        """Fold ``stages`` over ``lines``.

        Parameters
        ----------
        stages:
            Formatters to apply, in order.
        lines:
            The input text.
        range:
            When given, only these lines are formatted and the result is
            spliced back into the full text.

        Returns
        -------
        list[str]
            The formatted text.
        """
        lines = list(lines)
        if range is not None:
            acc = range.validate(len(lines)).slice(lines)
        else:
            acc = lines

        for stage in stages:
            output = await self.execute(stage, acc)
            if output is not None:
                acc = output

        if range is not None:
            return splice(lines, acc, range)
        return acc

    async def execute(self, stage: FormatterStage, lines: list[str]) -> list[str] | None:
        """Run one stage; return its output, or ``None`` if it was skipped or failed."""
        if stage.cond is not None:
            await yield_to_host()
            try:
                allowed = bool(stage.cond())
            except Exception:  # noqa: BLE001
                logger.exception("Guard for %s raised; skipping stage", stage.exe)
                allowed = False
            if not allowed:
                logger.debug("Guard for %s returned false; skipping stage", stage.exe)
                return None

        if resolve_executable(stage) is None:
            await yield_to_host()
            if stage.exe not in self._missing:
                self._missing.add(stage.exe)
                self._diagnostics.notify(f"{stage.exe}: executable not found", NoticeLevel.ERROR)
            return None

        result = await self._runner.run(stage, lines)

        if result.timed_out:
            await yield_to_host()
            self._diagnostics.notify(
                f"Timeout when formatting {self._name} with {stage.exe}",
                NoticeLevel.ERROR,
            )
            return None

        if result.returncode != 0:
            await yield_to_host()
            errmsg = result.error_output
            self._diagnostics.notify(
                f"Failed to format {self._name} with {stage.exe}" + (f": {errmsg}" if errmsg else ""),
                NoticeLevel.ERROR,
            )
            return None

        return result.output_lines()
