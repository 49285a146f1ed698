"""Format orchestration: run pipelines and injections, then write back.

A ``FormatRequest`` snapshots a text store: its lines, its filetype's
stages and its ``changedtick``.  ``Formatter.format`` then

1. runs the primary pipeline (``basic``), formats embedded regions
   (``injections``), or both in sequence (``all``);
2. splices all injection outputs back, bottom to top;
3. writes the result to the store, unless it is unchanged or the store
   was edited since the snapshot was taken.

Stage failures only produce notices.  In ``all`` mode an unexpected
error while handling injections falls back to the primary pipeline's
output; in the other modes it aborts the request without an edit.

Usage
-----
::

    formatter = Formatter(load_config("pipefmt.yaml"))
    result = formatter.run(FileStore("README.md"), "all")
    for notice in formatter.diagnostics.notices:
        print(notice)
"""
from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum, auto

from pipefmt.config.loader import FormatterConfig
from pipefmt.config.stages import FormatterStage
from pipefmt.diagnostics import Diagnostics, NoticeLevel
from pipefmt.injections import Injection, InjectionFinder
from pipefmt.orchestrator.shutdown import ShutdownGuard, default_guard
from pipefmt.pipeline import PipelineExecutor
from pipefmt.runner import ProcessRunner
from pipefmt.scheduler import join, yield_to_host
from pipefmt.splice import FormatRange, merge_replacements
from pipefmt.store import TextStore

logger = logging.getLogger(__name__)


class FormatMode(str, Enum):
    """Which parts of a text to format."""

    BASIC = "basic"
    INJECTIONS = "injections"
    ALL = "all"


class RequestState(Enum):
    """Lifecycle of a formatting request."""

    CREATED = auto()
    RUNNING = auto()
    BASIC_DONE = auto()
    INJECTIONS_DONE = auto()
    ALL_DONE = auto()
    COMPLETED = auto()
    ABORTED = auto()


@dataclass(frozen=True, eq=False)
class FormatRequest:
    """An immutable snapshot of what to format.

    Parameters
    ----------
    store:
        Where the text came from and where it is written back.
    filetype:
        Filetype of the text.
    input:
        The lines as they were when the request was created.
    stages:
        The filetype's primary pipeline.
    token:
        The store's ``changedtick`` at creation time.
    range:
        Optional sub-range of ``input`` to restrict formatting to.
    """

    store: TextStore
    filetype: str
    input: tuple[str, ...]
    stages: tuple[FormatterStage, ...]
    token: int
    range: FormatRange | None = None


@dataclass
class RunState:
    """Mutable run state of one request, owned by the ``Formatter``."""

    state: RequestState = RequestState.CREATED
    running: bool = False
    history: list[RequestState] = field(default_factory=list)

    def advance(self, state: RequestState) -> None:
        """Move to ``state``, recording the current one in ``history``."""
        logger.debug("Request %s -> %s", self.state.name, state.name)
        self.history.append(self.state)
        self.state = state


@dataclass(frozen=True)
class FormatResult:
    """Outcome of ``Formatter.format``.

    Parameters
    ----------
    state:
        ``COMPLETED`` or ``ABORTED``.
    output:
        The best-effort formatted text, whether or not it was written.
    edited:
        True when the store was modified.
    history:
        The states the request passed through before ``state``.
    """

    state: RequestState
    output: tuple[str, ...]
    edited: bool = False
    history: tuple[RequestState, ...] = ()


def _shift(region: FormatRange, delta: int) -> FormatRange | None:
    end = region.end + delta
    return FormatRange(region.start, end) if end >= region.start else None


class Formatter:
    """Runs formatting requests against text stores.

    Parameters
    ----------
    config:
        Stages and injection policies.
    diagnostics:
        Receives every notice; a fresh sink is created when omitted.
    runner:
        Spawns formatter processes.
    finder:
        Discovers injections.
    guard:
        Tracks in-flight requests for the exit hook.
    attached:
        Called for a request whose filetype has no stages while the
        configuration lists ``attached`` formatters.  When it returns
        True the request is considered handled elsewhere.
    concurrency:
        Maximum number of injections formatted at once; defaults to the
        configuration's value.
    """

    def __init__(
        self,
        config: FormatterConfig,
        *,
        diagnostics: Diagnostics | None = None,
        runner: ProcessRunner | None = None,
        finder: InjectionFinder | None = None,
        guard: ShutdownGuard | None = None,
        attached: Callable[[FormatRequest], bool] | None = None,
        concurrency: int | None = None,
    ) -> None:
        self.config = config
        self.diagnostics = diagnostics if diagnostics is not None else Diagnostics()
        self._runner = runner if runner is not None else ProcessRunner(timeout=config.timeout)
        self._finder = finder if finder is not None else InjectionFinder(config)
        self._guard = guard if guard is not None else default_guard
        self._attached = attached
        self._concurrency = concurrency or config.concurrency
        self._runs: dict[FormatRequest, RunState] = {}

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def create_request(
        self,
        store: TextStore,
        range: FormatRange | None = None,  # noqa: A002
        filetype: str | None = None,
    ) -> FormatRequest:
        """Snapshot ``store`` into a new request.

        Raises
        ------
        InvalidRangeError
            If ``range`` does not fit the store's text.
        """
        token = store.changedtick
        lines = store.lines()
        if range is not None:
            range.validate(len(lines))
        filetype = filetype or self.config.filetype_for_path(store.name) or ""
        request = FormatRequest(
            store=store,
            filetype=filetype,
            input=tuple(lines),
            stages=self.config.stages_for(filetype) or (),
            token=token,
            range=range,
        )
        self._runs[request] = RunState()
        return request

    def state(self, request: FormatRequest) -> RunState:
        """Return the run state of a pending or running ``request``.

        A request's run state is dropped once ``format`` returns; the
        final state and history are then on the ``FormatResult``.

        Raises
        ------
        KeyError
            If ``request`` is finished or was not created here.
        """
        return self._runs[request]

    @property
    def pending(self) -> int:
        """Number of requests created but not yet finished."""
        return len(self._runs)

    # ------------------------------------------------------------------
    # Formatting
    # ------------------------------------------------------------------

    async def compute(self, request: FormatRequest, mode: FormatMode | str) -> list[str]:
        """Format ``request`` and return the output without writing it."""
        mode = FormatMode(mode)
        run = self._runs.get(request, RunState())
        executor = PipelineExecutor(self._runner, self.diagnostics, request.store.name)
        text = list(request.input)

        if mode is FormatMode.BASIC:
            output = await executor.run(request.stages, text, request.range)
            run.advance(RequestState.BASIC_DONE)
            return output

        if mode is FormatMode.INJECTIONS:
            output = await self._format_injections(executor, request, text, request.range)
            run.advance(RequestState.INJECTIONS_DONE)
            return output

        output = await executor.run(request.stages, text, request.range) if request.stages else text
        run.advance(RequestState.BASIC_DONE)
        await yield_to_host()

        within = request.range
        if within is not None:
            within = _shift(within, len(output) - len(text))
            if within is None:
                return output
        try:
            output = await self._format_injections(executor, request, output, within)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Formatting injections of %s failed", request.store.name)
            self.diagnostics.notify(
                f"Failed to format injections in {request.store.name}: {exc}",
                NoticeLevel.ERROR,
            )
        else:
            run.advance(RequestState.ALL_DONE)
        return output

    async def _format_injections(
        self,
        executor: PipelineExecutor,
        request: FormatRequest,
        text: list[str],
        within: FormatRange | None,
    ) -> list[str]:
        injections = self._finder.discover(text, request.filetype, request.stages, within=within)
        if not injections:
            return text

        async def _format(injection: Injection) -> tuple[FormatRange, list[str]]:
            output = await executor.run(injection.stages, injection.lines)
            await yield_to_host()
            return injection.range, self._finder.reindent(
                output, text, injection.range, injection.filetype
            )

        results = await join(
            [functools.partial(_format, injection) for injection in injections],
            self._concurrency,
        )
        return merge_replacements(text, results)

    async def format(self, request: FormatRequest, mode: FormatMode | str) -> FormatResult:
        """Format ``request`` and write the result back to its store.

        Returns
        -------
        FormatResult
            The final state, the computed output and whether the store
            was edited.
        """
        run = self._runs.setdefault(request, RunState())
        try:
            result = await self._format(request, mode, run)
        finally:
            self._runs.pop(request, None)
        return FormatResult(result.state, result.output, result.edited, tuple(run.history))

    async def _format(
        self, request: FormatRequest, mode: FormatMode | str, run: RunState
    ) -> FormatResult:
        name = request.store.name

        if not request.store.writable:
            self.diagnostics.notify("Buffer is not modifiable", NoticeLevel.INFO)
            run.advance(RequestState.ABORTED)
            return FormatResult(RequestState.ABORTED, request.input)

        if not request.stages and self.config.attached and self._attached is not None:
            await yield_to_host()
            if self._attached(request):
                logger.debug("%s handled by an attached formatter", name)
                run.advance(RequestState.COMPLETED)
                return FormatResult(RequestState.COMPLETED, request.input)

        self._guard.install()
        with self._guard.track():
            run.running = True
            run.advance(RequestState.RUNNING)
            try:
                output = await self.compute(request, mode)
                edited = await self._write_back(request, run, output)
            except Exception as exc:  # noqa: BLE001
                logger.exception("Formatting %s failed", name)
                self.diagnostics.notify(f"Failed to format {name}: {exc}", NoticeLevel.ERROR)
                run.advance(RequestState.ABORTED)
                return FormatResult(RequestState.ABORTED, request.input)
            finally:
                run.running = False

        return FormatResult(run.state, tuple(output), edited)

    async def _write_back(self, request: FormatRequest, run: RunState, output: Sequence[str]) -> bool:
        if list(output) == list(request.input):
            logger.debug("%s is already formatted", request.store.name)
            run.advance(RequestState.COMPLETED)
            return False

        await yield_to_host()
        if request.token != request.store.changedtick:
            self.diagnostics.notify("Buffer changed while formatting", NoticeLevel.INFO)
            run.advance(RequestState.ABORTED)
            return False

        request.store.apply_edits(request.input, output)
        request.store.save()
        run.advance(RequestState.COMPLETED)
        return True

    def run(
        self,
        store: TextStore,
        mode: FormatMode | str = FormatMode.BASIC,
        range: FormatRange | None = None,  # noqa: A002
        filetype: str | None = None,
    ) -> FormatResult:
        """Create a request for ``store`` and format it on a new event loop."""
        request = self.create_request(store, range=range, filetype=filetype)
        return asyncio.run(self.format(request, mode))
