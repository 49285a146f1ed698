"""Injection discovery: find embedded regions written in another language.

A Markdown file with a fenced Python block, or an HTML file with inline
CSS, contains regions that should be formatted with a different
pipeline than the file itself.  ``InjectionFinder.discover`` asks the
configured syntax provider for the text's subtrees and turns each
formattable one into an ``Injection``.

A subtree is formattable when its filetype differs from the host's, it
has configured stages that the host pipeline does not already run, and
injection formatting is not disabled for the (host, injected) pair.
Regions that collapse to a single line are ignored.

Usage
-----
::

    finder = InjectionFinder(config)
    for injection in finder.discover(lines, "markdown", host_stages):
        print(injection.range, injection.filetype)
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from pipefmt.config.loader import FormatterConfig
from pipefmt.config.stages import FormatterStage
from pipefmt.errors import ParserUnavailableError
from pipefmt.splice import FormatRange
from pipefmt.syntax import SyntaxTreeProvider, get_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Injection:
    """An embedded region and the pipeline that formats it.

    Parameters
    ----------
    range:
        Lines of the containing text covered by the region.
    filetype:
        Filetype of the embedded language.
    stages:
        Formatters to run over the region.
    lines:
        The region's own content.
    """

    range: FormatRange
    filetype: str
    stages: tuple[FormatterStage, ...]
    lines: tuple[str, ...]


def leading_blank_lines(text: str) -> int:
    """Count the whitespace-only lines at the start of ``text``."""
    count = 0
    for line in text.split("\n"):
        if line.strip():
            break
        count += 1
    return count


class InjectionFinder:
    """Discovers injections using the configured syntax providers.

    Parameters
    ----------
    config:
        Supplies stages, language aliases and injection policies.
    provider_factory:
        Returns a provider for a provider name; defaults to the
        ``pipefmt.syntax`` registry.
    """

    def __init__(
        self,
        config: FormatterConfig,
        provider_factory: Callable[[str], SyntaxTreeProvider] = get_provider,
    ) -> None:
        self._config = config
        self._provider_factory = provider_factory

    def injected_stages(
        self,
        filetype: str,
        host: str,
        host_stages: Sequence[FormatterStage],
    ) -> tuple[FormatterStage, ...]:
        """Return the stages to run for ``filetype`` embedded in ``host``.

        Stages whose executable the host pipeline already runs are left
        out: a formatter that handles the whole host file also handles
        the regions embedded in it.
        """
        stages = self._config.stages_for(filetype)
        if filetype == host or not stages:
            return ()
        if self._config.injection_disabled(host, self._config.resolve_filetype(filetype)):
            return ()
        host_exes = {stage.exe for stage in host_stages}
        return tuple(stage for stage in stages if stage.exe not in host_exes)

    def discover(
        self,
        lines: Sequence[str],
        host: str,
        host_stages: Sequence[FormatterStage] = (),
        within: FormatRange | None = None,
    ) -> list[Injection]:
        """Return the injections found in ``lines``.

        Parameters
        ----------
        lines:
            The text to search.
        host:
            Filetype of the text as a whole.
        host_stages:
            The host's own pipeline.
        within:
            When given, only injections entirely inside this range are
            returned.

        Returns
        -------
        list[Injection]
            Non-overlapping injections in tree order.  Empty when no
            parser is available for ``host``.
        """
        try:
            provider = self._provider_factory(self._config.parser_for(host))
            tree = provider.parse(lines, host)
        except ParserUnavailableError as exc:
            logger.debug("No injections for %s: %s", host, exc)
            return []

        injections: list[Injection] = []
        for node in tree.trees():
            filetype = self._config.filetype_for_language(node.language) or host
            stages = self.injected_stages(filetype, host, host_stages)
            if not stages:
                continue

            start_line, _, end_line, end_col = node.range
            start_line += leading_blank_lines(tree.text(node))
            # A region ending at column 0 of the line after its start is one line long.
            if end_line <= start_line or (end_line - 1 == start_line and end_col == 0):
                continue

            region = FormatRange(start_line + 1, min(end_line, len(lines)))
            if region.end < region.start or len(region) >= len(lines):
                continue
            if within is not None and not within.contains(region):
                continue

            logger.debug("Found %s injection at %r", filetype, region)
            injections.append(
                Injection(
                    range=region,
                    filetype=filetype,
                    stages=stages,
                    lines=tuple(region.slice(lines)),
                )
            )
        return injections

    def reindent(
        self,
        output: Sequence[str],
        text: Sequence[str],
        region: FormatRange,
        filetype: str,
    ) -> list[str]:
        """Re-apply the region's original indentation when auto-indent is on.

        The indentation is the first non-whitespace column of the
        region's first line in ``text``; it is prefixed to every line of
        ``output``.
        """
        if not self._config.auto_indent_enabled(filetype):
            return list(output)
        first = text[region.start - 1]
        column = len(first) - len(first.lstrip()) if first.strip() else 0
        pad = " " * column
        return [f"{pad}{line}" for line in output]
