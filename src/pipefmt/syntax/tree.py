"""Syntax-tree boundary used by injection discovery.

pipefmt does not parse languages itself.  A ``SyntaxTreeProvider``
turns a text into a ``SyntaxTree`` whose nodes are tagged with the
language they are written in; discovery only needs each node's range,
language and text.

Ranges are 0-based ``(start_line, start_col, end_line, end_col)`` with
an exclusive end, so a node covering whole lines 3-5 ends at
``(6, 0)``.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

from pipefmt.errors import ParserUnavailableError
from pipefmt.plugins import PluginNotFoundError, PluginRegistry

NodeRange = tuple[int, int, int, int]


@dataclass(frozen=True)
class SyntaxNode:
    """A subtree root tagged with its language.

    Parameters
    ----------
    language:
        Language identifier of this subtree, e.g. ``"python"``.
    range:
        0-based, end-exclusive ``(start_line, start_col, end_line, end_col)``.
    children:
        Nested subtrees written in (possibly) other languages.
    """

    language: str
    range: NodeRange
    children: tuple["SyntaxNode", ...] = field(default=())


class SyntaxTree:
    """A parsed text: a root node plus access to node text.

    Parameters
    ----------
    lines:
        The text that was parsed.
    root:
        The root subtree.
    """

    def __init__(self, lines: Sequence[str], root: SyntaxNode) -> None:
        self._lines = list(lines)
        self.root = root

    def trees(self) -> Iterator[SyntaxNode]:
        """Yield the root and every nested subtree, depth first."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def text(self, node: SyntaxNode) -> str:
        """Return the source text spanned by ``node``."""
        start_line, start_col, end_line, end_col = node.range

        def line(index: int) -> str:
            return self._lines[index] if 0 <= index < len(self._lines) else ""

        if start_line == end_line:
            return line(start_line)[start_col:end_col]
        parts = [line(start_line)[start_col:]]
        parts.extend(line(i) for i in range(start_line + 1, end_line))
        parts.append(line(end_line)[:end_col])
        return "\n".join(parts)


class SyntaxTreeProvider(ABC):
    """Parses text into a ``SyntaxTree``."""

    @abstractmethod
    def parse(self, lines: Sequence[str], language: str) -> SyntaxTree:
        """Parse ``lines`` written in ``language``.

        Raises
        ------
        ParserUnavailableError
            If this provider cannot parse ``language``.
        """


syntax_providers: PluginRegistry[SyntaxTreeProvider] = PluginRegistry(
    SyntaxTreeProvider, "syntax", group="pipefmt.syntax"
)


def get_provider(name: str) -> SyntaxTreeProvider:
    """Instantiate the provider registered as ``name``.

    Raises
    ------
    ParserUnavailableError
        If no provider is registered under ``name``.
    """
    try:
        cls = syntax_providers.get(name)
    except PluginNotFoundError:
        raise ParserUnavailableError(name) from None
    return cls()
