"""Fenced code block provider.

Treats every fenced block with an info string as a subtree in the
language named by that string::

    ```python
    x = 1
    ```

The block's subtree covers only its content lines, so the fences
themselves are never handed to a formatter.  A block without a closing
fence runs to the end of the text.
"""
from __future__ import annotations

import re
from collections.abc import Sequence

from pipefmt.syntax.tree import SyntaxNode, SyntaxTree, SyntaxTreeProvider, syntax_providers

_OPENING = re.compile(r"^(?P<indent> {0,3})(?P<fence>`{3,}|~{3,})\s*(?P<info>[^\s`{]*)")


def _closes(line: str, fence: str) -> bool:
    stripped = line.strip()
    return stripped.startswith(fence) and set(stripped) == {fence[0]}


@syntax_providers.register("fenced")
class FencedBlockProvider(SyntaxTreeProvider):
    """Splits Markdown-like text into one subtree per fenced code block."""

    def parse(self, lines: Sequence[str], language: str) -> SyntaxTree:
        children: list[SyntaxNode] = []
        index = 0
        while index < len(lines):
            match = _OPENING.match(lines[index])
            if match is None:
                index += 1
                continue

            fence = match.group("fence")
            info = match.group("info").lower()
            close = index + 1
            while close < len(lines) and not _closes(lines[close], fence):
                close += 1

            if info:
                children.append(SyntaxNode(language=info, range=(index + 1, 0, close, 0)))
            index = close + 1

        last = len(lines) - 1
        end = (last, len(lines[last])) if lines else (0, 0)
        root = SyntaxNode(language=language, range=(0, 0, *end), children=tuple(children))
        return SyntaxTree(lines, root)
