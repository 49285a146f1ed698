"""Unit tests for pipefmt.syntax — the tree model and the fenced block provider."""
from __future__ import annotations

import pytest

from pipefmt.errors import ParserUnavailableError
from pipefmt.syntax import FencedBlockProvider, SyntaxNode, SyntaxTree, get_provider, syntax_providers

_MARKDOWN = [
    "# Title",          # 0
    "",                 # 1
    "```python",        # 2
    "x=1",              # 3
    "y=2",              # 4
    "```",              # 5
    "text",             # 6
    "~~~~ Lua extra",   # 7
    "print(1)",         # 8
    "~~~~",             # 9
]


# ===========================================================================
# SyntaxTree
# ===========================================================================


class TestSyntaxTree:
    def test_trees_depth_first_root_first(self) -> None:
        leaf = SyntaxNode("css", (2, 0, 3, 0))
        inner = SyntaxNode("js", (1, 0, 4, 0), children=(leaf,))
        other = SyntaxNode("json", (5, 0, 6, 0))
        root = SyntaxNode("html", (0, 0, 6, 0), children=(inner, other))
        tree = SyntaxTree(["l"] * 7, root)
        assert [n.language for n in tree.trees()] == ["html", "js", "css", "json"]

    def test_text_single_line(self) -> None:
        tree = SyntaxTree(["abcdef"], SyntaxNode("x", (0, 0, 0, 6)))
        assert tree.text(SyntaxNode("x", (0, 1, 0, 4))) == "bcd"

    def test_text_spanning_lines(self) -> None:
        tree = SyntaxTree(["one", "two", "three"], SyntaxNode("x", (0, 0, 2, 5)))
        assert tree.text(SyntaxNode("x", (0, 1, 2, 2))) == "ne\ntwo\nth"

    def test_text_ending_at_column_zero(self) -> None:
        tree = SyntaxTree(["a", "b", "c"], SyntaxNode("x", (0, 0, 2, 1)))
        assert tree.text(SyntaxNode("x", (1, 0, 2, 0))) == "b\n"


# ===========================================================================
# FencedBlockProvider
# ===========================================================================


class TestFencedBlockProvider:
    def test_blocks_become_children(self) -> None:
        tree = FencedBlockProvider().parse(_MARKDOWN, "markdown")
        assert tree.root.language == "markdown"
        assert [(n.language, n.range) for n in tree.root.children] == [
            ("python", (3, 0, 5, 0)),
            ("lua", (8, 0, 9, 0)),
        ]

    def test_root_covers_whole_text(self) -> None:
        tree = FencedBlockProvider().parse(_MARKDOWN, "markdown")
        assert tree.root.range == (0, 0, 9, 4)

    def test_block_without_info_string_ignored(self) -> None:
        tree = FencedBlockProvider().parse(["```", "plain", "```"], "markdown")
        assert tree.root.children == ()

    def test_unterminated_block_runs_to_end(self) -> None:
        tree = FencedBlockProvider().parse(["intro", "```sh", "ls", "pwd"], "markdown")
        (block,) = tree.root.children
        assert block.range == (2, 0, 4, 0)

    def test_shorter_fence_does_not_close(self) -> None:
        lines = ["````md", "```", "inner", "```", "````"]
        (block,) = FencedBlockProvider().parse(lines, "markdown").root.children
        assert block.range == (1, 0, 4, 0)

    def test_indented_fence_up_to_three_spaces(self) -> None:
        lines = ["- item", "   ```python", "   x = 1", "   ```"]
        (block,) = FencedBlockProvider().parse(lines, "markdown").root.children
        assert block.language == "python"
        assert block.range == (2, 0, 3, 0)

    def test_empty_text(self) -> None:
        tree = FencedBlockProvider().parse([], "markdown")
        assert tree.root.range == (0, 0, 0, 0)
        assert tree.root.children == ()


# ===========================================================================
# Provider lookup
# ===========================================================================


class TestGetProvider:
    def test_fenced_is_registered(self) -> None:
        assert "fenced" in syntax_providers
        assert isinstance(get_provider("fenced"), FencedBlockProvider)

    def test_unknown_provider(self) -> None:
        with pytest.raises(ParserUnavailableError) as exc_info:
            get_provider("no-such-language")
        assert exc_info.value.language == "no-such-language"
