"""Syntax-tree boundary.

Exports the tree types, the provider base class and registry, and the
built-in fenced code block provider.
"""
from __future__ import annotations

from pipefmt.syntax.tree import (
    NodeRange,
    SyntaxNode,
    SyntaxTree,
    SyntaxTreeProvider,
    get_provider,
    syntax_providers,
)
from pipefmt.syntax.fenced import FencedBlockProvider

__all__ = [
    "FencedBlockProvider",
    "NodeRange",
    "SyntaxNode",
    "SyntaxTree",
    "SyntaxTreeProvider",
    "get_provider",
    "syntax_providers",
]
