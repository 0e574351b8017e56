"""Base node classes for the litpress template AST."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Node:
    """Base class for all AST nodes.

    All nodes track their 1-based line and 0-based column in the original
    template source (wrapping offsets already removed) for error reporting.
    Nodes are immutable.

    """

    lineno: int
    col_offset: int


@dataclass(frozen=True, slots=True)
class Expr(Node):
    """Base class for expressions."""
