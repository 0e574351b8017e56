"""litpress AST nodes.

Immutable, slotted dataclasses produced by ``litpress.parser`` and consumed
by ``litpress.compiler``.
"""

from litpress.nodes.base import Expr, Node
from litpress.nodes.expressions import (
    Arrow,
    BinOp,
    BoolOp,
    Call,
    CondExpr,
    Const,
    Getattr,
    Group,
    Name,
    Opaque,
    TaggedTemplate,
    TemplateLiteral,
    This,
)

# Every concrete expression class; the converter's dispatch table must cover these.
EXPRESSION_TYPES: tuple[type[Expr], ...] = (
    Arrow,
    BinOp,
    BoolOp,
    Call,
    CondExpr,
    Const,
    Getattr,
    Group,
    Name,
    Opaque,
    TaggedTemplate,
    TemplateLiteral,
    This,
)

__all__ = [
    "EXPRESSION_TYPES",
    "Arrow",
    "BinOp",
    "BoolOp",
    "Call",
    "CondExpr",
    "Const",
    "Expr",
    "Getattr",
    "Group",
    "Name",
    "Node",
    "Opaque",
    "TaggedTemplate",
    "TemplateLiteral",
    "This",
]
