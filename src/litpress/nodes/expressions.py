"""Expression nodes for the litpress template AST.

The set is closed: the parser lowers every JavaScript construct it meets
inside the entry template to one of these classes, and anything it does not
recognise becomes ``Opaque`` so the converter can reject it with context.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from litpress.nodes.base import Expr


@dataclass(frozen=True, slots=True)
class Name(Expr):
    """Bare identifier: ${item}"""

    name: str


@dataclass(frozen=True, slots=True)
class This(Expr):
    """The implicit component instance: this"""


@dataclass(frozen=True, slots=True)
class Getattr(Expr):
    """Property access: obj.attr (or obj?.attr)"""

    obj: Expr
    attr: str
    optional: bool = False


@dataclass(frozen=True, slots=True)
class Call(Expr):
    """Function or method call: func(args)"""

    func: Expr
    args: Sequence[Expr] = ()


@dataclass(frozen=True, slots=True)
class Arrow(Expr):
    """Arrow function with an expression body: (a, b) => body"""

    params: Sequence[str]
    body: Expr


@dataclass(frozen=True, slots=True)
class BinOp(Expr):
    """Binary operation: left op right (comparison or arithmetic)"""

    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class BoolOp(Expr):
    """Logical operation: left && right, left || right, left ?? right"""

    op: str
    left: Expr
    right: Expr


@dataclass(frozen=True, slots=True)
class CondExpr(Expr):
    """Conditional expression: test ? if_true : if_false"""

    test: Expr
    if_true: Expr
    if_false: Expr


@dataclass(frozen=True, slots=True)
class Group(Expr):
    """Parenthesized expression: (expr)"""

    expr: Expr


@dataclass(frozen=True, slots=True)
class Const(Expr):
    """Literal value: string, number, boolean, null.

    ``raw`` keeps the source spelling of numbers (``1e3``, ``0x1F``).
    """

    value: str | int | float | bool | None
    raw: str = ""


@dataclass(frozen=True, slots=True)
class TemplateLiteral(Expr):
    """Template literal body: chunks interleaved with expressions.

    ``chunks`` holds the raw text between interpolations, always one more
    item than ``expressions``.
    """

    chunks: Sequence[str]
    expressions: Sequence[Expr]

    def parts(self):
        """Yield ``(chunk, expression_or_None)`` pairs in source order."""
        for index, chunk in enumerate(self.chunks):
            yield chunk, self.expressions[index] if index < len(self.expressions) else None


@dataclass(frozen=True, slots=True)
class TaggedTemplate(Expr):
    """Tagged template: html`...`"""

    tag: str
    quasi: TemplateLiteral


@dataclass(frozen=True, slots=True)
class Opaque(Expr):
    """Any construct outside the supported set; ``kind`` is the parser's name."""

    kind: str
    source: str = ""
