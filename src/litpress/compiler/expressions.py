"""Expression conversion for the litpress Converter.

Provides the mixin for value-producing nodes: names, property reads,
literals, groups and operators.

Every handler takes ``(node, label, bare)``. ``bare`` is True inside a code
region or a condition: the value is written as a PHP expression (``$x``)
instead of an escaped echo statement.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from litpress.compiler.context import FrameKind
from litpress.compiler.wrapper import php_string
from litpress.environment.exceptions import (
    MissingLoopContextError,
    UnsupportedConstructError,
)
from litpress.nodes import (
    BinOp,
    BoolOp,
    Const,
    Getattr,
    Group,
    Name,
    Node,
    Opaque,
    TaggedTemplate,
    This,
)

if TYPE_CHECKING:
    from litpress.compiler.context import ContextTracker
    from litpress.compiler.escape import EscapeResolver
    from litpress.compiler.markup import MarkupCursor
    from litpress.metadata import EscapePolicy
    from litpress.nodes import Expr

logger = logging.getLogger(__name__)


class ExpressionConversionMixin:
    """Mixin for converting expressions.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.

    """

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        # Host attributes (from Converter.__init__ / _convert_entry)
        _tag: str
        _tracker: ContextTracker
        _escape: EscapeResolver
        _cursor: MarkupCursor

        # From Converter core
        def _convert(self, node: Expr, label: str, *, test: bool = False) -> None: ...
        def _write(self, php: str) -> None: ...
        def _echo(self, php_expr: str, policy: EscapePolicy | None) -> None: ...
        def _emit_text(self, chunk: str) -> None: ...
        def _where(self, node: Node) -> dict[str, Any]: ...

        # From ControlFlowMixin
        def _convert_guard(self, node: BoolOp, label: str) -> None: ...

    def _emit_value(
        self,
        php_expr: str,
        field_name: str,
        node: Node,
        bare: bool,
        *,
        array_name: str | None = None,
    ) -> None:
        """Write a value bare, or echo it through its resolved escaping function."""
        if bare:
            self._write(php_expr)
            return
        attribute = self._cursor.attribute_name
        resolution = self._escape.resolve(
            field_name,
            is_attribute=attribute is not None,
            attribute_name=attribute or "",
            array_name=array_name,
            lineno=node.lineno,
        )
        self._echo(php_expr, resolution.policy)

    def _php_reference(self, node: Expr, label: str) -> tuple[str, str, str | None]:
        """Resolve a readable reference to ``(php_expr, field_name, array_name)``.

        - ``this.x``  -> ``$x`` (a component parameter)
        - ``item.f``  -> ``$item['f']`` (a field of the current loop item)
        - ``item``    -> ``$item``

        Raises:
            MissingLoopContextError: ``item.f`` with no enclosing loop
            UnresolvedVariableError: The name is not visible
            UnsupportedConstructError: Any other shape
        """
        tracker = self._tracker
        if isinstance(node, Getattr):
            self._require_plain_access(node, label)
        if isinstance(node, Getattr) and isinstance(node.obj, This):
            tracker.require_visible(node.attr, label, **self._where(node))
            return f"${node.attr}", node.attr, None

        if isinstance(node, Getattr) and isinstance(node.obj, Name):
            owner = node.obj.name
            expression = f"{owner}.{node.attr}"
            if tracker.current_loop_binding() is None:
                raise MissingLoopContextError(
                    expression, label, component=tracker.component, **self._where(node)
                )
            tracker.require_visible(owner, label, **self._where(node))
            frame = tracker.binding_frame(owner)
            if frame is None or frame.kind is not FrameKind.LOOP:
                raise UnsupportedConstructError(
                    expression,
                    label,
                    detail="Property reads are supported on this and on loop items only",
                    component=tracker.component,
                    **self._where(node),
                )
            return f"${owner}[{php_string(node.attr)}]", node.attr, frame.data.get("array_name")

        if isinstance(node, Name):
            tracker.require_visible(node.name, label, **self._where(node))
            frame = tracker.binding_frame(node.name)
            if frame is not None and frame.kind is FrameKind.LOOP:
                # A whole loop item is encoded with its array's policy
                return f"${node.name}", frame.data.get("array_name", node.name), None
            return f"${node.name}", node.name, None

        raise UnsupportedConstructError(
            _describe(node),
            label,
            detail="Expected this.<name>, <item>.<field> or <item>",
            component=tracker.component,
            **self._where(node),
        )

    def _convert_name(self, node: Name, label: str, bare: bool) -> None:
        php_expr, field_name, array_name = self._php_reference(node, label)
        self._emit_value(php_expr, field_name, node, bare, array_name=array_name)

    def _convert_getattr(self, node: Getattr, label: str, bare: bool) -> None:
        self._require_plain_access(node, label)
        if node.attr == "length" and not isinstance(node.obj, This):
            php_expr, _, _ = self._php_reference(node.obj, label)
            # Counts are integers: echoed without an escaping function
            if bare:
                self._write(f"count( {php_expr} )")
            else:
                self._echo(f"count( {php_expr} )", None)
            return
        php_expr, field_name, array_name = self._php_reference(node, label)
        self._emit_value(php_expr, field_name, node, bare, array_name=array_name)

    def _require_plain_access(self, node: Getattr, label: str) -> None:
        if node.optional:
            raise UnsupportedConstructError(
                "optional chaining",
                label,
                detail="Use plain property access: this.x or item.field",
                component=self._tracker.component,
                **self._where(node),
            )

    def _convert_const(self, node: Const, label: str, bare: bool) -> None:
        value = node.value
        if value is None or isinstance(value, bool):
            if not bare:
                raise UnsupportedConstructError(
                    f"literal {node.raw or repr(value)}",
                    label,
                    detail="Boolean and null literals are only supported in conditions",
                    component=self._tracker.component,
                    **self._where(node),
                )
            self._write("null" if value is None else ("true" if value else "false"))
        elif isinstance(value, (int, float)):
            text = node.raw or str(value)
            if bare:
                self._write(text)
            else:
                self._emit_text(text)
        elif bare:
            self._write(php_string(value))
        else:
            self._emit_text(value)

    def _convert_group(self, node: Group, label: str, bare: bool) -> None:
        if not bare:
            self._convert(node.expr, label)
            return
        self._write("( ")
        self._convert(node.expr, label, test=True)
        self._write(" )")

    def _convert_binop(self, node: BinOp | BoolOp, label: str, bare: bool) -> None:
        if not bare:
            if isinstance(node, BoolOp) and node.op == "&&" and _is_markup(node.right, self._tag):
                self._convert_guard(node, label)
                return
            raise UnsupportedConstructError(
                f"'{node.op}' expression",
                label,
                detail="Operators are supported in conditions; use cond && html`...` "
                "or a ternary to render markup conditionally",
                component=self._tracker.component,
                **self._where(node),
            )
        self._convert(node.left, f"{label}-left", test=True)
        self._write(f" {node.op} ")
        self._convert(node.right, f"{label}-right", test=True)

    def _convert_tagged_template(self, node: TaggedTemplate, label: str, bare: bool) -> None:
        if node.tag != self._tag or bare:
            raise UnsupportedConstructError(
                f"{node.tag}`...`",
                label,
                detail=f"Only {self._tag} templates in markup are supported",
                component=self._tracker.component,
                **self._where(node),
            )
        # Nested templates are rendered through loops and branches only
        logger.debug("Skipping directly interpolated %s template in %s", node.tag, label)

    def _convert_this(self, node: This, label: str, bare: bool) -> None:
        self._convert_unsupported(node, label, bare)

    def _convert_unsupported(self, node: Expr, label: str, bare: bool) -> None:
        raise UnsupportedConstructError(
            _describe(node),
            label,
            component=self._tracker.component,
            **self._where(node),
        )


def _describe(node: Any) -> str:
    if isinstance(node, Opaque):
        return node.kind
    if isinstance(node, This):
        return "this"
    return type(node).__name__


def _is_markup(node: Any, tag: str) -> bool:
    while isinstance(node, Group):
        node = node.expr
    return isinstance(node, TaggedTemplate) and node.tag == tag
