"""Control flow conversion for the litpress Converter.

Provides the mixin for the constructs that open a scope frame:

- ``this.items.map(item => html`...`)`` -> ``foreach`` block
- ``test ? html`...` : html`...``       -> ``if``/``else`` block
- ``test && html`...``                  -> ``if`` block

Loops and branches are lowered by one routine, ``_lower_block``, that is
parameterized by the frame kind.

Uses inline TYPE_CHECKING declarations for host attributes.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from litpress.compiler.context import BindingKind, FrameKind
from litpress.environment.exceptions import UnsupportedConstructError
from litpress.nodes import Arrow, BoolOp, Call, CondExpr, Const, Group, Node, TaggedTemplate

if TYPE_CHECKING:
    from litpress.compiler.context import ContextTracker
    from litpress.compiler.markup import MarkupCursor
    from litpress.nodes import Expr, TemplateLiteral

# (separator written before the branch, branch body, branch label)
Branch = tuple[str, Any, str]


class ControlFlowMixin:
    """Mixin for converting loops and conditionals.

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
        _cursor: MarkupCursor

        # From Converter core
        def _convert(self, node: Expr, label: str, *, test: bool = False) -> None: ...
        def _write(self, php: str) -> None: ...
        def _emit_text(self, chunk: str) -> None: ...
        def _emit_template(self, quasi: TemplateLiteral, label: str = "") -> None: ...
        def _where(self, node: Node) -> dict[str, Any]: ...

    def _lower_block(
        self,
        kind: FrameKind,
        head: Callable[[], None],
        branches: Sequence[Branch],
        closer: str,
        *,
        data: Mapping[str, Any] | None = None,
        bindings: Sequence[str] = (),
    ) -> None:
        """Write ``head``, each branch inside a ``kind`` frame, then ``closer``.

        Every branch starts from the markup position the block started at.
        """
        head()
        tracker = self._tracker
        tracker.enter_scope(kind, data)
        for name in bindings:
            tracker.bind_name(name, BindingKind.LOOP_ITEM)
        start = self._cursor.snapshot()
        for separator, body, label in branches:
            if separator:
                self._write(separator)
            self._cursor.restore(start)
            self._convert_subtemplate(body, label)
        tracker.exit_scope(kind)
        self._write(closer)

    def _convert_subtemplate(self, node: Expr, label: str) -> None:
        """Convert a loop body or branch: markup template, string or expression."""
        while isinstance(node, Group):
            node = node.expr
        if isinstance(node, TaggedTemplate) and node.tag == self._tag:
            self._emit_template(node.quasi, label)
        elif isinstance(node, Const) and isinstance(node.value, str):
            self._emit_text(node.value)
        else:
            self._convert(node, label)

    def _emit_condition(self, test: Expr, label: str) -> Callable[[], None]:
        def head() -> None:
            self._write("<?php if ( ")
            self._tracker.enter_generated_code_region()
            self._convert(test, f"{label}-test", test=True)
            self._tracker.exit_generated_code_region()
            self._write(" ) : ?>")

        return head

    def _convert_condexpr(self, node: CondExpr, label: str, bare: bool) -> None:
        if self._tracker.in_generated_code_region():
            # Native ternary inside an open <?php region
            self._tracker.enter_scope(FrameKind.CONDITIONAL)
            self._write("( ")
            self._convert(node.test, f"{label}-test", test=True)
            self._write(" ) ? ")
            self._convert(node.if_true, f"{label}-consequent", test=True)
            self._write(" : ")
            self._convert(node.if_false, f"{label}-alternate", test=True)
            self._tracker.exit_scope(FrameKind.CONDITIONAL)
            return

        branches: list[Branch] = [("", node.if_true, f"{label}-consequent")]
        if not _is_empty_string(node.if_false):
            branches.append(("<?php else : ?>", node.if_false, f"{label}-alternate"))
        self._lower_block(
            FrameKind.CONDITIONAL,
            self._emit_condition(node.test, label),
            branches,
            "<?php endif; ?>",
        )

    def _convert_guard(self, node: BoolOp, label: str) -> None:
        """``cond && html`...``` in markup: an if block without else."""
        self._lower_block(
            FrameKind.CONDITIONAL,
            self._emit_condition(node.left, label),
            [("", node.right, f"{label}-consequent")],
            "<?php endif; ?>",
        )

    def _convert_map(self, node: Call, array_name: str, label: str) -> None:
        """``this.<array>.map(item => body)`` -> foreach block."""
        tracker = self._tracker
        construct = f"this.{array_name}.map()"
        if tracker.in_generated_code_region():
            raise UnsupportedConstructError(
                construct,
                label,
                detail="Loops render markup and cannot appear inside a <?php region",
                component=tracker.component,
                **self._where(node),
            )
        tracker.require_visible(array_name, label, **self._where(node))

        callback = node.args[0] if len(node.args) == 1 else None
        if not isinstance(callback, Arrow) or len(callback.params) != 1:
            raise UnsupportedConstructError(
                construct,
                label,
                detail="Use a single-parameter arrow: this.items.map(item => html`...`)",
                component=tracker.component,
                **self._where(node),
            )
        item = callback.params[0]
        if tracker.is_visible(item):
            # PHP has no block scope: $item would overwrite the outer variable
            raise UnsupportedConstructError(
                construct,
                label,
                detail=f"Loop item '{item}' shadows a visible name; rename the arrow parameter",
                component=tracker.component,
                **self._where(node),
            )

        def head() -> None:
            self._write(f"<?php foreach ( ${array_name} as ${item} ) : ?>")

        self._lower_block(
            FrameKind.LOOP,
            head,
            [("", callback.body, "map-loop-body")],
            "<?php endforeach; ?>",
            data={"item": item, "array_name": array_name},
            bindings=(item,),
        )


def _is_empty_string(node: Any) -> bool:
    while isinstance(node, Group):
        node = node.expr
    return isinstance(node, Const) and node.value == ""
