"""Call conversion for the litpress Converter.

Two call shapes are supported:

- ``this.<array>.map(callback)``: handed to ControlFlowMixin._convert_map
- ``this.<helper>()``: component helpers with a fixed PHP rendering
  (``formatResultCount``, ``getCurrentYear``, ``renderStars``)

Any other call is an UnsupportedConstructError.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from litpress.compiler.wrapper import php_string
from litpress.environment.exceptions import MissingLoopContextError, UnsupportedConstructError
from litpress.nodes import Call, Getattr, Name, This
from litpress.utils.constants import (
    HELPER_METHODS,
    RESULT_COUNT_PARAMETER,
    STAR_EMPTY,
    STAR_FIELD,
    STAR_FULL,
)

if TYPE_CHECKING:
    from litpress.compiler.context import ContextTracker
    from litpress.compiler.escape import EscapeResolver
    from litpress.compiler.markup import MarkupCursor
    from litpress.nodes import Expr, Node


class HelperCallMixin:
    """Mixin for converting method calls.

    Host attributes and cross-mixin dependencies are declared via inline
    TYPE_CHECKING blocks.

    """

    # ─────────────────────────────────────────────────────────────────────────
    # Host attributes and cross-mixin dependencies (type-check only)
    # ─────────────────────────────────────────────────────────────────────────
    if TYPE_CHECKING:
        # Host attributes (from Converter.__init__ / _convert_entry)
        _tracker: ContextTracker
        _escape: EscapeResolver
        _cursor: MarkupCursor
        _result_count_labels: tuple[str, str, str]
        _star_count: int

        # From Converter core
        def _write(self, php: str) -> None: ...
        def _where(self, node: Node) -> dict[str, Any]: ...

        # From ExpressionConversionMixin
        def _php_reference(self, node: Expr, label: str) -> tuple[str, str, str | None]: ...
        def _require_plain_access(self, node: Getattr, label: str) -> None: ...

        # From ControlFlowMixin
        def _convert_map(self, node: Call, array_name: str, label: str) -> None: ...

    def _convert_call(self, node: Call, label: str, bare: bool) -> None:
        func = node.func
        if isinstance(func, Getattr):
            self._require_plain_access(func, label)
            if isinstance(func.obj, Getattr):
                self._require_plain_access(func.obj, label)
        if isinstance(func, Getattr) and isinstance(func.obj, This) and func.attr in HELPER_METHODS:
            if self._tracker.in_generated_code_region():
                raise UnsupportedConstructError(
                    f"this.{func.attr}()",
                    label,
                    detail="Helpers render markup and cannot appear inside a <?php region",
                    component=self._tracker.component,
                    **self._where(node),
                )
            {
                "formatResultCount": self._helper_result_count,
                "getCurrentYear": self._helper_current_year,
                "renderStars": self._helper_stars,
            }[func.attr](node, label)
            return

        if (
            isinstance(func, Getattr)
            and func.attr == "map"
            and isinstance(func.obj, Getattr)
            and isinstance(func.obj.obj, This)
        ):
            self._convert_map(node, func.obj.attr, label)
            return

        raise UnsupportedConstructError(
            f"{_callee(func)}()",
            label,
            detail="Supported calls: this.<array>.map(item => html`...`) and the helpers "
            + ", ".join(f"this.{name}()" for name in sorted(HELPER_METHODS)),
            component=self._tracker.component,
            **self._where(node),
        )

    def _helper_result_count(self, node: Call, label: str) -> None:
        """Pluralized result count over ``totalResults``.

        Every branch is echoed through the policy resolved for
        ``totalResults`` at the helper's position, so a label inside an
        attribute value gets ``esc_attr``.
        """
        self._tracker.require_visible(RESULT_COUNT_PARAMETER, label, **self._where(node))
        attribute = self._cursor.attribute_name
        function = self._escape.resolve(
            RESULT_COUNT_PARAMETER,
            is_attribute=attribute is not None,
            attribute_name=attribute or "",
            lineno=node.lineno,
        ).function
        var = f"${RESULT_COUNT_PARAMETER}"

        def echo(template: str) -> str:
            value = _format_label(template, var)
            return f"echo {function}( {value} );" if function else f"echo {value};"

        zero, one, many = self._result_count_labels
        self._write(
            f"<?php if ( 0 === (int) {var} ) {{ {echo(zero)} }} "
            f"elseif ( 1 === (int) {var} ) {{ {echo(one)} }} "
            f"else {{ {echo(many)} }} ?>"
        )

    def _helper_current_year(self, node: Call, label: str) -> None:
        self._write("<?php echo date( 'Y' ); ?>")

    def _helper_stars(self, node: Call, label: str) -> None:
        """Star rating for the current loop item (``rating`` unless an item field is passed)."""
        item = self._tracker.current_loop_binding()
        if item is None:
            raise MissingLoopContextError(
                "this.renderStars()",
                label,
                component=self._tracker.component,
                **self._where(node),
            )
        rating = f"${item}[{php_string(STAR_FIELD)}]"
        if len(node.args) == 1 and isinstance(node.args[0], (Getattr, Name)):
            rating, _, _ = self._php_reference(node.args[0], label)
        self._write(
            f"<?php for ( $i = 1; $i <= {self._star_count}; $i++ ) : ?>"
            f"<span class=\"star\"><?php echo $i <= {rating} ? '{STAR_FULL}' : '{STAR_EMPTY}'; ?></span>"
            "<?php endfor; ?>"
        )


def _format_label(template: str, var: str) -> str:
    """PHP expression for a label with ``{count}`` placeholders."""
    pieces = template.split("{count}")
    parts: list[str] = []
    for index, piece in enumerate(pieces):
        if piece:
            parts.append(php_string(piece))
        if index < len(pieces) - 1:
            parts.append(var)
    return " . ".join(parts) if parts else "''"


def _callee(func: Any) -> str:
    if isinstance(func, Getattr):
        return f"{_callee(func.obj)}.{func.attr}"
    if isinstance(func, This):
        return "this"
    if isinstance(func, Name):
        return func.name
    return type(func).__name__
