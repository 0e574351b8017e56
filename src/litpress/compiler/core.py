"""litpress Converter core: main Converter class.

The Converter walks the entry template of a component and writes the
equivalent PHP fragment. Uses a mixin-based design for maintainability.

Design Principles:
1. **Single pass**: One depth-first walk; output is appended to a buffer and
   joined once at the end
2. **Fail fast**: The first error aborts the conversion; nothing is caught
3. **O(1) dispatch**: Dict-based node class -> handler lookup
4. **Explicit regions**: Literal ``<?php``/``?>`` markers are checked against
   the ContextTracker's region stack, never inferred from buffer contents

Output shape:
    ```
    <div class="card">                                    literal chunk
    <?php echo esc_html( $title ); ?>                     ${this.title}
    <?php foreach ( $items as $item ) : ?>                ${this.items.map(item => html`
      <li><?php echo esc_html( $item['name'] ); ?></li>     <li>${item.name}</li>
    <?php endforeach; ?>                                  `)}
    </div>
    ```

"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import Any

from litpress.compiler.context import BindingKind, ContextTracker, FrameKind
from litpress.compiler.control_flow import ControlFlowMixin
from litpress.compiler.escape import EscapeResolver
from litpress.compiler.expressions import ExpressionConversionMixin
from litpress.compiler.helpers import HelperCallMixin
from litpress.compiler.markup import MarkupCursor
from litpress.environment.exceptions import ScopeImbalanceError, build_source_snippet
from litpress.metadata import ComponentMetadata, EscapePolicy
from litpress.nodes import Expr, Node, TaggedTemplate, TemplateLiteral
from litpress.parser import Parser
from litpress.utils.constants import DEFAULT_RESULT_COUNT_LABELS, DEFAULT_STAR_COUNT

logger = logging.getLogger(__name__)

# Region markers in markup text.
_MARKUP_MARKERS = re.compile(r"<\?php|\?>")

# Markers inside a <?php region. Quoted PHP strings match first so markers
# inside them are skipped; a string cut by an interpolation is not skipped.
# Group 1/2: array and item names of a textual foreach.
_CODE_MARKERS = re.compile(
    r"'(?:[^'\\]|\\.)*'|\"(?:[^\"\\]|\\.)*\""
    r"|<\?php|\?>|\bendforeach\b|\bforeach\s*\(\s*\$(\w+)\s+as\s+\$(\w+)|\bendif\b|\bif\s*\("
)


class Converter(
    ExpressionConversionMixin,
    ControlFlowMixin,
    HelperCallMixin,
):
    """Convert a Lit ``html`` template to a WordPress PHP fragment.

    Attributes:
        _entry_point: Entry method override; None uses the metadata's
        _tag: Template tag of markup templates
        _result_count_labels: Zero/one/many labels for formatResultCount()
        _star_count: Number of stars rendered by renderStars()
        _buf: Output buffer of the running conversion
        _tracker: ContextTracker of the running conversion
        _escape: EscapeResolver of the running conversion
        _cursor: MarkupCursor of the running conversion

    Node Dispatch:
        Uses O(1) dict lookup for node class -> handler:
            ```python
            dispatch = {
                "Name": self._convert_name,
                "Getattr": self._convert_getattr,
                "CondExpr": self._convert_condexpr,
                ...
            }
            handler = dispatch[type(node).__name__]
            ```

    Example:
        >>> from litpress.metadata import ComponentMetadata
        >>> meta = ComponentMetadata.from_dict(
        ...     {"parameters": [{"name": "title", "escape": "html"}]}, name="hero"
        ... )
        >>> Converter().convert("<div>${this.title}</div>", meta)
        '<div><?php echo esc_html( $title ); ?></div>'

    """

    __slots__ = (
        "_buf",
        "_cursor",
        "_entry_point",
        "_escape",
        "_metadata",
        "_node_dispatch",
        "_result_count_labels",
        "_source",
        "_star_count",
        "_tag",
        "_tracker",
    )

    def __init__(
        self,
        *,
        entry_point: str | None = None,
        template_tag: str = "html",
        result_count_labels: tuple[str, str, str] = DEFAULT_RESULT_COUNT_LABELS,
        star_count: int = DEFAULT_STAR_COUNT,
    ):
        self._entry_point = entry_point
        self._tag = template_tag
        self._result_count_labels = result_count_labels
        self._star_count = star_count
        self._buf: list[str] = []
        self._source = ""
        self._metadata = ComponentMetadata(name="")
        self._tracker = ContextTracker()
        self._escape = EscapeResolver(self._metadata)
        self._cursor = MarkupCursor()
        self._node_dispatch = self._get_node_dispatch()

    def convert(self, source: str, metadata: ComponentMetadata) -> str:
        """Convert raw template source (the text between the backticks).

        Args:
            source: Template body, e.g. ``<div>${this.title}</div>``
            metadata: Declared parameters and escape policies

        Returns:
            PHP fragment text

        Raises:
            ConversionError: Any subclass; the conversion is all-or-nothing
        """
        parser = self._parser_for(metadata)
        entry = parser.parse_template(source, component=metadata.name)
        return self._convert_entry(entry, metadata, source)

    def convert_component(self, module_source: str, metadata: ComponentMetadata) -> str:
        """Convert a whole component module (its entry method's template)."""
        parser = self._parser_for(metadata)
        entry = parser.parse_component(module_source, component=metadata.name)
        return self._convert_entry(entry, metadata, module_source)

    def _parser_for(self, metadata: ComponentMetadata) -> Parser:
        return Parser(
            entry_point=self._entry_point or metadata.entry_point,
            template_tag=self._tag,
        )

    def _convert_entry(self, entry: TaggedTemplate, metadata: ComponentMetadata, source: str) -> str:
        # Fresh per-call state
        self._buf = []
        self._source = source
        self._metadata = metadata
        self._tracker = ContextTracker(metadata.parameter_names, component=metadata.name)
        self._escape = EscapeResolver(metadata)
        self._cursor = MarkupCursor()

        logger.debug("Converting %s (%d parameters)", metadata.name, len(metadata.parameters))
        self._tracker.enter_scope(FrameKind.TEMPLATE)
        self._emit_template(entry.quasi)
        self._tracker.exit_scope(FrameKind.TEMPLATE)
        self._tracker.finish()
        return "".join(self._buf)

    def _get_node_dispatch(self) -> dict[str, Callable[[Any, str, bool], None]]:
        return {
            "Name": self._convert_name,
            "This": self._convert_this,
            "Getattr": self._convert_getattr,
            "Call": self._convert_call,
            "Arrow": self._convert_unsupported,
            "BinOp": self._convert_binop,
            "BoolOp": self._convert_binop,
            "CondExpr": self._convert_condexpr,
            "Group": self._convert_group,
            "Const": self._convert_const,
            "TemplateLiteral": self._convert_unsupported,
            "TaggedTemplate": self._convert_tagged_template,
            "Opaque": self._convert_unsupported,
        }

    def _convert(self, node: Expr, label: str, *, test: bool = False) -> None:
        """Convert one expression.

        ``test`` marks condition operands: they are written bare (``$x``)
        even though the caller may not be inside a code region yet.
        """
        bare = test or self._tracker.in_generated_code_region()
        handler = self._node_dispatch[type(node).__name__]
        handler(node, label, bare)

    # ── output ────────────────────────────────────────────────────────────

    def _write(self, php: str) -> None:
        """Append generated PHP. Never scanned for markers."""
        self._buf.append(php)

    def _echo(self, php_expr: str, policy: EscapePolicy | None) -> None:
        function = policy.function if policy is not None else None
        if function is None:
            self._write(f"<?php echo {php_expr}; ?>")
        else:
            self._write(f"<?php echo {function}( {php_expr} ); ?>")

    def _emit_template(self, quasi: TemplateLiteral, label: str = "") -> None:
        prefix = f"{label}-" if label else ""
        for index, (chunk, expr) in enumerate(quasi.parts()):
            self._emit_text(chunk)
            if expr is not None:
                self._convert_interpolation(expr, f"{prefix}expression_{index}")

    def _convert_interpolation(self, expr: Expr, label: str) -> None:
        in_code = self._tracker.in_generated_code_region()
        self._convert(expr, label)
        if not in_code:
            self._cursor.interpolated()

    def _emit_text(self, chunk: str) -> None:
        """Emit literal template text and replay its markers on the trackers.

        Markup outside ``<?php`` regions feeds the MarkupCursor. Inside a
        region, ``foreach``/``endforeach`` and ``if (``/``endif`` open and
        close frames so later interpolations see the loop variable.
        """
        if not chunk:
            return
        self._buf.append(chunk)
        tracker = self._tracker
        pos = 0
        while True:
            in_code = tracker.in_generated_code_region()
            pattern = _CODE_MARKERS if in_code else _MARKUP_MARKERS
            match = pattern.search(chunk, pos)
            if match is None:
                break
            token = match.group(0)
            if not in_code:
                self._cursor.feed(chunk[pos : match.start()])
            pos = match.end()

            if token[0] in "'\"":
                continue
            if token == "<?php":
                if in_code:
                    raise ScopeImbalanceError(
                        "'<?php' inside an open <?php region", component=tracker.component
                    )
                tracker.enter_generated_code_region()
            elif token == "?>":
                if not in_code:
                    raise ScopeImbalanceError(
                        "'?>' without a matching '<?php' in template text",
                        component=tracker.component,
                    )
                tracker.exit_generated_code_region()
            elif token == "endforeach":
                tracker.exit_scope(FrameKind.LOOP)
            elif match.group(1):
                array_name, item = match.group(1), match.group(2)
                tracker.require_visible(array_name, "template-foreach")
                tracker.enter_scope(FrameKind.LOOP, {"item": item, "array_name": array_name})
                tracker.bind_name(item, BindingKind.LOOP_ITEM)
            elif token == "endif":
                tracker.exit_scope(FrameKind.CONDITIONAL)
            else:
                tracker.enter_scope(FrameKind.CONDITIONAL)

        if not tracker.in_generated_code_region():
            self._cursor.feed(chunk[pos:])

    def _where(self, node: Node) -> dict[str, Any]:
        """lineno/snippet keyword arguments for an error about ``node``."""
        return {
            "lineno": node.lineno,
            "snippet": build_source_snippet(self._source, node.lineno, column=node.col_offset),
        }
