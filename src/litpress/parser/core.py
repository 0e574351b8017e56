"""Source parser: tree-sitter JavaScript tree -> litpress AST.

Parsing itself is delegated to ``tree-sitter`` with the JavaScript grammar.
This module only does three things on top of it:

1. **Wrap** raw template text in a function named after the entry point so the
   grammar accepts it as a standalone expression.
2. **Locate** the one entry template: an ``html`` tagged template returned
   from the function or method named by the entry point.
3. **Lower** that template's sub-tree into the closed set of node classes in
   ``litpress.nodes``. Nothing outside the entry template is lowered.

Example:
    >>> parser = Parser()
    >>> entry = parser.parse_template("<h1>${this.title}</h1>")
    >>> entry.quasi.chunks
    ('<h1>', '</h1>')

"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator

import tree_sitter_javascript
from tree_sitter import Language, Node as TSNode, Parser as TSParser

from litpress.environment.exceptions import ParseError, build_source_snippet
from litpress.nodes import (
    Arrow,
    BinOp,
    BoolOp,
    Call,
    CondExpr,
    Const,
    Expr,
    Getattr,
    Group,
    Name,
    Opaque,
    TaggedTemplate,
    TemplateLiteral,
    This,
)
from litpress.utils.constants import LOGICAL_OPERATORS

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tree_sitter_javascript.language())

# Nodes that define a named callable whose body may return the entry template
_FUNCTION_TYPES = frozenset(
    {"function_declaration", "function_expression", "function", "method_definition",
     "generator_function_declaration"}
)
# Nodes that bind a name to an arrow function: render = () => html`...`
_BINDING_TYPES = frozenset({"variable_declarator", "field_definition", "public_field_definition", "pair"})
# Return statements inside these belong to a nested function, not the entry method
_SCOPE_BARRIERS = _FUNCTION_TYPES | frozenset({"arrow_function", "class", "class_declaration"})

_SIMPLE_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "b": "\b",
    "f": "\f",
    "v": "\v",
    "0": "\0",
}


class Parser:
    """Parse template or component source and return its entry template.

    Attributes:
        _entry_point: Name of the method whose returned template is converted
        _tag: Template tag that marks markup templates (``html``)
        _ts: Underlying tree-sitter parser

    Thread-Safety:
        A Parser keeps no per-parse state on the instance beyond the
        tree-sitter parser; use one instance per thread.

    """

    __slots__ = ("_entry_point", "_tag", "_ts")

    def __init__(self, *, entry_point: str = "render", template_tag: str = "html"):
        self._entry_point = entry_point
        self._tag = template_tag
        self._ts = TSParser(JS_LANGUAGE)

    @property
    def entry_point(self) -> str:
        return self._entry_point

    def parse_template(self, source: str, *, component: str | None = None) -> TaggedTemplate:
        """Parse raw template text (the body between the backticks).

        The text is wrapped as ``function <entry>() { return html`...`; }``
        before parsing; reported positions refer to the unwrapped text.
        """
        prefix = f"function {self._entry_point}() {{ return {self._tag}`"
        wrapped = f"{prefix}{source}`; }}"
        return self._parse(wrapped, source, component=component, col_shift=len(prefix))

    def parse_component(self, source: str, *, component: str | None = None) -> TaggedTemplate:
        """Parse a whole component module (class with a render method)."""
        return self._parse(source, source, component=component, col_shift=0)

    def _parse(
        self,
        code: str,
        original: str,
        *,
        component: str | None,
        col_shift: int,
    ) -> TaggedTemplate:
        data = code.encode("utf-8")
        tree = self._ts.parse(data)
        lowering = _Lowering(data, original, component, col_shift, self._tag)

        if tree.root_node.has_error:
            bad = _first_error(tree.root_node) or tree.root_node
            lineno, col = lowering.position(bad)
            what = f"missing {bad.type}" if bad.is_missing else "unexpected syntax"
            raise ParseError(
                f"Invalid template source: {what}",
                component=component,
                lineno=lineno,
                col_offset=col,
                snippet=build_source_snippet(original, lineno, column=col),
                suggestion="Check for unbalanced backticks, braces or ${ } in the template",
            )

        candidates = list(self._entry_templates(tree.root_node))
        if not candidates:
            raise ParseError(
                f"No {self._tag}`...` template returned from '{self._entry_point}()'",
                component=component,
                suggestion=f"The entry method '{self._entry_point}' must return a {self._tag} template",
            )
        if len(candidates) > 1:
            lines = ", ".join(str(lowering.position(c)[0]) for c in candidates)
            raise ParseError(
                f"Ambiguous entry: {len(candidates)} {self._tag} templates returned from "
                f"'{self._entry_point}()' (lines {lines})",
                component=component,
                suggestion="Return exactly one template from the entry method, "
                "or set 'entryPoint' in the component metadata",
            )

        logger.debug("Entry template for %s found in %s()", component, self._entry_point)
        return lowering.lower_tagged(candidates[0])

    def _entry_templates(self, root: TSNode) -> Iterator[TSNode]:
        for node in _walk(root):
            if node.type in _FUNCTION_TYPES:
                name = node.child_by_field_name("name")
                if name is None or _text(name) != self._entry_point:
                    continue
                body = node.child_by_field_name("body")
                if body is None:
                    continue
                for ret in _returns(body):
                    value = _unwrap(_first_named(ret))
                    if value is not None and self._is_markup_template(value):
                        yield value
            elif node.type in _BINDING_TYPES:
                key = (
                    node.child_by_field_name("name")
                    or node.child_by_field_name("property")
                    or node.child_by_field_name("key")
                )
                value = node.child_by_field_name("value")
                if key is None or value is None or _text(key) != self._entry_point:
                    continue
                if value.type != "arrow_function":
                    continue
                body = value.child_by_field_name("body")
                if body is None:
                    continue
                if body.type == "statement_block":
                    candidates = (_unwrap(_first_named(r)) for r in _returns(body))
                else:
                    candidates = iter([_unwrap(body)])
                for candidate in candidates:
                    if candidate is not None and self._is_markup_template(candidate):
                        yield candidate

    def _is_markup_template(self, node: TSNode) -> bool:
        if node.type != "call_expression":
            return False
        func = node.child_by_field_name("function")
        args = node.child_by_field_name("arguments")
        return (
            func is not None
            and func.type == "identifier"
            and _text(func) == self._tag
            and args is not None
            and args.type == "template_string"
        )


class _Lowering:
    """Convert tree-sitter nodes to litpress nodes (one instance per parse)."""

    __slots__ = ("_component", "_data", "_dispatch", "_original", "_shift", "_tag")

    def __init__(
        self,
        data: bytes,
        original: str,
        component: str | None,
        col_shift: int,
        tag: str,
    ):
        self._data = data
        self._original = original
        self._component = component
        self._shift = col_shift
        self._tag = tag
        self._dispatch: dict[str, Callable[[TSNode], Expr]] = {
            "identifier": self._lower_identifier,
            "this": self._lower_this,
            "member_expression": self._lower_member,
            "call_expression": self._lower_call,
            "arrow_function": self._lower_arrow,
            "binary_expression": self._lower_binary,
            "ternary_expression": self._lower_ternary,
            "parenthesized_expression": self._lower_parenthesized,
            "string": self._lower_string,
            "number": self._lower_number,
            "true": self._lower_keyword,
            "false": self._lower_keyword,
            "null": self._lower_keyword,
            "template_string": self._lower_template,
        }

    def position(self, node: TSNode) -> tuple[int, int]:
        """1-based line and 0-based character column in the unwrapped source."""
        row = node.start_point[0]
        # start_point counts bytes; snippets count characters
        line_start = self._data.rfind(b"\n", 0, node.start_byte) + 1
        column = len(self._data[line_start : node.start_byte].decode("utf-8", errors="replace"))
        if row == 0:
            column = max(0, column - self._shift)
        return row + 1, column

    def text(self, node: TSNode) -> str:
        return self._data[node.start_byte : node.end_byte].decode("utf-8")

    def lower(self, node: TSNode) -> Expr:
        handler = self._dispatch.get(node.type)
        if handler is None:
            lineno, col = self.position(node)
            return Opaque(lineno, col, kind=node.type, source=self.text(node))
        return handler(node)

    def lower_tagged(self, node: TSNode) -> TaggedTemplate:
        """Lower a ``tag`...``` call whose tag is a plain identifier."""
        lineno, col = self.position(node)
        func = node.child_by_field_name("function")
        args = node.child_by_field_name("arguments")
        if func is None or args is None or args.type != "template_string":
            raise ParseError(
                f"Malformed tagged template: {self.text(node)}",
                component=self._component,
                lineno=lineno,
                col_offset=col,
            )
        return TaggedTemplate(lineno, col, tag=self.text(func), quasi=self._lower_template(args))

    def _lower_identifier(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        return Name(lineno, col, name=self.text(node))

    def _lower_this(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        return This(lineno, col)

    def _lower_member(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None or prop.type != "property_identifier":
            return Opaque(lineno, col, kind="computed member_expression", source=self.text(node))
        optional = any(child.type == "optional_chain" for child in node.children)
        return Getattr(lineno, col, obj=self.lower(obj), attr=self.text(prop), optional=optional)

    def _lower_call(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        func = node.child_by_field_name("function")
        args = node.child_by_field_name("arguments")
        if func is None or args is None:
            return Opaque(lineno, col, kind="call_expression", source=self.text(node))
        if args.type == "template_string":
            if func.type != "identifier":
                return Opaque(lineno, col, kind="tagged template", source=self.text(node))
            return self.lower_tagged(node)
        return Call(
            lineno,
            col,
            func=self.lower(func),
            args=tuple(self.lower(arg) for arg in _named(args)),
        )

    def _lower_arrow(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        single = node.child_by_field_name("parameter")
        if single is not None:
            params: tuple[str, ...] = (self.text(single),)
        else:
            formal = node.child_by_field_name("parameters")
            names = []
            for param in _named(formal) if formal is not None else ():
                if param.type != "identifier":
                    return Opaque(
                        lineno, col, kind=f"arrow_function {param.type} parameter",
                        source=self.text(node),
                    )
                names.append(self.text(param))
            params = tuple(names)
        body = node.child_by_field_name("body")
        if body is None or body.type == "statement_block":
            return Opaque(lineno, col, kind="arrow_function block body", source=self.text(node))
        return Arrow(lineno, col, params=params, body=self.lower(body))

    def _lower_binary(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        left = node.child_by_field_name("left")
        right = node.child_by_field_name("right")
        operator = node.child_by_field_name("operator")
        if left is None or right is None or operator is None:
            return Opaque(lineno, col, kind="binary_expression", source=self.text(node))
        op = self.text(operator)
        cls = BoolOp if op in LOGICAL_OPERATORS else BinOp
        return cls(lineno, col, op=op, left=self.lower(left), right=self.lower(right))

    def _lower_ternary(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        test = node.child_by_field_name("condition")
        if_true = node.child_by_field_name("consequence")
        if_false = node.child_by_field_name("alternative")
        if test is None or if_true is None or if_false is None:
            return Opaque(lineno, col, kind="ternary_expression", source=self.text(node))
        return CondExpr(
            lineno,
            col,
            test=self.lower(test),
            if_true=self.lower(if_true),
            if_false=self.lower(if_false),
        )

    def _lower_parenthesized(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        inner = _first_named(node)
        if inner is None:
            return Opaque(lineno, col, kind="parenthesized_expression", source=self.text(node))
        return Group(lineno, col, expr=self.lower(inner))

    def _lower_string(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        parts: list[str] = []
        for child in node.named_children:
            if child.type == "escape_sequence":
                parts.append(_decode_escape(self.text(child)))
            else:
                parts.append(self.text(child))
        return Const(lineno, col, value="".join(parts), raw=self.text(node))

    def _lower_number(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        raw = self.text(node)
        value: int | float | str
        try:
            value = int(raw, 0)
        except ValueError:
            try:
                value = float(raw)
            except ValueError:
                value = raw
        return Const(lineno, col, value=value, raw=raw)

    def _lower_keyword(self, node: TSNode) -> Expr:
        lineno, col = self.position(node)
        value = {"true": True, "false": False, "null": None}[node.type]
        return Const(lineno, col, value=value, raw=node.type)

    def _lower_template(self, node: TSNode) -> TemplateLiteral:
        """Split a template_string into raw chunks and lowered expressions.

        Chunks are sliced from the source bytes between substitutions, so
        escape sequences stay exactly as written.
        """
        lineno, col = self.position(node)
        chunks: list[str] = []
        expressions: list[Expr] = []
        cursor = node.start_byte + 1
        for child in node.children:
            if child.type != "template_substitution":
                continue
            chunks.append(self._data[cursor : child.start_byte].decode("utf-8"))
            inner = _first_named(child)
            if inner is None:
                sub_line, sub_col = self.position(child)
                expressions.append(Opaque(sub_line, sub_col, kind="empty substitution"))
            else:
                expressions.append(self.lower(inner))
            cursor = child.end_byte
        chunks.append(self._data[cursor : node.end_byte - 1].decode("utf-8"))
        return TemplateLiteral(lineno, col, chunks=tuple(chunks), expressions=tuple(expressions))


def _walk(root: TSNode) -> Iterator[TSNode]:
    stack = [root]
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def _returns(body: TSNode) -> Iterator[TSNode]:
    """Return statements of a function body, not of nested functions."""
    stack = list(reversed(body.children))
    while stack:
        node = stack.pop()
        if node.type == "return_statement":
            yield node
        elif node.type not in _SCOPE_BARRIERS:
            stack.extend(reversed(node.children))


def _first_error(root: TSNode) -> TSNode | None:
    for node in _walk(root):
        if node.type == "ERROR" or node.is_missing:
            return node
    return None


def _named(node: TSNode) -> list[TSNode]:
    return [child for child in node.named_children if child.type != "comment"]


def _first_named(node: TSNode) -> TSNode | None:
    named = _named(node)
    return named[0] if named else None


def _unwrap(node: TSNode | None) -> TSNode | None:
    while node is not None and node.type == "parenthesized_expression":
        node = _first_named(node)
    return node


def _text(node: TSNode) -> str:
    return (node.text or b"").decode("utf-8")


def _decode_escape(sequence: str) -> str:
    """Decode one JavaScript string escape (``\\n``, ``\\u00e9``, ``\\'``)."""
    body = sequence[1:]
    if not body:
        return ""
    head = body[0]
    if head in _SIMPLE_ESCAPES and len(body) == 1:
        return _SIMPLE_ESCAPES[head]
    if head == "u":
        digits = body[2:-1] if body.startswith("u{") else body[1:]
        return chr(int(digits, 16))
    if head == "x":
        return chr(int(body[1:], 16))
    if head in "\r\n":
        return ""
    return body
