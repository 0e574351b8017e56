"""Exceptions for litpress conversions.

Exception Hierarchy:
ConversionError (base)
├── ParseError                  # Malformed source, missing/ambiguous entry template
├── UnresolvedVariableError     # Name not visible in any scope
├── MissingLoopContextError     # Loop-item access with no enclosing loop
├── ScopeImbalanceError         # Scope/region stacks out of balance
├── UnsupportedConstructError   # Node kind or call shape not supported
├── MissingEscapeMetadataError  # Interpolated field without an escape policy
└── MetadataError               # Malformed or missing component metadata

Every conversion is all-or-nothing: the first error aborts the component and
nothing is caught inside the converter. Messages are written for the operator
running the build, so they name the component, the identifier, the names that
*are* visible, or the metadata path that must be filled in.

Example:
    ```
    L-ESC-001: Field 'subtitle' in component 'hero-section' has no escape policy
      Add: hero-section.parameters[name=subtitle].escape
      Hint: Declare one of html, url, attr, js, none
    ```

"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum

from litpress.environment import terminal

_DOCS_BASE = "https://litpress.readthedocs.io/en/latest/errors"


class ErrorCode(Enum):
    """Searchable error codes.

    Format: L-{CATEGORY}-{NUMBER}
    Categories: PAR (parsing), SCP (scopes), CNV (conversion),
    ESC (escaping), MET (metadata)
    """

    PARSE_ERROR = "L-PAR-001"

    UNRESOLVED_VARIABLE = "L-SCP-001"
    MISSING_LOOP_CONTEXT = "L-SCP-002"
    SCOPE_IMBALANCE = "L-SCP-003"

    UNSUPPORTED_CONSTRUCT = "L-CNV-001"

    MISSING_ESCAPE_METADATA = "L-ESC-001"

    INVALID_METADATA = "L-MET-001"

    @property
    def docs_url(self) -> str:
        """Documentation URL for this error code."""
        return f"{_DOCS_BASE}/#{self.value.lower()}"

    @property
    def category(self) -> str:
        prefix = self.value.split("-")[1]
        return {
            "PAR": "parser",
            "SCP": "scope",
            "CNV": "conversion",
            "ESC": "escaping",
            "MET": "metadata",
        }.get(prefix, "unknown")


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Template source lines around an error location.

    Attributes:
        lines: (line_number, content) pairs around the error.
        error_line: 1-based line of the error.
        column: Optional 0-based column for a caret pointer.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int
    column: int | None = None

    def format(self) -> str:
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(
                terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            )
        if self.column is not None:
            parts.append(f"{terminal.dim_text('   |')} {' ' * self.column}^")
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(
    source: str,
    error_line: int,
    *,
    context_lines: int = 1,
    column: int | None = None,
) -> SourceSnippet | None:
    """Build a SourceSnippet, or None when the line is outside the source."""
    all_lines = source.splitlines()
    if not 0 < error_line <= len(all_lines):
        return None
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line, column=column)


class ConversionError(Exception):
    """Base exception for every litpress conversion failure.

    Catch this in a build pipeline to decide what to do with a failing
    component (skip it, fail the build, prompt):

        >>> try:
        ...     php = env.convert(source, "hero-section")
        ... except ConversionError as e:
        ...     log.error(e.format_compact())

    Attributes:
        message: Short description without location or hints.
        component: Component being converted, when known.
        lineno: 1-based line in the template source, when known.
        snippet: Source lines around the error, when known.
        code: ErrorCode of the concrete class.
    """

    code: ErrorCode | None = None

    def __init__(
        self,
        message: str,
        *,
        component: str | None = None,
        lineno: int | None = None,
        snippet: SourceSnippet | None = None,
    ):
        self.message = message
        self.component = component
        self.lineno = lineno
        self.snippet = snippet
        super().__init__(self._format_message())

    @property
    def kind(self) -> str:
        """Kind tag for structured reporting (the class name)."""
        return type(self).__name__

    def _details(self) -> list[str]:
        """Extra lines (hints, paths) specific to a subclass."""
        return []

    def _location(self) -> str:
        loc = self.component or "<component>"
        if self.lineno:
            loc += f":{self.lineno}"
        return loc

    def _format_message(self) -> str:
        parts = [f"{self.message} in {terminal.location(self._location())}"]
        if self.snippet:
            parts.append(self.snippet.format())
        parts.extend(self._details())
        return "\n".join(parts)

    def format_compact(self) -> str:
        """Format as a terminal diagnostic with code and docs link.

        Format::

            L-SCP-001: Undefined variable 'titel' in hero-section
              Visible: subtitle, title
              Hint: Did you mean 'title'?
              Docs: https://litpress.readthedocs.io/en/latest/errors/#l-scp-001
        """
        header = terminal.format_error_header(
            self.code.value if self.code else None,
            f"{self.message} in {terminal.location(self._location())}",
        )
        parts = [header]
        if self.snippet:
            parts.append(self.snippet.format())
        parts.extend(self._details())
        if self.code:
            parts.append(f"  {terminal.dim_text('Docs:')} {terminal.docs_url(self.code.docs_url)}")
        return "\n".join(parts)


class ParseError(ConversionError):
    """Source could not be parsed, or has no single entry template.

    Raised for syntax errors reported by the parser and when the source holds
    zero or several ``html`` templates returned from the entry method.
    """

    code: ErrorCode | None = ErrorCode.PARSE_ERROR

    def __init__(
        self,
        message: str,
        *,
        col_offset: int | None = None,
        suggestion: str | None = None,
        **kwargs,
    ):
        self.col_offset = col_offset
        self.suggestion = suggestion
        super().__init__(message, **kwargs)

    def _location(self) -> str:
        loc = super()._location()
        if self.lineno and self.col_offset is not None:
            loc += f":{self.col_offset}"
        return loc

    def _details(self) -> list[str]:
        if self.suggestion:
            return [f"  {terminal.hint('Hint:')} {self.suggestion}"]
        return []


class UnresolvedVariableError(ConversionError):
    """A template reads a name that no scope binds.

    Example:
        ```
        Undefined variable 'unknownField' in context 'expression_0' in card
          Visible: subtitle, title
        ```
    """

    code: ErrorCode | None = ErrorCode.UNRESOLVED_VARIABLE

    def __init__(
        self,
        name: str,
        context: str,
        visible_names: Iterable[str] = (),
        **kwargs,
    ):
        self.name = name
        self.context = context
        self.visible_names = tuple(sorted(visible_names))
        super().__init__(
            f"Undefined variable '{terminal.identifier(name)}' in context '{context}'",
            **kwargs,
        )

    def _details(self) -> list[str]:
        visible = ", ".join(self.visible_names) if self.visible_names else "(none)"
        lines = [f"  Visible: {visible}"]
        matches = get_close_matches(self.name, self.visible_names, n=1, cutoff=0.6)
        if matches:
            lines.append(
                f"  {terminal.hint('Hint:')} Did you mean '{terminal.suggestion(matches[0])}'?"
            )
        else:
            lines.append(
                f"  {terminal.hint('Hint:')} Declare '{self.name}' in the component's parameters"
            )
        return lines


class MissingLoopContextError(ConversionError):
    """Loop-item access or per-item helper used outside any loop."""

    code: ErrorCode | None = ErrorCode.MISSING_LOOP_CONTEXT

    def __init__(self, expression: str, context: str, **kwargs):
        self.expression = expression
        self.context = context
        super().__init__(
            f"'{terminal.identifier(expression)}' used outside a loop in context '{context}'",
            **kwargs,
        )

    def _details(self) -> list[str]:
        return [
            f"  {terminal.hint('Hint:')} Move the expression inside a "
            "this.<array>.map(item => html`...`) body"
        ]


class ScopeImbalanceError(ConversionError):
    """Scope frames or code regions were entered and left out of order.

    This is an internal invariant violation, or literal template text whose
    ``<?php``/``endforeach``/``endif`` markers do not pair up.
    """

    code: ErrorCode | None = ErrorCode.SCOPE_IMBALANCE


class UnsupportedConstructError(ConversionError):
    """The template uses a node kind or call shape the converter cannot lower."""

    code: ErrorCode | None = ErrorCode.UNSUPPORTED_CONSTRUCT

    def __init__(self, construct: str, context: str, detail: str | None = None, **kwargs):
        self.construct = construct
        self.context = context
        self.detail = detail
        super().__init__(
            f"Unsupported construct {terminal.identifier(construct)} in context '{context}'",
            **kwargs,
        )

    def _details(self) -> list[str]:
        if self.detail:
            return [f"  {terminal.hint('Hint:')} {self.detail}"]
        return []


class MissingEscapeMetadataError(ConversionError):
    """An interpolated field has no declared escape policy.

    There is deliberately no default encoding: the operator must add the
    policy at ``metadata_path``.
    """

    code: ErrorCode | None = ErrorCode.MISSING_ESCAPE_METADATA

    def __init__(self, field: str, component: str, metadata_path: str, **kwargs):
        self.field = field
        self.metadata_path = metadata_path
        super().__init__(
            f"Field '{terminal.identifier(field)}' has no escape policy",
            component=component,
            **kwargs,
        )

    def _details(self) -> list[str]:
        return [
            f"  Add: {terminal.metadata_path(self.metadata_path)}",
            f"  {terminal.hint('Hint:')} Declare one of html, url, attr, js, none",
        ]


class MetadataError(ConversionError):
    """Component metadata is missing or malformed."""

    code: ErrorCode | None = ErrorCode.INVALID_METADATA

    def __init__(self, message: str, *, metadata_path: str | None = None, **kwargs):
        self.metadata_path = metadata_path
        super().__init__(message, **kwargs)

    def _details(self) -> list[str]:
        if self.metadata_path:
            return [f"  At: {terminal.metadata_path(self.metadata_path)}"]
        return []
