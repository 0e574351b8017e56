"""Shared constants for litpress.

PHP snippets emitted by the converter and the attribute sets used for
positional escaping.
"""

from __future__ import annotations

# Attribute values that hold a URL; interpolations there always get esc_url
URL_ATTRIBUTES: frozenset[str] = frozenset({"href", "src", "action"})

# Lit binding prefixes: .prop, ?bool, @event
LIT_BINDING_PREFIXES = ".?@"

LOGICAL_OPERATORS: frozenset[str] = frozenset({"&&", "||", "??"})

# Zero, singular and plural labels for formatResultCount()
DEFAULT_RESULT_COUNT_LABELS: tuple[str, str, str] = (
    "",
    "1 result found",
    "{count} results found",
)
RESULT_COUNT_PARAMETER = "totalResults"

DEFAULT_STAR_COUNT = 5
STAR_FIELD = "rating"
STAR_FULL = "★"
STAR_EMPTY = "☆"

# this.<helper>() calls with a fixed PHP rendering
HELPER_METHODS: frozenset[str] = frozenset({"formatResultCount", "getCurrentYear", "renderStars"})

# Zero values for parameters declared without a default
TYPE_ZERO_VALUES: dict[str, str] = {
    "string": "''",
    "number": "0",
    "boolean": "false",
    "array": "array()",
    "object": "array()",
}
