"""PHP render-function wrapper for converted fragments.

A converted fragment reads its parameters as plain PHP locals (``$title``).
``render_function()`` embeds it in a callable function that merges caller
arguments with typed defaults:

    ```php
    function render_hero_section( $args = array() ) {
        $defaults = array(
            'title' => 'Welcome',
            'showCta' => true,
        );
        $args = wp_parse_args( $args, $defaults );
        $title = $args['title'];
        $showCta = $args['showCta'];
        ?><h1>...</h1><?php
    }
    ```

"""

from __future__ import annotations

import math
import re
from typing import Any

from litpress.metadata import ComponentMetadata
from litpress.utils.constants import TYPE_ZERO_VALUES

_NON_IDENT = re.compile(r"[^0-9A-Za-z_]+")


def php_string(value: str) -> str:
    """Single-quoted PHP string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


def php_literal(value: Any, type_: str = "string") -> str:
    """Convert a declared default to a PHP literal for its declared type.

    A missing default (None) becomes the type's zero value; a number that
    cannot be read becomes ``0``.
    """
    type_ = (type_ or "string").lower()
    if value is None:
        return TYPE_ZERO_VALUES.get(type_, "''")

    if type_ == "boolean":
        if isinstance(value, str):
            return "true" if value.strip().lower() == "true" else "false"
        return "true" if value else "false"

    if type_ == "number":
        if isinstance(value, bool):
            return "1" if value else "0"
        try:
            number = float(value)
        except (TypeError, ValueError):
            return "0"
        if math.isnan(number) or math.isinf(number):
            return "0"
        return str(int(number)) if number.is_integer() else repr(number)

    if type_ in ("array", "object") or isinstance(value, (list, tuple, dict)):
        return _php_array(value)

    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return php_literal(value, "number")
    return php_string(str(value))


def _php_array(value: Any) -> str:
    if isinstance(value, dict):
        items = [f"{php_string(str(k))} => {_php_value(v)}" for k, v in value.items()]
    elif isinstance(value, (list, tuple)):
        items = [_php_value(v) for v in value]
    else:
        return "array()"
    return f"array({', '.join(items)})" if items else "array()"


def _php_value(value: Any) -> str:
    """PHP literal for a nested value, typed by its Python type."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return php_literal(value, "boolean")
    if isinstance(value, (int, float)):
        return php_literal(value, "number")
    if isinstance(value, (list, tuple, dict)):
        return _php_array(value)
    return php_string(str(value))


def function_name(metadata: ComponentMetadata) -> str:
    """``phpFunction`` from metadata, else ``render_<component_slug>``."""
    if metadata.php_function:
        return metadata.php_function
    slug = _NON_IDENT.sub("_", metadata.name).strip("_").lower()
    return f"render_{slug}"


def render_function(metadata: ComponentMetadata, body: str) -> str:
    """Wrap a converted fragment in a PHP render function."""
    lines = [f"function {function_name(metadata)}( $args = array() ) {{"]
    if metadata.parameters:
        lines.append("    $defaults = array(")
        for param in metadata.parameters:
            lines.append(
                f"        {php_string(param.name)} => {php_literal(param.default, param.type)},"
            )
        lines.append("    );")
        lines.append("    $args = wp_parse_args( $args, $defaults );")
        for param in metadata.parameters:
            lines.append(f"    ${param.name} = $args[{php_string(param.name)}];")
    lines.append(f"    ?>{body}<?php")
    lines.append("}")
    return "\n".join(lines) + "\n"
