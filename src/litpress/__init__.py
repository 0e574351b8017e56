"""litpress: Lit ``html`` templates to WordPress PHP.

Converts the template returned by a Lit component's ``render()`` method into
an equivalent server-rendered PHP fragment, preserving loops, conditionals,
variable bindings and output escaping.

Quickstart:
    >>> import litpress
    >>> metadata = {"parameters": [{"name": "title", "escape": "html"}]}
    >>> litpress.convert("<div>${this.title}</div>", metadata, name="hero")
    '<div><?php echo esc_html( $title ); ?></div>'

With a metadata file:
    >>> from litpress import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("src/metadata.json"))
    >>> env.convert_component(Path("hero-section.js").read_text(), "hero-section")

Architecture:
Template Source -> tree-sitter -> litpress AST -> Converter -> PHP fragment

Pipeline stages:
1. **Parser**: Wraps raw templates, parses with tree-sitter, locates the
   entry template and lowers it to immutable litpress nodes
2. **Converter**: One depth-first walk with a ContextTracker (scopes and
   ``<?php`` regions) and an EscapeResolver (esc_html/esc_url/esc_attr/esc_js)
3. **Wrapper**: Optional ``render_<component>()`` PHP function with defaults

Fail-fast:
Every conversion is all-or-nothing. Undeclared variables, loop-item reads
outside loops, unsupported constructs and missing escape policies raise a
ConversionError subclass naming the component and what to fix.

"""

from collections.abc import Mapping
from typing import Any

from litpress.environment import (
    ConversionError,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    MetadataError,
    MissingEscapeMetadataError,
    MissingLoopContextError,
    ParseError,
    ScopeImbalanceError,
    UnresolvedVariableError,
    UnsupportedConstructError,
)
from litpress.compiler import Converter, render_function
from litpress.metadata import ArrayFieldSpec, ComponentMetadata, EscapePolicy, ParameterSpec

__version__ = "0.1.0"


def convert(
    source: str,
    metadata: ComponentMetadata | Mapping[str, Any],
    *,
    name: str | None = None,
) -> str:
    """Convert raw template source with a default Environment.

    Args:
        source: Template body (the text between the ``html`` backticks)
        metadata: ComponentMetadata or its ``metadata.json`` entry
        name: Component name when ``metadata`` is a dict without one
    """
    env = Environment()
    return env.convert(source, env.resolve_metadata(metadata, name=name))


__all__ = [
    "ArrayFieldSpec",
    "ComponentMetadata",
    "ConversionError",
    "Converter",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "EscapePolicy",
    "FileSystemLoader",
    "MetadataError",
    "MissingEscapeMetadataError",
    "MissingLoopContextError",
    "ParameterSpec",
    "ParseError",
    "ScopeImbalanceError",
    "UnresolvedVariableError",
    "UnsupportedConstructError",
    "__version__",
    "convert",
    "render_function",
]
