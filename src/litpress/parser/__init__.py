"""Source parser: tree-sitter JavaScript -> litpress AST."""

from litpress.parser.core import JS_LANGUAGE, Parser

__all__ = ["JS_LANGUAGE", "Parser"]
