"""Environment, metadata loaders and errors for litpress.

The exception module is imported first: the metadata, parser and compiler
modules all depend on it.
"""

from litpress.environment.exceptions import (
    ConversionError,
    ErrorCode,
    MetadataError,
    MissingEscapeMetadataError,
    MissingLoopContextError,
    ParseError,
    ScopeImbalanceError,
    SourceSnippet,
    UnresolvedVariableError,
    UnsupportedConstructError,
    build_source_snippet,
)
from litpress.environment.loaders import DictLoader, FileSystemLoader
from litpress.environment.core import Environment, Loader

__all__ = [
    "ConversionError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "Loader",
    "MetadataError",
    "MissingEscapeMetadataError",
    "MissingLoopContextError",
    "ParseError",
    "ScopeImbalanceError",
    "SourceSnippet",
    "UnresolvedVariableError",
    "UnsupportedConstructError",
    "build_source_snippet",
]
