"""litpress compiler: template AST -> WordPress PHP.

Modules:
    core: Converter (dispatch, literal text, output buffer)
    expressions: names, property reads, literals, operators
    control_flow: loops and conditionals (shared block lowering)
    helpers: this.<helper>() and this.<array>.map() calls
    context: ContextTracker (scope frames, code regions)
    escape: EscapeResolver (positional and declared policies)
    markup: MarkupCursor (attribute position tracking)
    wrapper: PHP render-function wrapper
"""

from litpress.compiler.context import (
    BindingKind,
    ContextTracker,
    ConversionState,
    FrameKind,
    RegionKind,
    ScopeFrame,
)
from litpress.compiler.core import Converter
from litpress.compiler.escape import EscapeResolver, Resolution
from litpress.compiler.markup import MarkupCursor
from litpress.compiler.wrapper import php_literal, render_function

__all__ = [
    "BindingKind",
    "ContextTracker",
    "ConversionState",
    "Converter",
    "EscapeResolver",
    "FrameKind",
    "MarkupCursor",
    "RegionKind",
    "Resolution",
    "ScopeFrame",
    "php_literal",
    "render_function",
]
