"""Tests for the Converter's node dispatch table.

Every concrete node class the parser can produce must have exactly one
handler, so no node kind can fall through unconverted.
"""

from litpress.compiler import Converter
from litpress.nodes import EXPRESSION_TYPES, Expr


class TestDispatchTableStructure:
    """Verify dispatch table structure and completeness."""

    def test_covers_every_expression_class(self):
        dispatch = Converter()._get_node_dispatch()
        assert set(dispatch) == {cls.__name__ for cls in EXPRESSION_TYPES}

    def test_expression_types_are_all_concrete_subclasses(self):
        def concrete(cls):
            for sub in cls.__subclasses__():
                yield sub
                yield from concrete(sub)

        assert {cls.__name__ for cls in concrete(Expr)} == {cls.__name__ for cls in EXPRESSION_TYPES}

    def test_handlers_are_bound_methods(self):
        dispatch = Converter()._get_node_dispatch()
        for name, handler in dispatch.items():
            assert callable(handler), f"Handler for {name} is not callable"
            assert handler.__name__.startswith("_convert_")
