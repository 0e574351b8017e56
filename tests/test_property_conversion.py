"""Property-based tests for conversion invariants.

Uses Hypothesis to check properties over generated templates:

1. Determinism: the same input always converts to the same output
2. Balance: every conversion ends at depth 1 outside any <?php region
3. Encoding: exactly one escaping call per scalar read, none for ``none``
4. Loop reads without a loop always raise MissingLoopContextError
5. Undeclared policies always raise MissingEscapeMetadataError
"""

from __future__ import annotations

import re

from hypothesis import given, settings
from hypothesis import strategies as st

from litpress import (
    ComponentMetadata,
    Converter,
    MissingEscapeMetadataError,
    MissingLoopContextError,
)

from .strategies import escape_tokens, identifier, metadata_for, parameter_names, scalar_template

_ESCAPE_CALL = re.compile(r"\besc_(?:html|url|attr|js)\(")


@st.composite
def component(draw, escape: str | None = "html"):
    names = draw(parameter_names)
    source, reads = draw(scalar_template(names))
    meta = ComponentMetadata.from_dict(metadata_for(names, escape), name="generated")
    return source, reads, meta


class TestConversionProperties:
    @given(component())
    @settings(max_examples=50)
    def test_deterministic(self, case):
        source, _, meta = case
        assert Converter().convert(source, meta) == Converter().convert(source, meta)

    @given(component())
    @settings(max_examples=50)
    def test_ends_balanced(self, case):
        source, _, meta = case
        converter = Converter()
        converter.convert(source, meta)
        assert converter._tracker.depth == 1
        assert not converter._tracker.in_generated_code_region()

    @given(component(), escape_tokens)
    @settings(max_examples=50)
    def test_one_escape_call_per_read(self, case, token):
        source, reads, _ = case
        names = sorted(set(reads))
        meta = ComponentMetadata.from_dict(metadata_for(names, token), name="generated")
        result = Converter().convert(source, meta)
        assert len(_ESCAPE_CALL.findall(result)) == len(reads)
        for name in reads:
            assert f"( ${name} )" in result

    @given(component(escape="none"))
    @settings(max_examples=30)
    def test_none_policy_has_no_escape_call(self, case):
        source, reads, meta = case
        result = Converter().convert(source, meta)
        assert not _ESCAPE_CALL.search(result)
        assert result.count("<?php echo $") == len(reads)

    @given(parameter_names, identifier, identifier)
    @settings(max_examples=30)
    def test_item_read_without_loop(self, names, owner, field):
        meta = ComponentMetadata.from_dict(metadata_for(names), name="generated")
        try:
            Converter().convert(f"<p>${{{owner}.{field}}}</p>", meta)
        except MissingLoopContextError as e:
            assert e.expression == f"{owner}.{field}"
        else:
            raise AssertionError("expected MissingLoopContextError")

    @given(component(escape=None))
    @settings(max_examples=30)
    def test_undeclared_policy(self, case):
        source, reads, meta = case
        try:
            Converter().convert(source, meta)
        except MissingEscapeMetadataError as e:
            assert e.field == reads[0]
            assert e.component == "generated"
            assert e.metadata_path == f"generated.parameters[name={reads[0]}].escape"
        else:
            raise AssertionError("expected MissingEscapeMetadataError")
