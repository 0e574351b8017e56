"""Tests for ContextTracker: scope frames, visibility and code regions."""

import pytest

from litpress.compiler.context import (
    BindingKind,
    ContextTracker,
    ConversionState,
    FrameKind,
)
from litpress.environment.exceptions import ScopeImbalanceError, UnresolvedVariableError


@pytest.fixture
def tracker() -> ContextTracker:
    tracker = ContextTracker(["title", "items"], component="card")
    tracker.enter_scope(FrameKind.TEMPLATE)
    return tracker


class TestScopes:
    """Frame stack behavior."""

    def test_starts_at_root(self):
        tracker = ContextTracker()
        assert tracker.depth == 1
        assert tracker.state is ConversionState.ROOT

    def test_state_follows_innermost_frame(self, tracker):
        assert tracker.state is ConversionState.IN_TEMPLATE
        tracker.enter_scope(FrameKind.LOOP, {"item": "item", "array_name": "items"})
        assert tracker.state is ConversionState.IN_LOOP
        tracker.enter_scope(FrameKind.CONDITIONAL)
        assert tracker.state is ConversionState.IN_CONDITIONAL
        tracker.exit_scope(FrameKind.CONDITIONAL)
        tracker.exit_scope(FrameKind.LOOP)
        assert tracker.state is ConversionState.IN_TEMPLATE

    def test_parent_is_stack_index(self, tracker):
        frame = tracker.enter_scope(FrameKind.LOOP)
        assert frame.parent == 1
        inner = tracker.enter_scope(FrameKind.CONDITIONAL)
        assert inner.parent == 2

    def test_exit_root_raises(self):
        tracker = ContextTracker()
        with pytest.raises(ScopeImbalanceError):
            tracker.exit_scope()

    def test_exit_wrong_kind_raises(self, tracker):
        tracker.enter_scope(FrameKind.CONDITIONAL)
        with pytest.raises(ScopeImbalanceError) as exc_info:
            tracker.exit_scope(FrameKind.LOOP)
        assert "loop" in str(exc_info.value)

    def test_finish_requires_depth_one(self, tracker):
        with pytest.raises(ScopeImbalanceError):
            tracker.finish()
        tracker.exit_scope(FrameKind.TEMPLATE)
        tracker.finish()
        assert tracker.depth == 1


class TestVisibility:
    """Name resolution through frames and parameters."""

    def test_parameters_are_visible(self, tracker):
        assert tracker.is_visible("title")
        assert not tracker.is_visible("missing")

    def test_loop_binding_visible_only_inside_loop(self, tracker):
        tracker.enter_scope(FrameKind.LOOP, {"item": "item", "array_name": "items"})
        tracker.bind_name("item", BindingKind.LOOP_ITEM)
        assert tracker.is_visible("item")
        assert tracker.binding_frame("item").kind is FrameKind.LOOP
        tracker.exit_scope(FrameKind.LOOP)
        assert not tracker.is_visible("item")

    def test_bind_at_root_adds_parameter(self):
        tracker = ContextTracker()
        tracker.bind_name("extra", BindingKind.PARAMETER)
        assert tracker.is_parameter("extra")

    def test_current_loop_binding_is_innermost(self, tracker):
        assert tracker.current_loop_binding() is None
        tracker.enter_scope(FrameKind.LOOP, {"item": "outer", "array_name": "items"})
        tracker.enter_scope(FrameKind.CONDITIONAL)
        assert tracker.current_loop_binding() == "outer"
        tracker.enter_scope(FrameKind.LOOP, {"item": "inner", "array_name": "outer"})
        assert tracker.current_loop_binding() == "inner"

    def test_require_visible_lists_visible_names(self, tracker):
        with pytest.raises(UnresolvedVariableError) as exc_info:
            tracker.require_visible("titel", "expression_0")
        error = exc_info.value
        assert error.name == "titel"
        assert error.context == "expression_0"
        assert error.visible_names == ("items", "title")
        assert "Did you mean 'title'?" in str(error)


class TestRegions:
    """Generated-code region stack."""

    def test_region_round_trip(self, tracker):
        assert not tracker.in_generated_code_region()
        tracker.enter_generated_code_region()
        assert tracker.in_generated_code_region()
        tracker.exit_generated_code_region()
        assert not tracker.in_generated_code_region()

    def test_exit_without_region_raises(self, tracker):
        with pytest.raises(ScopeImbalanceError):
            tracker.exit_generated_code_region()

    def test_frame_cannot_close_over_open_region(self, tracker):
        tracker.enter_scope(FrameKind.CONDITIONAL)
        tracker.enter_generated_code_region()
        with pytest.raises(ScopeImbalanceError) as exc_info:
            tracker.exit_scope(FrameKind.CONDITIONAL)
        assert "unclosed" in str(exc_info.value)

    def test_finish_rejects_open_region(self):
        tracker = ContextTracker()
        tracker.enter_generated_code_region()
        with pytest.raises(ScopeImbalanceError):
            tracker.finish()
