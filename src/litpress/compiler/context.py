"""Scope and region tracking for a single conversion.

The ContextTracker answers three questions for the converter while it walks
the entry template:

- Is a name reachable here? (component parameters, then loop bindings)
- Which loop, if any, encloses the emission point?
- Is output currently being written inside a ``<?php ... ?>`` region?

Frames form a stack; each frame records its parent as an integer index into
the stack, so there are no back-references between frames. Generated-code
regions use their own stack, and every frame remembers how deep the region
stack was when it was opened: leaving a frame while a region opened inside it
is still open is a ScopeImbalanceError.

Example:
    >>> tracker = ContextTracker(["title", "items"])
    >>> tracker.enter_scope(FrameKind.TEMPLATE)
    >>> tracker.enter_scope(FrameKind.LOOP, {"item": "item", "array_name": "items"})
    >>> tracker.bind_name("item", BindingKind.LOOP_ITEM)
    >>> tracker.current_loop_binding()
    'item'

"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from litpress.environment.exceptions import ScopeImbalanceError, UnresolvedVariableError

logger = logging.getLogger(__name__)


class FrameKind(Enum):
    ROOT = "root"
    TEMPLATE = "template"
    LOOP = "loop"
    CONDITIONAL = "conditional"


class RegionKind(Enum):
    MARKUP = "markup"
    CODE = "code"


class BindingKind(Enum):
    PARAMETER = "parameter"
    LOOP_ITEM = "loop_item"


class ConversionState(Enum):
    """Coarse converter state derived from the innermost frame."""

    ROOT = "root"
    IN_TEMPLATE = "in_template"
    IN_LOOP = "in_loop"
    IN_CONDITIONAL = "in_conditional"


_STATE_OF_FRAME = {
    FrameKind.ROOT: ConversionState.ROOT,
    FrameKind.TEMPLATE: ConversionState.IN_TEMPLATE,
    FrameKind.LOOP: ConversionState.IN_LOOP,
    FrameKind.CONDITIONAL: ConversionState.IN_CONDITIONAL,
}


@dataclass(slots=True)
class ScopeFrame:
    """One lexical scope.

    Attributes:
        kind: What opened the frame
        bound: Names bound in this frame -> binding kind
        parent: Index of the enclosing frame, None for the root
        data: Kind-specific data (loop frames: ``item`` and ``array_name``)
        region_depth: Region stack depth when the frame was opened
    """

    kind: FrameKind
    bound: dict[str, BindingKind] = field(default_factory=dict)
    parent: int | None = None
    data: Mapping[str, Any] = field(default_factory=dict)
    region_depth: int = 1


class ContextTracker:
    """Frame stack, component parameters and generated-code regions.

    A fresh tracker is created for every conversion; it is never shared
    between calls.

    Attributes:
        component: Component name for error messages
    """

    __slots__ = ("_frames", "_parameters", "_regions", "component")

    def __init__(self, parameters: Iterable[str] = (), *, component: str | None = None):
        self.component = component
        self._parameters: set[str] = set(parameters)
        self._regions: list[RegionKind] = [RegionKind.MARKUP]
        self._frames: list[ScopeFrame] = [ScopeFrame(FrameKind.ROOT, region_depth=1)]

    # ── frames ────────────────────────────────────────────────────────────

    @property
    def depth(self) -> int:
        return len(self._frames)

    @property
    def state(self) -> ConversionState:
        return _STATE_OF_FRAME[self._frames[-1].kind]

    def enter_scope(self, kind: FrameKind, data: Mapping[str, Any] | None = None) -> ScopeFrame:
        frame = ScopeFrame(
            kind,
            parent=len(self._frames) - 1 if self._frames else None,
            data=dict(data or {}),
            region_depth=len(self._regions),
        )
        self._frames.append(frame)
        logger.debug("Enter %s scope (depth %d)", kind.value, len(self._frames))
        return frame

    def exit_scope(self, expected: FrameKind | None = None) -> ScopeFrame:
        """Pop the innermost frame.

        Raises:
            ScopeImbalanceError: Empty stack, root frame, wrong kind, or a
                code region opened inside the frame still open
        """
        if len(self._frames) <= 1:
            raise ScopeImbalanceError(
                "Scope exit with no open scope", component=self.component
            )
        frame = self._frames[-1]
        if expected is not None and frame.kind is not expected:
            raise ScopeImbalanceError(
                f"Expected to close a {expected.value} scope, found {frame.kind.value}",
                component=self.component,
            )
        if frame.region_depth != len(self._regions):
            raise ScopeImbalanceError(
                f"Closing {frame.kind.value} scope with an unclosed <?php region",
                component=self.component,
            )
        self._frames.pop()
        logger.debug("Exit %s scope (depth %d)", frame.kind.value, len(self._frames))
        return frame

    def bind_name(self, name: str, kind: BindingKind = BindingKind.LOOP_ITEM) -> None:
        """Bind in the innermost frame; with only the root open, add a parameter."""
        if len(self._frames) <= 1:
            self._parameters.add(name)
        else:
            self._frames[-1].bound[name] = kind

    def binding_frame(self, name: str) -> ScopeFrame | None:
        """Innermost frame that binds ``name``."""
        index: int | None = len(self._frames) - 1
        while index is not None:
            frame = self._frames[index]
            if name in frame.bound:
                return frame
            index = frame.parent
        return None

    def is_visible(self, name: str) -> bool:
        return self.binding_frame(name) is not None or name in self._parameters

    def is_parameter(self, name: str) -> bool:
        return name in self._parameters

    def visible_names(self) -> list[str]:
        names = set(self._parameters)
        for frame in self._frames:
            names.update(frame.bound)
        return sorted(names)

    def require_visible(self, name: str, label: str, **location: Any) -> None:
        """Raise UnresolvedVariableError unless ``name`` is reachable.

        ``location`` (lineno, snippet) is passed through to the error.
        """
        if not self.is_visible(name):
            raise UnresolvedVariableError(
                name,
                label,
                self.visible_names(),
                component=self.component,
                **location,
            )

    def current_loop_frame(self) -> ScopeFrame | None:
        for frame in reversed(self._frames):
            if frame.kind is FrameKind.LOOP:
                return frame
        return None

    def current_loop_binding(self) -> str | None:
        frame = self.current_loop_frame()
        return frame.data.get("item") if frame is not None else None

    # ── regions ───────────────────────────────────────────────────────────

    def enter_generated_code_region(self) -> None:
        self._regions.append(RegionKind.CODE)

    def exit_generated_code_region(self) -> None:
        if self._regions[-1] is not RegionKind.CODE:
            raise ScopeImbalanceError(
                "'?>' without a matching '<?php'", component=self.component
            )
        self._regions.pop()

    def in_generated_code_region(self) -> bool:
        return self._regions[-1] is RegionKind.CODE

    # ── end of conversion ─────────────────────────────────────────────────

    def finish(self) -> None:
        """Check that every frame and region opened during conversion was closed."""
        if len(self._frames) != 1:
            open_kinds = ", ".join(f.kind.value for f in self._frames[1:])
            raise ScopeImbalanceError(
                f"Conversion ended with open scopes: {open_kinds}", component=self.component
            )
        if self._regions != [RegionKind.MARKUP]:
            raise ScopeImbalanceError(
                "Conversion ended inside a <?php region", component=self.component
            )
