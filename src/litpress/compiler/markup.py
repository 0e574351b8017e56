"""Markup position tracking for positional escaping.

The converter feeds every literal markup chunk (text outside ``<?php``
regions) to a MarkupCursor. Before emitting an interpolation it asks the
cursor whether the emission point sits inside an attribute value, and which
one, so ``<a href="${this.url}">`` gets ``esc_url`` and
``<div class="${this.cls}">`` gets ``esc_attr``.

The cursor is a small character state machine, not an HTML parser: it knows
tags, attribute names, quoted and unquoted values, comments, and the raw
text of ``<script>``/``<style>`` elements (where a ``<`` never opens a tag).
"""

from __future__ import annotations

from enum import Enum


class _State(Enum):
    TEXT = "text"
    COMMENT = "comment"
    TAG_NAME = "tag_name"
    IN_TAG = "in_tag"
    ATTR_NAME = "attr_name"
    AFTER_ATTR_NAME = "after_attr_name"
    BEFORE_VALUE = "before_value"
    VALUE = "value"
    RAW_TEXT = "raw_text"


_VALUE_STATES = frozenset({_State.BEFORE_VALUE, _State.VALUE})
_RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

Snapshot = tuple[_State, str, str, str]


class MarkupCursor:
    """Where the next emitted byte lands in the surrounding HTML."""

    __slots__ = ("_attr", "_quote", "_state", "_tag")

    def __init__(self) -> None:
        self._state = _State.TEXT
        self._attr = ""
        self._quote = ""
        self._tag = ""

    @property
    def in_attribute(self) -> bool:
        return self._state in _VALUE_STATES

    @property
    def attribute_name(self) -> str | None:
        """Name of the attribute whose value is open, else None."""
        return self._attr if self._state in _VALUE_STATES else None

    @property
    def in_tag(self) -> bool:
        return self._state not in (_State.TEXT, _State.COMMENT, _State.RAW_TEXT)

    def snapshot(self) -> Snapshot:
        return (self._state, self._attr, self._quote, self._tag)

    def restore(self, snapshot: Snapshot) -> None:
        self._state, self._attr, self._quote, self._tag = snapshot

    def interpolated(self) -> None:
        """Record that a value was written at the current position.

        ``href=${url}`` has no quotes: the interpolation itself becomes the
        unquoted value.
        """
        if self._state is _State.BEFORE_VALUE:
            self._state = _State.VALUE
            self._quote = ""

    def _close_tag(self) -> None:
        if self._tag.lower() in _RAW_TEXT_ELEMENTS:
            self._state = _State.RAW_TEXT
            self._tag = self._tag.lower()
        else:
            self._state = _State.TEXT

    def feed(self, text: str) -> None:
        i = 0
        n = len(text)
        while i < n:
            c = text[i]
            state = self._state
            if state is _State.TEXT:
                if text.startswith("<!--", i):
                    self._state = _State.COMMENT
                    i += 4
                    continue
                if c == "<" and i + 1 < n and (text[i + 1].isalpha() or text[i + 1] == "/"):
                    self._state = _State.TAG_NAME
                    self._tag = ""
            elif state is _State.RAW_TEXT:
                # Only the matching end tag leaves <script>/<style> content
                end = f"</{self._tag}"
                if text[i : i + len(end)].lower() == end:
                    self._state = _State.TAG_NAME
                    self._tag = "/"
                    i += 2
                    continue
            elif state is _State.COMMENT:
                if text.startswith("-->", i):
                    self._state = _State.TEXT
                    i += 3
                    continue
            elif state is _State.TAG_NAME:
                if c == ">":
                    self._close_tag()
                elif c.isspace():
                    self._state = _State.IN_TAG
                else:
                    self._tag += c
            elif state in (_State.IN_TAG, _State.AFTER_ATTR_NAME):
                if c == ">":
                    self._close_tag()
                elif c == "=" and state is _State.AFTER_ATTR_NAME:
                    self._state = _State.BEFORE_VALUE
                elif not c.isspace() and c != "/":
                    self._state = _State.ATTR_NAME
                    self._attr = c
            elif state is _State.ATTR_NAME:
                if c == "=":
                    self._state = _State.BEFORE_VALUE
                elif c == ">":
                    self._close_tag()
                elif c == "/":
                    self._state = _State.IN_TAG
                elif c.isspace():
                    self._state = _State.AFTER_ATTR_NAME
                else:
                    self._attr += c
            elif state is _State.BEFORE_VALUE:
                if c in "\"'":
                    self._state = _State.VALUE
                    self._quote = c
                elif c == ">":
                    self._close_tag()
                elif not c.isspace():
                    self._state = _State.VALUE
                    self._quote = ""
            elif state is _State.VALUE:
                if self._quote:
                    if c == self._quote:
                        self._state = _State.IN_TAG
                elif c == ">":
                    self._close_tag()
                elif c.isspace():
                    self._state = _State.IN_TAG
            i += 1
