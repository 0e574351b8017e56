"""Environment: conversion configuration and metadata access.

The Environment is the entry point for converting a set of components that
share a configuration and a metadata source:

    >>> from litpress import Environment, FileSystemLoader
    >>> env = Environment(loader=FileSystemLoader("src/metadata.json"))
    >>> php = env.convert(source, "hero-section")
    >>> php = env.render_function(source, "hero-section")

Metadata is loaded once per component name and cached; ComponentMetadata is
immutable, so cached entries are safe to share between threads. Each
conversion uses its own Converter instance.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from typing import Any, Protocol

from litpress.compiler import Converter, render_function
from litpress.environment.exceptions import MetadataError
from litpress.metadata import ComponentMetadata
from litpress.utils.constants import DEFAULT_RESULT_COUNT_LABELS, DEFAULT_STAR_COUNT

logger = logging.getLogger(__name__)


class Loader(Protocol):
    def get_metadata(self, name: str) -> ComponentMetadata: ...

    def list_components(self) -> list[str]: ...


MetadataLike = ComponentMetadata | Mapping[str, Any] | str


class Environment:
    """Shared configuration for component conversions.

    Attributes:
        loader: Metadata source used when a component is named by string
        entry_point: Entry method override; None uses each component's
            ``entryPoint`` (default ``render``)
        template_tag: Tag of markup templates (``html``)
        result_count_labels: Zero/one/many labels for formatResultCount();
            ``{count}`` is replaced by the number of results
        star_count: Number of stars rendered by renderStars()

    """

    __slots__ = (
        "_cache",
        "_lock",
        "entry_point",
        "loader",
        "result_count_labels",
        "star_count",
        "template_tag",
    )

    def __init__(
        self,
        loader: Loader | None = None,
        *,
        entry_point: str | None = None,
        template_tag: str = "html",
        result_count_labels: tuple[str, str, str] = DEFAULT_RESULT_COUNT_LABELS,
        star_count: int = DEFAULT_STAR_COUNT,
    ):
        if len(result_count_labels) != 3:
            raise ValueError("result_count_labels needs zero, one and many labels")
        if star_count < 1:
            raise ValueError("star_count must be positive")
        self.loader = loader
        self.entry_point = entry_point
        self.template_tag = template_tag
        self.result_count_labels = tuple(result_count_labels)
        self.star_count = star_count
        self._cache: dict[str, ComponentMetadata] = {}
        self._lock = threading.Lock()

    def get_metadata(self, name: str) -> ComponentMetadata:
        """Load (and cache) metadata for a component by name.

        Raises:
            MetadataError: No loader configured, or the loader has no entry
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached
        if self.loader is None:
            raise MetadataError(
                f"No loader configured to look up metadata for '{name}'",
                component=name,
            )
        metadata = self.loader.get_metadata(name)
        with self._lock:
            self._cache.setdefault(name, metadata)
        return metadata

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def resolve_metadata(self, metadata: MetadataLike, name: str | None = None) -> ComponentMetadata:
        """Accept metadata as an object, a ``metadata.json`` entry, or a component name."""
        if isinstance(metadata, ComponentMetadata):
            return metadata
        if isinstance(metadata, str):
            return self.get_metadata(metadata)
        return ComponentMetadata.from_dict(metadata, name=name)

    def converter(self) -> Converter:
        """New Converter configured from this environment."""
        return Converter(
            entry_point=self.entry_point,
            template_tag=self.template_tag,
            result_count_labels=self.result_count_labels,
            star_count=self.star_count,
        )

    def convert(self, source: str, metadata: MetadataLike) -> str:
        """Convert raw template source to a PHP fragment."""
        meta = self.resolve_metadata(metadata)
        php = self.converter().convert(source, meta)
        logger.debug("Converted %s (%d bytes of PHP)", meta.name, len(php))
        return php

    def convert_component(self, module_source: str, metadata: MetadataLike) -> str:
        """Convert a whole component module to a PHP fragment."""
        meta = self.resolve_metadata(metadata)
        return self.converter().convert_component(module_source, meta)

    def render_function(
        self,
        source: str,
        metadata: MetadataLike,
        *,
        component_module: bool = False,
    ) -> str:
        """Convert and wrap the fragment in a PHP render function."""
        meta = self.resolve_metadata(metadata)
        converter = self.converter()
        if component_module:
            body = converter.convert_component(source, meta)
        else:
            body = converter.convert(source, meta)
        return render_function(meta, body)
