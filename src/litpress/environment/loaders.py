"""Metadata loaders for the litpress environment.

Loaders provide component metadata to the Environment. They implement
`get_metadata(name)` returning a validated `ComponentMetadata`.

Built-in Loaders:
- `FileSystemLoader`: Load from one or more ``metadata.json`` files
- `DictLoader`: Load from an in-memory dictionary (testing/embedded)

Custom Loaders:
Implement the Loader protocol:
    ```python
    class ThemeConfigLoader:
        def get_metadata(self, name: str) -> ComponentMetadata:
            entry = config["components"].get(name)
            if entry is None:
                raise MetadataError(f"Component '{name}' has no metadata")
            return ComponentMetadata.from_dict(entry, name=name)

        def list_components(self) -> list[str]:
            return sorted(config["components"])
    ```

"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from difflib import get_close_matches
from pathlib import Path
from typing import Any

from litpress.environment.exceptions import MetadataError
from litpress.metadata import ComponentMetadata

logger = logging.getLogger(__name__)


def _not_found(name: str, available: list[str], where: str | None = None) -> MetadataError:
    msg = f"Component '{name}' has no metadata"
    if where:
        msg += f" in {where}"
    matches = get_close_matches(name, available, n=1, cutoff=0.6)
    if matches:
        msg += f". Did you mean '{matches[0]}'?"
    elif available:
        msg += f". Available: {', '.join(available[:10])}"
        if len(available) > 10:
            msg += f" ... ({len(available)} total)"
    return MetadataError(msg, metadata_path=name)


class DictLoader:
    """Load metadata from an in-memory mapping of component name -> entry.

    Entries use the ``metadata.json`` shape (``parameters``, ``arrayFields``).

    Example:
            >>> loader = DictLoader({
            ...     "hero": {"parameters": [{"name": "title", "escape": "html"}]},
            ... })
            >>> loader.get_metadata("hero").parameter_names
            ('title',)

    Raises:
        MetadataError: Unknown component name or malformed entry

    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: Mapping[str, Mapping[str, Any]]):
        self._mapping = mapping

    def get_metadata(self, name: str) -> ComponentMetadata:
        if name not in self._mapping:
            raise _not_found(name, sorted(self._mapping))
        return ComponentMetadata.from_dict(self._mapping[name], name=name)

    def list_components(self) -> list[str]:
        return sorted(self._mapping)


class FileSystemLoader:
    """Load metadata from ``metadata.json`` files.

    Each file maps component names to entries. Files are searched in order;
    the first one that declares the component wins, so a theme can override
    a shared file:

        ```python
        loader = FileSystemLoader(["theme/metadata.json", "shared/metadata.json"])
        ```

    A directory is accepted in place of a file and means
    ``<directory>/metadata.json``.

    Raises:
        MetadataError: Unreadable or invalid JSON, unknown component

    """

    __slots__ = ("_encoding", "_paths")

    def __init__(
        self,
        paths: str | Path | list[str | Path],
        encoding: str = "utf-8",
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) / "metadata.json" if Path(p).is_dir() else Path(p) for p in paths]
        self._encoding = encoding

    def _read(self, path: Path) -> Mapping[str, Any]:
        try:
            data = json.loads(path.read_text(self._encoding))
        except json.JSONDecodeError as e:
            raise MetadataError(
                f"Invalid JSON in {path}: {e.msg}", lineno=e.lineno, metadata_path=str(path)
            ) from e
        if not isinstance(data, Mapping):
            raise MetadataError(
                f"{path} must contain an object of components", metadata_path=str(path)
            )
        return data

    def get_metadata(self, name: str) -> ComponentMetadata:
        available: set[str] = set()
        for path in self._paths:
            if not path.is_file():
                continue
            data = self._read(path)
            if name in data:
                logger.debug("Metadata for %s loaded from %s", name, path)
                return ComponentMetadata.from_dict(data[name], name=name)
            available.update(data)
        raise _not_found(name, sorted(available), ", ".join(str(p) for p in self._paths))

    def list_components(self) -> list[str]:
        names: set[str] = set()
        for path in self._paths:
            if path.is_file():
                names.update(self._read(path))
        return sorted(names)
