"""Component metadata: declared parameters, array fields and escape policies.

Metadata is the operator-maintained contract for a component. It is usually
one entry of a ``metadata.json`` file keyed by component name:

    ```json
    {
      "testimonials": {
        "parameters": [
          {"name": "title", "type": "string", "default": "", "escape": "html"},
          {"name": "testimonials", "type": "array", "escape": "html"}
        ],
        "arrayFields": {
          "testimonials": [
            {"name": "name", "type": "string", "escape": "html"},
            {"name": "avatar", "type": "string", "fieldType": "image", "escape": "url"}
          ]
        }
      }
    }
    ```

Loaded once per conversion run and immutable afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from litpress.environment.exceptions import MetadataError


class EscapePolicy(Enum):
    """Output encoding applied before a value reaches markup."""

    HTML = "html"
    URL = "url"
    ATTRIBUTE = "attr"
    SCRIPT = "js"
    NONE = "none"

    @property
    def function(self) -> str | None:
        """WordPress escaping function, or None for raw output."""
        return _ESCAPE_FUNCTIONS[self]

    @classmethod
    def from_token(cls, token: str, *, path: str) -> EscapePolicy:
        """Map a declared token to a policy.

        Raises:
            MetadataError: For unknown tokens. There is no fallback policy.
        """
        policy = _TOKEN_ALIASES.get(str(token).strip().lower())
        if policy is None:
            raise MetadataError(
                f"Unknown escape token {token!r} (expected one of: {', '.join(sorted(_TOKEN_ALIASES))})",
                metadata_path=path,
            )
        return policy


_ESCAPE_FUNCTIONS: dict[EscapePolicy, str | None] = {
    EscapePolicy.HTML: "esc_html",
    EscapePolicy.URL: "esc_url",
    EscapePolicy.ATTRIBUTE: "esc_attr",
    EscapePolicy.SCRIPT: "esc_js",
    EscapePolicy.NONE: None,
}

_TOKEN_ALIASES: dict[str, EscapePolicy] = {
    "html": EscapePolicy.HTML,
    "url": EscapePolicy.URL,
    "attr": EscapePolicy.ATTRIBUTE,
    "attribute": EscapePolicy.ATTRIBUTE,
    "js": EscapePolicy.SCRIPT,
    "script": EscapePolicy.SCRIPT,
    "none": EscapePolicy.NONE,
}


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """A scalar (or array) component parameter."""

    name: str
    type: str = "string"
    default: Any = None
    escape: EscapePolicy | None = None


@dataclass(frozen=True, slots=True)
class ArrayFieldSpec:
    """A field read off each item of an array parameter."""

    name: str
    type: str = "string"
    field_type: str | None = None
    escape: EscapePolicy | None = None


@dataclass(frozen=True, slots=True)
class ComponentMetadata:
    """Declared contract of one component.

    Attributes:
        name: Component name (used in messages and metadata paths)
        parameters: Declared parameters in declaration order
        array_fields: Array parameter name -> fields of each item
        entry_point: Name of the method whose returned template is converted
        php_function: Explicit PHP render function name, if any
    """

    name: str
    parameters: tuple[ParameterSpec, ...] = ()
    array_fields: Mapping[str, tuple[ArrayFieldSpec, ...]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    entry_point: str = "render"
    php_function: str | None = None

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parameters)

    def parameter(self, name: str) -> ParameterSpec | None:
        for param in self.parameters:
            if param.name == name:
                return param
        return None

    def array_field(self, array_name: str, field_name: str) -> ArrayFieldSpec | None:
        for spec in self.array_fields.get(array_name, ()):
            if spec.name == field_name:
                return spec
        return None

    def parameter_path(self, name: str) -> str:
        """Metadata path of a parameter's escape declaration."""
        return f"{self.name}.parameters[name={name}].escape"

    def array_field_path(self, array_name: str, field_name: str) -> str:
        """Metadata path of an array field's escape declaration."""
        return f"{self.name}.arrayFields.{array_name}[name={field_name}].escape"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], name: str | None = None) -> ComponentMetadata:
        """Validate and build metadata from its JSON shape.

        Args:
            data: One component entry (``parameters``, ``arrayFields``, ...)
            name: Component name; falls back to ``data["name"]``

        Raises:
            MetadataError: Missing name, malformed entries, unknown escape tokens
        """
        if not isinstance(data, Mapping):
            raise MetadataError(f"Component metadata must be an object, got {type(data).__name__}")
        component = name or data.get("name")
        if not component:
            raise MetadataError("Component metadata has no name")

        raw_params = data.get("parameters", [])
        if not isinstance(raw_params, list):
            raise MetadataError(
                "'parameters' must be a list",
                component=component,
                metadata_path=f"{component}.parameters",
            )
        parameters = []
        seen: set[str] = set()
        for index, entry in enumerate(raw_params):
            path = f"{component}.parameters[{index}]"
            param_name = _require_name(entry, path, component)
            if param_name in seen:
                raise MetadataError(
                    f"Duplicate parameter '{param_name}'", component=component, metadata_path=path
                )
            seen.add(param_name)
            parameters.append(
                ParameterSpec(
                    name=param_name,
                    type=str(entry.get("type", "string")).lower(),
                    default=entry.get("default"),
                    escape=_escape_of(entry, f"{component}.parameters[name={param_name}].escape"),
                )
            )

        raw_arrays = data.get("arrayFields") or {}
        if not isinstance(raw_arrays, Mapping):
            raise MetadataError(
                "'arrayFields' must be an object",
                component=component,
                metadata_path=f"{component}.arrayFields",
            )
        array_fields: dict[str, tuple[ArrayFieldSpec, ...]] = {}
        for array_name, entries in raw_arrays.items():
            if not isinstance(entries, list):
                raise MetadataError(
                    f"arrayFields entry '{array_name}' must be a list",
                    component=component,
                    metadata_path=f"{component}.arrayFields.{array_name}",
                )
            specs = []
            for index, entry in enumerate(entries):
                path = f"{component}.arrayFields.{array_name}[{index}]"
                field_name = _require_name(entry, path, component)
                specs.append(
                    ArrayFieldSpec(
                        name=field_name,
                        type=str(entry.get("type", "string")).lower(),
                        field_type=entry.get("fieldType"),
                        escape=_escape_of(
                            entry, f"{component}.arrayFields.{array_name}[name={field_name}].escape"
                        ),
                    )
                )
            array_fields[array_name] = tuple(specs)

        return cls(
            name=component,
            parameters=tuple(parameters),
            array_fields=MappingProxyType(array_fields),
            entry_point=data.get("entryPoint", "render"),
            php_function=data.get("phpFunction"),
        )


def _require_name(entry: Any, path: str, component: str) -> str:
    if not isinstance(entry, Mapping) or not entry.get("name"):
        raise MetadataError("Entry has no 'name'", component=component, metadata_path=path)
    return str(entry["name"])


def _escape_of(entry: Mapping[str, Any], path: str) -> EscapePolicy | None:
    # Absent policies are legal here; they fail only when a value is interpolated.
    token = entry.get("escape")
    if token is None:
        return None
    return EscapePolicy.from_token(token, path=path)
