"""Output-encoding decisions.

Positional rules win over declared policies: a value written into an
``href``/``src``/``action`` attribute is always URL-encoded, any other
attribute value is attribute-encoded. Outside attributes the policy declared
in the component metadata applies. There is no implicit default; a field with
no declared policy stops the conversion.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from litpress.environment.exceptions import MissingEscapeMetadataError
from litpress.metadata import ComponentMetadata, EscapePolicy
from litpress.utils.constants import LIT_BINDING_PREFIXES, URL_ATTRIBUTES

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Resolution:
    """Chosen policy and the rule that chose it (``positional``/``declared``)."""

    policy: EscapePolicy
    reason: str

    @property
    def function(self) -> str | None:
        return self.policy.function


class EscapeResolver:
    """Map a field reference plus its position to an escaping function."""

    __slots__ = ("_metadata",)

    def __init__(self, metadata: ComponentMetadata):
        self._metadata = metadata

    def resolve(
        self,
        field_name: str,
        *,
        is_attribute: bool = False,
        attribute_name: str = "",
        array_name: str | None = None,
        lineno: int | None = None,
    ) -> Resolution:
        """Pick the policy for one interpolation.

        Args:
            field_name: Parameter name, or the field read off a loop item
            is_attribute: The value lands inside an attribute value
            attribute_name: That attribute's name (Lit prefixes allowed)
            array_name: Array parameter the loop item comes from, for item fields

        Raises:
            MissingEscapeMetadataError: No positional rule and no declared policy
        """
        if is_attribute:
            attr = attribute_name.lstrip(LIT_BINDING_PREFIXES).lower()
            policy = EscapePolicy.URL if attr in URL_ATTRIBUTES else EscapePolicy.ATTRIBUTE
            logger.debug("Escape %s in [%s]: %s (positional)", field_name, attr, policy.value)
            return Resolution(policy, "positional")

        meta = self._metadata
        if array_name is not None:
            spec = meta.array_field(array_name, field_name)
            declared = spec.escape if spec is not None else None
            path = meta.array_field_path(array_name, field_name)
        else:
            param = meta.parameter(field_name)
            declared = param.escape if param is not None else None
            path = meta.parameter_path(field_name)

        if declared is None:
            raise MissingEscapeMetadataError(field_name, meta.name, path, lineno=lineno)
        logger.debug("Escape %s: %s (declared)", field_name, declared.value)
        return Resolution(declared, "declared")
