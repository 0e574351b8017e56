"""Tests for EscapeResolver: positional rules first, then declared policies."""

import pytest

from litpress.compiler.escape import EscapeResolver
from litpress.environment.exceptions import MissingEscapeMetadataError
from litpress.metadata import EscapePolicy


@pytest.fixture
def resolver(testimonials) -> EscapeResolver:
    return EscapeResolver(testimonials)


class TestPositionalRules:
    @pytest.mark.parametrize("attr", ["href", "src", "action", "HREF", ".src"])
    def test_url_attributes(self, resolver, attr):
        resolution = resolver.resolve("title", is_attribute=True, attribute_name=attr)
        assert resolution.policy is EscapePolicy.URL
        assert resolution.function == "esc_url"
        assert resolution.reason == "positional"

    def test_other_attributes_use_esc_attr(self, resolver):
        resolution = resolver.resolve("title", is_attribute=True, attribute_name="class")
        assert resolution.function == "esc_attr"

    def test_positional_wins_over_missing_declaration(self, resolver):
        # role has no escape policy, but attribute position decides
        resolution = resolver.resolve(
            "role", is_attribute=True, attribute_name="title", array_name="testimonials"
        )
        assert resolution.policy is EscapePolicy.ATTRIBUTE


class TestDeclaredPolicies:
    def test_parameter_policy(self, resolver):
        resolution = resolver.resolve("title")
        assert resolution.function == "esc_html"
        assert resolution.reason == "declared"

    def test_array_field_policy(self, resolver):
        assert resolver.resolve("avatar", array_name="testimonials").function == "esc_url"

    def test_none_policy_has_no_function(self, hero):
        resolution = EscapeResolver(hero).resolve("rawHtml")
        assert resolution.policy is EscapePolicy.NONE
        assert resolution.function is None

    def test_missing_parameter_policy(self, hero):
        with pytest.raises(MissingEscapeMetadataError) as exc_info:
            EscapeResolver(hero).resolve("subtitle")
        error = exc_info.value
        assert error.field == "subtitle"
        assert error.component == "hero-section"
        assert error.metadata_path == "hero-section.parameters[name=subtitle].escape"

    def test_missing_array_field_policy(self, resolver):
        with pytest.raises(MissingEscapeMetadataError) as exc_info:
            resolver.resolve("role", array_name="testimonials")
        assert exc_info.value.metadata_path == "testimonials.arrayFields.testimonials[name=role].escape"

    def test_undeclared_field_has_no_default(self, resolver):
        with pytest.raises(MissingEscapeMetadataError):
            resolver.resolve("email", array_name="testimonials")
