"""Pytest configuration and fixtures for litpress tests."""

import pytest

from litpress import ComponentMetadata, DictLoader, Environment
from litpress.environment import terminal

TESTIMONIALS = {
    "parameters": [
        {"name": "title", "type": "string", "default": "What people say", "escape": "html"},
        {"name": "testimonials", "type": "array", "default": [], "escape": "html"},
    ],
    "arrayFields": {
        "testimonials": [
            {"name": "name", "type": "string", "escape": "html"},
            {"name": "role", "type": "string"},
            {"name": "quote", "type": "string", "escape": "html"},
            {"name": "avatar", "type": "string", "fieldType": "image", "escape": "url"},
            {"name": "rating", "type": "number", "escape": "html"},
        ]
    },
}

HERO = {
    "parameters": [
        {"name": "title", "type": "string", "default": "Welcome", "escape": "html"},
        {"name": "subtitle", "type": "string"},
        {"name": "ctaUrl", "type": "string", "escape": "url"},
        {"name": "ctaText", "type": "string", "default": "Start", "escape": "html"},
        {"name": "showCta", "type": "boolean", "default": True},
        {"name": "hasImage", "type": "boolean", "default": False},
        {"name": "image", "type": "string", "escape": "url"},
        {"name": "rawHtml", "type": "string", "escape": "none"},
        {"name": "trackingId", "type": "string", "escape": "js"},
    ]
}

SEARCH_RESULTS = {
    "parameters": [
        {"name": "totalResults", "type": "number", "default": 0, "escape": "html"},
        {"name": "results", "type": "array", "escape": "html"},
    ],
    "arrayFields": {
        "results": [
            {"name": "title", "type": "string", "escape": "html"},
            {"name": "url", "type": "string", "escape": "url"},
            {"name": "tags", "type": "array", "escape": "html"},
        ]
    },
}


@pytest.fixture(autouse=True)
def _no_colors(monkeypatch):
    """Keep error messages free of ANSI codes regardless of the terminal."""
    monkeypatch.setattr(terminal, "_USE_COLORS", False)


@pytest.fixture
def env():
    """Create a litpress Environment with the sample components."""
    return Environment(
        loader=DictLoader(
            {
                "testimonials": TESTIMONIALS,
                "hero-section": HERO,
                "search-results": SEARCH_RESULTS,
            }
        )
    )


@pytest.fixture
def hero():
    return ComponentMetadata.from_dict(HERO, name="hero-section")


@pytest.fixture
def testimonials():
    return ComponentMetadata.from_dict(TESTIMONIALS, name="testimonials")


@pytest.fixture
def search_results():
    return ComponentMetadata.from_dict(SEARCH_RESULTS, name="search-results")


def assert_contains(result: str, *expected_parts: str) -> None:
    """Assert conversion result contains all expected parts.

    Args:
        result: The PHP produced by a conversion.
        expected_parts: Strings that should all be present in the result.
    """
    for part in expected_parts:
        assert part in result, (
            f"Conversion output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {result!r}"
        )
