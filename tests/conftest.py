"""Pytest configuration and fixtures."""

import os

import pytest

from toneguide.core.config import get_settings


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["TONEGUIDE_ENV"] = "test"
    get_settings.cache_clear()


@pytest.fixture
def make_rule():
    """Factory for candidate rule dicts as they arrive from the model."""

    def _make(category: str, title: str | None = None, **overrides) -> dict:
        rule = {
            "category": category,
            "title": category if title is None else title,
            "description": f"Guidance about {category.lower()} for our brand",
            "examples": {"good": f"Good {category} example", "bad": f"Bad {category} example"},
        }
        rule.update(overrides)
        return rule

    return _make
