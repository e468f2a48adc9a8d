"""Shared pytest fixtures for standin tests."""

import pytest

from standin import Resolver


@pytest.fixture()
def resolver() -> Resolver:
    """Default resolver, doubles keep mock defaults."""
    return Resolver()


@pytest.fixture()
def smart_resolver() -> Resolver:
    """Resolver whose doubles return empty values for annotated methods."""
    return Resolver(smart_doubles=True)
