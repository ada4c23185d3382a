"""Fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient

from api import create_app
from api import dependencies
from api.dependencies import ServiceContainer
from shared.config import Settings


@pytest.fixture
def make_container(monkeypatch):
    """Install a service container built from explicit settings."""

    def _make(**overrides) -> ServiceContainer:
        container = ServiceContainer(settings=Settings(_env_file=None, **overrides))
        monkeypatch.setattr(dependencies, "_container", container)
        return container

    return _make


@pytest.fixture
def client(make_container):
    """Client for a container with default (non-debug) settings."""
    make_container()
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def debug_client(make_container):
    """Client for a container with debug mode on."""
    make_container(debug=True)
    with TestClient(create_app()) as test_client:
        yield test_client
