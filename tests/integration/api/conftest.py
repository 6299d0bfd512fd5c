"""API-level integration test fixtures.

Provides a TestClient bound to an application whose engine is shared with
the test, so the test can play the consumer side directly.
"""

import pytest
from fastapi.testclient import TestClient

from playground_sync.infrastructure.api.app import create_app
from playground_sync.infrastructure.config.models import HttpConfig


@pytest.fixture
def client(engine):
    """TestClient running the app lifespan around the shared engine."""
    app = create_app(engine, HttpConfig())
    with TestClient(app) as client:
        yield client


@pytest.fixture
def timeout_client(engine):
    """TestClient whose submissions give up after a short deadline."""
    app = create_app(engine, HttpConfig(submit_timeout_seconds=0.1))
    with TestClient(app) as client:
        yield client
