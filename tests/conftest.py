"""
Pytest configuration and shared fixtures.

Provides a fake inference API (httpx.MockTransport), pipeline factories
and a TestClient factory for the PostGuard test suite.

IMPORTANT: Environment variables must be set BEFORE importing postguard
modules, as Settings is cached on first use.
"""

import json
import os
import sys

# Set test environment variables before importing postguard modules
os.environ["MODERATION_API_KEY"] = "test-key-not-real"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["DEBUG"] = "false"

# Now safe to import everything else
import httpx
import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")


@pytest.fixture(autouse=True)
def reset_singletons():
    """
    Reset all singleton instances between tests.

    This ensures each test starts with a clean state.
    """
    yield

    from postguard.pipeline.screening import reset_screening_pipeline

    reset_screening_pipeline()

    try:
        from postguard.metrics import store

        if store._store is not None:
            store._store.reset()
    except (ImportError, AttributeError):
        pass

    try:
        from postguard.registry import classifiers

        classifiers._registry_instance = None
    except (ImportError, AttributeError):
        pass

    try:
        from postguard.dispatcher import handlers

        handlers._client = None
    except (ImportError, AttributeError):
        pass


class FakeInferenceAPI:
    """
    In-process stand-in for the hosted inference API.

    Responses are keyed by classifier name. A value may be a JSON-able
    payload (served as application/json), an httpx.Response, or an
    exception instance to raise from the transport.

    Every request is recorded in `calls` as (classifier name, body, headers).
    """

    def __init__(self, registry, responses: dict):
        self._by_path = {
            httpx.URL(c.endpoint).path: c.name for c in registry.list_classifiers()
        }
        self.responses = dict(responses)
        self.calls: list[tuple[str, dict, httpx.Headers]] = []

    @property
    def called_models(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    def handler(self, request: httpx.Request) -> httpx.Response:
        name = self._by_path.get(request.url.path)
        self.calls.append((name, json.loads(request.content), request.headers))

        reply = self.responses.get(name)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, httpx.Response):
            return reply
        if reply is None:
            return httpx.Response(404, json={"error": f"no fake response for {name}"})
        return httpx.Response(200, json=reply)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def registry():
    """Get the classifier registry instance."""
    from postguard.registry import get_classifier_registry

    return get_classifier_registry()


@pytest.fixture
def fake_api(registry):
    """
    Factory fixture for FakeInferenceAPI objects.

    Usage:
        api = fake_api({"hate-speech": NOT_HATE, "toxicity": TOXIC_LOW})
    """

    def _create(responses: dict) -> FakeInferenceAPI:
        return FakeInferenceAPI(registry, responses)

    return _create


@pytest.fixture
def make_pipeline(registry):
    """
    Factory fixture for ScreeningPipeline objects backed by a fake API.

    Usage:
        pipeline = make_pipeline(api)
        pipeline = make_pipeline(api, api_key=None)  # no credential
    """
    from postguard.dispatcher.handlers import ModelClient
    from postguard.pipeline.screening import ScreeningPipeline

    def _create(api: FakeInferenceAPI, api_key: str | None = "test-key-not-real"):
        client = ModelClient(api_key=api_key, timeout=5.0, transport=api.transport())
        return ScreeningPipeline(registry.list_classifiers(), client)

    return _create


@pytest.fixture
def make_test_client(make_pipeline):
    """
    Factory fixture for a FastAPI TestClient whose pipeline talks to a fake API.

    Usage:
        with make_test_client(api) as client:
            client.post("/moderate", json={...})
    """
    from contextlib import contextmanager

    @contextmanager
    def _create(api: FakeInferenceAPI, api_key: str | None = "test-key-not-real"):
        pipeline = make_pipeline(api, api_key=api_key)

        if "postguard.main" in sys.modules:
            del sys.modules["postguard.main"]

        # Patch where the function is CALLED from (postguard.main)
        with patch("postguard.main.get_screening_pipeline", return_value=pipeline):
            from postguard.main import app

            with TestClient(app) as client:
                yield client

        if "postguard.main" in sys.modules:
            del sys.modules["postguard.main"]

    return _create


@pytest.fixture
def test_client():
    """TestClient over the real app, for endpoints that never call a model."""
    if "postguard.main" in sys.modules:
        del sys.modules["postguard.main"]

    from postguard.main import app

    with TestClient(app) as client:
        yield client

    if "postguard.main" in sys.modules:
        del sys.modules["postguard.main"]
