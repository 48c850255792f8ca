"""Shared fakes for the native binding, HTTP session and logging."""

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest
import requests
from loguru import logger

sys.path.insert(0, str(Path(__file__).parent.parent))

from paddle_ocr_ncnn.binding_resolver import RuntimeIdentity

SAMPLE_RESULT = {
    "text": "Hello",
    "char_scores": [0.99, 0.98, 0.97, 0.99, 0.96],
    "box": [{"x": 10, "y": 20}, {"x": 110, "y": 20}, {"x": 110, "y": 50}, {"x": 10, "y": 50}],
    "box_score": 0.93,
    "angle": {"is_rotated": False, "score": 0.88},
}


class FakeEngine:
    """Stands in for the native OCREngine; records every call."""

    def __init__(self, init_result=True, results=None):
        self.init_result = init_result
        self.results = results if results is not None else [SAMPLE_RESULT]
        self.calls = []

    def initialize(self, path):
        self.calls.append(("initialize", path))
        return self.init_result

    def detect(self, path):
        self.calls.append(("detect", path))
        return self.results

    def detect_buffer(self, data):
        self.calls.append(("detect_buffer", data))
        return self.results


class FakeResponse:
    def __init__(self, status_code=200, body=b"", headers=None, error=None):
        self.status_code = status_code
        self.body = body
        self.headers = headers or {}
        self.error = error

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def iter_content(self, chunk_size=1):
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]
        if self.error:
            raise self.error


class FakeSession:
    """Maps URLs to FakeResponse objects (or exceptions) and records requests."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(url)
        route = self.routes.get(url)
        if route is None:
            return FakeResponse(status_code=404)
        if isinstance(route, Exception):
            raise route
        return route


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def binding(fake_engine):
    return SimpleNamespace(OCREngine=lambda: fake_engine)


@pytest.fixture
def linux_identity():
    return RuntimeIdentity(os="linux", arch="x64", host_flavor="standard", abi_version=115)


@pytest.fixture
def embedded_identity():
    return RuntimeIdentity(os="linux", arch="x64", host_flavor="embedded", abi_version=312)


@pytest.fixture
def log_messages():
    """Capture loguru output at WARNING and above."""
    messages = []
    handler_id = logger.add(lambda msg: messages.append(str(msg)), level="WARNING")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def connection_error():
    return requests.ConnectionError("connection reset")
