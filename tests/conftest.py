from __future__ import annotations

import pytest
import respx
from fastapi.testclient import TestClient

import app.workers.fetcher as fetcher_module
from app.main import app


@pytest.fixture
def client():
    """TestClient with the app lifespan running."""
    with TestClient(app) as c:
        yield c


@pytest.fixture
def http_mock():
    """respx router that intercepts every outbound call.

    The shared httpx client is reset before and after each test so a client
    bound to a previous event loop is never reused.  Unmocked requests fail
    the test, which is how "never calls X" properties are asserted.
    """
    fetcher_module._http_client = None
    with respx.mock(assert_all_called=False) as router:
        yield router
    fetcher_module._http_client = None
