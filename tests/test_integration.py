"""Integration tests.

These tests exercise the full request -> resolver -> tier pipeline.

What is mocked:
  - External HTTP calls, per-test with respx
  - The extraction job client, configured against a fake API base

What is NOT mocked (runs real code):
  - FastAPI routes, dependency injection
  - OEmbedResolver fallback logic, provider registry, HTML extraction
  - Response shaping and error mapping
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from app.api.oembed.routes import _get_resolver
from app.main import app
from app.services.oembed.extraction import ExtractionJobClient
from app.services.oembed.registry import registry
from app.services.oembed.resolver import OEmbedResolver

_EXTRACT_BASE = "https://extract.test"

_PAGE = """
<!DOCTYPE html>
<html><head>
  <title>Document title</title>
  <meta property="og:title" content="Post title">
  <meta property="og:description" content="About the post">
  <meta property="og:image" content="https://example.org/cover.png">
</head><body>Hello</body></html>
"""


@pytest.fixture
def integration_client(http_mock):
    """Full-stack client whose resolver talks to a fake extraction API."""
    app.dependency_overrides[_get_resolver] = lambda: OEmbedResolver(
        registry,
        ExtractionJobClient(_EXTRACT_BASE, "token", poll_interval=0, max_polls=10),
    )
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()


class TestIntegrationProvider:
    def test_known_provider_response_is_passed_through(self, integration_client, http_mock):
        route = http_mock.get("https://vimeo.com/api/oembed.json").mock(
            return_value=httpx.Response(
                200,
                json={
                    "type": "video",
                    "version": "1.0",
                    "title": "Clip",
                    "html": "<iframe src=\"https://player.vimeo.com/video/1\"></iframe>",
                    "width": "100%",
                    "height": "360",
                },
            )
        )

        resp = integration_client.get("/oembed?url=https://vimeo.com/1")

        assert resp.status_code == 200
        assert route.call_count == 1
        body = resp.json()
        assert body["type"] == "video"
        assert body["width"] == 100
        assert body["height"] == 360
        assert body["html"].startswith("<iframe")


class TestIntegrationHtml:
    def test_page_with_essentials_is_resolved_from_meta_tags(
        self, integration_client, http_mock
    ):
        http_mock.get("https://example.org/post").mock(
            return_value=httpx.Response(200, text=_PAGE)
        )

        resp = integration_client.get("/oembed?url=https://example.org/post")

        assert resp.status_code == 200
        body = resp.json()
        assert body["type"] == "rich"
        assert body["title"] == "Post title"
        assert body["thumbnail_url"] == "https://example.org/cover.png"
        assert body["provider_url"] == "https://example.org"
        assert "<p>About the post</p>" in body["html"]
        assert len(http_mock.calls) == 1

    def test_unreachable_page_with_failed_job_returns_400(
        self, integration_client, http_mock
    ):
        http_mock.get("https://example.org/missing").mock(return_value=httpx.Response(404))
        http_mock.post(f"{_EXTRACT_BASE}/v1/extract").mock(
            return_value=httpx.Response(200, json={"id": "job-9"})
        )
        http_mock.get(f"{_EXTRACT_BASE}/v1/extract/job-9").mock(
            return_value=httpx.Response(200, json={"status": "cancelled"})
        )

        resp = integration_client.get("/oembed?url=https://example.org/missing")

        assert resp.status_code == 400
        assert "HTTP 404" in resp.text

    def test_invalid_url_never_calls_out(self, integration_client, http_mock):
        resp = integration_client.get("/oembed?url=not-a-url")

        assert resp.status_code == 400
        assert resp.text.startswith("Invalid URL")
        assert len(http_mock.calls) == 0
