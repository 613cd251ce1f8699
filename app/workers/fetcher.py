"""Async HTTP fetcher.

Performs the outbound GETs of the resolution pipeline: provider oEmbed
endpoints (JSON) and the pages scraped for meta tags (HTML).

Uses httpx.AsyncClient which is meant to be long-lived and reused.
A single shared client is managed by the module; see ``get_http_client``
and ``close_http_client`` for lifecycle hooks.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from app.core.config import settings
from app.core.errors import UpstreamUnavailable

logger = logging.getLogger(__name__)

# Some sites reject requests that do not look like a desktop browser.
BROWSER_HEADERS: dict[str, str] = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Connection": "keep-alive",
}

# Module-level shared client
_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Return the shared AsyncClient.  Creates one if missing."""
    global _http_client  # noqa: PLW0603
    if _http_client is None or _http_client.is_closed:
        _http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(settings.http_timeout),
            follow_redirects=True,
            verify=settings.http_verify_ssl,
            headers={"User-Agent": "OEmbedResolver/1.0"},
        )
    return _http_client


async def close_http_client() -> None:
    """Close the shared AsyncClient gracefully."""
    global _http_client  # noqa: PLW0603
    if _http_client is not None and not _http_client.is_closed:
        await _http_client.aclose()
        _http_client = None
        logger.info("HTTP client closed.")


class FetchError(UpstreamUnavailable):
    """Raised when an outbound GET fails or returns a non-2xx status."""


async def _get(
    url: str,
    *,
    params: Mapping[str, str] | None = None,
    headers: Mapping[str, str] | None = None,
) -> httpx.Response:
    client = get_http_client()
    try:
        response = await client.get(url, params=params, headers=headers)
    except httpx.InvalidURL as exc:
        raise FetchError(f"Invalid URL '{url}': {exc}") from exc
    except httpx.RequestError as exc:
        raise FetchError(f"Request error for '{url}': {exc}") from exc

    if not response.is_success:
        raise FetchError(f"Failed to fetch {url}: HTTP {response.status_code}")
    return response


async def fetch_json(url: str, params: Mapping[str, str] | None = None) -> Any:
    """GET *url* and return the decoded JSON body.

    Raises:
        FetchError: on transport failure, non-2xx status or a body that is
            not valid JSON.
    """
    response = await _get(url, params=params)
    try:
        return response.json()
    except ValueError as exc:
        raise FetchError(f"Invalid JSON from {url}: {exc}") from exc


async def fetch_page(url: str) -> str:
    """GET *url* with browser-like headers and return the decoded HTML.

    Raises:
        FetchError: on transport failure or a non-2xx status.
    """
    response = await _get(url, headers=BROWSER_HEADERS)
    logger.debug("Fetched %s (final URL %s)", url, response.url)
    return response.text
