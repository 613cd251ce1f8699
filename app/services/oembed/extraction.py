"""Client for the asynchronous extraction-job API (tier 4).

A job is submitted once and then polled at a constant interval until it
reaches a terminal status or the poll budget runs out.  The polling loop is
driven by tenacity: a poll that returns ``None`` means "still running" and
is retried; terminal failures raise ``ExtractionFailed`` and are not.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    before_sleep_log,
    retry_if_result,
    stop_after_attempt,
    wait_fixed,
)

from app.core.config import Settings, settings
from app.core.errors import ExtractionFailed, ExtractionTimedOut
from app.models.oembed.schemas import MetadataRecord, render_embed_html
from app.workers.fetcher import get_http_client

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = (
    "Extract the article title, article image, description, provider url "
    "and provider name."
)

EXTRACTION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "description": {"type": "string"},
        "provider_url": {"type": "string"},
        "provider_name": {"type": "string"},
        "article_image": {"type": "string"},
    },
    "required": ["title", "article_image"],
}

_FAILED_STATUSES = frozenset({"failed", "cancelled"})


def _str_or_none(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    return value if isinstance(value, str) else None


class ExtractionJobClient:
    """Submits a URL to the extraction API and waits for the result."""

    def __init__(
        self,
        api_base: str,
        api_token: str,
        *,
        poll_interval: float = 2.0,
        max_polls: int = 10,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._headers = {"Authorization": f"Bearer {api_token}"}
        self._poll_interval = poll_interval
        self._max_polls = max_polls

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> ExtractionJobClient | None:
        """Build a client from *cfg*, or ``None`` when no API token is set."""
        if not cfg.firecrawl_api_token:
            return None
        return cls(
            cfg.firecrawl_api_base,
            cfg.firecrawl_api_token,
            poll_interval=cfg.extract_poll_interval,
            max_polls=cfg.extract_max_polls,
        )

    async def extract(self, url: str, deadline: float | None = None) -> MetadataRecord:
        """Run one extraction job for *url* and map its result.

        *deadline* is an absolute ``loop.time()`` value; once it passes the
        job is abandoned.

        Raises:
            ExtractionFailed: submit failed, or the job failed / was cancelled.
            ExtractionTimedOut: the poll budget or *deadline* ran out.
        """
        try:
            async with asyncio.timeout_at(deadline):
                job_id = await self.submit(url)
                return await self.wait_for_result(job_id, url)
        except TimeoutError as exc:
            raise ExtractionTimedOut(f"Extraction deadline exceeded for {url}") from exc

    async def submit(self, url: str) -> str:
        """Start an extraction job and return its identifier."""
        payload = {
            "urls": [url],
            "prompt": EXTRACTION_PROMPT,
            "schema": EXTRACTION_SCHEMA,
        }
        body = await self._request("POST", f"{self._api_base}/v1/extract", json=payload)
        job_id = body.get("id") if isinstance(body, dict) else None
        if not isinstance(job_id, str):
            raise ExtractionFailed("No execution ID in extraction response")
        logger.info("Submitted extraction job %s for %s", job_id, url)
        return job_id

    async def wait_for_result(self, job_id: str, url: str) -> MetadataRecord:
        """Poll *job_id* until it completes, at most ``max_polls`` times."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_polls),
            wait=wait_fixed(self._poll_interval),
            retry=retry_if_result(lambda record: record is None),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            reraise=False,
        )
        try:
            return await retrying(self._poll_once, job_id, url)
        except RetryError as exc:
            raise ExtractionTimedOut(
                f"Max polling attempts reached for extraction job {job_id}"
            ) from exc

    async def _poll_once(self, job_id: str, url: str) -> MetadataRecord | None:
        """Single status check; ``None`` means the job is still running."""
        body = await self._request("GET", f"{self._api_base}/v1/extract/{job_id}")
        status = body.get("status") if isinstance(body, dict) else None
        if not isinstance(status, str):
            raise ExtractionFailed(f"No status in response for extraction job {job_id}")

        if status == "completed":
            data = body.get("data")
            if not isinstance(data, dict):
                raise ExtractionFailed(f"No data in completed extraction job {job_id}")
            return self._to_record(data, url)
        if status in _FAILED_STATUSES:
            raise ExtractionFailed(f"Extraction {status}: {job_id}")
        return None

    @staticmethod
    def _to_record(data: dict[str, Any], url: str) -> MetadataRecord:
        title = _str_or_none(data, "title")
        return MetadataRecord(
            title=title,
            provider_name=_str_or_none(data, "provider_name"),
            provider_url=_str_or_none(data, "provider_url"),
            thumbnail_url=_str_or_none(data, "article_image"),
            embed_html=render_embed_html(title, _str_or_none(data, "description"), url),
        )

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        client = get_http_client()
        try:
            response = await client.request(method, url, headers=self._headers, **kwargs)
        except httpx.RequestError as exc:
            raise ExtractionFailed(f"Extraction request to {url} failed: {exc}") from exc
        if not response.is_success:
            raise ExtractionFailed(
                f"Extraction request to {url} failed: HTTP {response.status_code}"
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ExtractionFailed(f"Invalid JSON from {url}: {exc}") from exc
