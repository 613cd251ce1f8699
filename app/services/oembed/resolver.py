"""Resolution pipeline: known provider -> HTML meta tags -> extraction job.

Tiers run strictly in order, and the outcome of one decides whether the next
runs.  Tier failures are logged and swallowed while a later tier or an
earlier partial record can still answer.
"""

from __future__ import annotations

import asyncio
import logging

from pydantic import AnyHttpUrl, ValidationError

from app.core.errors import (
    InvalidInput,
    NoResult,
    ResolutionError,
    UpstreamUnavailable,
)
from app.models.oembed.schemas import MetadataRecord, ProviderEntry
from app.services.oembed.extraction import ExtractionJobClient
from app.services.oembed.registry import ProviderRegistry
from app.services.oembed.scraper import scrape_page
from app.workers.fetcher import FetchError, fetch_json

logger = logging.getLogger(__name__)


class OEmbedResolver:
    """Resolves a page URL into a single ``MetadataRecord``."""

    def __init__(
        self,
        registry: ProviderRegistry,
        extraction: ExtractionJobClient | None = None,
    ) -> None:
        self._registry = registry
        self._extraction = extraction

    async def resolve(self, raw_url: str, timeout: float | None = None) -> MetadataRecord:
        """Return preview metadata for *raw_url*.

        *timeout* bounds the whole pipeline in seconds.  A tier that is still
        running when it expires counts as failed.

        Raises:
            InvalidInput: *raw_url* is not a valid http(s) URL.
            NoResult: the page could not be fetched and no later tier answered.
        """
        url, host = self._parse(raw_url)
        deadline = None
        if timeout is not None:
            deadline = asyncio.get_running_loop().time() + timeout

        entry = self._registry.lookup(raw_url, host)
        if entry is not None and entry.oembed_endpoint is not None:
            record = await self._try_provider(entry, url, deadline)
            if record is not None:
                return record

        scraped: MetadataRecord | None = None
        scrape_error: ResolutionError | None = None
        try:
            async with asyncio.timeout_at(deadline):
                scraped = await scrape_page(url, host)
        except UpstreamUnavailable as exc:
            logger.warning("HTML scrape failed for %s: %s", url, exc)
            scrape_error = exc
        except TimeoutError:
            logger.warning("HTML scrape for %s hit the resolve deadline", url)
            scrape_error = UpstreamUnavailable(f"Timed out fetching HTML for {url}")

        if scraped is not None and scraped.has_essentials:
            return scraped

        if self._extraction is not None:
            try:
                return await self._extraction.extract(url, deadline)
            except ResolutionError as exc:
                logger.warning("Extraction job failed for %s: %s", url, exc)
        else:
            logger.info("Extraction job tier disabled; skipping for %s", url)

        if scraped is not None:
            return scraped
        raise NoResult(str(scrape_error)) from scrape_error

    @staticmethod
    def _parse(raw_url: str) -> tuple[str, str]:
        try:
            parsed = AnyHttpUrl(raw_url)
        except ValidationError as exc:
            raise InvalidInput(f"Invalid URL: {raw_url}") from exc
        if not parsed.host:
            raise InvalidInput(f"Invalid URL: no host in {raw_url}")
        return str(parsed), parsed.host

    async def _try_provider(
        self, entry: ProviderEntry, url: str, deadline: float | None
    ) -> MetadataRecord | None:
        """Fetch the provider's oEmbed JSON; ``None`` on any failure."""
        try:
            async with asyncio.timeout_at(deadline):
                body = await fetch_json(
                    entry.oembed_endpoint, params={"url": url, "format": "json"}
                )
            return MetadataRecord.model_validate(body)
        except FetchError as exc:
            logger.warning("Provider %s fetch failed for %s: %s", entry.site_id, url, exc)
        except ValidationError as exc:
            logger.warning(
                "Provider %s returned an unusable body for %s: %s",
                entry.site_id,
                url,
                exc,
            )
        except TimeoutError:
            logger.warning("Provider %s hit the resolve deadline for %s", entry.site_id, url)
        return None
