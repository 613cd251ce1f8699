"""HTML meta-tag extraction (tier 3 of the resolution pipeline)."""

from __future__ import annotations

import logging

from bs4 import BeautifulSoup
from bs4.exceptions import ParserRejectedMarkup
from pydantic import BaseModel, ConfigDict

from app.core.errors import UpstreamUnavailable
from app.models.oembed.schemas import MetadataRecord, render_embed_html
from app.workers.fetcher import fetch_page

logger = logging.getLogger(__name__)

TITLE_SELECTORS = (
    'meta[property="og:title"]',
    'meta[name="twitter:title"]',
    "title",
)
DESCRIPTION_SELECTORS = (
    'meta[property="og:description"]',
    'meta[name="twitter:description"]',
    'meta[name="description"]',
)
THUMBNAIL_SELECTORS = (
    'meta[property="og:image"]',
    'meta[name="twitter:image"]',
)
SITE_NAME_SELECTORS = (
    'meta[property="og:site_name"]',
    'meta[name="twitter:site"]',
)


class PageMeta(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str | None = None
    description: str | None = None
    thumbnail: str | None = None
    site_name: str | None = None


def _first_value(soup: BeautifulSoup, selectors: tuple[str, ...]) -> str | None:
    """Return the value of the first element matched by the first selector
    that yields one.

    ``<meta>`` elements contribute their ``content`` attribute, anything else
    its stripped text.  Elements without a value are skipped.
    """
    for selector in selectors:
        for element in soup.select(selector):
            if element.name == "meta":
                content = element.get("content")
                if isinstance(content, str):
                    return content
            else:
                return element.get_text().strip()
    return None


def extract_meta(html: str) -> PageMeta:
    """Parse *html* and pick the preview fields.

    Raises:
        ParserRejectedMarkup: the markup is too broken for ``html.parser``
            (e.g. an unknown ``<![...[`` marked section).
    """
    soup = BeautifulSoup(html, "html.parser")
    return PageMeta(
        title=_first_value(soup, TITLE_SELECTORS),
        description=_first_value(soup, DESCRIPTION_SELECTORS),
        thumbnail=_first_value(soup, THUMBNAIL_SELECTORS),
        site_name=_first_value(soup, SITE_NAME_SELECTORS),
    )


async def scrape_page(url: str, host: str) -> MetadataRecord:
    """Fetch *url* and build a record from its Open Graph / Twitter tags.

    Fields the page does not declare stay ``None``.

    Raises:
        FetchError: the page could not be fetched.
        UpstreamUnavailable: the page was fetched but could not be parsed.
    """
    logger.debug("Scraping HTML for %s", url)
    html = await fetch_page(url)
    try:
        meta = extract_meta(html)
    except ParserRejectedMarkup as exc:
        raise UpstreamUnavailable(f"Failed to parse HTML from {url}: {exc}") from exc
    return MetadataRecord(
        title=meta.title,
        provider_name=meta.site_name,
        provider_url=f"https://{host}",
        thumbnail_url=meta.thumbnail,
        embed_html=render_embed_html(meta.title, meta.description, url),
    )
