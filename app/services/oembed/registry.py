"""Compiled-in table of providers that publish an oEmbed endpoint.

Entries are scanned in declaration order and the first match wins, so a URL
that could match two rows always resolves to the earlier one.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator
from urllib.parse import urlsplit

from app.models.oembed.schemas import ProviderEntry

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Read-only, ordered collection of ``ProviderEntry`` rows."""

    def __init__(self, entries: Iterable[ProviderEntry]) -> None:
        self._entries: tuple[ProviderEntry, ...] = tuple(entries)

    def __iter__(self) -> Iterator[ProviderEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, url: str, host: str | None = None) -> ProviderEntry | None:
        """Return the first entry matching *url*, or ``None``.

        An entry matches when *host* contains its ``site_id`` or the raw
        *url* contains one of its patterns.  Matching is case-sensitive and
        the raw string is not normalised.  When *host* is omitted it is
        taken from *url*.
        """
        if host is None:
            host = urlsplit(url).hostname
        for entry in self._entries:
            if entry.matches(url, host):
                logger.debug("URL %s matched provider %s", url, entry.site_id)
                return entry
        return None


DEFAULT_PROVIDERS: tuple[ProviderEntry, ...] = (
    ProviderEntry(
        site_id="youtube.com",
        oembed_endpoint="https://www.youtube.com/oembed",
        url_patterns=("youtube.com/watch?v=", "youtu.be/"),
    ),
    ProviderEntry(
        site_id="x.com",
        oembed_endpoint="https://publish.twitter.com/oembed",
        url_patterns=("x.com/", "twitter.com/"),
    ),
    ProviderEntry(
        site_id="vimeo.com",
        oembed_endpoint="https://vimeo.com/api/oembed.json",
        url_patterns=("vimeo.com/",),
    ),
    ProviderEntry(
        site_id="tiktok.com",
        oembed_endpoint="https://www.tiktok.com/oembed",
        url_patterns=("tiktok.com/",),
    ),
    ProviderEntry(
        site_id="spotify.com",
        oembed_endpoint="https://open.spotify.com/oembed",
        url_patterns=(
            "open.spotify.com/track/",
            "open.spotify.com/album/",
            "open.spotify.com/playlist/",
            "open.spotify.com/show/",
            "open.spotify.com/episode/",
        ),
    ),
    ProviderEntry(
        site_id="soundcloud.com",
        oembed_endpoint="https://soundcloud.com/oembed",
        url_patterns=("soundcloud.com/",),
    ),
    ProviderEntry(
        site_id="github.com",
        oembed_endpoint="https://github.com/api/oembed",
        url_patterns=("github.com/", "gist.github.com/"),
    ),
    ProviderEntry(
        site_id="flickr.com",
        oembed_endpoint="https://www.flickr.com/services/oembed",
        url_patterns=("flickr.com/photos/", "flic.kr/p/"),
    ),
    ProviderEntry(
        site_id="medium.com",
        oembed_endpoint="https://medium.com/oembed",
        url_patterns=("medium.com/",),
    ),
)

#: Module-level registry shared by every request.
registry: ProviderRegistry = ProviderRegistry(DEFAULT_PROVIDERS)
