from __future__ import annotations

from html import escape
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, field_validator


def render_embed_html(title: str | None, description: str | None, url: str) -> str:
    """Build the small preview card used when no provider supplies ``html``."""
    return (
        f"<div><h3>{escape(title or 'Untitled')}</h3>"
        f"<p>{escape(description or '')}</p>"
        f'<a href="{escape(url)}" target="_blank">View Original</a></div>'
    )


class MetadataRecord(BaseModel):
    """Normalized oEmbed response returned for every resolved URL.

    Field aliases are the oEmbed wire names; serialize with ``by_alias=True``
    (FastAPI does this for ``response_model``).

    Dimension fields accept a plain integer or a digit string with an
    optional leading ``+`` and trailing ``%``, since some video providers
    report sizes as percentages (``"100%"`` -> ``100``).
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    kind: Literal["rich", "photo", "video", "link"] = Field("rich", alias="type")
    version: str = "1.0"
    title: str | None = None
    author_name: str | None = None
    author_url: str | None = None
    provider_name: str | None = None
    provider_url: str | None = None
    thumbnail_url: str | None = None
    thumbnail_width: NonNegativeInt | None = None
    thumbnail_height: NonNegativeInt | None = None
    embed_html: str | None = Field(None, alias="html")
    width: NonNegativeInt | None = None
    height: NonNegativeInt | None = None

    @field_validator(
        "width", "height", "thumbnail_width", "thumbnail_height", mode="before"
    )
    @classmethod
    def _parse_dimension(cls, value: Any) -> Any:
        if not isinstance(value, str):
            return value
        cleaned = value.rstrip("%").removeprefix("+")
        if not (cleaned.isascii() and cleaned.isdigit()):
            raise ValueError(f"invalid dimension {value!r}")
        return int(cleaned)

    @property
    def has_essentials(self) -> bool:
        """True when both title and thumbnail are present."""
        return self.title is not None and self.thumbnail_url is not None


class ProviderEntry(BaseModel):
    """One row of the compiled-in provider table."""

    model_config = ConfigDict(frozen=True)

    site_id: str
    oembed_endpoint: str | None = None
    url_patterns: tuple[str, ...] = ()

    def matches(self, url: str, host: str | None) -> bool:
        if host is not None and self.site_id in host:
            return True
        return any(pattern in url for pattern in self.url_patterns)
