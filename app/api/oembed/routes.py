from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from app.core.config import settings
from app.core.errors import ResolutionError
from app.models.oembed.schemas import MetadataRecord
from app.services.oembed.extraction import ExtractionJobClient
from app.services.oembed.registry import registry
from app.services.oembed.resolver import OEmbedResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/oembed", tags=["oembed"])


# ---------------------------------------------------------------------------
# Dependency
# ---------------------------------------------------------------------------


def _get_resolver() -> OEmbedResolver:
    """FastAPI dependency that builds an ``OEmbedResolver`` for each request."""
    return OEmbedResolver(registry, ExtractionJobClient.from_settings(settings))


# ---------------------------------------------------------------------------
# GET /oembed
# ---------------------------------------------------------------------------


@router.get(
    "",
    response_model=MetadataRecord,
    responses={400: {"content": {"text/plain": {}}, "description": "Resolution failed"}},
    summary="Resolve a URL into oEmbed preview metadata",
)
async def get_oembed(
    url: str,
    resolver: OEmbedResolver = Depends(_get_resolver),
) -> MetadataRecord | PlainTextResponse:
    """Resolve *url* through the provider, HTML and extraction-job tiers.

    - **200**: metadata record
    - **400**: invalid URL, or no tier produced any metadata (plain text)
    - **422**: ``url`` query parameter missing
    """
    try:
        return await resolver.resolve(url, timeout=settings.resolve_timeout)
    except ResolutionError as exc:
        logger.warning("GET /oembed failed for %s: %s", url, exc)
        return PlainTextResponse(str(exc), status_code=400)
