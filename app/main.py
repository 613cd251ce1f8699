from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from app.api.router import router
from app.core.config import settings
from app.core.log import configure_logging
from app.workers.fetcher import close_http_client

logger = logging.getLogger(__name__)

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # ── Startup ──────────────────────────────────────────────────────
    if not settings.firecrawl_api_token:
        logger.warning("FIRECRAWL_API_TOKEN is not set; extraction job tier disabled.")
    yield
    # ── Shutdown ─────────────────────────────────────────────────────
    await close_http_client()


app = FastAPI(
    title="oEmbed Resolver",
    description="Resolves page URLs into oEmbed rich-preview metadata.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    return {"status": "ok"}
