"""Unix-socket front end for the resolver.

Each line a client writes is one ``IPCRequest`` JSON object; the server
answers every line with exactly one ``IPCResponse`` or ``IPCError`` line.
Connections are served by the asyncio server's own per-connection tasks,
and a semaphore caps how many resolutions run at once across all of them.

Run with::

    python -m app.transport.ipc
"""

from __future__ import annotations

import asyncio
import contextlib
import logging

from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.errors import ResolutionError
from app.core.log import configure_logging
from app.models.ipc import IPCError, IPCRequest, IPCResponse
from app.services.oembed.extraction import ExtractionJobClient
from app.services.oembed.registry import registry
from app.services.oembed.resolver import OEmbedResolver
from app.workers.fetcher import close_http_client

logger = logging.getLogger(__name__)


def _encode(envelope: BaseModel) -> bytes:
    return envelope.model_dump_json(by_alias=True).encode() + b"\n"


class IPCServer:
    def __init__(
        self,
        resolver: OEmbedResolver,
        *,
        max_concurrency: int = 16,
        max_line_bytes: int = 65536,
        timeout: float | None = None,
    ) -> None:
        self._resolver = resolver
        self._slots = asyncio.Semaphore(max_concurrency)
        self._max_line_bytes = max_line_bytes
        self._timeout = timeout

    async def start(self, path: str) -> asyncio.AbstractServer:
        """Bind the Unix socket *path*; the caller owns the returned server."""
        return await asyncio.start_unix_server(
            self.handle_connection, path=path, limit=self._max_line_bytes
        )

    async def handle_line(self, line: bytes) -> bytes:
        """Resolve one request line and return the encoded reply line."""
        try:
            request = IPCRequest.model_validate_json(line)
        except ValidationError as exc:
            logger.info("Rejected malformed IPC request: %s", exc)
            return _encode(IPCError(message=f"Malformed request: {exc}"))

        async with self._slots:
            try:
                record = await self._resolver.resolve(request.url, timeout=self._timeout)
            except ResolutionError as exc:
                logger.warning("IPC resolve failed for %s: %s", request.url, exc)
                return _encode(IPCError(message=str(exc)))
        return _encode(IPCResponse(data=record))

    async def handle_connection(
        self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter
    ) -> None:
        try:
            while True:
                line = await _read_line(reader)
                if line is None:
                    logger.info("Dropped IPC request over %d bytes", self._max_line_bytes)
                    reply = _encode(
                        IPCError(
                            message=(
                                "Malformed request: line exceeds "
                                f"{self._max_line_bytes} bytes"
                            )
                        )
                    )
                elif not line:
                    break
                elif not line.strip():
                    continue
                else:
                    reply = await self.handle_line(line)
                writer.write(reply)
                await writer.drain()
        except ConnectionError as exc:
            logger.info("IPC client disconnected: %s", exc)
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()


async def _read_line(reader: asyncio.StreamReader) -> bytes | None:
    """Next line (``b""`` at EOF), or ``None`` if it was over the reader limit.

    An oversize line is consumed up to and including its newline so the
    following line starts clean.
    """
    try:
        return await reader.readuntil(b"\n")
    except asyncio.IncompleteReadError as exc:
        return exc.partial
    except asyncio.LimitOverrunError as exc:
        consumed = exc.consumed
    while True:
        try:
            await reader.readexactly(consumed)
            await reader.readuntil(b"\n")
            return None
        except asyncio.LimitOverrunError as exc:
            consumed = exc.consumed
        except asyncio.IncompleteReadError:
            return None


async def serve(path: str | None = None) -> None:
    """Listen on the Unix socket *path* until cancelled."""
    path = path or settings.ipc_socket_path
    server = IPCServer(
        OEmbedResolver(registry, ExtractionJobClient.from_settings(settings)),
        max_concurrency=settings.ipc_max_concurrency,
        max_line_bytes=settings.ipc_max_line_bytes,
        timeout=settings.resolve_timeout,
    )
    unix_server = await server.start(path)
    logger.info("Listening for IPC requests on %s", path)
    try:
        async with unix_server:
            await unix_server.serve_forever()
    finally:
        await close_http_client()


if __name__ == "__main__":
    configure_logging()
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(serve())
