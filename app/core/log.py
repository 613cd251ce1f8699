from __future__ import annotations

import logging

from app.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Send ``app.*`` records to stderr for both entry points.

    The HTTP app runs under uvicorn, which owns the root logger, and the IPC
    server runs bare; a dedicated non-propagating handler on the ``app``
    namespace gives both the same output.  Safe to call more than once.
    """
    name = (level or settings.log_level).upper()
    app_log = logging.getLogger("app")
    app_log.setLevel(getattr(logging, name, logging.INFO))
    if not app_log.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        app_log.addHandler(handler)
    app_log.propagate = False
