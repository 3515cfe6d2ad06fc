"""Entrypoint for the audiolab HTTP API."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # pragma: no cover

from audiolab import __version__
from audiolab.config import load_settings
from audiolab.logging_utils import configure_logging

logger = logging.getLogger(__name__)


def run_entrypoint() -> None:
    """Configure logging and serve the API with uvicorn."""
    settings = load_settings()
    configure_logging(settings.logging)
    from audiolab.transport.http_server import create_http_app

    try:
        import uvicorn
    except ImportError as exc:
        raise RuntimeError("uvicorn is required to serve the HTTP API") from exc

    logger.info(
        "Starting audiolab-api v%s on %s:%d",
        __version__,
        settings.server.host,
        settings.server.port,
    )
    app = create_http_app()
    uvicorn.run(
        app,
        host=settings.server.host,
        port=settings.server.port,
        ws="none",
        log_config=None,
    )


if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
