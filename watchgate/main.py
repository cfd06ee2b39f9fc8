"""Entrypoint for the Watchgate FastAPI application."""

from __future__ import annotations

import uvicorn

from .api import create_app
from .core import ApplicationCore
from .logging_setup import setup_logging
from .settings import load_config


CONFIG = load_config()
setup_logging(CONFIG.log_directory, CONFIG.log_level)
CORE = ApplicationCore(CONFIG)
app = create_app(CORE)


def main() -> None:
    """Launch the uvicorn server."""
    uvicorn.run(
        "watchgate.main:app",
        host=CONFIG.api_host,
        port=CONFIG.api_port,
        reload=False,
        log_level="info",
    )


if __name__ == "__main__":
    main()
