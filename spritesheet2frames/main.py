"""Entry point for the Sheet2Frames web service."""

from __future__ import annotations

import logging
import os
import sys


def configure_logging() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="[%(levelname)s] %(name)s: %(message)s",
    )


def run() -> int:
    """Serve the HTTP API with uvicorn."""

    import uvicorn

    configure_logging()
    uvicorn.run(
        "spritesheet2frames.web.server:app",
        host=os.environ.get("S2F_HOST", "127.0.0.1"),
        port=int(os.environ.get("S2F_PORT", "8000")),
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(run())
