from __future__ import annotations

import logging
import os

import uvicorn

logger = logging.getLogger(__name__)


def main() -> None:
    """Serve the API with uvicorn. TERMIFY_HOST and PORT come from the environment."""
    host = os.getenv("TERMIFY_HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    logger.info("Starting Termify API on %s:%d", host, port)
    uvicorn.run("termify.api.main:app", host=host, port=port, log_level="info")


if __name__ == "__main__":
    main()
