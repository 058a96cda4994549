"""Launch script that starts Uvicorn with the configured settings."""

from __future__ import annotations

import logging
import os

import uvicorn

from cinebot.core.config import get_settings
from cinebot.core.logging import configure_logging

logger = logging.getLogger("cinebot.launcher")


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)

    for label, path in (
        ("catalog metadata", settings.catalog_metadata_path),
        ("FAISS index", settings.faiss_index_path),
    ):
        if not path.exists():
            logger.warning("%s not found at %s; recommendations will be empty until it exists", label, path)

    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", "8000"))
    logger.info("Starting %s on %s:%d", settings.app_name, host, port)
    uvicorn.run("cinebot.main:app", host=host, port=port)


if __name__ == "__main__":
    main()
