"""Module executed when running ``python -m discshelf``."""

from __future__ import annotations

import logging
import sys

import uvicorn
from pydantic import ValidationError

from app.config import get_settings

logger = logging.getLogger("discshelf")


def main() -> None:
    """Validate the configuration, then start uvicorn with the app factory."""

    try:
        settings = get_settings()
    except ValidationError as exc:
        logging.basicConfig(level=logging.ERROR)
        missing = sorted(
            str(error["loc"][0]) for error in exc.errors() if error.get("loc")
        )
        logger.error(
            "Invalid or missing configuration (%s); refusing to start.",
            ", ".join(missing) or exc,
        )
        sys.exit(1)

    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        reload=settings.environment == "development",
    )


if __name__ == "__main__":  # pragma: no cover - runtime entrypoint
    main()
