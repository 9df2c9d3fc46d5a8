#!/usr/bin/env python3
"""
Server runner script.

Starts the FastAPI application with uvicorn using the settings from the
environment or ``.env``.
"""

import sys
import logging

import uvicorn

from assessment_engine.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def main():
    """Run the server."""
    try:
        logger.info(
            f"Starting server on {settings.HOST}:{settings.PORT} (reload: {settings.RELOAD}), "
            f"assessment backend at {settings.ASSESSMENT_API_BASE_URL}"
        )
        uvicorn.run(
            "assessment_engine.main:app",
            host=settings.HOST,
            port=settings.PORT,
            reload=settings.RELOAD,
            log_level=settings.LOG_LEVEL.lower()
        )
    except Exception as e:
        logger.error(f"Error starting server: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
