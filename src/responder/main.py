"""
Main entry point for the facility responder server.
"""

import logging

import uvicorn

from src.responder.core.app import create_app
from src.responder.core.config import get_config
from src.responder.utils.logging import setup_logging


def main() -> None:
    """Run the responder API server."""
    config = get_config()

    setup_logging(config.logging)
    logger = logging.getLogger(__name__)

    logger.info(
        f"Starting {config.app.APP_NAME} server on {config.app.APP_HOST}:{config.app.APP_PORT}"
    )

    uvicorn.run(
        create_app(),
        host=config.app.APP_HOST,
        port=config.app.APP_PORT,
        log_level=config.logging.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
