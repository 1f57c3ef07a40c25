"""
Entry point — start the hint service.

Usage:
    python -m cpfocus.service.main
    uvicorn cpfocus.service.main:app --host 127.0.0.1 --port 3000
"""

import logging
import logging.config

import uvicorn

from ..config import config, log_config
from .app import create_app

logger = logging.getLogger(__name__)

app = create_app()


def main():
    log = log_config(config.log_level)
    logging.config.dictConfig(log)
    if not config.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not set; hint generation will fail")
    uvicorn.run(
        "cpfocus.service.main:app",
        host=config.service_host,
        port=config.service_port,
        log_config=log,
    )


if __name__ == "__main__":
    main()
