"""
Entry point — start the CP Focus engine.

Usage:
    python -m cpfocus.main
    CPF_LOG_LEVEL=DEBUG python -m cpfocus.main     # also log each alarm as it fires
"""

import logging
import logging.config

import uvicorn

from .config import config, log_config

logger = logging.getLogger(__name__)


def main():
    log = log_config(config.log_level)
    logging.config.dictConfig(log)
    logger.info(
        "engine state in %s, hints from %s",
        config.data_dir / config.state_db,
        config.hint_service_url,
    )
    uvicorn.run(
        "cpfocus.api.app:app",
        host=config.api_host,
        port=config.api_port,
        log_config=log,
    )


if __name__ == "__main__":
    main()
