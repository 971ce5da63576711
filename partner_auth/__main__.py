"""
Command-line entry point: ``partner-auth`` or ``python -m partner_auth``.

Loads .env before anything reads the environment, then serves the
application over TLS with uvicorn.
"""

import logging

import uvicorn
from dotenv import load_dotenv

from partner_auth.logging_config import setup_global_logging
from partner_auth.oauth.config import get_app_config


logger = logging.getLogger(__name__)


def main() -> None:
    """Start the HTTPS server."""
    load_dotenv()
    setup_global_logging()

    config = get_app_config()
    logger.info(f"Server is running securely on https://{config.domain}:{config.port}")

    uvicorn.run(
        "partner_auth.main:app",
        host="0.0.0.0",
        port=config.port,
        ssl_keyfile=config.tls_keyfile,
        ssl_certfile=config.tls_certfile,
        log_config=None,
    )


if __name__ == "__main__":
    main()
