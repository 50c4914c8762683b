"""
Main entrypoint: validate configuration, then run the FastAPI server.

Env: HELIUS_API_KEY (required), HELIUS_RPC_URL, BAGS_API_KEY, API_HOST, API_PORT, etc.

Equivalent without the config check: uvicorn backend_bags.api_server.app:app --host 0.0.0.0 --port 3001
"""

import os
import sys

# Configure structured JSON logging before other imports that may log
from backend_bags.bags_logging import get_logger, mask_url
from backend_bags.config import get_settings
from backend_bags.core.exceptions import ConfigError

logger = get_logger("main")


def main() -> None:
    """Fail fast on missing configuration, then serve the API in the main thread."""
    try:
        settings = get_settings()
    except ConfigError as e:
        logger.error("main_config_error", message=str(e))
        sys.exit(1)

    from backend_bags.api_server.app import app
    import uvicorn

    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        rpc_url=mask_url(settings.rpc_url),
        rate_limit_total=settings.rate_limit_total,
    )
    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
