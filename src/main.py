"""Main application entry point."""

import logging

import uvicorn

from src.api.app import app
from src.services.config import load_config
from src.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def main() -> None:
    """Run the ledger API with uvicorn."""
    config = load_config()
    setup_server_logging(config.log_file)
    logger.info(
        f"Starting coliving ledger API on {config.api_host}:{config.api_port} "
        f"(locale={config.locale}, honor_contribution_end_date={config.honor_contribution_end_date})"
    )
    uvicorn.run(
        app,
        host=config.api_host,
        port=config.api_port,
        log_config=None,
    )


if __name__ == "__main__":
    main()


__all__ = ["app", "main"]
