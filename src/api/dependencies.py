"""Shared FastAPI dependencies: caller identity and configuration."""

import logging
from functools import lru_cache

from fastapi import Header

from src.services.config import AppConfig, load_config
from src.services.errors import PermissionDeniedError

logger = logging.getLogger(__name__)


def get_current_user_id(x_user_id: str | None = Header(default=None)) -> int:  # noqa: B008
    """Caller's user ID as forwarded by the upstream identity provider.

    Raises:
        PermissionDeniedError: If the header is missing or not an integer
    """
    if not x_user_id:
        raise PermissionDeniedError("Missing X-User-Id header")
    try:
        return int(x_user_id)
    except ValueError as e:
        logger.warning(f"Rejected malformed X-User-Id header: {x_user_id!r}")
        raise PermissionDeniedError("Invalid X-User-Id header") from e


@lru_cache
def get_app_config() -> AppConfig:
    return load_config()


__all__ = ["get_app_config", "get_current_user_id"]
