"""Application configuration loading.

Loads settings from .env file and environment variables with sensible defaults.
Validates values and provides clear error messages.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from babel import Locale, UnknownLocaleError
from dotenv import load_dotenv

TRUE_VALUES = {"1", "true", "yes", "on"}
FALSE_VALUES = {"0", "false", "no", "off", ""}


@dataclass
class AppConfig:
    """Configuration for the ledger API and CLI."""

    database_url: str = "sqlite:///./coliving.db"
    """SQLAlchemy database URL (default: local SQLite)"""

    locale: str = "en_SG"
    """Babel locale used for money and date formatting"""

    log_level: str = "INFO"
    """Root logger level"""

    log_file: str = "logs/server.log"
    """Path to log file (default: logs/server.log)"""

    honor_contribution_end_date: bool = False
    """Drop members whose contribution ended before the month from balance sheets"""

    api_host: str = "0.0.0.0"
    api_port: int = 8000


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in TRUE_VALUES:
        return True
    if normalized in FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (true/false), got {value!r}")


def load_config() -> AppConfig:
    """
    Load configuration from .env file and environment variables.

    Priority (highest to lowest):
    1. Environment variables (DATABASE_URL, LOCALE, LOG_LEVEL, etc.)
    2. .env file in project root
    3. Default values

    Returns:
        AppConfig with all settings

    Raises:
        ValueError: If a configured value is invalid
    """
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path)

    defaults = AppConfig()

    database_url = os.getenv("DATABASE_URL", defaults.database_url)
    locale = os.getenv("LOCALE", defaults.locale)
    log_level = os.getenv("LOG_LEVEL", defaults.log_level).upper()
    log_file = os.getenv("LOG_FILE", defaults.log_file)
    honor_end_date = _parse_bool(
        "HONOR_CONTRIBUTION_END_DATE", os.getenv("HONOR_CONTRIBUTION_END_DATE", "false")
    )
    api_host = os.getenv("API_HOST", defaults.api_host)
    api_port_raw = os.getenv("API_PORT", str(defaults.api_port))

    if not database_url:
        raise ValueError("DATABASE_URL is empty. Set DATABASE_URL or remove it to use the default")

    try:
        Locale.parse(locale)
    except (UnknownLocaleError, ValueError) as e:
        raise ValueError(f"LOCALE {locale!r} is not a known locale. Error: {str(e)}") from e

    if log_level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ValueError(f"LOG_LEVEL {log_level!r} is not a logging level")

    try:
        api_port = int(api_port_raw)
    except ValueError as e:
        raise ValueError(f"API_PORT must be an integer, got {api_port_raw!r}") from e

    return AppConfig(
        database_url=database_url,
        locale=locale,
        log_level=log_level,
        log_file=log_file,
        honor_contribution_end_date=honor_end_date,
        api_host=api_host,
        api_port=api_port,
    )
