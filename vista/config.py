"""
Vista Configuration - Environment-based settings

Environment Variables:
    VISTA_API_URL: Remote RETS proxy endpoint
    VISTA_API_USER / VISTA_API_PASSWORD: Shared Basic auth credential (default: vista/vista)
    VISTA_API_TIMEOUT: Seconds before the listing fetch gives up (default: 30)
    VISTA_DEFAULT_LIMIT: Page size when the visitor did not pick one (default: 20)
    VISTA_SITE_URL: Public site root used for "View Listing" links
    VISTA_TIMEZONE: IANA zone for open house times (default: UTC)
    VISTA_TRIM_PARAM_TOKENS: 'true' to strip whitespace around split query tokens
    VISTA_SETTINGS_URL: SQLAlchemy URL for persisted settings
    VISTA_LOG_LEVEL: Root log level for the CLI (default: INFO)
"""

import os
import logging

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _get_int(name: str, default: int) -> int:
    """Read a positive integer env var, falling back to default on bad input."""
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"Invalid {name} '{raw}', defaulting to {default}")
        return default
    if value <= 0:
        logger.warning(f"Non-positive {name} '{raw}', defaulting to {default}")
        return default
    return value


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid {name} '{raw}', defaulting to {default}")
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes", "on")


class Config:
    API_URL = os.getenv("VISTA_API_URL", "https://vistawp.com/wp-json/vista/api/v1/rets")
    API_USER = os.getenv("VISTA_API_USER", "vista")
    API_PASSWORD = os.getenv("VISTA_API_PASSWORD", "vista")

    # The upstream plugin relied on the transport default; made explicit here
    API_TIMEOUT = _get_float("VISTA_API_TIMEOUT", 30.0)

    DEFAULT_LIMIT = _get_int("VISTA_DEFAULT_LIMIT", 20)

    SITE_URL = os.getenv("VISTA_SITE_URL", "http://localhost").rstrip("/")
    TIMEZONE = os.getenv("VISTA_TIMEZONE", "UTC")

    TRIM_PARAM_TOKENS = _get_bool("VISTA_TRIM_PARAM_TOKENS", False)

    SETTINGS_URL = os.getenv("VISTA_SETTINGS_URL", "sqlite:///vista_settings.db")

    LOG_LEVEL = os.getenv("VISTA_LOG_LEVEL", "INFO").upper()

    USER_AGENT = "VistaListings/1.0 (listing display engine)"
