"""Logging setup for the CLI and scripts. Library code only creates module loggers."""

import logging
from typing import Optional, Union

from vista.config import Config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%H:%M:%S"


def setup_logging(level: Optional[Union[str, int]] = None) -> None:
    """
    Configure the root logger.

    Args:
        level: Level name or number; defaults to Config.LOG_LEVEL
    """
    if level is None:
        level = Config.LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)

    # Reduce noise from libraries
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('sqlalchemy').setLevel(logging.WARNING)
