"""Server logging: every logger goes to stdout and to LOG_FILE at LOG_LEVEL."""

import logging
import sys
from pathlib import Path

from committee.config import Settings

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(name: str) -> int:
    """Numeric level for a level name such as "debug"; unknown names mean INFO."""
    return logging.getLevelNamesMapping().get(name.strip().upper(), logging.INFO)


def setup_server_logging(settings: Settings) -> int:
    """Configure the root logger from settings.

    Replaces handlers installed by a previous call. The directory client's
    per-request httpx lines are only shown at WARNING or above.

    Returns:
        The level applied to the root logger
    """
    log_path = Path(settings.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    level = resolve_level(settings.log_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    for handler in (logging.StreamHandler(sys.stdout), logging.FileHandler(log_path)):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    if level == logging.INFO and settings.log_level.strip().upper() != "INFO":
        logging.getLogger(__name__).warning(
            "Unknown LOG_LEVEL %r, using INFO", settings.log_level
        )
    return level


__all__ = ["setup_server_logging", "resolve_level"]
