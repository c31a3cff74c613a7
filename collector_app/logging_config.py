import logging

from collector_app.config import settings

LOGGER_NAME = "collector"

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger(LOGGER_NAME)


def get_logger(suffix: str) -> logging.Logger:
    """Child logger, e.g. ``collector.store``."""
    return logger.getChild(suffix)
