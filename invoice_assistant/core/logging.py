"""
Loguru configuration shared by the API and the background upload worker.
"""
import sys

from loguru import logger

from .config import settings


def setup_logging():
    """Replace loguru's default sink with one driven by LOG_LEVEL / LOG_JSON."""
    logger.remove()
    if settings.log_json:
        logger.add(sys.stderr, level=settings.log_level.upper(), serialize=True)
    else:
        logger.add(
            sys.stderr,
            level=settings.log_level.upper(),
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level> | {extra}"
            ),
        )
    return logger
