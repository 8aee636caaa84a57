"""Logger module for the storefront service."""

import sys

from loguru import logger

from .config import LOG_LEVEL

# Remove default handler
logger.remove()

logger.add(
    sys.stderr,
    level=LOG_LEVEL,
    format=(
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
        "<level>{message}</level>"
    ),
    colorize=True,
    enqueue=True,
    backtrace=True,
    diagnose=False,
)

__all__ = ["logger"]
