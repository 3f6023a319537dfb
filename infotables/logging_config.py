"""
Logging configuration for infotables.

This module provides a standardized loguru logger with a RichHandler sink so
that binning runs report progress and per-variable failures consistently.
"""

from loguru import logger
from rich.logging import RichHandler


def setup_logger(level: str = "INFO") -> None:
    """
    Configure logger with RichHandler for better formatting.

    Call once at the start of a script or test session. Until then loguru's
    default stderr sink is used.

    Parameters
    ----------
    level : str, default="INFO"
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Examples:
    --------
    >>> from infotables.logging_config import setup_logger, logger
    >>> setup_logger(level="DEBUG")
    >>> logger.debug("Binning N_OPEN_REV_ACTS")
    """
    # Remove default handler
    logger.remove()

    logger.add(
        RichHandler(markup=True, rich_tracebacks=True),
        format="{message}",
        level=level,
    )


__all__ = ["logger", "setup_logger"]
