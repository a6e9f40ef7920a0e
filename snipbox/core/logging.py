"""
Logging setup for snipbox.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "snipbox"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the snipbox hierarchy."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def setup_logging(level: str | int = "INFO", rich: bool = True) -> logging.Logger:
    """
    Configure the snipbox logger.

    Args:
        level: Log level name or number
        rich: Render records through rich when True, plain text otherwise

    Returns:
        The configured root snipbox logger
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    if rich:
        handler: logging.Handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
    else:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )

    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    logger.propagate = False
    return logger
