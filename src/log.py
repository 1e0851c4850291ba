"""Log utilities."""

import logging
from rich.logging import RichHandler

FORMAT = "%(message)s"
PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _create_handler(color: bool) -> logging.Handler:
    """Create console handler, Rich-formatted when color output is requested."""
    if color:
        return RichHandler()
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    return handler


def get_logger(name: str, color: bool = True) -> logging.Logger:
    """
    Get a logger configured for console output.

    The returned logger has its level set to DEBUG, its handlers replaced with
    a single console handler (RichHandler unless `color` is False), and
    propagation to ancestor loggers disabled.

    Parameters:
        name (str): Name of the logger to retrieve or create.
        color (bool): Use Rich formatting for the console output.

    Returns:
        logging.Logger: The configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG)
    logger.handlers = [_create_handler(color)]
    logger.propagate = False
    return logger


def configure_root_logger(verbose: bool = False, color: bool = True) -> None:
    """Configure the root logger used by all modules that call logging.getLogger.

    Parameters:
        verbose (bool): Log on DEBUG level instead of INFO.
        color (bool): Use Rich formatting for the console output.
    """
    logging.basicConfig(
        level="DEBUG" if verbose else "INFO",
        format=FORMAT,
        datefmt="[%X]",
        handlers=[_create_handler(color)],
        force=True,
    )
