"""Log sink setup for the CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from pkgscore.config import ScoringConfig

LOGGER_NAME = "pkgscore"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(config: ScoringConfig) -> logging.Logger:
    """Attach a single handler to the package logger.

    Records go to ``config.log_file`` when set, otherwise to stderr through
    rich. Standard output is left alone; it carries the score records.
    """
    logger = logging.getLogger(LOGGER_NAME)

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if config.log_file:
        handler: logging.Handler = logging.FileHandler(config.log_file, encoding="utf-8")
        handler.setFormatter(logging.Formatter(FILE_FORMAT))
    else:
        handler = RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
        )

    logger.addHandler(handler)
    logger.setLevel(config.logging_level)
    logger.propagate = False
    return logger
