import logging
import sys

LOGGER_NAME = "google_reader"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Send the package's log records to stderr.

    stdout stays free for the MCP stdio transport. Calling this again
    replaces the handler instead of adding a second one.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    logger.addHandler(handler)
    logger.propagate = False
    return logger
