"""JSON logging for ca-tool.

Progress lines go to stderr as one JSON object each; --quiet and --verbose
move the threshold to WARNING and DEBUG.
"""

import logging
import sys

from pythonjsonlogger import jsonlogger

LOGGER_NAME = "ca_tool"

LOG_FIELDS = frozenset({"timestamp", "level", "message", "exc_info", "funcName", "lineno"})


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter emitting LOG_FIELDS only, with levelname renamed to level."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        if "levelname" in log_record:
            log_record["level"] = log_record.pop("levelname")

        for key in [key for key in log_record if key not in LOG_FIELDS]:
            log_record.pop(key)


def _level_for(quiet: bool, verbose: bool) -> int:
    if quiet:
        return logging.WARNING
    if verbose:
        return logging.DEBUG
    return logging.INFO


def _setup_logger(level: int = logging.INFO) -> logging.Logger:
    """Return the ca_tool logger, attaching the stderr JSON handler once.

    Args:
        level: Threshold applied on every call

    Returns:
        The configured ca_tool logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            CustomJsonFormatter(
                fmt="%(timestamp)s %(levelname)s %(funcName)s %(lineno)d %(message)s",
                timestamp=True,
            )
        )
        logger.addHandler(handler)
        logger.propagate = False

    return logger


def set_verbosity(quiet: bool = False, verbose: bool = False) -> logging.Logger:
    """Apply --quiet/--verbose to the ca_tool logger."""
    return _setup_logger(_level_for(quiet, verbose))


LOGGER = _setup_logger()
