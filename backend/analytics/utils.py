"""
utils.py — Shared Utility Functions and Logging Setup
======================================================

Common helpers used across the decision pipeline modules.
"""

import logging

import pandas as pd

from . import config
from .records import READING_FIELDS


CONSOLE_HANDLER_NAME = "analytics-console"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s — %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = None, stream=None) -> logging.Logger:
    """
    Attach the pipeline's console handler to the `analytics` logger.

    The service calls this once at start-up; tests and notebooks may call
    it again to change the level. The named console handler is reused, so
    repeated calls never print a line twice.

    Args:
        level: Level name such as "DEBUG" or "warning". Unknown names fall
               back to INFO. Defaults to config.LOG_LEVEL.
        stream: Where to write; stderr when omitted.

    Returns:
        The configured `analytics` logger.
    """
    numeric_level = getattr(logging, (level or config.LOG_LEVEL).upper(), logging.INFO)
    analytics_logger = logging.getLogger("analytics")
    analytics_logger.setLevel(numeric_level)

    handler = next(
        (h for h in analytics_logger.handlers if h.get_name() == CONSOLE_HANDLER_NAME),
        None,
    )
    if handler is None:
        handler = logging.StreamHandler(stream)
        handler.set_name(CONSOLE_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        analytics_logger.addHandler(handler)
    elif stream is not None:
        handler.setStream(stream)

    return analytics_logger


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def readings_to_frame(readings) -> pd.DataFrame:
    """
    Convert a sequence of Readings to a DataFrame (one row per reading).

    Columns: timestamp plus every sensor field in READING_FIELDS.
    """
    return pd.DataFrame(
        [r.to_dict() for r in readings],
        columns=["timestamp", *READING_FIELDS],
    )


def column_values(readings, parameter: str) -> list:
    """Values of one sensor field across readings, oldest first."""
    return [r.value(parameter) for r in readings]
