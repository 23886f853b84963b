"""Logging configuration for BTC-Predictor.

Every module logs through a child of the ``btc_predictor`` logger, so
``setup_logger("fallback")`` yields ``btc_predictor.fallback``. Provider
failures inside a fallback chain are logged at WARNING, and the chain's
outcome at INFO. The level defaults to ``app.log_level`` in
configs/settings.yaml.
"""

import logging
import sys

from btc_predictor.config import setting

ROOT_LOGGER = "btc_predictor"


def setup_logger(name: str = ROOT_LOGGER, level: str | None = None) -> logging.Logger:
    """Create and configure a project logger with a single stderr handler."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    level = level or setting("app", "log_level", "INFO")
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-28s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(getattr(logging, str(level).upper(), logging.INFO))
    return logger
