"""
Logging Configuration for ViralPost Auth
Provides consistent JSON logging across all modules for production observability
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger import jsonlogger

_JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
_SIMPLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logger(
    name: str = "viralpost",
    level: Optional[str] = None,
) -> logging.Logger:
    """
    Create and configure a logger instance.

    Output is JSON unless LOG_FORMAT=simple (handy when running Streamlit locally).

    Args:
        name: Logger name (usually __name__ of calling module)
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               Defaults to LOG_LEVEL env var or INFO

    Returns:
        Configured logger instance
    """
    if level is None:
        level = os.getenv("LOG_LEVEL", "INFO").upper()

    numeric_level = getattr(logging, level, logging.INFO)

    logger = logging.getLogger(name)

    # Only add handler if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)

        if os.getenv("LOG_FORMAT", "json").strip().lower() == "simple":
            formatter = logging.Formatter(_SIMPLE_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
        else:
            formatter = jsonlogger.JsonFormatter(_JSON_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S")
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(numeric_level)

    return logger


def mask_email(email: str | None) -> str:
    """Shorten an email for log lines: 'jane.doe@example.com' -> 'j***@example.com'."""
    if not email or "@" not in email:
        return "<none>"
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


# Create default application logger
logger = setup_logger("viralpost")
