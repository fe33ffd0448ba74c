"""
Centralized logging configuration using loguru.

Features:
- Coloured console output carrying the request ID
- JSON-formatted, rotated log file for aggregation tools
- Session tokens masked in every message before it reaches a sink
"""

import re
import sys
from pathlib import Path

from loguru import logger

from quill.config import Settings, settings

# Three base64url segments starting with a JSON header ("{" encodes to "ey")
TOKEN_PATTERN = re.compile(r"eyJ[\w-]+\.[\w-]+\.[\w-]+")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[request_id]}</cyan> | "
    "<level>{message}</level>"
)


def redact_tokens(record: dict) -> None:
    """loguru patcher replacing anything shaped like a session token."""
    record["message"] = TOKEN_PATTERN.sub("[redacted-token]", record["message"])


def configure_logging(config: Settings = settings) -> None:
    """
    (Re)install the console and file handlers.

    Args:
        config: Settings providing DEBUG and LOG_DIR
    """
    logger.remove()

    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level="DEBUG" if config.DEBUG else "INFO",
        colorize=True,
    )

    log_dir = Path(config.LOG_DIR)
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.add(
        str(log_dir / "app.log"),
        format="{time} {level} {message} {extra}",
        level="DEBUG",
        rotation="500 MB",
        compression="zip",
        serialize=True,
        enqueue=True,
    )

    # request_id is optional - defaults to "no-request-id" outside a request
    logger.configure(extra={"request_id": "no-request-id"}, patcher=redact_tokens)


configure_logging()
