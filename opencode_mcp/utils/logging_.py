"""Structured logging setup for the OpenCode MCP bridge.

Everything goes to stderr: stdout carries the stdio MCP stream.
"""

import logging
import sys
from pathlib import Path

from opencode_mcp.config import LOG_LEVEL, LOG_FILE


def setup_logging(level: str = LOG_LEVEL, log_file: str = LOG_FILE) -> logging.Logger:
    """Configure structured logging."""
    logger = logging.getLogger("opencode-mcp")
    logger.setLevel(getattr(logging, level, logging.INFO))

    # Re-import safe
    if logger.handlers:
        return logger

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path)
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)

    return logger


logger = setup_logging()
