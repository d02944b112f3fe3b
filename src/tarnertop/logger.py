"""Logging setup for tarnertop."""

import logging
from pathlib import Path

from tarnertop.config import AppConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_file_handler: logging.FileHandler | None = None


def get_log_path(config: AppConfig) -> Path:
    """Location of the persisted log file."""
    return config.log_path


def init_logging(config: AppConfig, level: int = logging.INFO) -> Path:
    """
    Send the tarnertop logger to a fresh log file.

    The file is truncated on every start. Calling this again replaces the
    previous handler.

    Raises:
        OSError: If the log directory or file cannot be created.
    """
    global _file_handler

    log_path = get_log_path(config)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    logger = logging.getLogger("tarnertop")
    logger.setLevel(level)
    if _file_handler is not None:
        logger.removeHandler(_file_handler)
        _file_handler.close()
    logger.addHandler(handler)
    _file_handler = handler
    return log_path


def line_level(line: str) -> str:
    """Best-effort level of a log line, for colouring only."""
    if "[ERROR]" in line:
        return "error"
    if "[WARN]" in line or "[WARNING]" in line:
        return "warn"
    return "info"
