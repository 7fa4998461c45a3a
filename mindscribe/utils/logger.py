"""
Logging configuration using Loguru.

Every record carries the chat ``scope`` and the ``entry_id`` it concerns, so
a save or a stream can be followed across services. Services attach them
with ``log_context``; records without them show "-".
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

CONTEXT_FIELDS = ("scope", "entry_id")
_UNSET = "-"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<magenta>scope={extra[scope]} entry={extra[entry_id]}</magenta> - <level>{message}</level>"
)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | "
    "scope={extra[scope]} entry={extra[entry_id]} - {message}"
)


def setup_logging(
    level: str = "INFO",
    log_to_file: bool = True,
    log_dir: str = "logs",
    file_rotation: str = "10 MB",
    file_retention: str = "7 days",
    compression: str = "zip",
    serialize: bool = True,
) -> None:
    """
    Configure Loguru for MindScribe.

    Args:
        level: Minimum level for all sinks
        log_to_file: Add a rotating file sink under ``log_dir``
        log_dir: Directory for log files
        file_rotation: Loguru rotation rule, e.g. "10 MB"
        file_retention: Loguru retention rule, e.g. "7 days"
        compression: Archive format for rotated files
        serialize: Write the file sink as JSON lines
    """
    logger.remove()
    logger.configure(extra={field: _UNSET for field in CONTEXT_FIELDS})

    logger.add(
        sys.stderr,
        level=level,
        format=CONSOLE_FORMAT,
        colorize=True,
        serialize=False,
    )

    if log_to_file:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "mindscribe_{time:YYYY-MM-DD}.log",
            level=level,
            format=FILE_FORMAT,
            rotation=file_rotation,
            retention=file_retention,
            compression=compression,
            serialize=serialize,
            enqueue=True,
        )


def get_logger(name: str):
    """Get a logger instance for a module."""
    return logger.bind(module=name)


def log_context(log, **fields: Any):
    """
    Bind context fields such as ``scope`` and ``entry_id`` to a logger.

    A ``None`` scope is the global chat and is shown as "global"; other
    ``None`` values are shown as "-".
    """
    if "scope" in fields and fields["scope"] is None:
        fields["scope"] = "global"
    return log.bind(**{k: _UNSET if v is None else v for k, v in fields.items()})
