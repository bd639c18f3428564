"""
Logging setup for the lithos CLI.

Library modules log through ``loguru.logger`` directly and never add sinks.
The CLI calls setup_logging() once the config is loaded, passing the
``logging`` section and ``paths.log_dir``. A relative ``logging.file`` is
placed inside the log directory.
"""

import os
import sys

from loguru import logger

from lithos.core.types import PathLike

CONSOLE_FORMAT = "<level>[{level.name}]</level> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function} | {message}"


def resolve_log_file(log_file: str | None, log_dir: PathLike | None = None) -> str | None:
    """Full path for the file sink, or None when file logging is off."""
    if not log_file:
        return None
    path = os.path.expanduser(log_file)
    if not os.path.isabs(path) and log_dir:
        path = os.path.join(os.path.expanduser(str(log_dir)), path)
    return path


def setup_logging(
    level: str = "WARNING",
    log_file: str | None = None,
    log_dir: PathLike | None = None,
    fmt: str = CONSOLE_FORMAT,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> str | None:
    """
    Replace loguru's sinks with stderr plus an optional rotating file.

    Args:
        level: Minimum log level, any case (``logging.level``).
        log_file: File name or path (``logging.file``). None logs to stderr only.
        log_dir: Directory for a relative ``log_file`` (``paths.log_dir``).
        fmt: Console format string.
        rotation: Log file rotation size.
        retention: How long to keep rotated logs.

    Returns:
        The file sink's path, or None.
    """
    level = level.upper()
    logger.remove()
    logger.add(sys.stderr, level=level, format=fmt)

    path = resolve_log_file(log_file, log_dir)
    if path:
        os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        logger.add(path, level=level, format=FILE_FORMAT, rotation=rotation, retention=retention)
    return path
