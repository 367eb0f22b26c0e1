"""
Logging setup using Loguru.

Every module logs through ``from loguru import logger``; this module only
decides where those records go.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = "<level>{level: <8}</level> | {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def setup_loguru(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console_output: bool = True,
) -> None:
    """
    Configure loguru sinks for a CLI run.

    Args:
        level: Minimum level for the stderr sink (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional rotating log file, always written at DEBUG
        console_output: Whether to log to stderr at all
    """
    # Remove default handler
    logger.remove()

    if console_output:
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=None)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            rotation="10 MB",
            retention=5,  # Keep 5 backup files
            level="DEBUG",
            format=FILE_FORMAT,
            enqueue=False,  # Synchronous writes
        )

    logger.debug(f"Loguru initialized (level={level}, log_file={log_file})")
