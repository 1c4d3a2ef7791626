"""Loguru setup for the clinic CLI and workflow.

Workflow modules log structured events (``logger.info("Treatment session created",
session_id=...)``); the sinks configured here render those keyword fields
through ``{extra}``.
"""

import sys
from pathlib import Path

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level> <dim>{extra}</dim>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message} {extra}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Route workflow events to stderr and, optionally, a rotating file.

    Stderr keeps stdout free for the CLI's rich output.

    Args:
        level: Minimum level for both sinks (``LOG_LEVEL``)
        log_file: File sink path (``LOG_FILE``); None disables it
        rotation: Size or age at which the file sink rotates
        retention: How long rotated files are kept
    """
    logger.remove()
    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        # Patient data can appear in locals; keep tracebacks without variable values
        logger.add(
            path,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            backtrace=True,
            diagnose=False,
        )

    logger.debug("Logging configured", level=level, log_file=log_file)
