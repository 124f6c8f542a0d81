import sys
from pathlib import Path
from typing import Optional

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(
    level: str = "INFO",
    debug: bool = False,
    log_dir: Optional[str] = None,
    log_format: str = "text",
) -> None:
    """
    Route loguru output to stderr and, optionally, to daily log files.

    ``log_format="json"`` writes one JSON record per line on every sink, for
    log collectors in production.
    """
    logger.remove()
    log_level = "DEBUG" if debug else level.upper()
    structured = log_format.lower() == "json"
    if structured:
        logger.add(sys.stderr, level=log_level, serialize=True)
    else:
        logger.add(sys.stderr, format=CONSOLE_FORMAT, level=log_level, colorize=True)
    if log_dir:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        logger.add(
            path / "boltzmann_{time:YYYY-MM-DD}.log",
            rotation="1 day",
            retention="30 days",
            format=FILE_FORMAT,
            level="DEBUG",
            serialize=structured,
        )
    logger.info(f"Logging configured at {log_level} ({'json' if structured else 'text'})")
