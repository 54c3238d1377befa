"""
Logger Configuration
Shared rich-backed logging setup for the search portal.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from rich.logging import RichHandler
from rich.console import Console


# Shared console instance
console = Console(stderr=True)

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_FORMAT_SIMPLE = "%(message)s"

ROOT_LOGGER_NAME = "search_portal"

# Default log directory
LOG_DIR = Path(__file__).parent.parent / "logs"

# Package loggers that should share the portal handlers
PACKAGE_LOGGERS = ("ranking", "sources", "storage", "orchestrator", "evaluation", "webapp")


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
    use_rich: bool = True,
) -> logging.Logger:
    """
    Configure a logger.

    Args:
        name: logger name
        level: log level
        log_file: optional file name under logs/
        use_rich: render console output through RichHandler

    Returns:
        The configured Logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Do not stack handlers on repeated setup
    if logger.handlers:
        return logger

    if use_rich:
        console_handler = RichHandler(
            console=console,
            show_time=True,
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
        )
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT_SIMPLE))
    else:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))

    console_handler.setLevel(level)
    logger.addHandler(console_handler)

    if log_file:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(LOG_DIR / log_file, encoding="utf-8")
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        file_handler.setLevel(level)
        logger.addHandler(file_handler)

    return logger


def configure_package_logging(level: int = logging.INFO, use_rich: bool = True) -> None:
    """Attach portal handlers to every package logger used by entrypoints."""
    for name in (ROOT_LOGGER_NAME, *PACKAGE_LOGGERS):
        setup_logger(name, level=level, use_rich=use_rich)
        logging.getLogger(name).propagate = False
