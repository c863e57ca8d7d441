"""
Logging Configuration
Sets up the project loggers for the scene pipeline.
"""
import logging
import sys
from typing import Optional

from config import settings

# Top-level packages and modules whose loggers we own
_NAMESPACES = ("layers", "scenes", "exporter", "channel", "orchestrator", "session", "timing", "randomize")


def setup_logging(level: Optional[int] = None, log_file: Optional[str] = None) -> None:
    """
    Configures the loggers of every project namespace.

    Args:
        level: Logging level (defaults to settings.LOG_LEVEL)
        log_file: Optional path to save logs to a file.
    """
    if level is None:
        level = logging.getLevelName(settings.LOG_LEVEL.upper())

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    handlers: list[logging.Handler] = []
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in _NAMESPACES:
        logger = logging.getLogger(name)
        logger.setLevel(level)
        # Avoid duplicate output when called again
        if logger.hasHandlers():
            logger.handlers.clear()
        for handler in handlers:
            logger.addHandler(handler)
        logger.propagate = False

    logging.getLogger("orchestrator").info("Logging initialized.")
