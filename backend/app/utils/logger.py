"""
Logging utilities.

WHAT: Logging setup for the reading API and its LLM gateway
WHY: Endpoint failures are logged per attempt and must land somewhere readable
HOW: stdlib logging, stdout always, a log file only when LOG_FILE is set
"""

import logging
import sys
from pathlib import Path


def setup_logging():
    """
    Configure the root logger from LOG_LEVEL and LOG_FILE.

    Called once at import of app.main. The stdout handler logs INFO and up;
    the optional file handler also keeps DEBUG lines such as skipped stream
    lines from the decoder.
    """
    # Imported here so the LLM layer can use get_logger() while config loads
    from ..core.config import settings

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    # uvicorn reload re-imports main
    root_logger.handlers.clear()

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # File handler
    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(pathname)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        root_logger.addHandler(file_handler)

    root_logger.info(f"Logging initialized (level={settings.LOG_LEVEL}, file={settings.LOG_FILE or 'none'})")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
