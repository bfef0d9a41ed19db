"""
Logging setup for the gas and oscillator runs.

Every module logs through a child of the ``gasbox`` logger; this module
only attaches handlers to the root of that tree.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

LOGGER_NAME = "gasbox"
LOG_FORMAT = '%(asctime)s [%(levelname)s] %(message)s'

logger = logging.getLogger(LOGGER_NAME)


def setup_logging(level: str | int = "INFO", log_file: Optional[str | Path] = None) -> logging.Logger:
    """Attach a console handler (and optionally a file handler) to ``gasbox``.

    Calling it again replaces the handlers installed by a previous call, so
    the level can be changed between runs.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        # The file keeps everything, the console only the chosen level.
        file_handler = logging.FileHandler(path, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.setLevel(min(level, logging.DEBUG))

    return logger
