"""
Logging setup for kvfacade.

Library modules only create loggers; handlers are attached here,
by the CLI or by an application that wants kvfacade output.
"""

from __future__ import annotations

import logging
from pathlib import Path


def setup_logging(
    level: int | str = logging.WARNING,
    log_file: Path | str | None = None,
    file_level: int = logging.DEBUG,
) -> logging.Logger:
    """
    Setup kvfacade logging.

    Args:
        level: Minimum level for console output
        log_file: Optional file for detailed output
        file_level: Minimum level for file output

    Returns:
        The configured "kvfacade" logger
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger("kvfacade")
    logger.setLevel(logging.DEBUG)

    # Clear existing handlers
    logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setLevel(file_level)
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        logger.addHandler(file_handler)
        logger.debug(f"Logging to file {path}")

    return logger
