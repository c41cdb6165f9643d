# TemplateStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Logging configuration for the command line."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

DETAILED_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
SIMPLE_FORMAT = "%(levelname)-8s | %(name)s | %(message)s"


def setup_logging(
    console_level: int = logging.WARNING,
    log_file: str | Path | None = None,
) -> logging.Logger:
    """
    Configure the ``templatestore`` logger.

    Console output goes to stderr so command output on stdout stays clean.
    When ``log_file`` is given, DEBUG and above are also written there
    (5 MB per file, 3 rotations).

    Args:
        console_level: Minimum level for console output
        log_file: Optional path of a rotating log file

    Returns:
        The configured package logger
    """
    pkg_logger = logging.getLogger("templatestore")
    pkg_logger.setLevel(logging.DEBUG)

    # Remove any existing handlers (in case this is called multiple times)
    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))
    pkg_logger.addHandler(console_handler)

    if log_file is not None:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter(DETAILED_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
        )
        pkg_logger.addHandler(file_handler)

    return pkg_logger
