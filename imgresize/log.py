# -*- coding: utf-8 -*-
import logging

log_formatter = logging.Formatter('%(asctime)s - %(levelname)s - %(processName)s: %(message)s', datefmt='%Y-%m-%d %H:%M:%S')

log_handler = logging.StreamHandler()
log_handler.setFormatter(log_formatter)

logger = logging.getLogger("imgresize")
if not logger.handlers:
    logger.addHandler(log_handler)
    logger.setLevel(logging.WARNING)


def level_for(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.WARNING


def setup_logging(level: int):
    """Sets the level of the package logger (main process and pool workers)."""
    logger.setLevel(level)
