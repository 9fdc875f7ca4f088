"""
Logging Utility Module.

Every dataprobe module logs through here. A profiling run writes to one
dated file under ``logs/`` (``<YYYYMMDD>_dataprobe.log``), so the tables and
charts produced for a dataset can be traced back to the run that made them.
Console output is opt-in; the CLI prints its own tables instead.
"""

import logging
import sys
from datetime import datetime

from config.config import logging_config, LOGS_DIR


def _log_file_path():
    return LOGS_DIR / f"{datetime.now().strftime('%Y%m%d')}_{logging_config.log_file}"


def setup_logger(
    name: str,
    level: str = None,
    log_to_file: bool = True,
    log_to_console: bool = True
) -> logging.Logger:
    """
    Attach the dataprobe handlers to the named logger.

    Handlers are attached once per logger name; later calls return the
    logger unchanged.

    Args:
        name: Module name, normally ``__name__``
        level: Level name; defaults to ``logging_config.level``
        log_to_file: Write to the dated run log
        log_to_console: Also echo to stdout

    Returns:
        The configured logger
    """
    level = getattr(logging, (level or logging_config.level).upper())

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(fmt=logging_config.format, datefmt=logging_config.date_format)
    handlers = []
    if log_to_file:
        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(_log_file_path(), encoding='utf-8'))
    if log_to_console:
        handlers.append(logging.StreamHandler(sys.stdout))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """File-only logger used by the library modules."""
    return setup_logger(name, log_to_console=False)
