"""
Unit tests for the logging setup.
"""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.config import LOGS_DIR
from src.utils.logger import setup_logger, get_logger


class TestLogger:
    def test_get_logger_is_file_only(self):
        logger = get_logger('dataprobe.tests.file_only')
        assert len(logger.handlers) == 1
        handler = logger.handlers[0]
        assert isinstance(handler, logging.FileHandler)
        assert Path(handler.baseFilename).parent == LOGS_DIR
        assert Path(handler.baseFilename).name.endswith('_dataprobe.log')

    def test_handlers_attached_once(self):
        first = setup_logger('dataprobe.tests.once', log_to_file=False)
        second = setup_logger('dataprobe.tests.once', log_to_file=False)
        assert first is second
        assert len(second.handlers) == 1
        assert isinstance(second.handlers[0], logging.StreamHandler)

    def test_level_name(self):
        logger = setup_logger('dataprobe.tests.level', level='debug', log_to_file=False)
        assert logger.level == logging.DEBUG
