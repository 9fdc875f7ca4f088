"""
Utils Package Initialization.
"""

from .logger import setup_logger, get_logger
from .plotting import BasePlotter, safe_name

__all__ = ['setup_logger', 'get_logger', 'BasePlotter', 'safe_name']
