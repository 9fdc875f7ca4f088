"""
Data Package Initialization.
"""

from .sources import DatabaseTable
from .data_loader import DataLoader, resolve_source, to_frame, select_columns
from .imputation import Imputer

__all__ = ['DatabaseTable', 'DataLoader', 'resolve_source', 'to_frame',
           'select_columns', 'Imputer']
