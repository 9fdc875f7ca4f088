"""Data quality diagnosis module."""

from .outliers import outlier_bounds, find_outliers, outlier_summary
from .diagnoser import DataDiagnoser, column_type, numeric_columns, categorical_columns

__all__ = ['DataDiagnoser', 'column_type', 'numeric_columns', 'categorical_columns',
           'outlier_bounds', 'find_outliers', 'outlier_summary']
