"""
Quantile-based (Tukey fence) outlier detection.

A value is an outlier when it lies outside ``[Q1 - k*IQR, Q3 + k*IQR]``,
with quartiles taken from the non-missing values using pandas' linear
interpolation. Missing values are never flagged.
"""

from pathlib import Path
from typing import Dict, Tuple
import sys

import numpy as np
import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config.config import diagnose_config


def outlier_bounds(series: pd.Series, coef: float = None) -> Tuple[float, float]:
    """Lower and upper fences; ``(nan, nan)`` when there is no data."""
    coef = diagnose_config.outlier_coef if coef is None else coef
    data = pd.to_numeric(series, errors='coerce').dropna()
    if data.empty:
        return np.nan, np.nan
    q1 = data.quantile(0.25)
    q3 = data.quantile(0.75)
    iqr = q3 - q1
    return float(q1 - coef * iqr), float(q3 + coef * iqr)


def find_outliers(series: pd.Series, coef: float = None) -> pd.Series:
    """Boolean mask aligned with ``series``."""
    lower, upper = outlier_bounds(series, coef)
    if np.isnan(lower):
        return pd.Series(False, index=series.index)
    values = pd.to_numeric(series, errors='coerce')
    return ((values < lower) | (values > upper)).fillna(False).astype(bool)


def outlier_summary(series: pd.Series, coef: float = None) -> Dict[str, float]:
    """
    Count, share and means of the outliers in one numeric variable.

    ``outliers_ratio`` is a percentage of all rows, missing included.
    """
    values = pd.to_numeric(series, errors='coerce')
    mask = find_outliers(values, coef)
    n = len(values)
    outliers = values[mask]
    inliers = values[~mask]

    return {
        'outliers_cnt': int(mask.sum()),
        'outliers_ratio': float(mask.sum() / n * 100) if n else 0.0,
        'outliers_mean': float(outliers.mean()) if len(outliers) else np.nan,
        'with_mean': float(values.mean()) if values.notna().any() else np.nan,
        'without_mean': float(inliers.mean()) if inliers.notna().any() else np.nan,
    }
