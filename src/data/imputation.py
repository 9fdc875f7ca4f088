"""
Missing value and outlier imputation.

Replacements are returned as new Series; the input frame is never
modified. Model-based imputation uses scikit-learn's KNNImputer over
the numeric columns of the frame.
"""

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Dict, Any
import sys

from sklearn.impute import KNNImputer, SimpleImputer

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config.config import diagnose_config
from src.diagnose.outliers import find_outliers, outlier_bounds
from src.utils.logger import get_logger

logger = get_logger(__name__)

NA_METHODS = ('mean', 'median', 'mode', 'knn')
OUTLIER_METHODS = ('mean', 'median', 'mode', 'capping')


class Imputer:
    """Fills missing values and replaces outliers column by column."""

    def __init__(self, config=diagnose_config):
        self.config = config
        self.imputation_report = {}
        logger.info("Imputer initialized")

    def _check_column(self, df: pd.DataFrame, column: str) -> None:
        if column not in df.columns:
            error_msg = f"Column '{column}' not found"
            logger.error(error_msg)
            raise ValueError(error_msg)

    def impute_na(self, df: pd.DataFrame, column: str, method: str = 'median') -> pd.Series:
        """
        Fill missing values of one column.

        Args:
            df: Input DataFrame
            column: Column to impute
            method: 'mean', 'median', 'mode' or 'knn'; categorical
                columns only support 'mode'

        Returns:
            Imputed copy of the column
        """
        self._check_column(df, column)
        if method not in NA_METHODS:
            raise ValueError(f"Unknown imputation method '{method}'. Expected one of {NA_METHODS}")

        series = df[column]
        is_numeric = pd.api.types.is_numeric_dtype(series) and not pd.api.types.is_bool_dtype(series)
        if not is_numeric and method != 'mode':
            raise ValueError(f"Column '{column}' is categorical; only 'mode' imputation is supported")

        n_missing = int(series.isna().sum())
        if n_missing == 0:
            logger.info(f"No missing values in {column}")
            self.imputation_report[column] = {'method': method, 'imputed': 0}
            return series.copy()
        if n_missing == len(series):
            raise ValueError(f"Column '{column}' has no observed values to impute from")

        if method == 'knn':
            imputed = self._impute_knn(df, column)
        elif method == 'mode':
            mode = series.mode(dropna=True)
            fill_value = mode.iloc[0] if not mode.empty else np.nan
            imputed = series.fillna(fill_value)
        else:
            imputer = SimpleImputer(strategy=method)
            values = imputer.fit_transform(series.to_frame())[:, 0]
            imputed = pd.Series(values, index=series.index, name=column)

        logger.info(f"Imputed {n_missing} missing values in {column} using {method}")
        self.imputation_report[column] = {'method': method, 'imputed': n_missing}
        return imputed

    def _impute_knn(self, df: pd.DataFrame, column: str) -> pd.Series:
        numeric = df.select_dtypes(include=[np.number])
        # Columns with no observed value cannot inform the neighbours
        numeric = numeric.loc[:, numeric.notna().any()]
        if numeric.shape[1] < 2:
            logger.warning(f"KNN imputation of {column} has no other numeric columns to use")
        n_neighbors = max(1, min(self.config.knn_neighbors, int(numeric[column].notna().sum())))
        imputer = KNNImputer(n_neighbors=n_neighbors)
        values = imputer.fit_transform(numeric)
        position = list(numeric.columns).index(column)
        return pd.Series(values[:, position], index=df.index, name=column)

    def impute_outlier(self, df: pd.DataFrame, column: str, method: str = 'capping') -> pd.Series:
        """
        Replace outliers of one numeric column.

        'capping' sets low outliers to the 5th percentile and high
        outliers to the 95th; the other methods use the statistic of
        the non-outlying values.
        """
        self._check_column(df, column)
        if method not in OUTLIER_METHODS:
            raise ValueError(f"Unknown outlier method '{method}'. Expected one of {OUTLIER_METHODS}")

        series = df[column]
        if not pd.api.types.is_numeric_dtype(series) or pd.api.types.is_bool_dtype(series):
            raise ValueError(f"Column '{column}' is not numeric")

        mask = find_outliers(series, self.config.outlier_coef)
        n_outliers = int(mask.sum())
        result = series.astype(float)

        if n_outliers == 0:
            logger.info(f"No outliers in {column}")
            self.imputation_report[column] = {'method': method, 'imputed': 0}
            return result

        inliers = series[~mask].dropna()
        if method == 'capping':
            lower, upper = outlier_bounds(series, self.config.outlier_coef)
            low_q, high_q = self.config.capping_quantiles
            result[mask & (series < lower)] = series.quantile(low_q)
            result[mask & (series > upper)] = series.quantile(high_q)
        elif method == 'mean':
            result[mask] = inliers.mean()
        elif method == 'median':
            result[mask] = inliers.median()
        else:
            result[mask] = inliers.mode().iloc[0]

        logger.info(f"Replaced {n_outliers} outliers in {column} using {method}")
        self.imputation_report[column] = {'method': method, 'imputed': n_outliers}
        return result

    def get_imputation_report(self) -> Dict[str, Any]:
        return self.imputation_report
