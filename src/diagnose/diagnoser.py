# Data Quality Diagnosis Module.

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Optional, List, Dict, Any
import sys

import matplotlib.pyplot as plt
import seaborn as sns

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config.config import diagnose_config
from src.data.data_loader import resolve_source, to_frame, select_columns
from src.data.sources import DatabaseTable
from src.diagnose.outliers import find_outliers, outlier_summary
from src.utils.logger import get_logger
from src.utils.plotting import BasePlotter, safe_name

logger = get_logger(__name__)

CATEGORICAL_DTYPES = ['object', 'category', 'bool', 'string']


def column_type(series: pd.Series) -> str:
    """Short type label for a column."""
    if pd.api.types.is_bool_dtype(series):
        return 'logical'
    if pd.api.types.is_datetime64_any_dtype(series):
        return 'datetime'
    if pd.api.types.is_integer_dtype(series):
        return 'integer'
    if pd.api.types.is_numeric_dtype(series):
        return 'numeric'
    if isinstance(series.dtype, pd.CategoricalDtype):
        return 'categorical'
    return 'character'


def numeric_columns(df: pd.DataFrame) -> List[str]:
    return df.select_dtypes(include=[np.number]).columns.tolist()


def categorical_columns(df: pd.DataFrame) -> List[str]:
    return df.select_dtypes(include=CATEGORICAL_DTYPES).columns.tolist()


class DataDiagnoser(BasePlotter):
    """
    Data quality diagnosis for tabular data.

    Produces one-row-per-variable tables covering missingness and
    cardinality, numeric ranges, categorical level frequencies and
    outliers. Accepts DataFrames, file paths or DatabaseTable sources.
    """

    def __init__(self, config=diagnose_config, save_plots: bool = True,
                 plot_dir: Optional[Path] = None):
        super().__init__(save_plots=save_plots, plot_dir=plot_dir)
        self.config = config
        self.diagnosis_report = {}
        logger.info("DataDiagnoser initialized")

    def diagnose(self, source, columns=None) -> pd.DataFrame:
        """
        Overview of every variable.

        Database tables are aggregated in the database; nothing but the
        per-column counts crosses the connection.

        Returns:
            DataFrame with variables, types, missing_count, missing_percent,
            unique_count and unique_rate
        """
        resolved = resolve_source(source)
        if isinstance(resolved, DatabaseTable):
            result = self._diagnose_database(resolved, columns)
        else:
            result = self._diagnose_frame(select_columns(resolved, columns))

        self.diagnosis_report['variables'] = len(result)
        self.diagnosis_report['variables_with_missing'] = int((result['missing_count'] > 0).sum())
        logger.info(f"Diagnosed {len(result)} variables "
                    f"({self.diagnosis_report['variables_with_missing']} with missing values)")
        return result

    def _diagnose_frame(self, df: pd.DataFrame) -> pd.DataFrame:
        logger.info(f"Diagnosing in-memory table with shape {df.shape}")
        n = len(df)
        rows = []
        for col in df.columns:
            series = df[col]
            missing = int(series.isna().sum())
            unique = int(series.nunique(dropna=False))
            rows.append({
                'variables': col,
                'types': column_type(series),
                'missing_count': missing,
                'missing_percent': missing / n * 100 if n else 0.0,
                'unique_count': unique,
                'unique_rate': unique / n if n else 0.0,
            })
        return pd.DataFrame(rows, columns=[
            'variables', 'types', 'missing_count', 'missing_percent',
            'unique_count', 'unique_rate'
        ])

    def _diagnose_database(self, table: DatabaseTable, columns=None) -> pd.DataFrame:
        logger.info(f"Diagnosing database table {table.name} in-database")
        names = table.column_names()
        if columns is not None:
            columns = [columns] if isinstance(columns, str) else list(columns)
            unknown = [c for c in columns if c not in names]
            if unknown:
                raise ValueError(f"Unknown columns: {unknown}")
            names = columns

        n = table.row_count()
        types = table.column_types()
        missing = table.missing_counts()
        distinct = table.unique_counts()

        rows = []
        for col in names:
            # COUNT(DISTINCT) ignores NULL; count it as one more value
            unique = distinct[col] + (1 if missing[col] > 0 else 0)
            rows.append({
                'variables': col,
                'types': types[col],
                'missing_count': missing[col],
                'missing_percent': missing[col] / n * 100 if n else 0.0,
                'unique_count': unique,
                'unique_rate': unique / n if n else 0.0,
            })
        return pd.DataFrame(rows)

    def diagnose_numeric(self, source, columns=None) -> pd.DataFrame:
        """Range, quartiles, zero/negative counts and outlier count per numeric variable."""
        df = select_columns(to_frame(source), columns)
        cols = numeric_columns(df)
        logger.info(f"Diagnosing {len(cols)} numeric variables")

        rows = []
        for col in cols:
            data = df[col]
            rows.append({
                'variables': col,
                'min': data.min(),
                'Q1': data.quantile(0.25),
                'mean': data.mean(),
                'median': data.median(),
                'Q3': data.quantile(0.75),
                'max': data.max(),
                'zero': int((data == 0).sum()),
                'minus': int((data < 0).sum()),
                'outlier': int(find_outliers(data, self.config.outlier_coef).sum()),
            })
        return pd.DataFrame(rows, columns=[
            'variables', 'min', 'Q1', 'mean', 'median', 'Q3', 'max',
            'zero', 'minus', 'outlier'
        ])

    def diagnose_category(self, source, columns=None, top: int = None) -> pd.DataFrame:
        """
        Level frequencies of categorical variables.

        Levels are ranked by descending frequency with ties sharing the
        lowest rank; every level ranked within ``top`` is kept, so ties
        can return more than ``top`` rows. Missing values form their own
        level, reported as None.
        """
        top = self.config.top_levels if top is None else top
        df = select_columns(to_frame(source), columns)
        cols = categorical_columns(df)
        n = len(df)
        logger.info(f"Diagnosing {len(cols)} categorical variables (top {top})")

        tables = []
        for col in cols:
            counts = df[col].value_counts(dropna=False)
            # Unused categories of a Categorical are not levels
            counts = counts[counts > 0]
            table = pd.DataFrame({
                'variables': col,
                'levels': counts.index.astype(object),
                'N': n,
                'freq': counts.values.astype(int),
            })
            table['levels'] = table['levels'].where(table['levels'].notna(), None)
            table = table.sort_values('freq', ascending=False, kind='mergesort')
            table['ratio'] = table['freq'] / n * 100 if n else 0.0
            table['rank'] = table['freq'].rank(method='min', ascending=False).astype(int)
            tables.append(table[table['rank'] <= top])

        if not tables:
            logger.warning("No categorical variables to diagnose")
            return pd.DataFrame(columns=['variables', 'levels', 'N', 'freq', 'ratio', 'rank'])
        return pd.concat(tables, ignore_index=True)

    def diagnose_outlier(self, source, columns=None) -> pd.DataFrame:
        """Outlier count, share and effect on the mean per numeric variable."""
        df = select_columns(to_frame(source), columns)
        cols = numeric_columns(df)
        logger.info(f"Diagnosing outliers in {len(cols)} numeric variables")

        rows = []
        for col in cols:
            summary = outlier_summary(df[col], self.config.outlier_coef)
            rows.append({'variables': col, **summary})
            if summary['outliers_cnt'] > 0:
                logger.info(f"  {col}: {summary['outliers_cnt']} outliers "
                            f"({summary['outliers_ratio']:.2f}%)")
        return pd.DataFrame(rows, columns=[
            'variables', 'outliers_cnt', 'outliers_ratio', 'outliers_mean',
            'with_mean', 'without_mean'
        ])

    def plot_outlier(self, source, columns=None) -> List[Path]:
        """
        Boxplots and histograms with and without outliers.

        One 2x2 figure per numeric variable that has outliers.

        Returns:
            List of paths to saved plots
        """
        df = select_columns(to_frame(source), columns)
        saved_plots = []

        for col in numeric_columns(df):
            data = df[col].dropna()
            mask = find_outliers(data, self.config.outlier_coef)
            if not mask.any():
                continue

            logger.info(f"Generating outlier plot for {col}...")
            inliers = data[~mask]

            fig, axes = plt.subplots(2, 2, figsize=(12, 8))
            sns.boxplot(x=data, ax=axes[0, 0], color='steelblue')
            axes[0, 0].set_title('With outliers', fontweight='bold')
            sns.boxplot(x=inliers, ax=axes[0, 1], color='steelblue')
            axes[0, 1].set_title('Without outliers', fontweight='bold')

            axes[1, 0].hist(data, bins=30, color='steelblue', edgecolor='white')
            axes[1, 0].set_title('With outliers', fontweight='bold')
            axes[1, 1].hist(inliers, bins=30, color='steelblue', edgecolor='white')
            axes[1, 1].set_title('Without outliers', fontweight='bold')

            fig.suptitle(f'Outlier diagnosis: {col} ({int(mask.sum())} outliers)',
                         fontsize=14, fontweight='bold')
            plt.tight_layout()

            plot_path = self._save_figure(fig, f'outlier_{safe_name(col)}')
            if plot_path:
                saved_plots.append(plot_path)

        if not saved_plots:
            logger.info("No variables with outliers to plot")
        return saved_plots

    def get_diagnosis_report(self) -> Dict[str, Any]:
        return self.diagnosis_report
