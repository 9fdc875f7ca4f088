# Exploratory Data Analysis (EDA) Module.

import pandas as pd
import numpy as np
from pathlib import Path
from typing import Optional, Tuple, List, Dict, Any
import sys

import matplotlib.pyplot as plt
import seaborn as sns
from scipy import stats

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config.config import diagnose_config
from src.data.data_loader import to_frame, select_columns
from src.diagnose.diagnoser import numeric_columns, categorical_columns
from src.utils.logger import get_logger
from src.utils.plotting import BasePlotter, safe_name

logger = get_logger(__name__)


def percentile_label(p: float) -> str:
    return f"p{int(round(p * 100)):02d}"


class ExploratoryDataAnalyzer(BasePlotter):
    # Distribution, normality and correlation analysis of tabular data.

    def __init__(self, save_plots: bool = True, plot_dir: Path = None, config=diagnose_config):
        """
        Initialize ExploratoryDataAnalyzer.

        Args:
            save_plots: Whether to save plots to disk
            plot_dir: Directory for saving plots
            config: Diagnosis configuration (percentiles, sampling, methods)
        """
        super().__init__(save_plots=save_plots, plot_dir=plot_dir)
        self.config = config
        logger.info(f"EDA Analyzer initialized. Plots will be saved to: {self.plot_dir}")

    def _describe_series(self, data: pd.Series) -> Dict[str, Any]:
        values = data.dropna().astype(float)
        n = len(values)
        sd = values.std() if n > 1 else np.nan
        row = {
            'n': n,
            'na': int(data.isna().sum()),
            'mean': values.mean() if n else np.nan,
            'sd': sd,
            'se_mean': sd / np.sqrt(n) if n > 1 else np.nan,
            'IQR': values.quantile(0.75) - values.quantile(0.25) if n else np.nan,
            'skewness': values.skew() if n > 2 else np.nan,
            'kurtosis': values.kurt() if n > 3 else np.nan,
        }
        for p in self.config.percentiles:
            row[percentile_label(p)] = values.quantile(p) if n else np.nan
        return row

    def describe(self, source, columns=None, by: Optional[str] = None) -> pd.DataFrame:
        """
        Descriptive statistics of numeric variables.

        Args:
            source: DataFrame, file path or DatabaseTable
            columns: Optional subset of columns
            by: Optional grouping column; one row per (group, variable)

        Returns:
            DataFrame with n, na, mean, sd, se_mean, IQR, skewness,
            kurtosis and the configured percentiles
        """
        logger.info("Computing descriptive statistics...")
        df = to_frame(source)
        if by is not None and by not in df.columns:
            raise ValueError(f"Unknown grouping column '{by}'")

        target = select_columns(df, columns)
        cols = [c for c in numeric_columns(target) if c != by]

        rows = []
        if by is None:
            for col in cols:
                rows.append({'variable': col, **self._describe_series(df[col])})
        else:
            for key, group in df.groupby(by, dropna=False, sort=True):
                for col in cols:
                    rows.append({'variable': col, by: key, **self._describe_series(group[col])})

        result = pd.DataFrame(rows)
        logger.info(f"Described {len(cols)} numeric variables")
        return result

    def category_frequencies(self, source, columns=None) -> Dict[str, pd.DataFrame]:
        """Frequency table (count, pct) per categorical variable, missing included."""
        df = select_columns(to_frame(source), columns)
        n = len(df)
        tables = {}
        for col in categorical_columns(df):
            counts = df[col].value_counts(dropna=False)
            counts = counts[counts > 0]
            tables[col] = pd.DataFrame({
                'count': counts,
                'pct': (counts / n * 100).round(2) if n else 0.0,
            })
        logger.info(f"Computed frequency tables for {len(tables)} categorical variables")
        return tables

    def normality(self, source, columns=None) -> pd.DataFrame:
        """
        Shapiro-Wilk normality test per numeric variable.

        Variables with more observations than the configured sample size
        are tested on a reproducible random sample.
        """
        logger.info("Running Shapiro-Wilk normality tests...")
        df = select_columns(to_frame(source), columns)

        rows = []
        for col in numeric_columns(df):
            data = df[col].dropna().astype(float)
            if len(data) < self.config.normality_min_size:
                logger.warning(f"Skipping normality test for {col}: only {len(data)} values")
                continue
            if len(data) > self.config.normality_sample_size:
                data = data.sample(n=self.config.normality_sample_size,
                                   random_state=self.config.random_state)
            statistic, p_value = stats.shapiro(data)
            rows.append({
                'variable': col,
                'statistic': float(statistic),
                'p_value': float(p_value),
                'sample': len(data),
            })
        return pd.DataFrame(rows, columns=['variable', 'statistic', 'p_value', 'sample'])

    def correlate(self, source, columns=None, method: str = None) -> pd.DataFrame:
        """
        Pairwise correlation of numeric variables as a long table.

        Both orderings of every pair are listed, as var1/var2/coef_corr.
        """
        method = method or self.config.correlation_method
        if method not in ('pearson', 'spearman', 'kendall'):
            raise ValueError(f"Unknown correlation method '{method}'")

        df = select_columns(to_frame(source), columns)
        cols = numeric_columns(df)
        if len(cols) < 2:
            logger.warning("Not enough numerical columns for correlation analysis")
            return pd.DataFrame(columns=['var1', 'var2', 'coef_corr'])

        logger.info(f"Computing {method} correlation matrix...")
        corr_matrix = df[cols].corr(method=method)
        rows = [
            {'var1': a, 'var2': b, 'coef_corr': corr_matrix.loc[a, b]}
            for a in cols for b in cols if a != b
        ]
        return pd.DataFrame(rows)

    def plot_correlate(self, source, columns=None, method: str = None) -> Optional[Path]:
        """
        Correlation heatmap (lower triangle).

        Returns:
            Path to saved plot
        """
        method = method or self.config.correlation_method
        df = select_columns(to_frame(source), columns)
        cols = numeric_columns(df)
        if len(cols) < 2:
            logger.warning("Not enough numerical columns for correlation heatmap")
            return None

        corr_matrix = df[cols].corr(method=method)

        fig, ax = plt.subplots(figsize=(12, 10))
        mask = np.triu(np.ones_like(corr_matrix, dtype=bool), k=1)

        sns.heatmap(
            corr_matrix,
            mask=mask,
            annot=True,
            fmt='.2f',
            cmap='RdBu_r',
            center=0,
            vmin=-1,
            vmax=1,
            square=True,
            linewidths=0.5,
            cbar_kws={'shrink': 0.8},
            ax=ax
        )

        ax.set_title(f'Correlation Heatmap ({method.capitalize()})',
                     fontsize=14, fontweight='bold')
        plt.tight_layout()

        return self._save_figure(fig, 'correlation_heatmap')

    def plot_normality(self, source, columns=None) -> List[Path]:
        """
        Per numeric variable: histogram, Q-Q plot and log / sqrt
        transformed histograms.

        Returns:
            List of paths to saved plots
        """
        df = select_columns(to_frame(source), columns)
        saved_plots = []

        for col in numeric_columns(df):
            data = df[col].dropna().astype(float)
            if len(data) < self.config.normality_min_size:
                continue

            logger.info(f"Generating normality plot for {col}...")
            fig, axes = plt.subplots(2, 2, figsize=(12, 8))

            axes[0, 0].hist(data, bins=30, color='steelblue', edgecolor='white')
            axes[0, 0].set_title('Original', fontweight='bold')

            stats.probplot(data, dist='norm', plot=axes[0, 1])
            axes[0, 1].set_title('Q-Q plot', fontweight='bold')

            if data.min() > 0:
                log_data, log_title = np.log(data), 'log(x)'
            else:
                log_data, log_title = np.log1p(data - data.min()), 'log(x - min + 1)'
            axes[1, 0].hist(log_data, bins=30, color='coral', edgecolor='white')
            axes[1, 0].set_title(log_title, fontweight='bold')

            if data.min() >= 0:
                sqrt_data, sqrt_title = np.sqrt(data), 'sqrt(x)'
            else:
                sqrt_data, sqrt_title = np.sqrt(data - data.min()), 'sqrt(x - min)'
            axes[1, 1].hist(sqrt_data, bins=30, color='seagreen', edgecolor='white')
            axes[1, 1].set_title(sqrt_title, fontweight='bold')

            skewness = stats.skew(data)
            axes[0, 0].annotate(f'Skewness: {skewness:.2f}',
                                xy=(0.95, 0.95), xycoords='axes fraction',
                                ha='right', va='top', fontsize=10,
                                bbox=dict(boxstyle='round', facecolor='wheat', alpha=0.5))

            fig.suptitle(f'Normality diagnosis: {col}', fontsize=14, fontweight='bold')
            plt.tight_layout()

            plot_path = self._save_figure(fig, f'normality_{safe_name(col)}')
            if plot_path:
                saved_plots.append(plot_path)

        return saved_plots

    def plot_category_bars(self, source, columns=None, top_n: int = None) -> List[Path]:
        """Horizontal frequency bars of the most common levels per categorical variable."""
        top_n = top_n or self.config.top_levels
        df = select_columns(to_frame(source), columns)
        saved_plots = []

        for col in categorical_columns(df):
            counts = df[col].astype(object).fillna('<NA>').astype(str).value_counts().head(top_n)
            if counts.empty:
                continue

            logger.info(f"Generating frequency plot for {col}...")
            counts = counts.sort_values(ascending=True)
            fig, ax = plt.subplots(figsize=(10, max(3, 0.4 * len(counts))))
            bars = ax.barh(counts.index, counts.values,
                           color=plt.cm.viridis(np.linspace(0, 1, len(counts))),
                           edgecolor='white')
            for bar, count in zip(bars, counts.values):
                ax.text(bar.get_width() + counts.max() * 0.01,
                        bar.get_y() + bar.get_height() / 2,
                        f'{count:,} ({count / len(df) * 100:.1f}%)',
                        ha='left', va='center', fontsize=9)
            ax.set_xlabel('Frequency', fontsize=12)
            ax.set_title(f'Top {len(counts)} levels of {col}', fontsize=14, fontweight='bold')
            plt.tight_layout()

            plot_path = self._save_figure(fig, f'category_{safe_name(col)}')
            if plot_path:
                saved_plots.append(plot_path)

        return saved_plots

    def run_full_eda(self, source) -> Dict[str, Any]:
        """
        Execute the EDA pipeline: statistics tables first, then charts.

        A failing chart is logged and skipped so the remaining results
        are still returned.

        Returns:
            Dictionary containing all EDA results and plot paths
        """
        logger.info("=" * 60)
        logger.info("Starting Exploratory Data Analysis")
        logger.info("=" * 60)

        df = to_frame(source)

        results = {
            'timestamp': self.analysis_timestamp,
            'data_shape': df.shape,
            'statistics': {},
            'plots': []
        }

        results['statistics']['describe'] = self.describe(df)
        results['statistics']['normality'] = self.normality(df)
        results['statistics']['correlation'] = self.correlate(df)
        results['statistics']['categories'] = self.category_frequencies(df)

        for name, plot_fn in [('correlation', self.plot_correlate),
                              ('normality', self.plot_normality),
                              ('categories', self.plot_category_bars)]:
            try:
                paths = plot_fn(df)
                if isinstance(paths, list):
                    results['plots'].extend(paths)
                elif paths:
                    results['plots'].append(paths)
            except Exception as e:
                logger.error(f"Error in {name} plots: {e}")

        logger.info("=" * 60)
        logger.info(f"EDA Complete. Generated {len(results['plots'])} plots")
        logger.info("=" * 60)

        return results
