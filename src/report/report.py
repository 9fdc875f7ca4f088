"""
Diagnosis Report Module.

Runs the diagnosis, EDA and missing value steps over one data source and
assembles the results into a plain-text summary or a single self-contained
HTML page (tables rendered with pandas, charts embedded as base64 PNG).
"""

import base64
import html
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, Callable, List

import pandas as pd

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config.config import REPORTS_DIR
from src.data.data_loader import resolve_source, to_frame
from src.data.sources import DatabaseTable
from src.diagnose.diagnoser import DataDiagnoser
from src.eda.eda import ExploratoryDataAnalyzer
from src.missing.missing import MissingValuePlotter
from src.utils.logger import get_logger

logger = get_logger(__name__)

STRONG_CORRELATION = 0.7
SIGNIFICANCE = 0.05

SECTION_TITLES = {
    'overview': 'Variable overview',
    'missing_pareto': 'Missing values',
    'numeric': 'Numeric variables',
    'category': 'Categorical variables',
    'outlier': 'Outliers',
    'describe': 'Descriptive statistics',
    'normality': 'Normality tests (Shapiro-Wilk)',
    'correlation': 'Correlation',
}

HTML_STYLE = """
body { font-family: Helvetica, Arial, sans-serif; margin: 2rem; color: #222; }
h1 { color: #1E88E5; }
h2 { border-bottom: 2px solid #1E88E5; padding-bottom: 4px; margin-top: 2rem; }
table.dataframe { border-collapse: collapse; font-size: 0.85rem; margin: 1rem 0; }
table.dataframe th, table.dataframe td { border: 1px solid #ddd; padding: 4px 8px; }
table.dataframe th { background: #F5F5F5; }
img { max-width: 100%; margin: 0.5rem 0; }
.meta { color: #666; }
.error { color: #c62828; }
"""


class ReportGenerator:
    """Collects diagnosis results for a data source and writes reports."""

    def __init__(self, report_dir: Optional[Path] = None, plot_dir: Optional[Path] = None,
                 save_plots: bool = True):
        self.report_dir = Path(report_dir) if report_dir is not None else REPORTS_DIR
        self.report_dir.mkdir(parents=True, exist_ok=True)
        self.diagnoser = DataDiagnoser(save_plots=save_plots, plot_dir=plot_dir)
        self.analyzer = ExploratoryDataAnalyzer(save_plots=save_plots, plot_dir=plot_dir)
        self.missing_plotter = MissingValuePlotter(save_plots=save_plots, plot_dir=plot_dir)
        logger.info(f"ReportGenerator initialized. Reports will be saved to: {self.report_dir}")

    def _run_step(self, results: Dict[str, Any], name: str, fn: Callable):
        try:
            return fn()
        except Exception as e:
            logger.error(f"Report section '{name}' failed: {e}")
            results['errors'][name] = str(e)
            return None

    def collect(self, source) -> Dict[str, Any]:
        """
        Run every diagnosis step; a failing step is recorded under
        ``errors`` and the rest still run.

        Returns:
            Dictionary with 'tables', 'plots', 'errors' and dataset metadata
        """
        logger.info("=" * 60)
        logger.info("Collecting report results")
        logger.info("=" * 60)

        resolved = resolve_source(source)
        # Overview runs in-database; the other steps need the rows
        df = to_frame(resolved)

        results = {
            'generated_at': datetime.now().strftime('%Y-%m-%d %H:%M:%S'),
            'source': resolved.name if isinstance(resolved, DatabaseTable) else 'DataFrame',
            'data_shape': df.shape,
            'tables': {},
            'plots': {},
            'errors': {},
        }
        tables = results['tables']
        plots = results['plots']

        steps = [
            ('overview', lambda: self.diagnoser.diagnose(resolved)),
            ('numeric', lambda: self.diagnoser.diagnose_numeric(df)),
            ('category', lambda: self.diagnoser.diagnose_category(df)),
            ('outlier', lambda: self.diagnoser.diagnose_outlier(df)),
            ('describe', lambda: self.analyzer.describe(df)),
            ('normality', lambda: self.analyzer.normality(df)),
            ('correlation', lambda: self.analyzer.correlate(df)),
        ]
        for name, fn in steps:
            table = self._run_step(results, name, fn)
            if table is not None:
                tables[name] = table

        has_missing = bool(df.isna().to_numpy().any())
        if has_missing:
            table = self._run_step(results, 'missing_pareto',
                                   lambda: self.missing_plotter.plot_na_pareto(df, plot=False))
            if table is not None:
                tables['missing_pareto'] = table

            plots['missing_pareto'] = self._paths(self._run_step(
                results, 'plot_na_pareto', lambda: self.missing_plotter.plot_na_pareto(df)))
            plots['missing_pareto'] += self._paths(self._run_step(
                results, 'plot_na_intersect', lambda: self.missing_plotter.plot_na_intersect(df)))
            plots['missing_pareto'] += self._paths(self._run_step(
                results, 'plot_na_hclust', lambda: self.missing_plotter.plot_na_hclust(df)))
        else:
            logger.info("No missing values; skipping missing value charts")

        plots['outlier'] = self._paths(self._run_step(
            results, 'plot_outlier', lambda: self.diagnoser.plot_outlier(df)))
        plots['normality'] = self._paths(self._run_step(
            results, 'plot_normality', lambda: self.analyzer.plot_normality(df)))
        plots['correlation'] = self._paths(self._run_step(
            results, 'plot_correlate', lambda: self.analyzer.plot_correlate(df)))
        plots['category'] = self._paths(self._run_step(
            results, 'plot_category_bars', lambda: self.analyzer.plot_category_bars(df)))

        n_plots = sum(len(p) for p in plots.values())
        logger.info(f"Collected {len(tables)} tables and {n_plots} plots "
                    f"({len(results['errors'])} sections failed)")
        return results

    @staticmethod
    def _paths(value) -> List[Path]:
        if value is None:
            return []
        if isinstance(value, list):
            return value
        return [value]

    def generate_text_report(self, results: Dict[str, Any]) -> str:
        """
        Plain-text summary of the collected results.

        Args:
            results: Output of collect()

        Returns:
            Formatted report string
        """
        tables = results['tables']
        n_rows, n_cols = results['data_shape']

        report_lines = [
            "=" * 70,
            "DATA DIAGNOSIS REPORT",
            "=" * 70,
            "",
            "DATASET OVERVIEW",
            "-" * 40,
            f"  Source:               {results['source']}",
            f"  Rows:                 {n_rows:,}",
            f"  Columns:              {n_cols:,}",
        ]

        overview = tables.get('overview')
        if overview is not None:
            with_missing = overview[overview['missing_count'] > 0]
            report_lines.extend([
                f"  Vars with missing:    {len(with_missing)}",
                f"  Missing cells:        {int(overview['missing_count'].sum()):,}",
            ])
        report_lines.append("")

        pareto = tables.get('missing_pareto')
        if pareto is not None:
            report_lines.extend(["MISSING VALUES", "-" * 40])
            for _, row in pareto[pareto['ratio'] > 0].iterrows():
                report_lines.append(
                    f"  {str(row['variable'])[:25]:<25} {int(row['frequency']):>8,} "
                    f"({row['ratio'] * 100:5.1f}%)  {row['grade']}"
                )
            report_lines.append("")

        outliers = tables.get('outlier')
        if outliers is not None and not outliers.empty:
            flagged = outliers[outliers['outliers_cnt'] > 0]
            report_lines.extend(["OUTLIERS", "-" * 40])
            if flagged.empty:
                report_lines.append("  No outliers detected")
            for _, row in flagged.iterrows():
                report_lines.append(
                    f"  {str(row['variables'])[:25]:<25} {int(row['outliers_cnt']):>8,} "
                    f"({row['outliers_ratio']:5.1f}%)  mean {row['with_mean']:,.2f} -> "
                    f"{row['without_mean']:,.2f}"
                )
            report_lines.append("")

        category = tables.get('category')
        if category is not None and not category.empty:
            report_lines.extend(["CATEGORICAL VARIABLES", "-" * 40])
            for variable, levels in category.groupby('variables', sort=False):
                top_level = levels.iloc[0]
                report_lines.append(
                    f"  {str(variable)[:25]:<25} top level '{top_level['levels']}' "
                    f"({top_level['ratio']:.1f}%)"
                )
            report_lines.append("")

        normality = tables.get('normality')
        if normality is not None and not normality.empty:
            non_normal = normality[normality['p_value'] < SIGNIFICANCE]
            report_lines.extend([
                "NORMALITY",
                "-" * 40,
                f"  Non-normal at p < {SIGNIFICANCE}: {len(non_normal)} of {len(normality)}",
            ])
            for _, row in non_normal.iterrows():
                report_lines.append(f"    {row['variable']}: W={row['statistic']:.3f}, "
                                    f"p={row['p_value']:.2e}")
            report_lines.append("")

        correlation = tables.get('correlation')
        if correlation is not None and not correlation.empty:
            strong = correlation[(correlation['coef_corr'].abs() >= STRONG_CORRELATION)
                                 & (correlation['var1'].astype(str) < correlation['var2'].astype(str))]
            report_lines.extend(["STRONG CORRELATIONS", "-" * 40])
            if strong.empty:
                report_lines.append(f"  None with |r| >= {STRONG_CORRELATION}")
            for _, row in strong.iterrows():
                report_lines.append(f"  {row['var1']} ~ {row['var2']}: {row['coef_corr']:.3f}")
            report_lines.append("")

        if results['errors']:
            report_lines.extend(["SECTIONS NOT GENERATED", "-" * 40])
            for name, message in results['errors'].items():
                report_lines.append(f"  {name}: {message}")
            report_lines.append("")

        report_lines.extend([
            "=" * 70,
            f"Report generated on: {results['generated_at']}",
            "=" * 70,
        ])

        logger.info("Generated text report")
        return "\n".join(report_lines)

    def save_text_report(self, results: Dict[str, Any], filename: str = None) -> Path:
        """Write the plain-text report and return its path."""
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"diagnosis_report_{timestamp}.txt"

        filepath = self.report_dir / filename
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(self.generate_text_report(results))

        logger.info(f"Saved text report to: {filepath}")
        return filepath

    @staticmethod
    def _embed_image(path: Path) -> str:
        encoded = base64.b64encode(Path(path).read_bytes()).decode('ascii')
        return f'<img src="data:image/png;base64,{encoded}" alt="{html.escape(Path(path).stem)}">'

    @staticmethod
    def _table_html(table: pd.DataFrame) -> str:
        return table.to_html(index=False, float_format=lambda v: f"{v:,.4g}", na_rep='NA',
                             border=0)

    def render_html(self, results: Dict[str, Any], title: str = "Data Diagnosis Report") -> str:
        n_rows, n_cols = results['data_shape']
        parts = [
            "<!DOCTYPE html>",
            "<html><head><meta charset='utf-8'>",
            f"<title>{html.escape(title)}</title>",
            f"<style>{HTML_STYLE}</style></head><body>",
            f"<h1>{html.escape(title)}</h1>",
            f"<p class='meta'>Source: {html.escape(str(results['source']))} &middot; "
            f"{n_rows:,} rows &middot; {n_cols:,} columns &middot; "
            f"generated {results['generated_at']}</p>",
        ]

        for key, section_title in SECTION_TITLES.items():
            table = results['tables'].get(key)
            paths = results['plots'].get(key, [])
            if table is None and not paths:
                continue
            parts.append(f"<h2>{html.escape(section_title)}</h2>")
            if table is not None:
                parts.append(self._table_html(table))
            for path in paths:
                parts.append(self._embed_image(path))

        if results['errors']:
            parts.append("<h2>Sections not generated</h2><ul>")
            for name, message in results['errors'].items():
                parts.append(f"<li class='error'>{html.escape(name)}: {html.escape(message)}</li>")
            parts.append("</ul>")

        parts.append("</body></html>")
        return "\n".join(parts)

    def save_html_report(self, results: Dict[str, Any], filename: str = None,
                         title: str = "Data Diagnosis Report") -> Path:
        """Write the self-contained HTML report and return its path."""
        if filename is None:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            filename = f"diagnosis_report_{timestamp}.html"

        filepath = self.report_dir / filename
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(self.render_html(results, title=title))

        logger.info(f"Saved HTML report to: {filepath}")
        return filepath

    def build_report(self, source, output: str = 'html', title: str = "Data Diagnosis Report",
                     filename: str = None) -> Path:
        """
        Collect results for ``source`` and write one report.

        Args:
            source: DataFrame, file path or DatabaseTable
            output: 'html' or 'text'
            title: HTML page title
            filename: Optional file name inside the report directory

        Returns:
            Path to the written report
        """
        if output not in ('html', 'text'):
            raise ValueError(f"Unknown report output '{output}'. Expected 'html' or 'text'")

        results = self.collect(source)
        if output == 'text':
            return self.save_text_report(results, filename)
        return self.save_html_report(results, filename, title=title)
