"""
dataprobe - Command Line Entry Point.

Profiles a tabular dataset: variable diagnosis, descriptive statistics,
missing value structure and outliers, optionally written out as a report.

Usage:
    python main.py --data data.csv                       # Run every step
    python main.py --data data.csv --step diagnose       # Diagnosis tables only
    python main.py --data data.csv --step missing        # Missing value charts
    python main.py --data data.csv --step report --output text
    python main.py --db-url sqlite:///shop.db --table orders --step diagnose
"""

import argparse
import sys
import warnings
from pathlib import Path
from datetime import datetime
from typing import Dict, Any

import pandas as pd

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.absolute()
sys.path.insert(0, str(PROJECT_ROOT))

from config.config import PLOTS_DIR, REPORTS_DIR
from src.data.data_loader import DataLoader, resolve_source, to_frame
from src.data.sources import DatabaseTable
from src.utils.logger import get_logger

warnings.filterwarnings('ignore')

logger = get_logger(__name__)


def _print_table(title: str, table: pd.DataFrame) -> None:
    print(f"\n{title}")
    print("-" * len(title))
    if table is None or table.empty:
        print("  (nothing to report)")
    else:
        print(table.to_string(index=False))


def step_diagnose(source) -> Dict[str, Any]:
    """
    Variable overview, numeric, categorical and outlier diagnosis.

    Args:
        source: DataFrame, file path or DatabaseTable

    Returns:
        Dictionary of diagnosis tables
    """
    from src.diagnose.diagnoser import DataDiagnoser

    logger.info("=" * 70)
    logger.info("STEP: DATA DIAGNOSIS")
    logger.info("=" * 70)

    diagnoser = DataDiagnoser(save_plots=True)
    overview = diagnoser.diagnose(source)
    df = to_frame(source)

    results = {
        'overview': overview,
        'numeric': diagnoser.diagnose_numeric(df),
        'category': diagnoser.diagnose_category(df),
        'outlier': diagnoser.diagnose_outlier(df),
        'outlier_plots': diagnoser.plot_outlier(df),
    }

    _print_table("Variable overview", results['overview'])
    _print_table("Numeric variables", results['numeric'])
    _print_table("Categorical variables", results['category'])
    _print_table("Outliers", results['outlier'])
    return results


def step_eda(source) -> Dict[str, Any]:
    """Descriptive statistics, normality, correlation and their charts."""
    from src.eda.eda import ExploratoryDataAnalyzer

    logger.info("=" * 70)
    logger.info("STEP: EXPLORATORY DATA ANALYSIS")
    logger.info("=" * 70)

    eda = ExploratoryDataAnalyzer(save_plots=True)
    results = eda.run_full_eda(to_frame(source))

    _print_table("Descriptive statistics", results['statistics']['describe'])
    _print_table("Normality (Shapiro-Wilk)", results['statistics']['normality'])
    print(f"\nGenerated {len(results['plots'])} plots in {PLOTS_DIR}")
    return results


def step_missing(source) -> Dict[str, Any]:
    """Missing value pareto table and the three missing value charts."""
    from src.missing.missing import MissingValuePlotter

    logger.info("=" * 70)
    logger.info("STEP: MISSING VALUES")
    logger.info("=" * 70)

    df = to_frame(source)
    if not df.isna().to_numpy().any():
        print("\nData have no missing value.")
        return {}

    plotter = MissingValuePlotter(save_plots=True)
    results = {'pareto': plotter.plot_na_pareto(df, plot=False), 'plots': []}
    _print_table("Missing values", results['pareto'])

    for name, plot_fn in [('pareto', plotter.plot_na_pareto),
                          ('intersect', plotter.plot_na_intersect),
                          ('hclust', plotter.plot_na_hclust)]:
        try:
            path = plot_fn(df)
            if path:
                results['plots'].append(path)
        except ValueError as e:
            logger.warning(f"Skipping {name} chart: {e}")
            print(f"  Skipping {name} chart: {e}")

    print(f"\nGenerated {len(results['plots'])} plots in {PLOTS_DIR}")
    return results


def step_report(source, output: str = 'html') -> Path:
    """Write a full diagnosis report."""
    from src.report.report import ReportGenerator

    logger.info("=" * 70)
    logger.info("STEP: REPORT")
    logger.info("=" * 70)

    path = ReportGenerator().build_report(source, output=output)
    print(f"\nReport written to: {path}")
    return path


def build_source(args):
    """Turn command-line arguments into a data source."""
    if args.db_url:
        if not args.table:
            raise ValueError("--table is required together with --db-url")
        from sqlalchemy import create_engine
        return DatabaseTable(create_engine(args.db_url), args.table, schema=args.schema)
    if args.data:
        loader = DataLoader()
        df = loader.load_data(Path(args.data))
        loader.inspect_data(df)
        return df
    raise ValueError("Either --data or --db-url/--table must be given")


def main():
    """Main entry point with command-line interface."""
    parser = argparse.ArgumentParser(
        description="Exploratory data analysis and data quality diagnosis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py --data path/to/data.csv
    python main.py --data path/to/data.csv --step missing
    python main.py --db-url postgresql://user@host/db --table sales --step diagnose
        """
    )

    parser.add_argument('--data', '-d', type=str, default=None,
                        help='Path to a CSV/TSV dataset')
    parser.add_argument('--db-url', type=str, default=None,
                        help='SQLAlchemy database URL')
    parser.add_argument('--table', type=str, default=None,
                        help='Table name when reading from a database')
    parser.add_argument('--schema', type=str, default=None,
                        help='Optional database schema')
    parser.add_argument('--step', type=str,
                        choices=['diagnose', 'eda', 'missing', 'report', 'all'],
                        default='all', help='Run a specific step only')
    parser.add_argument('--output', type=str, choices=['html', 'text'], default='html',
                        help='Report format')

    args = parser.parse_args()

    started = datetime.now()
    logger.info(f"Started: {started.strftime('%Y-%m-%d %H:%M:%S')}")

    try:
        source = resolve_source(build_source(args))
    except (FileNotFoundError, ValueError) as e:
        logger.error(str(e))
        parser.error(str(e))

    if args.step in ('diagnose', 'all'):
        step_diagnose(source)
    if args.step in ('eda', 'all'):
        step_eda(source)
    if args.step in ('missing', 'all'):
        step_missing(source)
    if args.step in ('report', 'all'):
        step_report(source, output=args.output)

    logger.info(f"Completed in {(datetime.now() - started).total_seconds():.1f}s. "
                f"Outputs: plots in {PLOTS_DIR}, reports in {REPORTS_DIR}")


if __name__ == "__main__":
    main()
