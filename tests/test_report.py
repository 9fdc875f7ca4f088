"""
Unit tests for report assembly.
"""

import pytest
import pandas as pd
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import create_engine

from src.data.sources import DatabaseTable
from src.report.report import ReportGenerator


@pytest.fixture
def sample_df():
    """Seeded frame with outliers, categories and overlapping missing values."""
    np.random.seed(42)
    n = 120
    df = pd.DataFrame({
        'price': np.append(np.random.normal(100, 10, n - 2), [400, 500]),
        'quantity': np.random.randint(1, 20, n).astype(float),
        'discount': np.random.uniform(0, 0.3, n),
        'region': np.random.choice(['north', 'south', 'east'], n),
    })
    df.loc[:9, 'quantity'] = np.nan
    df.loc[5:14, 'discount'] = np.nan
    df.loc[20:22, 'region'] = None
    return df


@pytest.fixture
def generator(tmp_path):
    return ReportGenerator(report_dir=tmp_path / 'reports', plot_dir=tmp_path / 'plots')


class TestCollect:
    def test_tables_and_plots(self, generator, sample_df):
        results = generator.collect(sample_df)
        assert results['errors'] == {}
        assert results['data_shape'] == sample_df.shape
        assert set(results['tables']) == {
            'overview', 'numeric', 'category', 'outlier', 'describe',
            'normality', 'correlation', 'missing_pareto'
        }
        assert len(results['plots']['missing_pareto']) == 3
        assert len(results['plots']['outlier']) >= 1
        assert all(p.exists() for paths in results['plots'].values() for p in paths)

    def test_complete_data_skips_missing_section(self, generator, sample_df):
        results = generator.collect(sample_df.dropna())
        assert 'missing_pareto' not in results['tables']
        assert 'missing_pareto' not in results['plots']

    def test_failing_section_is_recorded(self, generator, sample_df, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr(generator.diagnoser, 'diagnose_numeric', broken)
        results = generator.collect(sample_df)
        assert results['errors'] == {'numeric': 'boom'}
        assert 'numeric' not in results['tables']
        assert 'overview' in results['tables']

    def test_database_source(self, generator, sample_df, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'sales.db'}")
        sample_df.to_sql('sales', engine, index=False)
        results = generator.collect(DatabaseTable(engine, 'sales'))
        assert results['source'] == 'sales'
        overview = results['tables']['overview'].set_index('variables')
        assert overview.loc['quantity', 'missing_count'] == 10


class TestReports:
    def test_text_report(self, generator, sample_df):
        text = generator.generate_text_report(generator.collect(sample_df))
        assert "DATA DIAGNOSIS REPORT" in text
        assert "MISSING VALUES" in text
        assert "OUTLIERS" in text
        assert "price" in text

    def test_build_text_report(self, generator, sample_df):
        path = generator.build_report(sample_df, output='text', filename='summary.txt')
        assert path == generator.report_dir / 'summary.txt'
        assert "DATASET OVERVIEW" in path.read_text(encoding='utf-8')

    def test_build_html_report(self, generator, sample_df):
        path = generator.build_report(sample_df, title="Sales <2024>")
        content = path.read_text(encoding='utf-8')
        assert content.startswith("<!DOCTYPE html>")
        assert "Sales &lt;2024&gt;" in content
        assert "data:image/png;base64," in content
        assert "Missing values" in content

    def test_unknown_output(self, generator, sample_df):
        with pytest.raises(ValueError):
            generator.build_report(sample_df, output='pdf')
