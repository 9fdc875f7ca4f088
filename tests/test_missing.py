"""
Unit tests for missing value tables and charts.
"""

import pytest
import pandas as pd
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.missing.missing import (
    MissingValuePlotter,
    na_pareto_table,
    na_cluster_matrix,
    na_intersect_table,
    _dendrogram_order,
)

nan = np.nan


@pytest.fixture
def pareto_df():
    """Ten rows: w 90% missing, y 50%, x 20%, z complete."""
    return pd.DataFrame({
        'x': [nan, nan] + list(range(8)),
        'y': [nan] * 5 + list(range(5)),
        'z': list(range(10)),
        'w': [nan] * 9 + [1],
    })


@pytest.fixture
def intersect_df():
    return pd.DataFrame({
        'a': [nan, nan, nan, 1, 1, 1],
        'b': [nan, 1, 1, nan, 1, 1],
        'c': [1, 1, nan, 1, 1, 1],
        'd': [1, 1, 1, 1, 1, 1],
    })


@pytest.fixture
def plotter(tmp_path):
    return MissingValuePlotter(save_plots=True, plot_dir=tmp_path)


class TestParetoTable:
    def test_ordering_and_grades(self, pareto_df):
        info = na_pareto_table(pareto_df)
        assert info['variable'].tolist() == ['w', 'y', 'x', 'z']
        assert info['frequency'].tolist() == [9, 5, 2, 0]
        assert info['ratio'].tolist() == pytest.approx([0.9, 0.5, 0.2, 0.0])
        assert info['grade'].astype(str).tolist() == ['Remove', 'Bad', 'OK', 'Good']

    def test_cumulative(self, pareto_df):
        info = na_pareto_table(pareto_df)
        assert info['cumulative'].tolist() == pytest.approx([56.25, 87.5, 100.0, 100.0])

    def test_only_na(self, pareto_df):
        info = na_pareto_table(pareto_df, only_na=True)
        assert 'z' not in info['variable'].tolist()
        assert len(info) == 3

    def test_relative(self, pareto_df):
        info = na_pareto_table(pareto_df, relative=True)
        assert info['frequency'].tolist() == pytest.approx([0.9, 0.5, 0.2, 0.0])

    def test_grade_bounds_are_right_closed(self):
        df = pd.DataFrame({'v': [nan] + [1] * 19, 'u': list(range(20))})
        info = na_pareto_table(df).set_index('variable')
        assert str(info.loc['v', 'grade']) == 'Good'

    def test_custom_grade(self, pareto_df):
        info = na_pareto_table(pareto_df, grade={'low': 0.3, 'high': 1.0})
        assert info['grade'].astype(str).tolist() == ['high', 'high', 'low', 'low']

    def test_grade_must_increase(self, pareto_df):
        with pytest.raises(ValueError):
            na_pareto_table(pareto_df, grade={'a': 0.5, 'b': 0.2})

    def test_no_missing(self):
        with pytest.raises(ValueError, match="no missing value"):
            na_pareto_table(pd.DataFrame({'a': [1, 2]}))


class TestDendrogramOrder:
    def test_lighter_branch_first(self):
        data = np.array([[0.0], [0.1], [10.0]])
        assert _dendrogram_order(data, np.array([5.0, 4.0, 1.0])) == [2, 1, 0]

    def test_heavier_leaf_last(self):
        data = np.array([[0.0], [0.1], [10.0]])
        order = _dendrogram_order(data, np.array([1.0, 2.0, 10.0]))
        assert order == [0, 1, 2]

    def test_tie_keeps_left_branch(self):
        data = np.array([[0.0], [0.1], [10.0]])
        assert _dendrogram_order(data, np.array([1.0, 1.0, 5.0])) == [0, 1, 2]


class TestClusterMatrix:
    def test_shape_and_counts(self, intersect_df):
        result = na_cluster_matrix(intersect_df)
        # rows 0-3 are incomplete; d has no missing values
        assert result.matrix.shape == (4, 3)
        assert set(result.matrix.columns) == {'a', 'b', 'c'}
        assert result.matrix.index.tolist() == [1, 2, 3, 4]
        assert result.n_obs == 6
        assert dict(result.na_count) == {'a': 3, 'b': 2, 'c': 1}
        assert result.na_percent['a'] == '50%'
        assert result.na_percent['c'] == '16.7%'

    def test_columns_ordered_by_weight(self, intersect_df):
        result = na_cluster_matrix(intersect_df)
        assert list(result.matrix.columns).index('c') < list(result.matrix.columns).index('a')

    def test_row_order_is_reversed(self):
        # Incomplete rows miss 1, 2 and 4 values; the last row is complete
        df = pd.DataFrame({
            'w0': [nan, nan, nan, 1],
            'w1': [1, nan, nan, 1],
            'w2': [1, 1, nan, 1],
            'w3': [1, 1, nan, 1],
        })
        result = na_cluster_matrix(df)
        # Dendrogram order is lightest first, so the displayed rows run heaviest first
        assert result.matrix.sum(axis=1).tolist() == [4, 2, 1]
        assert result.matrix.index.tolist() == [1, 2, 3]

    def test_too_small(self):
        df = pd.DataFrame({'a': [nan, 1, 2], 'b': [1, 2, 3]})
        with pytest.raises(ValueError, match="at least 2 rows and 2 columns"):
            na_cluster_matrix(df)


class TestIntersectTable:
    def test_counts(self, intersect_df):
        result = na_intersect_table(intersect_df)
        assert result.marginal_vars['name_var'].tolist() == ['a', 'b', 'c']
        assert result.marginal_vars['n_var'].tolist() == [3, 2, 1]
        assert result.marginal_vars['Var1'].tolist() == [1, 2, 3]
        assert result.variables == ['a', 'b', 'c']
        assert len(result.combinations) == 4
        assert (result.combinations['n'] == 1).all()
        assert result.n_missing_vars == 3
        assert result.n_missing_obs == 4
        assert result.n_complete_obs == 2

    def test_complete_rows_included(self, intersect_df):
        result = na_intersect_table(intersect_df, only_na=False)
        top = result.combinations.iloc[0]
        assert top['n'] == 2
        assert not top[['a', 'b', 'c']].any()
        assert result.n_missing_obs == 4

    def test_n_vars(self, intersect_df):
        result = na_intersect_table(intersect_df, n_vars=2)
        assert result.variables == ['a', 'b']
        assert result.combinations['n'].tolist() == [2, 1, 1]
        assert result.n_missing_vars == 3

    def test_n_intersects_drops_unused_variables(self, intersect_df):
        result = na_intersect_table(intersect_df, n_vars=2, n_intersects=1)
        assert result.variables == ['a']
        assert result.combinations['n'].tolist() == [2]
        assert result.marginal_vars['name_var'].tolist() == ['a']

    def test_single_variable(self):
        df = pd.DataFrame({'a': [nan, 1, 2], 'b': [1, 2, 3]})
        with pytest.raises(ValueError, match="2 or more"):
            na_intersect_table(df)

    def test_no_missing(self):
        with pytest.raises(ValueError, match="no missing value"):
            na_intersect_table(pd.DataFrame({'a': [1, 2], 'b': [3, 4]}))


class TestMissingValuePlotter:
    def test_pareto_table_without_plot(self, plotter, pareto_df):
        info = plotter.plot_na_pareto(pareto_df, plot=False)
        assert isinstance(info, pd.DataFrame)
        assert not any(plotter.plot_dir.iterdir())

    def test_pareto_chart(self, plotter, pareto_df):
        path = plotter.plot_na_pareto(pareto_df, only_na=True, relative=True)
        assert path.exists()
        assert path.name.startswith('na_pareto_')

    def test_pareto_chart_ratio_above_last_grade(self, plotter):
        df = pd.DataFrame({'a': [nan] * 9 + [1], 'b': list(range(10))})
        grade = {'low': 0.1, 'mid': 0.3}
        info = plotter.plot_na_pareto(df, grade=grade, plot=False)
        assert pd.isna(info.set_index('variable').loc['a', 'grade'])

        path = plotter.plot_na_pareto(df, grade=grade)
        assert path.exists()

    def test_hclust_chart(self, plotter, intersect_df):
        path = plotter.plot_na_hclust(intersect_df)
        assert path.exists()

    def test_intersect_chart(self, plotter, intersect_df):
        path = plotter.plot_na_intersect(intersect_df, only_na=False)
        assert path.exists()

    def test_intersect_chart_needs_two_variables(self, plotter):
        df = pd.DataFrame({'a': [nan, 1, 2], 'b': [1, 2, 3]})
        with pytest.raises(ValueError):
            plotter.plot_na_intersect(df)
