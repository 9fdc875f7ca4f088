"""
Unit tests for missing value and outlier imputation.
"""

import pytest
import pandas as pd
import numpy as np
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from src.data.imputation import Imputer


@pytest.fixture
def sample_df():
    return pd.DataFrame({
        'x': [1.0, 2.0, np.nan, 3.0, 10.0],
        'y': [1.0, 2.0, 2.5, 3.0, 10.0],
        'city': ['a', 'a', None, 'b', 'a'],
    })


@pytest.fixture
def outlier_df():
    return pd.DataFrame({'v': list(range(1, 20)) + [1000]})


class TestImputeNA:
    def test_mean(self, sample_df):
        result = Imputer().impute_na(sample_df, 'x', 'mean')
        assert result.iloc[2] == pytest.approx(4.0)
        assert result.notna().all()

    def test_median(self, sample_df):
        result = Imputer().impute_na(sample_df, 'x', 'median')
        assert result.iloc[2] == pytest.approx(2.5)

    def test_mode_categorical(self, sample_df):
        result = Imputer().impute_na(sample_df, 'city', 'mode')
        assert result.iloc[2] == 'a'

    def test_knn(self, sample_df):
        result = Imputer().impute_na(sample_df, 'x', 'knn')
        assert result.notna().all()
        assert 1.0 <= result.iloc[2] <= 10.0

    def test_input_not_modified(self, sample_df):
        Imputer().impute_na(sample_df, 'x', 'mean')
        assert sample_df['x'].isna().sum() == 1

    def test_categorical_needs_mode(self, sample_df):
        with pytest.raises(ValueError, match="only 'mode'"):
            Imputer().impute_na(sample_df, 'city', 'mean')

    def test_unknown_method(self, sample_df):
        with pytest.raises(ValueError):
            Imputer().impute_na(sample_df, 'x', 'rpart')

    def test_unknown_column(self, sample_df):
        with pytest.raises(ValueError):
            Imputer().impute_na(sample_df, 'z', 'mean')

    def test_all_missing(self):
        df = pd.DataFrame({'x': [np.nan, np.nan], 'y': [1.0, 2.0]})
        with pytest.raises(ValueError, match="no observed values"):
            Imputer().impute_na(df, 'x', 'mean')

    def test_nothing_to_impute(self, sample_df):
        imputer = Imputer()
        result = imputer.impute_na(sample_df, 'y', 'mean')
        assert result.equals(sample_df['y'])
        assert imputer.get_imputation_report()['y']['imputed'] == 0


class TestImputeOutlier:
    def test_capping(self, outlier_df):
        result = Imputer().impute_outlier(outlier_df, 'v', 'capping')
        assert result.iloc[-1] == pytest.approx(outlier_df['v'].quantile(0.95))
        assert result.iloc[:-1].tolist() == outlier_df['v'].iloc[:-1].astype(float).tolist()

    def test_median(self, outlier_df):
        result = Imputer().impute_outlier(outlier_df, 'v', 'median')
        assert result.iloc[-1] == pytest.approx(10.0)

    def test_mean(self, outlier_df):
        result = Imputer().impute_outlier(outlier_df, 'v', 'mean')
        assert result.iloc[-1] == pytest.approx(10.0)

    def test_no_outliers(self):
        df = pd.DataFrame({'v': [1, 2, 3, 4]})
        imputer = Imputer()
        result = imputer.impute_outlier(df, 'v', 'capping')
        assert result.tolist() == [1.0, 2.0, 3.0, 4.0]
        assert imputer.get_imputation_report()['v']['imputed'] == 0

    def test_not_numeric(self, sample_df):
        with pytest.raises(ValueError, match="not numeric"):
            Imputer().impute_outlier(sample_df, 'city')

    def test_unknown_method(self, outlier_df):
        with pytest.raises(ValueError):
            Imputer().impute_outlier(outlier_df, 'v', 'drop')

    def test_report(self, outlier_df):
        imputer = Imputer()
        imputer.impute_outlier(outlier_df, 'v', 'capping')
        assert imputer.get_imputation_report() == {'v': {'method': 'capping', 'imputed': 1}}
