"""
Unit tests for data loading, source dispatch and database tables.
"""

import pytest
import pandas as pd
import numpy as np
import sys
from pathlib import Path

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import create_engine

from src.data.data_loader import DataLoader, resolve_source, to_frame, select_columns
from src.data.sources import DatabaseTable


@pytest.fixture
def sample_df():
    """Small mixed-type frame with missing values."""
    return pd.DataFrame({
        'age': [34.0, np.nan, 29.0, 41.0, np.nan, 29.0],
        'city': ['Lyon', 'Paris', None, 'Paris', 'Nice', 'Paris'],
        'score': [1, 2, 3, 4, 5, 6],
    })


@pytest.fixture
def db_table(sample_df, tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'people.db'}")
    sample_df.to_sql('people', engine, index=False)
    return DatabaseTable(engine, 'people')


class TestDataLoader:
    def test_load_data_file_not_found(self):
        loader = DataLoader()
        with pytest.raises(FileNotFoundError):
            loader.load_data(Path("nonexistent_file.csv"))

    def test_load_csv(self, sample_df, tmp_path):
        path = tmp_path / "people.csv"
        sample_df.to_csv(path, index=False)
        df = DataLoader().load_data(path)
        assert df.shape == sample_df.shape
        assert int(df['age'].isna().sum()) == 2

    def test_load_tsv(self, sample_df, tmp_path):
        path = tmp_path / "people.tsv"
        sample_df.to_csv(path, index=False, sep='\t')
        df = DataLoader().load_data(path)
        assert list(df.columns) == ['age', 'city', 'score']

    def test_load_latin1_fallback(self, tmp_path):
        path = tmp_path / "cities.csv"
        path.write_bytes("city,n\nZürich,1\nGenève,2\n".encode('latin-1'))
        df = DataLoader().load_data(path)
        assert df.loc[0, 'city'] == 'Zürich'

    def test_unsupported_suffix(self, tmp_path):
        path = tmp_path / "data.parquet"
        path.write_bytes(b"")
        with pytest.raises(ValueError, match="Unsupported file type"):
            DataLoader().load_data(path)

    def test_inspect_data(self, sample_df):
        result = DataLoader().inspect_data(sample_df)
        assert result['shape'] == sample_df.shape
        assert result['missing_values']['age'] == 2
        assert result['duplicates'] == 0


class TestSourceDispatch:
    def test_dataframe_passes_through(self, sample_df):
        assert resolve_source(sample_df) is sample_df

    def test_path_is_loaded(self, sample_df, tmp_path):
        path = tmp_path / "people.csv"
        sample_df.to_csv(path, index=False)
        assert resolve_source(str(path)).shape == sample_df.shape

    def test_unsupported_source(self):
        with pytest.raises(TypeError):
            resolve_source(42)

    def test_database_table_passes_through(self, db_table):
        assert resolve_source(db_table) is db_table

    def test_to_frame_collects_database_table(self, db_table, sample_df):
        df = to_frame(db_table)
        assert df.shape == sample_df.shape

    def test_select_columns(self, sample_df):
        assert list(select_columns(sample_df, 'age').columns) == ['age']
        assert select_columns(sample_df, None) is sample_df

    def test_select_unknown_columns(self, sample_df):
        with pytest.raises(ValueError, match="Unknown columns"):
            select_columns(sample_df, ['age', 'height'])


class TestDatabaseTable:
    def test_columns(self, db_table):
        assert db_table.column_names() == ['age', 'city', 'score']
        assert db_table.column_types() == {
            'age': 'numeric', 'city': 'character', 'score': 'integer'
        }

    def test_row_count(self, db_table):
        assert db_table.row_count() == 6

    def test_missing_counts(self, db_table):
        assert db_table.missing_counts() == {'age': 2, 'city': 1, 'score': 0}

    def test_unique_counts_ignore_null(self, db_table):
        counts = db_table.unique_counts()
        assert counts['age'] == 3
        assert counts['city'] == 3
        assert counts['score'] == 6

    def test_collect_limit(self, db_table):
        df = db_table.collect(limit=2, columns=['score'])
        assert df.shape == (2, 1)

    def test_schema_name(self, db_table):
        assert db_table.name == 'people'
        assert DatabaseTable(db_table.engine, 'people', schema='main').name == 'main.people'

    def test_describe_source(self, db_table):
        info = db_table.describe_source()
        assert info['dialect'] == 'sqlite'
        assert info['columns'] == ['age', 'city', 'score']
        assert set(info['types']) == {'age', 'city', 'score'}
        assert info['types']['score'] == 'bigint'
