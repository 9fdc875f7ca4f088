# Data Loading and Source Dispatch Module.
import pandas as pd
from pathlib import Path
from typing import Optional, Dict, Any, Union
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config.config import diagnose_config
from src.data.sources import DatabaseTable
from src.utils.logger import get_logger

logger = get_logger(__name__)

SUPPORTED_SUFFIXES = {'.csv': ',', '.tsv': '\t', '.txt': None}

DataSource = Union[pd.DataFrame, DatabaseTable, str, Path]


class DataLoader:
    """
    Data loading and initial inspection class.

    Reads delimited text files into DataFrames and gives a first
    look at shape, types, missing values and duplicates.
    """

    def __init__(self, config=diagnose_config):
        self.config = config
        logger.info("DataLoader initialized")

    def load_data(self, file_path: Union[str, Path]) -> pd.DataFrame:
        file_path = Path(file_path)
        logger.info(f"Loading dataset from: {file_path}")

        if not file_path.exists():
            error_msg = f"Dataset not found at {file_path}"
            logger.error(error_msg)
            raise FileNotFoundError(error_msg)

        suffix = file_path.suffix.lower()
        if suffix not in SUPPORTED_SUFFIXES:
            error_msg = (f"Unsupported file type '{suffix}'. "
                         f"Expected one of {sorted(SUPPORTED_SUFFIXES)}")
            logger.error(error_msg)
            raise ValueError(error_msg)

        sep = SUPPORTED_SUFFIXES[suffix]
        read_kwargs = {'sep': sep} if sep else {'sep': None, 'engine': 'python'}

        try:
            df = pd.read_csv(file_path, encoding='utf-8', **read_kwargs)
        except UnicodeDecodeError:
            logger.warning("UTF-8 decoding failed, trying latin-1 encoding")
            df = pd.read_csv(file_path, encoding='latin-1', **read_kwargs)

        logger.info(f"Successfully loaded dataset with shape: {df.shape}")
        return df

    def inspect_data(self, df: pd.DataFrame) -> Dict[str, Any]:
        # Initial inspection: shape, types, missingness, duplicates, memory.

        logger.info("Performing data inspection...")

        n_rows = len(df)
        inspection_result = {
            "shape": df.shape,
            "columns": list(df.columns),
            "dtypes": df.dtypes.astype(str).to_dict(),
            "missing_values": df.isnull().sum().to_dict(),
            "missing_percentage": (df.isnull().sum() / n_rows * 100).to_dict() if n_rows else {},
            "duplicates": int(df.duplicated().sum()),
            "memory_usage_mb": df.memory_usage(deep=True).sum() / 1024**2
        }

        logger.info(f"Dataset shape: {inspection_result['shape']}")
        logger.info(f"Duplicate rows: {inspection_result['duplicates']}")
        logger.info(f"Memory usage: {inspection_result['memory_usage_mb']:.2f} MB")

        missing = {k: v for k, v in inspection_result['missing_values'].items() if v > 0}
        if missing:
            logger.warning(f"Columns with missing values: {missing}")

        return inspection_result


def resolve_source(source: DataSource) -> Union[pd.DataFrame, DatabaseTable]:
    """
    Dispatch on the kind of data source.

    DataFrames and database tables pass through unchanged; file paths
    are loaded with DataLoader.
    """
    if isinstance(source, (pd.DataFrame, DatabaseTable)):
        return source
    if isinstance(source, (str, Path)):
        return DataLoader().load_data(source)
    raise TypeError(
        f"Unsupported data source of type {type(source).__name__}; "
        "expected a DataFrame, a file path or a DatabaseTable"
    )


def to_frame(source: DataSource, limit: Optional[int] = None) -> pd.DataFrame:
    # Resolve a source and materialize it as a DataFrame.
    resolved = resolve_source(source)
    if isinstance(resolved, DatabaseTable):
        if limit is None:
            limit = diagnose_config.db_collect_limit
        return resolved.collect(limit=limit)
    return resolved


def select_columns(df: pd.DataFrame, columns=None) -> pd.DataFrame:
    """Restrict to ``columns`` (a name or list of names), validating them."""
    if columns is None:
        return df
    if isinstance(columns, str):
        columns = [columns]
    unknown = [c for c in columns if c not in df.columns]
    if unknown:
        error_msg = f"Unknown columns: {unknown}"
        logger.error(error_msg)
        raise ValueError(error_msg)
    return df[list(columns)]
