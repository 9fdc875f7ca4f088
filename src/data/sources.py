# Database-backed data sources.

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Dict, List, Any
import sys

import pandas as pd
from sqlalchemy import MetaData, Table, select, func, distinct
from sqlalchemy import types as sqltypes
from sqlalchemy.engine import Engine

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from src.utils.logger import get_logger

logger = get_logger(__name__)


def sql_type_label(sql_type) -> str:
    """Map a reflected SQLAlchemy column type onto the in-memory type labels."""
    if isinstance(sql_type, sqltypes.Boolean):
        return 'logical'
    if isinstance(sql_type, (sqltypes.DateTime, sqltypes.Date, sqltypes.Time)):
        return 'datetime'
    if isinstance(sql_type, sqltypes.Integer):
        return 'integer'
    if isinstance(sql_type, (sqltypes.Numeric, sqltypes.Float)):
        return 'numeric'
    # Enum subclasses String
    if isinstance(sql_type, sqltypes.Enum):
        return 'categorical'
    return 'character'


@dataclass
class DatabaseTable:
    """
    A table living behind a SQLAlchemy engine.

    Overview statistics (row count, missing and distinct counts) are
    aggregated inside the database; everything else is collected into
    pandas with ``collect``.
    """

    engine: Engine
    table: str
    schema: Optional[str] = None
    _reflected: Optional[Table] = field(default=None, init=False, repr=False)

    @property
    def name(self) -> str:
        return f"{self.schema}.{self.table}" if self.schema else self.table

    def _table(self) -> Table:
        if self._reflected is None:
            self._reflected = Table(
                self.table, MetaData(), schema=self.schema, autoload_with=self.engine
            )
        return self._reflected

    def column_names(self) -> List[str]:
        return [col.name for col in self._table().columns]

    def column_types(self) -> Dict[str, str]:
        return {col.name: sql_type_label(col.type) for col in self._table().columns}

    def sql_types(self) -> Dict[str, str]:
        # Raw database type names, e.g. 'bigint' or 'varchar(20)'
        return {col.name: str(col.type).lower() for col in self._table().columns}

    def row_count(self) -> int:
        tbl = self._table()
        with self.engine.connect() as conn:
            return int(conn.execute(select(func.count()).select_from(tbl)).scalar_one())

    def missing_counts(self) -> Dict[str, int]:
        """NULL count per column, in a single query."""
        tbl = self._table()
        cols = list(tbl.columns)
        stmt = select(
            func.count().label("__n__"),
            *[func.count(col).label(col.name) for col in cols]
        ).select_from(tbl)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().one()
        n = int(row["__n__"])
        return {col.name: n - int(row[col.name]) for col in cols}

    def unique_counts(self) -> Dict[str, int]:
        """Distinct non-NULL values per column."""
        tbl = self._table()
        cols = list(tbl.columns)
        stmt = select(
            *[func.count(distinct(col)).label(col.name) for col in cols]
        ).select_from(tbl)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().one()
        return {col.name: int(row[col.name]) for col in cols}

    def collect(self, limit: Optional[int] = None, columns: Optional[List[str]] = None) -> pd.DataFrame:
        """Pull the table (or its first ``limit`` rows) into a DataFrame."""
        tbl = self._table()
        selected = [tbl.c[c] for c in columns] if columns else [tbl]
        stmt = select(*selected)
        if limit is not None:
            stmt = stmt.limit(limit)
        logger.info(f"Collecting table {self.name} into memory (limit={limit})")
        with self.engine.connect() as conn:
            df = pd.read_sql(stmt, conn)
        logger.info(f"Collected {self.name} with shape: {df.shape}")
        return df

    def describe_source(self) -> Dict[str, Any]:
        return {
            "table": self.name,
            "dialect": self.engine.dialect.name,
            "columns": self.column_names(),
            "types": self.sql_types(),
        }
