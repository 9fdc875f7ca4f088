"""Missing value diagnosis and visualization module."""

from .missing import (
    MissingValuePlotter,
    NAClusterResult,
    NAIntersectResult,
    na_pareto_table,
    na_cluster_matrix,
    na_intersect_table
)

__all__ = [
    'MissingValuePlotter',
    'NAClusterResult',
    'NAIntersectResult',
    'na_pareto_table',
    'na_cluster_matrix',
    'na_intersect_table'
]
