"""
Config Package Initialization.
"""

from .config import (
    PROJECT_ROOT,
    DATA_DIR,
    RAW_DATA_DIR,
    OUTPUTS_DIR,
    PLOTS_DIR,
    LOGS_DIR,
    REPORTS_DIR,
    diagnose_config,
    missing_config,
    viz_config,
    logging_config,
    DiagnoseConfig,
    MissingConfig,
    VisualizationConfig,
    LoggingConfig
)

__all__ = [
    'PROJECT_ROOT',
    'DATA_DIR',
    'RAW_DATA_DIR',
    'OUTPUTS_DIR',
    'PLOTS_DIR',
    'LOGS_DIR',
    'REPORTS_DIR',
    'diagnose_config',
    'missing_config',
    'viz_config',
    'logging_config',
    'DiagnoseConfig',
    'MissingConfig',
    'VisualizationConfig',
    'LoggingConfig'
]
