# Configuration Management Module for the dataprobe diagnostics toolkit.

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Tuple
from pathlib import Path

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent.absolute()

# Directory paths
DATA_DIR = PROJECT_ROOT / "data"
RAW_DATA_DIR = DATA_DIR / "raw"
OUTPUTS_DIR = PROJECT_ROOT / "outputs"
PLOTS_DIR = OUTPUTS_DIR / "plots"
LOGS_DIR = PROJECT_ROOT / "logs"
REPORTS_DIR = OUTPUTS_DIR / "reports"

# Create directories if they don't exist
for dir_path in [RAW_DATA_DIR, PLOTS_DIR, LOGS_DIR, REPORTS_DIR]:
    dir_path.mkdir(parents=True, exist_ok=True)


@dataclass
class DiagnoseConfig:
    """Statistics and diagnosis parameters."""

    # Tukey fence multiplier for outlier detection
    outlier_coef: float = 1.5

    # Number of levels reported per categorical variable
    top_levels: int = 10

    # Shapiro-Wilk is only defined for 3 <= n <= 5000
    normality_sample_size: int = 5000
    normality_min_size: int = 3
    random_state: int = 42

    # Percentiles reported by describe()
    percentiles: List[float] = field(default_factory=lambda: [
        0.0, 0.01, 0.05, 0.1, 0.2, 0.25, 0.3, 0.4, 0.5,
        0.6, 0.7, 0.75, 0.8, 0.9, 0.95, 0.99, 1.0
    ])

    correlation_method: str = "pearson"

    # Replacement quantiles for capped outliers (lower, upper)
    capping_quantiles: Tuple[float, float] = (0.05, 0.95)

    # Neighbours used by KNN imputation
    knn_neighbors: int = 5

    # Row limit when pulling a database table into memory (None = all rows)
    db_collect_limit: Optional[int] = None


@dataclass
class MissingConfig:
    """Missing value visualization parameters."""

    # Upper bound of the missing ratio for each grade, in ascending order
    grade: Dict[str, float] = field(default_factory=lambda: {
        "Good": 0.05,
        "OK": 0.4,
        "Bad": 0.8,
        "Remove": 1.0,
    })

    grade_colors: List[str] = field(default_factory=lambda: [
        "#1a9641", "#a6d96a", "#fdae61", "#d7191c"
    ])

    pareto_line_color: str = "black"

    # Bars whose ratio falls above the last grade bound
    na_grade_color: str = "#BDBDBD"

    # Label colours of the clustered missing value chart
    col_left: str = "#009E73"
    col_right: str = "#56B4E9"

    # Intersection chart colours
    missing_color: str = "#F8766D"
    complete_color: str = "#00BFC4"


@dataclass
class VisualizationConfig:
    """Visualization configuration parameters."""

    # Plot style
    style: str = "seaborn-v0_8-whitegrid"

    # Figure sizes
    default_figsize: tuple = (10, 6)
    large_figsize: tuple = (14, 8)
    heatmap_figsize: tuple = (12, 10)

    # Color palette
    color_palette: str = "husl"

    # DPI for saved figures
    save_dpi: int = 150

    # Plot format
    save_format: str = "png"


@dataclass
class LoggingConfig:
    """Logging configuration parameters."""

    # Logging level
    level: str = "INFO"

    # Log format
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # Date format
    date_format: str = "%Y-%m-%d %H:%M:%S"

    # Log file name
    log_file: str = "dataprobe.log"


# Create default config instances
diagnose_config = DiagnoseConfig()
missing_config = MissingConfig()
viz_config = VisualizationConfig()
logging_config = LoggingConfig()
