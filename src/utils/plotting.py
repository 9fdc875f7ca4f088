# Shared figure handling for the plotting classes.

from pathlib import Path
from typing import Optional
from datetime import datetime

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt
import seaborn as sns

from config.config import viz_config, PLOTS_DIR
from src.utils.logger import get_logger

logger = get_logger(__name__)

plt.style.use(viz_config.style)
sns.set_palette(viz_config.color_palette)


class BasePlotter:
    """Owns the output directory and saves/closes figures for subclasses."""

    def __init__(self, save_plots: bool = True, plot_dir: Optional[Path] = None):
        """
        Args:
            save_plots: Whether to save plots to disk
            plot_dir: Directory for saving plots
        """
        self.save_plots = save_plots
        self.plot_dir = Path(plot_dir) if plot_dir is not None else PLOTS_DIR
        if self.save_plots:
            self.plot_dir.mkdir(parents=True, exist_ok=True)
        self.analysis_timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

    def _save_figure(self, fig: plt.Figure, name: str) -> Optional[Path]:
        """
        Save figure to disk with timestamp, then close it.

        Returns:
            Path to saved figure or None when saving is disabled
        """
        if self.save_plots:
            filename = f"{name}_{self.analysis_timestamp}.{viz_config.save_format}"
            filepath = self.plot_dir / filename
            fig.savefig(filepath, dpi=viz_config.save_dpi, bbox_inches='tight',
                        facecolor='white', edgecolor='none')
            logger.info(f"Saved plot: {filepath}")
            plt.close(fig)
            return filepath
        plt.close(fig)
        return None


def safe_name(name: str) -> str:
    # Column names end up in file names
    return "".join(c if c.isalnum() or c in "-_" else "_" for c in str(name))
