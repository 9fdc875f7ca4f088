# Missing Value Diagnosis and Visualization Module.

import pandas as pd
import numpy as np
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, List, Dict, Union
import sys

import matplotlib.pyplot as plt
from matplotlib.colors import ListedColormap
from matplotlib.patches import Patch, Rectangle
from scipy.cluster.hierarchy import linkage, to_tree

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from config.config import missing_config
from src.data.data_loader import to_frame
from src.utils.logger import get_logger
from src.utils.plotting import BasePlotter

logger = get_logger(__name__)

NO_MISSING_MSG = "Data have no missing value."


@dataclass
class NAClusterResult:
    """Clustered missing-value indicator matrix."""
    matrix: pd.DataFrame      # rows = observations (1..nr), columns = variables
    na_count: pd.Series       # NA count per variable, in matrix column order
    na_percent: pd.Series     # label strings such as "12.5%"
    n_obs: int


@dataclass
class NAIntersectResult:
    """Missing value combinations across variables."""
    marginal_vars: pd.DataFrame   # name_var, n_var, Var1
    combinations: pd.DataFrame    # one boolean column per variable + n
    n_missing_vars: int
    n_missing_obs: int
    n_complete_obs: int

    @property
    def variables(self) -> List[str]:
        return [c for c in self.combinations.columns if c != 'n']


def na_pareto_table(
    df: pd.DataFrame,
    only_na: bool = False,
    relative: bool = False,
    grade: Optional[Dict[str, float]] = None
) -> pd.DataFrame:
    """
    Missing value frequency per variable, Pareto ordered.

    Args:
        df: Input DataFrame
        only_na: Keep only variables that contain missing values
        relative: Report frequency as a share of rows
        grade: Ordered mapping of grade name to upper bound of the
            missing ratio; intervals are closed on the right

    Returns:
        DataFrame with variable, frequency, ratio, grade, cumulative
    """
    grade = grade or missing_config.grade
    bounds = list(grade.values())
    if any(b2 <= b1 for b1, b2 in zip(bounds, bounds[1:])):
        raise ValueError("Grade bounds must be strictly increasing")

    counts = df.isna().sum()
    if counts.sum() == 0:
        logger.error(NO_MISSING_MSG)
        raise ValueError(NO_MISSING_MSG)

    n = len(df)
    info = pd.DataFrame({'variable': counts.index, 'frequency': counts.values.astype(int)})
    info = info.sort_values(['frequency', 'variable'], ascending=[False, True],
                            kind='mergesort').reset_index(drop=True)
    info['ratio'] = info['frequency'] / n
    info['grade'] = pd.cut(info['ratio'], bins=[-1] + bounds, labels=list(grade.keys()),
                           right=True)
    info['cumulative'] = info['frequency'].cumsum() / info['frequency'].sum() * 100

    if only_na:
        info = info[info['frequency'] > 0].reset_index(drop=True)

    if relative:
        info['frequency'] = info['frequency'] / n

    logger.info(f"Missing value pareto: {int((info['ratio'] > 0).sum())} of "
                f"{len(counts)} variables contain missing values")
    return info


def _dendrogram_order(data: np.ndarray, weights: np.ndarray) -> List[int]:
    """
    Leaf order of a complete-linkage Euclidean dendrogram, with the two
    branches of every node swapped so that the branch with the smaller
    summed weight comes first.
    """
    root = to_tree(linkage(data, method='complete', metric='euclidean'))

    # Post-order pass: summed weight of every subtree
    sums = {}
    stack = [(root, False)]
    while stack:
        node, expanded = stack.pop()
        if node.is_leaf():
            sums[node.id] = weights[node.id]
        elif expanded:
            sums[node.id] = sums[node.left.id] + sums[node.right.id]
        else:
            stack.extend([(node, True), (node.right, False), (node.left, False)])

    # Pre-order pass emitting leaves, lighter branch first (ties keep left)
    order = []
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf():
            order.append(node.id)
            continue
        first, second = node.left, node.right
        if sums[second.id] < sums[first.id]:
            first, second = second, first
        stack.extend([second, first])
    return order


def na_cluster_matrix(df: pd.DataFrame) -> NAClusterResult:
    """
    Missing value indicators of incomplete rows and columns, with rows
    and columns ordered by hierarchical clustering so that similar
    missingness patterns sit next to each other.
    """
    n_obs = len(df)
    na = df.isna()
    x = na.loc[na.any(axis=1), na.any(axis=0)].astype(float)
    nr, nc = x.shape

    if nr <= 1 or nc <= 1:
        msg = "'x' must have at least 2 rows and 2 columns"
        logger.error(msg)
        raise ValueError(msg)

    logger.info(f"Clustering missing value matrix of {nr} rows x {nc} variables")
    values = x.to_numpy()
    row_order = _dendrogram_order(values, values.mean(axis=1))
    col_order = _dendrogram_order(values.T, values.mean(axis=0))

    if len(row_order) != nr:
        raise ValueError("row dendrogram ordering gave index of wrong length")
    if len(col_order) != nc:
        raise ValueError("column dendrogram ordering gave index of wrong length")

    matrix = x.iloc[row_order[::-1], col_order].astype(int)
    matrix.index = pd.RangeIndex(1, nr + 1)

    na_count = matrix.sum(axis=0)
    na_percent = na_count.map(lambda cnt: f"{round(cnt / n_obs * 100, 1):g}%")

    return NAClusterResult(matrix=matrix, na_count=na_count, na_percent=na_percent,
                           n_obs=n_obs)


def na_intersect_table(
    df: pd.DataFrame,
    only_na: bool = True,
    n_intersects: Optional[int] = None,
    n_vars: Optional[int] = None
) -> NAIntersectResult:
    """
    Frequencies of the combinations of variables that are missing together.

    Args:
        df: Input DataFrame
        only_na: Restrict to rows with at least one missing value
        n_intersects: Keep only the most frequent combinations; variables
            not missing in any kept combination are dropped
        n_vars: Keep only the variables with the most missing values

    Returns:
        NAIntersectResult
    """
    n_total = len(df)
    na = df.isna()

    if not na.to_numpy().any():
        logger.error(NO_MISSING_MSG)
        raise ValueError(NO_MISSING_MSG)

    if only_na:
        na = na[na.any(axis=1)]

    counts = na.sum()
    counts = counts[counts > 0].sort_values(ascending=False, kind='mergesort')
    marginal_vars = pd.DataFrame({
        'name_var': counts.index,
        'n_var': counts.values.astype(int),
        'Var1': np.arange(1, len(counts) + 1),
    })
    n_missing_vars = len(marginal_vars)

    if n_vars is not None:
        marginal_vars = marginal_vars.head(n_vars)

    na_variable = marginal_vars['name_var'].tolist()
    if len(na_variable) < 2:
        msg = "Supported only when the number of variables including missing values is 2 or more."
        logger.error(msg)
        raise ValueError(msg)

    combinations = (
        na[na_variable]
        .groupby(na_variable)
        .size()
        .reset_index(name='n')
        .sort_values('n', ascending=False, kind='mergesort')
        .reset_index(drop=True)
    )

    has_na = combinations[na_variable].any(axis=1)
    n_missing_obs = int(combinations.loc[has_na, 'n'].sum())

    if n_intersects is not None and n_intersects < len(combinations):
        combinations = combinations.head(n_intersects)
        keep = [v for v in na_variable if combinations[v].any()]
        combinations = combinations[keep + ['n']].reset_index(drop=True)
        marginal_vars = marginal_vars[marginal_vars['name_var'].isin(keep)].reset_index(drop=True)
        marginal_vars['Var1'] = np.arange(1, len(marginal_vars) + 1)

    logger.info(f"Found {len(combinations)} missing value combinations over "
                f"{len(marginal_vars)} variables")

    return NAIntersectResult(
        marginal_vars=marginal_vars,
        combinations=combinations,
        n_missing_vars=n_missing_vars,
        n_missing_obs=n_missing_obs,
        n_complete_obs=n_total - n_missing_obs,
    )


class MissingValuePlotter(BasePlotter):
    """
    Charts of missing value structure: Pareto chart per variable,
    clustered indicator matrix, and combination (intersection) chart.
    """

    def __init__(self, save_plots: bool = True, plot_dir: Optional[Path] = None,
                 config=missing_config):
        super().__init__(save_plots=save_plots, plot_dir=plot_dir)
        self.config = config
        logger.info("MissingValuePlotter initialized")

    def plot_na_pareto(
        self,
        source,
        only_na: bool = False,
        relative: bool = False,
        main: Optional[str] = None,
        col: Optional[str] = None,
        grade: Optional[Dict[str, float]] = None,
        plot: bool = True
    ) -> Union[Optional[Path], pd.DataFrame]:
        """
        Pareto chart of variables with missing values.

        Bars are coloured by grade and labelled with the missing ratio;
        the line shows the cumulative share of all missing values on the
        right-hand axis.

        Returns:
            Path to saved plot, or the aggregated table when plot=False
        """
        df = to_frame(source)
        grade = grade or self.config.grade
        info = na_pareto_table(df, only_na=only_na, relative=relative, grade=grade)

        if not plot:
            return info

        col = col or self.config.pareto_line_color
        main = main or "Pareto chart of variables with missing values"
        xlab = "Variable Names with Missing Value" if only_na else "All Variable Names"
        ylab = ("Relative Frequency of Missing Values" if relative
                else "Frequency of Missing Values")

        logger.info("Generating missing value pareto chart...")
        colors = self.config.grade_colors
        color_map = {g: colors[i % len(colors)] for i, g in enumerate(grade)}

        x = np.arange(len(info))
        fig, ax = plt.subplots(figsize=(max(8, 0.6 * len(info) + 2), 6))
        # Ratios above the last grade bound have no grade
        graded = info['grade'].notna()
        bar_colors = [color_map[g] if has_grade else self.config.na_grade_color
                      for g, has_grade in zip(info['grade'].astype(str), graded)]
        ax.bar(x, info['frequency'], color=bar_colors, edgecolor='white')
        for i, (freq, ratio) in enumerate(zip(info['frequency'], info['ratio'])):
            ax.text(i, freq, f"{round(ratio * 100, 1)} %", ha='center', va='bottom', fontsize=8)

        # Both axes start at zero and end at the first bar / the last
        # cumulative value, so the line is drawn on the bar scale
        top_freq = info['frequency'].iloc[0] if len(info) else 0
        ax.set_ylim(0, (top_freq or 1) * 1.1)
        ax2 = ax.twinx()
        ax2.plot(x, info['cumulative'], color=col, linewidth=0.8, marker='o', markersize=4)
        ax2.set_ylim(0, info['cumulative'].max() * 1.1)
        ax2.set_ylabel('Cumulative (%)')
        ax2.grid(False)

        ax.set_xticks(x)
        ax.set_xticklabels(info['variable'].astype(str), rotation=45, ha='right')
        ax.set_xlabel(xlab)
        ax.set_ylabel(ylab)
        ax.set_title(main, fontsize=13, fontweight='bold')
        handles = [Patch(color=color_map[g], label=g) for g in grade]
        if not graded.all():
            handles.append(Patch(color=self.config.na_grade_color, label='NA'))
        ax.legend(handles=handles,
                  loc='lower center', bbox_to_anchor=(0.5, 1.08), ncol=len(handles),
                  frameon=False, title='grade')

        plt.tight_layout()
        return self._save_figure(fig, 'na_pareto')

    def plot_na_hclust(
        self,
        source,
        main: Optional[str] = None,
        col_left: Optional[str] = None,
        col_right: Optional[str] = None
    ) -> Optional[Path]:
        """
        Missing value matrix of incomplete observations, with rows and
        variables grouped by hierarchical clustering. Count labels on the
        left, percentage of all rows on the right.

        Returns:
            Path to saved plot
        """
        df = to_frame(source)
        result = na_cluster_matrix(df)
        col_left = col_left or self.config.col_left
        col_right = col_right or self.config.col_right
        main = main or "Distribution of missing value by combination of variables"

        logger.info("Generating clustered missing value chart...")
        matrix = result.matrix
        nr, nc = matrix.shape

        fig, ax = plt.subplots(figsize=(12, max(4, 0.5 * nc + 2)))
        ax.imshow(matrix.T.to_numpy(), aspect='auto', interpolation='nearest', origin='lower',
                  cmap=ListedColormap(['#f0f0f0', 'red']), vmin=0, vmax=1,
                  extent=(0.5, nr + 0.5, 0.5, nc + 0.5))

        label_style = dict(va='center', fontsize=8, color='white', fontweight='bold')
        for j, (cnt, pct) in enumerate(zip(result.na_count, result.na_percent), start=1):
            ax.text(0, j, str(int(cnt)), ha='right',
                    bbox=dict(boxstyle='round', facecolor=col_left, edgecolor='none'),
                    **label_style)
            ax.text(nr + 2, j, pct, ha='left',
                    bbox=dict(boxstyle='round', facecolor=col_right, edgecolor='none'),
                    **label_style)

        pad = max(2.0, nr * 0.08)
        ax.set_xlim(-pad, nr + 2 + pad)
        ax.set_yticks(np.arange(1, nc + 1))
        ax.set_yticklabels(matrix.columns.astype(str), fontsize=10)
        ax.set_ylabel("Variables containing missing values")
        ax.set_xlabel("Observations")
        ax.set_title(main, fontsize=11)
        ax.grid(False)

        plt.tight_layout()
        return self._save_figure(fig, 'na_hclust')

    def plot_na_intersect(
        self,
        source,
        only_na: bool = True,
        n_intersects: Optional[int] = None,
        n_vars: Optional[int] = None,
        main: Optional[str] = None
    ) -> Optional[Path]:
        """
        Combinations of missing values across observations.

        Four panels: missing counts per variable (top), summary counts
        (top right), combination matrix (bottom left) and combination
        frequencies coloured by whether the combination has any missing
        value (bottom right).

        Returns:
            Path to saved plot
        """
        df = to_frame(source)
        result = na_intersect_table(df, only_na=only_na, n_intersects=n_intersects,
                                    n_vars=n_vars)
        main = main or "Missing information for intersection of variables"

        logger.info("Generating missing value intersection chart...")
        variables = result.variables
        combos = result.combinations
        n_var = len(variables)
        n_combo = len(combos)
        missing_color = self.config.missing_color
        complete_color = self.config.complete_color

        fig = plt.figure(figsize=(12, max(6, 0.4 * n_combo + 3)))
        grid = fig.add_gridspec(2, 2, width_ratios=[8, 2], height_ratios=[1, 5],
                                wspace=0.05, hspace=0.05)
        body = fig.add_subplot(grid[1, 0])
        top = fig.add_subplot(grid[0, 0], sharex=body)
        right = fig.add_subplot(grid[1, 1], sharey=body)
        info = fig.add_subplot(grid[0, 1])

        # Combination tiles
        for i, row in combos.iterrows():
            for j, var in enumerate(variables):
                filled = bool(row[var])
                body.add_patch(Rectangle((j + 0.5, i + 0.5), 1, 1,
                                         facecolor='red' if filled else 'white',
                                         edgecolor='black', linewidth=0.5))
        body.set_xlim(0.5, n_var + 0.5)
        body.set_ylim(0.5, n_combo + 0.5)
        body.set_xticks(np.arange(1, n_var + 1))
        body.set_xticklabels(variables, rotation=45, ha='right', family='monospace')
        body.set_yticks([])
        body.set_xlabel("Variables")
        body.grid(False)

        # Variable marginals
        marginal = result.marginal_vars
        top.bar(marginal['Var1'], marginal['n_var'], color=missing_color)
        for x_pos, count in zip(marginal['Var1'], marginal['n_var']):
            top.text(x_pos, count, str(int(count)), ha='center', va='bottom', fontsize=8)
        top.set_ylim(0, marginal['n_var'].max() * 1.25 if len(marginal) else 1)
        top.tick_params(axis='x', labelbottom=False, bottom=False)
        top.set_yticks([])
        top.grid(False)

        # Combination frequencies
        combo_colors = [missing_color if combos.loc[i, variables].any() else complete_color
                        for i in combos.index]
        y_pos = np.arange(1, n_combo + 1)
        right.barh(y_pos, combos['n'], color=combo_colors)
        for y, count in zip(y_pos, combos['n']):
            right.text(count, y, f" {int(count)}", va='center', fontsize=8)
        right.set_xlim(0, combos['n'].max() * 1.3 if n_combo else 1)
        right.tick_params(axis='y', labelleft=False, left=False)
        right.set_xlabel("Frequency")
        right.grid(False)

        # Summary box
        info.axis('off')
        legend_rows = [
            (f"#Missing Vars: {result.n_missing_vars}", missing_color),
            (f"#Missing Obs: {result.n_missing_obs}", missing_color),
            (f"#Complete Obs: {result.n_complete_obs}", complete_color),
        ]
        for k, (text, color) in enumerate(legend_rows):
            info.text(0.05, 0.8 - 0.3 * k, text, ha='left', va='center', fontsize=9,
                      color='white', fontweight='bold',
                      bbox=dict(boxstyle='round', facecolor=color, edgecolor='none'))

        fig.suptitle(main, fontsize=13, fontweight='bold')
        return self._save_figure(fig, 'na_intersect')
