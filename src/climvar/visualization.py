"""
Visualization functions for SPEI and rolling variability diagnostics.

Plots are fire-and-forget: callers inside climvar never use the returned
axes, they are returned for interactive use only.

---
Author: Benny Istanto, GOST/DEC Data Group/The World Bank
---
"""

from typing import List, Optional, Tuple

import matplotlib.patches as mpatches
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.dates import DateFormatter

from .config import get_logger

# Module logger
_logger = get_logger(__name__)

# Official SPI/SPEI color scheme (WMO standard classification)
# (upper bound, color, label); the last class has no upper bound
WMO_CLASSES = [
    (-2.0, '#760005', 'Exceptionally Dry (≤ -2.0)'),
    (-1.5, '#ec0013', 'Extremely Dry (-2.0 to -1.5)'),
    (-1.2, '#ffa938', 'Severely Dry (-1.5 to -1.2)'),
    (-0.7, '#fdd28a', 'Moderately Dry (-1.2 to -0.7)'),
    (-0.5, '#fefe53', 'Abnormally Dry (-0.7 to -0.5)'),
    (0.5, '#ffffff', 'Near Normal (-0.5 to +0.5)'),
    (0.7, '#a2fd6e', 'Abnormally Moist (+0.5 to +0.7)'),
    (1.2, '#00b44a', 'Moderately Moist (+0.7 to +1.2)'),
    (1.5, '#008180', 'Very Moist (+1.2 to +1.5)'),
    (2.0, '#2a23eb', 'Extremely Moist (+1.5 to +2.0)'),
    (np.inf, '#a21fec', 'Exceptionally Moist (≥ +2.0)'),
]


def _time_axis(index: pd.Index) -> pd.Index:
    """Return plottable x values for a series index."""
    if isinstance(index, pd.PeriodIndex):
        return index.to_timestamp()
    return index


def _wmo_color(value: float) -> str:
    """Color of the WMO class a value falls in."""
    for upper, color, _ in WMO_CLASSES:
        if value <= upper:
            return color
    return WMO_CLASSES[-1][1]


# =============================================================================
# DROUGHT INDEX TIME SERIES PLOTS
# =============================================================================

def plot_spei(
    index_values: pd.Series,
    scale: int,
    locname: str = 'no name',
    figsize: Tuple[float, float] = (14, 6),
    ax: Optional[plt.Axes] = None
) -> plt.Axes:
    """
    Plot an SPEI time series with WMO color classification.

    :param index_values: fitted SPEI series (time indexed)
    :param scale: integration scale in months, shown in the title
    :param locname: site name shown in the title
    :param figsize: figure size (width, height) in inches
    :param ax: existing axes to plot on (optional)
    :return: matplotlib Axes object

    Example:
        >>> result = get_spei(cwdiff, scale=12)
        >>> ax = plot_spei(result.fitted, 12, locname='Reno')
        >>> plt.show()
    """
    time_index = _time_axis(index_values.index)
    values = index_values.to_numpy(dtype=float)

    if ax is None:
        fig, ax = plt.subplots(figsize=figsize)

    valid = ~np.isnan(values)
    ax.bar(
        time_index[valid],
        values[valid],
        width=20.0,
        color=[_wmo_color(v) for v in values[valid]],
        edgecolor='none',
        alpha=0.9,
    )

    ax.axhline(y=0, color='black', linestyle='-', linewidth=0.8)

    ax.set_ylabel('SPEI', fontsize=12)
    ax.set_xlabel('Time', fontsize=12)
    ax.grid(True, alpha=0.3, axis='y')
    ax.set_title(f'{locname} - {scale} month SPEI', fontsize=14, fontweight='bold')

    if isinstance(time_index, pd.DatetimeIndex):
        ax.xaxis.set_major_formatter(DateFormatter('%Y'))

    legend_elements = [
        mpatches.Patch(color=color, label=label) for _, color, label in WMO_CLASSES
    ]
    ax.legend(handles=legend_elements, loc='upper left', bbox_to_anchor=(1.02, 1),
              fontsize=9, framealpha=0.9)

    plt.tight_layout()

    _logger.debug(f"Plotted SPEI-{scale} for {locname}")
    return ax


# =============================================================================
# ROLLING VARIABILITY PLOTS
# =============================================================================

def plot_rolling_stats(
    stats: pd.DataFrame,
    site: Optional[str] = None,
    figsize: Tuple[float, float] = (12, 4)
) -> List[plt.Axes]:
    """
    Plot rolling mean, rolling standard deviation and rolling CV.

    One figure per statistic. When the table carries an 'adj_std' column
    (positivized series) it is overlaid on the standard deviation plot as
    a dashed blue line.

    :param stats: DataFrame from variability.rolling_stats()
    :param site: site name used as the plot title
    :param figsize: figure size (width, height) in inches
    :return: list of the three matplotlib Axes
    """
    title = site if site else ''
    time_index = _time_axis(stats.index)
    axes = []

    for column, ylabel in (('mean', 'Rolling mean'),
                           ('std', 'Rolling stdev'),
                           ('cv', 'Rolling CV')):
        fig, ax = plt.subplots(figsize=figsize)
        ax.plot(time_index, stats[column].to_numpy(), color='black', linewidth=1.0)

        if column == 'std' and 'adj_std' in stats:
            ax.plot(time_index, stats['adj_std'].to_numpy(),
                    color='blue', linestyle='--', linewidth=1.0)

        ax.set_title(title, fontsize=12)
        ax.set_ylabel(ylabel)
        ax.grid(True, alpha=0.3)
        axes.append(ax)

    return axes
