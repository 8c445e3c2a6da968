"""
Rolling variability statistics for climate time series.

Rolling windows are right-aligned: the value at a position summarizes
that position and the window-1 positions before it. Positions before a
full window has elapsed are dropped from the returned series.
"""

from typing import Optional

import numpy as np
import pandas as pd

from .config import get_logger
from .exceptions import InvalidArgumentError
from .utils import SeriesLike, as_series
from .visualization import plot_rolling_stats

# Module logger
_logger = get_logger(__name__)


def rolling_stats(
    ts_in: SeriesLike,
    window: int,
    positivize: bool = False
) -> pd.DataFrame:
    """
    Compute rolling mean, sample standard deviation and coefficient of variation.

    With positivize, the series is shifted so its minimum is exactly zero
    before the CV is taken; 'adj_mean' and 'adj_std' hold the rolling
    statistics of the shifted series and 'cv' is their ratio. 'mean' and
    'std' always describe the raw series.

    :param ts_in: time series
    :param window: window size in periods (1 <= window <= len(ts_in))
    :param positivize: shift the series to non-negative values first
    :return: DataFrame with len(ts_in) - window + 1 rows
    """
    series = as_series(ts_in)

    if isinstance(window, bool) or not isinstance(window, (int, np.integer)) or window < 1:
        raise InvalidArgumentError(f"Window must be a positive integer, got: {window!r}")
    if window > len(series):
        raise InvalidArgumentError(
            f"Window of {window} periods is longer than the series ({len(series)})"
        )

    rolling = series.rolling(window)
    stats = pd.DataFrame({
        'mean': rolling.mean(),
        'std': rolling.std(ddof=1),
    })

    if positivize:
        adjusted = series - series.min()
        adj_rolling = adjusted.rolling(window)
        stats['adj_mean'] = adj_rolling.mean()
        stats['adj_std'] = adj_rolling.std(ddof=1)
        stats['cv'] = stats['adj_std'] / stats['adj_mean']
    else:
        stats['cv'] = stats['std'] / stats['mean']

    return stats.iloc[window - 1:]


def get_rolling_cv(
    ts_in: SeriesLike,
    window: int,
    positivize: bool = False,
    plots: bool = False,
    site: Optional[str] = None
) -> pd.Series:
    """
    Get the rolling coefficient of variation of a time series.

    :param ts_in: time series
    :param window: window size in periods
    :param positivize: shift the series so its minimum is zero before
        computing the CV (for series that can be zero or negative)
    :param plots: plot rolling mean, rolling stdev and rolling CV
    :param site: site name used in the plot titles
    :return: rolling CV, indexed like ts_in from the first full window on
    """
    stats = rolling_stats(ts_in, window, positivize=positivize)

    _logger.info(
        f"Rolling CV over {window} periods for {site or 'unnamed site'} "
        f"({len(stats)} values, positivize={positivize})"
    )

    if plots:
        plot_rolling_stats(stats, site=site)

    return stats['cv'].rename('rolling_cv')
