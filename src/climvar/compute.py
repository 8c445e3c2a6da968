"""
Core computation functions for SPEI calculation.

Accumulates the climatic water balance over the integration scale, fits
a distribution per calendar month and transforms the fitted
probabilities to the standard normal. This is the drought-index engine
behind climvar.indices.get_spei; callers only rely on its contract:

    input:  monthly water balance values, the calendar month of each
            value, an integration scale and a missing-value flag
    output: fitted index values aligned to the input (the first
            scale-1 values are missing), the accumulated series and
            the per-month distribution parameters

Modified/adapted from James Adams' climate-indices package
https://github.com/monocongo/climate_indices

Author: Benny Istanto
Organization: GOST/DEC Data Group, The World Bank
"""

from typing import Dict, Optional, Tuple, Union

import numpy as np
from numba import jit

from .config import (
    DEFAULT_DISTRIBUTION,
    Distribution,
    get_logger,
)
from .distributions import (
    DistributionParams,
    cdf_to_standard_normal,
    compute_cdf,
    fit_distribution,
)

# Module logger
_logger = get_logger(__name__)


# =============================================================================
# SCALING FUNCTIONS
# =============================================================================

@jit(nopython=True, cache=True)
def _sum_to_scale_1d(values: np.ndarray, scale: int) -> np.ndarray:
    """
    Numba-optimized rolling sum for 1-D array.

    :param values: 1-D array of values
    :param scale: number of time steps to sum
    :return: array of rolling sums (first scale-1 values are NaN)
    """
    n = len(values)
    result = np.full(n, np.nan)

    for i in range(scale - 1, n):
        total = 0.0
        valid_count = 0

        for j in range(scale):
            val = values[i - j]
            if not np.isnan(val):
                total += val
                valid_count += 1

        # Only compute sum if all values in window are valid
        if valid_count == scale:
            result[i] = total

    return result


def sum_to_scale(
    values: np.ndarray,
    scale: int
) -> np.ndarray:
    """
    Compute rolling sum over specified time scale.

    For SPEI, this accumulates the water balance (P - PET) over the
    specified number of months (e.g., 3-month, 12-month).

    :param values: 1-D numpy array of values
    :param scale: number of time steps to accumulate (e.g., 1, 3, 6, 12)
    :return: array of scaled (accumulated) values, same length as input
        First (scale-1) values will be NaN
    :raises ValueError: if scale < 1
    """
    if scale < 1:
        raise ValueError(f"Scale must be >= 1, got: {scale}")

    values = np.asarray(values, dtype=np.float64).flatten()

    if scale == 1:
        return values.copy()

    return _sum_to_scale_1d(values, scale)


# =============================================================================
# SPEI
# =============================================================================

def _calibration_mask(
    years: Optional[np.ndarray],
    n: int,
    calibration_start_year: Optional[int],
    calibration_end_year: Optional[int]
) -> np.ndarray:
    """Boolean mask of the values used to fit the distributions."""
    if calibration_start_year is None and calibration_end_year is None:
        return np.ones(n, dtype=bool)

    if years is None:
        raise ValueError("years are required when a calibration period is given")

    years = np.asarray(years)
    mask = np.ones(n, dtype=bool)
    if calibration_start_year is not None:
        mask &= years >= calibration_start_year
    if calibration_end_year is not None:
        mask &= years <= calibration_end_year

    if not mask.any():
        raise ValueError(
            f"Calibration period {calibration_start_year}-{calibration_end_year} "
            f"does not overlap the data ({years.min()}-{years.max()})"
        )
    return mask


def compute_spei(
    water_balance: np.ndarray,
    months: np.ndarray,
    scale: int,
    distribution: Union[str, Distribution] = DEFAULT_DISTRIBUTION,
    na_rm: bool = False,
    years: Optional[np.ndarray] = None,
    calibration_start_year: Optional[int] = None,
    calibration_end_year: Optional[int] = None
) -> Tuple[np.ndarray, np.ndarray, Dict[int, DistributionParams]]:
    """
    Compute SPEI for a single monthly water balance series.

    :param water_balance: 1-D array of monthly P - PET values (mm)
    :param months: calendar month (1-12) of each value
    :param scale: accumulation scale in months
    :param distribution: distribution fitted per calendar month
    :param na_rm: if False, missing values in the input are an error;
        if True they are excluded from fitting (and propagate through
        every accumulation window that contains them)
    :param years: calendar year of each value (needed for calibration)
    :param calibration_start_year: first year of calibration period (optional)
    :param calibration_end_year: last year of calibration period (optional)
    :return: tuple of (SPEI values, accumulated values, {month: params})
    :raises ValueError: on invalid scale, short series or unexpected missing values
    """
    if isinstance(scale, bool) or not isinstance(scale, (int, np.integer)) or scale < 1:
        raise ValueError(f"Scale must be a positive integer, got: {scale!r}")

    distribution = Distribution.from_string(distribution)
    values = np.asarray(water_balance, dtype=np.float64).flatten()
    months = np.asarray(months).flatten()
    n = len(values)

    if len(months) != n:
        raise ValueError(
            f"Water balance and month arrays must have same length: "
            f"{n} vs {len(months)}"
        )
    if n < scale:
        raise ValueError(
            f"Series of {n} values is too short for a {scale}-month scale"
        )
    if np.any((months < 1) | (months > 12)):
        raise ValueError("Calendar months must be in 1-12")

    values = np.where(np.isfinite(values), values, np.nan)
    n_missing = int(np.isnan(values).sum())
    if n_missing and not na_rm:
        raise ValueError(
            f"Data must not contain missing values ({n_missing} found); "
            f"pass na_rm=True to exclude them from the fit"
        )

    _logger.info(
        f"Computing SPEI-{scale} over {n} months "
        f"(distribution={distribution.value}, missing={n_missing})"
    )

    accumulated = sum_to_scale(values, scale)
    calibration = _calibration_mask(
        years, n, calibration_start_year, calibration_end_year
    )

    fitted = np.full(n, np.nan)
    params_by_month = {}

    for month in range(1, 13):
        selected = months == month
        if not selected.any():
            continue

        params = fit_distribution(accumulated[selected & calibration], distribution)
        params_by_month[month] = params

        if not params.is_valid():
            _logger.debug(
                f"No valid {distribution.value} fit for month {month} "
                f"({params.n_samples} values)"
            )
            continue

        probabilities = compute_cdf(accumulated[selected], params)
        fitted[selected] = cdf_to_standard_normal(probabilities)

    return fitted, accumulated, params_by_month
