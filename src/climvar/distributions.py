"""
Probability distribution fitting for SPEI calculation.

This module provides the distributions used to standardize an
accumulated climatic water balance:

1. Log-Logistic (three-parameter, i.e. Hosking's generalized logistic) -
   the reference distribution for SPEI (Vicente-Serrano et al. 2010)
2. Pearson Type III - a common alternative for SPEI

Parameters are estimated with L-moments from unbiased probability
weighted moments. Cumulative probabilities are delegated to scipy.stats.

References:
    - Vicente-Serrano, S.M., Beguería, S., López-Moreno, J.I. (2010).
      A Multiscalar Drought Index Sensitive to Global Warming: SPEI.
    - Hosking, J.R.M. (1990). L-moments: Analysis and estimation of
      distributions using linear combinations of order statistics.

---
Author: Benny Istanto, GOST/DEC Data Group/The World Bank
---
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import numpy as np
from scipy import stats
from scipy.special import gammaln

from .config import (
    DISTRIBUTION_PARAM_NAMES,
    FITTED_INDEX_VALID_MAX,
    FITTED_INDEX_VALID_MIN,
    MIN_VALUES_FOR_FIT,
    Distribution,
)

# Small value to avoid division by zero
EPSILON = 1e-10

# Below this |shape| the generalized logistic is the plain logistic
_GLO_SHAPE_TOLERANCE = 1e-6


@dataclass
class DistributionParams:
    """Container for distribution parameters of one calendar month."""
    distribution: Distribution
    params: Dict[str, float]
    n_samples: int

    def is_valid(self) -> bool:
        """Check if parameters are valid for computation."""
        return all(np.isfinite(v) for v in self.params.values())

    def to_dict(self) -> Dict:
        """Flatten to a dictionary (one row of SpeiResult.coefficients)."""
        row = dict(self.params)
        row['n_samples'] = self.n_samples
        return row


# =============================================================================
# L-MOMENTS COMPUTATION
# =============================================================================

def compute_lmoments(data: np.ndarray, nmom: int = 3) -> np.ndarray:
    """
    Compute sample L-moments from unbiased probability weighted moments.

    :param data: 1-D array of sample values
    :param nmom: number of L-moments to compute (2 to 4)
    :return: array of L-moments [l1, l2, (l3, (l4))]

    Reference: Hosking (1990)
    """
    n = len(data)
    if n < nmom:
        return np.full(nmom, np.nan)

    x = np.sort(data)

    # b_r = 1/n * sum_i x_(i) * C(i, r) / C(n-1, r)
    i = np.arange(n, dtype=float)
    b = np.zeros(nmom)
    for r in range(nmom):
        weights = np.ones(n)
        for j in range(r):
            weights *= (i - j) / (n - 1 - j)
        b[r] = np.mean(weights * x)

    lmom = np.zeros(nmom)
    lmom[0] = b[0]
    lmom[1] = 2 * b[1] - b[0]

    if nmom >= 3:
        lmom[2] = 6 * b[2] - 6 * b[1] + b[0]

    if nmom >= 4:
        lmom[3] = 20 * b[3] - 30 * b[2] + 12 * b[1] - b[0]

    return lmom


# =============================================================================
# LOG-LOGISTIC (GENERALIZED LOGISTIC) DISTRIBUTION
# =============================================================================

def fit_log_logistic(values: np.ndarray) -> DistributionParams:
    """
    Fit a three-parameter log-logistic distribution using L-moments.

    Uses Hosking's generalized logistic parameterization
    (shape k, location xi, scale alpha), which is the log-logistic
    shifted by a lower (k < 0) or upper (k > 0) bound.

    :param values: array of water balance values (negatives allowed)
    :return: DistributionParams object
    """
    valid_values = values[np.isfinite(values)]
    n_total = len(valid_values)

    names = DISTRIBUTION_PARAM_NAMES[Distribution.log_logistic.value]
    invalid = DistributionParams(
        Distribution.log_logistic, {k: np.nan for k in names}, n_total
    )

    if n_total < MIN_VALUES_FOR_FIT:
        return invalid

    l1, l2, l3 = compute_lmoments(valid_values, nmom=3)
    if not l2 > EPSILON:
        return invalid

    shape = -l3 / l2
    if abs(shape) >= 1.0:
        return invalid

    if abs(shape) <= _GLO_SHAPE_TOLERANCE:
        scale = l2
        loc = l1
    else:
        kk = shape * np.pi / np.sin(shape * np.pi)
        scale = l2 / kk
        loc = l1 - scale * (1.0 - kk) / shape

    return DistributionParams(
        distribution=Distribution.log_logistic,
        params={'shape': shape, 'loc': loc, 'scale': scale},
        n_samples=n_total,
    )


def log_logistic_cdf(
    values: np.ndarray,
    params: DistributionParams
) -> np.ndarray:
    """
    Compute CDF of the three-parameter log-logistic distribution.

    k < 0: Fisk distribution above the bound xi + alpha/k
    k > 0: mirrored Fisk distribution below the bound xi + alpha/k
    k = 0: logistic distribution

    :param values: array of values to transform
    :param params: fitted distribution parameters
    :return: array of CDF values in [0, 1]
    """
    result = np.full(values.shape, np.nan)

    if not params.is_valid():
        return result

    shape = params.params['shape']
    loc = params.params['loc']
    scale = params.params['scale']

    valid_mask = np.isfinite(values)
    x = values[valid_mask]

    if abs(shape) <= _GLO_SHAPE_TOLERANCE:
        result[valid_mask] = stats.logistic.cdf(x, loc=loc, scale=scale)
    elif shape < 0:
        bound = loc + scale / shape
        result[valid_mask] = stats.fisk.cdf(
            x, -1.0 / shape, loc=bound, scale=-scale / shape
        )
    else:
        bound = loc + scale / shape
        result[valid_mask] = stats.fisk.sf(
            bound - x, 1.0 / shape, scale=scale / shape
        )

    return result


# =============================================================================
# PEARSON TYPE III DISTRIBUTION
# =============================================================================

def fit_pearson3(values: np.ndarray) -> DistributionParams:
    """
    Fit Pearson Type III distribution using L-moments.

    Rational approximations for the shape from Hosking (1990), Appendix.

    :param values: array of water balance values (negatives allowed)
    :return: DistributionParams object
    """
    valid_values = values[np.isfinite(values)]
    n_total = len(valid_values)

    names = DISTRIBUTION_PARAM_NAMES[Distribution.pearson3.value]
    invalid = DistributionParams(
        Distribution.pearson3, {k: np.nan for k in names}, n_total
    )

    if n_total < MIN_VALUES_FOR_FIT:
        return invalid

    l1, l2, l3 = compute_lmoments(valid_values, nmom=3)
    if not l2 > EPSILON:
        return invalid

    t3 = l3 / l2
    t = abs(t3)

    if t < 1e-6:
        skew, loc, scale = 0.0, l1, l2 * np.sqrt(np.pi)
    elif t >= 1.0:
        return invalid
    else:
        if t < 1.0 / 3.0:
            z = 3.0 * np.pi * t ** 2
            alpha = (1 + 0.2906 * z) / (z + 0.1882 * z ** 2 + 0.0442 * z ** 3)
        else:
            z = 1.0 - t
            alpha = (
                (0.36067 * z - 0.59567 * z ** 2 + 0.25361 * z ** 3) /
                (1 - 2.78861 * z + 2.56096 * z ** 2 - 0.77045 * z ** 3)
            )
        rt_alpha = np.sqrt(alpha)
        beta = np.sqrt(np.pi) * l2 * np.exp(gammaln(alpha) - gammaln(alpha + 0.5))
        skew = np.sign(t3) * 2.0 / rt_alpha
        loc = l1
        scale = beta * rt_alpha

    return DistributionParams(
        distribution=Distribution.pearson3,
        params={'skew': skew, 'loc': loc, 'scale': scale},
        n_samples=n_total,
    )


def pearson3_cdf(
    values: np.ndarray,
    params: DistributionParams
) -> np.ndarray:
    """
    Compute CDF using Pearson Type III distribution.

    :param values: array of values to transform
    :param params: fitted distribution parameters
    :return: array of CDF values in [0, 1]
    """
    result = np.full(values.shape, np.nan)

    if not params.is_valid():
        return result

    valid_mask = np.isfinite(values)
    result[valid_mask] = stats.pearson3.cdf(
        values[valid_mask],
        params.params['skew'],
        loc=params.params['loc'],
        scale=params.params['scale'],
    )
    return result


# =============================================================================
# UNIFIED INTERFACE
# =============================================================================

_DISTRIBUTION_FUNCTIONS = {
    Distribution.log_logistic: (fit_log_logistic, log_logistic_cdf),
    Distribution.pearson3: (fit_pearson3, pearson3_cdf),
}


def fit_distribution(
    values: np.ndarray,
    distribution: Distribution = Distribution.log_logistic
) -> DistributionParams:
    """
    Unified interface for distribution fitting.

    :param values: 1-D array of values
    :param distribution: Distribution enum (or its name)
    :return: DistributionParams object

    Example:
        >>> params = fit_distribution(water_balance, 'log_logistic')
        >>> cdf_values = compute_cdf(water_balance, params)
    """
    distribution = Distribution.from_string(distribution)
    fit_func, _ = _DISTRIBUTION_FUNCTIONS[distribution]
    return fit_func(np.asarray(values, dtype=float))


def compute_cdf(
    values: np.ndarray,
    params: DistributionParams
) -> np.ndarray:
    """
    Compute CDF using fitted distribution parameters.

    :param values: array of values to transform
    :param params: DistributionParams from fit_distribution()
    :return: array of CDF values in [0, 1]
    """
    _, cdf_func = _DISTRIBUTION_FUNCTIONS[params.distribution]
    return cdf_func(np.asarray(values, dtype=float), params)


def cdf_to_standard_normal(cdf_values: np.ndarray) -> np.ndarray:
    """
    Transform CDF values to standard normal distribution (SPEI values).

    :param cdf_values: array of CDF values in [0, 1]
    :return: array of standard normal values, clipped to the valid index range
    """
    # Clip to avoid infinite values at extremes
    cdf_clipped = np.clip(cdf_values, 1e-10, 1 - 1e-10)

    result = stats.norm.ppf(cdf_clipped)

    return np.clip(result, FITTED_INDEX_VALID_MIN, FITTED_INDEX_VALID_MAX)
