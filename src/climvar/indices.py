"""
SPEI (Standardized Precipitation Evapotranspiration Index) for station series.

Computes the climatic water balance from precipitation and PET, the SPEI
over a chosen integration scale, and appends both to a station table.

The indices work for both climate extremes:
- Negative values indicate dry conditions (drought)
- Positive values indicate wet conditions

Author: Benny Istanto
Organization: GOST/DEC Data Group, The World Bank

References:
    Vicente-Serrano, S.M., Beguería, S., López-Moreno, J.I. (2010). A Multiscalar
    Drought Index Sensitive to Global Warming: The Standardized Precipitation
    Evapotranspiration Index. Journal of Climate, 23(7), 1696-1718.
"""

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
import pandas as pd

from .compute import compute_spei
from .config import (
    DEFAULT_ANCHOR,
    DEFAULT_DISTRIBUTION,
    AnchorPolicy,
    Distribution,
    get_column_names,
    get_logger,
    get_long_name,
)
from .exceptions import InvalidArgumentError
from .utils import (
    SeriesLike,
    anchored_periods,
    as_series,
    calculate_pet,
    require_time_index,
    to_monthly_periods,
)
from .visualization import plot_spei

# Module logger
_logger = get_logger(__name__)


@dataclass
class SpeiResult:
    """
    Full result of an SPEI computation.

    :ivar fitted: SPEI values, indexed like the input water balance
    :ivar accumulated: water balance summed over the integration scale
    :ivar coefficients: fitted distribution parameters, one row per calendar month
    :ivar periods: anchored monthly periods used to assign calendar months
    :ivar scale: integration scale in months
    :ivar distribution: distribution used for standardization
    :ivar anchor: anchor policy used to build the periods
    :ivar locname: site name
    """
    fitted: pd.Series
    accumulated: pd.Series
    coefficients: pd.DataFrame
    periods: pd.PeriodIndex
    scale: int
    distribution: Distribution
    anchor: AnchorPolicy
    locname: str = 'no name'

    @property
    def n_missing(self) -> int:
        """Number of missing (non-finite) fitted values."""
        return int(self.fitted.isna().sum())


def get_cwdiff(
    precip: SeriesLike,
    pet: SeriesLike
) -> pd.Series:
    """
    Get climatic water difference from precipitation and PET.

    Values are matched by timestamp, not by position: both series must
    carry exactly the same (unique) time labels, in any order.

    :param precip: monthly precipitation sums (mm)
    :param pet: monthly potential evapotranspiration sums (mm)
    :return: precip - pet, with precip's index
    :raises InvalidArgumentError: if the two series are not indexed alike
    """
    precip = as_series(precip)
    pet = as_series(pet)

    if len(precip) != len(pet):
        raise InvalidArgumentError(
            f"Precipitation and PET must have same length: "
            f"{len(precip)} vs {len(pet)}"
        )

    for label, series in (('Precipitation', precip), ('PET', pet)):
        if not series.index.is_unique:
            raise InvalidArgumentError(f"{label} index contains duplicated timestamps")

    if not precip.index.equals(pet.index):
        only_precip = precip.index.difference(pet.index)
        only_pet = pet.index.difference(precip.index)
        if len(only_precip) or len(only_pet):
            raise InvalidArgumentError(
                f"Precipitation and PET are not indexed alike: "
                f"{len(only_precip)} timestamps only in precipitation, "
                f"{len(only_pet)} only in PET"
            )
        _logger.debug("Reordering PET to match precipitation timestamps")
        pet = pet.reindex(precip.index)

    cwdiff = precip - pet
    cwdiff.name = 'cwdiff'
    return cwdiff


def get_spei(
    cwdiff: SeriesLike,
    scale: int = 6,
    na_rm: bool = False,
    plot: bool = False,
    locname: str = 'no name',
    anchor: Union[str, AnchorPolicy] = DEFAULT_ANCHOR,
    distribution: Union[str, Distribution] = DEFAULT_DISTRIBUTION,
    calibration_start_year: Optional[int] = None,
    calibration_end_year: Optional[int] = None
) -> SpeiResult:
    """
    Get SPEI values from a monthly climatic water difference series.

    The series is pinned to the calendar by one observation (the last one
    by default, see AnchorPolicy) and every value is assigned the calendar
    month counted from it, 12 periods per year.

    :param cwdiff: monthly climatic water difference (time indexed)
    :param scale: time scale, or number of months used to calculate SPEI
    :param na_rm: exclude missing values from the calculation (default False,
        in which case missing values are an error)
    :param plot: make a diagnostic plot of the SPEI series
    :param locname: name of the site, shown in the plot title
    :param anchor: 'end' or 'start', which observation pins the calendar
    :param distribution: 'log_logistic' (default) or 'pearson3'
    :param calibration_start_year: first year used to fit distributions (optional)
    :param calibration_end_year: last year used to fit distributions (optional)
    :return: SpeiResult with the fitted series and fit diagnostics

    Example:
        >>> cwdiff = get_cwdiff(precip, pet)
        >>> result = get_spei(cwdiff, scale=12, locname='Reno')
        >>> result.fitted.tail()
    """
    series = as_series(cwdiff, name='cwdiff')
    require_time_index(series)
    anchor = AnchorPolicy.from_string(anchor)
    distribution = Distribution.from_string(distribution)

    if series.empty:
        raise InvalidArgumentError("Water difference series is empty")
    if not series.index.is_monotonic_increasing or not series.index.is_unique:
        raise InvalidArgumentError("Timestamps must be strictly increasing")

    observed = to_monthly_periods(series.index)
    if observed.has_duplicates:
        raise InvalidArgumentError(
            f"More than one value per month: "
            f"{sorted(set(observed[observed.duplicated()].astype(str)))}"
        )

    periods = anchored_periods(series.index, anchor)
    if not observed.equals(periods):
        _logger.warning(
            f"Series timestamps are not consecutive months; calendar months "
            f"are counted from the {anchor.name} of the series "
            f"({periods[0]} to {periods[-1]})"
        )

    fitted_values, accumulated, params = compute_spei(
        series.to_numpy(),
        np.asarray(periods.month),
        scale,
        distribution=distribution,
        na_rm=na_rm,
        years=np.asarray(periods.year),
        calibration_start_year=calibration_start_year,
        calibration_end_year=calibration_end_year,
    )

    # Check for invalid values
    fitted_values[~np.isfinite(fitted_values)] = np.nan
    fitted = pd.Series(fitted_values, index=series.index, name=f'SPEI_{scale}mo')
    fitted.attrs['long_name'] = get_long_name(scale, distribution)

    coefficients = pd.DataFrame.from_dict(
        {month: p.to_dict() for month, p in params.items()}, orient='index'
    )
    coefficients.index.name = 'month'

    result = SpeiResult(
        fitted=fitted,
        accumulated=pd.Series(accumulated, index=series.index, name='accumulated'),
        coefficients=coefficients,
        periods=periods,
        scale=scale,
        distribution=distribution,
        anchor=anchor,
        locname=locname,
    )

    if result.n_missing > (scale - 1):
        _logger.warning(
            f"There are invalid values in the SPEI series for {locname}: "
            f"{result.n_missing} missing, at most {scale - 1} expected "
            f"for a {scale}-month scale"
        )

    if plot:
        plot_spei(fitted, scale, locname=locname)

    _logger.info(f"SPEI-{scale} computation complete for {locname}")
    return result


def add_spei_columns(
    df: pd.DataFrame,
    temp_col: str = 'TAVG',
    precip_col: str = 'PRCP',
    lat_col: str = 'LATITUDE',
    date_col: str = 'DATE',
    scale: int = 12,
    na_rm: bool = False,
    plot: bool = False,
    site: Optional[str] = None,
    anchor: Union[str, AnchorPolicy] = DEFAULT_ANCHOR,
    distribution: Union[str, Distribution] = DEFAULT_DISTRIBUTION
) -> pd.DataFrame:
    """
    Append Thornthwaite PET and SPEI columns to a monthly station table.

    Defaults match the column names of a GHCN monthly summary
    (see climvar.ghcn.ghcn_summary_data). Gaps between months are filled
    with missing values before PET and SPEI are computed, so they need
    na_rm=True.

    :param df: table with one row per month
    :param temp_col: mean temperature column (°C)
    :param precip_col: precipitation sum column (mm)
    :param lat_col: latitude column, one value for the whole table
    :param date_col: date column (anything pd.to_datetime understands)
    :param scale: SPEI time scale in months
    :param na_rm: exclude missing values from the SPEI fit
    :param plot: make a diagnostic plot of the SPEI series
    :param site: site label, appended to the new column names
    :param anchor: 'end' or 'start', see get_spei
    :param distribution: 'log_logistic' (default) or 'pearson3'
    :return: copy of df with the PET and SPEI columns added
    """
    missing = [c for c in (date_col, temp_col, precip_col, lat_col) if c not in df.columns]
    if missing:
        raise InvalidArgumentError(f"Missing required columns: {missing}")
    if df.empty:
        raise InvalidArgumentError("Input table is empty")

    latitudes = pd.to_numeric(df[lat_col]).dropna().unique()
    if len(latitudes) != 1:
        raise InvalidArgumentError(
            f"Column '{lat_col}' must hold a single latitude, got {len(latitudes)} values"
        )
    latitude = float(latitudes[0])

    periods = to_monthly_periods(pd.to_datetime(df[date_col]))
    if periods.hasnans:
        raise InvalidArgumentError(f"Column '{date_col}' contains missing dates")
    if periods.has_duplicates:
        raise InvalidArgumentError(f"Column '{date_col}' has more than one row per month")

    full_range = pd.period_range(periods.min(), periods.max(), freq='M')
    precip = pd.Series(
        pd.to_numeric(df[precip_col]).to_numpy(dtype=float), index=periods
    ).reindex(full_range)
    temperature = pd.Series(
        pd.to_numeric(df[temp_col]).to_numpy(dtype=float), index=periods
    ).reindex(full_range)

    _logger.info(
        f"Adding SPEI-{scale} for {site or 'unnamed site'}: "
        f"{len(df)} rows over {len(full_range)} months, latitude {latitude}"
    )

    pet = calculate_pet(temperature, latitude)
    cwdiff = get_cwdiff(precip, pet)
    result = get_spei(
        cwdiff,
        scale=scale,
        na_rm=na_rm,
        plot=plot,
        locname=site if site else 'no name',
        anchor=anchor,
        distribution=distribution,
    )

    pet_col, spei_col = get_column_names(scale, site)
    augmented = df.copy()
    augmented[pet_col] = pet.reindex(periods).to_numpy()
    augmented[spei_col] = result.fitted.reindex(periods).to_numpy()
    return augmented
