"""
Utility functions for climvar.

Includes series coercion and anchoring helpers, month arithmetic and
Thornthwaite potential evapotranspiration (PET).

---
Author: Benny Istanto, GOST/DEC Data Group/The World Bank
---
"""

import calendar
import math
import warnings
from typing import Optional, Union

import numpy as np
import pandas as pd
import xarray as xr

from .config import AnchorPolicy, Periodicity, get_logger
from .exceptions import InvalidArgumentError

# Module logger
_logger = get_logger(__name__)

SeriesLike = Union[pd.Series, xr.DataArray]


# =============================================================================
# SERIES HANDLING
# =============================================================================

def as_series(
    values: Union[pd.Series, xr.DataArray],
    name: Optional[str] = None
) -> pd.Series:
    """
    Coerce a time-indexed input to a float pandas Series.

    :param values: pandas Series, or 1-D xarray DataArray with a 'time' dimension
    :param name: optional name for the returned series
    :return: pandas Series (a copy, never a view of the input)
    :raises InvalidArgumentError: for unsupported types or multi-dimensional arrays
    """
    if isinstance(values, xr.DataArray):
        if values.ndim != 1:
            raise InvalidArgumentError(
                f"Expected a 1-D DataArray, got dims {values.dims}"
            )
        series = values.to_series()
    elif isinstance(values, pd.Series):
        series = values.copy()
    else:
        raise InvalidArgumentError(
            f"Expected pandas Series or xarray DataArray, got {type(values).__name__}"
        )

    series = series.astype(float)
    if name is not None:
        series.name = name
    return series


def require_time_index(series: pd.Series) -> None:
    """
    Check that a series is indexed by time.

    :raises InvalidArgumentError: unless the index is a DatetimeIndex or PeriodIndex
    """
    if not isinstance(series.index, (pd.DatetimeIndex, pd.PeriodIndex)):
        raise InvalidArgumentError(
            f"Series must have a DatetimeIndex or PeriodIndex, "
            f"got {type(series.index).__name__}"
        )


def to_monthly_periods(index: pd.Index) -> pd.PeriodIndex:
    """
    Convert a time index to a monthly PeriodIndex.

    :param index: DatetimeIndex, PeriodIndex, or anything pd.to_datetime accepts
    :return: monthly PeriodIndex of the same length
    """
    if isinstance(index, pd.PeriodIndex):
        return index.asfreq('M')
    return pd.DatetimeIndex(pd.to_datetime(index)).to_period('M')


def anchored_periods(
    index: pd.Index,
    anchor: AnchorPolicy = AnchorPolicy.end,
    periodicity: Periodicity = Periodicity.monthly
) -> pd.PeriodIndex:
    """
    Build a regular monthly PeriodIndex for a series from one anchor point.

    Mirrors a frequency-tagged series: only one observation carries a
    calendar position, every other value is counted from it in steps of
    one period. With a gap-free series both anchors give the same result.

    :param index: time index of the series (non-empty)
    :param anchor: AnchorPolicy.end (last observation) or AnchorPolicy.start
    :param periodicity: only Periodicity.monthly is supported
    :return: PeriodIndex with len(index) consecutive months
    """
    if len(index) == 0:
        raise InvalidArgumentError("Cannot anchor an empty series")
    if periodicity != Periodicity.monthly:
        raise InvalidArgumentError(f"Unsupported periodicity: {periodicity}")

    periods = to_monthly_periods(index)
    if anchor == AnchorPolicy.end:
        return pd.period_range(end=periods[-1], periods=len(periods), freq='M')
    return pd.period_range(start=periods[0], periods=len(periods), freq='M')


# =============================================================================
# POTENTIAL EVAPOTRANSPIRATION (PET) - THORNTHWAITE METHOD
# =============================================================================

# Days in each month
_MONTH_DAYS_NONLEAP = np.array([31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31])
_MONTH_DAYS_LEAP = np.array([31, 29, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31])

# Valid latitude range in radians
_LAT_RAD_MIN = np.deg2rad(-90.0)
_LAT_RAD_MAX = np.deg2rad(90.0)


def _solar_declination(day_of_year: int) -> float:
    """
    Calculate solar declination angle for a given day of year.

    Based on FAO equation 24 in Allen et al. (1998).

    :param day_of_year: day of year (1-366)
    :return: solar declination in radians
    """
    if not 1 <= day_of_year <= 366:
        raise ValueError(f"Day of year must be 1-366, got: {day_of_year}")

    return 0.409 * math.sin((2.0 * math.pi / 365.0) * day_of_year - 1.39)


def _sunset_hour_angle(
    latitude_rad: float,
    solar_dec_rad: float
) -> float:
    """
    Calculate sunset hour angle from latitude and solar declination.

    Based on FAO equation 25 in Allen et al. (1998).

    :param latitude_rad: latitude in radians
    :param solar_dec_rad: solar declination in radians
    :return: sunset hour angle in radians
    """
    if not _LAT_RAD_MIN <= latitude_rad <= _LAT_RAD_MAX:
        raise InvalidArgumentError(
            f"Latitude must be between {_LAT_RAD_MIN:.4f} and "
            f"{_LAT_RAD_MAX:.4f} radians, got: {latitude_rad:.4f}"
        )

    cos_sha = -math.tan(latitude_rad) * math.tan(solar_dec_rad)

    # Polar day / polar night
    cos_sha = max(-1.0, min(1.0, cos_sha))

    return math.acos(cos_sha)


def _monthly_mean_daylight_hours(
    latitude_rad: float,
    leap: bool = False
) -> np.ndarray:
    """
    Calculate mean daylight hours for each month at given latitude.

    :param latitude_rad: latitude in radians
    :param leap: whether to calculate for leap year
    :return: array of 12 monthly mean daylight hours
    """
    month_days = _MONTH_DAYS_LEAP if leap else _MONTH_DAYS_NONLEAP
    monthly_dlh = np.zeros(12)

    day_of_year = 1
    for month_idx, days_in_month in enumerate(month_days):
        cumulative_hours = 0.0
        for _ in range(days_in_month):
            solar_dec = _solar_declination(day_of_year)
            sunset_angle = _sunset_hour_angle(latitude_rad, solar_dec)
            cumulative_hours += (24.0 / math.pi) * sunset_angle
            day_of_year += 1

        monthly_dlh[month_idx] = cumulative_hours / days_in_month

    return monthly_dlh


def eto_thornthwaite(
    temperature_celsius: np.ndarray,
    latitude_degrees: float,
    data_start_year: int,
    data_start_month: int = 1
) -> np.ndarray:
    """
    Calculate monthly potential evapotranspiration (PET) using Thornthwaite method.

    Reference:
        Thornthwaite, C.W. (1948) An approach toward a rational classification
        of climate. Geographical Review, Vol. 38, 55-94.

    Thornthwaite equation:
        PET = 16 * (L/12) * (N/30) * (10*Ta / I)^a

    where:
        - Ta: mean monthly air temperature (°C, clipped to ≥0)
        - N: number of days in month
        - L: mean day length (hours)
        - I: annual heat index
        - a: coefficient based on heat index

    :param temperature_celsius: 1-D array of consecutive monthly mean temperatures in °C
    :param latitude_degrees: latitude in degrees north (-90 to 90)
    :param data_start_year: year of the first value
    :param data_start_month: calendar month of the first value (1=January)
    :return: array of monthly PET values in mm/month, same length as input
    """
    if not 1 <= data_start_month <= 12:
        raise InvalidArgumentError(
            f"data_start_month must be 1-12, got: {data_start_month}"
        )

    temps = np.asarray(temperature_celsius, dtype=float).flatten()
    original_length = temps.size

    # Pad so the first row starts in January and the last row is complete
    lead = data_start_month - 1
    trail = (-(lead + original_length)) % 12
    temps = np.concatenate([
        np.full(lead, np.nan), temps, np.full(trail, np.nan)
    ]).reshape(-1, 12)

    latitude_rad = math.radians(float(latitude_degrees))

    # No evaporation below freezing
    temps = np.where(temps < 0, 0.0, temps)

    # Monthly climatology across all years
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', category=RuntimeWarning)
        mean_monthly_temps = np.nanmean(temps, axis=0)

    heat_index = np.nansum(np.power(mean_monthly_temps / 5.0, 1.514))

    if heat_index == 0:
        _logger.warning("Heat index is zero, returning zero PET")
        return np.where(
            np.isnan(np.asarray(temperature_celsius, dtype=float)), np.nan, 0.0
        )

    a = (
        6.75e-07 * heat_index**3 -
        7.71e-05 * heat_index**2 +
        1.792e-02 * heat_index +
        0.49239
    )

    dlh_nonleap = _monthly_mean_daylight_hours(latitude_rad, leap=False)
    dlh_leap = _monthly_mean_daylight_hours(latitude_rad, leap=True)

    pet = np.full(temps.shape, np.nan)

    for year_idx in range(temps.shape[0]):
        year = data_start_year + year_idx

        if calendar.isleap(year):
            month_days = _MONTH_DAYS_LEAP
            dlh = dlh_leap
        else:
            month_days = _MONTH_DAYS_NONLEAP
            dlh = dlh_nonleap

        pet[year_idx, :] = (
            16.0 *
            (dlh / 12.0) *
            (month_days / 30.0) *
            np.power(10.0 * temps[year_idx, :] / heat_index, a)
        )

    return pet.reshape(-1)[lead:lead + original_length]


def calculate_pet(
    temperature: Union[np.ndarray, pd.Series, xr.DataArray],
    latitude: float,
    data_start_year: Optional[int] = None,
    data_start_month: int = 1
) -> Union[np.ndarray, pd.Series, xr.DataArray]:
    """
    Calculate Thornthwaite PET, handling arrays, Series and DataArrays.

    Wrapper around eto_thornthwaite. For time-indexed inputs the start
    year and month are read from the first timestamp and the series must
    be a run of consecutive months.

    :param temperature: monthly mean temperature in °C
        - numpy array: shape (time,), requires data_start_year
        - pandas Series: DatetimeIndex or monthly PeriodIndex
        - xarray DataArray: 1-D with 'time' dimension
    :param latitude: latitude in degrees
    :param data_start_year: starting year of the data (arrays only)
    :param data_start_month: starting month of the data (arrays only)
    :return: PET in mm/month, same type and shape as input temperature
    """
    if isinstance(temperature, (pd.Series, xr.DataArray)):
        series = as_series(temperature)
        require_time_index(series)
        if series.empty:
            raise InvalidArgumentError("Temperature series is empty")
        periods = to_monthly_periods(series.index)
        expected = pd.period_range(start=periods[0], periods=len(periods), freq='M')
        if not periods.equals(expected):
            raise InvalidArgumentError(
                "Temperature series must be consecutive months for PET calculation"
            )

        _logger.info(
            f"Calculating Thornthwaite PET for {len(series)} months "
            f"starting {periods[0]}"
        )
        pet_values = eto_thornthwaite(
            series.to_numpy(), latitude, periods[0].year, periods[0].month
        )

        if isinstance(temperature, xr.DataArray):
            return xr.DataArray(
                data=pet_values,
                dims=temperature.dims,
                coords=temperature.coords,
                attrs={
                    'long_name': 'Potential Evapotranspiration (Thornthwaite)',
                    'units': 'mm/month',
                    'method': 'Thornthwaite (1948)',
                }
            )
        return pd.Series(pet_values, index=series.index, name='pet')

    if data_start_year is None:
        raise InvalidArgumentError("data_start_year required for numpy array input")
    return eto_thornthwaite(temperature, latitude, data_start_year, data_start_month)
