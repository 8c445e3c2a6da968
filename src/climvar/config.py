"""
Configuration module for climvar.

Contains enums, constants, the NCEI service configuration and logging setup.

Author: Benny Istanto
Organization: GOST/DEC Data Group, The World Bank
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .exceptions import InvalidArgumentError


# =============================================================================
# ENUMS
# =============================================================================

class Periodicity(Enum):
    """
    Enumeration type for specifying series periodicity.

    'monthly': one value per calendar month, 12 periods per year.
    """

    monthly = 12

    def __str__(self):
        return self.name

    def unit(self) -> str:
        """Return the unit name for this periodicity."""
        return "month"


class AnchorPolicy(Enum):
    """
    Which observation pins the calendar of a monthly series.

    'end': the year/month of the last observation; earlier values are
        counted back from it one month at a time.

    'start': the year/month of the first observation; later values are
        counted forward from it.
    """

    start = "start"
    end = "end"

    def __str__(self):
        return self.name

    @staticmethod
    def from_string(s: str) -> 'AnchorPolicy':
        """
        Convert string to AnchorPolicy enum.

        :param s: 'start' or 'end'
        :return: AnchorPolicy enum value
        :raises InvalidArgumentError: if string is not a known policy
        """
        if isinstance(s, AnchorPolicy):
            return s
        try:
            return AnchorPolicy[str(s).lower()]
        except KeyError:
            raise InvalidArgumentError(
                f"Invalid anchor policy: '{s}'. Must be 'start' or 'end'."
            )


class SummaryType(Enum):
    """
    GHCN summary granularity and the NCEI dataset identifier serving it.
    """

    annual = "global-summary-of-the-year"
    monthly = "global-summary-of-the-month"
    daily = "daily-summaries"

    def __str__(self):
        return self.name

    @staticmethod
    def from_string(s: str) -> 'SummaryType':
        """
        Convert string to SummaryType enum.

        :param s: 'annual', 'monthly' or 'daily'
        :return: SummaryType enum value
        :raises InvalidArgumentError: for any other selector (e.g. 'weekly')
        """
        if isinstance(s, SummaryType):
            return s
        try:
            return SummaryType[str(s).lower()]
        except KeyError:
            raise InvalidArgumentError(
                f"Invalid summary type: '{s}'. "
                f"Must be one of: {[t.name for t in SummaryType]}"
            )


class Distribution(Enum):
    """Distributions available for standardizing the water balance."""

    log_logistic = "log_logistic"
    pearson3 = "pearson3"

    def __str__(self):
        return self.name

    @staticmethod
    def from_string(s: str) -> 'Distribution':
        """
        Convert string to Distribution enum.

        Accepts 'log-logistic' and 'PearsonIII' style spellings as well.

        :param s: distribution name
        :return: Distribution enum value
        :raises InvalidArgumentError: if the distribution is not supported
        """
        if isinstance(s, Distribution):
            return s
        key = str(s).lower().replace('-', '_').replace('iii', '3')
        try:
            return Distribution[key]
        except KeyError:
            raise InvalidArgumentError(
                f"Invalid distribution: '{s}'. "
                f"Must be one of: {[d.name for d in Distribution]}"
            )


# =============================================================================
# CONSTANTS
# =============================================================================

# Valid range for fitted SPEI values
# Values outside this range are clipped
FITTED_INDEX_VALID_MIN = -3.09
FITTED_INDEX_VALID_MAX = 3.09

# Minimum number of valid calibration values per calendar month
MIN_VALUES_FOR_FIT = 4

DEFAULT_DISTRIBUTION = Distribution.log_logistic
DEFAULT_ANCHOR = AnchorPolicy.end

DISTRIBUTION_DISPLAY_NAMES = {
    'log_logistic': 'Log-Logistic',
    'pearson3': 'Pearson Type III',
}

# Parameter names stored per calendar month in SpeiResult.coefficients
DISTRIBUTION_PARAM_NAMES = {
    'log_logistic': ('shape', 'loc', 'scale'),
    'pearson3': ('skew', 'loc', 'scale'),
}

# Output column naming: PET_thornthwaite_<site>, SPEI_12mo_<site>
PET_COLUMN_PATTERN = "PET_thornthwaite{suffix}"
SPEI_COLUMN_PATTERN = "SPEI_{scale}mo{suffix}"

# NCEI Access Data Service, see
# https://www.ncei.noaa.gov/support/access-data-service-api-user-documentation
NCEI_BASE_URL = "https://www.ncei.noaa.gov/access/services/data/v1"
NCEI_TIMEOUT_SECONDS = 60

DEFAULT_VARNAMES = "TMAX,TMIN,TAVG,PRCP"

# GHCN-Daily station inventory (fixed-width text)
GHCN_INVENTORY_URL = (
    "https://www1.ncdc.noaa.gov/pub/data/ghcn/daily/ghcnd-stations.txt"
)
INVENTORY_WIDTHS = (12, 9, 10, 7, 3, 30, 4, 4, 6)
INVENTORY_COLUMNS = (
    'id', 'lat', 'lon', 'elev', 'state', 'name',
    'gsn_flag', 'hcn_crn_flag', 'wmo_id',
)
INVENTORY_NUMERIC_COLUMNS = ('lat', 'lon', 'elev')
INVENTORY_LINE_LENGTH = sum(INVENTORY_WIDTHS)


@dataclass(frozen=True)
class NceiConfig:
    """Immutable connection settings for the NCEI data services."""

    base_url: str = NCEI_BASE_URL
    timeout: float = NCEI_TIMEOUT_SECONDS
    user_agent: str = "climvar/2026.1"


DEFAULT_NCEI_CONFIG = NceiConfig()


# =============================================================================
# LOGGING
# =============================================================================

def get_logger(
    name: str,
    level: int = logging.INFO
) -> logging.Logger:
    """
    Set up and return a logger with consistent formatting.

    :param name: logger name (typically __name__ of calling module)
    :param level: logging level (default: logging.INFO)
    :return: configured logger instance
    """
    logging.basicConfig(
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_column_names(
    scale: int,
    site: Optional[str] = None
) -> Tuple[str, str]:
    """
    Generate the PET and SPEI column names added to a station table.

    The site label is part of both names so that augmenting the same
    table for several sites never overwrites earlier columns.

    :param scale: SPEI time scale in months
    :param site: optional site label
    :return: tuple of (pet_column, spei_column)
    """
    suffix = f"_{site}" if site else ""
    return (
        PET_COLUMN_PATTERN.format(suffix=suffix),
        SPEI_COLUMN_PATTERN.format(scale=scale, suffix=suffix),
    )


def get_long_name(
    scale: int,
    distribution: Distribution = DEFAULT_DISTRIBUTION
) -> str:
    """
    Generate a long descriptive name for an SPEI series.

    :param scale: time scale in months
    :param distribution: distribution used for standardization
    :return: formatted long name
    """
    dist_name = DISTRIBUTION_DISPLAY_NAMES.get(distribution.value, distribution.value)
    return (
        f"Standardized Precipitation Evapotranspiration Index "
        f"({dist_name}), {scale}-{Periodicity.monthly.unit()}"
    )
