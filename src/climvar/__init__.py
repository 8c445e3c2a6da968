"""
climvar - Climate Variability Metrics for Station Data

Fetch GHCN station summaries from NCEI, derive the climatic water balance
from precipitation and Thornthwaite PET, and compute the Standardized
Precipitation Evapotranspiration Index (SPEI) and rolling coefficients
of variation.

SPEI works for both climate extremes:
- Negative values indicate dry conditions (drought)
- Positive values indicate wet conditions

References:
    Vicente-Serrano, S.M., Beguería, S., López-Moreno, J.I. (2010). A Multiscalar
    Drought Index Sensitive to Global Warming: The Standardized Precipitation
    Evapotranspiration Index. Journal of Climate, 23(7), 1696-1718.

    Thornthwaite, C.W. (1948). An approach toward a rational classification
    of climate. Geographical Review, 38, 55-94.

Example:
    >>> from climvar import ghcn_summary_data, add_spei_columns, get_rolling_cv
    >>>
    >>> # Monthly summaries for one station
    >>> df = ghcn_summary_data('USC00267369', '1990-01-01', '2020-12-31',
    ...                        summary_type='monthly')
    >>>
    >>> # Append PET and SPEI-12 columns
    >>> df = add_spei_columns(df, scale=12, site='Reno')
    >>>
    >>> # 10-year rolling CV of annual precipitation
    >>> cv = get_rolling_cv(annual_precip, window=10)
"""

__version__ = "2026.1"
__author__ = "Benny Istanto"
__email__ = "bistanto@worldbank.org"

# Water balance and SPEI
from .indices import (
    SpeiResult,
    get_cwdiff,
    get_spei,
    add_spei_columns,
)

# Rolling variability
from .variability import (
    get_rolling_cv,
    rolling_stats,
)

# GHCN data access
from .ghcn import (
    summary_dataset,
    ghcn_summary_data,
    ghcn_inventory,
    ghcn_df_subset,
    ghcn_drop_flags,
)

# Configuration
from .config import (
    AnchorPolicy,
    Distribution,
    NceiConfig,
    SummaryType,
    DEFAULT_NCEI_CONFIG,
    FITTED_INDEX_VALID_MIN,
    FITTED_INDEX_VALID_MAX,
)

# Errors
from .exceptions import (
    ClimvarError,
    InvalidArgumentError,
    FetchError,
    ParseError,
)

# Utility functions
from .utils import (
    calculate_pet,
    eto_thornthwaite,
)

# Visualization functions
from .visualization import (
    plot_spei,
    plot_rolling_stats,
)

# Low-level compute functions (for advanced users)
from .compute import (
    sum_to_scale,
    compute_spei,
)

__all__ = [
    # Version
    "__version__",
    # Water balance and SPEI
    "SpeiResult",
    "get_cwdiff",
    "get_spei",
    "add_spei_columns",
    # Rolling variability
    "get_rolling_cv",
    "rolling_stats",
    # GHCN data access
    "summary_dataset",
    "ghcn_summary_data",
    "ghcn_inventory",
    "ghcn_df_subset",
    "ghcn_drop_flags",
    # Configuration
    "AnchorPolicy",
    "Distribution",
    "NceiConfig",
    "SummaryType",
    "DEFAULT_NCEI_CONFIG",
    "FITTED_INDEX_VALID_MIN",
    "FITTED_INDEX_VALID_MAX",
    # Errors
    "ClimvarError",
    "InvalidArgumentError",
    "FetchError",
    "ParseError",
    # Utilities
    "calculate_pet",
    "eto_thornthwaite",
    # Visualization
    "plot_spei",
    "plot_rolling_stats",
    # Low-level compute
    "sum_to_scale",
    "compute_spei",
]
