"""
GHCN (Global Historical Climatology Network) data access.

Fetches station summaries from the NCEI Access Data Service as CSV and
reads the fixed-width GHCN-Daily station inventory.

GHCN-daily data: https://doi.org/10.7289/V5D21VHZ
GHCN-monthly data: https://doi.org/10.7289/V5QV3JJ5
GHCN-annual data: https://doi.org/10.7289/JWPF-Y430

API documentation:
https://www.ncei.noaa.gov/support/access-data-service-api-user-documentation

Each call performs a single request; nothing is cached or retried.
"""

import io
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

import pandas as pd
import requests

from .config import (
    DEFAULT_NCEI_CONFIG,
    DEFAULT_VARNAMES,
    GHCN_INVENTORY_URL,
    INVENTORY_COLUMNS,
    INVENTORY_LINE_LENGTH,
    INVENTORY_NUMERIC_COLUMNS,
    INVENTORY_WIDTHS,
    NceiConfig,
    SummaryType,
    get_logger,
)
from .exceptions import FetchError, InvalidArgumentError, ParseError

# Module logger
_logger = get_logger(__name__)

StringList = Union[str, Iterable[str]]


# =============================================================================
# REQUEST HELPERS
# =============================================================================

def summary_dataset(summary_type: Union[str, SummaryType]) -> str:
    """
    Map a summary granularity to its NCEI dataset identifier.

    :param summary_type: 'annual', 'monthly' or 'daily'
    :return: dataset identifier, e.g. 'global-summary-of-the-month'
    :raises InvalidArgumentError: for any other granularity
    """
    return SummaryType.from_string(summary_type).value


def _join(values: StringList, label: str) -> str:
    """Join a list of identifiers into the comma-delimited form the API takes."""
    if isinstance(values, str):
        joined = ','.join(v.strip() for v in values.split(','))
    else:
        joined = ','.join(str(v).strip() for v in values)

    if not joined.strip(','):
        raise InvalidArgumentError(f"No {label} given")
    return joined


def _parse_iso_date(value: str, label: str) -> datetime:
    try:
        return datetime.strptime(value, '%Y-%m-%d')
    except (TypeError, ValueError):
        raise InvalidArgumentError(
            f"{label} must be a YYYY-MM-DD string, got: {value!r}"
        )


def build_query(
    station_ids: StringList,
    start_date: str,
    end_date: str,
    varnames: StringList = DEFAULT_VARNAMES,
    summary_type: Union[str, SummaryType] = SummaryType.annual
) -> Dict[str, str]:
    """
    Build the query parameters for one NCEI data request.

    :param station_ids: station identifiers, comma-delimited string or list
    :param start_date: query start date, YYYY-MM-DD
    :param end_date: query end date, YYYY-MM-DD
    :param varnames: variable names, comma-delimited string or list
    :param summary_type: 'annual', 'monthly' or 'daily'
    :return: dictionary of query parameters
    """
    dataset = summary_dataset(summary_type)
    start = _parse_iso_date(start_date, 'start_date')
    end = _parse_iso_date(end_date, 'end_date')
    if start > end:
        raise InvalidArgumentError(
            f"start_date {start_date} is after end_date {end_date}"
        )

    return {
        'dataset': dataset,
        'dataTypes': _join(varnames, 'variable names'),
        'stations': _join(station_ids, 'station identifiers'),
        'startDate': start_date,
        'endDate': end_date,
        'format': 'csv',
        'units': 'metric',
        'includeAttributes': 'false',
    }


def _get(
    url: str,
    params: Optional[Dict[str, str]],
    config: NceiConfig,
    session: Optional[requests.Session] = None
) -> requests.Response:
    """Issue a single GET request, surfacing every failure as FetchError."""
    http = session if session is not None else requests
    try:
        response = http.get(
            url,
            params=params,
            timeout=config.timeout,
            headers={'User-Agent': config.user_agent},
        )
        response.raise_for_status()
    except requests.HTTPError as e:
        status = getattr(e.response, 'status_code', 'unknown')
        raise FetchError(f"HTTP error {status} from {url}") from e
    except requests.Timeout as e:
        raise FetchError(f"Request timeout after {config.timeout}s: {url}") from e
    except requests.RequestException as e:
        raise FetchError(f"Network error requesting {url}: {e}") from e

    _logger.info(f"GET {url} -> {response.status_code}")
    return response


# =============================================================================
# SUMMARY DATA
# =============================================================================

def normalize_dates(
    df: pd.DataFrame,
    summary_type: Union[str, SummaryType]
) -> pd.DataFrame:
    """
    Turn the DATE column of a GHCN summary into real dates.

    annual  'YYYY'       -> December 31 of that year
    monthly 'YYYY-MM'    -> last day of that month
    daily   'YYYY-MM-DD' -> that day

    :param df: GHCN summary table with a DATE column
    :param summary_type: granularity the table was requested with
    :return: copy of df with DATE as datetime64
    :raises ParseError: if DATE is missing or does not match the granularity
    """
    summary_type = SummaryType.from_string(summary_type)
    if 'DATE' not in df.columns:
        raise ParseError(f"Response has no DATE column: {list(df.columns)}")

    dates = df['DATE'].astype(str).str.strip()
    try:
        if summary_type == SummaryType.annual:
            parsed = pd.to_datetime(dates + '-12-31', format='%Y-%m-%d')
        elif summary_type == SummaryType.monthly:
            parsed = pd.to_datetime(dates + '-01', format='%Y-%m-%d') + pd.offsets.MonthEnd(0)
        else:
            parsed = pd.to_datetime(dates, format='%Y-%m-%d')
    except ValueError as e:
        raise ParseError(f"Unexpected {summary_type.name} DATE values: {e}") from e

    normalized = df.copy()
    normalized['DATE'] = parsed
    return normalized


def ghcn_summary_data(
    station_ids: StringList,
    start_date: str,
    end_date: str,
    varnames: StringList = DEFAULT_VARNAMES,
    summary_type: Union[str, SummaryType] = SummaryType.annual,
    parse_dates: bool = True,
    config: NceiConfig = DEFAULT_NCEI_CONFIG,
    session: Optional[requests.Session] = None
) -> pd.DataFrame:
    """
    Get a table of summary data for GHCN stations.

    :param station_ids: station identifiers, comma-delimited string or list
    :param start_date: query start date, YYYY-MM-DD
    :param end_date: query end date, YYYY-MM-DD
    :param varnames: variable names to query for
    :param summary_type: 'annual', 'monthly' or 'daily' summary dataset
    :param parse_dates: convert DATE to the last day of its year/month
    :param config: NCEI service settings
    :param session: optional requests.Session to send the request with
    :return: table of query results, one row per station and period

    Example:
        >>> df = ghcn_summary_data('USC00267369', '2017-01-01', '2020-01-31',
        ...                        summary_type='monthly')
    """
    params = build_query(station_ids, start_date, end_date, varnames, summary_type)
    _logger.info(
        f"Requesting {params['dataset']} for {params['stations']} "
        f"({start_date} to {end_date})"
    )

    response = _get(config.base_url, params, config, session)

    try:
        ghcn_df = pd.read_csv(
            io.StringIO(response.text), dtype={'STATION': str, 'DATE': str}
        )
    except (pd.errors.EmptyDataError, pd.errors.ParserError) as e:
        raise ParseError(f"Could not parse CSV response: {e}") from e

    if ghcn_df.empty:
        _logger.warning(f"No rows returned for {params['stations']}")

    if parse_dates:
        ghcn_df = normalize_dates(ghcn_df, summary_type)

    return ghcn_df


def ghcn_df_subset(
    ghcn_df: pd.DataFrame,
    station_id: str
) -> pd.DataFrame:
    """
    Keep only the rows of one station.

    :param ghcn_df: GHCN table with (usually) multiple stations
    :param station_id: GHCN station identifier to keep
    :return: table of that station's rows
    """
    if 'STATION' not in ghcn_df.columns:
        raise InvalidArgumentError("Table has no STATION column")

    subset = ghcn_df[ghcn_df['STATION'] == station_id].copy()
    if subset.empty:
        _logger.warning(f"Station {station_id} not found in table")
    return subset


def ghcn_drop_flags(ghcn_df: pd.DataFrame) -> pd.DataFrame:
    """
    Drop the attribute (flag) columns of a GHCN table.

    :param ghcn_df: GHCN table, possibly requested with attributes
    :return: copy without the '<VAR>_ATTRIBUTES' columns
    """
    flag_columns = [c for c in ghcn_df.columns if str(c).endswith('_ATTRIBUTES')]
    return ghcn_df.drop(columns=flag_columns)


# =============================================================================
# STATION INVENTORY
# =============================================================================

def parse_inventory(text: str) -> pd.DataFrame:
    """
    Parse fixed-width GHCN station inventory text.

    :param text: inventory file content
    :return: table with one row per station
    :raises ParseError: if the content does not follow the inventory layout
    """
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    if not lines:
        raise ParseError("Station inventory is empty")

    too_long = [i for i, line in enumerate(lines, 1) if len(line) > INVENTORY_LINE_LENGTH]
    if too_long:
        raise ParseError(
            f"{len(too_long)} lines are longer than the {INVENTORY_LINE_LENGTH}-character "
            f"inventory layout (first: line {too_long[0]})"
        )

    inventory = pd.read_fwf(
        io.StringIO('\n'.join(lines)),
        widths=list(INVENTORY_WIDTHS),
        names=list(INVENTORY_COLUMNS),
        header=None,
        dtype=str,
        keep_default_na=False,
        na_values=[''],
    )

    for column in INVENTORY_NUMERIC_COLUMNS:
        try:
            inventory[column] = pd.to_numeric(inventory[column], errors='raise')
        except (TypeError, ValueError) as e:
            raise ParseError(f"Non-numeric values in inventory column '{column}': {e}") from e

    if inventory[['id', 'lat', 'lon']].isna().any().any():
        raise ParseError("Inventory rows without station id or coordinates")

    return inventory


def ghcn_inventory(
    loc: Union[str, Path] = GHCN_INVENTORY_URL,
    config: NceiConfig = DEFAULT_NCEI_CONFIG,
    session: Optional[requests.Session] = None
) -> pd.DataFrame:
    """
    Get the GHCN station inventory as a table.

    :param loc: URL or local path of ghcnd-stations.txt
    :param config: NCEI service settings (timeout and User-Agent for URL sources)
    :param session: optional requests.Session to send the request with
    :return: table with columns id, lat, lon, elev, state, name,
        gsn_flag, hcn_crn_flag, wmo_id
    """
    loc = str(loc)
    if loc.startswith(('http://', 'https://')):
        text = _get(loc, None, config, session).text
    else:
        try:
            text = Path(loc).read_text(encoding='utf-8')
        except OSError as e:
            raise FetchError(f"Cannot read station inventory {loc}: {e}") from e

    inventory = parse_inventory(text)
    _logger.info(f"Read {len(inventory)} stations from {loc}")
    return inventory
