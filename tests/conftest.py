"""
Shared fixtures for the climvar test suite.

All inputs are synthetic: a 30-year monthly station record with a
seasonal temperature cycle and gamma-distributed precipitation.
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np
import pandas as pd
import pytest

N_YEARS = 30
START = '1990-01-01'


@pytest.fixture
def monthly_index():
    return pd.date_range(START, periods=12 * N_YEARS, freq='MS')


@pytest.fixture
def temperature(monthly_index):
    rng = np.random.default_rng(42)
    month = monthly_index.month.to_numpy()
    seasonal = 12.0 + 10.0 * np.sin(2 * np.pi * (month - 4) / 12)
    values = seasonal + rng.normal(0, 1.0, len(monthly_index))
    return pd.Series(values, index=monthly_index, name='TAVG')


@pytest.fixture
def precip(monthly_index):
    rng = np.random.default_rng(7)
    month = monthly_index.month.to_numpy()
    shape = 2.0 + np.cos(2 * np.pi * (month - 1) / 12)
    values = rng.gamma(shape, 25.0, len(monthly_index))
    return pd.Series(values, index=monthly_index, name='PRCP')


@pytest.fixture
def cwdiff(precip, temperature):
    from climvar import calculate_pet, get_cwdiff
    pet = calculate_pet(temperature, 39.5)
    return get_cwdiff(precip, pet)


@pytest.fixture
def station_table(monthly_index, precip, temperature):
    """Monthly GHCN-like summary table for a single station."""
    return pd.DataFrame({
        'STATION': 'USC00267369',
        'DATE': monthly_index + pd.offsets.MonthEnd(0),
        'LATITUDE': 39.5058,
        'LONGITUDE': -119.7464,
        'PRCP': precip.to_numpy(),
        'TAVG': temperature.to_numpy(),
    })


@pytest.fixture(autouse=True)
def close_figures():
    yield
    import matplotlib.pyplot as plt
    plt.close('all')
