#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Tests for Thornthwaite PET calculation.

Checks array, Series and DataArray inputs, series that do not start in
January, and the zero heat index case.
"""

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from climvar import InvalidArgumentError, calculate_pet, eto_thornthwaite

# Pure seasonal cycle, identical every year
SEASONAL_CYCLE = 12.0 + 10.0 * np.sin(2 * np.pi * (np.arange(1, 13) - 4) / 12)


def test_pet_array_basic_properties():
    print("\n1. Thornthwaite PET from numpy array")
    temps = np.tile(SEASONAL_CYCLE, 5)
    pet = eto_thornthwaite(temps, 39.5, 1990)

    assert pet.shape == temps.shape
    assert np.all(pet >= 0)
    # Northern hemisphere: July evaporates more than January
    assert pet[6] > pet[0]
    print(f"   [PASS] PET range {pet.min():.1f} - {pet.max():.1f} mm/month")


def test_pet_southern_hemisphere_longer_days_in_january():
    temps = np.full(24, 15.0)
    north = eto_thornthwaite(temps, 40.0, 2001)
    south = eto_thornthwaite(temps, -40.0, 2001)

    assert north[6] > north[0]
    assert south[0] > south[6]


def test_pet_zero_below_freezing():
    temps = np.tile(SEASONAL_CYCLE, 3)
    temps[[0, 1, 12]] = -5.0
    pet = eto_thornthwaite(temps, 45.0, 2000)

    assert np.all(pet[[0, 1, 12]] == 0.0)
    assert np.all(pet[2:12] > 0)


def test_pet_start_month_other_than_january():
    temps = np.tile(SEASONAL_CYCLE, 4)
    full = eto_thornthwaite(temps, 39.5, 1990, data_start_month=1)
    from_march = eto_thornthwaite(temps[2:], 39.5, 1990, data_start_month=3)

    assert from_march.shape == (len(temps) - 2,)
    np.testing.assert_allclose(from_march, full[2:])


def test_pet_zero_heat_index_keeps_missing_values():
    temps = np.full(12, -10.0)
    temps[3] = np.nan
    pet = eto_thornthwaite(temps, 60.0, 2000)

    assert np.isnan(pet[3])
    assert np.all(np.delete(pet, 3) == 0.0)


def test_pet_invalid_start_month():
    with pytest.raises(InvalidArgumentError):
        eto_thornthwaite(np.tile(SEASONAL_CYCLE, 2), 39.5, 1990, data_start_month=13)


def test_calculate_pet_series(temperature):
    pet = calculate_pet(temperature, 39.5)

    assert isinstance(pet, pd.Series)
    assert pet.name == 'pet'
    assert pet.index.equals(temperature.index)
    assert pet.notna().all()


def test_calculate_pet_series_start_month_from_index(temperature):
    from_june = calculate_pet(temperature.iloc[5:], 39.5)
    expected = eto_thornthwaite(
        temperature.iloc[5:].to_numpy(), 39.5, 1990, data_start_month=6
    )
    np.testing.assert_allclose(from_june.to_numpy(), expected)


def test_calculate_pet_rejects_gaps(temperature):
    with pytest.raises(InvalidArgumentError):
        calculate_pet(temperature.drop(temperature.index[10]), 39.5)


def test_calculate_pet_dataarray(temperature):
    da = xr.DataArray(
        temperature.to_numpy(), coords={'time': temperature.index}, dims='time'
    )
    pet = calculate_pet(da, 39.5)

    assert isinstance(pet, xr.DataArray)
    assert pet.dims == ('time',)
    assert pet.attrs['units'] == 'mm/month'


def test_calculate_pet_array_needs_start_year():
    with pytest.raises(InvalidArgumentError):
        calculate_pet(np.tile(SEASONAL_CYCLE, 2), 39.5)
