#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Tests for appending PET and SPEI columns to a monthly station table.
"""

import numpy as np
import pandas as pd
import pytest

from climvar import InvalidArgumentError, add_spei_columns, calculate_pet, get_cwdiff, get_spei


def test_columns_added_and_rows_preserved(station_table):
    print("\n1. Append PET and SPEI-12 to a station table")
    original_columns = list(station_table.columns)
    augmented = add_spei_columns(station_table, scale=12, site='Reno')

    assert len(augmented) == len(station_table)
    assert list(augmented.columns) == original_columns + [
        'PET_thornthwaite_Reno', 'SPEI_12mo_Reno'
    ]
    pd.testing.assert_frame_equal(augmented[original_columns], station_table)
    assert augmented['SPEI_12mo_Reno'].iloc[:11].isna().all()
    assert augmented['SPEI_12mo_Reno'].iloc[11:].notna().all()
    print("   [PASS] columns PET_thornthwaite_Reno, SPEI_12mo_Reno")


def test_input_table_not_mutated(station_table):
    before = station_table.copy()
    add_spei_columns(station_table, scale=6, site='Reno')
    pd.testing.assert_frame_equal(station_table, before)


def test_distinct_columns_per_site(station_table):
    first = add_spei_columns(station_table, scale=6, site='A')
    both = add_spei_columns(first, scale=6, site='B')

    for column in ('PET_thornthwaite_A', 'SPEI_6mo_A', 'PET_thornthwaite_B', 'SPEI_6mo_B'):
        assert column in both.columns
    pd.testing.assert_series_equal(
        both['SPEI_6mo_A'], both['SPEI_6mo_B'], check_names=False
    )


def test_columns_without_site_label(station_table):
    augmented = add_spei_columns(station_table, scale=3)
    assert 'PET_thornthwaite' in augmented.columns
    assert 'SPEI_3mo' in augmented.columns


def test_values_match_series_pipeline(station_table, precip, temperature):
    augmented = add_spei_columns(station_table, scale=6, site='Reno')

    pet = calculate_pet(temperature, 39.5058)
    expected = get_spei(get_cwdiff(precip, pet), scale=6).fitted

    np.testing.assert_allclose(
        augmented['PET_thornthwaite_Reno'].to_numpy(), pet.to_numpy()
    )
    np.testing.assert_allclose(
        augmented['SPEI_6mo_Reno'].to_numpy(), expected.to_numpy(), equal_nan=True
    )


def test_shuffled_rows_follow_their_dates(station_table):
    ordered = add_spei_columns(station_table, scale=6, site='Reno')
    shuffled = add_spei_columns(
        station_table.sample(frac=1, random_state=0), scale=6, site='Reno'
    )

    resorted = shuffled.sort_values('DATE')
    np.testing.assert_allclose(
        resorted['SPEI_6mo_Reno'].to_numpy(),
        ordered['SPEI_6mo_Reno'].to_numpy(),
        equal_nan=True,
    )


def test_missing_month_needs_na_rm(station_table):
    gappy = station_table.drop(index=100)

    with pytest.raises(ValueError):
        add_spei_columns(gappy, scale=6)

    augmented = add_spei_columns(gappy, scale=6, na_rm=True, site='Reno')
    assert len(augmented) == len(gappy)


def test_non_uniform_latitude(station_table):
    table = station_table.copy()
    table.loc[5, 'LATITUDE'] = 40.0

    with pytest.raises(InvalidArgumentError):
        add_spei_columns(table)


def test_missing_column(station_table):
    with pytest.raises(InvalidArgumentError):
        add_spei_columns(station_table.drop(columns='TAVG'))


def test_duplicate_months(station_table):
    table = pd.concat([station_table, station_table.iloc[[0]]], ignore_index=True)

    with pytest.raises(InvalidArgumentError):
        add_spei_columns(table)
