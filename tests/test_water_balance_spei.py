#!/usr/bin/env python
# -*- coding: utf-8 -*-
"""
Tests for the climatic water balance and SPEI calculation.

Covers timestamp alignment of precipitation and PET, the missing-value
contract of get_spei, the anchor policy and xarray input.
"""

import logging

import numpy as np
import pandas as pd
import pytest
import xarray as xr

from climvar import (
    FITTED_INDEX_VALID_MAX,
    FITTED_INDEX_VALID_MIN,
    AnchorPolicy,
    InvalidArgumentError,
    SpeiResult,
    get_cwdiff,
    get_spei,
)


# ============================================================================
# WATER BALANCE
# ============================================================================

def test_cwdiff_is_precip_minus_pet(precip, temperature):
    print("\n1. Climatic water difference")
    pet = precip * 0.5 + 3.0
    cwdiff = get_cwdiff(precip, pet)

    assert cwdiff.name == 'cwdiff'
    assert cwdiff.index.equals(precip.index)
    np.testing.assert_allclose(cwdiff.to_numpy(), (precip - pet).to_numpy())
    print("   [PASS] cwdiff == precip - pet")


def test_cwdiff_matches_by_timestamp(precip):
    pet = pd.Series(np.arange(len(precip), dtype=float), index=precip.index)
    shuffled = pet.iloc[::-1]

    cwdiff = get_cwdiff(precip, shuffled)

    np.testing.assert_allclose(cwdiff.to_numpy(), (precip - pet).to_numpy())


def test_cwdiff_rejects_misaligned_series(precip):
    shifted = precip.copy()
    shifted.index = shifted.index + pd.DateOffset(months=1)

    with pytest.raises(InvalidArgumentError):
        get_cwdiff(precip, shifted)


def test_cwdiff_rejects_length_mismatch(precip):
    with pytest.raises(InvalidArgumentError):
        get_cwdiff(precip, precip.iloc[:-1])


def test_cwdiff_accepts_dataarray(precip):
    da = xr.DataArray(precip.to_numpy(), coords={'time': precip.index}, dims='time')
    cwdiff = get_cwdiff(da, precip * 0.0)
    np.testing.assert_allclose(cwdiff.to_numpy(), precip.to_numpy())


# ============================================================================
# SPEI
# ============================================================================

@pytest.mark.parametrize('scale', [1, 3, 6, 12])
def test_spei_leading_missing_values(cwdiff, scale):
    print(f"\n2. SPEI-{scale} missing values")
    result = get_spei(cwdiff, scale=scale)

    assert isinstance(result, SpeiResult)
    assert len(result.fitted) == len(cwdiff)
    assert result.fitted.iloc[:scale - 1].isna().all()
    assert result.fitted.iloc[scale - 1:].notna().all()
    assert result.n_missing == scale - 1
    print(f"   [PASS] {result.n_missing} leading missing values")


def test_spei_values_are_clipped_and_centred(cwdiff):
    result = get_spei(cwdiff, scale=6)
    values = result.fitted.dropna()

    assert values.min() >= FITTED_INDEX_VALID_MIN
    assert values.max() <= FITTED_INDEX_VALID_MAX
    assert abs(values.mean()) < 0.3
    assert 0.7 < values.std() < 1.3


def test_spei_result_diagnostics(cwdiff):
    result = get_spei(cwdiff, scale=3, locname='Reno')

    assert result.fitted.name == 'SPEI_3mo'
    assert 'Log-Logistic' in result.fitted.attrs['long_name']
    assert list(result.coefficients.index) == list(range(1, 13))
    assert {'shape', 'loc', 'scale', 'n_samples'} <= set(result.coefficients.columns)
    assert result.scale == 3
    assert result.locname == 'Reno'
    np.testing.assert_allclose(
        result.accumulated.iloc[2:].to_numpy(),
        cwdiff.rolling(3).sum().iloc[2:].to_numpy(),
    )


def test_spei_pearson3(cwdiff):
    result = get_spei(cwdiff, scale=6, distribution='pearson3')
    assert result.n_missing == 5
    assert 'skew' in result.coefficients.columns


def test_spei_no_warning_for_clean_series(cwdiff, caplog):
    with caplog.at_level(logging.WARNING, logger='climvar.indices'):
        get_spei(cwdiff, scale=6)

    warnings = [r for r in caplog.records
                if r.name == 'climvar.indices' and r.levelno == logging.WARNING]
    assert not warnings


def test_spei_warns_on_extra_missing_values(cwdiff, caplog):
    print("\n3. Warning when missing values exceed scale - 1")
    gappy = cwdiff.copy()
    gappy.iloc[100] = np.nan

    with caplog.at_level(logging.WARNING, logger='climvar.indices'):
        result = get_spei(gappy, scale=6, na_rm=True, locname='Reno')

    assert result.n_missing == 5 + 6
    assert any('invalid values' in r.getMessage() for r in caplog.records)
    print("   [PASS] warning logged")


def test_spei_missing_values_without_na_rm(cwdiff):
    gappy = cwdiff.copy()
    gappy.iloc[50] = np.nan

    with pytest.raises(ValueError):
        get_spei(gappy, scale=6)


def test_spei_series_too_short(cwdiff):
    with pytest.raises(ValueError):
        get_spei(cwdiff.iloc[:4], scale=6)


def test_spei_requires_time_index(cwdiff):
    with pytest.raises(InvalidArgumentError):
        get_spei(cwdiff.reset_index(drop=True), scale=3)


def test_spei_rejects_unsorted_timestamps(cwdiff):
    with pytest.raises(InvalidArgumentError):
        get_spei(cwdiff.iloc[::-1], scale=3)


def test_spei_rejects_unknown_distribution(cwdiff):
    with pytest.raises(InvalidArgumentError):
        get_spei(cwdiff, scale=3, distribution='gumbel')


def test_anchor_policies_agree_without_gaps(cwdiff):
    end = get_spei(cwdiff, scale=6, anchor='end')
    start = get_spei(cwdiff, scale=6, anchor=AnchorPolicy.start)

    assert end.periods.equals(start.periods)
    pd.testing.assert_series_equal(end.fitted, start.fitted)


def test_anchor_policies_differ_with_gap(caplog):
    print("\n4. Anchor policy with a missing month")
    rng = np.random.default_rng(3)
    index = pd.date_range('1990-01-01', periods=361, freq='MS').delete(100)
    series = pd.Series(rng.normal(0, 30, len(index)), index=index)

    with caplog.at_level(logging.WARNING, logger='climvar.indices'):
        end = get_spei(series, scale=3, anchor='end')
        start = get_spei(series, scale=3, anchor='start')

    assert end.periods[-1] == pd.Period('2020-01', freq='M')
    assert end.periods[0] == pd.Period('1990-02', freq='M')
    assert start.periods[0] == pd.Period('1990-01', freq='M')
    assert (end.periods.month != start.periods.month).all()
    assert any('not consecutive' in r.getMessage() for r in caplog.records)
    print("   [PASS] end and start anchors pin different calendars")


def test_spei_accepts_dataarray(cwdiff):
    da = xr.DataArray(cwdiff.to_numpy(), coords={'time': cwdiff.index}, dims='time')

    from_da = get_spei(da, scale=6)
    from_series = get_spei(cwdiff, scale=6)

    np.testing.assert_allclose(
        from_da.fitted.to_numpy(), from_series.fitted.to_numpy(), equal_nan=True
    )


def test_spei_calibration_period(cwdiff):
    full = get_spei(cwdiff, scale=6)
    calibrated = get_spei(
        cwdiff, scale=6, calibration_start_year=1995, calibration_end_year=2010
    )

    assert calibrated.n_missing == 5
    assert (calibrated.coefficients['n_samples'] < full.coefficients['n_samples']).all()


def test_spei_plot(cwdiff):
    import matplotlib.pyplot as plt

    get_spei(cwdiff, scale=12, plot=True, locname='Reno')

    ax = plt.gcf().axes[0]
    assert ax.get_title() == 'Reno - 12 month SPEI'
    assert ax.get_ylabel() == 'SPEI'


def test_spei_rejects_two_values_in_one_month(cwdiff):
    extra = pd.Series([5.0], index=[cwdiff.index[-1] + pd.Timedelta(days=19)])
    doubled = pd.concat([cwdiff, extra])

    assert doubled.index.is_monotonic_increasing and doubled.index.is_unique
    with pytest.raises(InvalidArgumentError):
        get_spei(doubled, scale=3)
