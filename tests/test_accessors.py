# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Test radar cross section and sd_vvp threshold accessors."""

import numpy as np
import pytest

from biorad import (
    bind_into_vpts,
    integrate_profile,
    rcs,
    sd_vvp_threshold,
    set_rcs,
    set_sd_vvp_threshold
)

from conftest import make_vp


def test_rcs_getters(vp):
    """Test reading the radar cross section of each object type."""
    vpts = bind_into_vpts([vp, make_vp('2016-09-05 17:30')])
    assert rcs(vp) == 11.0
    assert rcs(vpts) == 11.0
    assert rcs(integrate_profile(vp)) == 11.0
    assert rcs([vp, make_vp(rcs=20.)]) == [11.0, 20.0]


def test_set_rcs_vp(vp):
    """Test that densities follow a new radar cross section."""
    output = set_rcs(vp, 22)
    assert output.rcs == 22
    np.testing.assert_allclose(output.data['dens'].values[:4], [5., 10., 0., 2.5])
    assert np.isnan(output.data['dens'].values[4])
    # input untouched
    assert vp.rcs == 11.0
    assert vp.data['dens'].values[0] == 10.


def test_set_rcs_vpts():
    """Test rescaling densities of a time series."""
    vpts = bind_into_vpts([make_vp(), make_vp('2016-09-05 17:30')])
    output = set_rcs(vpts, 22)
    np.testing.assert_allclose(output.data['dens'].values[0], [5., 5.])


def test_set_rcs_vpi(vp):
    """Test rescaling of integrated quantities."""
    vpi = integrate_profile(vp)
    output = set_rcs(vpi, 22)
    assert output.rcs == 22
    assert output['mtr'].iloc[0] == pytest.approx(3880.8 / 22)
    assert output['vid'].iloc[0] == pytest.approx(143. / 22)
    assert vpi['vid'].iloc[0] == pytest.approx(7.)


def test_set_rcs_list(vp):
    """Test setting the radar cross section of a list of profiles."""
    output = set_rcs([vp, make_vp('2016-09-05 17:30')], 5.5)
    assert rcs(output) == [5.5, 5.5]


def test_set_rcs_default_threshold():
    """Test warning and default threshold when none is set."""
    vp = make_vp(sd_vvp_thresh=None)
    with pytest.warns(UserWarning, match='defaulting to 2'):
        output = set_rcs(vp, 11)
    assert output.sd_vvp_threshold == 2


@pytest.mark.parametrize('value', [0, -1, 'big', None, True])
def test_set_rcs_invalid_value(vp, value):
    """Test error on non-positive or non-numeric cross sections."""
    with pytest.raises(ValueError, match='rcs'):
        set_rcs(vp, value)


def test_invalid_input():
    """Test errors on unsupported objects."""
    with pytest.raises(ValueError):
        rcs('vp')
    with pytest.raises(ValueError, match='list of vp'):
        set_rcs([make_vp(), 11], 11)


def test_sd_vvp_threshold(vp):
    """Test reading and setting the sd_vvp threshold."""
    assert sd_vvp_threshold(vp) == 2.0
    output = set_sd_vvp_threshold(vp, 4)
    assert sd_vvp_threshold(output) == 4
    np.testing.assert_array_equal(output.data['dens'].values, np.zeros(5))
    assert sd_vvp_threshold([vp, output]) == [2.0, 4]


def test_set_sd_vvp_threshold_vpi(vp):
    """Test that integrated profiles have no settable threshold."""
    with pytest.raises(ValueError):
        set_sd_vvp_threshold(integrate_profile(vp), 3)


def test_set_sd_vvp_threshold_vpts():
    """Test that a new threshold recomputes densities of a time series."""
    vpts = bind_into_vpts([make_vp(), make_vp('2016-09-05 17:30')])
    output = set_sd_vvp_threshold(vpts, 2.5)
    assert sd_vvp_threshold(output) == 2.5
    np.testing.assert_allclose(output.data['dens'].values[0], [10., 10.])
    np.testing.assert_array_equal(output.data['dens'].values[2], [0., 0.])
    output = set_sd_vvp_threshold(vpts, 3.5)
    np.testing.assert_array_equal(output.data['dens'].values, np.zeros((5, 2)))
    assert sd_vvp_threshold(vpts) == 2.0
