# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures: small vol2bird-style vertical profiles."""

import h5py
import numpy as np
import pandas as pd
import pytest
import xarray as xr

from biorad.profiles import VerticalProfile


NODATA = -1000000.0
UNDETECT = -999999.0

HEIGHTS = np.array([0., 200., 400., 600., 800.])
PROFILE = {
    'eta': np.array([110., 220., 330., 55., np.nan]),
    'dens': np.array([10., 20., 0., 5., np.nan]),
    'sd_vvp': np.array([3., 3., 1., 3., 3.]),
    'ff': np.array([10., 5., 8., 10., np.nan]),
    'u': np.array([10., 0., 8., 10., np.nan]),
    'v': np.array([0., 5., 0., 0., np.nan]),
    'w': np.array([0.1, 0.2, 0.3, 0.1, np.nan]),
    'dd': np.array([90., 0., 90., 90., np.nan]),
    'dbz': np.array([5., 8., 9., 1., np.nan]),
    'DBZH': np.array([6., 9., 20., 2., np.nan]),
    'gap': np.array([0., 0., 1., 0., 0.]),
}


def write_odim_vp(path, datetime='2016-09-05 17:15:00', source='WMO:02606,RAD:SE50,NOD:seang',
                  heights=HEIGHTS, quantities=PROFILE, rcs=11.0, sd_vvp_thresh=2.0,
                  include_height=True):
    """Write a minimal ODIM HDF5 vertical profile as vol2bird does."""
    datetime = pd.Timestamp(datetime)
    with h5py.File(path, 'w') as h5:
        h5.attrs['Conventions'] = np.bytes_('ODIM_H5/V2_3')
        what = h5.create_group('what')
        what.attrs['object'] = np.bytes_('VP')
        what.attrs['date'] = np.bytes_(datetime.strftime('%Y%m%d'))
        what.attrs['time'] = np.bytes_(datetime.strftime('%H%M%S'))
        what.attrs['source'] = np.bytes_(source)
        where = h5.create_group('where')
        where.attrs['lat'] = 56.3675
        where.attrs['lon'] = 12.8517
        where.attrs['height'] = 209.0
        where.attrs['levels'] = np.int64(len(heights))
        where.attrs['interval'] = 200.0
        where.attrs['minheight'] = float(heights[0])
        where.attrs['maxheight'] = float(heights[-1] + 200)
        how = h5.create_group('how')
        how.attrs['task'] = np.bytes_('vol2bird')
        how.attrs['rcs_bird'] = rcs
        how.attrs['sd_vvp_thresh'] = sd_vvp_thresh
        how.attrs['wavelength'] = 5.3

        dataset = h5.create_group('dataset1')
        all_quantities = dict(quantities)
        if include_height:
            all_quantities = {'HGHT': heights, **all_quantities}
        for i, (quantity, values) in enumerate(all_quantities.items(), start=1):
            group = dataset.create_group(f'data{i}')
            encoded = np.where(np.isnan(values), NODATA, values).reshape(-1, 1)
            group.create_dataset('data', data=encoded)
            data_what = group.create_group('what')
            data_what.attrs['quantity'] = np.bytes_(quantity)
            data_what.attrs['gain'] = 1.0
            data_what.attrs['offset'] = 0.0
            data_what.attrs['nodata'] = NODATA
            data_what.attrs['undetect'] = UNDETECT
    return path


@pytest.fixture
def vp_file(tmp_path):
    return write_odim_vp(tmp_path / 'vp.h5')


def make_vp(datetime='2016-09-05 17:15:00', radar='seang', scale=1.0, heights=HEIGHTS,
            rcs=11.0, sd_vvp_thresh=2.0):
    """Build a VerticalProfile in memory, with eta and dens scaled by ``scale``."""
    data_vars = {}
    for quantity, values in PROFILE.items():
        if quantity in ('eta', 'dens'):
            values = values * scale
        data_vars[quantity] = ('height', values.copy())
    data = xr.Dataset(data_vars, {'height': ('height', np.asarray(heights, dtype=float))})
    attributes = {
        'what': {'source': f'NOD:{radar}'},
        'where': {'interval': 200.0, 'lat': 56.3675, 'lon': 12.8517},
        'how': {'rcs_bird': rcs, 'sd_vvp_thresh': sd_vvp_thresh},
    }
    return VerticalProfile(radar, pd.Timestamp(datetime), data, attributes)


@pytest.fixture
def vp():
    return make_vp()
