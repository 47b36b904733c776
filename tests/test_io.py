# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Test reading of vertical profiles and listing of polar volumes."""

import h5py
import numpy as np
import pandas as pd
import pyart
import pytest

from biorad import io
from biorad.io import is_vpfile, parse_odim_source, read_vp, read_vpfiles
from biorad.profiles import VerticalProfile

from conftest import HEIGHTS, write_odim_vp


def test_parse_odim_source():
    """Test splitting of ODIM source strings."""
    source = parse_odim_source("WMO:02606,RAD:SE50,PLC:Angelholm,NOD:seang")
    assert source['NOD'] == 'seang'
    assert source['RAD'] == 'SE50'
    assert source['PLC'] == 'Angelholm'


def test_is_vpfile(vp_file, tmp_path):
    """Test recognition of vertical profile files."""
    not_hdf5 = tmp_path / 'volume.txt'
    not_hdf5.write_text('no hdf5')
    assert is_vpfile(vp_file)
    assert not is_vpfile(not_hdf5)


def test_read_vp_metadata(vp_file):
    """Test radar, datetime and attributes of a read profile."""
    vp = read_vp(vp_file)
    assert isinstance(vp, VerticalProfile)
    assert vp.radar == 'seang'
    assert vp.datetime == pd.Timestamp('2016-09-05 17:15:00')
    assert vp.rcs == 11.0
    assert vp.sd_vvp_threshold == 2.0
    assert vp.attributes['how']['task'] == 'vol2bird'
    assert vp.attributes['where']['levels'] == 5
    assert vp.interval == 200.0


def test_read_vp_data(vp_file):
    """Test decoding of profile quantities."""
    vp = read_vp(vp_file)
    np.testing.assert_array_equal(vp.heights, HEIGHTS)
    assert 'HGHT' not in vp.data
    np.testing.assert_array_equal(vp.data['dens'].values[:4], [10., 20., 0., 5.])
    assert np.isnan(vp.data['dens'].values[4])
    assert vp.data['gap'].dtype == bool
    assert vp.data['gap'].values.tolist() == [False, False, True, False, False]
    assert vp.data['ff'].attrs['units'] == 'm/s'


def test_read_vp_gain_offset_undetect(tmp_path):
    """Test scaling with gain and offset and masking of undetect values."""
    path = write_odim_vp(tmp_path / 'vp.h5', quantities={'eta': np.array([1., 2., 3., 4., 5.])})
    with h5py.File(path, 'r+') as h5:
        group = h5['dataset1/data2']
        group['what'].attrs['gain'] = 2.0
        group['what'].attrs['offset'] = 1.0
        group['data'][0, 0] = group['what'].attrs['undetect']
    vp = read_vp(path)
    assert np.isnan(vp.data['eta'].values[0])
    np.testing.assert_array_equal(vp.data['eta'].values[1:], [5., 7., 9., 11.])


def test_read_vp_heights_from_where(tmp_path):
    """Test layer heights when the profile has no HGHT quantity."""
    path = write_odim_vp(tmp_path / 'vp.h5', include_height=False)
    vp = read_vp(path)
    np.testing.assert_array_equal(vp.heights, HEIGHTS)


def test_read_vp_missing_file(tmp_path):
    """Test error on a missing file."""
    with pytest.raises(FileNotFoundError):
        read_vp(tmp_path / 'missing.h5')


def test_read_pvolfile_missing_file(tmp_path):
    """Test error on a missing polar volume."""
    with pytest.raises(FileNotFoundError):
        io.read_pvolfile(tmp_path / 'missing.h5')


def test_is_odim_pvolfile(tmp_path):
    """Test that ODIM volumes are told apart from other HDF5 based formats."""
    odim = tmp_path / 'pvol.h5'
    with h5py.File(odim, 'w') as h5:
        h5.attrs['Conventions'] = np.bytes_('ODIM_H5/V2_2')
        h5.create_group('what').attrs['object'] = np.bytes_('PVOL')
    cfradial = tmp_path / 'volume.nc'
    pyart.io.write_cfradial(str(cfradial), pyart.testing.make_target_radar(), format='NETCDF4')
    assert h5py.is_hdf5(cfradial)
    assert io.is_odim_pvolfile(odim)
    assert not io.is_odim_pvolfile(cfradial)


def test_read_pvolfile_cfradial(tmp_path):
    """Test reading a NetCDF4 CfRadial volume through the generic reader."""
    path = tmp_path / 'volume.nc'
    radar = pyart.testing.make_target_radar()
    pyart.io.write_cfradial(str(path), radar, format='NETCDF4')
    volume = io.read_pvolfile(path)
    assert 'reflectivity' in volume.fields
    assert volume.nrays == radar.nrays
    assert volume.ngates == radar.ngates
    assert io.read_pvolfile(path, sweeps=[0]).nsweeps == 1


def test_read_vpfiles_single_and_many(tmp_path):
    """Test reading one or several files."""
    first = write_odim_vp(tmp_path / 'a.h5', datetime='2016-09-05 17:15')
    second = write_odim_vp(tmp_path / 'b.h5', datetime='2016-09-05 17:30')
    assert isinstance(read_vpfiles(str(first)), VerticalProfile)
    profiles = read_vpfiles([first, second])
    assert [vp.datetime.minute for vp in profiles] == [15, 30]


def test_read_vpfiles_missing(tmp_path, vp_file):
    """Test that a missing file among several raises."""
    with pytest.raises(FileNotFoundError):
        read_vpfiles([vp_file, tmp_path / 'missing.h5'])


class _FakePaginator:
    def __init__(self, keys):
        self.keys = keys

    def paginate(self, Bucket, Prefix):
        contents = [{'Key': k} for k in self.keys if k.startswith(Prefix)]
        return [{'Contents': contents}] if contents else [{}]


class _FakeS3:
    def __init__(self, keys):
        self.keys = keys
        self.downloaded = []

    def get_paginator(self, name):
        return _FakePaginator(self.keys)

    def download_file(self, bucket, key, filename):
        self.downloaded.append(key)
        with open(filename, 'w') as f:
            f.write(key)


@pytest.fixture
def fake_s3(monkeypatch):
    s3 = _FakeS3([
        '2020/05/01/KBGM/KBGM20200501_225812_V06',
        '2020/05/01/KBGM/KBGM20200501_235332_V06',
        '2020/05/01/KBGM/KBGM20200501_235332_V06_MDM',
        '2020/05/02/KBGM/KBGM20200502_000322_V06',
        '2020/05/02/KBGM/KBGM20200502_013000_V06',
    ])
    monkeypatch.setattr(io, '_s3_client', lambda: s3)
    return s3


def test_list_pvolfiles(fake_s3):
    """Test selection of S3 keys by the time in their file name."""
    keys = io.list_pvolfiles('kbgm', '2020-05-01 23:00', '2020-05-02 00:30')
    assert keys == [
        '2020/05/01/KBGM/KBGM20200501_235332_V06',
        '2020/05/02/KBGM/KBGM20200502_000322_V06',
    ]


def test_list_pvolfiles_bad_range(fake_s3):
    """Test error on an inverted time range."""
    with pytest.raises(ValueError):
        io.list_pvolfiles('KBGM', '2020-05-02', '2020-05-01')


def test_download_pvolfiles(fake_s3, tmp_path):
    """Test local file layout and skipping of existing files."""
    paths = io.download_pvolfiles('KBGM', '2020-05-01 23:00', '2020-05-02 00:30', tmp_path)
    assert paths[0] == str(tmp_path / 'KBGM' / '2020' / '05' / '01' / 'KBGM20200501_235332_V06')
    assert len(fake_s3.downloaded) == 2

    io.download_pvolfiles('KBGM', '2020-05-01 23:00', '2020-05-02 00:30', tmp_path)
    assert len(fake_s3.downloaded) == 2
