# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Reading vertical profiles and polar volumes, and fetching polar volumes from S3."""

import logging
import os
import re
import warnings

import boto3
from botocore import UNSIGNED
from botocore.config import Config
import cftime
import dask
import h5py
import numpy as np
import pandas as pd
import pyart
import xarray as xr
from tqdm import tqdm

from .profiles import VerticalProfile


log = logging.getLogger(__name__)
NEXRAD_BUCKET = 'noaa-nexrad-level2'
l2_datetime_pattern = re.compile(
    r"(?:[A-Z]{4})(?P<Y>[0-9]{4})(?P<m>[0-9]{2})(?P<d>[0-9]{2})_(?P<H>[0-9]{2})"
    r"(?P<M>[0-9]{2})(?P<S>[0-9]{2})"
)
odim_source_pattern = re.compile(r"(?P<key>[A-Z]{3}):(?P<value>[^,]*)")

# vol2bird profile quantities and their meaning, used as data variable attributes
vp_quantity_attrs = {
    'u': {'long_name': 'ground speed component west to east', 'units': 'm/s'},
    'v': {'long_name': 'ground speed component south to north', 'units': 'm/s'},
    'w': {'long_name': 'vertical speed', 'units': 'm/s'},
    'ff': {'long_name': 'horizontal speed', 'units': 'm/s'},
    'dd': {'long_name': 'direction', 'units': 'degrees clockwise from north'},
    'sd_vvp': {'long_name': 'VVP radial velocity standard deviation', 'units': 'm/s'},
    'gap': {'long_name': 'angular data gap detected'},
    'dbz': {'long_name': 'animal reflectivity factor', 'units': 'dBZ'},
    'eta': {'long_name': 'animal reflectivity', 'units': 'cm^2/km^3'},
    'dens': {'long_name': 'animal density', 'units': 'animals/km^3'},
    'DBZH': {'long_name': 'total reflectivity factor', 'units': 'dBZ'},
    'n': {'long_name': 'number of points VVP bird velocity analysis'},
    'n_dbz': {'long_name': 'number of points bird density estimate'},
    'n_all': {'long_name': 'number of points VVP st.dev. estimate'},
    'n_dbz_all': {'long_name': 'number of points total reflectivity estimate'},
}


def _decode(value):
    """Convert an HDF5 attribute value to a plain Python value."""
    if isinstance(value, bytes):
        return value.decode('utf-8')
    if isinstance(value, np.ndarray):
        if value.size == 1:
            return _decode(value.item())
        return value.tolist()
    if isinstance(value, np.generic):
        return value.item()
    return value


def _read_attrs(h5, group):
    if group not in h5:
        return {}
    return {key: _decode(value) for key, value in h5[group].attrs.items()}


def parse_odim_source(source):
    """Split an ODIM ``what/source`` string into a dictionary, e.g. ``{'NOD': 'seang'}``."""
    return {m.group('key'): m.group('value') for m in odim_source_pattern.finditer(source)}


def is_vpfile(path):
    """Check whether ``path`` is an ODIM HDF5 vertical profile file."""
    if not h5py.is_hdf5(path):
        return False
    with h5py.File(path, 'r') as h5:
        return str(_read_attrs(h5, 'what').get('object', '')).upper() == 'VP'


def is_odim_pvolfile(path):
    """Check whether ``path`` is an ODIM HDF5 polar volume or scan (not e.g. NetCDF4)."""
    if not h5py.is_hdf5(path):
        return False
    with h5py.File(path, 'r') as h5:
        conventions = str(_decode(h5.attrs.get('Conventions', b'')))
        if conventions.startswith('ODIM_H5'):
            return True
        return str(_read_attrs(h5, 'what').get('object', '')).upper() in ('PVOL', 'SCAN')


def read_vp(path):
    """Read a vertical profile from an ODIM HDF5 file as written by vol2bird.

    Parameters
    ----------
    path : str or os.PathLike
        ODIM HDF5 vertical profile file

    Returns
    -------
    VerticalProfile

    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"No such file: {path}")
    if not is_vpfile(path):
        raise ValueError(f"{path} is not a vertical profile in ODIM HDF5 format")

    with h5py.File(path, 'r') as h5:
        attributes = {group: _read_attrs(h5, group) for group in ('what', 'where', 'how')}
        quantities = {}
        dataset = h5['dataset1']
        for name in sorted(k for k in dataset if k.startswith('data')):
            what = _read_attrs(dataset[name], 'what')
            values = np.asarray(dataset[name]['data'][...], dtype='float64').reshape(-1)
            nodata = what.get('nodata')
            undetect = what.get('undetect')
            missing = np.zeros(values.shape, dtype=bool)
            if nodata is not None:
                missing |= values == nodata
            if undetect is not None:
                missing |= values == undetect
            values = values * what.get('gain', 1.0) + what.get('offset', 0.0)
            values[missing] = np.nan
            quantities[what['quantity']] = values

    where = attributes['where']
    if 'HGHT' in quantities:
        height = quantities.pop('HGHT')
    else:
        levels = int(where['levels'])
        height = where.get('minheight', 0) + where['interval'] * np.arange(levels)

    data_vars = {}
    for quantity, values in quantities.items():
        if quantity == 'gap':
            values = np.where(np.isnan(values), False, values != 0)
        data_vars[quantity] = xr.Variable(
            ('height',), values, vp_quantity_attrs.get(quantity, {})
        )
    data = xr.Dataset(
        data_vars,
        {'height': xr.Variable(('height',), height, {'units': 'm', 'long_name': 'layer bottom'})}
    )

    what = attributes['what']
    source = parse_odim_source(str(what.get('source', '')))
    radar = source.get('NOD') or source.get('RAD') or source.get('WMO')
    datetime = pd.to_datetime(f"{what['date']}{what['time']}", format='%Y%m%d%H%M%S')
    return VerticalProfile(radar, datetime, data, attributes)


@dask.delayed
def _read_vp_delayed(path):
    return read_vp(path)


def read_vpfiles(files):
    """Read one or more ODIM HDF5 vertical profile files.

    Parameters
    ----------
    files : str or os.PathLike or iterable thereof

    Returns
    -------
    VerticalProfile or list of VerticalProfile
        A single profile for a single path, a list otherwise. Several files are read in
        parallel.

    """
    if isinstance(files, (str, os.PathLike)):
        return read_vp(files)
    files = list(files)
    for f in files:
        if not os.path.isfile(f):
            raise FileNotFoundError(f"No such file: {f}")
    return list(dask.compute(*[_read_vp_delayed(f) for f in files]))


def read_pvolfile(path, sweeps=None):
    """Read a polar volume into a Py-ART Radar, keeping the file's field names.

    Parameters
    ----------
    path : str or os.PathLike
        Polar volume in ODIM HDF5 format, or any other format Py-ART reads (NEXRAD Level
        II, IRIS, ...)
    sweeps : iterable of int, optional
        Sweep indices to keep. Defaults to all sweeps.

    Returns
    -------
    pyart.core.Radar

    """
    path = os.fspath(path)
    if not os.path.isfile(path):
        raise FileNotFoundError(f"No such file: {path}")
    if is_odim_pvolfile(path):
        radar = pyart.aux_io.read_odim_h5(path, file_field_names=True)
    else:
        radar = pyart.io.read(path, file_field_names=True)
    if sweeps is not None:
        radar = radar.extract_sweeps(list(sweeps))
    return radar


def scan_times(radar):
    """Median time of each sweep of a Py-ART Radar as Python datetimes."""
    sweep_time_offsets = [
        np.median(radar.time['data'][s:e + 1]) for s, e in radar.iter_start_end()
    ]
    return list(cftime.num2date(
        sweep_time_offsets, radar.time['units'], only_use_cftime_datetimes=False,
        only_use_python_datetimes=True
    ))


def _s3_client():
    return boto3.client('s3', config=Config(signature_version=UNSIGNED))


def list_pvolfiles(radar, date_min, date_max, bucket_name=NEXRAD_BUCKET):
    """List NEXRAD Level II polar volumes of a radar within a time range on S3.

    Parameters
    ----------
    radar : str
        Four-letter NEXRAD site identifier, e.g. ``'KBGM'``
    date_min, date_max : pandas.Timestamp or str
        Inclusive time range in UTC
    bucket_name : str
        Name of the public NEXRAD bucket (defaults to noaa-nexrad-level2)

    Returns
    -------
    list of str
        S3 keys of the matching volumes

    """
    date_min = pd.Timestamp(date_min)
    date_max = pd.Timestamp(date_max)
    if date_max < date_min:
        raise ValueError("'date_max' cannot be before 'date_min'")
    radar = radar.upper()

    s3 = _s3_client()
    paginator = s3.get_paginator('list_objects_v2')
    file_keys = []
    for date in pd.date_range(date_min.floor('D'), date_max.floor('D'), freq='D'):
        prefix = date.strftime(f"%Y/%m/%d/{radar}/")
        found = False
        for page in paginator.paginate(Bucket=bucket_name, Prefix=prefix):
            for obj in page.get('Contents', []):
                found = True
                match = l2_datetime_pattern.search(obj['Key'].split('/')[-1])
                if match and (
                    date_min
                    <= pd.Timestamp("{Y}-{m}-{d}T{H}:{M}:{S}".format(**match.groupdict()))
                    <= date_max
                ) and not obj['Key'].endswith('_MDM'):
                    file_keys.append(obj['Key'])
        if not found:
            warnings.warn(date.strftime(f"No files found for {radar} on %Y-%m-%d"))
    return file_keys


def download_pvolfiles(
    radar, date_min, date_max, directory='.', overwrite=False, bucket_name=NEXRAD_BUCKET
):
    """Download NEXRAD Level II polar volumes from S3 into a local directory tree.

    Files are stored as ``directory/<radar>/<YYYY>/<MM>/<DD>/<file>``.

    Parameters
    ----------
    radar : str
        Four-letter NEXRAD site identifier
    date_min, date_max : pandas.Timestamp or str
        Inclusive time range in UTC
    directory : str or os.PathLike
        Root of the local file tree
    overwrite : bool
        Download files that already exist locally
    bucket_name : str
        Name of the public NEXRAD bucket

    Returns
    -------
    list of str
        Local paths of all matching volumes

    """
    file_keys = list_pvolfiles(radar, date_min, date_max, bucket_name=bucket_name)
    s3 = _s3_client()
    filepaths = []
    for key in tqdm(file_keys, desc=f"Downloading {radar.upper()}", unit="file"):
        year, month, day, site, filename = key.split('/')
        target_dir = os.path.join(os.fspath(directory), site, year, month, day)
        os.makedirs(target_dir, exist_ok=True)
        f = os.path.join(target_dir, filename)
        if overwrite or not os.path.isfile(f):
            log.info(f"Downloading {f}")
            s3.download_file(bucket_name, key, f)
        filepaths.append(f)
    return filepaths
