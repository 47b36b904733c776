# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Validation and serialization of vol2bird processing options."""

import csv
from dataclasses import dataclass, fields
from datetime import datetime
import logging
from numbers import Integral, Real
import os
import warnings

import pandas as pd


log = logging.getLogger(__name__)

OPTIONS_FILENAME = "options.conf"
dbz_quantities = ('DBZ', 'DBZH', 'DBZV', 'TH', 'TV')

# vol2bird option names, in the order vol2bird documents them
_option_names = {
    'rcs': 'SIGMA_BIRD',
    'rho_hv': 'RHOHVMIN',
    'elev_min': 'ELEVMIN',
    'elev_max': 'ELEVMAX',
    'azim_min': 'AZIMMIN',
    'azim_max': 'AZIMMAX',
    'range_min': 'RANGEMIN',
    'range_max': 'RANGEMAX',
    'n_layer': 'NLAYER',
    'h_layer': 'HLAYER',
    'nyquist_min': 'MIN_NYQUIST_VELOCITY',
    'dbz_quantity': 'DBZTYPE',
    'dual_pol': 'DUALPOL',
    'dealias': 'DEALIAS_VRAD',
}


def _is_number(value):
    return isinstance(value, Real) and not isinstance(value, bool)


def _is_bool(value):
    return isinstance(value, bool)


def format_option_value(value):
    """Format a value the way vol2bird expects it in an options file."""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, Integral):
        return str(int(value))
    if isinstance(value, Real):
        return f"{float(value):.15g}"
    return str(value)


@dataclass(frozen=True)
class Vol2BirdOptions:
    """User settings passed to vol2bird.

    Parameters
    ----------
    sd_vvp_threshold : float, optional
        Lower threshold in radial velocity standard deviation (m/s). Biological signals with
        lower ``sd_vvp`` are set to zero. If None, vol2bird chooses 2 m/s for C-band and
        1 m/s for S-band radars.
    rcs : float
        Radar cross section per bird in cm^2.
    dual_pol : bool
        Filter meteorological echoes using the correlation coefficient ``rho_hv``.
    rho_hv : float
        Lower threshold in correlation coefficient used to filter meteorological scattering.
    elev_min, elev_max : float
        Minimum and maximum scan elevation in degrees.
    azim_min, azim_max : float
        Minimum and maximum azimuth in degrees clockwise from north. Only affects
        reflectivity-derived quantities.
    range_min, range_max : float
        Minimum and maximum range in meter.
    n_layer : int
        Number of altitude layers in the profile.
    h_layer : float
        Width of altitude layers in meter.
    dealias : bool
        Dealias radial velocities (torus mapping).
    nyquist_min : float, optional
        Minimum Nyquist velocity of scans to include (m/s). Defaults to 5 when dealiasing,
        25 otherwise.
    dbz_quantity : str
        ODIM reflectivity factor quantity, e.g. DBZH, DBZV, TH, TV.
    mistnet : bool
        Use the MistNet segmentation model.

    """

    sd_vvp_threshold: float = None
    rcs: float = 11
    dual_pol: bool = False
    rho_hv: float = 0.95
    elev_min: float = 0
    elev_max: float = 90
    azim_min: float = 0
    azim_max: float = 360
    range_min: float = 5000
    range_max: float = 35000
    n_layer: int = 20
    h_layer: float = 200
    dealias: bool = True
    nyquist_min: float = None
    dbz_quantity: str = "DBZH"
    mistnet: bool = False

    def __post_init__(self):
        if self.nyquist_min is None and _is_bool(self.dealias):
            object.__setattr__(self, 'nyquist_min', 5 if self.dealias else 25)

    @classmethod
    def field_names(cls):
        return [f.name for f in fields(cls)]

    def validate(self):
        """Check ranges and types of all options.

        Raises
        ------
        ValueError
            When an option is of the wrong type or out of range.

        """
        if self.sd_vvp_threshold is not None and (
            not _is_number(self.sd_vvp_threshold) or self.sd_vvp_threshold <= 0
        ):
            raise ValueError(
                "invalid 'sd_vvp_threshold' argument, radial velocity standard deviation "
                "threshold should be a positive numeric value"
            )
        if not _is_number(self.rcs) or self.rcs <= 0:
            raise ValueError(
                "invalid 'rcs' argument, radar cross section should be a positive numeric "
                "value"
            )
        if not _is_bool(self.dual_pol):
            raise ValueError("invalid 'dual_pol' argument, should be logical")
        if not _is_number(self.rho_hv) or self.rho_hv <= 0 or self.rho_hv > 1:
            raise ValueError(
                "invalid 'rho_hv' argument, correlation coefficient threshold should be a "
                "numeric value between 0 and 1"
            )
        for name in ('elev_min', 'elev_max'):
            value = getattr(self, name)
            if not _is_number(value) or value < -90 or value > 90:
                raise ValueError(
                    f"invalid '{name}' argument, elevation should be between -90 and 90 "
                    "degrees"
                )
        if self.elev_max < self.elev_min:
            raise ValueError("'elev_max' cannot be smaller than 'elev_min'")
        for name in ('azim_min', 'azim_max'):
            value = getattr(self, name)
            if not _is_number(value) or value < 0 or value > 360:
                raise ValueError(
                    f"invalid '{name}' argument, azimuth should be between 0 and 360 degrees"
                )
        for name in ('range_min', 'range_max'):
            value = getattr(self, name)
            if not _is_number(value) or value < 0:
                raise ValueError(
                    f"invalid '{name}' argument, range should be a positive numeric value"
                )
        if self.range_max < self.range_min:
            raise ValueError("'range_max' cannot be smaller than 'range_min'")
        if (
            not isinstance(self.n_layer, Integral) or isinstance(self.n_layer, bool)
            or self.n_layer <= 0
        ):
            raise ValueError("'n_layer' should be a positive integer")
        if not _is_number(self.h_layer) or self.h_layer < 0:
            raise ValueError("invalid 'h_layer' argument, should be a positive numeric value")
        if not _is_bool(self.dealias):
            raise ValueError("invalid 'dealias' argument, should be logical")
        if not _is_number(self.nyquist_min) or self.nyquist_min < 0:
            raise ValueError(
                "invalid 'nyquist_min' argument, should be a positive numeric value"
            )
        if self.dbz_quantity not in dbz_quantities:
            warnings.warn(
                f"expecting 'dbz_quantity' to be one of {', '.join(dbz_quantities)}"
            )
        if not _is_bool(self.mistnet):
            raise ValueError("invalid 'mistnet' argument, should be logical")
        return self

    def to_table(self):
        """Return the options as a vol2bird option table.

        Returns
        -------
        pandas.DataFrame
            Columns ``option``, ``is`` and ``value`` (all strings), one row per option.

        """
        names = list(_option_names.values())
        values = [format_option_value(getattr(self, attr)) for attr in _option_names]

        if self.sd_vvp_threshold is not None:
            names.insert(0, 'STDEV_BIRD')
            values.insert(0, format_option_value(self.sd_vvp_threshold))
        if self.mistnet:
            names.append('USE_MISTNET')
            values.append(format_option_value(True))

        return pd.DataFrame({'option': names, 'is': ['='] * len(names), 'value': values})


def backup_options_file(path):
    """Rename an existing options file to ``<path>.<YYYYmmddHHMMSS>``.

    Returns
    -------
    str or None
        New path of the existing file, None if there was none.

    """
    path = os.fspath(path)
    if not os.path.exists(path):
        return None
    saved_as = f"{path}.{datetime.now():%Y%m%d%H%M%S}"
    warnings.warn(
        f"{OPTIONS_FILENAME} file found in directory {os.path.dirname(path)}. Renamed to "
        f"{os.path.basename(saved_as)} to prevent overwrite..."
    )
    os.rename(path, saved_as)
    return saved_as


def write_options_file(options, path):
    """Write vol2bird options to ``path``, moving any existing file out of the way.

    Parameters
    ----------
    options : Vol2BirdOptions
        Validated options
    path : str or os.PathLike
        Destination of the options file

    Returns
    -------
    str or None
        Path the pre-existing options file was renamed to, if there was one.

    """
    path = os.fspath(path)
    saved_as = backup_options_file(path)
    options.to_table().to_csv(
        path, sep=' ', header=False, index=False, quoting=csv.QUOTE_NONE
    )
    log.debug(f"Wrote vol2bird options to {path}")
    return saved_as
