# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Vertical profile (vp), time series (vpts) and integrated profile (vpi) classes."""

import copy
import logging
import warnings

import numpy as np
import pandas as pd
import xarray as xr


log = logging.getLogger(__name__)

DEFAULT_SD_VVP_THRESHOLD = 2.0
velocity_quantities = ('ff', 'dd', 'u', 'v', 'w')
reflectivity_quantities = ('dbz', 'DBZH')


def _threshold_mask(data, threshold):
    """Boolean mask of layers where the radial velocity standard deviation is too low."""
    return (data['sd_vvp'] < threshold).fillna(False)


class _ProfileBase:
    """Shared accessors of vp and vpts objects."""

    def __init__(self, radar, data, attributes):
        self.radar = radar
        self.data = data
        self.attributes = {
            group: dict(attributes.get(group, {})) for group in ('what', 'where', 'how')
        }

    @property
    def heights(self):
        return self.data['height'].values

    @property
    def quantities(self):
        return list(self.data.data_vars)

    @property
    def interval(self):
        """Altitude layer thickness in meter."""
        interval = self.attributes['where'].get('interval')
        if interval is None and self.data.sizes['height'] > 1:
            interval = float(np.diff(self.heights)[0])
        return interval

    @property
    def rcs(self):
        """Assumed radar cross section per individual in cm^2."""
        return self.attributes['how'].get('rcs_bird')

    @rcs.setter
    def rcs(self, value):
        _check_positive(value, 'rcs')
        self.attributes['how']['rcs_bird'] = value
        self._update_density()

    @property
    def sd_vvp_threshold(self):
        """Lower threshold in radial velocity standard deviation in m/s."""
        return self.attributes['how'].get('sd_vvp_thresh')

    @sd_vvp_threshold.setter
    def sd_vvp_threshold(self, value):
        _check_positive(value, 'sd_vvp_threshold')
        self.attributes['how']['sd_vvp_thresh'] = value
        if self.rcs is not None:
            self._update_density()

    def _update_density(self):
        """Recompute bird density from reflectivity and the current rcs and threshold."""
        threshold = self.attributes['how'].get('sd_vvp_thresh')
        if not _is_number(threshold):
            warnings.warn(
                f"threshold for sd_vvp not set, defaulting to {DEFAULT_SD_VVP_THRESHOLD:g} m/s"
            )
            threshold = DEFAULT_SD_VVP_THRESHOLD
            self.attributes['how']['sd_vvp_thresh'] = threshold
        dens = self.data['eta'] / self.rcs
        dens = dens.where(~_threshold_mask(self.data, threshold), 0)
        dens.attrs = dict(self.data['dens'].attrs) if 'dens' in self.data else {}
        self.data['dens'] = dens

    def get_quantity(self, quantity):
        """Return a profile quantity with values below the sd_vvp threshold masked.

        Parameters
        ----------
        quantity : str
            Name of the profile quantity, e.g. ``'dens'``, ``'eta'`` or ``'ff'``.

        Returns
        -------
        xarray.DataArray
            ``eta`` is set to 0, reflectivity to -inf and speed/direction quantities to NaN
            in layers where ``sd_vvp`` is below the threshold.

        """
        if quantity not in self.data:
            raise ValueError(
                f"quantity '{quantity}' not found, available: {', '.join(self.quantities)}"
            )
        output = self.data[quantity].copy()
        threshold = self.sd_vvp_threshold
        if not _is_number(threshold) or 'sd_vvp' not in self.data:
            return output
        below = _threshold_mask(self.data, threshold)
        if quantity == 'eta':
            output = output.where(~below, 0)
        elif quantity in reflectivity_quantities:
            output = output.where(~below, -np.inf)
        elif quantity in velocity_quantities:
            output = output.where(~below, np.nan)
        return output

    def __getitem__(self, quantity):
        return self.get_quantity(quantity)

    def copy(self):
        return copy.deepcopy(self)


class VerticalProfile(_ProfileBase):
    """Vertical profile of biological scatterers for a single radar at a single time.

    Parameters
    ----------
    radar : str
        Radar identifier (ODIM node, e.g. ``'seang'``)
    datetime : pandas.Timestamp
        Nominal time of the profile in UTC
    data : xarray.Dataset
        Profile quantities along the ``height`` dimension (layer bottoms in meter)
    attributes : dict
        ODIM ``what``, ``where`` and ``how`` attribute groups

    """

    def __init__(self, radar, datetime, data, attributes):
        super().__init__(radar, data, attributes)
        self.datetime = pd.Timestamp(datetime)

    def __repr__(self):
        source = self.attributes['what'].get('source', '')
        return "\n".join([
            "               Vertical profile (class vp)",
            "",
            f"       radar:  {self.radar}",
            f"      source:  {source}",
            f"datetime (UTC):  {self.datetime:%Y-%m-%d %H:%M:%S}",
            f"  quantities:  {' '.join(self.quantities)}",
            f"   dims:  {self.data.sizes['height']} heights",
        ])


class VerticalProfileTimeSeries(_ProfileBase):
    """Time series of vertical profiles of a single radar.

    ``data`` is an xarray Dataset with dimensions ``(height, datetime)``.
    """

    @property
    def datetime(self):
        return pd.DatetimeIndex(self.data['datetime'].values)

    @property
    def regular(self):
        """Whether profiles are evenly spaced in time."""
        steps = np.unique(np.diff(self.data['datetime'].values))
        return len(steps) <= 1

    def __repr__(self):
        datetimes = self.datetime
        if len(datetimes):
            period = f"{datetimes[0]:%Y-%m-%d %H:%M:%S} - {datetimes[-1]:%Y-%m-%d %H:%M:%S}"
        else:
            period = ""
        return "\n".join([
            "                  Irregular time series of vertical profiles (class vpts)"
            if not self.regular else
            "                    Regular time series of vertical profiles (class vpts)",
            "",
            f"           radar:  {self.radar}",
            f"      # profiles:  {len(datetimes)}",
            f"time range (UTC):  {period}",
            f"      quantities:  {' '.join(self.quantities)}",
        ])


class VerticalProfileIntegrated:
    """Vertically integrated profile quantities (vid, vir, mtr, rtr, ...) over time.

    Parameters
    ----------
    data : pandas.DataFrame
        One row per profile time
    attributes : dict
        ``rcs``, ``sd_vvp_thresh``, ``alt_min``, ``alt_max``, ``radar``, ``lat``, ``lon``

    """

    def __init__(self, data, attributes):
        self.data = data
        self.attributes = dict(attributes)

    @property
    def radar(self):
        return self.attributes.get('radar')

    @property
    def rcs(self):
        return self.attributes.get('rcs')

    @rcs.setter
    def rcs(self, value):
        _check_positive(value, 'rcs')
        self.attributes['rcs'] = value
        self.data['mtr'] = self.data['rtr'] / value
        self.data['vid'] = self.data['vir'] / value
        self.data['mt'] = self.data['rt'] / value

    @property
    def sd_vvp_threshold(self):
        return self.attributes.get('sd_vvp_thresh')

    def __getitem__(self, column):
        return self.data[column]

    def __len__(self):
        return len(self.data)

    def copy(self):
        return VerticalProfileIntegrated(self.data.copy(), copy.deepcopy(self.attributes))

    def __repr__(self):
        return "\n".join([
            "        Vertically integrated profile(s) (class vpi)",
            "",
            f"       radar:  {self.radar}",
            f"         rcs:  {self.rcs} cm^2",
            f"altitude range:  {self.attributes.get('alt_min')} - "
            f"{self.attributes.get('alt_max')} m",
            "",
            repr(self.data),
        ])


def _is_number(value):
    return isinstance(value, (int, float, np.integer, np.floating)) and not isinstance(
        value, (bool, np.bool_)
    )


def _check_positive(value, name):
    if not _is_number(value) or not value > 0:
        raise ValueError(f"invalid '{name}' argument, should be a positive numeric value")


def is_vp(x):
    return isinstance(x, VerticalProfile)


def is_vpts(x):
    return isinstance(x, VerticalProfileTimeSeries)


def is_vpi(x):
    return isinstance(x, VerticalProfileIntegrated)


def check_vp_list(x):
    """Raise if ``x`` is not a list of vertical profiles."""
    if not all(is_vp(item) for item in x):
        raise ValueError("requires list of vp objects as input")


def bind_into_vpts(profiles):
    """Bind vertical profiles into time series, one per radar.

    Parameters
    ----------
    profiles : iterable of VerticalProfile

    Returns
    -------
    VerticalProfileTimeSeries or list of VerticalProfileTimeSeries
        A single time series when all profiles come from one radar, otherwise a list with
        one time series per radar (in order of first appearance).

    """
    profiles = list(profiles)
    if not profiles:
        raise ValueError("requires at least one vp object")
    check_vp_list(profiles)

    radars = list(dict.fromkeys(vp.radar for vp in profiles))
    output = [
        _bind_single_radar([vp for vp in profiles if vp.radar == radar]) for radar in radars
    ]
    if len(output) == 1:
        return output[0]
    log.info(f"Profiles of {len(radars)} radars bound into separate time series")
    return output


def _bind_single_radar(profiles):
    profiles = sorted(profiles, key=lambda vp: vp.datetime)
    heights = profiles[0].heights
    for vp in profiles[1:]:
        if vp.heights.shape != heights.shape or not np.allclose(vp.heights, heights):
            raise ValueError(
                f"vertical profiles of radar {vp.radar} have non-aligned altitude layers"
            )

    data = xr.concat(
        [
            vp.data.assign_coords(height=heights).expand_dims(
                datetime=[vp.datetime.to_datetime64()]
            )
            for vp in profiles
        ],
        dim='datetime'
    ).transpose('height', 'datetime')

    if len({vp.rcs for vp in profiles}) > 1:
        warnings.warn("profiles have different radar cross sections, using the first")
    if len({vp.sd_vvp_threshold for vp in profiles}) > 1:
        warnings.warn("profiles have different sd_vvp thresholds, using the first")

    first = profiles[0]
    return VerticalProfileTimeSeries(first.radar, data, first.attributes)


def integrate_profile(x, alt_min=0, alt_max=np.inf):
    """Vertically integrate profile(s) into densities and traffic rates.

    Parameters
    ----------
    x : VerticalProfile, VerticalProfileTimeSeries or list of VerticalProfile
        Profile(s) to integrate
    alt_min : float, optional
        Minimum altitude (layer bottom) in meter. Defaults to 0.
    alt_max : float, optional
        Maximum altitude (layer bottom, exclusive) in meter. Defaults to no limit.

    Returns
    -------
    VerticalProfileIntegrated
        With columns ``datetime``, ``mtr`` (individuals/km/h), ``vid`` (individuals/km^2),
        ``vir`` (cm^2/km^2), ``rtr`` (cm^2/km/h), ``mt``/``rt`` (cumulative traffic),
        ``ff`` (m/s), ``dd`` (deg), ``u``, ``v`` and ``height`` (mean flight altitude, m).

    """
    if not _is_number(alt_min) or not _is_number(alt_max) or alt_max <= alt_min:
        raise ValueError("'alt_min' and 'alt_max' should be numbers with alt_min < alt_max")

    if isinstance(x, list):
        check_vp_list(x)
        x = bind_into_vpts(x)
        if isinstance(x, list):
            raise ValueError("requires profiles of a single radar")
    if is_vp(x):
        data = x.data.expand_dims(datetime=[x.datetime.to_datetime64()]).transpose(
            'height', 'datetime'
        )
    elif is_vpts(x):
        data = x.data
    else:
        raise ValueError("requires a vp, vpts or list of vp objects as input")

    interval = x.interval
    in_layer = (data['height'] >= alt_min) & (data['height'] < alt_max)
    layers = data.where(in_layer, drop=True)
    center = layers['height'] + interval / 2
    dens = layers['dens'].fillna(0)
    eta = layers['eta'].fillna(0)
    ff = layers['ff']
    km = interval / 1000

    vid = dens.sum('height') * km
    vir = eta.sum('height') * km
    mtr = (dens * ff * 3.6).fillna(0).sum('height') * km
    rtr = (eta * ff * 3.6).fillna(0).sum('height') * km

    weight = dens.where(ff.notnull(), 0)
    weight_sum = weight.sum('height')
    u = (layers['u'] * weight).fillna(0).sum('height') / weight_sum
    v = (layers['v'] * weight).fillna(0).sum('height') / weight_sum
    ff_mean = (ff * weight).fillna(0).sum('height') / weight_sum
    dd = np.mod(np.degrees(np.arctan2(u, v)), 360)
    mean_height = (center * dens).sum('height') / dens.sum('height')

    datetimes = pd.DatetimeIndex(data['datetime'].values)
    hours = _step_hours(datetimes)
    output = pd.DataFrame({
        'datetime': datetimes,
        'mtr': mtr.values,
        'vid': vid.values,
        'vir': vir.values,
        'rtr': rtr.values,
        'mt': np.cumsum(mtr.values * hours),
        'rt': np.cumsum(rtr.values * hours),
        'ff': ff_mean.values,
        'dd': dd.values,
        'u': u.values,
        'v': v.values,
        'height': mean_height.values,
    })

    return VerticalProfileIntegrated(output, {
        'rcs': x.rcs,
        'sd_vvp_thresh': x.sd_vvp_threshold,
        'alt_min': alt_min,
        'alt_max': alt_max,
        'radar': x.radar,
        'lat': x.attributes['where'].get('lat'),
        'lon': x.attributes['where'].get('lon'),
    })


def _step_hours(datetimes):
    """Time in hours from each profile to the next; the last profile reuses the previous step."""
    if len(datetimes) < 2:
        return np.zeros(len(datetimes))
    steps = np.diff(datetimes.values).astype('timedelta64[s]').astype(float) / 3600
    return np.append(steps, steps[-1])
