# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Plots of vertical profiles, their time series and integrations, and radar scans."""

import matplotlib.pyplot as plt
from matplotlib.colors import LogNorm, Normalize
import numpy as np

from ..profiles import is_vp, is_vpi, is_vpts
from .colors import VP_COLORMAP, color_scale, get_zlim


# Default ranges and scaling for time-height plots of profile quantities
_vpts_scales = {
    'dens': ((0.5, 5000), True),
    'eta': ((5, 50000), True),
    'dbz': ((-20, 30), False),
    'DBZH': ((-20, 30), False),
    'ff': ((0, 20), False),
    'u': ((-20, 20), False),
    'v': ((-20, 20), False),
    'w': ((-5, 5), False),
    'sd_vvp': ((0, 5), False),
}
_vpi_labels = {
    'mtr': 'migration traffic rate [#/km/h]',
    'rtr': 'reflectivity traffic rate [cm^2/km/h]',
    'vid': 'vertically integrated density [#/km^2]',
    'vir': 'vertically integrated reflectivity [cm^2/km^2]',
    'mt': 'migration traffic [#/km]',
    'rt': 'reflectivity traffic [cm^2/km]',
    'ff': 'ground speed [m/s]',
    'dd': 'direction [deg]',
    'height': 'mean flight altitude [m]',
}


def _get_axes(ax):
    if ax is None:
        _, ax = plt.subplots()
    return ax


def plot_vp(vp, quantity='dens', ax=None, **kwargs):
    """Plot a profile quantity against altitude (layer centers).

    Extra keyword arguments are passed to ``Axes.plot``.
    """
    if not is_vp(vp):
        raise ValueError("requires a vp object as input")
    ax = _get_axes(ax)
    values = vp.get_quantity(quantity)
    center = vp.heights + (vp.interval or 0) / 2
    ax.plot(values.values, center, **kwargs)
    units = values.attrs.get('units')
    ax.set_xlabel(f"{quantity} [{units}]" if units else quantity)
    ax.set_ylabel('height [m]')
    ax.set_title(f"{vp.radar} {vp.datetime:%Y-%m-%d %H:%M} UTC")
    return ax


def plot_vpts(vpts, quantity='dens', zlim=None, log=None, ax=None, colorbar=True):
    """Plot a time-height image of a profile quantity.

    Parameters
    ----------
    vpts : VerticalProfileTimeSeries
    quantity : str, optional
        Profile quantity, defaults to ``'dens'``
    zlim : tuple of float, optional
        Color range. Defaults depend on the quantity.
    log : bool, optional
        Logarithmic color scale. Defaults to True for ``dens`` and ``eta``.
    ax : matplotlib.axes.Axes, optional
    colorbar : bool, optional

    """
    if not is_vpts(vpts):
        raise ValueError("requires a vpts object as input")
    default_zlim, default_log = _vpts_scales.get(quantity, (None, False))
    zlim = default_zlim if zlim is None else zlim
    log = default_log if log is None else log

    ax = _get_axes(ax)
    values = vpts.get_quantity(quantity).values
    if log:
        if zlim is None:
            positive = values[values > 0]
            zlim = (positive.min(), positive.max()) if positive.size else (1, 10)
        # zero densities show as the first (grey) color
        values = np.where(values <= 0, zlim[0], values)
        norm = LogNorm(vmin=zlim[0], vmax=zlim[1])
    else:
        norm = Normalize(*(zlim or (None, None)))
    values = np.ma.masked_invalid(values)

    center = vpts.heights + (vpts.interval or 0) / 2
    mesh = ax.pcolormesh(
        vpts.datetime, center, values, cmap=VP_COLORMAP, norm=norm, shading='nearest'
    )
    if colorbar:
        ax.figure.colorbar(mesh, ax=ax, label=quantity)
    ax.set_ylabel('height [m]')
    ax.set_title(vpts.radar)
    return ax


def plot_vpi(vpi, quantity='mtr', ax=None, **kwargs):
    """Plot an integrated profile quantity as a time series."""
    if not is_vpi(vpi):
        raise ValueError("requires a vpi object as input")
    if quantity not in vpi.data:
        raise ValueError(f"quantity '{quantity}' not found in vpi object")
    ax = _get_axes(ax)
    ax.plot(vpi['datetime'], vpi[quantity], **kwargs)
    ax.set_ylabel(_vpi_labels.get(quantity, quantity))
    ax.set_title(vpi.radar)
    return ax


def plot_ppi(radar, param='DBZH', sweep=0, zlim=None, ax=None, colorbar=True):
    """Plot a plan position indicator of one sweep of a Py-ART Radar.

    Parameters
    ----------
    radar : pyart.core.Radar
        Polar volume, e.g. from ``read_pvolfile``
    param : str, optional
        Field name (ODIM quantity), defaults to ``'DBZH'``
    sweep : int, optional
        Sweep index
    zlim : tuple of float, optional
        Color range for quantities without a fixed range (see ``get_zlim``)

    """
    if param not in radar.fields:
        raise ValueError(
            f"parameter '{param}' not found, available: {', '.join(radar.fields)}"
        )
    ax = _get_axes(ax)
    x, y, _ = radar.get_gate_x_y_z(sweep, edges=True)
    values = np.ma.masked_invalid(radar.get_field(sweep, param))
    cmap, norm = color_scale(param, get_zlim(param, zlim))
    mesh = ax.pcolormesh(x / 1000, y / 1000, values, cmap=cmap, norm=norm)
    if colorbar:
        ax.figure.colorbar(mesh, ax=ax, label=param)
    ax.set_aspect('equal')
    ax.set_xlabel('x [km]')
    ax.set_ylabel('y [km]')
    elevation = radar.fixed_angle['data'][sweep]
    ax.set_title(f"{param}, elevation {elevation:.1f} deg")
    return ax
