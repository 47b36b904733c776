# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Color scales and default value ranges of radar and profile quantities."""

import numpy as np
from matplotlib import colormaps
from matplotlib.colors import (
    LinearSegmentedColormap,
    ListedColormap,
    Normalize,
    TwoSlopeNorm,
    to_rgba_array
)


velocity_params = ('VRADH', 'VRADV', 'VRAD')
categorical_params = ('overlap', 'BACKGROUND', 'WEATHER', 'BIOLOGY', 'CELL')
default_gradient = ('lightblue', 'darkblue', 'green', 'yellow', 'red', 'magenta')

_zlims = {
    'DBZH': (-20, 30),
    'DBZV': (-20, 30),
    'DBZ': (-20, 30),
    'VRADH': (-20, 20),
    'VRADV': (-20, 20),
    'VRAD': (-20, 20),
    'RHOHV': (0.4, 1),
    'ZDR': (-5, 8),
    'PHIDP': (-200, 200),
    'vid': (0, 200),
    'VID': (0, 200),
    'vir': (0, 2000),
    'VIR': (0, 2000),
    'R': (0, 5),
    'eta_sum': (0, 2000),
    'eta_sum_expected': (0, 2000),
    'overlap': (0, 1),
    'CELL': (0, 2),
    'BACKGROUND': (0, 1),
    'WEATHER': (0, 1),
    'BIOLOGY': (0, 1),
}


def get_zlim(param, zlim=None):
    """Return the fixed plotting range of ``param``, or ``zlim`` for other quantities."""
    return _zlims.get(param, zlim)


def color_scale(param, zlim=None, na_color='none'):
    """Colormap and normalization for plotting quantity ``param``.

    Parameters
    ----------
    param : str
        Radar (e.g. ``'DBZH'``, ``'VRADH'``) or derived quantity name
    zlim : tuple of float, optional
        Value range mapped onto the colormap. Ignored for categorical quantities.
    na_color : color, optional
        Color of missing values. Defaults to transparent.

    Returns
    -------
    tuple of (matplotlib.colors.Colormap, matplotlib.colors.Normalize)
        Radial velocities get a blue-white-red scale centered on zero, classification
        quantities viridis, and everything else a lightblue-to-magenta gradient.

    """
    vmin, vmax = zlim if zlim is not None else (None, None)
    if param in velocity_params:
        cmap = LinearSegmentedColormap.from_list(param, ['blue', 'white', 'red'])
        if vmin is not None and vmin < 0 < vmax:
            norm = TwoSlopeNorm(vcenter=0, vmin=vmin, vmax=vmax)
        else:
            norm = Normalize(vmin=vmin, vmax=vmax)
    elif param in categorical_params:
        cmap = colormaps['viridis']
        norm = Normalize()
    else:
        cmap = LinearSegmentedColormap.from_list(param, default_gradient)
        norm = Normalize(vmin=vmin, vmax=vmax)
    cmap = cmap.with_extremes(bad=na_color)
    return cmap, norm


def add_color_transparency(color=None, alpha=1):
    """Return RGBA colors with transparency ``alpha``.

    Parameters
    ----------
    color : color or array-like of colors
        Single color, sequence of colors, or an array of colors (names or RGB(A) values)
    alpha : float, optional
        Opacity between 0 and 1

    Returns
    -------
    numpy.ndarray
        RGBA values; arrays of color names keep their shape with a trailing axis of 4.

    """
    if color is None:
        raise ValueError("Please provide a vector or matrix of colours.")
    if isinstance(color, str):
        return to_rgba_array(color, alpha=alpha)[0]

    color = np.asarray(color)
    if color.dtype.kind in 'fiu' and color.shape[-1] in (3, 4):
        shape = color.shape[:-1]
        rgba = to_rgba_array(color.reshape(-1, color.shape[-1]), alpha=alpha)
    else:
        shape = color.shape
        rgba = to_rgba_array(color.ravel(), alpha=alpha)
    return rgba.reshape(shape + (4,))


def _interpolate_channel(points, values):
    return np.interp(np.linspace(1, 256, 255), points, values)


# Color scale of vertical profile time series: grey for zero, then a blue-red-purple ramp
_red = _interpolate_channel(
    [1, 63, 82, 94, 146, 177, 192, 209, 256], [255, 255, 163, 255, 255, 81, 81, 0, 0]
)
_green = _interpolate_channel([1, 65, 80, 111, 143, 256], [255, 255, 163, 163, 0, 0])
_blue = _interpolate_channel(
    [1, 80, 97, 111, 128, 160, 207, 256], [255, 0, 0, 82, 0, 0, 255, 0]
)
VP_COLORS = np.column_stack([
    np.concatenate([[200], _red]),
    np.concatenate([[200], _green]),
    np.concatenate([[200], _blue]),
]) / 255
VP_COLORMAP = ListedColormap(VP_COLORS, name='vpts')
