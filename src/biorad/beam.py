# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Radar beam geometry."""

import numpy as np


def earth_radius(lat, re=6378, rp=6357):
    """Earth radius in meter at latitude ``lat`` (degrees) of an ellipsoid with equatorial
    radius ``re`` and polar radius ``rp`` in km."""
    lat = np.radians(lat)
    re = re * 1000
    rp = rp * 1000
    return np.sqrt(
        ((re**2 * np.cos(lat))**2 + (rp**2 * np.sin(lat))**2)
        / ((re * np.cos(lat))**2 + (rp * np.sin(lat))**2)
    )


def beam_height(range, elev, k=4 / 3, lat=35, re=6378, rp=6357):
    """Height of the beam center above the antenna in meter.

    Parameters
    ----------
    range : float or array-like
        Slant range in meter
    elev : float or array-like
        Elevation angle in degrees
    k : float, optional
        Standard refraction coefficient. Defaults to 4/3.
    lat : float, optional
        Radar latitude in degrees, used for the earth radius. Defaults to 35.
    re, rp : float, optional
        Equatorial and polar earth radius in km

    """
    radius = k * earth_radius(lat, re, rp)
    range = np.asarray(range, dtype=float)
    return np.sqrt(range**2 + radius**2 + 2 * range * radius * np.sin(np.radians(elev))) - radius


def beam_width(range, beam_angle=1):
    """Width of the beam in meter at slant ``range`` (m) for beam angle ``beam_angle`` (deg)."""
    return np.asarray(range, dtype=float) * np.sin(np.radians(beam_angle))
