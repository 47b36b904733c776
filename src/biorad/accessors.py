# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Radar cross section and sd_vvp threshold accessors.

Changing either value rescales the quantities derived from it: ``dens`` of profiles and
time series, ``mtr``, ``vid`` and ``mt`` of integrated profiles. Setters return a modified
copy and leave their input untouched.
"""

from .profiles import (
    VerticalProfile,
    VerticalProfileIntegrated,
    VerticalProfileTimeSeries,
    check_vp_list
)

_supported = (VerticalProfile, VerticalProfileTimeSeries, VerticalProfileIntegrated)


def _check_input(x, types=_supported):
    if isinstance(x, list):
        check_vp_list(x)
    elif not isinstance(x, types):
        raise ValueError(
            f"requires a vp, vpts, vpi or list of vp objects as input, got {type(x).__name__}"
        )


def rcs(x):
    """Radar cross section in cm^2 assumed for a vp, vpts, vpi or list of vp.

    A list of profiles gives a list of cross sections.
    """
    _check_input(x)
    if isinstance(x, list):
        return [vp.rcs for vp in x]
    return x.rcs


def set_rcs(x, value):
    """Return a copy of ``x`` with radar cross section ``value`` (cm^2).

    For profiles and time series the densities are recomputed as ``eta / value`` and set to
    zero where ``sd_vvp`` is below the sd_vvp threshold (2 m/s if not set, with a warning).
    For integrated profiles ``mtr``, ``vid`` and ``mt`` are rescaled from ``rtr``, ``vir``
    and ``rt``.
    """
    _check_input(x)
    if isinstance(x, list):
        return [set_rcs(vp, value) for vp in x]
    output = x.copy()
    output.rcs = value
    return output


def sd_vvp_threshold(x):
    """Lower threshold in radial velocity standard deviation (m/s) of a vp, vpts or list of vp."""
    _check_input(x)
    if isinstance(x, list):
        return [vp.sd_vvp_threshold for vp in x]
    return x.sd_vvp_threshold


def set_sd_vvp_threshold(x, value):
    """Return a copy of ``x`` with sd_vvp threshold ``value``, recomputing densities."""
    _check_input(x, (VerticalProfile, VerticalProfileTimeSeries))
    if isinstance(x, list):
        return [set_sd_vvp_threshold(vp, value) for vp in x]
    output = x.copy()
    output.sd_vvp_threshold = value
    return output
