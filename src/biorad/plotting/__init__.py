# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Plotting of profiles and radar scans, with color scales for radar quantities."""

from .colors import VP_COLORMAP, add_color_transparency, color_scale, get_zlim
from .plots import plot_ppi, plot_vp, plot_vpi, plot_vpts
