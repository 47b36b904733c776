# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Vertical profiles of biological scatterers from weather radar, computed with vol2bird."""

from .accessors import rcs, sd_vvp_threshold, set_rcs, set_sd_vvp_threshold
from .beam import beam_height, beam_width
from .calculate import calculate_vp
from .docker import (
    check_docker,
    mount_docker_container,
    unmount_docker_container,
    update_docker,
    vol2bird_version
)
from .io import download_pvolfiles, list_pvolfiles, read_pvolfile, read_vpfiles
from .options import Vol2BirdOptions
from .profiles import (
    VerticalProfile,
    VerticalProfileIntegrated,
    VerticalProfileTimeSeries,
    bind_into_vpts,
    integrate_profile
)
