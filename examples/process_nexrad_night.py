#!/usr/bin/env python
# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0

import argparse
import logging
import os

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import pandas as pd

from biorad import (
    bind_into_vpts,
    calculate_vp,
    check_docker,
    download_pvolfiles,
    integrate_profile,
    read_vpfiles
)
from biorad.plotting import plot_vpi, plot_vpts


log = logging.getLogger(__name__)


if __name__ == '__main__':
    # Set up script configuration
    parser = argparse.ArgumentParser(
        description="Profile bird migration over a NEXRAD radar for a range of volume scans."
    )

    parser.add_argument("radar", help="<Required> NEXRAD site, e.g. KBGM", metavar="KBGM")
    parser.add_argument(
        "-s",
        "--start",
        help="<Required> Start time (UTC)",
        required=True,
        metavar="2020-05-01T23:00",
    )
    parser.add_argument(
        "-e",
        "--end",
        help="<Required> End time (UTC)",
        required=True,
        metavar="2020-05-02T06:00",
    )
    parser.add_argument(
        "-o", "--output-dir", help="Output directory", default="~/vp_output/", metavar="~/vp_output/"
    )
    parser.add_argument(
        "-c", "--l2-dir", help="Level II cache directory", default="~/l2_cache/", metavar="~/l2_cache/"
    )
    parser.add_argument(
        "-a", "--alt-max", help="Max altitude for integration (m)", default="3000", metavar="3000"
    )
    parser.add_argument(
        "-l", "--local-install", help="Local vol2bird executable (instead of Docker)", default=None
    )

    try:
        args = parser.parse_args()
        radar = args.radar.upper()
        start = pd.Timestamp(args.start)
        end = pd.Timestamp(args.end)
        output_dir = os.path.expanduser(args.output_dir)
        l2_dir = os.path.expanduser(args.l2_dir)
        alt_max = float(args.alt_max)
    except (SystemExit, ValueError):
        parser.print_help()
        raise

    logging.basicConfig(level=logging.INFO)
    print(f"Radar: {radar}")
    print(f"Period: {start} - {end}")
    print(f"Level II cache dir: {l2_dir}")
    print(f"Output dir: {output_dir}")

    vp_dir = os.path.join(output_dir, radar, "vp")
    os.makedirs(vp_dir, exist_ok=True)
    if args.local_install is None:
        check_docker()

    # Profile each volume, reusing profiles from earlier runs
    vpfiles = []
    for pvolfile in download_pvolfiles(radar, start, end, directory=l2_dir):
        vpfile = os.path.join(vp_dir, f"{os.path.basename(pvolfile)}_vp.h5")
        if not os.path.exists(vpfile):
            try:
                calculate_vp(pvolfile, vpfile=vpfile, local_install=args.local_install)
            except RuntimeError as e:
                log.warning(f"Skipping {pvolfile}: {e}")
                continue
        vpfiles.append(vpfile)

    if not vpfiles:
        raise SystemExit(f"No profiles calculated for {radar}")

    profiles = read_vpfiles(vpfiles)
    vpts = bind_into_vpts(profiles if isinstance(profiles, list) else [profiles])
    vpi = integrate_profile(vpts, alt_max=alt_max)

    stem = f"{radar}_{start:%Y%m%d%H%M}_{end:%Y%m%d%H%M}"
    vpi.data.to_csv(os.path.join(output_dir, f"{stem}_vpi.csv"), index=False)

    fig, (ax_vpts, ax_vpi) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
    plot_vpts(vpts, 'dens', ax=ax_vpts)
    plot_vpi(vpi, 'mtr', ax=ax_vpi)
    fig.savefig(os.path.join(output_dir, f"{stem}.png"), dpi=150)
    print(f"Total migration traffic: {vpi['mt'].iloc[-1]:.0f} birds/km")
