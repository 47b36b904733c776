# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Command line interface to vol2bird processing."""

import argparse
import logging
import sys

from . import docker
from .calculate import calculate_vp


log = logging.getLogger(__name__)


def _bool(value):
    if value.lower() in ('true', 't', 'yes', '1'):
        return True
    if value.lower() in ('false', 'f', 'no', '0'):
        return False
    raise argparse.ArgumentTypeError(f"expected a boolean, got '{value}'")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="biorad",
        description="Vertical profiles of birds and insects from weather radar with vol2bird."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check-docker", help="Check the Docker and vol2bird installation")

    update = subparsers.add_parser("update-docker", help="Pull the latest vol2bird image")
    update.add_argument("--mistnet", action="store_true", help="Also pull the MistNet image")

    calculate = subparsers.add_parser(
        "calculate-vp", help="Calculate a vertical profile from a polar volume"
    )
    calculate.add_argument("file", nargs="+", help="Polar volume file(s)")
    calculate.add_argument("-o", "--vpfile", default="", metavar="vp.h5",
                           help="Output vertical profile (ODIM HDF5)")
    calculate.add_argument("-p", "--pvolfile-out", default="", metavar="pvol.h5",
                           help="Output polar volume (ODIM HDF5)")
    calculate.add_argument("--autoconf", action="store_true",
                           help="Let vol2bird choose optimal settings")
    calculate.add_argument("--mount", help="Directory to mount in the Docker container")
    calculate.add_argument("--local-install", help="Path to a local vol2bird executable")
    calculate.add_argument("--show-output", action="store_true",
                           help="Show vol2bird output")
    calculate.add_argument("--sd-vvp-threshold", type=float, metavar="2")
    calculate.add_argument("--rcs", type=float, default=11, metavar="11")
    calculate.add_argument("--dual-pol", type=_bool, default=False, metavar="False")
    calculate.add_argument("--rho-hv", type=float, default=0.95, metavar="0.95")
    calculate.add_argument("--elev-min", type=float, default=0, metavar="0")
    calculate.add_argument("--elev-max", type=float, default=90, metavar="90")
    calculate.add_argument("--azim-min", type=float, default=0, metavar="0")
    calculate.add_argument("--azim-max", type=float, default=360, metavar="360")
    calculate.add_argument("--range-min", type=float, default=5000, metavar="5000")
    calculate.add_argument("--range-max", type=float, default=35000, metavar="35000")
    calculate.add_argument("--n-layer", type=int, default=20, metavar="20")
    calculate.add_argument("--h-layer", type=float, default=200, metavar="200")
    calculate.add_argument("--dealias", type=_bool, default=True, metavar="True")
    calculate.add_argument("--nyquist-min", type=float, metavar="5")
    calculate.add_argument("--dbz-quantity", default="DBZH", metavar="DBZH")
    calculate.add_argument("--mistnet", action="store_true", help="Use MistNet segmentation")

    return parser


_option_args = (
    'sd_vvp_threshold', 'rcs', 'dual_pol', 'rho_hv', 'elev_min', 'elev_max', 'azim_min',
    'azim_max', 'range_min', 'range_max', 'n_layer', 'h_layer', 'dealias', 'nyquist_min',
    'dbz_quantity', 'mistnet'
)


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s"
    )

    try:
        if args.command == "check-docker":
            docker.check_docker()
        elif args.command == "update-docker":
            docker.update_docker(mistnet=args.mistnet)
        elif args.command == "calculate-vp":
            if args.local_install is None:
                docker.check_docker(verbose=False)
            vp = calculate_vp(
                args.file,
                vpfile=args.vpfile,
                pvolfile_out=args.pvolfile_out,
                autoconf=args.autoconf,
                verbose=args.show_output,
                mount=args.mount,
                local_install=args.local_install,
                **{name: getattr(args, name) for name in _option_args}
            )
            print(vp)
    except (RuntimeError, ValueError, OSError) as e:
        log.error(str(e))
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
