# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Calculation of vertical profiles from polar volumes with vol2bird."""

import logging
import os
import shutil
import tempfile
import warnings

from . import docker
from .io import read_vpfiles
from .options import (
    OPTIONS_FILENAME,
    Vol2BirdOptions,
    backup_options_file,
    write_options_file
)


log = logging.getLogger(__name__)


def _is_parent_dir(parent, path):
    parent = os.path.realpath(parent)
    return os.path.commonpath([parent, os.path.realpath(path)]) == parent


def calculate_vp(
    file=None,
    vpfile="",
    pvolfile_out="",
    autoconf=False,
    verbose=False,
    mount=None,
    local_install=None,
    pvolfile=None,
    **option_kwargs
):
    """Calculate a vertical profile (vp) from a polar volume with vol2bird.

    Requires a running Docker daemon (see ``check_docker``) unless a local vol2bird
    executable is given with ``local_install``.

    Parameters
    ----------
    file : str or list of str
        Polar volume file, or several files with single scans/sweeps. ODIM HDF5, any
        format of the RSL library, or Vaisala IRIS RAW.
    vpfile : str, optional
        Filename for the vertical profile in ODIM HDF5 format. Not kept if empty.
    pvolfile_out : str, optional
        Filename for the polar volume in ODIM HDF5 format, e.g. to convert RSL formats.
        Must be in the directory of the (first) input file.
    autoconf : bool, optional
        Let vol2bird select optimal settings for the radar file. All other options are
        then ignored.
    verbose : bool, optional
        Show vol2bird output. Always on for Windows.
    mount : str, optional
        Directory mounted into the Docker container. Must be a parent directory of all input
        files. Defaults to the directory of the first input file. Reusing one mount across
        calls avoids restarting the container.
    local_install : str, optional
        Path to a local vol2bird executable, bypassing Docker.
    pvolfile : str or list of str, optional
        Deprecated alias of ``file``.
    **option_kwargs
        Processing options, see ``Vol2BirdOptions`` (``rcs``, ``sd_vvp_threshold``,
        ``dual_pol``, ``range_max``, ``dealias``, ...).

    Returns
    -------
    VerticalProfile

    Notes
    -----
    Ranges closer than 5 km tend to be contaminated by ground clutter, and range gates
    beyond 35 km become too wide to resolve 200 m altitude layers (see ``beam_width``).
    ``range_max`` may be extended up to 40 km for volumes with low elevations only.

    """
    if pvolfile is not None:
        warnings.warn("argument 'pvolfile' is deprecated, please use 'file'", DeprecationWarning)
        if file is None:
            file = pvolfile
    if file is None:
        raise ValueError("argument 'file' is missing")
    files = [os.fspath(file)] if isinstance(file, (str, os.PathLike)) else [
        os.fspath(f) for f in file
    ]
    if not files:
        raise ValueError("argument 'file' is empty")

    for filename in files:
        if not os.path.isfile(filename):
            raise FileNotFoundError(f"No such file: {filename}")

    unknown = set(option_kwargs) - set(Vol2BirdOptions.field_names())
    if unknown:
        raise TypeError(f"unexpected argument(s): {', '.join(sorted(unknown))}")
    options = Vol2BirdOptions(**option_kwargs).validate()

    if options.mistnet and local_install is None and not docker.state.mistnet:
        raise RuntimeError(
            "MistNet has not been installed, see update_docker() for install instructions"
        )
    mount = os.path.dirname(os.path.abspath(files[0])) if mount is None else os.fspath(mount)
    if not os.path.isdir(mount):
        raise ValueError("invalid 'mount' argument. Directory not found")
    if not os.access(mount, os.W_OK):
        raise PermissionError(f"invalid 'mount' argument. No write permission in directory {mount}")
    if local_install is None and not docker.state.docker:
        raise RuntimeError(
            "Requires a running Docker daemon.\nTo enable calculate_vp, start your local "
            "Docker daemon, and run 'check_docker()'"
        )
    if not isinstance(autoconf, bool):
        raise ValueError("autoconf argument should be one of True or False")
    if not isinstance(verbose, bool):
        raise ValueError("verbose argument should be one of True or False")
    if vpfile and not os.path.isdir(os.path.dirname(os.path.abspath(vpfile))):
        raise ValueError(f"output directory {os.path.dirname(vpfile)} not found")

    filedir = os.path.dirname(os.path.realpath(files[0]))
    if local_install is None and not all(_is_parent_dir(mount, f) for f in files):
        raise ValueError("mountpoint 'mount' has to be a parent directory of input file 'file'")

    multi_file = docker.multi_file_support(local_install)
    if len(files) > 1 and not multi_file:
        raise ValueError(
            "Current installation does not support multiple input files. Provide a single "
            "input file containing a polar volume"
        )
    if not os.access(filedir, os.W_OK):
        raise PermissionError(f"vol2bird requires write permission in {filedir}")

    if local_install is None:
        docker.mount_docker_container(mount)
        optfile = os.path.join(os.path.realpath(mount), OPTIONS_FILENAME)
    else:
        optfile = os.path.join(os.getcwd(), OPTIONS_FILENAME)

    # vol2bird reads options.conf from its working directory; without it, it autoconfigures
    if autoconf:
        backup_options_file(optfile)
    else:
        write_options_file(options, optfile)

    fd, profile_tmp = tempfile.mkstemp(prefix="vp_", suffix=".h5", dir=filedir)
    os.close(fd)

    try:
        if local_install is None:
            inputs = [docker.container_path(f, mount) for f in files]
            profile_arg = docker.container_path(profile_tmp, mount)
            pvol_arg = (
                docker.container_path(os.path.join(filedir, os.path.basename(pvolfile_out)), mount)
                if pvolfile_out else None
            )
        else:
            inputs = [os.path.realpath(f) for f in files]
            profile_arg = profile_tmp
            pvol_arg = os.path.abspath(pvolfile_out) if pvolfile_out else None

        arguments = docker.vol2bird_arguments(inputs, profile_arg, pvol_arg, multi_file)
        log.info(f"Calculating vertical profile of {', '.join(files)}")
        docker.run_vol2bird(arguments, local_install=local_install, verbose=verbose)

        output = read_vpfiles(profile_tmp)
    except BaseException:
        if os.path.exists(profile_tmp):
            os.remove(profile_tmp)
        raise
    finally:
        if os.path.exists(optfile):
            os.remove(optfile)

    if vpfile:
        shutil.move(profile_tmp, vpfile)
    else:
        os.remove(profile_tmp)

    return output
