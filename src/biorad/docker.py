# Copyright (c) 2026 biorad Developers.
# Distributed under the terms of the Apache License, Version 2.0.
# SPDX-License-Identifier: Apache-2.0
"""Lifecycle of the vol2bird Docker container and invocation of vol2bird."""

from dataclasses import dataclass
import logging
import os
from pathlib import PurePosixPath
import re
import shlex
import subprocess


log = logging.getLogger(__name__)

VOL2BIRD_IMAGE = "adokter/vol2bird:latest"
MISTNET_IMAGE = "adokter/vol2bird-mistnet:latest"
CONTAINER_NAME = "vol2bird"
CONTAINER_MOUNT = "data"
MULTI_FILE_VERSION = (0, 3, 20)  # first vol2bird release after this accepts -i/-o/-p flags


@dataclass
class DockerState:
    """Docker environment as found by ``check_docker`` and ``mount_docker_container``."""

    docker: bool = False
    mistnet: bool = False
    vol2bird_version: tuple = None
    mount: str = None
    mounted: bool = False
    mounted_mistnet: bool = False


state = DockerState()


def _run(command, verbose=False, capture=False):
    """Run a command (list of arguments), returning the CompletedProcess.

    Standard output is shown only when ``verbose``; standard error always passes through.
    """
    log.debug(f"Running: {' '.join(shlex.quote(part) for part in command)}")
    stdout = subprocess.PIPE if capture else (None if verbose else subprocess.DEVNULL)
    try:
        return subprocess.run(command, stdout=stdout, text=True, check=False)
    except FileNotFoundError:
        # Executable (docker, bash) not on PATH
        return subprocess.CompletedProcess(command, 127, stdout="" if capture else None)


def parse_version(text):
    """Parse the version tuple out of ``vol2bird --version`` output."""
    match = re.search(r"(\d+(?:\.\d+)+)", text or "")
    if match is None:
        return None
    return tuple(int(part) for part in match.group(1).split('.'))


def vol2bird_version(local_install=None):
    """Return the version of vol2bird as a tuple of ints.

    Parameters
    ----------
    local_install : str, optional
        Path to a local vol2bird executable. If not given, the version of the vol2bird
        Docker image is queried.

    Returns
    -------
    tuple of int or None
        None when Docker is unavailable or the version cannot be determined.

    """
    if local_install is not None:
        command = ["bash", "-l", "-c", f"{shlex.quote(str(local_install))} --version"]
    elif not state.docker:
        return None
    else:
        command = ["docker", "run", "--rm", VOL2BIRD_IMAGE, "bash", "-c", "vol2bird --version"]

    result = _run(command, capture=True)
    if result.returncode != 0:
        log.warning("Could not determine vol2bird version")
        return None
    lines = [line for line in (result.stdout or "").splitlines() if line.strip()]
    return parse_version(lines[-1]) if lines else None


def check_docker(verbose=True):
    """Check that a Docker daemon is running and record the vol2bird environment.

    Parameters
    ----------
    verbose : bool, optional
        Log the outcome at INFO level. Defaults to True.

    Returns
    -------
    bool
        True when Docker is available.

    Raises
    ------
    RuntimeError
        When Docker is not installed or its daemon is not running.

    """
    if _run(["docker", "--version"]).returncode != 0:
        state.docker = False
        raise RuntimeError(
            "Docker not found. Install Docker (https://www.docker.com/) and start its daemon."
        )
    if _run(["docker", "info"]).returncode != 0:
        state.docker = False
        raise RuntimeError(
            "Docker daemon not running. Start your local Docker daemon and retry."
        )

    state.docker = True
    state.vol2bird_version = vol2bird_version()
    images = _run(["docker", "images", "-q", MISTNET_IMAGE], capture=True)
    state.mistnet = images.returncode == 0 and bool((images.stdout or "").strip())

    if verbose:
        version = ".".join(str(part) for part in state.vol2bird_version or ()) or "unknown"
        log.info(
            f"Docker is running, vol2bird version {version}, "
            f"MistNet {'available' if state.mistnet else 'not installed'}"
        )
    return True


def update_docker(mistnet=False):
    """Pull the latest vol2bird image(s) and reset the running container.

    Parameters
    ----------
    mistnet : bool, optional
        Also pull the (large) MistNet segmentation image. Defaults to False.

    """
    check_docker(verbose=False)
    images = [VOL2BIRD_IMAGE] + ([MISTNET_IMAGE] if mistnet else [])
    for image in images:
        log.info(f"Pulling {image}")
        if _run(["docker", "pull", image], verbose=True).returncode != 0:
            raise RuntimeError(f"failed to pull Docker image {image}")
    unmount_docker_container()
    return check_docker()


def mount_docker_container(mount):
    """Start the vol2bird container with ``mount`` bound to its data directory.

    The running container is reused when it already mounts the same directory.

    Parameters
    ----------
    mount : str or os.PathLike
        Host directory to mount

    Raises
    ------
    RuntimeError
        When the container cannot be started.

    """
    mount = os.path.realpath(mount)
    if state.mounted and state.mount == mount and state.mounted_mistnet == state.mistnet:
        return

    log.info(f"Mounting {mount} into Docker container {CONTAINER_NAME}")
    _run(["docker", "rm", "-f", CONTAINER_NAME])
    image = MISTNET_IMAGE if state.mistnet else VOL2BIRD_IMAGE
    result = _run([
        "docker", "run", "-v", f"{mount}:/{CONTAINER_MOUNT}", "-t", "-d",
        "--name", CONTAINER_NAME, image, "sleep", "infinity"
    ])
    if result.returncode != 0:
        state.mounted = False
        raise RuntimeError("failed to start vol2bird Docker container")

    state.mounted = True
    state.mount = mount
    state.mounted_mistnet = state.mistnet


def unmount_docker_container():
    """Remove the vol2bird container."""
    _run(["docker", "rm", "-f", CONTAINER_NAME])
    state.mounted = False
    state.mount = None
    state.mounted_mistnet = False


def multi_file_support(local_install=None):
    """Whether the vol2bird in use accepts several input files."""
    if local_install is not None:
        return True
    return state.vol2bird_version is not None and state.vol2bird_version > MULTI_FILE_VERSION


def vol2bird_arguments(inputs, profile, pvolfile_out=None, multi_file=True):
    """Arrange input and output paths as vol2bird command line arguments.

    Parameters
    ----------
    inputs : list of str
        Polar volume file(s), as seen by vol2bird
    profile : str
        Vertical profile output path
    pvolfile_out : str, optional
        Polar volume output path
    multi_file : bool
        Use the ``-i``/``-o``/``-p`` flags; otherwise positional arguments of a single file

    """
    if multi_file:
        args = []
        for filename in inputs:
            args += ["-i", filename]
        args += ["-o", profile]
        if pvolfile_out:
            args += ["-p", pvolfile_out]
        return args

    if len(inputs) != 1:
        raise ValueError(
            "Current installation does not support multiple input files. Provide a single "
            "input file containing a polar volume"
        )
    return [inputs[0], profile] + ([pvolfile_out] if pvolfile_out else [])


def container_path(path, mount):
    """Path of a host file inside the container, relative to the container's data dir."""
    relative = os.path.relpath(os.path.realpath(path), os.path.realpath(mount))
    return str(PurePosixPath(*relative.split(os.sep)))


def run_vol2bird(arguments, local_install=None, verbose=False):
    """Run vol2bird in the mounted container or through a local install.

    Parameters
    ----------
    arguments : list of str
        vol2bird command line arguments (see ``vol2bird_arguments``)
    local_install : str, optional
        Path to a local vol2bird executable, called through a bash login shell so that
        (DY)LD_LIBRARY_PATH from the user's profile applies
    verbose : bool
        Show vol2bird's standard output. Always on for Windows.

    Raises
    ------
    RuntimeError
        When vol2bird exits with a non-zero status.

    """
    quoted = " ".join(shlex.quote(str(arg)) for arg in arguments)
    if local_install is None:
        command = [
            "docker", "exec", CONTAINER_NAME, "bash", "-c",
            f"cd {CONTAINER_MOUNT} && vol2bird {quoted}"
        ]
    else:
        command = ["bash", "-l", "-c", f"{shlex.quote(str(local_install))} {quoted}"]

    result = _run(command, verbose=verbose or os.name == 'nt')
    if result.returncode != 0:
        raise RuntimeError("failed to run vol2bird")
    return result
