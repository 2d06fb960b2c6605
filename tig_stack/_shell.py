# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import shutil
import subprocess


def sh(command: str, *, timeout=1800):
    """Run and fail on non-zero exit status. Output goes to the terminal."""
    r = subprocess.run(
        _build(command),
        # Package managers may ask for confirmation even with -y.
        stdin=subprocess.DEVNULL,
        timeout=timeout,
        )
    r.check_returncode()
    return r


def sh_still(command: str, *, timeout=600):
    """Run and capture output. Exit status is left for the caller."""
    return subprocess.run(
        _build(command),
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        stdin=subprocess.DEVNULL,
        timeout=timeout,
        )


def has_command(name: str) -> bool:
    return shutil.which(name) is not None


def _build(command):
    full_command = ['/bin/sh', '-c', command]
    _logger.info("Run: %s", command)
    return full_command


_logger = logging.getLogger(__name__)
