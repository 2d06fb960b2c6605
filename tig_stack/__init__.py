# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Telegraf, InfluxDB and Grafana on a single Linux host.

Setup goes in fixed steps, each of which must be safe to repeat:
detect the distribution, install Docker if needed, open ports,
write secrets and configs, start the services, wait until healthy.

Every host action is formulated in terms of a command.
In most cases, it is a Run object with a raw shell command,
so that it is clear what is being run and it is easy to copy.

Every generated file has an overwrite policy.
Credentials and base configs are written once; the existing file is
authoritative, so a re-run neither prompts again nor loses manual edits.
Files that embed the token or the settings are rewritten every run.

Nothing is rolled back. If a step fails, files written so far stay,
and the next run continues from them.
"""
from tig_stack._artifacts import Artifact
from tig_stack._artifacts import ArtifactKind
from tig_stack._artifacts import OverwritePolicy
from tig_stack._compose import Stack
from tig_stack._exceptions import AuthProbeInconclusive
from tig_stack._exceptions import DependencyInstallFailure
from tig_stack._exceptions import HealthCheckTimeout
from tig_stack._exceptions import LaunchFailure
from tig_stack._exceptions import ServiceStartFailure
from tig_stack._exceptions import SetupFailed
from tig_stack._exceptions import UnsupportedPlatform
from tig_stack._exceptions import ValidationError
from tig_stack._probe import ProbeResult
from tig_stack._probe import ProbeStatus
from tig_stack._probe import verify_token
from tig_stack._probe import wait_for_healthy
from tig_stack._provision import provision
from tig_stack._settings import Settings
from tig_stack._settings import resolve_settings

__all__ = [
    'Artifact',
    'ArtifactKind',
    'AuthProbeInconclusive',
    'DependencyInstallFailure',
    'HealthCheckTimeout',
    'LaunchFailure',
    'OverwritePolicy',
    'ProbeResult',
    'ProbeStatus',
    'ServiceStartFailure',
    'SetupFailed',
    'Settings',
    'Stack',
    'UnsupportedPlatform',
    'ValidationError',
    'provision',
    'resolve_settings',
    'verify_token',
    'wait_for_healthy',
    ]
