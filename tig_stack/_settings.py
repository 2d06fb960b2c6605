# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import os
from typing import Callable
from typing import Mapping
from typing import NamedTuple
from typing import Optional


class Settings(NamedTuple):
    org: str
    bucket: str


def resolve_settings(
        defaults: Mapping[str, str],
        *,
        org: Optional[str] = None,
        bucket: Optional[str] = None,
        environ: Mapping[str, str] = os.environ,
        ask: Optional[Callable[[str], str]] = input,
        ) -> Settings:
    """Explicit value, then environment, then prompt, then default.

    With ask=None nothing is prompted and defaults are used.
    """
    return Settings(
        org=_resolve(
            'organization', org, environ.get('INFLUX_ORG'),
            "InfluxDB Org Name", defaults['influx_org'], ask),
        bucket=_resolve(
            'bucket', bucket, environ.get('INFLUX_BUCKET'),
            "InfluxDB Bucket Name", defaults['influx_bucket'], ask),
        )


def _resolve(name, explicit, from_environ, question, default, ask):
    if explicit:
        _logger.debug("Setting %s: %r from command line", name, explicit)
        return explicit
    if from_environ:
        _logger.info("Setting %s: %r from environment", name, from_environ)
        return from_environ
    if ask is None:
        _logger.info("Setting %s: %r by default", name, default)
        return default
    try:
        answer = ask(f"{question} [{default}]: ").strip()
    except EOFError:
        _logger.info("Setting %s: no input, %r by default", name, default)
        return default
    return answer or default


_logger = logging.getLogger(__name__)
