# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import argparse
import logging
import sys
from pathlib import Path
from subprocess import CalledProcessError
from subprocess import TimeoutExpired
from typing import Mapping

from tig_stack._compose import Stack
from tig_stack._core import LocalHost
from tig_stack._docker import ComposeLaunch
from tig_stack._docker import host_setup
from tig_stack._exceptions import HealthCheckTimeout
from tig_stack._exceptions import SetupFailed
from tig_stack._logging import default_log_file
from tig_stack._logging import init_logging
from tig_stack._platform import read_os_release
from tig_stack._platform import select_package_manager
from tig_stack._probe import verify_token
from tig_stack._probe import wait_for_healthy
from tig_stack._provision import TOKEN
from tig_stack._provision import find_artifact
from tig_stack._provision import interactive_sources
from tig_stack._provision import non_interactive_sources
from tig_stack._provision import provision
from tig_stack._settings import resolve_settings
from tig_stack.config import load_config


def main(args=None) -> int:
    parsed = _parse_args(args)
    init_logging(parsed.log_file)
    try:
        _setup(parsed, load_config())
    except SetupFailed as e:
        _logger.error("%s", e)
        return 1
    except (CalledProcessError, TimeoutExpired) as e:
        _logger.error("Command failed: %s", e)
        return 1
    except OSError as e:
        _logger.error("Cannot write files: %s", e)
        return 1
    return 0


def _setup(args, config: Mapping[str, str]):
    _logger.info("Starting TiG stack setup")
    stack = Stack.from_config(config)
    target_dir = args.target_dir.absolute()
    host = LocalHost()
    if args.skip_host_setup:
        _logger.info("Skip host setup")
    else:
        package_manager = select_package_manager(read_os_release())
        host.run(host_setup(package_manager, [stack.influxdb_port, stack.grafana_port]))
    settings = resolve_settings(
        config,
        org=args.org,
        bucket=args.bucket,
        ask=None if args.non_interactive else input,
        )
    if args.non_interactive:
        sources = non_interactive_sources()
    else:
        sources = interactive_sources(attempts=int(config['prompt_attempts']))
    artifacts = provision(target_dir, settings, sources, stack=stack)
    token = find_artifact(artifacts, TOKEN).value()
    if args.provision_only:
        _logger.info("Files are ready in %s", target_dir)
        return
    host.run([ComposeLaunch(target_dir)])
    influxdb_url = f'http://localhost:{stack.influxdb_port:d}'
    health_url = influxdb_url + '/health'
    result = wait_for_healthy(
        health_url,
        max_attempts=int(config['probe_attempts']),
        interval_sec=float(config['probe_interval_sec']),
        )
    if not result.passed():
        raise HealthCheckTimeout(health_url, result.attempts)
    verify_token(influxdb_url, token)
    _report(stack, token)


def _report(stack: Stack, token: str):
    _logger.info("=" * 56)
    _logger.info("Installation Finished Successfully.")
    _logger.info("Grafana:  http://localhost:%d (default: admin/admin)", stack.grafana_port)
    _logger.info("InfluxDB: http://localhost:%d", stack.influxdb_port)
    _logger.info("Token:    %s", token)
    _logger.info("=" * 56)


def _parse_args(args):
    parser = argparse.ArgumentParser(description=(
        "install Docker and start Telegraf, InfluxDB and Grafana on this host; "
        "safe to re-run: credentials and base configs are kept"))
    parser.add_argument('--target-dir', type=Path, default=Path('.'), help=(
        "where secrets, configs and docker-compose.yml are written; "
        "default: current directory"))
    parser.add_argument('--org', help="InfluxDB organization; overrides INFLUX_ORG")
    parser.add_argument('--bucket', help="InfluxDB bucket; overrides INFLUX_BUCKET")
    parser.add_argument('--non-interactive', action='store_true', help=(
        "never prompt; use defaults for settings "
        "and fail if credentials are not created yet"))
    parser.add_argument('--skip-host-setup', action='store_true', help=(
        "do not install packages, Docker or firewall rules"))
    parser.add_argument('--provision-only', action='store_true', help=(
        "only write files; do not start services"))
    parser.add_argument('--log-file', type=Path, default=default_log_file(), help=(
        "default: %(default)s"))
    return parser.parse_args(args)


_logger = logging.getLogger(__name__)

if __name__ == '__main__':
    sys.exit(main())
