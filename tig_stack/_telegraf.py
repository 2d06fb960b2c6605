# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import json

from tig_stack._settings import Settings

INPUTS_CONFIG = """\
[[inputs.cpu]]
  percpu = true
  totalcpu = true
  collect_cpu_time = false
  report_active = false
[[inputs.disk]]
  ignore_fs = ["tmpfs", "devtmpfs", "devfs", "iso9660", "overlay", "aufs", "squashfs"]
[[inputs.diskio]]
[[inputs.mem]]
[[inputs.net]]
[[inputs.system]]
"""


def agent_config(hostname: str) -> str:
    return (
        '[global_tags]\n'
        f'  server_name = {_quote(hostname)}\n'
        '[agent]\n'
        '  interval = "30s"\n'
        '  round_interval = true\n'
        '  metric_batch_size = 1000\n'
        '  metric_buffer_limit = 10000\n'
        '  collection_jitter = "0s"\n'
        '  flush_interval = "10s"\n'
        '  flush_jitter = "0s"\n'
        '  precision = "0s"\n'
        '  hostname = ""\n'
        '  omit_hostname = false\n'
        )


def influxdb_output_config(url: str, token: str, settings: Settings) -> str:
    """Render the output block.

    >>> print(influxdb_output_config('http://influxdb:8086', 'abc', Settings('docs', 'home')), end='')
    [[outputs.influxdb_v2]]
      urls = ["http://influxdb:8086"]
      token = "abc"
      organization = "docs"
      bucket = "home"
    """
    return (
        '[[outputs.influxdb_v2]]\n'
        f'  urls = [{_quote(url)}]\n'
        f'  token = {_quote(token)}\n'
        f'  organization = {_quote(settings.org)}\n'
        f'  bucket = {_quote(settings.bucket)}\n'
        )


def _quote(value: str) -> str:
    # JSON strings are valid TOML basic strings.
    return json.dumps(value)
