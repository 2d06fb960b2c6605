# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
from typing import Any
from typing import Collection
from typing import Dict
from typing import Mapping
from typing import NamedTuple
from typing import Optional
from typing import Sequence

import yaml

from tig_stack._settings import Settings

INFLUXDB_INTERNAL_PORT = 8086
GRAFANA_INTERNAL_PORT = 3000
TIG_VOLUMES = ['influxdb-data', 'influxdb-config', 'grafana-data']


class Stack(NamedTuple):
    influxdb_image: str = 'influxdb:latest'
    grafana_image: str = 'grafana/grafana-oss:latest'
    telegraf_image: str = 'telegraf:latest'
    influxdb_port: int = INFLUXDB_INTERNAL_PORT
    grafana_port: int = GRAFANA_INTERNAL_PORT
    network_name: str = 'tig-network'

    @classmethod
    def from_config(cls, config: Mapping[str, str]) -> 'Stack':
        return cls(
            influxdb_image=config['influxdb_image'],
            grafana_image=config['grafana_image'],
            telegraf_image=config['telegraf_image'],
            influxdb_port=int(config['influxdb_port']),
            grafana_port=int(config['grafana_port']),
            network_name=config['network_name'],
            )


class _Dumper(yaml.SafeDumper):
    pass


# Empty mapping values, as in "volumes:\n  grafana-data:".
_Dumper.add_representer(
    type(None),
    lambda dumper, _value: dumper.represent_scalar('tag:yaml.org,2002:null', ''),
    )


class Service:

    def __init__(
            self,
            name: str,
            image: str,
            *,
            ports: Sequence[str] = (),
            environment: Optional[Mapping[str, str]] = None,
            secrets: Sequence[str] = (),
            volumes: Sequence[str] = (),
            depends_on: Sequence[str] = (),
            ):
        self.name = name
        self._image = image
        self._ports = ports
        self._environment = environment
        self._secrets = secrets
        self._volumes = volumes
        self._depends_on = depends_on

    def __repr__(self):
        return f'{Service.__name__}({self.name!r}, {self._image!r})'

    def as_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {'image': self._image, 'container_name': self.name}
        if self._ports:
            result['ports'] = list(self._ports)
        if self._environment:
            result['environment'] = dict(self._environment)
        if self._secrets:
            result['secrets'] = list(self._secrets)
        if self._volumes:
            result['volumes'] = list(self._volumes)
        if self._depends_on:
            result['depends_on'] = list(self._depends_on)
        result['restart'] = 'unless-stopped'
        return result


def render_descriptor(
        services: Sequence[Service],
        volumes: Collection[str],
        secret_files: Mapping[str, str],
        network_name: str,
        ) -> str:
    descriptor = {
        'services': {service.name: service.as_dict() for service in services},
        'volumes': {volume: None for volume in volumes},
        'secrets': {name: {'file': path} for name, path in secret_files.items()},
        'networks': {'default': {'name': network_name}},
        }
    return yaml.dump(descriptor, Dumper=_Dumper, sort_keys=False, default_flow_style=False)


def tig_services(
        stack: Stack,
        settings: Settings,
        secret_names: Mapping[str, str],
        telegraf_conf: str,
        telegraf_conf_dir: str,
        ) -> Sequence[Service]:
    """Describe InfluxDB, Grafana and Telegraf.

    The secret_names keys are 'username', 'password' and 'token'.
    Config paths are relative to the compose project directory.
    """
    influxdb = Service(
        'influxdb',
        stack.influxdb_image,
        ports=[f'{stack.influxdb_port:d}:{INFLUXDB_INTERNAL_PORT:d}'],
        environment={
            'INFLUXDB_HTTP_AUTH_ENABLED': 'true',
            'DOCKER_INFLUXDB_INIT_MODE': 'setup',
            'DOCKER_INFLUXDB_INIT_USERNAME_FILE': '/run/secrets/' + secret_names['username'],
            'DOCKER_INFLUXDB_INIT_PASSWORD_FILE': '/run/secrets/' + secret_names['password'],
            'DOCKER_INFLUXDB_INIT_ADMIN_TOKEN_FILE': '/run/secrets/' + secret_names['token'],
            'DOCKER_INFLUXDB_INIT_ORG': _escape_interpolation(settings.org),
            'DOCKER_INFLUXDB_INIT_BUCKET': _escape_interpolation(settings.bucket),
            },
        secrets=[secret_names['username'], secret_names['password'], secret_names['token']],
        volumes=[
            'influxdb-data:/var/lib/influxdb2',
            'influxdb-config:/etc/influxdb2',
            ],
        )
    grafana = Service(
        'grafana',
        stack.grafana_image,
        ports=[f'{stack.grafana_port:d}:{GRAFANA_INTERNAL_PORT:d}'],
        volumes=['grafana-data:/var/lib/grafana'],
        depends_on=['influxdb'],
        )
    telegraf = Service(
        'telegraf',
        stack.telegraf_image,
        volumes=[
            f'./{telegraf_conf_dir}:/etc/telegraf/telegraf.d:ro',
            f'./{telegraf_conf}:/etc/telegraf/telegraf.conf:ro',
            ],
        depends_on=['influxdb'],
        )
    return [influxdb, grafana, telegraf]


def _escape_interpolation(value: str) -> str:
    """Compose substitutes variables in values.

    >>> _escape_interpolation('a$b')
    'a$$b'
    """
    return value.replace('$', '$$')
