# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import getpass
import logging
import socket
from pathlib import Path
from typing import Callable
from typing import Collection
from typing import List
from typing import Mapping
from typing import Optional
from typing import Sequence

from tig_stack._artifacts import Artifact
from tig_stack._artifacts import ArtifactKind
from tig_stack._artifacts import OverwritePolicy
from tig_stack._compose import INFLUXDB_INTERNAL_PORT
from tig_stack._compose import TIG_VOLUMES
from tig_stack._compose import Service
from tig_stack._compose import Stack
from tig_stack._compose import render_descriptor
from tig_stack._compose import tig_services
from tig_stack._secrets import Prompt
from tig_stack._secrets import RandomToken
from tig_stack._secrets import SecretSource
from tig_stack._secrets import Unavailable
from tig_stack._secrets import is_valid_password
from tig_stack._secrets import is_valid_username
from tig_stack._settings import Settings
from tig_stack._telegraf import INPUTS_CONFIG
from tig_stack._telegraf import agent_config
from tig_stack._telegraf import influxdb_output_config

USERNAME = 'influxdb-admin-username'
PASSWORD = 'influxdb-admin-password'
TOKEN = 'influxdb-admin-token'
TELEGRAF_CONF = 'telegraf-config/telegraf.conf'
TELEGRAF_CONF_DIR = 'telegraf-config/telegraf.d'
TELEGRAF_INPUTS_CONF = TELEGRAF_CONF_DIR + '/100-inputs.conf'
TELEGRAF_OUTPUT_CONF = TELEGRAF_CONF_DIR + '/000-influxdb.conf'
DESCRIPTOR = 'docker-compose.yml'


def secret_file(name: str) -> str:
    return f'.env.{name}'


def ensure_secret(target_dir: Path, name: str, source: SecretSource) -> Artifact:
    artifact = Artifact(
        name,
        target_dir / secret_file(name),
        ArtifactKind.SECRET,
        OverwritePolicy.CREATE_IF_ABSENT,
        lambda: source.obtain() + '\n',
        )
    return artifact.resolve()


def ensure_base_config(target_dir: Path, relative_path: str, template: str) -> Artifact:
    artifact = Artifact(
        relative_path,
        target_dir / relative_path,
        ArtifactKind.CONFIG,
        OverwritePolicy.CREATE_IF_ABSENT,
        lambda: template,
        )
    return artifact.resolve()


def render_dependent_config(
        target_dir: Path,
        relative_path: str,
        template: Callable[..., str],
        **inputs,
        ) -> Artifact:
    artifact = Artifact(
        relative_path,
        target_dir / relative_path,
        ArtifactKind.CONFIG,
        OverwritePolicy.ALWAYS_REGENERATE,
        lambda: template(**inputs),
        )
    return artifact.resolve()


def write_descriptor(
        target_dir: Path,
        services: Sequence[Service],
        volumes: Collection[str],
        secret_files: Mapping[str, str],
        network_name: str,
        ) -> Artifact:
    artifact = Artifact(
        DESCRIPTOR,
        target_dir / DESCRIPTOR,
        ArtifactKind.DESCRIPTOR,
        OverwritePolicy.ALWAYS_REGENERATE,
        lambda: render_descriptor(services, volumes, secret_files, network_name),
        )
    return artifact.resolve()


def interactive_sources(
        attempts: int = 5,
        read: Callable[[str], str] = input,
        read_hidden: Callable[[str], str] = getpass.getpass,
        ) -> Mapping[str, SecretSource]:
    return {
        USERNAME: Prompt(
            "InfluxDB Admin Username: ", is_valid_username,
            "Username must not be empty.", read, attempts, strip=True),
        PASSWORD: Prompt(
            "InfluxDB Admin Password (8-72 chars): ", is_valid_password,
            "Password must be from 8 to 72 characters long.", read_hidden, attempts),
        TOKEN: RandomToken(),
        }


def non_interactive_sources() -> Mapping[str, SecretSource]:
    return {
        USERNAME: Unavailable(f"InfluxDB admin username ({secret_file(USERNAME)})"),
        PASSWORD: Unavailable(f"InfluxDB admin password ({secret_file(PASSWORD)})"),
        TOKEN: RandomToken(),
        }


def provision(
        target_dir: Path,
        settings: Settings,
        sources: Mapping[str, SecretSource],
        *,
        stack: Stack = Stack(),
        hostname: Optional[str] = None,
        ) -> List[Artifact]:
    """Write everything the stack needs into target_dir.

    Secrets and base configs are created once and then left alone.
    Files derived from the token and settings are rewritten every run.
    On failure, files written so far stay; a re-run picks them up.
    """
    _logger.info("Generating artifacts in %s", target_dir)
    if hostname is None:
        hostname = socket.gethostname()
    target_dir.mkdir(parents=True, exist_ok=True)
    username = ensure_secret(target_dir, USERNAME, sources[USERNAME])
    password = ensure_secret(target_dir, PASSWORD, sources[PASSWORD])
    token = ensure_secret(target_dir, TOKEN, sources[TOKEN])
    if token.written:
        _logger.info("Generated new InfluxDB token")
    agent = ensure_base_config(target_dir, TELEGRAF_CONF, agent_config(hostname))
    inputs = ensure_base_config(target_dir, TELEGRAF_INPUTS_CONF, INPUTS_CONFIG)
    output = render_dependent_config(
        target_dir,
        TELEGRAF_OUTPUT_CONF,
        influxdb_output_config,
        url=f'http://influxdb:{INFLUXDB_INTERNAL_PORT:d}',
        token=token.value(),
        settings=settings,
        )
    services = tig_services(
        stack,
        settings,
        secret_names={'username': USERNAME, 'password': PASSWORD, 'token': TOKEN},
        telegraf_conf=TELEGRAF_CONF,
        telegraf_conf_dir=TELEGRAF_CONF_DIR,
        )
    descriptor = write_descriptor(
        target_dir,
        services,
        TIG_VOLUMES,
        {name: secret_file(name) for name in (USERNAME, PASSWORD, TOKEN)},
        stack.network_name,
        )
    return [username, password, token, agent, inputs, output, descriptor]


def find_artifact(artifacts: Sequence[Artifact], name: str) -> Artifact:
    [artifact] = [a for a in artifacts if a.name == name]
    return artifact


_logger = logging.getLogger(__name__)
