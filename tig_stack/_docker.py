# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import getpass
import logging
import os
import shlex
from pathlib import Path
from subprocess import CalledProcessError
from typing import Collection
from typing import Sequence

from tig_stack._core import Checked
from tig_stack._core import Command
from tig_stack._core import Run
from tig_stack._exceptions import DependencyInstallFailure
from tig_stack._exceptions import LaunchFailure
from tig_stack._exceptions import ServiceStartFailure
from tig_stack._platform import PackageManager
from tig_stack._shell import has_command
from tig_stack._shell import sh_still

_WSL_HINT = """\
--------------------------------------------------------------------------------
DETECTED WSL ENVIRONMENT WITHOUT SYSTEMD
You must enable systemd for Docker to work correctly.

1. Edit wsl.conf:  sudo nano /etc/wsl.conf
2. Add these lines:
   [boot]
   systemd=true
3. Restart WSL:    wsl --shutdown (in PowerShell)
--------------------------------------------------------------------------------"""


class EnsureTools(Command):
    """Install the tools needed to fetch repository keys, if missing."""

    _packages = {'curl': 'curl', 'gpg': 'gnupg'}

    def __init__(self, package_manager: PackageManager):
        self._package_manager = package_manager

    def __repr__(self):
        return f'{EnsureTools.__name__}({self._package_manager!r})'

    def run(self):
        _logger.info("Checking system dependencies")
        missing = [package for name, package in self._packages.items() if not has_command(name)]
        if not missing:
            _logger.info("All system dependencies met")
            return
        _logger.info("Missing dependencies found: %s", ' '.join(missing))
        self._package_manager.update().run()
        self._package_manager.install(missing).run()
        for name in self._packages:
            if not has_command(name):
                _logger.warning("Command %r still not found after installation. Proceeding with caution", name)


class EnsureDocker(Command):

    def __init__(self, package_manager: PackageManager):
        self._package_manager = package_manager

    def __repr__(self):
        return f'{EnsureDocker.__name__}({self._package_manager!r})'

    def run(self):
        if has_command('docker'):
            if sh_still('docker compose version').returncode == 0:
                _logger.info("Docker is already installed")
                return
            _logger.info("Docker Compose plugin missing. Attempting to fix")
        else:
            _logger.info("Installing Docker")
        try:
            for command in self._package_manager.docker_repo_setup():
                command.run()
        except CalledProcessError as e:
            raise DependencyInstallFailure(f"Failed to set up Docker repository: {e}")
        self._package_manager.docker_install().run()
        StartDockerService().run()
        AddUserToDockerGroup(_invoking_user()).run()


class StartDockerService(Command):

    def __init__(self, proc_version: Path = Path('/proc/version')):
        self._proc_version = proc_version

    def __repr__(self):
        return f'{StartDockerService.__name__}()'

    def run(self):
        _logger.info("Starting Docker service")
        if Path('/run/systemd/system').is_dir() and sh_still('sudo systemctl --version').returncode == 0:
            Checked(
                Run('sudo systemctl enable --now docker'),
                ServiceStartFailure,
                "Docker failed to start",
                ).run()
            return
        if has_command('service'):
            _logger.info("Systemd not active. Trying 'service' command")
            r = sh_still('sudo service docker start')
            if r.returncode != 0:
                _logger.warning("service docker start: %s", r.stderr.decode(errors='replace').strip())
        if sh_still('sudo docker info').returncode != 0:
            if self._is_wsl():
                raise ServiceStartFailure("Docker failed to start.", hint=_WSL_HINT)
            raise ServiceStartFailure("Docker failed to start. Please check system logs.")

    def _is_wsl(self):
        try:
            version = self._proc_version.read_text()
        except OSError:
            return False
        version = version.lower()
        return 'microsoft' in version or 'wsl' in version


class AddUserToDockerGroup(Command):

    def __init__(self, username: str):
        self._username = username

    def __repr__(self):
        return f'{AddUserToDockerGroup.__name__}({self._username!r})'

    def run(self):
        if sh_still('getent group docker').returncode != 0:
            Run('sudo groupadd docker').run()
        Run(f'sudo usermod -aG docker {shlex.quote(self._username)}').run()
        _logger.info("User %s added to 'docker' group", self._username)


class ConfigureFirewall(Command):

    def __init__(self, tcp_ports: Collection[int]):
        self._tcp_ports = tcp_ports

    def __repr__(self):
        return f'{ConfigureFirewall.__name__}({self._tcp_ports!r})'

    def run(self):
        if has_command('ufw') and b'Status: active' in sh_still('sudo ufw status').stdout:
            _logger.info("Configuring UFW")
            for port in self._tcp_ports:
                Run(f'sudo ufw allow {port:d}/tcp').run()
        elif has_command('firewall-cmd') and sh_still('sudo firewall-cmd --state').returncode == 0:
            _logger.info("Configuring firewalld")
            for port in self._tcp_ports:
                Run(f'sudo firewall-cmd --permanent --add-port={port:d}/tcp').run()
            Run('sudo firewall-cmd --reload').run()
        else:
            _logger.info("No active firewall found")


class ComposeLaunch(Command):

    def __init__(self, project_dir: Path):
        self._project_dir = project_dir

    def __repr__(self):
        return f'{ComposeLaunch.__name__}({str(self._project_dir)!r})'

    def run(self):
        _logger.info("Pulling and starting services")
        d = shlex.quote(str(self._project_dir))
        for command in [f'cd {d} && sudo docker compose pull', f'cd {d} && sudo docker compose up -d']:
            Checked(Run(command), LaunchFailure, "Failed to launch services").run()


def host_setup(package_manager: PackageManager, tcp_ports: Collection[int]) -> Sequence[Command]:
    return [
        EnsureTools(package_manager),
        EnsureDocker(package_manager),
        ConfigureFirewall(tcp_ports),
        ]


def _invoking_user():
    # Under sudo, the group membership is wanted for the human, not for root.
    return os.environ.get('SUDO_USER') or getpass.getuser()


_logger = logging.getLogger(__name__)
