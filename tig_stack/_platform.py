# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
"""Package manager capabilities per Linux distribution.

The distribution is identified once by the ID field of /etc/os-release
and mapped to a package manager. The package manager knows how to refresh
its indexes, install packages and make the Docker CE repository available.
"""
import csv
import fnmatch
import logging
import re
import shlex
from abc import ABCMeta
from abc import abstractmethod
from pathlib import Path
from typing import Mapping
from typing import Sequence

from tig_stack._core import Checked
from tig_stack._core import Command
from tig_stack._core import CompositeCommand
from tig_stack._core import Run
from tig_stack._exceptions import DependencyInstallFailure
from tig_stack._exceptions import UnsupportedPlatform
from tig_stack._shell import sh_still

DOCKER_PACKAGES = [
    'docker-ce',
    'docker-ce-cli',
    'containerd.io',
    'docker-buildx-plugin',
    'docker-compose-plugin',
    ]

_safe_word = re.compile(r'[a-z0-9][a-z0-9._-]*')


class OsRelease:
    """Identification of the distribution.

    >>> r = OsRelease({'ID': 'ubuntu', 'VERSION_ID': '22.04', 'VERSION_CODENAME': 'jammy'})
    >>> r.id, r.version_id, r.codename
    ('ubuntu', '22.04', 'jammy')
    >>> OsRelease({}).id
    'linux'
    """

    def __init__(self, fields: Mapping[str, str]):
        self._fields = fields
        self.id = fields.get('ID', 'linux')
        self.version_id = fields.get('VERSION_ID', '')
        self.codename = fields.get('VERSION_CODENAME', '')

    def __repr__(self):
        return f'{OsRelease.__name__}({dict(self._fields)!r})'


def read_os_release(path: Path = Path('/etc/os-release')) -> OsRelease:
    try:
        with path.open(mode='r') as f:
            reader = csv.reader(f, delimiter='=')
            fields = {row[0]: row[1] for row in reader if len(row) == 2}
    except FileNotFoundError:
        raise UnsupportedPlatform(f"{path} not found. Unsupported OS.")
    os_release = OsRelease(fields)
    _logger.info("Detected OS: %s (%s)", os_release.id, os_release.version_id)
    return os_release


class PackageManager(metaclass=ABCMeta):
    name: str

    def __init__(self, os_release: OsRelease):
        self._os_release = os_release

    def __repr__(self):
        return f'{self.__class__.__name__}({self._os_release.id!r})'

    @abstractmethod
    def update(self) -> Command:
        pass

    @abstractmethod
    def _install_command(self, packages: Sequence[str]) -> str:
        pass

    def install(self, packages: Sequence[str]) -> Command:
        return Checked(
            Run(self._install_command(packages)),
            DependencyInstallFailure,
            f"Failed to install {' '.join(packages)}",
            )

    @abstractmethod
    def docker_repo_setup(self) -> Sequence[Command]:
        pass

    def docker_install(self) -> Command:
        return self.install(DOCKER_PACKAGES)


class _Apt(PackageManager):
    name = 'apt-get'
    _keyring = '/etc/apt/keyrings/docker.gpg'

    def update(self):
        return Checked(Run('sudo apt-get update'), DependencyInstallFailure, "Failed to update package lists")

    def _install_command(self, packages):
        return f'sudo DEBIAN_FRONTEND=noninteractive apt-get install -y {shlex.join(packages)}'

    def docker_repo_setup(self):
        os_id = self._os_release.id
        codename = self._os_release.codename
        if not codename:
            raise UnsupportedPlatform(f"VERSION_CODENAME is missing in os-release of {os_id}")
        # Values go into a double-quoted shell string unquoted.
        for value in (os_id, codename):
            if not _safe_word.fullmatch(value):
                raise UnsupportedPlatform(f"Unexpected os-release value: {value!r}")
        source = (
            f'deb [arch=$(dpkg --print-architecture) signed-by={self._keyring}] '
            f'https://download.docker.com/linux/{os_id} {codename} stable')
        return [
            self.update(),
            self.install(['ca-certificates', 'curl', 'gnupg']),
            Run('sudo install -m 0755 -d /etc/apt/keyrings'),
            Run(f'sudo rm -f {self._keyring}'),
            Run(f'curl -fsSL https://download.docker.com/linux/{os_id}/gpg | sudo gpg --dearmor -o {self._keyring}'),
            Run(f'sudo chmod a+r {self._keyring}'),
            Run(f'echo "{source}" | sudo tee /etc/apt/sources.list.d/docker.list > /dev/null'),
            self.update(),
            ]


class _Dnf(PackageManager):
    """Fedora and RHEL family.

    >>> _Dnf(OsRelease({'ID': 'rocky'}))._docker_repo_os()
    'centos'
    >>> _Dnf(OsRelease({'ID': 'fedora'}))._docker_repo_os()
    'fedora'
    """
    name = 'dnf'
    _rhel_derivatives = ('almalinux', 'rocky', 'rhel', 'ol')

    def update(self):
        # Exit status 100 means that updates are available.
        return Checked(
            Run('sudo dnf check-update || test $? -eq 100'),
            DependencyInstallFailure,
            "Failed to update package metadata")

    def _install_command(self, packages):
        return f'sudo dnf install -y {shlex.join(packages)}'

    def _docker_repo_os(self):
        if self._os_release.id in self._rhel_derivatives:
            return 'centos'
        return self._os_release.id

    def docker_repo_setup(self):
        repo_url = f'https://download.docker.com/linux/{self._docker_repo_os()}/docker-ce.repo'
        return [
            self.install(['dnf-plugins-core']),
            Run(f'sudo dnf config-manager --add-repo {shlex.quote(repo_url)}'),
            ]


class _Zypper(PackageManager):
    name = 'zypper'

    def update(self):
        return Checked(Run('sudo zypper refresh'), DependencyInstallFailure, "Failed to refresh repositories")

    def _install_command(self, packages):
        return f'sudo zypper install -y {shlex.join(packages)}'

    def docker_repo_setup(self):
        return [
            # Fails if the repository is already added.
            Run('sudo zypper addrepo --check --refresh https://download.docker.com/linux/sles/docker-ce.repo || true'),
            Run('sudo zypper --gpg-auto-import-keys refresh'),
            ]

    def docker_install(self):
        return _ZypperDockerInstall(self)


class _ZypperDockerInstall(Command):
    """Docker CE first, then distribution packages, then a bare compose binary."""

    def __init__(self, zypper: _Zypper):
        self._zypper = zypper

    def __repr__(self):
        return f'{_ZypperDockerInstall.__name__}()'

    def run(self):
        r = sh_still(self._zypper._install_command(DOCKER_PACKAGES))
        if r.returncode == 0:
            _logger.info("Docker CE installed")
            return
        _logger.warning(
            "Failed to install Docker CE from the official repository. "
            "Falling back to distribution packages: %s", r.stderr.decode(errors='replace'))
        self._zypper.install(['docker']).run()
        r = sh_still(self._zypper._install_command(['docker-compose-plugin']))
        if r.returncode != 0:
            _logger.warning("docker-compose-plugin package not found. Installing binary manually")
            InstallComposeBinary().run()


class InstallComposeBinary(CompositeCommand):

    def __init__(self, plugins_dir='/usr/local/lib/docker/cli-plugins'):
        d = shlex.quote(plugins_dir)
        url = 'https://github.com/docker/compose/releases/latest/download/docker-compose-linux-$(uname -m)'
        commands = [
            Run(f'sudo mkdir -p {d}'),
            Run(f'sudo curl -fSL {url} -o {d}/docker-compose'),
            Run(f'sudo chmod +x {d}/docker-compose'),
            Run(f'sudo ln -sf {d}/docker-compose /usr/local/bin/docker-compose'),
            ]
        super().__init__([
            Checked(command, DependencyInstallFailure, "Failed to install docker compose binary")
            for command in commands
            ])
        self._repr = f'{InstallComposeBinary.__name__}({plugins_dir!r})'

    def __repr__(self):
        return self._repr


_package_managers = {
    'ubuntu': _Apt,
    'debian': _Apt,
    'centos': _Dnf,
    'rhel': _Dnf,
    'almalinux': _Dnf,
    'rocky': _Dnf,
    'fedora': _Dnf,
    'ol': _Dnf,
    'opensuse*': _Zypper,
    'sles': _Zypper,
    }


def select_package_manager(os_release: OsRelease) -> PackageManager:
    """Find package manager by distribution ID.

    >>> select_package_manager(OsRelease({'ID': 'debian'})).name
    'apt-get'
    >>> select_package_manager(OsRelease({'ID': 'opensuse-leap'})).name
    'zypper'
    """
    for mask, package_manager_cls in _package_managers.items():
        if fnmatch.fnmatchcase(os_release.id, mask):
            return package_manager_cls(os_release)
    raise UnsupportedPlatform(f"Unsupported Operating System: {os_release.id}")


_logger = logging.getLogger(__name__)
