# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import fnmatch
import logging
import socket
from configparser import ConfigParser
from pathlib import Path
from typing import Mapping
from typing import Optional

_logger = logging.getLogger(__name__)


def read_config(*paths: Path, host: Optional[str] = None) -> Mapping[str, str]:
    """Read and merge sections that apply to this host.

    Section names are host masks like "[monitoring-??]".
    The "[defaults]" section applies to every host.
    Later files override earlier files. Within a file, later sections
    override earlier ones. Missing files are skipped.
    """
    if host is None:
        host = socket.gethostname()
    config = {}
    for path in paths:
        config_parser = ConfigParser()
        config_parser.read(path)
        for section in config_parser.sections():
            mask = '*' if section == 'defaults' else section
            if fnmatch.fnmatch(host, mask):
                _logger.debug("Config %s: section %s: read", path, section)
                config.update(config_parser.items(section))
            else:
                _logger.debug("Config %s: section %s: skip", path, section)
    return config


def user_config_path() -> Path:
    return Path('~/.config/tig_stack.ini').expanduser()


def load_config() -> Mapping[str, str]:
    return read_config(Path(__file__).with_name('config.ini'), user_config_path())


if __name__ == '__main__':
    for k, v in load_config().items():
        print(k + '=' + v)
