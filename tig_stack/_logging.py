# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import logging.handlers
from pathlib import Path


def init_logging(log_file: Path):
    logging.getLogger().setLevel(logging.DEBUG)
    _init_file_logging(log_file)
    _init_stream_logging()


def default_log_file() -> Path:
    return Path('~/.cache/tig_stack/setup.log').expanduser()


def _init_file_logging(log_file: Path):
    log_file.parent.mkdir(exist_ok=True, parents=True)
    file_handler = logging.handlers.RotatingFileHandler(
        log_file, maxBytes=10 * 1024**2, backupCount=3)
    file_handler.setFormatter(logging.Formatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
    file_handler.setLevel(logging.DEBUG)
    logging.getLogger().addHandler(file_handler)


def _init_stream_logging():
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(logging.Formatter('[%(asctime)s] [%(levelname)s] %(message)s', '%Y-%m-%d %H:%M:%S'))
    stream_handler.setLevel(logging.INFO)
    logging.getLogger().addHandler(stream_handler)
