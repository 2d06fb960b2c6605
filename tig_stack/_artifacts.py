# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from enum import Enum
from pathlib import Path
from typing import Callable
from typing import Optional

from tig_stack._exceptions import SetupFailed


class ArtifactKind(Enum):
    SECRET = 'secret'
    CONFIG = 'config'
    DESCRIPTOR = 'descriptor'


class OverwritePolicy(Enum):
    """Whether a file on disk is authoritative or derived.

    CREATE_IF_ABSENT files are written once. Existing content is kept:
    credentials stay stable and manual edits survive.
    ALWAYS_REGENERATE files are rewritten from the current inputs every run.
    """

    CREATE_IF_ABSENT = 'create_if_absent'
    ALWAYS_REGENERATE = 'always_regenerate'


class Artifact:

    def __init__(
            self,
            name: str,
            path: Path,
            kind: ArtifactKind,
            policy: OverwritePolicy,
            generator: Callable[[], str],
            ):
        self.name = name
        self.path = path
        self.kind = kind
        self.policy = policy
        self._generator = generator
        self._content: Optional[str] = None
        self.written = False

    def __repr__(self):
        return f'<{Artifact.__name__} {self.name} {self.kind.value} {self.policy.value} {self.path}>'

    def resolve(self) -> 'Artifact':
        if self.policy == OverwritePolicy.CREATE_IF_ABSENT:
            try:
                self._content = self.path.read_text(encoding='utf-8')
            except FileNotFoundError:
                _logger.debug("%s: %s: absent", self.name, self.path)
            except UnicodeDecodeError as e:
                raise SetupFailed(f"{self.path} is not valid UTF-8: {e}; fix or remove it")
            else:
                _logger.info("%s: %s: exists, keep", self.name, self.path)
                return self
        content = self._generator()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write_atomically(content)
        self._content = content
        self.written = True
        _logger.info("%s: %s: written", self.name, self.path)
        return self

    def _write_atomically(self, content: str):
        # A partially written file must never appear under the final name.
        temporary = self.path.with_name(self.path.name + '.tmp')
        try:
            temporary.write_text(content, encoding='utf-8')
            temporary.replace(self.path)
        except BaseException:
            try:
                temporary.unlink()
            except FileNotFoundError:
                pass
            raise

    def content(self) -> str:
        if self._content is None:
            raise RuntimeError(f"{self!r} is not resolved yet")
        return self._content

    def value(self) -> str:
        """Content without the trailing newline. Used for one-line secrets."""
        return self.content().rstrip('\n')


_logger = logging.getLogger(__name__)
