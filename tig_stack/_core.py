# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
from abc import ABCMeta
from abc import abstractmethod
from subprocess import CalledProcessError
from subprocess import TimeoutExpired
from typing import Sequence
from typing import Type

from tig_stack._shell import sh


class Command(metaclass=ABCMeta):

    @abstractmethod
    def run(self):
        pass


class Run(Command):

    def __init__(self, command: str):
        self._command = command

    def __repr__(self):
        return f'{Run.__name__}({self._command!r})'

    def run(self):
        sh(self._command)


class Checked(Command):
    """Turn a failed shell command into a setup failure of the given kind."""

    def __init__(self, command: Command, failure: Type[Exception], message: str):
        self._command = command
        self._failure = failure
        self._message = message

    def __repr__(self):
        return repr(self._command)

    def run(self):
        try:
            self._command.run()
        except (CalledProcessError, TimeoutExpired) as e:
            raise self._failure(f"{self._message}: {e}")


class CompositeCommand(Command):

    def __init__(self, commands: Sequence[Command]):
        self._commands: Sequence[Command] = commands

    def __repr__(self):
        return f'<{self.__class__.__name__} with {len(self._commands)} commands>'

    def run(self):
        for command in self._commands:
            command.run()


class LocalHost:
    """Run commands one by one and stop on the first failure."""

    def run(self, commands: Sequence[Command]):
        for command in commands:
            _logger.debug("Command %r", command)
            command.run()


_logger = logging.getLogger(__name__)
