# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import secrets
from abc import ABCMeta
from abc import abstractmethod
from typing import Callable

from tig_stack._exceptions import ValidationError


class SecretSource(metaclass=ABCMeta):

    @abstractmethod
    def obtain(self) -> str:
        pass


class RandomToken(SecretSource):
    """Hex-encoded random value from the OS CSPRNG.

    >>> len(RandomToken().obtain())
    64
    """

    def __init__(self, bits: int = 256):
        self._bits = bits

    def __repr__(self):
        return f'{RandomToken.__name__}({self._bits!r})'

    def obtain(self):
        return secrets.token_hex(self._bits // 8)


class Prompt(SecretSource):
    """Ask until the answer is valid, but not forever."""

    def __init__(
            self,
            question: str,
            is_valid: Callable[[str], bool],
            hint: str,
            read: Callable[[str], str] = input,
            attempts: int = 5,
            strip: bool = False,
            ):
        self._question = question
        self._is_valid = is_valid
        self._hint = hint
        self._read = read
        self._attempts = attempts
        self._strip = strip

    def __repr__(self):
        return f'{Prompt.__name__}({self._question!r})'

    def obtain(self):
        for _ in range(self._attempts):
            try:
                answer = self._read(self._question)
            except EOFError:
                raise ValidationError(f"No input for {self._question.strip()!r}")
            if self._strip:
                answer = answer.strip()
            if self._is_valid(answer):
                return answer
            _logger.warning("%s", self._hint)
        raise ValidationError(f"No valid input for {self._question.strip()!r} after {self._attempts} attempts")


class Unavailable(SecretSource):
    """Stand-in for a prompt when running non-interactively."""

    def __init__(self, description: str):
        self._description = description

    def __repr__(self):
        return f'{Unavailable.__name__}({self._description!r})'

    def obtain(self):
        raise ValidationError(
            f"{self._description} is not set and prompts are disabled; "
            "run interactively or create the file beforehand")


def is_valid_password(password: str) -> bool:
    """From 8 to 72 characters inclusive.

    >>> [is_valid_password('x' * n) for n in (7, 8, 72, 73)]
    [False, True, True, False]
    """
    return 8 <= len(password) <= 72


def is_valid_username(username: str) -> bool:
    return bool(username.strip())


_logger = logging.getLogger(__name__)
