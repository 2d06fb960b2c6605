# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import unittest

from tig_stack._exceptions import ValidationError
from tig_stack._secrets import Prompt
from tig_stack._secrets import RandomToken
from tig_stack._secrets import Unavailable
from tig_stack._secrets import is_valid_password
from tig_stack._secrets import is_valid_username


class _Answers:

    def __init__(self, *answers):
        self._answers = list(answers)
        self.asked = 0

    def __call__(self, _question):
        self.asked += 1
        if not self._answers:
            raise EOFError()
        return self._answers.pop(0)


class TestPasswordValidation(unittest.TestCase):

    def test_boundaries(self):
        self.assertFalse(is_valid_password('p' * 7))
        self.assertTrue(is_valid_password('p' * 8))
        self.assertTrue(is_valid_password('p' * 72))
        self.assertFalse(is_valid_password('p' * 73))

    def test_empty(self):
        self.assertFalse(is_valid_password(''))

    def test_username(self):
        self.assertTrue(is_valid_username('admin'))
        self.assertFalse(is_valid_username(''))
        self.assertFalse(is_valid_username('   '))


class TestPrompt(unittest.TestCase):

    def _password_prompt(self, read, attempts=5):
        return Prompt("Password: ", is_valid_password, "Bad password", read, attempts)

    def test_reprompt_until_valid(self):
        read = _Answers('p' * 7, 'p' * 73, 'p' * 8)
        self.assertEqual(self._password_prompt(read).obtain(), 'p' * 8)
        self.assertEqual(read.asked, 3)

    def test_longest_accepted(self):
        read = _Answers('p' * 72)
        self.assertEqual(self._password_prompt(read).obtain(), 'p' * 72)

    def test_stripped(self):
        read = _Answers('   ', '  admin \n')
        prompt = Prompt("Username: ", is_valid_username, "Empty", read, strip=True)
        self.assertEqual(prompt.obtain(), 'admin')
        self.assertEqual(read.asked, 2)

    def test_not_stripped_by_default(self):
        read = _Answers(' password ')
        self.assertEqual(self._password_prompt(read).obtain(), ' password ')

    def test_bounded_attempts(self):
        read = _Answers(*['short'] * 10)
        with self.assertRaises(ValidationError):
            self._password_prompt(read, attempts=3).obtain()
        self.assertEqual(read.asked, 3)

    def test_end_of_input(self):
        read = _Answers()
        with self.assertRaises(ValidationError):
            self._password_prompt(read).obtain()
        self.assertEqual(read.asked, 1)

    def test_unavailable(self):
        with self.assertRaises(ValidationError):
            Unavailable("InfluxDB admin password").obtain()


class TestRandomToken(unittest.TestCase):

    def test_format(self):
        token = RandomToken().obtain()
        self.assertRegex(token, r'^[0-9a-f]{64}$')

    def test_unique(self):
        tokens = {RandomToken().obtain() for _ in range(100)}
        self.assertEqual(len(tokens), 100)


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)7s %(name)s %(message).5000s",
        )
    unittest.main()
