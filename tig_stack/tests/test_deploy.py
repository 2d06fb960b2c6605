# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import logging
import shutil
import tempfile
import unittest
from pathlib import Path

import yaml

from tig_stack._docker import StartDockerService
from tig_stack.deploy import main


class TestDeploy(unittest.TestCase):

    def setUp(self):
        self._dir = Path(tempfile.mkdtemp())
        self._root_logger = logging.getLogger()
        self._handlers = list(self._root_logger.handlers)
        self._level = self._root_logger.level

    def tearDown(self):
        for handler in self._root_logger.handlers:
            if handler not in self._handlers:
                self._root_logger.removeHandler(handler)
                handler.close()
        self._root_logger.setLevel(self._level)
        shutil.rmtree(self._dir)

    def _main(self, *args):
        return main([
            '--target-dir', str(self._dir / 'stack'),
            '--log-file', str(self._dir / 'setup.log'),
            '--skip-host-setup',
            '--provision-only',
            '--non-interactive',
            *args,
            ])

    def test_provision_only(self):
        stack = self._dir / 'stack'
        stack.mkdir()
        (stack / '.env.influxdb-admin-username').write_text('admin\n')
        (stack / '.env.influxdb-admin-password').write_text('WellKnownPassword2\n')
        self.assertEqual(self._main('--org', 'acme', '--bucket', 'metrics'), 0)
        descriptor = yaml.safe_load((stack / 'docker-compose.yml').read_text())
        environment = descriptor['services']['influxdb']['environment']
        self.assertEqual(environment['DOCKER_INFLUXDB_INIT_ORG'], 'acme')
        self.assertEqual(environment['DOCKER_INFLUXDB_INIT_BUCKET'], 'metrics')
        self.assertIn('Files are ready', (self._dir / 'setup.log').read_text())

    def test_missing_credentials_exit_code(self):
        self.assertEqual(self._main(), 1)
        self.assertFalse((self._dir / 'stack' / 'docker-compose.yml').exists())
        self.assertIn('prompts are disabled', (self._dir / 'setup.log').read_text())

    def test_undecodable_secret_exit_code(self):
        stack = self._dir / 'stack'
        stack.mkdir()
        (stack / '.env.influxdb-admin-username').write_bytes(b'adm\xffin\n')
        (stack / '.env.influxdb-admin-password').write_text('WellKnownPassword2\n')
        self.assertEqual(self._main(), 1)
        log = (self._dir / 'setup.log').read_text()
        self.assertIn('.env.influxdb-admin-username is not valid UTF-8', log)
        self.assertNotIn('Traceback', log)


class TestWslDetection(unittest.TestCase):

    def setUp(self):
        self._dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self._dir)

    def test_wsl(self):
        proc_version = self._dir / 'version'
        proc_version.write_text('Linux version 5.15.133.1-microsoft-standard-WSL2 (root@1c602f52c2e4)')
        self.assertTrue(StartDockerService(proc_version)._is_wsl())

    def test_not_wsl(self):
        proc_version = self._dir / 'version'
        proc_version.write_text('Linux version 6.1.0-18-amd64 (debian-kernel@lists.debian.org)')
        self.assertFalse(StartDockerService(proc_version)._is_wsl())
        self.assertFalse(StartDockerService(self._dir / 'absent')._is_wsl())


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)7s %(name)s %(message).5000s",
        )
    unittest.main()
