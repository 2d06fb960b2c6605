# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import json
import logging
import socket
import unittest
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler
from http.server import HTTPServer
from threading import Thread

from tig_stack._probe import ProbeResult
from tig_stack._probe import ProbeStatus
from tig_stack._probe import status_is_pass
from tig_stack._probe import verify_token
from tig_stack._probe import wait_for_healthy


class _FakeInfluxDB(BaseHTTPRequestHandler):

    def do_GET(self):
        if self.path == '/health':
            self.server.health_requests += 1
            healthy_from = self.server.healthy_from
            if healthy_from is not None and self.server.health_requests >= healthy_from:
                self._send_json(HTTPStatus.OK, {'name': 'influxdb', 'status': 'pass'})
            else:
                self._send_json(HTTPStatus.SERVICE_UNAVAILABLE, {'name': 'influxdb', 'status': 'fail'})
        elif self.path == '/api/v2/orgs':
            if self.headers.get('Authorization') == f'Token {self.server.token}':
                self._send_json(HTTPStatus.OK, {'orgs': [{'name': 'docs'}]})
            else:
                self._send_json(HTTPStatus.UNAUTHORIZED, {'code': 'unauthorized'})
        else:
            self._send_json(HTTPStatus.NOT_FOUND, {'code': 'not found'})

    def _send_json(self, status, data):
        body = json.dumps(data).encode()
        self.send_response(status.value)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass


class TestReadinessProbe(unittest.TestCase):

    def setUp(self):
        self.server = HTTPServer(('127.0.0.1', 0), _FakeInfluxDB)
        self.server.health_requests = 0
        self.server.healthy_from = None
        self.server.token = 'a' * 64
        listen_host, listen_port = self.server.server_address
        self.thread = Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        self.root_url = f'http://{listen_host}:{listen_port}'

    def tearDown(self):
        self.server.shutdown()
        self.thread.join(timeout=10)
        self.server.socket.close()

    def test_pass_on_fifth_attempt(self):
        self.server.healthy_from = 5
        result = wait_for_healthy(self.root_url + '/health', max_attempts=30, interval_sec=0.01)
        self.assertEqual(result, ProbeResult(ProbeStatus.PASS, 5))
        self.assertTrue(result.passed())
        self.assertEqual(self.server.health_requests, 5)

    def test_pass_immediately(self):
        self.server.healthy_from = 1
        result = wait_for_healthy(self.root_url + '/health', max_attempts=3, interval_sec=10)
        self.assertEqual(result, ProbeResult(ProbeStatus.PASS, 1))

    def test_timeout_after_exact_attempts(self):
        result = wait_for_healthy(self.root_url + '/health', max_attempts=30, interval_sec=0)
        self.assertEqual(result, ProbeResult(ProbeStatus.TIMEOUT, 30))
        self.assertFalse(result.passed())
        self.assertEqual(self.server.health_requests, 30)

    def test_custom_matcher_calls(self):
        self.server.healthy_from = 1
        bodies = []

        def never(body):
            bodies.append(body)
            return False

        result = wait_for_healthy(self.root_url + '/health', never, max_attempts=7, interval_sec=0)
        self.assertEqual(result, ProbeResult(ProbeStatus.TIMEOUT, 7))
        self.assertEqual(len(bodies), 7)
        self.assertTrue(all(status_is_pass(body) for body in bodies))

    def test_token_accepted(self):
        self.assertTrue(verify_token(self.root_url, 'a' * 64))

    def test_token_rejected_is_not_fatal(self):
        self.assertFalse(verify_token(self.root_url, 'b' * 64))


class TestUnreachable(unittest.TestCase):

    def setUp(self):
        s = socket.socket()
        s.bind(('127.0.0.1', 0))
        [_, self.port] = s.getsockname()
        s.close()

    def test_connection_refused_counts_as_attempt(self):
        result = wait_for_healthy(f'http://127.0.0.1:{self.port}/health', max_attempts=4, interval_sec=0)
        self.assertEqual(result, ProbeResult(ProbeStatus.TIMEOUT, 4))

    def test_token_check_unreachable(self):
        self.assertFalse(verify_token(f'http://127.0.0.1:{self.port}', 'a' * 64))


class TestMatcher(unittest.TestCase):

    def test_status_pass(self):
        self.assertTrue(status_is_pass('{"name":"influxdb","status":"pass","checks":[]}'))

    def test_other_status(self):
        self.assertFalse(status_is_pass('{"status":"fail"}'))
        self.assertFalse(status_is_pass('{}'))

    def test_not_json(self):
        self.assertFalse(status_is_pass(''))
        self.assertFalse(status_is_pass('"status":"pass"'))
        self.assertFalse(status_is_pass('["pass"]'))


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.DEBUG,
        format="%(asctime)s %(levelname)7s %(name)s %(message).5000s",
        )
    unittest.main()
