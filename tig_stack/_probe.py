# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/
import json
import logging
import time
from enum import Enum
from typing import Callable
from typing import NamedTuple
from typing import Optional

import requests

from tig_stack._exceptions import AuthProbeInconclusive


class ProbeStatus(Enum):
    PASS = 'pass'
    TIMEOUT = 'timeout'


class ProbeResult(NamedTuple):
    status: ProbeStatus
    attempts: int

    def passed(self) -> bool:
        return self.status == ProbeStatus.PASS


def status_is_pass(body: str) -> bool:
    """Match InfluxDB /health reply.

    >>> status_is_pass('{"name": "influxdb", "status": "pass"}')
    True
    >>> status_is_pass('{"status": "fail"}')
    False
    >>> status_is_pass('<html>Bad Gateway</html>')
    False
    """
    try:
        reply = json.loads(body)
    except ValueError:
        return False
    return isinstance(reply, dict) and reply.get('status') == 'pass'


def wait_for_healthy(
        endpoint: str,
        matcher: Callable[[str], bool] = status_is_pass,
        max_attempts: int = 30,
        interval_sec: float = 2,
        request_timeout_sec: float = 5,
        ) -> ProbeResult:
    """Poll with a fixed interval. Total wait is about max_attempts * interval_sec.

    A failed request is not an error: the service may not listen yet.
    It counts as an attempt like a reply that does not match.
    """
    _logger.info("Waiting for %s: %d attempts, %g sec apart", endpoint, max_attempts, interval_sec)
    for attempt in range(1, max_attempts + 1):
        body = _fetch(endpoint, request_timeout_sec)
        if body is not None and matcher(body):
            _logger.info("Healthy: %s: attempt %d", endpoint, attempt)
            return ProbeResult(ProbeStatus.PASS, attempt)
        _logger.debug("Not healthy yet: %s: attempt %d/%d", endpoint, attempt, max_attempts)
        if attempt < max_attempts:
            time.sleep(interval_sec)
    _logger.warning("Timed out waiting for %s: %d attempts", endpoint, max_attempts)
    return ProbeResult(ProbeStatus.TIMEOUT, max_attempts)


def _fetch(url: str, timeout_sec: float) -> Optional[str]:
    try:
        with _local_session() as session:
            response = session.get(url, timeout=timeout_sec)
    except requests.RequestException as e:
        _logger.debug("Request to %s failed: %s", url, e)
        return None
    return response.text


def verify_token(base_url: str, token: str, timeout_sec: float = 10) -> bool:
    """Check that the token is accepted. Never fails the setup.

    The database finishes its first-boot setup after /health reports pass,
    so a rejection right after start is not conclusive.
    """
    try:
        _check_token(base_url, token, timeout_sec)
    except AuthProbeInconclusive as e:
        _logger.warning("Token verification inconclusive, setup may still be converging: %s", e)
        return False
    _logger.info("Token verified against %s", base_url)
    return True


def _check_token(base_url, token, timeout_sec):
    url = base_url.rstrip('/') + '/api/v2/orgs'
    try:
        with _local_session() as session:
            response = session.get(url, headers={'Authorization': f'Token {token}'}, timeout=timeout_sec)
    except requests.RequestException as e:
        raise AuthProbeInconclusive(f"{url}: {e}")
    if response.status_code != 200:
        raise AuthProbeInconclusive(f"{url}: {response.status_code} {response.reason}")


def _local_session() -> requests.Session:
    # Endpoints are on this host. Proxies from the environment must not apply.
    session = requests.Session()
    session.trust_env = False
    return session


_logger = logging.getLogger(__name__)
