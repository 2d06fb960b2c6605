# Copyright 2018-present Network Optix, Inc. Licensed under MPL 2.0: www.mozilla.org/MPL/2.0/


class SetupFailed(Exception):
    pass


class UnsupportedPlatform(SetupFailed):
    pass


class DependencyInstallFailure(SetupFailed):
    pass


class ServiceStartFailure(SetupFailed):

    def __init__(self, message, hint=None):
        if hint is not None:
            message = message + '\n' + hint
        super().__init__(message)
        self.hint = hint


class LaunchFailure(SetupFailed):
    pass


class ValidationError(SetupFailed):
    pass


class HealthCheckTimeout(SetupFailed):

    def __init__(self, endpoint, attempts):
        super().__init__(f"Timeout waiting for {endpoint} to report healthy: {attempts} attempts")
        self.endpoint = endpoint
        self.attempts = attempts


class AuthProbeInconclusive(Exception):
    pass
