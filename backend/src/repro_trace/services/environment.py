"""Environment fingerprint capture for trace records."""

import platform
import socket

from repro_trace.contracts.trace import EnvironmentFingerprint


def capture_environment(service_version: str) -> EnvironmentFingerprint:
    return EnvironmentFingerprint(
        runtime_version=f"{platform.python_implementation()} {platform.python_version()}",
        platform=f"{platform.system().lower()}-{platform.machine()}",
        host_name=socket.gethostname(),
        service_version=service_version,
    )
