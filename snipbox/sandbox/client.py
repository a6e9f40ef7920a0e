"""
Docker client access shared by the executor and the builder.
"""

from __future__ import annotations

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from ..core.exceptions import TransportFailure

# Errors raised by the Docker SDK or the HTTP transport underneath it
ENGINE_ERRORS = (DockerException, RequestException)


def connect(timeout: int | None = None) -> docker.DockerClient:
    """Create a client from the environment (DOCKER_HOST and friends)."""
    try:
        if timeout is None:
            return docker.from_env()
        return docker.from_env(timeout=timeout)
    except ENGINE_ERRORS as exc:
        raise TransportFailure("connect", str(exc)) from exc


def check_health(client: docker.DockerClient | None = None) -> tuple[bool, str]:
    """Return (healthy, detail) for docker daemon availability."""
    try:
        client = client or docker.from_env(timeout=5)
        client.ping()
        version = client.version().get("Version", "unknown")
    except ENGINE_ERRORS as exc:
        return False, f"docker daemon unavailable: {exc}"
    return True, f"docker daemon ready (server {version})"


class EngineClientMixin:
    """Lazily connects to Docker unless a client was injected."""

    _client: docker.DockerClient | None = None

    @property
    def client(self) -> docker.DockerClient:
        if self._client is None:
            self._client = connect()
        return self._client
