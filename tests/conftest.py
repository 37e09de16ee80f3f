"""Pytest configuration and fixtures for edge-mgmt tests.

This file provides:
- make_config: ClientConfig with test defaults
- RecordingTransport: httpx.MockTransport that keeps every request it saw
- PortReservation / MockServer: subprocess management for the mock
  Management API used by integration tests
"""

from __future__ import annotations

import json
import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Callable, Generator

import httpx
import pytest

from edge_mgmt.models import ClientConfig

PROJECT_ROOT = Path(__file__).parent.parent
MOCK_SERVER_MODULE = "tests.integration.mock_server"

TEST_ENDPOINT = "https://edge.example.com/v1"


def make_config(**overrides: Any) -> ClientConfig:
    """Create a ClientConfig for tests.

    Prefer this over constructing ClientConfig directly - it fills in an
    org, endpoint and Basic credentials so tests only state what they vary.
    """
    values: dict[str, Any] = {
        "org_name": "myorg",
        "endpoint": TEST_ENDPOINT,
        "user": "admin@example.com",
        "password": "secret",
    }
    values.update(overrides)
    return ClientConfig(**values)


def json_response(status_code: int, body: Any, headers: dict[str, str] | None = None) -> httpx.Response:
    """httpx.Response with a JSON body and a JSON content type."""
    return httpx.Response(
        status_code,
        content=json.dumps(body).encode("utf-8"),
        headers={"content-type": "application/json", **(headers or {})},
    )


class RecordingTransport(httpx.MockTransport):
    """MockTransport that records every request it handles.

    Usage:
        transport = RecordingTransport(lambda request: json_response(200, {}))
        org = Organization(make_config(), transport=transport)
        org.load()
        assert transport.requests[0].url.path == "/v1/organizations/myorg"
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.requests: list[httpx.Request] = []

        def recording_handler(request: httpx.Request) -> httpx.Response:
            request.read()
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


def static_transport(status_code: int = 200, body: Any = None, **kwargs: Any) -> RecordingTransport:
    """RecordingTransport answering every request with the same response."""
    if body is None:
        return RecordingTransport(lambda request: httpx.Response(status_code, **kwargs))
    return RecordingTransport(lambda request: json_response(status_code, body, **kwargs))


class PortReservation:
    """Holds a reserved port with socket kept open to prevent races.

    The socket stays bound until release(), which MockServer calls just
    before the server process binds the same port.
    """

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))
        self._port = self._socket.getsockname()[1]
        self._released = False

    @property
    def port(self) -> int:
        return self._port

    def release(self) -> int:
        """Release the socket and return the port. Safe to call twice."""
        if not self._released:
            self._socket.close()
            self._released = True
        return self._port

    def __enter__(self) -> PortReservation:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


def wait_for_server_ready(host: str, port: int, timeout: float = 10.0) -> bool:
    """Block until server accepts TCP connections, or timeout expires."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1.0):
                return True
        except OSError:
            time.sleep(0.1)
    return False


class MockServer:
    """Runs tests/integration/mock_server.py as a subprocess.

    The server answers the organization, developer and invite request
    endpoints for one organization from in-memory storage.
    """

    def __init__(self, port: int | PortReservation, org_name: str = "myorg") -> None:
        if isinstance(port, PortReservation):
            self._reservation: PortReservation | None = port
            self.port = port.port
        else:
            self._reservation = None
            self.port = port
        self.org_name = org_name
        self.host = "127.0.0.1"
        self.base_url = f"http://{self.host}:{self.port}/v1"
        self._process: subprocess.Popen | None = None

    def start(self) -> None:
        """Start the mock server subprocess.

        Raises:
            RuntimeError: If server fails to start within 10 seconds.
        """
        if self._reservation:
            self._reservation.release()

        self._process = subprocess.Popen(
            [
                sys.executable, "-m", MOCK_SERVER_MODULE,
                "--host", self.host,
                "--port", str(self.port),
                "--org", self.org_name,
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=PROJECT_ROOT,
        )

        if not wait_for_server_ready(self.host, self.port):
            stderr = ""
            if self._process and self._process.stderr:
                stderr = self._process.stderr.read().decode(errors="replace")
            self.stop()
            raise RuntimeError(
                f"MockServer failed to start on port {self.port}. stderr: {stderr or '(empty)'}"
            )

    def stop(self) -> None:
        """Terminate the subprocess, escalating to SIGKILL after 5s."""
        if self._process:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
                self._process.wait(timeout=5)
            self._process = None

    def __enter__(self) -> MockServer:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def mock_management_server() -> Generator[MockServer, None, None]:
    """Mock Management API, started once per test session."""
    with MockServer(PortReservation()) as server:
        yield server


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Tag tests with unit/integration markers based on their directory.

    Enables running subsets via:
        pytest -m integration
        pytest -m unit
    """
    for item in items:
        test_path = Path(item.fspath)
        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
