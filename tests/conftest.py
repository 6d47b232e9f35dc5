"""
pytest configuration and fixtures.
"""

from typing import Callable, Dict, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpctx import Application, AppConfig, Context
from httpctx.http.transport import ConnectionInfo, IncomingMessage, OutgoingMessage


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"Connection: keep-alive\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"Connection: close\r\n"
        b"\r\n"
    ) + body


@pytest.fixture
def app() -> Application:
    """Application with default configuration."""
    return Application(AppConfig(silent=True))


@pytest.fixture
def make_context(app: Application) -> Callable[..., Context]:
    """
    Factory building a Context around fresh transport messages.

    Usage:
        ctx = make_context("/users?page=2", headers={"Host": "example.com"})
    """

    def factory(
        url: str = "/",
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        config: Optional[AppConfig] = None,
        remote_address: str = "127.0.0.1",
        encrypted: bool = False,
        http_version: str = "1.1",
    ) -> Context:
        connection = ConnectionInfo(remote_address=remote_address, encrypted=encrypted)
        incoming = IncomingMessage(
            method=method,
            url=url,
            headers=headers or {},
            http_version=http_version,
            connection=connection,
        )
        outgoing = OutgoingMessage(connection)
        application = Application(config) if config is not None else app
        return application.create_context(incoming, outgoing)

    return factory


@pytest.fixture
def ctx(make_context) -> Context:
    """Context for GET / with a Host header."""
    return make_context(headers={"Host": "example.com"})
