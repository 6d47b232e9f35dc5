"""
=============================================================================
HTTPCTX - Request/Response Context Layer
=============================================================================

Per-request Request and Response facades joined by a Context, with the
rules that keep status, headers and body consistent however handlers
mutate them.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpctx/
    ├── __init__.py          # This file - package exports
    ├── application.py       # Application: contexts, respond(), error hook
    ├── config.py            # AppConfig dataclass
    ├── context.py           # Context: facade pair + shorthand accessors
    ├── errors.py            # HTTPError, InvalidStatusError
    ├── request.py           # Request facade
    ├── response.py          # Response facade and body state machine
    └── http/                # Protocol building blocks
        ├── status_codes.py  # Status phrases and families
        ├── mime_types.py    # Type lookup, bounded LRU cache, type_is()
        ├── headers.py       # HeaderMap, Vary, Content-Type, HTTP dates
        ├── negotiation.py   # Accept-* negotiation
        ├── freshness.py     # Conditional request checks
        ├── disposition.py   # Content-Disposition builder
        ├── url.py           # URL and query parsing with memoization
        ├── streams.py       # Streaming body helpers
        └── transport.py     # Incoming/outgoing messages, request parser

=============================================================================
QUICK START
=============================================================================

    from httpctx import Application
    from httpctx.http import RequestParser, OutgoingMessage

    app = Application()

    def hello(ctx):
        ctx.body = {"message": "Hello, World!"}

    incoming = RequestParser().parse(b"GET / HTTP/1.1\\r\\nHost: x\\r\\n\\r\\n")
    outgoing = OutgoingMessage(incoming.connection)
    app.handle(incoming, outgoing, hello)

    outgoing.to_bytes()   # b'HTTP/1.1 200 OK\\r\\nContent-Type: application/json; ...'

=============================================================================
"""

__version__ = "1.0.0"

from .application import Application, configure_logging
from .config import AppConfig
from .context import Context
from .errors import HTTPError, InvalidStatusError
from .http.status_codes import HTTPStatus
from .request import Request
from .response import Response

__all__ = [
    "Application",
    "AppConfig",
    "Context",
    "Request",
    "Response",
    "HTTPError",
    "InvalidStatusError",
    "HTTPStatus",
    "configure_logging",
    "__version__",
]
