"""
=============================================================================
TRANSPORT MESSAGES
=============================================================================

The raw inbound and outbound messages that the Request and Response
facades wrap. They know nothing about bodies-versus-status rules; they
only hold what a socket layer would hold.

    ┌────────────────────┐              ┌─────────────────────┐
    │  IncomingMessage   │              │   OutgoingMessage   │
    │  method, url       │              │   status_code       │
    │  headers (lower)   │              │   headers (HeaderMap)│
    │  http_version      │              │   headers_sent      │
    │  connection ───────┼──┐     ┌─────┼── connection        │
    └────────────────────┘  │     │     │   write() / end()   │
                            ▼     ▼     │   on_finish()       │
                      ┌──────────────┐  └─────────────────────┘
                      │ConnectionInfo│
                      │remote_address│
                      │encrypted     │
                      └──────────────┘

=============================================================================
THE HEADERS-SENT BARRIER
=============================================================================

    set_header()  ✓      set_header()  ✓      set_header()  ✗ HeadersSentError
         │                    │                    │
    ─────┴────────────────────┴──── flush_headers() ┴──────────────────►
                                 (or first write/end)

Once the head is flushed the headers are frozen. The transport enforces
this loudly; the Response facade checks `headers_sent` first and turns
late mutations into silent no-ops.

=============================================================================
REQUEST PARSING
=============================================================================

RequestParser turns raw HTTP/1.x bytes into an IncomingMessage:

    b"GET /users?page=1 HTTP/1.1\\r\\nHost: example.com\\r\\n\\r\\n"
        → IncomingMessage(method="GET", url="/users?page=1",
                          headers={"host": "example.com"}, http_version="1.1")

Malformed input raises HTTPParseError carrying the status to answer with:

    400 Bad Request                 malformed request line / headers
    405 Method Not Allowed          unknown method
    413 Payload Too Large           over max_request_size
    505 HTTP Version Not Supported  anything but HTTP/1.0 and HTTP/1.1

=============================================================================
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Union

from .headers import HeaderMap, HeaderValue, format_http_date
from .status_codes import status_message

logger = logging.getLogger(__name__)

FinishCallback = Callable[[Optional[BaseException]], None]


class HTTPParseError(Exception):
    """
    Raised when raw request bytes cannot be parsed.

    Carries the HTTP status code the server should answer with.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class HeadersSentError(RuntimeError):
    """Raised when the transport is asked to change an already-sent head."""


@dataclass
class ConnectionInfo:
    """The parts of the underlying socket the facades look at."""

    remote_address: str = ""
    remote_port: int = 0
    encrypted: bool = False
    writable: bool = True

    def destroy(self) -> None:
        self.writable = False


@dataclass
class IncomingMessage:
    """
    An inbound HTTP request as delivered by the transport.

    Header names are stored lowercase. HTTP/2 pseudo-headers such as
    ":authority" live in the same mapping.
    """

    method: str = "GET"
    url: str = "/"
    headers: Dict[str, str] = field(default_factory=dict)
    http_version: str = "1.1"
    connection: ConnectionInfo = field(default_factory=ConnectionInfo)
    body: bytes = b""

    def __post_init__(self):
        self.headers = {name.lower(): value for name, value in self.headers.items()}

    @property
    def http_version_major(self) -> int:
        try:
            return int(self.http_version.split(".", 1)[0])
        except ValueError:
            return 1


class OutgoingMessage:
    """
    An outbound HTTP response under construction.

    Collects status, headers and written body chunks; to_bytes()
    serializes what has been produced so far.
    """

    def __init__(
        self,
        connection: Optional[ConnectionInfo] = None,
        http_version: str = "1.1",
    ):
        self.connection = connection
        self.http_version = http_version
        self.status_code = 200
        self.status_message = ""
        self.headers_sent = False
        self.finished = False
        self.error: Optional[BaseException] = None

        self._headers = HeaderMap()
        self._chunks: List[bytes] = []
        self._finish_callbacks: List[FinishCallback] = []

    # =========================================================================
    # HEADERS
    # =========================================================================

    def get_header(self, name: str) -> Optional[HeaderValue]:
        return self._headers.get(name)

    def has_header(self, name: str) -> bool:
        return name in self._headers

    def set_header(self, name: str, value: HeaderValue) -> None:
        if self.headers_sent:
            raise HeadersSentError(f"Cannot set header {name!r} after headers are sent")
        self._headers[name] = value

    def remove_header(self, name: str) -> None:
        if self.headers_sent:
            raise HeadersSentError(f"Cannot remove header {name!r} after headers are sent")
        self._headers.pop(name, None)

    def get_header_names(self) -> List[str]:
        return list(self._headers)

    def get_headers(self) -> Dict[str, HeaderValue]:
        """Copy of all headers with lowercase names."""
        return self._headers.to_dict()

    # =========================================================================
    # BODY AND LIFECYCLE
    # =========================================================================

    def flush_headers(self) -> None:
        """Freeze the head. Nothing is transmitted until to_bytes()."""
        if not self.headers_sent:
            self.headers_sent = True
            logger.debug(f"Headers flushed with status {self.status_code}")

    def write(self, chunk: Union[bytes, str]) -> None:
        if self.finished:
            raise RuntimeError("write after end")
        if isinstance(chunk, str):
            chunk = chunk.encode("utf-8")
        self.flush_headers()
        if chunk:
            self._chunks.append(bytes(chunk))

    def end(self, chunk: Union[bytes, str, None] = None) -> None:
        if self.finished:
            return
        if chunk:
            self.write(chunk)
        self.flush_headers()
        self._finish(None)

    def abort(self, error: BaseException) -> None:
        """Finish the message because the connection failed."""
        if self.finished:
            return
        if self.connection is not None:
            self.connection.destroy()
        self._finish(error)

    def on_finish(self, callback: FinishCallback) -> None:
        """
        Run `callback(error)` once the message finishes.

        Runs right away when the message has already finished.
        """
        if self.finished:
            callback(self.error)
            return
        self._finish_callbacks.append(callback)

    def _finish(self, error: Optional[BaseException]) -> None:
        self.finished = True
        self.error = error
        callbacks, self._finish_callbacks = self._finish_callbacks, []
        for callback in callbacks:
            callback(error)

    @property
    def writable(self) -> bool:
        if self.finished:
            return False
        if self.connection is None:
            return True
        return self.connection.writable

    @property
    def body(self) -> bytes:
        """Everything written so far."""
        return b"".join(self._chunks)

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_bytes(self, server_name: Optional[str] = None) -> bytes:
        """
        Serialize the head and written body.

            HTTP/1.1 200 OK\\r\\n
            Content-Type: text/plain; charset=utf-8\\r\\n
            Date: Wed, 01 Jan 2026 12:00:00 GMT\\r\\n
            \\r\\n
            hello

        List values are emitted as repeated header lines.
        """
        reason = self.status_message or status_message(self.status_code) or ""
        lines = [f"HTTP/{self.http_version} {self.status_code} {reason}".rstrip()]

        names = set()
        for name, value in self._headers.raw_items():
            names.add(name.lower())
            for item in (value if isinstance(value, list) else [value]):
                lines.append(f"{name}: {item}")

        if "date" not in names:
            lines.append(f"Date: {format_http_date(datetime.now(timezone.utc))}")
        if server_name and "server" not in names:
            lines.append(f"Server: {server_name}")

        lines.append("")
        head = "\r\n".join(lines).encode("latin-1", errors="replace") + b"\r\n"
        return head + self.body


class RequestParser:
    """
    Parses raw HTTP/1.x request bytes into IncomingMessage objects.

    Lenient where RFC 7230 allows it (obsolete header folding, repeated
    headers joined with ", ") and strict where safety needs it (size
    limit, Content-Length must be satisfied).
    """

    VALID_METHODS = {
        "GET", "POST", "PUT", "DELETE", "PATCH",
        "HEAD", "OPTIONS", "TRACE", "CONNECT",
    }

    REQUEST_LINE_PATTERN = re.compile(r"^([A-Z]+) ([^ ]+) HTTP/(\d\.\d)$")
    HEADER_PATTERN = re.compile(r"^([^:\s][^:]*):\s*(.*)$")

    def __init__(self, max_request_size: int = 10 * 1024 * 1024):
        self.max_request_size = max_request_size

    def parse(
        self,
        data: bytes,
        client_address: tuple = ("", 0),
        encrypted: bool = False,
    ) -> IncomingMessage:
        """
        Parse one complete request.

        Raises:
            HTTPParseError: If the request is malformed.
        """
        if len(data) > self.max_request_size:
            raise HTTPParseError(f"Request too large: {len(data)} bytes", status_code=413)

        header_end = data.find(b"\r\n\r\n")
        if header_end == -1:
            raise HTTPParseError("Incomplete request: no header terminator")

        head = data[:header_end].decode("latin-1")
        body = data[header_end + 4:]

        lines = head.split("\r\n")
        method, url, version = self._parse_request_line(lines[0])
        headers = self._parse_headers(lines[1:])

        try:
            content_length = int(headers.get("content-length", 0))
        except ValueError:
            raise HTTPParseError("Invalid Content-Length header")

        if content_length < 0 or len(body) < content_length:
            raise HTTPParseError(
                f"Incomplete body: expected {content_length} bytes, got {len(body)}"
            )

        return IncomingMessage(
            method=method,
            url=url,
            headers=headers,
            http_version=version,
            connection=ConnectionInfo(
                remote_address=client_address[0],
                remote_port=client_address[1],
                encrypted=encrypted,
            ),
            body=body[:content_length],
        )

    def _parse_request_line(self, line: str) -> tuple:
        match = self.REQUEST_LINE_PATTERN.match(line)
        if not match:
            raise HTTPParseError(f"Invalid request line: {line}")

        method, url, version = match.groups()

        if method not in self.VALID_METHODS:
            raise HTTPParseError(f"Invalid method: {method}", status_code=405)

        if version not in ("1.0", "1.1"):
            raise HTTPParseError(f"Unsupported HTTP version: {version}", status_code=505)

        return method, url, version

    def _parse_headers(self, lines: List[str]) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        current: Optional[str] = None

        for line in lines:
            if not line:
                continue

            # obsolete line folding continues the previous header
            if line[0] in (" ", "\t"):
                if current is not None:
                    headers[current] += " " + line.strip()
                continue

            match = self.HEADER_PATTERN.match(line)
            if not match:
                raise HTTPParseError(f"Malformed header line: {line!r}")

            name = match.group(1).strip().lower()
            value = match.group(2).strip()
            current = name

            if name in headers:
                headers[name] += ", " + value
            else:
                headers[name] = value

        return headers


def parse_request(
    data: bytes,
    client_address: tuple = ("", 0),
    max_size: int = 10 * 1024 * 1024,
) -> IncomingMessage:
    """Parse a request with a one-off RequestParser."""
    return RequestParser(max_request_size=max_size).parse(data, client_address)
