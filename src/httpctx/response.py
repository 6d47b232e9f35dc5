"""
=============================================================================
RESPONSE FACADE
=============================================================================

A read/write view over one OutgoingMessage. Status, headers and body can
be set in any order; the facade keeps them consistent.

=============================================================================
BODY STATE MACHINE
=============================================================================

Assigning `response.body` picks the headers and status that go with it:

    ┌───────────────┬─────────────────┬────────────────────────────────────┐
    │ value         │ Content-Type    │ Content-Length                     │
    │               │ (only if unset) │                                    │
    ├───────────────┼─────────────────┼────────────────────────────────────┤
    │ "hello"       │ text/plain      │ byte length                        │
    │ "<p>hi</p>"   │ text/html       │ byte length                        │
    │ b"..."        │ octet-stream    │ byte length                        │
    │ stream        │ octet-stream    │ removed when replacing a body      │
    │ dict / list   │ application/json│ removed                            │
    │ None          │ removed         │ removed, status → 204              │
    └───────────────┴─────────────────┴────────────────────────────────────┘

Every non-None body forces status 200 unless a status was set explicitly.

Two ways to have "no body":

    response.body = None     explicit null: 204, or the text "null" when
                             the Content-Type is already JSON
    del response.body        back to "nothing set"

=============================================================================
STATUS
=============================================================================

    response.status = 204    validated int in [100, 999]
                             204/205/304 drop any current body
    response.status = 1000   InvalidStatusError

=============================================================================
AFTER THE HEAD IS SENT
=============================================================================

Once the transport has flushed the head, status and header mutations are
silently ignored. Late informational writes (a timing header added after
streaming started) must not crash the request.

=============================================================================
"""

import html
import json
import logging
import os
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterator, List, Optional, Union

from .errors import InvalidStatusError
from .http.disposition import content_disposition
from .http.headers import HeaderValue, append_vary, format_http_date, parse_http_date
from .http.mime_types import get_type, type_is
from .http.status_codes import (
    is_empty_status,
    is_redirect_status,
    is_valid_status,
    status_message,
)
from .http.streams import CHUNK_SIZE, destroy, is_stream, iter_stream
from .http.transport import ConnectionInfo, IncomingMessage, OutgoingMessage
from .http.url import encode_url

logger = logging.getLogger(__name__)

_MISSING = object()
_HTML_START = re.compile(r"^\s*<")
_LEADING_INT = re.compile(r"^\s*[+-]?\d+")
_ETAG_QUOTED = re.compile(r'^(W/)?"')

_BYTES_TYPES = (bytes, bytearray, memoryview)


def _is_blank(body: Any) -> bool:
    return body is None or (isinstance(body, (str,) + _BYTES_TYPES) and len(body) == 0)


def dump_json(value: Any) -> str:
    """Compact JSON as sent on the wire."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)


class Response:
    """
    Response facade over an OutgoingMessage.

    Usage:
        response = Response(outgoing, incoming)
        response.body = {"id": 1}
        response.type      # "application/json"
        response.status    # 200
    """

    def __init__(self, outgoing: OutgoingMessage, incoming: Optional[IncomingMessage] = None):
        self.res = outgoing
        self.req = incoming
        self.ctx = None
        self.request = None

        self._body: Any = None
        self._explicit_status = False
        self._explicit_null_body = False

    # =========================================================================
    # STATUS
    # =========================================================================

    @property
    def status(self) -> int:
        return self.res.status_code

    @status.setter
    def status(self, code: int) -> None:
        if self.header_sent:
            logger.debug(f"Ignoring status {code!r}: headers already sent")
            return

        if not is_valid_status(code):
            raise InvalidStatusError(code)

        self._explicit_status = True
        self.res.status_code = code

        if self.req is None or self.req.http_version_major < 2:
            self.res.status_message = status_message(code) or ""

        if not _is_blank(self._body) and is_empty_status(code):
            self.body = None

    @property
    def message(self) -> str:
        return self.res.status_message or status_message(self.status) or ""

    @message.setter
    def message(self, value: str) -> None:
        self.res.status_message = value

    @property
    def explicit_status(self) -> bool:
        return self._explicit_status

    @property
    def explicit_null_body(self) -> bool:
        return self._explicit_null_body

    # =========================================================================
    # BODY
    # =========================================================================

    @property
    def body(self) -> Any:
        return self._body

    @body.setter
    def body(self, value: Any) -> None:
        self._assign_body(value, explicit=True)

    @body.deleter
    def body(self) -> None:
        self._assign_body(None, explicit=False)

    def _assign_body(self, value: Any, explicit: bool) -> None:
        original = self._body
        self._body = value

        if value is None:
            if not is_empty_status(self.status):
                if self.type == "application/json":
                    self._body = "null"
                    return
                self.status = 204
            if explicit:
                self._explicit_null_body = True
            self.remove("Content-Type")
            self.remove("Content-Length")
            self.remove("Transfer-Encoding")
            return

        if not self._explicit_status:
            self.status = 200

        set_type = not self.has("Content-Type")

        if isinstance(value, str):
            if set_type:
                self.type = "html" if _HTML_START.match(value) else "text"
            self.length = len(value.encode("utf-8"))
            return

        if isinstance(value, _BYTES_TYPES):
            if set_type:
                self.type = "bin"
            self.length = len(value)
            return

        if is_stream(value):
            self.res.on_finish(lambda err: destroy(value))
            if original is not value:
                if is_stream(original):
                    destroy(original)
                if original is not None:
                    self.remove("Content-Length")
            if set_type:
                self.type = "bin"
            return

        self.remove("Content-Length")
        if set_type:
            self.type = "json"

    def stream_chunks(self, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        """
        Yield the current body as encoded chunks for the transport.

        Errors raised while reading a stream body go to the Context error
        handler and end the iteration; without a Context they propagate.
        """
        body = self._body
        if body is None:
            return

        if isinstance(body, str):
            yield body.encode("utf-8")
            return

        if isinstance(body, _BYTES_TYPES):
            yield bytes(body)
            return

        if not is_stream(body):
            yield dump_json(body).encode("utf-8")
            return

        try:
            yield from iter_stream(body, chunk_size)
        except Exception as e:
            if self.ctx is None:
                raise
            logger.debug(f"Stream body failed: {e}")
            self.ctx.on_error(e)

    # =========================================================================
    # LENGTH AND TYPE
    # =========================================================================

    @property
    def length(self) -> Optional[int]:
        """
        Content-Length when set, otherwise computed from the body.

        None for streams and when there is no body.
        """
        if self.has("Content-Length"):
            match = _LEADING_INT.match(str(self.get("Content-Length")))
            return int(match.group()) if match else 0

        body = self._body
        if _is_blank(body) or is_stream(body):
            return None
        if isinstance(body, str):
            return len(body.encode("utf-8"))
        if isinstance(body, _BYTES_TYPES):
            return len(body)
        return len(dump_json(body).encode("utf-8"))

    @length.setter
    def length(self, value: int) -> None:
        if not self.has("Transfer-Encoding"):
            self.set("Content-Length", value)

    @property
    def type(self) -> str:
        """Content-Type without parameters, "" when unset."""
        content_type = self.get("Content-Type")
        if not content_type:
            return ""
        return str(content_type).split(";", 1)[0]

    @type.setter
    def type(self, value: Optional[str]) -> None:
        mime = get_type(value)
        if mime:
            self.set("Content-Type", mime)
        else:
            self.remove("Content-Type")

    def is_type(self, *types: Union[str, List[str]]) -> Union[str, bool]:
        return type_is(self.type, *types)

    # =========================================================================
    # HEADERS
    # =========================================================================

    @property
    def header(self) -> Dict[str, HeaderValue]:
        return self.res.get_headers()

    headers = header

    @property
    def header_sent(self) -> bool:
        return self.res.headers_sent

    def get(self, field: str) -> Optional[HeaderValue]:
        return self.res.get_header(field)

    def has(self, field: str) -> bool:
        return self.res.has_header(field)

    def set(self, field: Union[str, Dict[str, Any]], value: Any = _MISSING) -> None:
        """
        Set one header, or several from a mapping.

            response.set("Cache-Control", "no-cache")
            response.set("Link", ["<a>", "<b>"])
            response.set({"X-One": 1, "X-Two": 2})
        """
        if self.header_sent:
            logger.debug(f"Ignoring header {field!r}: headers already sent")
            return

        if value is _MISSING:
            for key, item in dict(field).items():
                self.set(key, item)
            return

        if isinstance(value, (list, tuple)):
            value = [str(item) for item in value]
        else:
            value = str(value)

        self.res.set_header(field, value)

    def append(self, field: str, value: Union[str, List[str]]) -> None:
        """Add values after any existing ones for the same header."""
        previous = self.get(field)
        if previous:
            previous = previous if isinstance(previous, list) else [previous]
            value = previous + (list(value) if isinstance(value, (list, tuple)) else [value])
        self.set(field, value)

    def remove(self, field: str) -> None:
        if self.header_sent:
            logger.debug(f"Ignoring removal of {field!r}: headers already sent")
            return
        self.res.remove_header(field)

    def vary(self, field: Union[str, List[str]]) -> None:
        if self.header_sent:
            return

        current = self.get("Vary") or ""
        if isinstance(current, list):
            current = ", ".join(current)

        value = append_vary(current, field)
        if value:
            self.set("Vary", value)

    # =========================================================================
    # VALIDATORS
    # =========================================================================

    @property
    def last_modified(self) -> Optional[datetime]:
        value = self.get("Last-Modified")
        if not isinstance(value, str):
            return None
        return parse_http_date(value)

    @last_modified.setter
    def last_modified(self, value: Union[str, datetime, date, int, float]) -> None:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = datetime.fromtimestamp(value, tz=timezone.utc)
        elif isinstance(value, str):
            parsed = parse_http_date(value)
            if parsed is None:
                logger.debug(f"Ignoring unparsable Last-Modified value {value!r}")
                return
            value = parsed
        elif not isinstance(value, date):
            raise TypeError(f"last_modified expects a date, datetime, str or timestamp, got {type(value).__name__}")
        self.set("Last-Modified", format_http_date(value))

    @property
    def etag(self) -> Optional[str]:
        value = self.get("ETag")
        return value if isinstance(value, str) else None

    @etag.setter
    def etag(self, value: Any) -> None:
        value = str(value)
        if not _ETAG_QUOTED.match(value):
            value = f'"{value}"'
        self.set("ETag", value)

    # =========================================================================
    # HELPERS
    # =========================================================================

    def redirect(self, url: str, alt: Optional[str] = None) -> None:
        """
        Redirect to `url` with a 302 unless a redirect status is already set.

            response.redirect("/login")
            response.redirect("back", "/index.html")   # Referrer, else alt, else "/"
        """
        request = self.request

        if url == "back":
            referrer = request.get("Referrer") if request is not None else ""
            url = referrer or alt or "/"

        self.set("Location", encode_url(url))

        if not is_redirect_status(self.status):
            self.status = 302

        if request is not None and request.accepts("html"):
            url = html.escape(url)
            self.type = "text/html; charset=utf-8"
            self.body = f'Redirecting to <a href="{url}">{url}</a>.'
            return

        self.type = "text/plain; charset=utf-8"
        self.body = f"Redirecting to {url}."

    def attachment(self, filename: Optional[str] = None, **options: Any) -> None:
        """
        Mark the response as a download.

            response.attachment("report.pdf")
            # Content-Type: application/pdf
            # Content-Disposition: attachment; filename="report.pdf"
        """
        if filename:
            self.type = os.path.splitext(filename)[1]
        self.set("Content-Disposition", content_disposition(filename, **options))

    # =========================================================================
    # TRANSPORT
    # =========================================================================

    @property
    def socket(self) -> Optional[ConnectionInfo]:
        return self.res.connection

    @property
    def writable(self) -> bool:
        return self.res.writable

    def flush_headers(self) -> None:
        self.res.flush_headers()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "message": self.message,
            "header": self.header,
        }

    def inspect(self) -> Dict[str, Any]:
        data = self.to_dict()
        data["body"] = self._body
        return data

    def __repr__(self) -> str:
        return f"<Response {self.status} {self.message}>"
