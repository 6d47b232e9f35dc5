"""
=============================================================================
CONTEXT
=============================================================================

One Context per request/response cycle. It holds the two facades and
forwards the common accessors so handlers can write `ctx.body = ...`
instead of `ctx.response.body = ...`.

    ┌──────────────────────────────────────────────────────────────────────┐
    │                               Context                                │
    │                                                                      │
    │   ctx.status, ctx.body, ctx.type, ctx.set() ...   ──► Response       │
    │   ctx.path, ctx.query, ctx.ip, ctx.get() ...      ──► Request        │
    │   ctx.throw(), ctx.assert_(), ctx.on_error()                         │
    └──────────────────────────────────────────────────────────────────────┘

The Context keeps no state of its own: every forwarded attribute reads
and writes the facade directly.

=============================================================================
ERRORS
=============================================================================

    ctx.throw(404, "No such user")
        → raises HTTPError(404, "No such user")

    ctx.assert_(user, 401, "Login required")
        → raises HTTPError(401, ...) when `user` is falsy

    ctx.on_error(err)
        → turns any exception into a response (see on_error below)

=============================================================================
"""

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from .errors import HTTPError
from .http.status_codes import is_valid_status, status_message
from .http.transport import IncomingMessage, OutgoingMessage
from .request import Request
from .response import Response

if TYPE_CHECKING:
    from .application import Application

logger = logging.getLogger(__name__)

_MISSING = object()


class _Delegated:
    """Forward an attribute to `ctx.<target>.<name>`."""

    def __init__(self, target: str, writable: bool = False):
        self.target = target
        self.writable = writable
        self.name = ""

    def __set_name__(self, owner, name):
        self.name = name

    def __get__(self, ctx, owner=None):
        if ctx is None:
            return self
        return getattr(getattr(ctx, self.target), self.name)

    def __set__(self, ctx, value):
        if not self.writable:
            raise AttributeError(f"can't set attribute {self.name!r}")
        setattr(getattr(ctx, self.target), self.name, value)

    def __delete__(self, ctx):
        if not self.writable:
            raise AttributeError(f"can't delete attribute {self.name!r}")
        delattr(getattr(ctx, self.target), self.name)


class Context:
    """
    Per-cycle aggregate of a Request and a Response.

    Args:
        app: Owning Application (may be None in tests)
        request: Request facade
        response: Response facade
    """

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSE DELEGATES
    # ─────────────────────────────────────────────────────────────────────

    status = _Delegated("response", writable=True)
    message = _Delegated("response", writable=True)
    body = _Delegated("response", writable=True)
    length = _Delegated("response", writable=True)
    type = _Delegated("response", writable=True)
    last_modified = _Delegated("response", writable=True)
    etag = _Delegated("response", writable=True)
    header_sent = _Delegated("response")
    writable = _Delegated("response")

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST DELEGATES
    # ─────────────────────────────────────────────────────────────────────

    querystring = _Delegated("request", writable=True)
    idempotent = _Delegated("request")
    socket = _Delegated("request")
    search = _Delegated("request", writable=True)
    method = _Delegated("request", writable=True)
    query = _Delegated("request", writable=True)
    path = _Delegated("request", writable=True)
    url = _Delegated("request", writable=True)
    accept = _Delegated("request", writable=True)
    origin = _Delegated("request")
    href = _Delegated("request")
    subdomains = _Delegated("request")
    protocol = _Delegated("request")
    host = _Delegated("request")
    hostname = _Delegated("request")
    URL = _Delegated("request")
    header = _Delegated("request")
    headers = _Delegated("request")
    secure = _Delegated("request")
    stale = _Delegated("request")
    fresh = _Delegated("request")
    ips = _Delegated("request")
    ip = _Delegated("request")

    def __init__(
        self,
        app: Optional["Application"],
        request: Request,
        response: Response,
    ):
        self.app = app
        self.request = request
        self.response = response

        request.ctx = self
        request.response = response
        response.ctx = self
        response.request = request

    @property
    def req(self) -> IncomingMessage:
        return self.request.req

    @property
    def res(self) -> OutgoingMessage:
        return self.response.res

    @property
    def original_url(self) -> str:
        return self.request.original_url

    # =========================================================================
    # RESPONSE METHODS
    # =========================================================================

    def attachment(self, filename: Optional[str] = None, **options: Any) -> None:
        self.response.attachment(filename, **options)

    def redirect(self, url: str, alt: Optional[str] = None) -> None:
        self.response.redirect(url, alt)

    def remove(self, field: str) -> None:
        self.response.remove(field)

    def vary(self, field) -> None:
        self.response.vary(field)

    def has(self, field: str) -> bool:
        return self.response.has(field)

    def set(self, field, value: Any = _MISSING) -> None:
        if value is _MISSING:
            self.response.set(field)
        else:
            self.response.set(field, value)

    def append(self, field: str, value) -> None:
        self.response.append(field, value)

    def flush_headers(self) -> None:
        self.response.flush_headers()

    # =========================================================================
    # REQUEST METHODS
    # =========================================================================

    def accepts(self, *types):
        return self.request.accepts(*types)

    def accepts_encodings(self, *encodings):
        return self.request.accepts_encodings(*encodings)

    def accepts_charsets(self, *charsets):
        return self.request.accepts_charsets(*charsets)

    def accepts_languages(self, *languages):
        return self.request.accepts_languages(*languages)

    def get(self, field: str) -> str:
        return self.request.get(field)

    def is_type(self, *types):
        return self.request.is_type(*types)

    # =========================================================================
    # ERRORS
    # =========================================================================

    def throw(self, status: int = 500, message: Optional[str] = None, **props: Any) -> None:
        """
        Raise an HTTPError.

            ctx.throw(403)
            ctx.throw(400, "name required", field="name")
        """
        raise HTTPError(status, message, **props)

    def assert_(self, value: Any, status: int = 500, message: Optional[str] = None, **props: Any) -> None:
        """Raise an HTTPError unless `value` is truthy."""
        if not value:
            self.throw(status, message, **props)

    def on_error(self, err: Any) -> None:
        """
        Turn an error into the response, if the response can still change.

        =====================================================================
        STEPS
        =====================================================================

        1. None is ignored (finish callbacks pass None on success)
        2. Anything that is not an exception gets wrapped
        3. The application hook is told about the error
        4. If the head is already sent, nothing else can be done
        5. Otherwise headers are reset, status/body replaced:

               HTTPError(404)         → 404, its message
               FileNotFoundError      → 404, "Not Found"
               anything else          → 500, "Internal Server Error"

        =====================================================================
        """
        if err is None:
            return

        if not isinstance(err, BaseException):
            err = RuntimeError(f"non-error thrown: {err!r}")

        headers_sent = self.response.header_sent or not self.response.writable

        if self.app is not None:
            self.app.on_error(err)
        else:
            logger.error(f"Unhandled error: {err}", exc_info=err)

        if headers_sent:
            logger.debug(f"Cannot send error response, headers already sent: {err}")
            return

        res = self.res
        for name in res.get_header_names():
            res.remove_header(name)

        error_headers = getattr(err, "headers", None)
        if isinstance(error_headers, dict):
            self.response.set(error_headers)

        if isinstance(err, FileNotFoundError):
            status = 404
        else:
            status = getattr(err, "status", None)
            if status is None:
                status = getattr(err, "status_code", None)

        if not is_valid_status(status) or status_message(status) is None:
            status = 500

        expose = getattr(err, "expose", False)
        message = getattr(err, "message", None) or str(err)
        body = message if expose and message else status_message(status)

        self.type = "text"
        self.status = status
        self.length = len(body.encode("utf-8"))
        res.end(body)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "request": self.request.to_dict(),
            "response": self.response.to_dict(),
            "app": self.app.to_dict() if self.app is not None else None,
            "original_url": self.original_url,
            "req": "<original req>",
            "res": "<original res>",
            "socket": "<original socket>",
        }

    def __repr__(self) -> str:
        return f"<Context {self.method} {self.url} → {self.status}>"
