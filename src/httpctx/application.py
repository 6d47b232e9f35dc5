"""
=============================================================================
APPLICATION
=============================================================================

Owns the configuration and runs one request/response cycle:

    ┌──────────────┐     ┌──────────────┐     ┌──────────────┐
    │  Incoming +  │     │   Context    │     │   handler    │
    │  Outgoing    │────►│  Request +   │────►│  (ctx) → ... │
    │  messages    │     │  Response    │     │              │
    └──────────────┘     └──────────────┘     └──────┬───────┘
                                                     │
                         ┌──────────────┐            │
                         │   respond()  │◄───────────┘
                         │ body → bytes │
                         └──────────────┘

Handler composition (middleware chains, routing) lives outside this
package: `handle()` takes a single callable.

=============================================================================
RESPOND
=============================================================================

    status 204/205/304   → end, no body
    HEAD                 → end, no body (Content-Length kept/derived)
    body None            → explicit null: empty body, Content-Length: 0
                           otherwise the status phrase as text
    str / bytes          → written as is
    stream               → written chunk by chunk
    anything else        → compact JSON

=============================================================================
"""

import logging
from typing import Any, Callable, Dict, Optional

from .config import AppConfig
from .context import Context
from .http.status_codes import is_empty_status
from .http.streams import is_stream
from .http.transport import IncomingMessage, OutgoingMessage
from .request import Request
from .response import Response, dump_json

logger = logging.getLogger(__name__)

Handler = Callable[[Context], Any]


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging in the package's text format."""
    numeric = getattr(logging, level.upper(), logging.INFO)

    logging.basicConfig(
        level=numeric,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    logging.getLogger("httpctx").setLevel(numeric)


class Application:
    """
    Builds Contexts and turns their final state into transport writes.

    Usage:
        app = Application(AppConfig(proxy=True))

        def hello(ctx):
            ctx.body = {"hello": ctx.query.get("name", "world")}

        app.handle(incoming, outgoing, hello)
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()
        self.config.validate()

    @property
    def env(self) -> str:
        return self.config.env

    @property
    def proxy(self) -> bool:
        return self.config.proxy

    @property
    def subdomain_offset(self) -> int:
        return self.config.subdomain_offset

    @property
    def silent(self) -> bool:
        return self.config.silent

    def create_context(self, incoming: IncomingMessage, outgoing: OutgoingMessage) -> Context:
        """Wrap a message pair in fresh Request, Response and Context objects."""
        request = Request(incoming, self.config, original_url=incoming.url)
        response = Response(outgoing, incoming)
        return Context(self, request, response)

    def handle(
        self,
        incoming: IncomingMessage,
        outgoing: OutgoingMessage,
        handler: Handler,
    ) -> Context:
        """
        Run one request/response cycle.

        Exceptions raised by the handler become error responses through
        ctx.on_error(); they are not re-raised.
        """
        ctx = self.create_context(incoming, outgoing)
        outgoing.status_code = 404
        outgoing.on_finish(ctx.on_error)

        try:
            handler(ctx)
        except Exception as e:
            ctx.on_error(e)
            return ctx

        self.respond(ctx)
        return ctx

    def respond(self, ctx: Context) -> None:
        """Write the Context's final status, headers and body to the transport."""
        if not ctx.writable:
            return

        response = ctx.response
        res = ctx.res
        body = response.body
        status = response.status

        if is_empty_status(status):
            response.body = None
            res.end()
            return

        if ctx.method == "HEAD":
            if not res.headers_sent and not response.has("Content-Length"):
                length = response.length
                if length is not None:
                    response.length = length
            res.end()
            return

        if body is None:
            if response.explicit_null_body:
                response.remove("Content-Type")
                response.remove("Transfer-Encoding")
                response.length = 0
                res.end()
                return

            if ctx.req.http_version_major >= 2:
                text = str(status)
            else:
                text = response.message or str(status)

            if not res.headers_sent:
                response.type = "text"
                response.length = len(text.encode("utf-8"))
            res.end(text)
            return

        if isinstance(body, (str, bytes, bytearray, memoryview)):
            res.end(bytes(body) if not isinstance(body, str) else body)
            return

        if is_stream(body):
            for chunk in response.stream_chunks():
                if not res.writable:
                    break
                res.write(chunk)
            res.end()
            return

        payload = dump_json(body)
        if not res.headers_sent:
            response.length = len(payload.encode("utf-8"))
        res.end(payload)

    def on_error(self, err: BaseException) -> None:
        """
        Default error reporter.

        Client errors (404 or anything marked expose) are expected and not
        logged; neither is anything when the config says silent.
        """
        if getattr(err, "status", None) == 404 or getattr(err, "expose", False):
            return

        if self.silent:
            return

        logger.error(f"Unhandled error: {err}", exc_info=err)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "subdomain_offset": self.subdomain_offset,
            "proxy": self.proxy,
            "env": self.env,
        }

    def __repr__(self) -> str:
        return f"<Application env={self.env!r} proxy={self.proxy}>"
