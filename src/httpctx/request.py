"""
=============================================================================
REQUEST FACADE
=============================================================================

A read/write view over one IncomingMessage. Raw values (method, url,
headers) pass straight through; everything else is derived on demand.

    ┌─────────────────────────────────────────────────────────────────────┐
    │  GET /users?page=2 HTTP/1.1                                         │
    │  Host: tobi.ferrets.example.com:3000                                │
    │  X-Forwarded-For: 203.0.113.7, 10.0.0.2                             │
    └─────────────────────────────────────────────────────────────────────┘
                                    │
                                    ▼
        request.path         "/users"
        request.query        {"page": "2"}
        request.host         "tobi.ferrets.example.com:3000"
        request.hostname     "tobi.ferrets.example.com"
        request.subdomains   ["ferrets", "tobi"]
        request.ips          ["203.0.113.7", "10.0.0.2"]   (proxy=True only)

=============================================================================
PROXY TRUST
=============================================================================

X-Forwarded-* headers are set by whoever sends the request. They are only
believed when AppConfig.proxy is on:

    proxy=False   host ← Host, protocol ← socket, ips ← []
    proxy=True    host ← X-Forwarded-Host, protocol ← X-Forwarded-Proto,
                  ips ← AppConfig.proxy_ip_header

=============================================================================
MEMOIZATION
=============================================================================

Per-request and never shared, so nothing here needs a lock:

    URL        parsed once from origin + original_url
    query      cached per exact querystring
    accept     one Accepts negotiator per request
    ip         resolved on first access, then fixed

=============================================================================
"""

import ipaddress
import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import urlsplit

from .config import AppConfig
from .http.freshness import is_fresh
from .http.headers import parse_content_type
from .http.mime_types import type_is
from .http.negotiation import Accepts
from .http.transport import ConnectionInfo, IncomingMessage
from .http.url import ParsedURL, QueryValue, URLView

logger = logging.getLogger(__name__)

IDEMPOTENT_METHODS = {"GET", "HEAD", "PUT", "DELETE", "OPTIONS", "TRACE"}

_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def _split_url(url: str) -> Tuple[str, str, str, str]:
    """Split a request target into (prefix, path, query, fragment)."""
    prefix = ""
    if _ABSOLUTE_URL.match(url):
        parts = urlsplit(url)
        return f"{parts.scheme}://{parts.netloc}", parts.path, parts.query, parts.fragment

    url, _, fragment = url.partition("#")
    path, _, query = url.partition("?")
    return prefix, path, query, fragment


def _join_url(prefix: str, path: str, query: str, fragment: str) -> str:
    url = prefix + path
    if query:
        url += f"?{query}"
    if fragment:
        url += f"#{fragment}"
    return url


def is_ip(hostname: str) -> bool:
    """True for IPv4 and IPv6 literals, bracketed or not."""
    if hostname.startswith("[") and hostname.endswith("]"):
        hostname = hostname[1:-1]
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        return False
    return True


class Request:
    """
    Request facade over an IncomingMessage.

    Usage:
        request = Request(incoming, AppConfig(proxy=True))
        request.protocol     # "https" when X-Forwarded-Proto says so
    """

    def __init__(
        self,
        incoming: IncomingMessage,
        config: Optional[AppConfig] = None,
        original_url: Optional[str] = None,
    ):
        self.req = incoming
        self.config = config or AppConfig()
        self.ctx = None
        self.response = None

        self._original_url = incoming.url if original_url is None else original_url
        self._url_view = URLView()
        self._accept: Optional[Accepts] = None
        self._ip: Optional[str] = None

    @property
    def original_url(self) -> str:
        """The request target as received, before any rewriting."""
        return self._original_url

    # =========================================================================
    # RAW PASS-THROUGH
    # =========================================================================

    @property
    def header(self) -> Dict[str, str]:
        return self.req.headers

    @header.setter
    def header(self, value: Dict[str, str]) -> None:
        self.req.headers = {name.lower(): v for name, v in value.items()}

    headers = header

    @property
    def method(self) -> str:
        return self.req.method

    @method.setter
    def method(self, value: str) -> None:
        self.req.method = value

    @property
    def url(self) -> str:
        return self.req.url

    @url.setter
    def url(self, value: str) -> None:
        self.req.url = value

    @property
    def socket(self) -> ConnectionInfo:
        return self.req.connection

    connection = socket

    def get(self, field: str) -> str:
        """
        Case-insensitive header lookup, "" when absent.

        "Referer" and "Referrer" are interchangeable; the "referrer"
        spelling wins when both are present.
        """
        field = field.lower()
        headers = self.req.headers
        if field in ("referer", "referrer"):
            return headers.get("referrer") or headers.get("referer") or ""
        return headers.get(field) or ""

    # =========================================================================
    # URL PIECES
    # =========================================================================

    @property
    def origin(self) -> str:
        return f"{self.protocol}://{self.host}"

    @property
    def href(self) -> str:
        """
        Full request URL.

        Absolute-form targets ("GET http://example.com/foo") are returned
        as received.
        """
        if _ABSOLUTE_URL.match(self.original_url):
            return self.original_url
        return self.origin + self.original_url

    @property
    def path(self) -> str:
        return _split_url(self.url)[1]

    @path.setter
    def path(self, path: str) -> None:
        prefix, current, query, fragment = _split_url(self.url)
        if current == path:
            return
        self.url = _join_url(prefix, path, query, fragment)

    @property
    def querystring(self) -> str:
        return _split_url(self.url)[2]

    @querystring.setter
    def querystring(self, value: str) -> None:
        if value.startswith("?"):
            value = value[1:]
        prefix, path, current, fragment = _split_url(self.url)
        if current == value:
            return
        self.url = _join_url(prefix, path, value, fragment)

    @property
    def query(self) -> Dict[str, QueryValue]:
        return self._url_view.parse_query(self.querystring)

    @query.setter
    def query(self, value: Dict[str, Any]) -> None:
        self.querystring = self._url_view.stringify_query(value)

    @property
    def search(self) -> str:
        querystring = self.querystring
        return f"?{querystring}" if querystring else ""

    @search.setter
    def search(self, value: str) -> None:
        self.querystring = value

    @property
    def URL(self) -> ParsedURL:
        """Parsed absolute URL; EMPTY_URL when it cannot be parsed."""
        return self._url_view.url(self.origin, self.original_url)

    # =========================================================================
    # HOST AND PROTOCOL
    # =========================================================================

    @property
    def host(self) -> str:
        """
        Host with port, from X-Forwarded-Host (proxy only), the HTTP/2
        ":authority" pseudo-header or Host, in that order.
        """
        host = self.config.proxy and self.get("X-Forwarded-Host")
        if not host:
            if self.req.http_version_major >= 2:
                host = self.get(":authority")
            if not host:
                host = self.get("Host")
        if not host:
            return ""
        return host.split(",", 1)[0].strip()

    @property
    def hostname(self) -> str:
        host = self.host
        if not host:
            return ""
        if host.startswith("["):
            return self.URL.hostname or ""
        return host.split(":", 1)[0]

    @property
    def protocol(self) -> str:
        if self.socket.encrypted:
            return "https"
        if not self.config.proxy:
            return "http"
        proto = self.get("X-Forwarded-Proto")
        return proto.split(",", 1)[0].strip() if proto else "http"

    @property
    def secure(self) -> bool:
        return self.protocol == "https"

    @property
    def subdomains(self) -> List[str]:
        """
        Subdomains, nearest to the base domain first.

        "tobi.ferrets.example.com" → ["ferrets", "tobi"] with offset 2.
        """
        hostname = self.hostname
        if is_ip(hostname):
            return []
        return hostname.split(".")[::-1][self.config.subdomain_offset:]

    # =========================================================================
    # CLIENT ADDRESS
    # =========================================================================

    @property
    def ips(self) -> List[str]:
        """
        Forwarded address chain when proxy trust is on.

        With max_ips_count set only the last N entries are kept.
        """
        value = self.get(self.config.proxy_ip_header)
        ips = [ip.strip() for ip in value.split(",")] if self.config.proxy and value else []
        if self.config.max_ips_count > 0:
            ips = ips[-self.config.max_ips_count:]
        return ips

    @property
    def ip(self) -> str:
        if self._ip is None:
            ips = self.ips
            self._ip = (ips[0] if ips else "") or self.socket.remote_address or ""
        return self._ip

    @ip.setter
    def ip(self, value: str) -> None:
        self._ip = value

    # =========================================================================
    # CACHING
    # =========================================================================

    @property
    def fresh(self) -> bool:
        """
        True when the client's cached copy matches the response being built.

        Only GET/HEAD with a 2xx or 304 response status qualify.
        """
        if self.method not in ("GET", "HEAD"):
            return False

        response = self.response
        if response is None:
            return False

        status = response.status
        if 200 <= status < 300 or status == 304:
            return is_fresh(self.header, response.header)

        return False

    @property
    def stale(self) -> bool:
        return not self.fresh

    @property
    def idempotent(self) -> bool:
        return self.method in IDEMPOTENT_METHODS

    # =========================================================================
    # BODY METADATA
    # =========================================================================

    @property
    def charset(self) -> str:
        try:
            return parse_content_type(self.get("Content-Type")).parameters.get("charset", "")
        except ValueError as e:
            logger.debug(f"Unparsable request Content-Type: {e}")
            return ""

    @property
    def length(self) -> Optional[int]:
        value = self.get("Content-Length")
        if value == "":
            return None
        try:
            return int(value)
        except ValueError:
            return 0

    @property
    def type(self) -> str:
        content_type = self.get("Content-Type")
        if not content_type:
            return ""
        return content_type.split(";", 1)[0]

    def has_body(self) -> bool:
        headers = self.req.headers
        if "transfer-encoding" in headers:
            return True
        return headers.get("content-length", "").strip().isdigit()

    def is_type(self, *types: Union[str, List[str]]) -> Union[str, bool, None]:
        """
        Check the request Content-Type.

            request.is_type("json", "urlencoded")   # "json"
            request.is_type("html")                 # False

        None when the request carries no body at all.
        """
        if not self.has_body():
            return None
        return type_is(self.get("Content-Type"), *types)

    # =========================================================================
    # CONTENT NEGOTIATION
    # =========================================================================

    @property
    def accept(self) -> Accepts:
        if self._accept is None:
            self._accept = Accepts(self.req.headers)
        return self._accept

    @accept.setter
    def accept(self, value: Accepts) -> None:
        self._accept = value

    def accepts(self, *types):
        return self.accept.types(*types)

    def accepts_encodings(self, *encodings):
        return self.accept.encodings(*encodings)

    def accepts_charsets(self, *charsets):
        return self.accept.charsets(*charsets)

    def accepts_languages(self, *languages):
        return self.accept.languages(*languages)

    # =========================================================================
    # INTROSPECTION
    # =========================================================================

    def to_dict(self) -> Dict[str, Any]:
        return {
            "method": self.method,
            "url": self.url,
            "header": dict(self.header),
        }

    def __repr__(self) -> str:
        return f"<Request {self.method} {self.url}>"
