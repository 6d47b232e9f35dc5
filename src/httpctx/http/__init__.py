"""
HTTP protocol building blocks used by the request/response facades.
"""

from .status_codes import HTTPStatus, status_message, is_empty_status, is_redirect_status
from .headers import HeaderMap, append_vary, parse_content_type, format_http_date, parse_http_date
from .mime_types import get_type, lookup, type_is
from .negotiation import Accepts
from .freshness import is_fresh
from .disposition import content_disposition
from .url import URLView, ParsedURL, EMPTY_URL, encode_url
from .transport import (
    ConnectionInfo,
    IncomingMessage,
    OutgoingMessage,
    RequestParser,
    HTTPParseError,
    HeadersSentError,
    parse_request,
)

__all__ = [
    "HTTPStatus",
    "status_message",
    "is_empty_status",
    "is_redirect_status",
    "HeaderMap",
    "append_vary",
    "parse_content_type",
    "format_http_date",
    "parse_http_date",
    "get_type",
    "lookup",
    "type_is",
    "Accepts",
    "is_fresh",
    "content_disposition",
    "URLView",
    "ParsedURL",
    "EMPTY_URL",
    "encode_url",
    "ConnectionInfo",
    "IncomingMessage",
    "OutgoingMessage",
    "RequestParser",
    "HTTPParseError",
    "HeadersSentError",
    "parse_request",
]
