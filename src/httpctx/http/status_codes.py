"""
=============================================================================
HTTP STATUS CODES
=============================================================================

Status codes, their reason phrases, and the status FAMILIES that the
response facade cares about when it keeps status and body consistent.

=============================================================================
STATUS FAMILIES USED BY THE BODY STATE MACHINE
=============================================================================

    EMPTY      204, 205, 304     The status forbids an entity body.
                                 Assigning one of these while a body is
                                 set clears the body.

    REDIRECT   300-308 (not 304, 306)
                                 redirect() keeps these as-is and only
                                 falls back to 302 for anything else.

Any integer in [100, 999] is an acceptable status. Codes outside the
table below simply have no standard phrase.

=============================================================================
"""

from enum import IntEnum
from typing import Optional


STATUS_PHRASES = {
    100: "Continue",
    101: "Switching Protocols",
    102: "Processing",
    103: "Early Hints",
    200: "OK",
    201: "Created",
    202: "Accepted",
    203: "Non-Authoritative Information",
    204: "No Content",
    205: "Reset Content",
    206: "Partial Content",
    207: "Multi-Status",
    208: "Already Reported",
    226: "IM Used",
    300: "Multiple Choices",
    301: "Moved Permanently",
    302: "Found",
    303: "See Other",
    304: "Not Modified",
    305: "Use Proxy",
    307: "Temporary Redirect",
    308: "Permanent Redirect",
    400: "Bad Request",
    401: "Unauthorized",
    402: "Payment Required",
    403: "Forbidden",
    404: "Not Found",
    405: "Method Not Allowed",
    406: "Not Acceptable",
    407: "Proxy Authentication Required",
    408: "Request Timeout",
    409: "Conflict",
    410: "Gone",
    411: "Length Required",
    412: "Precondition Failed",
    413: "Payload Too Large",
    414: "URI Too Long",
    415: "Unsupported Media Type",
    416: "Range Not Satisfiable",
    417: "Expectation Failed",
    418: "I'm a Teapot",
    421: "Misdirected Request",
    422: "Unprocessable Entity",
    423: "Locked",
    424: "Failed Dependency",
    425: "Too Early",
    426: "Upgrade Required",
    428: "Precondition Required",
    429: "Too Many Requests",
    431: "Request Header Fields Too Large",
    451: "Unavailable For Legal Reasons",
    500: "Internal Server Error",
    501: "Not Implemented",
    502: "Bad Gateway",
    503: "Service Unavailable",
    504: "Gateway Timeout",
    505: "HTTP Version Not Supported",
    506: "Variant Also Negotiates",
    507: "Insufficient Storage",
    508: "Loop Detected",
    509: "Bandwidth Limit Exceeded",
    510: "Not Extended",
    511: "Network Authentication Required",
}

EMPTY_STATUSES = frozenset({204, 205, 304})
REDIRECT_STATUSES = frozenset({300, 301, 302, 303, 305, 307, 308})

MIN_STATUS = 100
MAX_STATUS = 999


class HTTPStatus(IntEnum):
    """
    Named status codes.

    IntEnum members compare equal to plain ints, so both of these work:

        ctx.status = HTTPStatus.NOT_FOUND
        ctx.status = 404
    """

    CONTINUE = 100
    SWITCHING_PROTOCOLS = 101
    OK = 200
    CREATED = 201
    ACCEPTED = 202
    NO_CONTENT = 204
    RESET_CONTENT = 205
    PARTIAL_CONTENT = 206
    MULTIPLE_CHOICES = 300
    MOVED_PERMANENTLY = 301
    FOUND = 302
    SEE_OTHER = 303
    NOT_MODIFIED = 304
    TEMPORARY_REDIRECT = 307
    PERMANENT_REDIRECT = 308
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    NOT_ACCEPTABLE = 406
    CONFLICT = 409
    GONE = 410
    PAYLOAD_TOO_LARGE = 413
    UNSUPPORTED_MEDIA_TYPE = 415
    UNPROCESSABLE_ENTITY = 422
    TOO_MANY_REQUESTS = 429
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503
    GATEWAY_TIMEOUT = 504
    HTTP_VERSION_NOT_SUPPORTED = 505

    @property
    def phrase(self) -> str:
        """Reason phrase, e.g. "Not Found" for 404."""
        return STATUS_PHRASES.get(int(self), "")

    @property
    def is_empty(self) -> bool:
        return is_empty_status(self)

    @property
    def is_redirect(self) -> bool:
        return is_redirect_status(self)


def status_message(code: int) -> Optional[str]:
    """
    Get the standard reason phrase for a status code.

    Returns None for codes without a registered phrase (e.g. 299, 999).
    """
    return STATUS_PHRASES.get(int(code))


def is_empty_status(code: int) -> bool:
    """True when the status forbids a response body."""
    return int(code) in EMPTY_STATUSES


def is_redirect_status(code: int) -> bool:
    return int(code) in REDIRECT_STATUSES


def is_valid_status(code: object) -> bool:
    """
    Check that a value may be assigned as a response status.

    bool is rejected on purpose even though it is an int subclass:
    `ctx.status = True` is always a bug.
    """
    if isinstance(code, bool) or not isinstance(code, int):
        return False
    return MIN_STATUS <= code <= MAX_STATUS
