"""
=============================================================================
ERRORS
=============================================================================

    HTTPError            an error meant to become an HTTP response
    InvalidStatusError   a status code outside [100, 999] or not an int

=============================================================================
EXPOSE
=============================================================================

Client errors (4xx) are safe to show: the message goes into the body.
Server errors (5xx) are not: the body is just the standard phrase, and
the real message only reaches the log.

    HTTPError(404, "No such user")     → body "No such user"
    HTTPError(500, "db password=...")  → body "Internal Server Error"

=============================================================================
"""

from typing import Any, Dict, Optional

from .http.status_codes import is_valid_status, status_message


class InvalidStatusError(ValueError):
    """Raised when a response status is set to an invalid code."""

    def __init__(self, code: Any):
        super().__init__(f"invalid status code: {code!r}")
        self.code = code


class HTTPError(Exception):
    """
    An error carrying the HTTP status the response should get.

    Attributes:
        status: HTTP status code (500 when an invalid one is given)
        message: Human readable message
        expose: Whether the message may be sent to the client
        headers: Extra headers to set on the error response
        props: Any extra keyword arguments, also set as attributes
    """

    def __init__(
        self,
        status: int = 500,
        message: Optional[str] = None,
        expose: Optional[bool] = None,
        headers: Optional[Dict[str, str]] = None,
        **props: Any,
    ):
        if not is_valid_status(status) or status < 400:
            status = 500

        self.status = status
        self.message = message or status_message(status) or str(status)
        self.expose = status < 500 if expose is None else expose
        self.headers = dict(headers or {})
        self.props = props

        for key, value in props.items():
            setattr(self, key, value)

        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.status

    def __repr__(self) -> str:
        return f"HTTPError({self.status}, {self.message!r})"
