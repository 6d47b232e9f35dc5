"""
=============================================================================
URL VIEW
=============================================================================

Lazily parsed, per-request URL state:

    URLView.url(origin, original_url)   full URL object, parsed once
    URLView.parse_query(querystring)    structured query, cached per string
    stringify_query(mapping)            the reverse

=============================================================================
QUERY STRUCTURE
=============================================================================

    "a=1&b=2&b=3&c="   →   {"a": "1", "b": ["2", "3"], "c": ""}

A key seen once maps to a string; a repeated key maps to a list in the
order the values appeared. Blank values are kept.

The cache is keyed by the exact query string, so flipping the query back
to a string seen earlier hands back the same parsed object.

=============================================================================
PARSE FAILURES
=============================================================================

A request line can carry anything. When origin + path does not form a
valid URL the view stores EMPTY_URL instead of raising, and never tries
again for that request:

    Host: [::1          →   request.URL is EMPTY_URL (all fields "")

=============================================================================
"""

import logging
import re
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Union
from urllib.parse import parse_qsl, quote, urlencode, urlsplit

logger = logging.getLogger(__name__)

QueryValue = Union[str, List[str]]


@dataclass(frozen=True)
class ParsedURL:
    """
    A parsed absolute URL.

    Field names follow the WHATWG URL vocabulary, so an IPv6 hostname
    keeps its brackets ("[::1]") and search keeps its leading "?".
    """

    href: str = ""
    protocol: str = ""
    host: str = ""
    hostname: str = ""
    port: str = ""
    pathname: str = ""
    search: str = ""
    hash: str = ""

    @property
    def origin(self) -> str:
        if not self.protocol:
            return ""
        return f"{self.protocol}//{self.host}"

    def __bool__(self) -> bool:
        return bool(self.href)


EMPTY_URL = ParsedURL()


def parse_url(value: str) -> ParsedURL:
    """
    Parse an absolute URL.

    Raises:
        ValueError: If the value is not an absolute http(s)-style URL
                    with a host, or has an invalid port.
    """
    parts = urlsplit(value)

    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Invalid URL: {value!r}")

    hostname = parts.hostname or ""
    if not hostname:
        raise ValueError(f"Invalid URL: {value!r}")

    port = parts.port  # raises ValueError for a non-numeric port
    if ":" in hostname:
        hostname = f"[{hostname}]"

    host = f"{hostname}:{port}" if port is not None else hostname

    return ParsedURL(
        href=value,
        protocol=f"{parts.scheme}:",
        host=host,
        hostname=hostname,
        port="" if port is None else str(port),
        pathname=parts.path or "/",
        search=f"?{parts.query}" if parts.query else "",
        hash=f"#{parts.fragment}" if parts.fragment else "",
    )


def parse_query(querystring: str) -> Dict[str, QueryValue]:
    """Parse a query string (without "?") into a mapping."""
    result: Dict[str, QueryValue] = {}

    for key, value in parse_qsl(querystring, keep_blank_values=True):
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]

    return result


def stringify_query(query: Mapping[str, object]) -> str:
    """
    Serialize a mapping into a query string.

    List and tuple values repeat the key; None becomes an empty value.
    """
    pairs = []
    for key, value in query.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            pairs.append((key, "" if item is None else str(item)))
    return urlencode(pairs, quote_via=quote)


# =============================================================================
# LOCATION ENCODING
# =============================================================================
#
# Redirect targets are percent-encoded without touching characters that
# are legal in a URL, and without double-encoding existing %XX escapes.
#
# =============================================================================

_URL_SAFE = "!#$&'()*+,/:;=?@[\\]^_|~-."
_LONE_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")


def encode_url(url: str) -> str:
    """
    Percent-encode a URL for use in a Location header.

        >>> encode_url("/search?q=hello world")
        '/search?q=hello%20world'
        >>> encode_url("/caf%C3%A9")
        '/caf%C3%A9'
    """
    url = _LONE_PERCENT.sub("%25", url)
    return quote(url, safe=_URL_SAFE + "%")


class URLView:
    """
    Memoized URL and query parsing for one request.

    Not shared between requests, so no locking is needed.
    """

    def __init__(self):
        self._url: Optional[ParsedURL] = None
        self._query_cache: Dict[str, Dict[str, QueryValue]] = {}

    def url(self, origin: str, original_url: str) -> ParsedURL:
        """Parse origin + original_url once; EMPTY_URL when invalid."""
        if self._url is None:
            try:
                self._url = parse_url(f"{origin}{original_url or ''}")
            except ValueError as e:
                logger.debug(f"Unparsable request URL {origin}{original_url}: {e}")
                self._url = EMPTY_URL
        return self._url

    def parse_query(self, querystring: str) -> Dict[str, QueryValue]:
        cached = self._query_cache.get(querystring)
        if cached is None:
            cached = self._query_cache[querystring] = parse_query(querystring)
        return cached

    def stringify_query(self, query: Mapping[str, object]) -> str:
        return stringify_query(query)
