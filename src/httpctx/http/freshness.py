"""
=============================================================================
CONDITIONAL REQUEST FRESHNESS
=============================================================================

Decides whether the client's cached copy is still good, so a 304 Not
Modified can be sent instead of the full representation.

    Request                               Response
    ───────                               ────────
    If-None-Match: "abc"       ◄── vs ──► ETag: "abc"
    If-Modified-Since: <date>  ◄── vs ──► Last-Modified: <date>

Rules (RFC 7232):
    - no conditional headers at all         → stale
    - Cache-Control: no-cache on request     → stale (client wants it fresh)
    - If-None-Match: *                       → ETag check passes
    - If-None-Match list                     → weak comparison against ETag
    - If-Modified-Since                      → Last-Modified must be <= it

Both checks must pass when both headers are present.

=============================================================================
"""

import re
from typing import List, Mapping, Optional

from .headers import parse_http_date

_NO_CACHE = re.compile(r"(?:^|,)\s*?no-cache\s*?(?:,|$)")


def _header(headers: Mapping[str, str], name: str) -> Optional[str]:
    value = headers.get(name)
    if value is None:
        # tolerate mappings that kept the original spelling
        for key, candidate in headers.items():
            if key.lower() == name:
                value = candidate
                break
    if isinstance(value, (list, tuple)):
        value = ", ".join(value)
    return value


def parse_token_list(value: str) -> List[str]:
    """Split a comma separated list of entity tags or tokens."""
    return [token.strip() for token in value.split(",") if token.strip()]


def is_fresh(request_headers: Mapping[str, str], response_headers: Mapping[str, str]) -> bool:
    """
    Check request conditional headers against response validators.

    Header names are expected in lowercase (as stored by the transport).

    Example:
        >>> is_fresh({"if-none-match": '"abc"'}, {"etag": '"abc"'})
        True
    """
    modified_since = _header(request_headers, "if-modified-since")
    none_match = _header(request_headers, "if-none-match")

    if not modified_since and not none_match:
        return False

    cache_control = _header(request_headers, "cache-control")
    if cache_control and _NO_CACHE.search(cache_control):
        return False

    if none_match and none_match != "*":
        etag = _header(response_headers, "etag")
        if not etag:
            return False

        matched = False
        for candidate in parse_token_list(none_match):
            if candidate == etag or candidate == f"W/{etag}" or f"W/{candidate}" == etag:
                matched = True
                break

        if not matched:
            return False

    if modified_since:
        last_modified = parse_http_date(_header(response_headers, "last-modified"))
        since = parse_http_date(modified_since)

        if last_modified is None or since is None or last_modified > since:
            return False

    return True
