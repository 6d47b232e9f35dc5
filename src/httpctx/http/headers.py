"""
=============================================================================
HEADER UTILITIES
=============================================================================

Pieces shared by the transport and the facades:

    HeaderMap            case-insensitive store for outgoing headers
    append_vary()        Vary header merging
    parse_content_type() Content-Type → (type, parameters)
    format_http_date()   datetime → "Wed, 01 Jan 2026 12:00:00 GMT"
    parse_http_date()    the reverse, returning None on garbage

=============================================================================
CASE-INSENSITIVE, SPELLING-PRESERVING
=============================================================================

Header names are case-insensitive (RFC 7230), but responses look nicer
when they keep the spelling the caller used. HeaderMap stores both:

    headers["Content-Type"] = "text/html"
    headers["content-type"]            → "text/html"
    list(headers.raw_items())          → [("Content-Type", "text/html")]

A value is either a single string or a list of strings (Set-Cookie,
Link, anything built with append()).

=============================================================================
"""

import re
from collections.abc import MutableMapping
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Dict, Iterator, List, Optional, Tuple, Union

HeaderValue = Union[str, List[str]]


def _copy(value: HeaderValue) -> HeaderValue:
    # Multi-value headers are never shared with callers.
    return list(value) if isinstance(value, list) else value


class HeaderMap(MutableMapping):
    """
    Mutable mapping of header name → value with case-insensitive keys.

    Iteration yields lowercase names; raw_items() yields the original
    spelling of the most recent assignment.
    """

    def __init__(self, initial: Optional[Dict[str, HeaderValue]] = None):
        self._store: Dict[str, Tuple[str, HeaderValue]] = {}
        if initial:
            self.update(initial)

    def __getitem__(self, name: str) -> HeaderValue:
        return _copy(self._store[name.lower()][1])

    def __setitem__(self, name: str, value: HeaderValue) -> None:
        self._store[name.lower()] = (name, _copy(value))

    def __delitem__(self, name: str) -> None:
        del self._store[name.lower()]

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._store

    def __iter__(self) -> Iterator[str]:
        return iter(self._store)

    def __len__(self) -> int:
        return len(self._store)

    def __repr__(self) -> str:
        return f"HeaderMap({dict(self.raw_items())!r})"

    def raw_items(self) -> Iterator[Tuple[str, HeaderValue]]:
        """Yield (original name, value) pairs in insertion order."""
        return ((name, _copy(value)) for name, value in self._store.values())

    def to_dict(self) -> Dict[str, HeaderValue]:
        """Copy with lowercase names."""
        return {key: _copy(value) for key, (_, value) in self._store.items()}


# =============================================================================
# VARY
# =============================================================================
#
# Vary lists the request headers a response depends on. Merging rules:
#   - "*" already present  → header is left untouched
#   - "*" being added      → header becomes "*"
#   - duplicates are detected case-insensitively, new fields keep
#     the caller's spelling and are appended in order
#
# =============================================================================

_FIELD_NAME = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


def _split_tokens(value: str) -> List[str]:
    return [token.strip() for token in value.split(",") if token.strip()]


def append_vary(header: str, fields: Union[str, List[str]]) -> str:
    """
    Merge one or more field names into an existing Vary header value.

    Raises:
        ValueError: If a field is not a valid header field name.
    """
    if isinstance(fields, str):
        fields = _split_tokens(fields)
    else:
        fields = [f.strip() for f in fields if f and f.strip()]

    for name in fields:
        if not _FIELD_NAME.match(name):
            raise ValueError(f"field argument contains an invalid header name: {name!r}")

    if header == "*":
        return header

    if "*" in fields:
        return "*"

    value = header
    existing = [token.lower() for token in _split_tokens(header)]

    for name in fields:
        lowered = name.lower()
        if lowered in existing:
            continue
        existing.append(lowered)
        value = f"{value}, {name}" if value else name

    return value


# =============================================================================
# CONTENT-TYPE PARSING
# =============================================================================

_TOKEN = r"[!#$%&'*+.^_`|~0-9A-Za-z-]+"
_MEDIA_TYPE = re.compile(rf"^\s*({_TOKEN})/({_TOKEN})\s*$")
_PARAM = re.compile(
    rf';\s*({_TOKEN})\s*=\s*("(?:[\u000b\u0020\u0021\u0023-\u005b\u005d-\u007e\u0080-\u00ff]|\\[\u000b\u0020-\u00ff])*"|{_TOKEN})\s*'
)
_QUOTED_ESCAPE = re.compile(r"\\([\u000b\u0020-\u00ff])")


@dataclass
class ContentType:
    """A parsed Content-Type header."""

    type: str
    parameters: Dict[str, str] = field(default_factory=dict)


def parse_content_type(header: Optional[str]) -> ContentType:
    """
    Parse a Content-Type header value.

    Type and parameter names are lowercased; quoted parameter values are
    unescaped.

    Raises:
        ValueError: If the header is missing or malformed.

    Example:
        >>> parse_content_type('text/html; charset="utf-8"')
        ContentType(type='text/html', parameters={'charset': 'utf-8'})
    """
    if not header or not isinstance(header, str):
        raise ValueError("content-type header is missing")

    index = header.find(";")
    media = header[:index] if index != -1 else header

    match = _MEDIA_TYPE.match(media)
    if not match:
        raise ValueError(f"invalid media type: {media!r}")

    result = ContentType(type=f"{match.group(1)}/{match.group(2)}".lower())

    if index == -1:
        return result

    position = index
    while position < len(header):
        param = _PARAM.match(header, position)
        if not param or param.start() != position:
            raise ValueError(f"invalid parameter format in {header!r}")

        position = param.end()
        key = param.group(1).lower()
        value = param.group(2)

        if value.startswith('"'):
            value = _QUOTED_ESCAPE.sub(r"\1", value[1:-1])

        result.parameters[key] = value

    return result


# =============================================================================
# HTTP DATES
# =============================================================================

_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun",
           "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]


def format_http_date(dt: Union[datetime, date]) -> str:
    """
    Format a datetime as an HTTP-date (RFC 7231).

    Aware datetimes are converted to UTC; naive ones are taken as UTC.
    HTTP dates are always GMT, never local time.

        >>> format_http_date(datetime(2026, 1, 15, 12, 30, 45, tzinfo=timezone.utc))
        'Thu, 15 Jan 2026 12:30:45 GMT'
    """
    if not isinstance(dt, datetime):
        dt = datetime(dt.year, dt.month, dt.day)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)

    return (
        f"{_DAYS[dt.weekday()]}, "
        f"{dt.day:02d} {_MONTHS[dt.month - 1]} {dt.year} "
        f"{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d} GMT"
    )


def parse_http_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse an HTTP-date or ISO 8601 date string into an aware datetime.

    Returns None when the value cannot be understood.
    """
    if not value or not isinstance(value, str):
        return None

    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        parsed = None

    if parsed is None:
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
