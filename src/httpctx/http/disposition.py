"""
Content-Disposition header builder (RFC 6266 / RFC 5987).

    content_disposition()                  → 'attachment'
    content_disposition("report.pdf")      → 'attachment; filename="report.pdf"'
    content_disposition("€ rates.txt")     → 'attachment; filename="? rates.txt";
                                               filename*=UTF-8\\'\\'%E2%82%AC%20rates.txt'

Names that cannot be sent as an ISO-8859-1 quoted string get an
extended ``filename*`` parameter, with a latin-1 ``filename`` fallback
for old clients.
"""

import posixpath
import re
from typing import Dict, Optional, Union
from urllib.parse import quote

_NON_LATIN1 = re.compile(r"[^\x20-\x7e\xa0-\xff]")
_TEXT = re.compile(r"^[\x20-\x7e\x80-\xff]+$")
_HEX_ESCAPE = re.compile(r"%[0-9A-Fa-f]{2}")
_QUOTE = re.compile(r'([\\"])')
_TOKEN = re.compile(r"^[!#$%&'*+.0-9A-Z^_`a-z|~-]+$")


def _basename(path: str) -> str:
    return posixpath.basename(path.replace("\\", "/"))


def _qstring(value: str) -> str:
    return '"' + _QUOTE.sub(r"\\\1", value) + '"'


def _ustring(value: str) -> str:
    # quote() keeps alphanumerics and "_.-~"; RFC 5987 attr-char also allows "!"
    return "UTF-8''" + quote(value, safe="!")


def _params(filename: Optional[str], fallback: Union[bool, str]) -> Dict[str, str]:
    if filename is None:
        return {}

    if not isinstance(filename, str):
        raise TypeError("filename must be a string")

    if not isinstance(fallback, (str, bool)):
        raise TypeError("fallback must be a string or boolean")

    if isinstance(fallback, str) and _NON_LATIN1.search(fallback):
        raise TypeError("fallback must be ISO-8859-1 string")

    name = _basename(filename)
    is_quoted_string = bool(_TEXT.match(name))

    if isinstance(fallback, str):
        fallback_name: Optional[str] = _basename(fallback)
    elif fallback:
        fallback_name = _NON_LATIN1.sub("?", name)
    else:
        fallback_name = None

    has_fallback = fallback_name is not None and fallback_name != name
    params: Dict[str, str] = {}

    if has_fallback or not is_quoted_string or _HEX_ESCAPE.search(name):
        params["filename*"] = name

    if is_quoted_string or has_fallback:
        params["filename"] = fallback_name if has_fallback else name

    return params


def content_disposition(
    filename: Optional[str] = None,
    type: str = "attachment",
    fallback: Union[bool, str] = True,
) -> str:
    """
    Build a Content-Disposition header value.

    Args:
        filename: File name to advertise; any directory part is dropped.
        type: Disposition type, usually "attachment" or "inline".
        fallback: True to derive a latin-1 fallback name, False for none,
                  or an explicit ISO-8859-1 fallback name.

    Raises:
        TypeError: For an invalid disposition type or fallback.
    """
    if not type or not _TOKEN.match(type):
        raise TypeError(f"invalid type: {type!r}")

    value = type.lower()
    for key, param in sorted(_params(filename, fallback).items()):
        encoded = _ustring(param) if key.endswith("*") else _qstring(param)
        value += f"; {key}={encoded}"

    return value
