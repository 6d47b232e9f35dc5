"""
=============================================================================
MIME TYPE LOOKUP
=============================================================================

Turns the short type hints used throughout the facades into full
Content-Type header values:

    "html"              → "text/html; charset=utf-8"
    ".png"              → "image/png"
    "report.pdf"        → "application/pdf"
    "json"              → "application/json; charset=utf-8"
    "application/json"  → "application/json; charset=utf-8"
    "text/plain; charset=latin1"  → unchanged
    "nonsense"          → None

=============================================================================
THE SHARED LOOKUP CACHE
=============================================================================

The response facade resolves a type hint every time a body is assigned,
so lookups go through one process-wide LRU cache (100 entries, keyed by
the raw hint). It is the only piece of mutable state shared between
requests, so every read and write happens under a lock.

    ┌──────────┐  hit   ┌───────────┐
    │ get_type ├───────►│ LRU cache │
    └────┬─────┘        └───────────┘
         │ miss
         ▼
    content_type(hint) ──► stored, oldest entry evicted past capacity

=============================================================================
TYPE MATCHING
=============================================================================

type_is() answers "is this Content-Type one of these?" with the same
shorthand vocabulary:

    type_is("application/json; charset=utf-8", "json")       → "json"
    type_is("text/html", "text/*", "application/json")       → "text/html"
    type_is("application/vnd.api+json", "+json")             → "application/vnd.api+json"
    type_is("image/png", "html")                              → False

=============================================================================
"""

import threading
from collections import OrderedDict
from pathlib import PurePosixPath
from typing import Generic, Optional, TypeVar, Union

K = TypeVar("K")
V = TypeVar("V")


# =============================================================================
# MIME TYPE DATABASE
# =============================================================================
#
# Keys are extensions without the leading dot. A handful of aliases
# ("text", "bin") exist purely so the body setter can say what it means.
#
# =============================================================================

MIME_TYPES = {
    # Text
    "html": "text/html",
    "htm": "text/html",
    "shtml": "text/html",
    "css": "text/css",
    "csv": "text/csv",
    "txt": "text/plain",
    "text": "text/plain",
    "conf": "text/plain",
    "log": "text/plain",
    "ini": "text/plain",
    "md": "text/markdown",
    "markdown": "text/markdown",
    "js": "application/javascript",
    "mjs": "application/javascript",
    "xml": "application/xml",
    "yaml": "text/yaml",
    "yml": "text/yaml",
    "vtt": "text/vtt",

    # Data
    "json": "application/json",
    "map": "application/json",
    "jsonld": "application/ld+json",
    "urlencoded": "application/x-www-form-urlencoded",
    "wasm": "application/wasm",

    # Images
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "ico": "image/x-icon",
    "webp": "image/webp",
    "avif": "image/avif",
    "bmp": "image/bmp",

    # Fonts
    "woff": "font/woff",
    "woff2": "font/woff2",
    "ttf": "font/ttf",
    "otf": "font/otf",

    # Audio / video
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "ogg": "audio/ogg",
    "mp4": "video/mp4",
    "webm": "video/webm",
    "mov": "video/quicktime",

    # Documents and archives
    "pdf": "application/pdf",
    "zip": "application/zip",
    "gz": "application/gzip",
    "tar": "application/x-tar",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",

    # Opaque bytes
    "bin": "application/octet-stream",
    "exe": "application/octet-stream",
    "dll": "application/octet-stream",
    "iso": "application/octet-stream",
}

# application/* types that are really text and get a charset parameter
_TEXT_APPLICATION_TYPES = {
    "application/json",
    "application/ld+json",
    "application/javascript",
    "application/xml",
    "application/x-www-form-urlencoded",
}

# Shorthands accepted by type_is() that are not file extensions
_TYPE_IS_ALIASES = {
    "urlencoded": "application/x-www-form-urlencoded",
    "multipart": "multipart/*",
}

DEFAULT_CHARSET = "utf-8"
TYPE_CACHE_SIZE = 100


# =============================================================================
# LOOKUP
# =============================================================================

def lookup(path: Union[str, PurePosixPath]) -> Optional[str]:
    """
    Get the bare MIME type for an extension or file name.

    Accepts "html", ".html" and "dir/page.html" alike.

    Examples:
        >>> lookup("style.css")
        'text/css'
        >>> lookup("unknown.xyz") is None
        True
    """
    if not path:
        return None

    name = str(path).lower()
    suffix = PurePosixPath(name).suffix
    if suffix:
        extension = suffix[1:]
    else:
        # "html" or ".html" with nothing in front of the dot
        extension = name.lstrip(".")

    return MIME_TYPES.get(extension)


def charset_for(mime_type: str) -> Optional[str]:
    """Default charset for a bare MIME type, if it is textual."""
    if mime_type.startswith("text/") or mime_type in _TEXT_APPLICATION_TYPES:
        return DEFAULT_CHARSET
    return None


def content_type(hint: Optional[str]) -> Optional[str]:
    """
    Resolve a type hint to a complete Content-Type header value.

    Hints containing "/" are treated as full types and only gain a
    charset when they lack one. Everything else goes through lookup().

    Returns None when the hint cannot be resolved.
    """
    if not hint or not isinstance(hint, str):
        return None

    mime = hint if "/" in hint else lookup(hint)
    if not mime:
        return None

    if "charset" not in mime.lower():
        charset = charset_for(mime.split(";", 1)[0].strip().lower())
        if charset:
            mime = f"{mime}; charset={charset}"

    return mime


# =============================================================================
# SHARED LRU CACHE
# =============================================================================

class LRUCache(Generic[K, V]):
    """
    Bounded least-recently-used cache, safe to share between threads.

    get() refreshes an entry's recency; set() evicts the oldest entry
    once capacity is exceeded.
    """

    def __init__(self, capacity: int = TYPE_CACHE_SIZE):
        if capacity <= 0:
            raise ValueError("Capacity must be positive")

        self.capacity = capacity
        self._entries: "OrderedDict[K, V]" = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        with self._lock:
            if key not in self._entries:
                return default
            self._entries.move_to_end(key)
            return self._entries[key]

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._entries[key] = value
            self._entries.move_to_end(key)
            while len(self._entries) > self.capacity:
                self._entries.popitem(last=False)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_MISSING = object()
_type_cache: LRUCache = LRUCache(TYPE_CACHE_SIZE)


def get_type(hint: Optional[str]) -> Optional[str]:
    """
    Cached content_type().

    Unresolvable hints are cached too (as None) so a typo in a hot path
    does not hit the table on every request.
    """
    if not hint:
        return None

    cached = _type_cache.get(hint, _MISSING)
    if cached is not _MISSING:
        return cached

    resolved = content_type(hint)
    _type_cache.set(hint, resolved)
    return resolved


# =============================================================================
# TYPE MATCHING
# =============================================================================

def _normalize_type(value: str) -> Optional[str]:
    value = value.split(";", 1)[0].strip().lower()
    if "/" not in value:
        return None
    kind, _, subtype = value.partition("/")
    if not kind or not subtype:
        return None
    return value


def _expand_hint(hint: str) -> Optional[str]:
    """Turn a type_is() pattern into a full "type/subtype" pattern."""
    hint = hint.strip().lower()
    if hint in _TYPE_IS_ALIASES:
        return _TYPE_IS_ALIASES[hint]
    if hint.startswith("+"):
        # "+json" means any type with a +json structured suffix
        return f"*/*{hint}"
    if "/" in hint:
        return hint
    return lookup(hint)


def _mime_match(expected: str, actual: str) -> bool:
    expected_type, _, expected_sub = expected.partition("/")
    actual_type, _, actual_sub = actual.partition("/")

    if expected_type != "*" and expected_type != actual_type:
        return False

    if expected_sub.startswith("*+"):
        # structured syntax suffix, e.g. */*+json
        return actual_sub.endswith(expected_sub[1:])

    return expected_sub == "*" or expected_sub == actual_sub


def type_is(value: Optional[str], *types: str) -> Union[str, bool]:
    """
    Check a Content-Type value against one or more type patterns.

    Returns the first pattern (as given) that matches, False when none
    does or the value is not a valid media type. Called with no patterns
    it returns the normalized media type itself.
    """
    if not value:
        return False

    actual = _normalize_type(value)
    if actual is None:
        return False

    if len(types) == 1 and isinstance(types[0], (list, tuple)):
        types = tuple(types[0])

    if not types:
        return actual

    for pattern in types:
        expected = _expand_hint(pattern)
        if expected and _mime_match(expected, actual):
            # "+json" and "*/*" style patterns report the real type
            if pattern.startswith("+") or "*" in pattern:
                return actual
            return pattern

    return False
