"""
=============================================================================
CONTENT NEGOTIATION
=============================================================================

Picks the best representation for a request from its Accept-family
headers:

    Accept            media types    text/html, application/json;q=0.9
    Accept-Encoding   encodings      gzip, deflate;q=0.5
    Accept-Charset    charsets       utf-8, iso-8859-1;q=0.2
    Accept-Language   languages      en-US, en;q=0.8, es;q=0.5

=============================================================================
HOW A CANDIDATE IS RANKED
=============================================================================

Every candidate the server offers is scored against every entry the
client sent, and keeps its best score:

    1. specificity  exact type beats "text/*" beats "*/*"
    2. quality      the q= weight (0 means "never")
    3. order        on a tie, the later entry in the header is kept

Candidates are then sorted by quality, specificity, header order and
finally the order the server listed them in.

    Accept: text/*;q=0.5, application/json

    candidates ["html", "json"]
        html → text/html matches text/*          q=0.5
        json → application/json matches exactly  q=1.0
    best → "json"

=============================================================================
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .mime_types import lookup

Result = Union[str, bool, List[str]]


@dataclass
class _Accepted:
    """One entry of an Accept-family header."""

    value: str
    q: float
    index: int
    params: Dict[str, str] = field(default_factory=dict)

    # media types only
    type: str = ""
    subtype: str = ""

    # languages only
    prefix: str = ""


@dataclass
class _Priority:
    candidate_index: int
    q: float
    specificity: int
    order: int


_SIMPLE_MEDIA_TYPE = re.compile(r"^\s*([^\s/;]+)/([^;\s]+)\s*(?:;(.*))?$")
_SIMPLE_TOKEN = re.compile(r"^\s*([^\s;]+)\s*(?:;(.*))?$")
_SIMPLE_LANGUAGE = re.compile(r"^\s*([^\s\-;]+)(?:-([^\s;]+))?\s*(?:;(.*))?$")


def _split_header(header: str) -> List[str]:
    """Split on commas that are not inside quoted strings."""
    parts: List[str] = []
    current = []
    quoted = False

    for char in header:
        if char == '"':
            quoted = not quoted
        if char == "," and not quoted:
            parts.append("".join(current))
            current = []
            continue
        current.append(char)

    parts.append("".join(current))
    return [part for part in parts if part.strip()]


def _parse_params(raw: Optional[str]) -> Tuple[float, Dict[str, str]]:
    q = 1.0
    params: Dict[str, str] = {}

    if not raw:
        return q, params

    for piece in raw.split(";"):
        key, _, value = piece.partition("=")
        key = key.strip().lower()
        value = value.strip().strip('"')
        if not key:
            continue
        if key == "q":
            try:
                q = float(value)
            except ValueError:
                q = 0.0
            continue
        params[key] = value

    return q, params


# =============================================================================
# MEDIA TYPES
# =============================================================================

def _parse_accept(header: str) -> List[_Accepted]:
    accepted = []
    for index, part in enumerate(_split_header(header)):
        match = _SIMPLE_MEDIA_TYPE.match(part)
        if not match:
            continue
        q, params = _parse_params(match.group(3))
        accepted.append(_Accepted(
            value=f"{match.group(1)}/{match.group(2)}",
            q=q,
            index=index,
            params=params,
            type=match.group(1).lower(),
            subtype=match.group(2).lower(),
        ))
    return accepted


def _media_specificity(candidate: str, entry: _Accepted) -> Optional[int]:
    match = _SIMPLE_MEDIA_TYPE.match(candidate)
    if not match:
        return None

    kind, subtype = match.group(1).lower(), match.group(2).lower()
    _, params = _parse_params(match.group(3))
    score = 0

    if entry.type == kind:
        score |= 4
    elif entry.type != "*":
        return None

    if entry.subtype == subtype:
        score |= 2
    elif entry.subtype != "*":
        return None

    if entry.params:
        for key, value in entry.params.items():
            if value != "*" and params.get(key, "").lower() != value.lower():
                return None
        score |= 1

    return score


# =============================================================================
# ENCODINGS, CHARSETS, LANGUAGES
# =============================================================================

def _parse_tokens(header: str) -> List[_Accepted]:
    accepted = []
    for index, part in enumerate(_split_header(header)):
        match = _SIMPLE_TOKEN.match(part)
        if not match:
            continue
        q, params = _parse_params(match.group(2))
        accepted.append(_Accepted(value=match.group(1), q=q, index=index, params=params))
    return accepted


def _parse_accept_encoding(header: str) -> List[_Accepted]:
    accepted = _parse_tokens(header)
    has_identity = any(entry.value.lower() == "identity" for entry in accepted)

    if not has_identity:
        # identity is always acceptable unless refused explicitly
        lowest = min((entry.q for entry in accepted), default=1.0)
        accepted.append(_Accepted(value="identity", q=lowest, index=len(accepted)))

    return accepted


def _token_specificity(candidate: str, entry: _Accepted) -> Optional[int]:
    if entry.value.lower() == candidate.lower():
        return 1
    if entry.value == "*":
        return 0
    return None


def _parse_accept_language(header: str) -> List[_Accepted]:
    accepted = []
    for index, part in enumerate(_split_header(header)):
        match = _SIMPLE_LANGUAGE.match(part)
        if not match:
            continue
        prefix, suffix = match.group(1), match.group(2)
        q, params = _parse_params(match.group(3))
        full = f"{prefix}-{suffix}" if suffix else prefix
        accepted.append(_Accepted(value=full, q=q, index=index, params=params, prefix=prefix))
    return accepted


def _language_specificity(candidate: str, entry: _Accepted) -> Optional[int]:
    match = _SIMPLE_LANGUAGE.match(candidate)
    if not match:
        return None

    prefix = match.group(1).lower()
    full = candidate.strip().lower()
    wanted = entry.value.lower()

    if wanted == full:
        return 4
    if entry.prefix.lower() == full:
        return 2
    if wanted == prefix:
        return 1
    if wanted == "*":
        return 0
    return None


# =============================================================================
# RANKING
# =============================================================================

def _rank(accepted: List[_Accepted], candidates: Sequence[str], specificity) -> List[str]:
    priorities: List[_Priority] = []

    for position, candidate in enumerate(candidates):
        best: Optional[_Priority] = None
        for entry in accepted:
            score = specificity(candidate, entry)
            if score is None:
                continue
            current = _Priority(position, entry.q, score, entry.index)
            if best is None or (
                (best.specificity, best.q, best.order)
                < (current.specificity, current.q, current.order)
            ):
                best = current
        if best is not None and best.q > 0:
            priorities.append(best)

    priorities.sort(key=lambda p: (-p.q, -p.specificity, p.order, p.candidate_index))
    return [candidates[p.candidate_index] for p in priorities]


def _preferred(accepted: List[_Accepted]) -> List[str]:
    ordered = sorted((e for e in accepted if e.q > 0), key=lambda e: (-e.q, e.index))
    return [entry.value for entry in ordered]


def _flatten(values: Sequence) -> List[str]:
    if len(values) == 1 and isinstance(values[0], (list, tuple)):
        return list(values[0])
    return list(values)


class Accepts:
    """
    Negotiator over a request's Accept-family headers.

    Each method follows the same convention:

        accepts.types()                  → every accepted value, best first
        accepts.types("html", "json")    → the best candidate, or False

    Media type candidates may be extensions ("html") or full types
    ("text/html"); the original spelling is returned.

    Usage:
        accepts = Accepts({"accept": "application/json, text/*;q=0.5"})
        accepts.types("html", "json")   # "json"
    """

    def __init__(self, headers: Mapping[str, str]):
        self.headers = {key.lower(): value for key, value in headers.items()}

    # -------------------------------------------------------------------------
    # Media types
    # -------------------------------------------------------------------------

    def types(self, *types) -> Result:
        types = _flatten(types)
        accept = self.headers.get("accept")

        if not types:
            return _preferred(_parse_accept(accept if accept is not None else "*/*"))

        # no Accept header: the server's first choice wins
        if not accept:
            return types[0]

        mimes = [t if "/" in t else lookup(t) for t in types]
        valid = [m for m in mimes if m]
        ranked = _rank(_parse_accept(accept), valid, _media_specificity)

        if not ranked:
            return False
        return types[mimes.index(ranked[0])]

    # -------------------------------------------------------------------------
    # Encodings
    # -------------------------------------------------------------------------

    def encodings(self, *encodings) -> Result:
        encodings = _flatten(encodings)
        accepted = _parse_accept_encoding(self.headers.get("accept-encoding") or "")

        if not encodings:
            return _preferred(accepted)

        ranked = _rank(accepted, encodings, _token_specificity)
        return ranked[0] if ranked else False

    encoding = encodings

    # -------------------------------------------------------------------------
    # Charsets
    # -------------------------------------------------------------------------

    def charsets(self, *charsets) -> Result:
        charsets = _flatten(charsets)
        header = self.headers.get("accept-charset")
        accepted = _parse_tokens("*" if header is None else header)

        if not charsets:
            return _preferred(accepted)

        ranked = _rank(accepted, charsets, _token_specificity)
        return ranked[0] if ranked else False

    charset = charsets

    # -------------------------------------------------------------------------
    # Languages
    # -------------------------------------------------------------------------

    def languages(self, *languages) -> Result:
        languages = _flatten(languages)
        header = self.headers.get("accept-language")
        accepted = _parse_accept_language("*" if header is None else header)

        if not languages:
            return _preferred(accepted)

        ranked = _rank(accepted, languages, _language_specificity)
        return ranked[0] if ranked else False

    language = languages
