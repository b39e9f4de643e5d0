"""
=============================================================================
CONTENT NEGOTIATION
=============================================================================

Three building blocks used by the Accept / Content-Type matchers and by
the serializer registry.

1. QUALITY LISTS

   "text/html;q=0.8, text/plain, text/xml;q=0.1"
        │
        ▼  parse_quality_list()
   ["text/plain", "text/html", "text/xml"]      (1.0, 0.8, 0.1)

   Parsed by a four-state machine:

       VALUE ──";"──► PARAMS ──"q"──► QUANTITY_KEY ──"="──► QUANTITY_VALUE
         ▲                                                       │
         └─────────────────────── "," flushes ◄──────────────────┘

   A comma always flushes the current (token, quality) pair, whatever the
   state. Parameters other than q are skipped. Qualities are clamped into
   [0, 1]; a quality that is not a number is a parse error.

2. WILDCARD MATCHING (MimeSet)

   A registered pattern with "*" is compiled to an anchored regex
   ("text/*" → ^text/.*$). Satisfiability is checked from both sides, but
   only concrete-vs-pattern:

       registered      candidate       satisfied?
       ──────────      ─────────       ──────────
       text/*          text/plain      yes  (candidate vs registered pattern)
       text/plain      text/*          yes  (registered concrete vs candidate pattern)
       application/*   */*             no   (pattern vs pattern is never tried)

3. BASE MIME

   Structured-syntax suffixes collapse onto their base type so one
   serializer serves a whole family:

       application/vnd.api+json  →  application/json

=============================================================================
"""

from enum import Enum
from typing import Dict, Iterable, List, Optional, Pattern
import re

from .request import HTTPParseError


class _State(Enum):
    VALUE = "value"
    PARAMS = "params"
    QUANTITY_KEY = "quantity_key"
    QUANTITY_VALUE = "quantity_value"


def _to_quality(text: str, header: str) -> float:
    text = text.strip()
    if not text:
        return 1.0
    try:
        quality = float(text)
    except ValueError:
        raise HTTPParseError(f"Invalid quality value {text!r} in {header!r}")
    return min(max(quality, 0.0), 1.0)


def parse_quality_map(header: str) -> Dict[str, float]:
    """
    Parse a quality list into token → quality.

    Insertion order follows first appearance of each token; a repeated token
    keeps its first position but takes the later quality.

    Raises:
        HTTPParseError: If a q value is not a number.
    """
    result: Dict[str, float] = {}
    state = _State.VALUE
    value = ""
    quantity = ""

    def flush() -> None:
        token = value.rstrip()
        if token:
            result[token] = _to_quality(quantity, header)

    for char in header:
        if char == ",":
            flush()
            value, quantity = "", ""
            state = _State.VALUE
            continue
        if char == ";":
            state = _State.PARAMS
            continue

        if state is _State.VALUE:
            if not value and char in (" ", "\t"):
                continue
            value += char
        elif state is _State.PARAMS:
            if char == "q":
                state = _State.QUANTITY_KEY
        elif state is _State.QUANTITY_KEY:
            if char == "=":
                state = _State.QUANTITY_VALUE
        else:
            quantity += char

    flush()
    return result


def parse_quality_list(header: str) -> List[str]:
    """
    Parse an Accept-style header into tokens ordered by quality.

    Ties keep their order of appearance.

    Example:
        >>> parse_quality_list("text/html;q=0.8, text/plain, text/xml;q=0.1")
        ['text/plain', 'text/html', 'text/xml']
    """
    qualities = parse_quality_map(header)
    return sorted(qualities, key=lambda token: qualities[token], reverse=True)


def mime_regex(mime: str) -> Pattern[str]:
    """Compile a mime pattern: "*" matches anything, the rest is literal."""
    return re.compile("^" + ".*".join(re.escape(part) for part in mime.split("*")) + "$")


def is_wildcard(mime: str) -> bool:
    return "*" in mime


def extract_base_mime(mime: str) -> str:
    """
    Strip parameters and collapse a +suffix onto its base type.

    "application/vnd.api+json; charset=utf-8" → "application/json"
    """
    mime = mime.split(";")[0].strip()
    kind, slash, subtype = mime.partition("/")
    if slash and "+" in subtype:
        return f"{kind}/{subtype.rsplit('+', 1)[1]}"
    return mime


class MimeSet:
    """
    A set of registered media types, concrete or wildcard.

    Usage:
        produced = MimeSet(["application/json", "text/*"])
        produced.satisfy("text/plain")   # "text/plain"
        produced.satisfy("*/*")          # "application/json"
        produced.satisfy("image/png")    # None
    """

    def __init__(self, mimes: Iterable[str]):
        self.mimes: List[str] = list(mimes)
        self._patterns = [mime_regex(m) for m in self.mimes]
        self._concrete = [m for m in self.mimes if not is_wildcard(m)]

    def can_satisfy(self, candidate: str) -> bool:
        return self.satisfy(candidate) is not None

    def satisfy(self, candidate: str) -> Optional[str]:
        """
        Return the concrete media type to use for a candidate, or None.

        A concrete candidate is returned as-is. For a wildcard candidate the
        first registered concrete type it covers is returned, so the
        negotiated type is always something a Content-Type header can carry.
        """
        if is_wildcard(candidate):
            pattern = mime_regex(candidate)
            for mime in self._concrete:
                if pattern.match(mime):
                    return mime
            return None

        for pattern in self._patterns:
            if pattern.match(candidate):
                return candidate
        return None

    def __iter__(self):
        return iter(self.mimes)

    def __len__(self) -> int:
        return len(self.mimes)

    def __repr__(self) -> str:
        return f"MimeSet({self.mimes!r})"
