"""
=============================================================================
REQUEST TARGET PARSER
=============================================================================

Splits the request target into a decoded path and query parameters:

    /search/caf%C3%A9?q=some%20%26str&flag&tag=a&tag=b
    ──────┬──────────  ───────────────┬──────────────────
          │                           │
        path                    query string
     "/search/café"       q    → ["some &str"]
                          flag → [""]
                          tag  → ["a", "b"]

The query string is split on "&" BEFORE decoding, so an encoded "%26"
inside a value stays part of that value. A key without "=" is stored with
an empty value.

=============================================================================
"""

from dataclasses import dataclass, field
from urllib.parse import unquote

from .headers import QueryParamBag


@dataclass
class URI:
    """A parsed request target."""

    path: str
    query_params: QueryParamBag = field(default_factory=QueryParamBag)

    @classmethod
    def parse(cls, target: str) -> "URI":
        """
        Parse a raw request target.

        Args:
            target: The target exactly as it appeared in the request line.

        Returns:
            URI with the percent-decoded path and query parameters.
        """
        raw_path, sep, query = target.partition("?")
        params = QueryParamBag()

        if sep:
            for entry in query.split("&"):
                if not entry:
                    continue
                key, has_value, value = entry.partition("=")
                params.append(unquote(key), unquote(value) if has_value else "")

        return cls(path=unquote(raw_path), query_params=params)
