"""
Request cookies.

    Cookie: type=chocolate; session=abc123

    @server.get("/eat_cookie",
                require_headers=[REQUIRE_COOKIES],
                extract=[cookies()])
    def eat(bag):
        return ok(f"mmmm {bag.get('type')}")
"""

from typing import Dict, Iterable, Iterator, Tuple
import logging

from .dispatch import Extractor
from .http.request import HTTPRequest


logger = logging.getLogger(__name__)


# Header name for require_headers=[...] on routes that need cookies.
REQUIRE_COOKIES = "Cookie"

_SEPARATOR = "; "
_MISSING = object()


class CookieBag:
    """Name → value view of the request's Cookie header(s)."""

    def __init__(self, header_values: Iterable[str] = ()):
        self._cookies: Dict[str, str] = {}
        for line in header_values:
            for pair in line.split(_SEPARATOR):
                name, _, value = pair.partition("=")
                name = name.strip()
                if not name:
                    logger.debug(f"Skipping cookie without a name: {pair!r}")
                    continue
                self._cookies[name] = value.strip()

    @classmethod
    def from_request(cls, request: HTTPRequest) -> "CookieBag":
        if not request.headers.has(REQUIRE_COOKIES):
            return cls()
        return cls(request.headers.get(REQUIRE_COOKIES))

    def has(self, name: str) -> bool:
        return name in self._cookies

    def get(self, name: str, default=_MISSING) -> str:
        """
        Value of a cookie.

        Raises:
            KeyError: If the cookie is absent and no default was given.
        """
        if name in self._cookies:
            return self._cookies[name]
        if default is _MISSING:
            raise KeyError(name)
        return default

    def items(self) -> Iterator[Tuple[str, str]]:
        return iter(self._cookies.items())

    def __contains__(self, name: str) -> bool:
        return self.has(name)

    def __len__(self) -> int:
        return len(self._cookies)

    def __repr__(self) -> str:
        return f"CookieBag({self._cookies!r})"


def cookies() -> Extractor:
    """The request's cookies as a CookieBag."""
    return lambda ctx: CookieBag.from_request(ctx.request)
