"""
HTTP methods and protocol versions.

Unknown verbs are not an error: they parse to HTTPMethod.CUSTOM and the
request keeps the raw string, so applications can route on methods like
PURGE or PROPFIND.
"""

from enum import Enum
from typing import Optional


class HTTPMethod(Enum):
    """Request methods known to the router."""

    CUSTOM = "CUSTOM"       # anything not listed below
    HEAD = "HEAD"
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    OPTIONS = "OPTIONS"
    TRACE = "TRACE"

    @classmethod
    def parse(cls, raw: str) -> "HTTPMethod":
        """
        Map a method string to a member, case-insensitively.

        Returns CUSTOM when the verb is not a known one.
        """
        try:
            return cls(raw.upper())
        except ValueError:
            return cls.CUSTOM


class HTTPVersion(Enum):
    """Supported protocol versions."""

    HTTP_1_0 = "HTTP/1.0"
    HTTP_1_1 = "HTTP/1.1"

    @classmethod
    def parse(cls, raw: str) -> Optional["HTTPVersion"]:
        """Return the matching version, or None if unsupported."""
        for version in cls:
            if version.value == raw:
                return version
        return None

    def __str__(self) -> str:
        return self.value
