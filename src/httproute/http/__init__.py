"""
HTTP protocol components: message types, parsing and content negotiation.

    http/
    ├── headers.py       # HeaderBag / QueryParamBag multi-maps
    ├── method.py        # HTTPMethod, HTTPVersion
    ├── uri.py           # request target → path + query params
    ├── request.py       # HTTPRequest, RequestParser, HTTPParseError
    ├── response.py      # HTTPResponse and helpers
    ├── status_codes.py  # HTTPStatus with reason phrases
    └── negotiation.py   # quality lists, wildcard mime sets, base mime
"""

from .headers import HeaderBag, QueryParamBag
from .method import HTTPMethod, HTTPVersion
from .uri import URI
from .request import HTTPRequest, RequestParser, HTTPParseError, parse_request
from .response import (
    HTTPResponse, format_http_date,
    ok, created, not_found, method_not_allowed, bad_request, internal_error,
    error_response,
)
from .status_codes import HTTPStatus
from .negotiation import (
    MimeSet, parse_quality_list, parse_quality_map, mime_regex, extract_base_mime,
)

__all__ = [
    "HeaderBag",
    "QueryParamBag",
    "HTTPMethod",
    "HTTPVersion",
    "URI",
    "HTTPRequest",
    "RequestParser",
    "HTTPParseError",
    "parse_request",
    "HTTPResponse",
    "format_http_date",
    "ok",
    "created",
    "not_found",
    "method_not_allowed",
    "bad_request",
    "internal_error",
    "error_response",
    "HTTPStatus",
    "MimeSet",
    "parse_quality_list",
    "parse_quality_map",
    "mime_regex",
    "extract_base_mime",
]
