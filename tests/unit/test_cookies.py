"""
Unit tests for cookie access.
"""

import pytest

from httproute.cookies import REQUIRE_COOKIES, CookieBag, cookies
from httproute.http.method import HTTPMethod
from httproute.http.request import HTTPRequest, parse_request
from httproute.routing.context import RequestContext


class TestCookieBag:
    """Tests for CookieBag class."""

    def test_parse_pairs(self):
        """Pairs are split on "; "."""
        bag = CookieBag(["type=chocolate; session=abc123"])
        assert bag.get("type") == "chocolate"
        assert bag.get("session") == "abc123"
        assert len(bag) == 2

    def test_multiple_header_lines(self):
        """Every Cookie header contributes."""
        bag = CookieBag(["a=1", "b=2"])
        assert dict(bag.items()) == {"a": "1", "b": "2"}

    def test_empty_name_skipped(self):
        """Entries without a name are dropped."""
        bag = CookieBag(["=orphan; ok=1"])
        assert dict(bag.items()) == {"ok": "1"}

    def test_value_may_contain_equals(self):
        """Only the first '=' separates name and value."""
        assert CookieBag(["token=a=b"]).get("token") == "a=b"

    def test_missing_cookie(self):
        """get() raises without a default."""
        bag = CookieBag(["a=1"])
        with pytest.raises(KeyError):
            bag.get("b")
        assert bag.get("b", "none") == "none"
        assert bag.has("a")
        assert "b" not in bag

    def test_from_request(self):
        """Built from the request's Cookie header."""
        request = parse_request(
            b"GET /eat_cookie HTTP/1.1\r\nCookie: type=choclate\r\n\r\n"
        )
        assert CookieBag.from_request(request).get("type") == "choclate"

    def test_from_request_without_cookies(self):
        """No Cookie header gives an empty bag."""
        request = HTTPRequest(method=HTTPMethod.GET, path="/")
        assert len(CookieBag.from_request(request)) == 0


class TestCookieExtractor:
    """Tests for the cookies() extractor."""

    def test_extractor(self):
        request = HTTPRequest(method=HTTPMethod.GET, path="/")
        request.headers.set(REQUIRE_COOKIES, "type=vanilla")
        bag = cookies()(RequestContext(request=request))
        assert bag.get("type") == "vanilla"

    def test_header_name(self):
        """Routes require the standard Cookie header."""
        assert REQUIRE_COOKIES == "Cookie"
