"""
Unit tests for quality lists and media-type sets.
"""

import pytest

from httproute.http.negotiation import (
    MimeSet,
    extract_base_mime,
    is_wildcard,
    mime_regex,
    parse_quality_list,
    parse_quality_map,
)
from httproute.http.request import HTTPParseError


class TestQualityList:
    """Tests for parse_quality_list / parse_quality_map."""

    def test_ordering_by_quality(self):
        """Highest quality first; missing q means 1."""
        header = "text/html;q=0.8, text/plain, text/xml;q=0.1"
        assert parse_quality_list(header) == ["text/plain", "text/html", "text/xml"]

    def test_ties_keep_order(self):
        """Equal qualities keep their order of appearance."""
        assert parse_quality_list("b, a, c;q=1") == ["b", "a", "c"]

    def test_single_token(self):
        """One token, no parameters."""
        assert parse_quality_map("application/json") == {"application/json": 1.0}

    def test_whitespace_is_trimmed(self):
        """Spaces around tokens are ignored."""
        assert parse_quality_list("  gzip ,deflate ;q=0.5") == ["gzip", "deflate"]

    def test_other_parameters_ignored(self):
        """Only q affects the quality."""
        quality = parse_quality_map("text/html;level=1;q=0.4, */*;q=0.1")
        assert quality == {"text/html": 0.4, "*/*": 0.1}

    def test_empty_entries_skipped(self):
        """Empty list members are dropped."""
        assert parse_quality_list("a,, b,") == ["a", "b"]

    @pytest.mark.parametrize("header, expected", [
        ("a;q=2", 1.0),
        ("a;q=-1", 0.0),
        ("a;q=", 1.0),
    ])
    def test_quality_is_clamped(self, header, expected):
        """Qualities are clamped to [0, 1]."""
        assert parse_quality_map(header)["a"] == expected

    def test_non_numeric_quality(self):
        """A q value that is not a number is a parse error."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_quality_list("text/html;q=high")
        assert exc_info.value.status_code == 400


class TestMimeHelpers:
    """Tests for mime_regex / is_wildcard / extract_base_mime."""

    def test_mime_regex(self):
        """'*' is the only wildcard; dots and pluses are literal."""
        assert mime_regex("text/*").match("text/plain")
        assert not mime_regex("text/*").match("image/png")
        assert mime_regex("application/vnd.api+json").match("application/vnd.api+json")
        assert not mime_regex("application/vnd.api+json").match("application/vndXapi+json")

    def test_is_wildcard(self):
        """Any '*' makes a wildcard."""
        assert is_wildcard("*/*")
        assert is_wildcard("text/*")
        assert not is_wildcard("text/plain")

    @pytest.mark.parametrize("mime, base", [
        ("application/json", "application/json"),
        ("application/json; charset=utf-8", "application/json"),
        ("application/vnd.api+json", "application/json"),
        ("image/svg+xml", "image/xml"),
        ("text/plain", "text/plain"),
    ])
    def test_extract_base_mime(self, mime, base):
        """Parameters are dropped and +suffix collapses."""
        assert extract_base_mime(mime) == base


class TestMimeSet:
    """Tests for MimeSet class."""

    def test_concrete_candidate(self):
        """Concrete candidates match registered concrete or wildcard types."""
        produced = MimeSet(["application/json", "text/*"])
        assert produced.satisfy("application/json") == "application/json"
        assert produced.satisfy("text/csv") == "text/csv"
        assert produced.satisfy("image/png") is None

    def test_wildcard_candidate_picks_registered_type(self):
        """A wildcard candidate negotiates the first concrete type it covers."""
        produced = MimeSet(["application/json", "text/plain"])
        assert produced.satisfy("*/*") == "application/json"
        assert produced.satisfy("text/*") == "text/plain"

    def test_wildcard_satisfiability_is_asymmetric(self):
        """A registered wildcard does not satisfy a wildcard candidate."""
        produced = MimeSet(["text/*"])
        assert produced.can_satisfy("text/html")
        assert not produced.can_satisfy("*/*")
        assert not produced.can_satisfy("text/*")

    def test_len_and_iter(self):
        """Iteration yields the registered types in order."""
        produced = MimeSet(["a/b", "c/d"])
        assert len(produced) == 2
        assert list(produced) == ["a/b", "c/d"]
