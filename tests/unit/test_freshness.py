"""
Unit tests for conditional request freshness.
"""

from httpctx.http.freshness import is_fresh, parse_token_list

LAST_MODIFIED = "Sat, 01 Jan 2000 00:00:00 GMT"


class TestIsFresh:
    """Tests for is_fresh()."""

    def test_no_conditional_headers(self):
        """Test a request without validators is never fresh."""
        assert is_fresh({}, {"etag": '"abc"'}) is False

    def test_etag_match(self):
        """Test a matching ETag is fresh."""
        assert is_fresh({"if-none-match": '"abc"'}, {"etag": '"abc"'}) is True

    def test_etag_mismatch(self):
        """Test a different ETag is stale."""
        assert is_fresh({"if-none-match": '"abc"'}, {"etag": '"xyz"'}) is False

    def test_etag_list(self):
        """Test any entry in the list may match."""
        assert is_fresh({"if-none-match": '"a", "b", "c"'}, {"etag": '"b"'}) is True

    def test_weak_comparison(self):
        """Test weak and strong forms compare equal."""
        assert is_fresh({"if-none-match": 'W/"abc"'}, {"etag": '"abc"'}) is True
        assert is_fresh({"if-none-match": '"abc"'}, {"etag": 'W/"abc"'}) is True

    def test_star(self):
        """Test "*" matches any representation."""
        assert is_fresh({"if-none-match": "*"}, {"etag": '"abc"'}) is True

    def test_missing_response_etag(self):
        """Test If-None-Match without a response ETag is stale."""
        assert is_fresh({"if-none-match": '"abc"'}, {}) is False

    def test_no_cache(self):
        """Test Cache-Control: no-cache forces stale."""
        request = {"if-none-match": '"abc"', "cache-control": "no-cache"}
        assert is_fresh(request, {"etag": '"abc"'}) is False

    def test_not_modified_since(self):
        """Test an unchanged resource is fresh."""
        request = {"if-modified-since": "Sun, 02 Jan 2000 00:00:00 GMT"}
        assert is_fresh(request, {"last-modified": LAST_MODIFIED}) is True

    def test_modified_since(self):
        """Test a newer resource is stale."""
        request = {"if-modified-since": "Fri, 31 Dec 1999 00:00:00 GMT"}
        assert is_fresh(request, {"last-modified": LAST_MODIFIED}) is False

    def test_unparsable_dates(self):
        """Test garbage dates are treated as stale."""
        request = {"if-modified-since": "whenever"}
        assert is_fresh(request, {"last-modified": LAST_MODIFIED}) is False

    def test_both_must_pass(self):
        """Test ETag and date must both be fresh."""
        request = {
            "if-none-match": '"abc"',
            "if-modified-since": "Fri, 31 Dec 1999 00:00:00 GMT",
        }
        response = {"etag": '"abc"', "last-modified": LAST_MODIFIED}
        assert is_fresh(request, response) is False


class TestParseTokenList:
    """Tests for token list splitting."""

    def test_split(self):
        """Test whitespace and empty entries are dropped."""
        assert parse_token_list(' "a" ,"b",, "c" ') == ['"a"', '"b"', '"c"']
