"""
Unit tests for MIME type lookup, the type cache and type matching.
"""

import threading

import pytest

from httpctx.http.mime_types import (
    LRUCache,
    content_type,
    get_type,
    lookup,
    type_is,
)


class TestLookup:
    """Tests for extension lookup."""

    @pytest.mark.parametrize("hint", ["html", ".html", "pages/index.html", "INDEX.HTML"])
    def test_html_forms(self, hint):
        """Test every spelling of an extension resolves."""
        assert lookup(hint) == "text/html"

    def test_unknown(self):
        """Test unknown extensions return None."""
        assert lookup("file.xyz") is None
        assert lookup("") is None


class TestContentType:
    """Tests for full Content-Type resolution."""

    def test_text_gets_charset(self):
        """Test textual types gain a utf-8 charset."""
        assert content_type("html") == "text/html; charset=utf-8"
        assert content_type("json") == "application/json; charset=utf-8"

    def test_binary_has_no_charset(self):
        """Test binary types stay bare."""
        assert content_type("png") == "image/png"
        assert content_type("bin") == "application/octet-stream"

    def test_full_type_kept(self):
        """Test full types pass through, keeping an explicit charset."""
        assert content_type("text/plain; charset=latin1") == "text/plain; charset=latin1"
        assert content_type("image/png") == "image/png"

    def test_unresolvable(self):
        """Test unknown hints return None."""
        assert content_type("nope") is None
        assert content_type(None) is None


class TestLRUCache:
    """Tests for the bounded cache."""

    def test_evicts_oldest(self):
        """Test the least recently used entry is dropped first."""
        cache = LRUCache(2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert "a" in cache
        assert "b" not in cache
        assert len(cache) == 2

    def test_default(self):
        """Test missing keys return the default."""
        cache = LRUCache(1)
        assert cache.get("missing", "fallback") == "fallback"

    def test_invalid_capacity(self):
        """Test capacity must be positive."""
        with pytest.raises(ValueError):
            LRUCache(0)

    def test_concurrent_access(self):
        """Test parallel writers never push the cache over capacity."""
        cache = LRUCache(10)

        def worker(offset):
            for i in range(200):
                cache.set(offset * 1000 + i, i)
                cache.get(offset * 1000 + i // 2)

        threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(cache) == 10


class TestGetType:
    """Tests for the cached resolver."""

    def test_resolves(self):
        """Test cached resolution matches content_type()."""
        assert get_type("css") == "text/css; charset=utf-8"
        assert get_type("css") == "text/css; charset=utf-8"

    def test_empty(self):
        """Test empty hints resolve to None."""
        assert get_type("") is None
        assert get_type("definitely-not-a-type") is None


class TestTypeIs:
    """Tests for Content-Type matching."""

    def test_shorthand(self):
        """Test extension shorthands match."""
        assert type_is("application/json; charset=utf-8", "json") == "json"
        assert type_is("text/html", "json", "html") == "html"

    def test_no_match(self):
        """Test no match returns False."""
        assert type_is("text/html", "json") is False

    def test_wildcards(self):
        """Test wildcard patterns return the real type."""
        assert type_is("text/html", "text/*") == "text/html"
        assert type_is("application/json", "*/*") == "application/json"

    def test_structured_suffix(self):
        """Test "+json" matches vendor JSON types."""
        assert type_is("application/vnd.api+json", "+json") == "application/vnd.api+json"

    def test_no_patterns(self):
        """Test no patterns returns the normalized type."""
        assert type_is("Text/HTML; charset=utf-8") == "text/html"

    def test_invalid_value(self):
        """Test missing or invalid values never match."""
        assert type_is("", "json") is False
        assert type_is("nonsense", "json") is False

    def test_list_argument(self):
        """Test a single list of patterns is accepted."""
        assert type_is("application/x-www-form-urlencoded", ["json", "urlencoded"]) == "urlencoded"
