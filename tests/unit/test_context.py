"""
Unit tests for Context delegation and error handling.
"""

import logging

import pytest

from httpctx import AppConfig, Application, Context, HTTPError


class TestDelegation:
    """Tests for forwarded accessors."""

    def test_wiring(self, ctx):
        """Test the facades point at each other and the context."""
        assert ctx.request.ctx is ctx
        assert ctx.response.ctx is ctx
        assert ctx.request.response is ctx.response
        assert ctx.response.request is ctx.request
        assert ctx.req is ctx.request.req
        assert ctx.res is ctx.response.res

    def test_response_accessors(self, ctx):
        """Test response attributes read and write through."""
        ctx.status = 201
        ctx.body = "made"
        ctx.etag = "v1"

        assert ctx.response.status == 201
        assert ctx.response.body == "made"
        assert ctx.response.etag == '"v1"'
        assert ctx.length == 4
        assert ctx.type == "text/plain"

    def test_request_accessors(self, make_context):
        """Test request attributes read and write through."""
        ctx = make_context("/a?x=1", headers={"Host": "tobi.ferrets.example.com"})

        assert ctx.path == "/a"
        assert ctx.query == {"x": "1"}
        assert ctx.host == "tobi.ferrets.example.com"
        assert ctx.subdomains == ["ferrets", "tobi"]
        assert ctx.origin == "http://tobi.ferrets.example.com"
        assert ctx.href == "http://tobi.ferrets.example.com/a?x=1"
        assert ctx.idempotent is True
        assert ctx.ip == "127.0.0.1"

        ctx.path = "/b"
        ctx.method = "POST"
        assert ctx.url == "/b?x=1"
        assert ctx.request.method == "POST"
        assert ctx.original_url == "/a?x=1"

    def test_read_only(self, ctx):
        """Test read-only delegates refuse assignment."""
        with pytest.raises(AttributeError):
            ctx.host = "elsewhere"
        with pytest.raises(AttributeError):
            ctx.header_sent = True

    def test_methods(self, make_context):
        """Test delegated methods."""
        ctx = make_context(headers={"Accept": "text/html", "X-Token": "t"})

        ctx.set("X-One", "1")
        ctx.append("X-One", "2")
        ctx.vary("Accept")

        assert ctx.has("x-one")
        assert ctx.response.get("X-One") == ["1", "2"]
        assert ctx.get("x-token") == "t"
        assert ctx.accepts("json", "html") == "html"
        assert ctx.accepts_languages() == ["*"]

        ctx.remove("X-One")
        assert not ctx.has("X-One")

    def test_to_dict(self, ctx):
        """Test the JSON-friendly view."""
        data = ctx.to_dict()

        assert data["request"]["method"] == "GET"
        assert data["response"]["status"] == 200
        assert data["app"]["env"] == "development"
        assert data["original_url"] == "/"


class TestThrow:
    """Tests for throw and assert_."""

    def test_throw(self, ctx):
        """Test throw raises an HTTPError."""
        with pytest.raises(HTTPError) as exc_info:
            ctx.throw(403, "Nope", reason="banned")

        err = exc_info.value
        assert err.status == 403
        assert err.message == "Nope"
        assert err.expose is True
        assert err.reason == "banned"

    def test_throw_default_message(self, ctx):
        """Test the standard phrase is the default message."""
        with pytest.raises(HTTPError) as exc_info:
            ctx.throw(404)
        assert exc_info.value.message == "Not Found"

    def test_assert(self, ctx):
        """Test assert_ raises only for falsy values."""
        ctx.assert_(True, 401)

        with pytest.raises(HTTPError) as exc_info:
            ctx.assert_(None, 401, "Login required")
        assert exc_info.value.status == 401


class TestOnError:
    """Tests for on_error()."""

    def test_none_ignored(self, ctx):
        """Test None is not an error."""
        ctx.on_error(None)
        assert not ctx.res.finished

    def test_http_error_exposed(self, ctx):
        """Test client errors expose their message."""
        ctx.set("X-Stale", "1")
        ctx.on_error(HTTPError(400, "name required", headers={"X-Field": "name"}))

        assert ctx.status == 400
        assert ctx.res.body == b"name required"
        assert ctx.response.get("Content-Type") == "text/plain; charset=utf-8"
        assert ctx.response.get("Content-Length") == "13"
        assert ctx.response.get("X-Field") == "name"
        assert ctx.response.get("X-Stale") is None
        assert ctx.res.finished

    def test_server_error_hidden(self, ctx):
        """Test server errors send only the phrase."""
        ctx.on_error(HTTPError(503, "database password leaked"))

        assert ctx.status == 503
        assert ctx.res.body == b"Service Unavailable"

    def test_plain_exception(self, ctx):
        """Test ordinary exceptions become 500."""
        ctx.on_error(ValueError("boom"))

        assert ctx.status == 500
        assert ctx.res.body == b"Internal Server Error"

    def test_file_not_found(self, ctx):
        """Test FileNotFoundError becomes 404."""
        ctx.on_error(FileNotFoundError("missing.txt"))

        assert ctx.status == 404
        assert ctx.res.body == b"Not Found"

    def test_status_code_attribute(self, ctx):
        """Test errors carrying status_code are honored."""

        class UpstreamError(Exception):
            status_code = 502

        ctx.on_error(UpstreamError("bad gateway"))
        assert ctx.status == 502

    def test_unknown_status(self, ctx):
        """Test an unregistered status falls back to 500."""

        class Odd(Exception):
            status = 799

        ctx.on_error(Odd())
        assert ctx.status == 500

    def test_non_exception_wrapped(self, ctx):
        """Test non-exception values are wrapped."""
        ctx.on_error("just a string")

        assert ctx.status == 500
        assert ctx.res.finished

    def test_headers_sent(self, ctx):
        """Test nothing changes once the head is sent."""
        ctx.status = 200
        ctx.res.write("partial")

        ctx.on_error(ValueError("late"))

        assert ctx.status == 200
        assert ctx.res.body == b"partial"
        assert not ctx.res.finished

    def test_reports_to_application(self, make_context, caplog):
        """Test unexpected errors reach the application logger."""
        ctx = make_context(config=AppConfig())

        with caplog.at_level(logging.ERROR, logger="httpctx"):
            ctx.on_error(RuntimeError("kaboom"))

        assert "kaboom" in caplog.text

    def test_without_application(self, ctx, caplog):
        """Test a context without an application still logs."""
        bare = Context(None, ctx.request, ctx.response)

        with caplog.at_level(logging.ERROR):
            bare.on_error(RuntimeError("orphan"))

        assert "orphan" in caplog.text
        assert bare.status == 500
