"""
Unit tests for AppConfig and the error types.
"""

import dataclasses

import pytest

from httpctx import AppConfig, HTTPError, InvalidStatusError


class TestAppConfig:
    """Tests for AppConfig."""

    def test_defaults(self):
        """Test default settings."""
        config = AppConfig()

        assert config.proxy is False
        assert config.proxy_ip_header == "X-Forwarded-For"
        assert config.max_ips_count == 0
        assert config.subdomain_offset == 2
        assert config.env == "development"
        assert config.silent is False

    def test_frozen(self):
        """Test settings cannot change after construction."""
        config = AppConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.proxy = True

    def test_from_env(self, monkeypatch):
        """Test reading settings from the environment."""
        monkeypatch.setenv("HTTPCTX_PROXY", "yes")
        monkeypatch.setenv("HTTPCTX_SUBDOMAIN_OFFSET", "3")
        monkeypatch.setenv("HTTPCTX_PROXY_IP_HEADER", "X-Real-IP")
        monkeypatch.setenv("HTTPCTX_MAX_IPS_COUNT", "1")
        monkeypatch.setenv("HTTPCTX_ENV", "production")
        monkeypatch.setenv("HTTPCTX_SILENT", "1")
        monkeypatch.setenv("HTTPCTX_LOG_LEVEL", "DEBUG")

        config = AppConfig.from_env()

        assert config.proxy is True
        assert config.subdomain_offset == 3
        assert config.proxy_ip_header == "X-Real-IP"
        assert config.max_ips_count == 1
        assert config.env == "production"
        assert config.silent is True
        assert config.log_level == "DEBUG"

    def test_from_env_python_env_fallback(self, monkeypatch):
        """Test PYTHON_ENV is used when HTTPCTX_ENV is unset."""
        monkeypatch.delenv("HTTPCTX_ENV", raising=False)
        monkeypatch.setenv("PYTHON_ENV", "test")
        assert AppConfig.from_env().env == "test"

    def test_from_env_flag_off(self, monkeypatch):
        """Test unrecognized flag values read as false."""
        monkeypatch.setenv("HTTPCTX_PROXY", "nope")
        assert AppConfig.from_env().proxy is False

    @pytest.mark.parametrize("kwargs", [
        {"subdomain_offset": -1},
        {"max_ips_count": -2},
        {"proxy_ip_header": " "},
        {"log_level": "LOUD"},
    ])
    def test_validate_rejects(self, kwargs):
        """Test invalid settings fail validation."""
        with pytest.raises(ValueError):
            AppConfig(**kwargs).validate()

    def test_validate_accepts_defaults(self):
        """Test the defaults are valid."""
        AppConfig().validate()


class TestHTTPError:
    """Tests for HTTPError."""

    def test_defaults(self):
        """Test a bare error is a hidden 500."""
        err = HTTPError()

        assert err.status == 500
        assert err.status_code == 500
        assert err.message == "Internal Server Error"
        assert err.expose is False
        assert err.headers == {}

    def test_client_error_exposed(self):
        """Test 4xx errors are exposed by default."""
        err = HTTPError(409, "Already exists")

        assert err.expose is True
        assert str(err) == "Already exists"

    def test_expose_override(self):
        """Test expose can be set explicitly."""
        assert HTTPError(502, expose=True).expose is True
        assert HTTPError(400, expose=False).expose is False

    @pytest.mark.parametrize("status", [200, 302, 1000, "404", None])
    def test_non_error_status_becomes_500(self, status):
        """Test statuses that are not errors fall back to 500."""
        assert HTTPError(status).status == 500

    def test_props(self):
        """Test extra keyword arguments become attributes."""
        err = HTTPError(400, field="email")

        assert err.field == "email"
        assert err.props == {"field": "email"}
        assert repr(err) == "HTTPError(400, 'Bad Request')"


class TestInvalidStatusError:
    """Tests for InvalidStatusError."""

    def test_is_value_error(self):
        """Test it can be caught as ValueError."""
        err = InvalidStatusError(42)

        assert isinstance(err, ValueError)
        assert err.code == 42
        assert "42" in str(err)
