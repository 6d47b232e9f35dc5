"""
=============================================================================
APPLICATION CONFIGURATION
=============================================================================

Settings the request/response facades consult while deriving values.

=============================================================================
IMMUTABILITY
=============================================================================

AppConfig is a frozen dataclass. Every Request receives it at
construction and reads the same settings for its whole lifetime.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    WHERE SETTINGS ARE READ                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   proxy              request.host / protocol / ips                  │
    │   proxy_ip_header    request.ips                                    │
    │   max_ips_count      request.ips                                    │
    │   subdomain_offset   request.subdomains                             │
    │   silent             application.on_error                           │
    │   log_level          configure_logging()                            │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    HTTPCTX_PROXY              "1"/"true"/"yes"/"on" trust X-Forwarded-*
    HTTPCTX_SUBDOMAIN_OFFSET   labels dropped from the right (default: 2)
    HTTPCTX_PROXY_IP_HEADER    header carrying the client chain
    HTTPCTX_MAX_IPS_COUNT      keep at most this many forwarded IPs (0 = all)
    HTTPCTX_ENV                environment name (falls back to PYTHON_ENV)
    HTTPCTX_SILENT             "1"/"true"/"yes"/"on" suppress error logging
    HTTPCTX_LOG_LEVEL          DEBUG, INFO, WARNING, ERROR

=============================================================================
"""

import logging
import os
from dataclasses import dataclass

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass(frozen=True)
class AppConfig:
    """
    Configuration for an Application and the requests it handles.

    Development:
        AppConfig()

    Behind a load balancer:
        AppConfig(proxy=True, max_ips_count=1)
    """

    # ─────────────────────────────────────────────────────────────────────
    # PROXY SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    proxy: bool = False
    """
    Trust X-Forwarded-Host, X-Forwarded-Proto and the proxy IP header.
    Only enable this when a proxy you control sets those headers.
    """

    proxy_ip_header: str = "X-Forwarded-For"
    """Header holding the comma separated client address chain."""

    max_ips_count: int = 0
    """
    Keep only the last N addresses of the forwarded chain.
    0 keeps them all.
    """

    # ─────────────────────────────────────────────────────────────────────
    # REQUEST DERIVATION
    # ─────────────────────────────────────────────────────────────────────

    subdomain_offset: int = 2
    """
    Number of dot-separated labels that make up the base domain.
    "tobi.ferrets.example.com" with offset 2 → ["ferrets", "tobi"]
    """

    # ─────────────────────────────────────────────────────────────────────
    # APPLICATION
    # ─────────────────────────────────────────────────────────────────────

    env: str = "development"

    silent: bool = False
    """Suppress error logging in Application.on_error."""

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "AppConfig":
        """
        Create configuration from environment variables.

        Usage:
            HTTPCTX_PROXY=1 HTTPCTX_LOG_LEVEL=DEBUG python app.py

            config = AppConfig.from_env()
            app = Application(config)
        """
        return cls(
            proxy=_env_flag("HTTPCTX_PROXY"),
            subdomain_offset=int(os.getenv("HTTPCTX_SUBDOMAIN_OFFSET", "2")),
            proxy_ip_header=os.getenv("HTTPCTX_PROXY_IP_HEADER", "X-Forwarded-For"),
            max_ips_count=int(os.getenv("HTTPCTX_MAX_IPS_COUNT", "0")),
            env=os.getenv("HTTPCTX_ENV") or os.getenv("PYTHON_ENV") or "development",
            silent=_env_flag("HTTPCTX_SILENT"),
            log_level=os.getenv("HTTPCTX_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """Fail fast on settings that would break request derivation."""
        if self.subdomain_offset < 0:
            raise ValueError(f"subdomain_offset must be >= 0, got {self.subdomain_offset}")

        if self.max_ips_count < 0:
            raise ValueError(f"max_ips_count must be >= 0, got {self.max_ips_count}")

        if not self.proxy_ip_header or not self.proxy_ip_header.strip():
            raise ValueError("proxy_ip_header must not be empty")

        if not isinstance(getattr(logging, self.log_level.upper(), None), int):
            raise ValueError(f"Invalid log_level: {self.log_level}")
