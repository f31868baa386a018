"""Immutable connection settings for :class:`~sdk.client.BotClient`."""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlsplit

from pydantic import BaseModel, ValidationError, field_validator

from sdk.exceptions import ConfigError

DEFAULT_HOST = "https://api.telegram.org"
DEFAULT_TIMEOUT = 10

_PROXY_SCHEMES = frozenset({"http", "https", "socks5", "socks5h"})


class ClientConfig(BaseModel):
    """Host, token and optional proxy for one bot.

    Proxy format: ``scheme://[user:password@]host:port`` where scheme is
    one of ``http``, ``https``, ``socks5`` or ``socks5h`` (SOCKS needs the
    ``requests[socks]`` extra at runtime).

    Raises:
        ConfigError: If any value is unusable.
    """

    token: str
    host: str = DEFAULT_HOST
    proxy: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT

    model_config = {"frozen": True}

    def __init__(self, token: str, **data: Any) -> None:
        try:
            super().__init__(token=token, **data)
        except ValidationError as exc:
            raise ConfigError(f"invalid client config: {exc.errors(include_url=False)}") from exc

    @field_validator("token")
    @classmethod
    def _check_token(cls, value: str) -> str:
        if not value or any(ch.isspace() for ch in value) or "/" in value:
            raise ValueError("token must be a non-empty string without whitespace or '/'")
        return value

    @field_validator("host")
    @classmethod
    def _check_host(cls, value: str) -> str:
        parts = urlsplit(value)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ValueError(f"host must be an http(s) URL, got {value!r}")
        return value.rstrip("/")

    @field_validator("proxy")
    @classmethod
    def _check_proxy(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        parts = urlsplit(value)
        if parts.scheme not in _PROXY_SCHEMES or not parts.hostname:
            raise ValueError(f"unsupported proxy URL {value!r}")
        return value

    @field_validator("timeout")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout must be positive")
        return value

    @property
    def proxies(self) -> dict[str, str]:
        """Proxy mapping in the shape :attr:`requests.Session.proxies` expects."""
        if self.proxy is None:
            return {}
        return {"http": self.proxy, "https": self.proxy}

    def __repr_args__(self):
        # keep the token out of repr() and str()
        yield "host", self.host
        yield "token", "..."
        yield "proxy", "..." if self.proxy else None
        yield "timeout", self.timeout
