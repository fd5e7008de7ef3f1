"""Authorization header resolution for Livy and WebHDFS requests."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import TYPE_CHECKING
from urllib.parse import urlparse

from livyctl.auth.interfaces import Negotiator
from livyctl.auth.negotiator import UnavailableNegotiator, load_negotiator
from livyctl.shared.enums import AuthMethod

if TYPE_CHECKING:
    from livyctl.config import Settings


@dataclass(frozen=True, slots=True)
class AuthConfig:
    """Credentials for the configured authentication mode."""

    method: AuthMethod = AuthMethod.NONE
    username: str = ""
    password: str = ""
    bearer_token: str = ""
    service_principal: str = ""
    delegate_credentials: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> AuthConfig:
        return cls(
            method=settings.auth_method,
            username=settings.username,
            password=settings.password,
            bearer_token=settings.bearer_token,
            service_principal=settings.kerberos_service_principal,
            delegate_credentials=settings.kerberos_delegate_credentials,
        )


class AuthResolver:
    """Produce the ``Authorization`` header value for one request."""

    def __init__(self, config: AuthConfig, *, negotiator: Negotiator | None = None) -> None:
        self._config = config
        if negotiator is None:
            negotiator = load_negotiator() if config.method is AuthMethod.KERBEROS else UnavailableNegotiator()
        self._negotiator = negotiator

    @property
    def method(self) -> AuthMethod:
        return self._config.method

    async def header(self, url: str) -> str | None:
        """Return the header value for a request to ``url``, or None for no auth.

        Kerberos tokens are bound to the target host, so callers resolve a
        fresh header for every hop.

        Raises:
            NegotiationError: If SPNEGO token generation fails.
        """
        config = self._config
        if config.method is AuthMethod.BASIC:
            encoded = base64.b64encode(f"{config.username}:{config.password}".encode()).decode("ascii")
            return f"Basic {encoded}"
        if config.method is AuthMethod.BEARER:
            return f"Bearer {config.bearer_token}"
        if config.method is AuthMethod.KERBEROS:
            principal = config.service_principal or default_principal(url)
            token = await self._negotiator.generate_token(principal, delegate=config.delegate_credentials)
            return f"Negotiate {token}"
        return None


def default_principal(url: str) -> str:
    """Return the conventional ``HTTP@<host>`` principal for a request URL."""
    return f"HTTP@{urlparse(url).hostname or ''}"
