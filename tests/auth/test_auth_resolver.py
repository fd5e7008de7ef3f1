"""Tests for AuthResolver."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock

import pytest

from livyctl.auth.negotiator import UnavailableNegotiator
from livyctl.auth.resolver import AuthConfig, AuthResolver, default_principal
from livyctl.config import Settings
from livyctl.shared.enums import AuthMethod
from livyctl.shared.exceptions import NegotiationPackageError


class TestAuthResolver:
    async def test_none(self) -> None:
        assert await AuthResolver(AuthConfig()).header("http://livy:8998/sessions") is None

    async def test_basic(self) -> None:
        resolver = AuthResolver(AuthConfig(method=AuthMethod.BASIC, username="alice", password="s3cret"))

        header = await resolver.header("http://livy:8998/sessions")

        assert header == "Basic " + base64.b64encode(b"alice:s3cret").decode()

    async def test_bearer(self) -> None:
        resolver = AuthResolver(AuthConfig(method=AuthMethod.BEARER, bearer_token="tok"))
        assert await resolver.header("http://livy:8998/") == "Bearer tok"

    async def test_kerberos_default_principal_per_host(self) -> None:
        negotiator = AsyncMock()
        negotiator.generate_token.return_value = "YII="
        resolver = AuthResolver(AuthConfig(method=AuthMethod.KERBEROS), negotiator=negotiator)

        assert await resolver.header("https://namenode.example.com:9871/webhdfs/v1/x") == "Negotiate YII="
        await resolver.header("http://datanode7.example.com:9864/webhdfs/v1/x")

        principals = [c.args[0] for c in negotiator.generate_token.await_args_list]
        assert principals == ["HTTP@namenode.example.com", "HTTP@datanode7.example.com"]
        negotiator.generate_token.assert_awaited_with("HTTP@datanode7.example.com", delegate=False)

    async def test_kerberos_explicit_principal_and_delegation(self) -> None:
        negotiator = AsyncMock()
        negotiator.generate_token.return_value = "abc"
        config = AuthConfig(
            method=AuthMethod.KERBEROS,
            service_principal="HTTP@gateway.example.com",
            delegate_credentials=True,
        )

        await AuthResolver(config, negotiator=negotiator).header("https://other-host/")

        negotiator.generate_token.assert_awaited_once_with("HTTP@gateway.example.com", delegate=True)

    async def test_kerberos_without_package(self) -> None:
        resolver = AuthResolver(AuthConfig(method=AuthMethod.KERBEROS), negotiator=UnavailableNegotiator())

        with pytest.raises(NegotiationPackageError, match="livyctl\\[kerberos\\]"):
            await resolver.header("http://livy:8998/")

    def test_from_settings(self) -> None:
        settings = Settings(auth_method=AuthMethod.BASIC, username="u", password="p")
        config = AuthConfig.from_settings(settings)
        assert config.method is AuthMethod.BASIC
        assert (config.username, config.password) == ("u", "p")


def test_default_principal() -> None:
    assert default_principal("http://livy.example.com:8998/sessions") == "HTTP@livy.example.com"
