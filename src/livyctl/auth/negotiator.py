"""Kerberos/SPNEGO token generation backed by ``pyspnego``.

``pyspnego`` (with its GSSAPI/SSPI backend) is an optional install. Whether it
is present is decided once, when the negotiator is built: ``load_negotiator``
returns either a working ``SpnegoNegotiator`` or an ``UnavailableNegotiator``
that fails every call with install guidance.

A new security context is created per token. Service tickets are cached by the
OS credential cache, so this costs one local step, not a KDC round trip.
"""

from __future__ import annotations

import asyncio
import base64
import importlib
import importlib.util
import logging
import re
from types import ModuleType
from typing import Any

from livyctl.shared.exceptions import (
    NegotiationCredentialError,
    NegotiationError,
    NegotiationPackageError,
    NegotiationPrincipalError,
)

logger = logging.getLogger(__name__)

_SPNEGO_MODULE = "spnego"

_MISSING_PACKAGE_MESSAGE = (
    'Kerberos authentication requires the "pyspnego" package with Kerberos support.\n'
    'Install it with: pip install "livyctl[kerberos]"'
)

_CREDENTIAL_PATTERN = re.compile(r"ticket|credential|no.*kerberos|kinit|expired", re.IGNORECASE)
_PRINCIPAL_PATTERN = re.compile(r"principal|service|server not found", re.IGNORECASE)


class SpnegoNegotiator:
    """SPNEGO negotiator using ``pyspnego``.

    Implements the ``Negotiator`` protocol.
    """

    def __init__(self, module: ModuleType | Any | None = None) -> None:
        self._spnego = module if module is not None else importlib.import_module(_SPNEGO_MODULE)

    async def generate_token(self, principal: str, *, delegate: bool = False) -> str:
        service, _, hostname = principal.partition("@")
        if not service or not hostname:
            raise NegotiationPrincipalError(
                f'Kerberos service principal "{principal}" is not in service@host form. '
                "Verify the LIVY_KERBEROS_SERVICE_PRINCIPAL setting."
            )
        # GSSAPI calls block on the credential cache.
        return await asyncio.to_thread(self._step, principal, service, hostname, delegate)

    def _step(self, principal: str, service: str, hostname: str, delegate: bool) -> str:
        spnego = self._spnego
        flags = spnego.ContextReq.mutual_auth | spnego.ContextReq.sequence_detect
        if delegate:
            flags |= spnego.ContextReq.delegate

        try:
            context = spnego.client(
                hostname=hostname,
                service=service,
                protocol="negotiate",
                context_req=flags,
            )
            token = context.step()
        except Exception as exc:
            raise _classify_failure(principal, exc) from exc

        if not token:
            raise NegotiationCredentialError(
                "Kerberos SPNEGO token generation returned an empty result. "
                'Ensure you have a valid Kerberos ticket (run "kinit" on Linux/macOS '
                "or verify your domain credentials on Windows)."
            )

        logger.debug("generated SPNEGO token for %s (delegate=%s)", principal, delegate)
        return base64.b64encode(token).decode("ascii")


class UnavailableNegotiator:
    """Stand-in used when ``pyspnego`` is not installed."""

    async def generate_token(self, principal: str, *, delegate: bool = False) -> str:
        raise NegotiationPackageError(_MISSING_PACKAGE_MESSAGE)


def spnego_available() -> bool:
    return importlib.util.find_spec(_SPNEGO_MODULE) is not None


def load_negotiator() -> SpnegoNegotiator | UnavailableNegotiator:
    """Check for ``pyspnego`` once and return the matching negotiator."""
    if spnego_available():
        return SpnegoNegotiator()
    logger.info("pyspnego not installed; kerberos auth will fail until it is")
    return UnavailableNegotiator()


def _classify_failure(principal: str, exc: Exception) -> NegotiationError:
    detail = str(exc) or type(exc).__name__
    if _CREDENTIAL_PATTERN.search(detail):
        return NegotiationCredentialError(
            "Kerberos ticket not found or expired. "
            'Run "kinit" to obtain a ticket (Linux/macOS) or verify your domain login (Windows).\n'
            f"Detail: {detail}"
        )
    if _PRINCIPAL_PATTERN.search(detail):
        return NegotiationPrincipalError(
            f'Kerberos authentication failed for principal "{principal}". '
            f"Verify the LIVY_KERBEROS_SERVICE_PRINCIPAL setting.\nDetail: {detail}"
        )
    return NegotiationError(f"Kerberos security context initialisation failed: {detail}")
