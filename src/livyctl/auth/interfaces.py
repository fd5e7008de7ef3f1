"""Interfaces for the auth module."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Negotiator(Protocol):
    """Protocol for SPNEGO token producers."""

    async def generate_token(self, principal: str, *, delegate: bool = False) -> str:
        """Run one security-context step for ``principal``.

        Args:
            principal: Service principal in ``service@host`` form, e.g. ``HTTP@livy.example.com``.
            delegate: Request Kerberos credential delegation.

        Returns:
            Base64-encoded token for an ``Authorization: Negotiate`` header.

        Raises:
            NegotiationError: If the package is missing, no ticket exists, or the principal is rejected.
        """
        ...
