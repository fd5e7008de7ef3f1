"""Hierarchical exception types for the livyctl client."""

from __future__ import annotations


class LivyError(Exception):
    """Base exception for all livyctl errors."""


# ── Transport ──────────────────────────────────────────────────


class TransportError(LivyError):
    """Connection or I/O failure before a response was received."""


class ApiError(LivyError):
    """Server answered with a non-2xx status or an undecodable body."""

    def __init__(self, status_code: int, body: str, message: str | None = None) -> None:
        super().__init__(message or f"Livy API error: HTTP {status_code}")
        self.status_code = status_code
        self.body = body


# ── Sessions & statements ──────────────────────────────────────


class NoActiveSessionError(LivyError):
    """An operation needs a usable active session and there is none."""


class SessionFailedError(LivyError):
    """Session reached a terminal failure state while starting."""

    def __init__(self, session_id: int, state: str) -> None:
        super().__init__(f"Livy session #{session_id} failed with state: {state}")
        self.session_id = session_id
        self.state = state


class SessionTimeoutError(LivyError):
    """Session did not become idle before the deadline."""


# ── WebHDFS ────────────────────────────────────────────────────


class UploadError(LivyError):
    """WebHDFS upload or delete failed."""


class UploadProtocolError(UploadError):
    """WebHDFS answered in a way the two-step protocol does not allow."""


# ── Negotiated auth ────────────────────────────────────────────


class NegotiationError(LivyError):
    """SPNEGO token generation failed."""


class NegotiationPackageError(NegotiationError):
    """The Kerberos support package is not installed."""


class NegotiationCredentialError(NegotiationError):
    """No valid Kerberos ticket is available."""


class NegotiationPrincipalError(NegotiationError):
    """The service principal was rejected."""


# ── Cancellation ───────────────────────────────────────────────


class OperationAborted(Exception):
    """Raised inside a suspended call when its cancel token fires.

    Not a ``LivyError``: the session manager turns it into ``ABORTED``.
    """
