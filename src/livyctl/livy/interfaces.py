"""Protocol interfaces for the session manager and its collaborators."""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from livyctl.shared.cancellation import CancelToken
from livyctl.shared.enums import SessionKind
from livyctl.shared.models import CreateSessionRequest, LogPage, Session, Statement


@runtime_checkable
class ExecutionService(Protocol):
    """Protocol for Livy REST clients."""

    async def list_sessions(self, *, token: CancelToken | None = None) -> list[Session]: ...

    async def create_session(
        self, request: CreateSessionRequest, *, token: CancelToken | None = None
    ) -> Session: ...

    async def get_session(self, session_id: int, *, token: CancelToken | None = None) -> Session: ...

    async def delete_session(self, session_id: int, *, token: CancelToken | None = None) -> None: ...

    async def create_statement(
        self,
        session_id: int,
        code: str,
        kind: SessionKind | None = None,
        *,
        token: CancelToken | None = None,
    ) -> Statement: ...

    async def get_statement(
        self, session_id: int, statement_id: int, *, token: CancelToken | None = None
    ) -> Statement: ...

    async def cancel_statement(
        self, session_id: int, statement_id: int, *, token: CancelToken | None = None
    ) -> None: ...

    async def list_statements(self, session_id: int, *, token: CancelToken | None = None) -> list[Statement]: ...

    async def get_logs(
        self,
        session_id: int,
        from_: int | None = None,
        size: int | None = None,
        *,
        token: CancelToken | None = None,
    ) -> LogPage: ...


@runtime_checkable
class OutputSink(Protocol):
    """Append-only sink for human-readable status lines."""

    def append_line(self, line: str) -> None: ...


@runtime_checkable
class ConfirmPrompt(Protocol):
    """Yes/no question to the user."""

    async def confirm(self, message: str) -> bool: ...


@dataclass(frozen=True, slots=True)
class PickItem:
    """One choice offered by a ``Picker``."""

    id: str
    label: str
    description: str = ""


@runtime_checkable
class Picker(Protocol):
    """Let the user choose one item; returns the chosen id or None."""

    async def pick(self, items: Sequence[PickItem], *, placeholder: str = "") -> str | None: ...


@runtime_checkable
class ProgressHandle(Protocol):
    """A running progress indicator and the cancel signal it exposes."""

    @property
    def token(self) -> CancelToken: ...

    def report(self, message: str) -> None: ...


@runtime_checkable
class ProgressSurface(Protocol):
    """Opens progress indicators for long-running operations."""

    def open(self, title: str, *, cancellable: bool = True) -> AbstractAsyncContextManager[ProgressHandle]: ...
