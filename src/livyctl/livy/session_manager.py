"""Session and statement lifecycle on top of the Livy client."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass

from livyctl.livy.interfaces import ConfirmPrompt, ExecutionService, OutputSink
from livyctl.livy.rendering import format_timestamp, render_session, render_statement
from livyctl.shared.cancellation import CancelToken, link
from livyctl.shared.enums import SessionKind, SessionState
from livyctl.shared.events import EventChannel
from livyctl.shared.exceptions import (
    ApiError,
    LivyError,
    NoActiveSessionError,
    OperationAborted,
    SessionFailedError,
    SessionTimeoutError,
)
from livyctl.shared.models import (
    ABORTED,
    Aborted,
    CreateSessionRequest,
    LogPage,
    Session,
    SessionChanged,
    Statement,
    StatementComplete,
)
from livyctl.shared.state_store import InMemorySessionIdStore, SessionIdStore

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]


@dataclass(frozen=True, slots=True)
class KillAllResult:
    """Outcome of ``kill_all_sessions``."""

    killed: int
    total: int
    confirmed: bool


class SessionManager:
    """Owns the active session and drives create/execute poll loops.

    The active-session handle and the log cursor are mutated only here.
    Callers must not run two poll loops against the same manager at once.

    Flow of ``create_session``:
    1. POST the session
    2. Poll until ``idle`` (success), a terminal state or the deadline (failure),
       or cancellation (``ABORTED``, handle untouched)
    3. Install as active, reset the log cursor, publish ``SessionChanged``
    """

    def __init__(
        self,
        client: ExecutionService,
        *,
        output: OutputSink | None = None,
        store: SessionIdStore | None = None,
        events: EventChannel | None = None,
        default_kind: SessionKind = SessionKind.PYSPARK,
        poll_interval: float = 1.0,
        session_poll_interval: float = 3.0,
        session_timeout: float = 300.0,
        log_page_size: int = 100,
        kill_on_cancel: bool = False,
    ) -> None:
        self._client = client
        self._output = output
        self._store = store if store is not None else InMemorySessionIdStore()
        self.events = events if events is not None else EventChannel()
        self._default_kind = default_kind
        self._poll_interval = poll_interval
        self._session_poll_interval = session_poll_interval
        self._session_timeout = session_timeout
        self._log_page_size = log_page_size
        self._kill_on_cancel = kill_on_cancel

        self._active: Session | None = None
        self._log_offset = 0

    @property
    def active_session(self) -> Session | None:
        return self._active

    @property
    def log_offset(self) -> int:
        return self._log_offset

    # ── Session lifecycle ──────────────────────────────────────

    async def create_session(
        self,
        request: CreateSessionRequest | None = None,
        *,
        token: CancelToken | None = None,
        progress: ProgressCallback | None = None,
    ) -> Session | Aborted:
        """Create a session and wait until it is idle.

        Returns:
            The idle session, or ``ABORTED`` if ``token`` fired.

        Raises:
            SessionFailedError: If the session reached a terminal state.
            SessionTimeoutError: If it was not idle within the deadline.
            ApiError, TransportError: On request failures.
        """
        payload = request if request is not None else CreateSessionRequest(kind=self._default_kind)
        op_token = link(token)
        try:
            return await self._create_and_wait(payload, op_token, progress)
        finally:
            op_token.detach()

    async def _create_and_wait(
        self,
        payload: CreateSessionRequest,
        token: CancelToken,
        progress: ProgressCallback | None,
    ) -> Session | Aborted:
        try:
            token.raise_if_cancelled()
            session = await self._client.create_session(payload, token=token)
        except OperationAborted:
            self._log("Session creation cancelled.")
            return ABORTED

        self._log(f"Session #{session.id} created (state: {session.state.value})")

        try:
            ready = await self._wait_until_idle(session, token, progress)
        except OperationAborted:
            self._log("Session creation cancelled.")
            if self._kill_on_cancel:
                await self._discard_session(session.id)
            return ABORTED
        except (SessionFailedError, SessionTimeoutError) as exc:
            self._log(str(exc))
            raise

        self._install(ready)
        self._log(f"Session #{ready.id} is ready (idle).")
        return ready

    async def _wait_until_idle(
        self,
        session: Session,
        token: CancelToken,
        progress: ProgressCallback | None,
    ) -> Session:
        # The deadline fires its own token so an in-flight poll is abandoned too.
        expired = CancelToken()
        timer = asyncio.get_running_loop().call_later(self._session_timeout, expired.cancel)
        poll_token = link(token, expired)
        current = session

        try:
            while current.state is not SessionState.IDLE:
                token.raise_if_cancelled()

                if current.state.is_terminal:
                    raise SessionFailedError(current.id, current.state.value)

                if expired.cancelled:
                    raise self._timeout_error(current)

                if progress is not None:
                    progress(f"state: {current.state.value}…")
                logger.debug("session %d state=%s", current.id, current.state.value)

                await poll_token.sleep(self._session_poll_interval)
                current = await self._client.get_session(session.id, token=poll_token)
        except OperationAborted:
            if expired.cancelled and not token.cancelled:
                raise self._timeout_error(current) from None
            raise
        finally:
            timer.cancel()
            poll_token.detach()

        return current

    def _timeout_error(self, session: Session) -> SessionTimeoutError:
        return SessionTimeoutError(
            f"Livy session #{session.id} creation timed out after {self._session_timeout:g}s "
            f"(last state: {session.state.value})"
        )

    async def _discard_session(self, session_id: int) -> None:
        try:
            await self._client.delete_session(session_id)
            self._log(f"Session #{session_id} killed after cancelled creation.")
        except LivyError as exc:
            logger.warning("failed to delete cancelled session %d: %s", session_id, exc)

    async def connect_to_existing(self, session_id: int) -> Session:
        """Fetch an existing session once and make it active."""
        session = await self._client.get_session(session_id)
        self._install(session)
        self._log(f"Connected to session #{session.id} ({session.state.value})")
        return session

    async def kill_session(self, session_id: int | None = None) -> None:
        """Delete a session, defaulting to the active one.

        The active handle is cleared when it is the target, whether or not the
        delete succeeds. A 404 (already gone) is not an error.
        """
        target = session_id
        if target is None and self._active is not None:
            target = self._active.id
        if target is None:
            raise NoActiveSessionError("No active Livy session.")

        try:
            await self._client.delete_session(target)
            self._log(f"Session #{target} killed.")
        except ApiError as exc:
            if exc.status_code != 404:
                raise
            logger.info("session %d already gone (404)", target)
            self._log(f"Session #{target} no longer exists.")
        finally:
            if self._active is not None and self._active.id == target:
                self._clear()

    async def kill_all_sessions(self, confirm: ConfirmPrompt) -> KillAllResult:
        """Delete every session on the server after explicit confirmation.

        Each delete is attempted independently; failures are counted.
        """
        sessions = await self._client.list_sessions()
        if not sessions:
            self._log("No Livy sessions to kill.")
            return KillAllResult(killed=0, total=0, confirmed=False)

        if not await confirm.confirm(f"Kill all {len(sessions)} Livy session(s)?"):
            return KillAllResult(killed=0, total=len(sessions), confirmed=False)

        killed = 0
        for session in sessions:
            try:
                await self._client.delete_session(session.id)
            except LivyError as exc:
                logger.warning("failed to kill session %d: %s", session.id, exc)
                self._log(f"Failed to kill session #{session.id}: {exc}")
                continue
            killed += 1
            self._log(f"Session #{session.id} killed.")

        self._clear()
        self._log(f"Killed {killed} of {len(sessions)} session(s).")
        return KillAllResult(killed=killed, total=len(sessions), confirmed=True)

    async def restore_session(self) -> Session | None:
        """Re-attach to the stored session id, if it still exists.

        A vanished session is expected: the stored id is dropped silently.
        """
        saved_id = self._store.load()
        if saved_id is None:
            return None

        try:
            session = await self._client.get_session(saved_id)
        except LivyError as exc:
            logger.info("stored session %d is no longer available: %s", saved_id, exc)
            self._store.save(None)
            self._active = None
            return None

        self._install(session)
        self._log(f"Restored session #{session.id} ({session.state.value})")
        return session

    async def restart_session(
        self,
        request: CreateSessionRequest | None = None,
        *,
        token: CancelToken | None = None,
        progress: ProgressCallback | None = None,
    ) -> Session | Aborted:
        """Kill the active session and create a new one with the same kind and name.

        ``request`` supplies the remaining fields, e.g. currently configured dependencies.
        """
        session = self._require_active()
        overrides = {"kind": session.kind, "name": session.name}
        payload = (request or CreateSessionRequest()).model_copy(update=overrides)

        await self.kill_session(session.id)
        return await self.create_session(payload, token=token, progress=progress)

    async def list_sessions(self) -> list[Session]:
        return await self._client.list_sessions()

    async def fetch_session(self, session_id: int) -> Session:
        """Fetch one session snapshot without touching the active handle."""
        return await self._client.get_session(session_id)

    def show_session_info(self, session: Session | None = None) -> Session:
        target = session if session is not None else self._require_active()
        for line in render_session(target):
            self._log(line)
        return target

    # ── Code execution ─────────────────────────────────────────

    async def execute_code(
        self,
        code: str,
        kind: SessionKind | None = None,
        *,
        token: CancelToken | None = None,
        progress: ProgressCallback | None = None,
    ) -> Statement | Aborted:
        """Submit code to the active session and wait for a terminal state.

        There is no timeout: the loop runs until ``available``, ``error``,
        ``cancelled`` or until ``token`` fires. On cancellation a best-effort
        server-side cancel is sent once and ``ABORTED`` is returned.

        Raises:
            NoActiveSessionError: If there is no usable active session (no request is sent).
        """
        session = self._require_usable()
        session_id = session.id
        statement_kind = kind or self._default_kind
        op_token = link(token)
        try:
            return await self._submit_and_wait(session_id, code, statement_kind, op_token, progress)
        finally:
            op_token.detach()

    async def _submit_and_wait(
        self,
        session_id: int,
        code: str,
        statement_kind: SessionKind,
        op_token: CancelToken,
        progress: ProgressCallback | None,
    ) -> Statement | Aborted:
        self._log(f"[{format_timestamp()}] Submitting statement ({statement_kind.value})…")
        if progress is not None:
            progress("submitting…")
        try:
            op_token.raise_if_cancelled()
            statement = await self._client.create_statement(session_id, code, statement_kind, token=op_token)
        except OperationAborted:
            return ABORTED

        self._log(f"[{format_timestamp()}] Statement #{statement.id} submitted ({statement_kind.value})")

        try:
            final = await self._wait_for_statement(session_id, statement.id, op_token, progress)
        except OperationAborted:
            await self._cancel_statement(session_id, statement.id)
            return ABORTED

        self._log(f"[{format_timestamp()}] State: {final.state.value}")
        for line in render_statement(final):
            self._log(line)

        await self._refresh_active(session_id)
        self.events.publish(StatementComplete(session_id=session_id, statement=final))
        return final

    async def _wait_for_statement(
        self,
        session_id: int,
        statement_id: int,
        token: CancelToken,
        progress: ProgressCallback | None,
    ) -> Statement:
        while True:
            token.raise_if_cancelled()
            await token.sleep(self._poll_interval)

            current = await self._client.get_statement(session_id, statement_id, token=token)
            self._log(f"[{format_timestamp()}] State: {current.state.value}…")
            if progress is not None:
                progress(current.state.value)

            if current.state.is_terminal:
                return current

    async def _cancel_statement(self, session_id: int, statement_id: int) -> None:
        try:
            await self._client.cancel_statement(session_id, statement_id)
            self._log(f"Statement #{statement_id} cancelled.")
        except LivyError as exc:
            logger.warning("best-effort cancel of statement %d/%d failed: %s", session_id, statement_id, exc)

    async def _refresh_active(self, session_id: int) -> None:
        try:
            refreshed = await self._client.get_session(session_id)
        except LivyError as exc:
            logger.warning("failed to refresh session %d: %s", session_id, exc)
            return
        if self._active is not None and self._active.id == session_id:
            self._active = refreshed
            self.events.publish(SessionChanged(session=refreshed))

    async def list_statements(self, session_id: int | None = None) -> list[Statement]:
        sid = session_id if session_id is not None else self._require_active().id
        return await self._client.list_statements(sid)

    # ── Logs ───────────────────────────────────────────────────

    async def get_logs(self, session_id: int | None = None, from_: int = 0, size: int | None = None) -> LogPage:
        sid = session_id if session_id is not None else self._require_active().id
        page = await self._client.get_logs(sid, from_, size or self._log_page_size)
        self._log(f"--- Logs (from={page.from_}, total={page.total}) ---")
        self._log("\n".join(page.log))
        return page

    async def next_logs(self) -> LogPage:
        """Fetch the page after the cursor and advance it."""
        page = await self.get_logs(None, self._log_offset, self._log_page_size)
        self._log_offset = page.from_ + len(page.log)
        return page

    async def tail_logs(self, size: int | None = None) -> LogPage:
        """Fetch the last ``size`` log lines."""
        sid = self._require_active().id
        rows = size or self._log_page_size
        first = await self._client.get_logs(sid, 0, 1)
        return await self.get_logs(sid, max(0, first.total - rows), rows)

    # ── Helpers ────────────────────────────────────────────────

    def _require_active(self) -> Session:
        if self._active is None:
            raise NoActiveSessionError("No active Livy session.")
        return self._active

    def _require_usable(self) -> Session:
        session = self._require_active()
        if session.state.is_terminal:
            raise NoActiveSessionError(
                f"Active Livy session #{session.id} is {session.state.value}; create or connect a new one."
            )
        return session

    def _install(self, session: Session) -> None:
        self._active = session
        self._log_offset = 0
        self._store.save(session.id)
        self.events.publish(SessionChanged(session=session))

    def _clear(self) -> None:
        self._active = None
        self._store.save(None)
        self.events.publish(SessionChanged(session=None))

    def _log(self, message: str) -> None:
        if self._output is not None:
            self._output.append_line(message)
