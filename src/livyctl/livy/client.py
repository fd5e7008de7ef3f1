"""Typed Livy REST client on top of ``HttpTransport``."""

from __future__ import annotations

import logging
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from livyctl.livy.transport import HttpTransport
from livyctl.shared.cancellation import CancelToken
from livyctl.shared.enums import SessionKind
from livyctl.shared.exceptions import ApiError
from livyctl.shared.models import CreateSessionRequest, LogPage, Session, Statement

logger = logging.getLogger(__name__)

# Livy REST API docs:
# https://livy.apache.org/docs/latest/rest-api.html

ModelT = TypeVar("ModelT", bound=BaseModel)


class LivyClient:
    """Session, statement and log operations against one Livy server.

    Implements the ``ExecutionService`` protocol.
    """

    def __init__(self, base_url: str, transport: HttpTransport) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    # ── Sessions ───────────────────────────────────────────────

    async def list_sessions(self, *, token: CancelToken | None = None) -> list[Session]:
        data = await self._transport.request_json("GET", self._url("/sessions"), token=token)
        return [_parse(Session, item) for item in _items(data, "sessions")]

    async def create_session(self, request: CreateSessionRequest, *, token: CancelToken | None = None) -> Session:
        data = await self._transport.request_json(
            "POST", self._url("/sessions"), body=request.to_payload(), token=token
        )
        session = _parse(Session, data)
        logger.info("created session %d (kind=%s, state=%s)", session.id, session.kind.value, session.state.value)
        return session

    async def get_session(self, session_id: int, *, token: CancelToken | None = None) -> Session:
        data = await self._transport.request_json("GET", self._url(f"/sessions/{session_id}"), token=token)
        return _parse(Session, data)

    async def delete_session(self, session_id: int, *, token: CancelToken | None = None) -> None:
        await self._transport.request_json("DELETE", self._url(f"/sessions/{session_id}"), token=token)
        logger.info("deleted session %d", session_id)

    # ── Statements ─────────────────────────────────────────────

    async def create_statement(
        self,
        session_id: int,
        code: str,
        kind: SessionKind | None = None,
        *,
        token: CancelToken | None = None,
    ) -> Statement:
        body: dict[str, Any] = {"code": code}
        if kind is not None:
            body["kind"] = kind.value
        data = await self._transport.request_json(
            "POST", self._url(f"/sessions/{session_id}/statements"), body=body, token=token
        )
        return _parse(Statement, data)

    async def get_statement(
        self, session_id: int, statement_id: int, *, token: CancelToken | None = None
    ) -> Statement:
        data = await self._transport.request_json(
            "GET", self._url(f"/sessions/{session_id}/statements/{statement_id}"), token=token
        )
        return _parse(Statement, data)

    async def cancel_statement(
        self, session_id: int, statement_id: int, *, token: CancelToken | None = None
    ) -> None:
        await self._transport.request_json(
            "POST",
            self._url(f"/sessions/{session_id}/statements/{statement_id}/cancel"),
            body={},
            token=token,
        )

    async def list_statements(self, session_id: int, *, token: CancelToken | None = None) -> list[Statement]:
        data = await self._transport.request_json(
            "GET", self._url(f"/sessions/{session_id}/statements"), token=token
        )
        return [_parse(Statement, item) for item in _items(data, "statements")]

    # ── Logs ───────────────────────────────────────────────────

    async def get_logs(
        self,
        session_id: int,
        from_: int | None = None,
        size: int | None = None,
        *,
        token: CancelToken | None = None,
    ) -> LogPage:
        params: dict[str, int] = {}
        if from_ is not None:
            params["from"] = from_
        if size is not None:
            params["size"] = size
        data = await self._transport.request_json(
            "GET", self._url(f"/sessions/{session_id}/log"), params=params or None, token=token
        )
        return _parse(LogPage, data)


def _items(data: Any, key: str) -> list[Any]:
    if not isinstance(data, dict):
        raise ApiError(200, repr(data)[:500], f"unexpected Livy response, expected an object with {key!r}")
    return list(data.get(key) or [])


def _parse(model: type[ModelT], data: Any) -> ModelT:
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ApiError(200, repr(data)[:500], f"unexpected Livy {model.__name__} payload: {exc}") from exc
