"""Frozen Pydantic models for the Livy wire format and derived records."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from livyctl.shared.enums import (
    DependencyCategory,
    DependencyStatus,
    SessionKind,
    SessionState,
    StatementState,
)

_WIRE_CONFIG = {"frozen": True, "populate_by_name": True}


def _none_to_empty(value: Any) -> Any:
    return () if value is None else value


class Session(BaseModel):
    """A Livy interactive session as returned by ``GET /sessions/{id}``.

    The four locator lists reflect what was applied at creation time.
    """

    model_config = _WIRE_CONFIG

    id: int
    name: str | None = None
    app_id: str | None = Field(default=None, alias="appId")
    owner: str | None = None
    proxy_user: str | None = Field(default=None, alias="proxyUser")
    kind: SessionKind
    state: SessionState
    log: tuple[str, ...] = ()
    app_info: dict[str, str | None] = Field(default_factory=dict, alias="appInfo")
    py_files: tuple[str, ...] = Field(default=(), alias="pyFiles")
    jars: tuple[str, ...] = ()
    files: tuple[str, ...] = ()
    archives: tuple[str, ...] = ()
    driver_memory: str | None = Field(default=None, alias="driverMemory")
    driver_cores: int | None = Field(default=None, alias="driverCores")
    executor_memory: str | None = Field(default=None, alias="executorMemory")
    executor_cores: int | None = Field(default=None, alias="executorCores")
    num_executors: int | None = Field(default=None, alias="numExecutors")
    queue: str | None = None
    conf: dict[str, str] = Field(default_factory=dict)
    ttl: str | None = None

    @field_validator("log", "py_files", "jars", "files", "archives", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> Any:
        return _none_to_empty(value)

    @field_validator("app_info", "conf", mode="before")
    @classmethod
    def _maps(cls, value: Any) -> Any:
        return {} if value is None else value

    def locators(self, category: DependencyCategory) -> tuple[str, ...]:
        """Return the applied locators for one dependency category."""
        return {
            DependencyCategory.PY_FILES: self.py_files,
            DependencyCategory.JARS: self.jars,
            DependencyCategory.FILES: self.files,
            DependencyCategory.ARCHIVES: self.archives,
        }[category]


class StatementOutput(BaseModel):
    """Result payload of a finished statement."""

    model_config = _WIRE_CONFIG

    status: Literal["ok", "error"]
    execution_count: int | None = None
    data: dict[str, Any] | None = None
    ename: str | None = None
    evalue: str | None = None
    traceback: tuple[str, ...] | None = None


class Statement(BaseModel):
    """One code submission within a session."""

    model_config = _WIRE_CONFIG

    id: int
    code: str = ""
    state: StatementState
    output: StatementOutput | None = None
    progress: float = Field(default=0.0, ge=0.0, le=1.0)
    started: int = 0
    completed: int = 0


class LogPage(BaseModel):
    """One page of session log lines from ``GET /sessions/{id}/log``."""

    model_config = _WIRE_CONFIG

    id: int
    from_: int = Field(default=0, alias="from")
    size: int = 0
    total: int = 0
    log: tuple[str, ...] = ()

    @field_validator("log", mode="before")
    @classmethod
    def _lines(cls, value: Any) -> Any:
        return _none_to_empty(value)


class CreateSessionRequest(BaseModel):
    """Body of ``POST /sessions``; unset fields are omitted on the wire."""

    model_config = _WIRE_CONFIG

    kind: SessionKind | None = None
    name: str | None = None
    driver_memory: str | None = Field(default=None, alias="driverMemory")
    driver_cores: int | None = Field(default=None, alias="driverCores")
    executor_memory: str | None = Field(default=None, alias="executorMemory")
    executor_cores: int | None = Field(default=None, alias="executorCores")
    num_executors: int | None = Field(default=None, alias="numExecutors")
    py_files: list[str] | None = Field(default=None, alias="pyFiles")
    jars: list[str] | None = None
    files: list[str] | None = None
    archives: list[str] | None = None
    queue: str | None = None
    conf: dict[str, str] | None = None
    ttl: str | None = None
    heartbeat_timeout_in_second: int | None = Field(default=None, alias="heartbeatTimeoutInSecond")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ── Derived records ────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class DependencyEntry:
    """A desired locator annotated with whether the live session has it."""

    locator: str
    category: DependencyCategory
    status: DependencyStatus


@dataclass(frozen=True, slots=True)
class SessionChanged:
    """Emitted after the active session is set, refreshed or cleared."""

    session: Session | None


@dataclass(frozen=True, slots=True)
class StatementComplete:
    """Emitted after a statement reaches a terminal state."""

    session_id: int
    statement: Statement


@dataclass(frozen=True, slots=True)
class Aborted:
    """Outcome of an operation stopped by its cancellation signal."""

    reason: str = "cancelled"


ABORTED = Aborted()
