"""Domain enumerations used across all modules."""

from __future__ import annotations

import logging
from enum import Enum, unique

logger = logging.getLogger(__name__)


@unique
class SessionKind(str, Enum):
    """Interpreter languages a Livy session can run."""

    SPARK = "spark"
    PYSPARK = "pyspark"
    SPARKR = "sparkr"
    SQL = "sql"


@unique
class SessionState(str, Enum):
    """Lifecycle states reported by Livy for a session."""

    REQUESTED = "requested"
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RECOVERING = "recovering"
    IDLE = "idle"
    RUNNING = "running"
    BUSY = "busy"
    SHUTTING_DOWN = "shutting_down"
    ERROR = "error"
    DEAD = "dead"
    KILLED = "killed"
    SUCCESS = "success"
    # Placeholder for states added by newer Livy servers; never terminal.
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> SessionState:
        logger.warning("unrecognised Livy session state %r", value)
        return cls.UNKNOWN

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_SESSION_STATES

    @property
    def is_usable(self) -> bool:
        return self in (SessionState.IDLE, SessionState.BUSY)


_TERMINAL_SESSION_STATES = frozenset(
    {SessionState.DEAD, SessionState.ERROR, SessionState.KILLED, SessionState.SUCCESS}
)


@unique
class StatementState(str, Enum):
    """Lifecycle states reported by Livy for a statement."""

    WAITING = "waiting"
    RUNNING = "running"
    AVAILABLE = "available"
    ERROR = "error"
    CANCELLING = "cancelling"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (StatementState.AVAILABLE, StatementState.ERROR, StatementState.CANCELLED)


@unique
class AuthMethod(str, Enum):
    """Authentication schemes for Livy and WebHDFS requests."""

    NONE = "none"
    BASIC = "basic"
    BEARER = "bearer"
    KERBEROS = "kerberos"


@unique
class DependencyCategory(str, Enum):
    """Session fields that carry resource locators.

    Values match the Livy wire names.
    """

    PY_FILES = "pyFiles"
    JARS = "jars"
    FILES = "files"
    ARCHIVES = "archives"


@unique
class DependencyStatus(str, Enum):
    """Whether a desired locator is applied in the live session."""

    ACTIVE = "active"
    PENDING = "pending"
