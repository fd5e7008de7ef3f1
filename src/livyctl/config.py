"""Centralised configuration via Pydantic Settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings

from livyctl.shared.enums import AuthMethod, DependencyCategory, SessionKind
from livyctl.shared.models import CreateSessionRequest


class Settings(BaseSettings):
    """Client-wide configuration loaded from environment variables."""

    model_config = {"env_prefix": "LIVY_", "frozen": True}

    # Livy server
    server_url: str = "http://localhost:8998"
    request_timeout_seconds: float = 30.0

    # Authentication
    # Modes: none | basic | bearer | kerberos (SPNEGO negotiate)
    auth_method: AuthMethod = AuthMethod.NONE
    username: str = ""
    password: str = ""
    bearer_token: str = ""
    # Leave blank to use HTTP@<target host> for every request.
    kerberos_service_principal: str = ""
    kerberos_delegate_credentials: bool = False

    # Session defaults
    default_kind: SessionKind = SessionKind.PYSPARK
    session_name: str = ""
    driver_memory: str = ""
    driver_cores: int | None = None
    executor_memory: str = ""
    executor_cores: int | None = None
    num_executors: int | None = None
    queue: str = ""
    session_ttl: str = ""
    heartbeat_timeout_seconds: int | None = None
    conf: dict[str, str] = {}

    # Polling
    poll_interval_seconds: float = 1.0
    session_poll_interval_seconds: float = 3.0
    session_timeout_seconds: float = 300.0
    # Delete the half-started remote session when creation is cancelled.
    kill_on_cancel: bool = False

    # Desired dependencies, comma-separated locators per category.
    py_files: str = ""
    jars: str = ""
    files: str = ""
    archives: str = ""

    # WebHDFS (blank base URL disables uploads)
    hdfs_base_url: str = ""
    hdfs_upload_path: str = "/user/{username}/livy-deps"

    # Logs
    log_page_size: int = 100

    # Last-known session id
    state_file: str = ".livyctl-session"
    # Desired dependency set edited by upload/remove-dep; seeded from the lists above.
    deps_file: str = ".livyctl-deps.json"

    def desired_dependencies(self) -> dict[DependencyCategory, list[str]]:
        """Return the configured locators keyed by dependency category."""
        return {
            DependencyCategory.PY_FILES: _parse_csv(self.py_files),
            DependencyCategory.JARS: _parse_csv(self.jars),
            DependencyCategory.FILES: _parse_csv(self.files),
            DependencyCategory.ARCHIVES: _parse_csv(self.archives),
        }

    def session_defaults(self) -> CreateSessionRequest:
        """Build a session-creation payload from the configured defaults."""
        desired = self.desired_dependencies()
        return CreateSessionRequest(
            kind=self.default_kind,
            name=self.session_name or None,
            driver_memory=self.driver_memory or None,
            driver_cores=self.driver_cores,
            executor_memory=self.executor_memory or None,
            executor_cores=self.executor_cores,
            num_executors=self.num_executors,
            py_files=desired[DependencyCategory.PY_FILES] or None,
            jars=desired[DependencyCategory.JARS] or None,
            files=desired[DependencyCategory.FILES] or None,
            archives=desired[DependencyCategory.ARCHIVES] or None,
            queue=self.queue or None,
            conf=dict(self.conf) or None,
            ttl=self.session_ttl or None,
            heartbeat_timeout_in_second=self.heartbeat_timeout_seconds,
        )


def _parse_csv(raw: str) -> list[str]:
    """Split comma-separated string into a list."""
    if not raw or not raw.strip():
        return []
    return [x.strip() for x in raw.split(",") if x.strip()]


def get_settings() -> Settings:
    """Build settings from the environment; tests construct Settings directly."""
    return Settings()
