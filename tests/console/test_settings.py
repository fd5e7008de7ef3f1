"""Tests for Settings."""

from __future__ import annotations

import pytest

from livyctl.config import Settings, _parse_csv
from livyctl.shared.enums import AuthMethod, DependencyCategory, SessionKind


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings()
        assert settings.server_url == "http://localhost:8998"
        assert settings.auth_method is AuthMethod.NONE
        assert settings.session_timeout_seconds == 300.0
        assert settings.session_poll_interval_seconds == 3.0
        assert settings.poll_interval_seconds == 1.0
        assert settings.log_page_size == 100
        assert settings.kill_on_cancel is False

    def test_env_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LIVY_SERVER_URL", "https://livy.example.com")
        monkeypatch.setenv("LIVY_AUTH_METHOD", "kerberos")
        monkeypatch.setenv("LIVY_JARS", "hdfs:///a.jar, hdfs:///b.jar")

        settings = Settings()

        assert settings.server_url == "https://livy.example.com"
        assert settings.auth_method is AuthMethod.KERBEROS
        assert settings.desired_dependencies()[DependencyCategory.JARS] == ["hdfs:///a.jar", "hdfs:///b.jar"]

    def test_session_defaults(self) -> None:
        settings = Settings(
            default_kind=SessionKind.SPARK,
            session_name="etl",
            executor_memory="4g",
            num_executors=3,
            py_files="a.py",
            conf={"spark.ui.enabled": "false"},
        )

        assert settings.session_defaults().to_payload() == {
            "kind": "spark",
            "name": "etl",
            "executorMemory": "4g",
            "numExecutors": 3,
            "pyFiles": ["a.py"],
            "conf": {"spark.ui.enabled": "false"},
        }


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("", []), ("  ", []), ("a", ["a"]), ("a, b,,c ", ["a", "b", "c"])],
)
def test_parse_csv(raw: str, expected: list[str]) -> None:
    assert _parse_csv(raw) == expected
