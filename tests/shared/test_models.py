"""Tests for wire models."""

from __future__ import annotations

import pytest
from fakes import session_payload, statement_payload
from pydantic import ValidationError

from livyctl.shared.enums import DependencyCategory, SessionKind, SessionState, StatementState
from livyctl.shared.models import ABORTED, Aborted, CreateSessionRequest, LogPage, Session, Statement


class TestSession:
    def test_parses_livy_payload(self) -> None:
        session = Session.model_validate(
            session_payload(7, "busy", appId="application_1", jars=["hdfs:///a.jar"], pyFiles=None)
        )

        assert session.id == 7
        assert session.state is SessionState.BUSY
        assert session.kind is SessionKind.PYSPARK
        assert session.app_id == "application_1"
        assert session.jars == ("hdfs:///a.jar",)
        assert session.py_files == ()

    def test_locators_by_category(self) -> None:
        session = Session.model_validate(session_payload(1, pyFiles=["a.py"], archives=["env.zip#env"]))

        assert session.locators(DependencyCategory.PY_FILES) == ("a.py",)
        assert session.locators(DependencyCategory.ARCHIVES) == ("env.zip#env",)
        assert session.locators(DependencyCategory.FILES) == ()

    def test_is_frozen(self) -> None:
        session = Session.model_validate(session_payload(1))
        with pytest.raises(ValidationError):
            session.state = SessionState.DEAD  # type: ignore[misc]

    def test_unknown_state_rejected(self) -> None:
        with pytest.raises(ValidationError):
            Session.model_validate(session_payload(1, "exploded"))


class TestStatement:
    def test_parses_error_output(self) -> None:
        statement = Statement.model_validate(
            statement_payload(
                3,
                "error",
                {"status": "error", "ename": "NameError", "evalue": "x", "traceback": ["line 1\n"]},
            )
        )

        assert statement.state is StatementState.ERROR
        assert statement.output is not None
        assert statement.output.ename == "NameError"
        assert statement.output.traceback == ("line 1\n",)

    def test_progress_bounded(self) -> None:
        with pytest.raises(ValidationError):
            Statement.model_validate(statement_payload(0, "running", progress=1.5))


class TestLogPage:
    def test_from_alias(self) -> None:
        page = LogPage.model_validate({"id": 1, "from": 10, "size": 2, "total": 50, "log": ["a", "b"]})
        assert page.from_ == 10
        assert page.log == ("a", "b")

    def test_null_log(self) -> None:
        assert LogPage.model_validate({"id": 1, "log": None}).log == ()


class TestCreateSessionRequest:
    def test_payload_uses_wire_names_and_omits_unset(self) -> None:
        request = CreateSessionRequest(
            kind=SessionKind.SPARK,
            driver_memory="2g",
            py_files=["hdfs:///deps/a.py"],
            heartbeat_timeout_in_second=60,
        )

        assert request.to_payload() == {
            "kind": "spark",
            "driverMemory": "2g",
            "pyFiles": ["hdfs:///deps/a.py"],
            "heartbeatTimeoutInSecond": 60,
        }

    def test_empty_request(self) -> None:
        assert CreateSessionRequest().to_payload() == {}


class TestAborted:
    def test_sentinel(self) -> None:
        assert isinstance(ABORTED, Aborted)
        assert ABORTED == Aborted()
