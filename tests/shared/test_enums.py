"""Tests for domain enumerations."""

from __future__ import annotations

import pytest

from livyctl.shared.enums import AuthMethod, DependencyCategory, SessionKind, SessionState, StatementState


class TestSessionState:
    @pytest.mark.parametrize("state", ["dead", "error", "killed", "success"])
    def test_terminal_states(self, state: str) -> None:
        assert SessionState(state).is_terminal
        assert not SessionState(state).is_usable

    @pytest.mark.parametrize(
        "state", ["requested", "not_started", "starting", "recovering", "idle", "running", "busy", "shutting_down"]
    )
    def test_non_terminal_states(self, state: str) -> None:
        assert not SessionState(state).is_terminal

    def test_only_idle_and_busy_are_usable(self) -> None:
        usable = {s for s in SessionState if s.is_usable}
        assert usable == {SessionState.IDLE, SessionState.BUSY}

    def test_unrecognised_state_maps_to_unknown(self) -> None:
        state = SessionState("migrating")
        assert state is SessionState.UNKNOWN
        assert not state.is_terminal
        assert not state.is_usable


class TestStatementState:
    def test_terminal_states(self) -> None:
        terminal = {s for s in StatementState if s.is_terminal}
        assert terminal == {StatementState.AVAILABLE, StatementState.ERROR, StatementState.CANCELLED}

    def test_cancelling_is_transient(self) -> None:
        assert not StatementState.CANCELLING.is_terminal


class TestWireValues:
    def test_dependency_categories_match_livy_fields(self) -> None:
        assert [c.value for c in DependencyCategory] == ["pyFiles", "jars", "files", "archives"]

    def test_str_enum_compares_to_value(self) -> None:
        assert SessionKind.PYSPARK == "pyspark"
        assert AuthMethod("kerberos") is AuthMethod.KERBEROS
