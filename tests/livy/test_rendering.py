"""Tests for statement and session rendering."""

from __future__ import annotations

from datetime import datetime

from fakes import make_session, make_statement

from livyctl.livy.rendering import describe_session, format_timestamp, render_statement


class TestRenderStatement:
    def test_text_plain(self) -> None:
        statement = make_statement(
            0, "available", {"status": "ok", "data": {"text/plain": "42", "text/html": "<b>42</b>"}}
        )
        assert render_statement(statement) == ["--- Output ---", "42", "--------------"]

    def test_no_text_plain(self) -> None:
        statement = make_statement(0, "available", {"status": "ok", "data": {"image/png": "iVBOR"}})
        assert render_statement(statement) == []

    def test_no_output(self) -> None:
        assert render_statement(make_statement(0, "cancelled")) == []

    def test_error_without_traceback(self) -> None:
        statement = make_statement(0, "error", {"status": "error", "ename": None, "evalue": "bad"})
        assert render_statement(statement) == ["--- Error ---", "Error: bad", "-------------"]


class TestDescribe:
    def test_named(self) -> None:
        assert describe_session(make_session(3, "busy")) == ("#3 - session-3", "pyspark | busy")

    def test_unnamed(self) -> None:
        label, _ = describe_session(make_session(3, name=None))
        assert label == "#3 - (unnamed)"


def test_format_timestamp() -> None:
    assert format_timestamp(datetime(2024, 1, 2, 3, 4, 5)) == "2024-01-02 03:04:05"
