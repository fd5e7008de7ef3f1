"""Plain-text rendering of statement results and sessions."""

from __future__ import annotations

import json
from datetime import datetime

from livyctl.shared.models import Session, Statement

TEXT_PLAIN = "text/plain"


def format_timestamp(moment: datetime | None = None) -> str:
    return (moment or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")


def render_statement(statement: Statement) -> list[str]:
    """Render a finished statement's output as output-sink lines.

    Errors show name, value and traceback; otherwise only the ``text/plain``
    entry is shown. Other MIME types are left to richer front ends.
    """
    output = statement.output
    if output is None:
        return []

    if output.status == "error":
        lines = ["--- Error ---", f"{output.ename or 'Error'}: {output.evalue or ''}"]
        if output.traceback:
            lines.append("\n".join(output.traceback))
        lines.append("-------------")
        return lines

    text = (output.data or {}).get(TEXT_PLAIN)
    if not text:
        return []
    return ["--- Output ---", str(text), "--------------"]


def render_session(session: Session) -> list[str]:
    """Render a session snapshot as indented JSON lines."""
    payload = session.model_dump(mode="json", by_alias=True)
    return ["--- Session Info ---", *json.dumps(payload, indent=2).splitlines()]


def describe_session(session: Session) -> tuple[str, str]:
    """Return (label, description) for pickers and listings."""
    return f"#{session.id} - {session.name or '(unnamed)'}", f"{session.kind.value} | {session.state.value}"
