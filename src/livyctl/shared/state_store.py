"""Persistence of the last-known session id and the desired dependency set."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from livyctl.shared.enums import DependencyCategory

logger = logging.getLogger(__name__)


@runtime_checkable
class SessionIdStore(Protocol):
    """Holds the single opaque "last session" identifier."""

    def load(self) -> int | None: ...

    def save(self, session_id: int | None) -> None: ...


class InMemorySessionIdStore:
    def __init__(self, session_id: int | None = None) -> None:
        self._session_id = session_id

    def load(self) -> int | None:
        return self._session_id

    def save(self, session_id: int | None) -> None:
        self._session_id = session_id


class FileSessionIdStore:
    """Stores the id as plain text in one file; ``None`` removes the file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def load(self) -> int | None:
        if not self._path.is_file():
            return None
        raw = self._path.read_text(encoding="utf-8").strip()
        try:
            return int(raw)
        except ValueError:
            logger.warning("ignoring malformed session id in %s: %r", self._path, raw[:40])
            return None

    def save(self, session_id: int | None) -> None:
        if session_id is None:
            self._path.unlink(missing_ok=True)
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(f"{session_id}\n", encoding="utf-8")


DesiredDependencies = dict[DependencyCategory, list[str]]


@runtime_checkable
class DependencyStore(Protocol):
    """Holds the desired locator lists applied on the next session create."""

    def load(self) -> DesiredDependencies: ...

    def save(self, desired: DesiredDependencies) -> None: ...


class InMemoryDependencyStore:
    def __init__(self, desired: DesiredDependencies | None = None) -> None:
        self._desired = _copy(desired or {})

    def load(self) -> DesiredDependencies:
        return _copy(self._desired)

    def save(self, desired: DesiredDependencies) -> None:
        self._desired = _copy(desired)


class FileDependencyStore:
    """JSON file keyed by wire category name; falls back to ``default`` until first save."""

    def __init__(self, path: str | Path, default: DesiredDependencies | None = None) -> None:
        self._path = Path(path)
        self._default = _copy(default or {})

    def load(self) -> DesiredDependencies:
        if not self._path.is_file():
            return _copy(self._default)
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            logger.warning("ignoring malformed dependency file %s: %s", self._path, exc)
            return _copy(self._default)

        desired: DesiredDependencies = {}
        for category in DependencyCategory:
            values = raw.get(category.value) if isinstance(raw, dict) else None
            desired[category] = [str(v) for v in values] if isinstance(values, list) else []
        return desired

    def save(self, desired: DesiredDependencies) -> None:
        payload = {category.value: list(desired.get(category, [])) for category in DependencyCategory}
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")


def _copy(desired: DesiredDependencies) -> DesiredDependencies:
    return {category: list(desired.get(category, [])) for category in DependencyCategory}
