"""User-level commands: the error boundary between the core and the terminal."""

from __future__ import annotations

import logging
import os
from collections.abc import Awaitable
from pathlib import Path
from typing import TypeVar

from livyctl.dependencies.resolver import (
    CATEGORIES,
    infer_category,
    is_remote_locator,
    resolve_entries,
    with_locator,
    without_locator,
)
from livyctl.livy.interfaces import ConfirmPrompt, OutputSink, PickItem, Picker, ProgressSurface
from livyctl.livy.rendering import describe_session
from livyctl.livy.session_manager import KillAllResult, SessionManager
from livyctl.shared.enums import DependencyCategory, SessionKind
from livyctl.shared.exceptions import ApiError, LivyError, OperationAborted
from livyctl.shared.models import Aborted, CreateSessionRequest, DependencyEntry, LogPage, Session, Statement
from livyctl.shared.state_store import DependencyStore
from livyctl.webhdfs.archive import contains_py_file, zip_directory
from livyctl.webhdfs.client import WebHdfsClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

CATEGORY_DESCRIPTIONS: dict[DependencyCategory, str] = {
    DependencyCategory.PY_FILES: "Python source files, zips, eggs",
    DependencyCategory.JARS: "JAR files added to the driver/executor classpath",
    DependencyCategory.FILES: "Generic files distributed to executor working dirs",
    DependencyCategory.ARCHIVES: "Archives extracted on executors (e.g. venv.zip#venv)",
}


class LivyCommands:
    """One method per user command.

    Every ``LivyError`` is caught here, logged, and reported as a single line
    on the output sink; the method then returns None.
    """

    def __init__(
        self,
        manager: SessionManager,
        *,
        output: OutputSink,
        confirm: ConfirmPrompt,
        picker: Picker,
        progress: ProgressSurface,
        dependencies: DependencyStore,
        defaults: CreateSessionRequest | None = None,
        hdfs: WebHdfsClient | None = None,
        username: str = "",
    ) -> None:
        self.manager = manager
        self._output = output
        self._confirm = confirm
        self._picker = picker
        self._progress = progress
        self._dependencies = dependencies
        self._defaults = defaults or CreateSessionRequest()
        self._hdfs = hdfs
        self._username = username

    # ── Sessions ───────────────────────────────────────────────

    async def create_session(self, name: str | None = None, kind: SessionKind | None = None) -> Session | None:
        request = self._session_request(name=name, kind=kind)
        title = f"Livy: Creating session ({(request.kind or SessionKind.PYSPARK).value})…"

        async def _run() -> Session | Aborted:
            async with self._progress.open(title) as handle:
                return await self.manager.create_session(request, token=handle.token, progress=handle.report)

        result = await self._guard("Failed to create Livy session", _run())
        return result if isinstance(result, Session) else None

    async def connect_session(self, session_id: int | None = None) -> Session | None:
        if session_id is None:
            sessions = await self._guard("Failed to list Livy sessions", self.manager.list_sessions())
            if sessions is None:
                return None
            if not sessions:
                self._report("No Livy sessions found on the server.")
                return None
            choice = await self._picker.pick(_session_items(sessions), placeholder="Select a Livy session")
            if choice is None:
                return None
            session_id = int(choice)

        return await self._guard("Failed to connect", self.manager.connect_to_existing(session_id))

    async def kill_session(self, session_id: int | None = None, *, assume_yes: bool = False) -> bool:
        target = session_id
        if target is None:
            active = self.manager.active_session
            if active is None:
                self._report("No active Livy session.")
                return False
            target = active.id

        if not assume_yes and not await self._confirm.confirm(f"Kill session #{target}?"):
            return False

        done = await self._guard(f"Failed to kill session #{target}", self._kill(target))
        return bool(done)

    async def _kill(self, session_id: int) -> bool:
        await self.manager.kill_session(session_id)
        return True

    async def kill_all_sessions(self) -> KillAllResult | None:
        return await self._guard("Failed to kill sessions", self.manager.kill_all_sessions(self._confirm))

    async def restart_session(self, *, assume_yes: bool = False) -> Session | None:
        session = self.manager.active_session
        if session is None:
            self._report("No active Livy session to restart.")
            return None

        if not assume_yes and not await self._confirm.confirm(
            f"Restart session #{session.id}? It will be killed and a new session "
            "will be created with all configured dependencies."
        ):
            return None

        request = self._session_request()

        async def _run() -> Session | Aborted:
            async with self._progress.open(f"Livy: Restarting session #{session.id}…") as handle:
                return await self.manager.restart_session(request, token=handle.token, progress=handle.report)

        result = await self._guard("Failed to restart Livy session", _run())
        return result if isinstance(result, Session) else None

    async def restore_session(self) -> Session | None:
        return await self._guard("Failed to restore Livy session", self.manager.restore_session())

    async def list_sessions(self) -> list[Session] | None:
        sessions = await self._guard("Failed to list Livy sessions", self.manager.list_sessions())
        if sessions is None:
            return None
        if not sessions:
            self._report("No Livy sessions found on the server.")
        for session in sessions:
            label, description = describe_session(session)
            self._report(f"{label}  [{description}]")
        return sessions

    async def show_session_info(self, session_id: int | None = None) -> Session | None:
        async def _run() -> Session:
            if session_id is None:
                return self.manager.show_session_info()
            snapshot = await self.manager.fetch_session(session_id)
            return self.manager.show_session_info(snapshot)

        return await self._guard("Failed to show session info", _run())

    # ── Code & logs ────────────────────────────────────────────

    async def run_code(self, code: str, kind: SessionKind | None = None) -> Statement | None:
        if not code.strip():
            self._report("Nothing to run.")
            return None

        async def _run() -> Statement | Aborted:
            async with self._progress.open("Livy: Running statement…") as handle:
                return await self.manager.execute_code(code, kind, token=handle.token, progress=handle.report)

        result = await self._guard("Failed to execute code", _run())
        if isinstance(result, Aborted):
            self._report("Statement cancelled.")
            return None
        return result

    async def show_logs(self, *, mode: str = "next", from_: int = 0, size: int | None = None) -> LogPage | None:
        """``mode`` is one of ``next``, ``tail`` or ``from``."""
        if mode == "tail":
            call = self.manager.tail_logs(size)
        elif mode == "from":
            call = self.manager.get_logs(None, from_, size)
        else:
            call = self.manager.next_logs()
        return await self._guard("Failed to fetch logs", call)

    # ── Dependencies ───────────────────────────────────────────

    def dependency_entries(self) -> list[DependencyEntry]:
        return resolve_entries(self._dependencies.load(), self.manager.active_session)

    def show_dependencies(self) -> list[DependencyEntry]:
        entries = self.dependency_entries()
        if not entries:
            self._report("No dependencies configured.")
        for entry in entries:
            self._report(f"[{entry.status.value:>7}] {entry.category.value:<8} {entry.locator}")
        return entries

    async def upload_dependency(
        self, local_path: str, category: DependencyCategory | None = None
    ) -> tuple[DependencyCategory, str] | None:
        """Upload one file and add its locator to the desired set.

        The category is inferred from the extension; ambiguous files prompt the picker.
        """
        hdfs = self._require_hdfs()
        if hdfs is None:
            return None

        filename = os.path.basename(local_path)
        if category is None:
            category = infer_category(filename)
            if category is DependencyCategory.FILES:
                category = await self._pick_category(filename, default=category)
                if category is None:
                    return None

        async def _run() -> str:
            async with self._progress.open(f"Livy: Uploading {filename}…") as handle:
                return await hdfs.upload(local_path, filename, self._username, token=handle.token)

        locator = await self._guard(f"Failed to upload {filename}", _run())
        if locator is None:
            return None
        self._add_dependency(category, locator)
        return category, locator

    async def upload_directory(self, dir_path: str, *, assume_yes: bool = False) -> tuple[DependencyCategory, str] | None:
        """Zip a directory, upload it, and add it as ``pyFiles`` or ``archives``."""
        hdfs = self._require_hdfs()
        if hdfs is None:
            return None

        dir_name = Path(dir_path).resolve().name
        remote_name = f"{dir_name}.zip"
        if not assume_yes and not await self._confirm.confirm(
            f'Zip and upload "{dir_name}" to HDFS as "{remote_name}"?'
        ):
            return None

        category = DependencyCategory.PY_FILES if contains_py_file(dir_path) else DependencyCategory.ARCHIVES

        async def _run() -> str | None:
            temp_zip: Path | None = None
            try:
                async with self._progress.open(f"Livy: Uploading {remote_name}…") as handle:
                    handle.report("zipping…")
                    temp_zip = zip_directory(dir_path)
                    if handle.token.cancelled:
                        return None
                    handle.report("uploading…")
                    return await hdfs.upload(str(temp_zip), remote_name, self._username, token=handle.token)
            finally:
                if temp_zip is not None:
                    temp_zip.unlink(missing_ok=True)

        try:
            locator = await self._guard(f"Failed to upload {remote_name}", _run())
        except OSError as exc:
            logger.error("zipping %s failed: %s", dir_path, exc)
            self._report(f"Failed to upload {remote_name}: {exc}")
            return None
        if locator is None:
            return None
        self._add_dependency(category, locator)
        return category, locator

    async def remove_dependency(
        self, category: DependencyCategory, locator: str, *, delete_remote: bool = False
    ) -> bool:
        """Drop ``locator`` from the desired set, then optionally delete it from HDFS.

        The desired set is updated before the remote delete, whose failure is
        reported but does not undo the removal.
        """
        desired = self._dependencies.load()
        if locator not in desired.get(category, []):
            self._report(f'"{locator}" is not configured in {category.value}.')
            return False

        self._dependencies.save(without_locator(desired, category, locator))
        self._report(f"Removed {locator} from {category.value}.")

        if delete_remote and self._hdfs is not None and is_remote_locator(locator):
            hdfs = self._hdfs
            await self._guard("Failed to delete from HDFS", hdfs.delete(locator))
        return True

    def _add_dependency(self, category: DependencyCategory, locator: str) -> None:
        self._dependencies.save(with_locator(self._dependencies.load(), category, locator))
        self._report(f"Uploaded and added to {category.value}. Restart the session to apply it.")

    async def _pick_category(self, filename: str, *, default: DependencyCategory) -> DependencyCategory | None:
        ordered = [default, *(c for c in CATEGORIES if c is not default)]
        items = [PickItem(id=c.value, label=c.value, description=CATEGORY_DESCRIPTIONS[c]) for c in ordered]
        choice = await self._picker.pick(items, placeholder=f"Add {filename} to which dependency field?")
        return DependencyCategory(choice) if choice is not None else None

    def _require_hdfs(self) -> WebHdfsClient | None:
        if self._hdfs is None:
            self._report("LIVY_HDFS_BASE_URL is not configured. Upload commands are disabled.")
        return self._hdfs

    # ── Helpers ────────────────────────────────────────────────

    def _session_request(self, *, name: str | None = None, kind: SessionKind | None = None) -> CreateSessionRequest:
        desired = self._dependencies.load()
        update: dict[str, object] = {
            "py_files": desired.get(DependencyCategory.PY_FILES) or None,
            "jars": desired.get(DependencyCategory.JARS) or None,
            "files": desired.get(DependencyCategory.FILES) or None,
            "archives": desired.get(DependencyCategory.ARCHIVES) or None,
        }
        if name:
            update["name"] = name
        if kind is not None:
            update["kind"] = kind
        return self._defaults.model_copy(update=update)

    async def _guard(self, prefix: str, call: Awaitable[T]) -> T | None:
        try:
            return await call
        except ApiError as exc:
            logger.error("%s: HTTP %d %s", prefix, exc.status_code, exc.body[:500])
            self._report(f"{prefix}: HTTP {exc.status_code} - {exc.body[:200]}")
        except LivyError as exc:
            logger.error("%s: %s", prefix, exc)
            self._report(f"{prefix}: {exc}")
        except OperationAborted:
            logger.info("%s: cancelled by user", prefix)
            self._report("Cancelled.")
        return None

    def _report(self, message: str) -> None:
        self._output.append_line(message)


def _session_items(sessions: list[Session]) -> list[PickItem]:
    items = []
    for session in sessions:
        label, description = describe_session(session)
        items.append(PickItem(id=str(session.id), label=label, description=description))
    return items
