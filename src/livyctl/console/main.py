"""``livyctl`` console entry point and terminal collaborators."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
import sys
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

import typer

from livyctl.auth.resolver import AuthConfig, AuthResolver
from livyctl.config import Settings, get_settings
from livyctl.console.commands import LivyCommands
from livyctl.livy.client import LivyClient
from livyctl.livy.interfaces import PickItem
from livyctl.livy.session_manager import SessionManager
from livyctl.livy.transport import HttpTransport
from livyctl.shared.cancellation import CancelToken
from livyctl.shared.enums import DependencyCategory, SessionKind
from livyctl.shared.state_store import FileDependencyStore, FileSessionIdStore
from livyctl.webhdfs.client import WebHdfsClient

logger = logging.getLogger(__name__)


# ── Terminal collaborators ─────────────────────────────────────


class StdoutSink:
    def append_line(self, line: str) -> None:
        print(line, flush=True)


class TerminalConfirm:
    """y/N prompt on stdin; ``assume_yes`` answers every question with yes."""

    def __init__(self, *, assume_yes: bool = False) -> None:
        self._assume_yes = assume_yes

    async def confirm(self, message: str) -> bool:
        if self._assume_yes:
            return True
        answer = await _read_line(f"{message} [y/N] ")
        return answer.strip().lower() in ("y", "yes")


class NumberedPicker:
    async def pick(self, items: Sequence[PickItem], *, placeholder: str = "") -> str | None:
        if not items:
            return None
        if placeholder:
            print(placeholder)
        for index, item in enumerate(items, start=1):
            suffix = f"  ({item.description})" if item.description else ""
            print(f"  {index}. {item.label}{suffix}")

        answer = (await _read_line("Choice (blank to cancel): ")).strip()
        if not answer:
            return None
        try:
            return items[int(answer) - 1].id
        except (ValueError, IndexError):
            print(f"Invalid choice: {answer}", file=sys.stderr)
            return None


class TerminalProgress:
    """Progress lines on stderr; Ctrl-C fires the operation's cancel token."""

    class _Handle:
        def __init__(self, title: str) -> None:
            self._title = title
            self._token = CancelToken()

        @property
        def token(self) -> CancelToken:
            return self._token

        def report(self, message: str) -> None:
            print(f"{self._title} {message}", file=sys.stderr, flush=True)

    @contextlib.asynccontextmanager
    async def open(self, title: str, *, cancellable: bool = True) -> AsyncIterator[TerminalProgress._Handle]:
        handle = TerminalProgress._Handle(title)
        print(title, file=sys.stderr, flush=True)

        loop = asyncio.get_running_loop()
        installed = False
        if cancellable:
            try:
                loop.add_signal_handler(signal.SIGINT, handle.token.cancel)
                installed = True
            except (NotImplementedError, RuntimeError):
                logger.debug("SIGINT handler unavailable; Ctrl-C will not cancel %r", title)
        try:
            yield handle
        finally:
            if installed:
                loop.remove_signal_handler(signal.SIGINT)


async def _read_line(prompt: str) -> str:
    try:
        return await asyncio.to_thread(input, prompt)
    except EOFError:
        return ""


# ── Wiring ─────────────────────────────────────────────────────


def build_commands(
    settings: Settings,
    transport: HttpTransport,
    *,
    assume_yes: bool = False,
) -> LivyCommands:
    output = StdoutSink()
    client = LivyClient(settings.server_url, transport)
    manager = SessionManager(
        client,
        output=output,
        store=FileSessionIdStore(settings.state_file),
        default_kind=settings.default_kind,
        poll_interval=settings.poll_interval_seconds,
        session_poll_interval=settings.session_poll_interval_seconds,
        session_timeout=settings.session_timeout_seconds,
        log_page_size=settings.log_page_size,
        kill_on_cancel=settings.kill_on_cancel,
    )
    hdfs = None
    if settings.hdfs_base_url:
        hdfs = WebHdfsClient(
            settings.hdfs_base_url,
            transport,
            upload_path=settings.hdfs_upload_path,
            output=output,
        )
    return LivyCommands(
        manager,
        output=output,
        confirm=TerminalConfirm(assume_yes=assume_yes),
        picker=NumberedPicker(),
        progress=TerminalProgress(),
        dependencies=FileDependencyStore(settings.deps_file, settings.desired_dependencies()),
        defaults=settings.session_defaults(),
        hdfs=hdfs,
        username=settings.username,
    )


@dataclass(frozen=True, slots=True)
class CliOptions:
    assume_yes: bool = False
    verbose: bool = False


Action = Callable[[LivyCommands], Awaitable[object]]


@contextlib.asynccontextmanager
async def open_commands(settings: Settings, *, assume_yes: bool = False) -> AsyncIterator[LivyCommands]:
    auth = AuthResolver(AuthConfig.from_settings(settings))
    async with HttpTransport(auth, timeout=settings.request_timeout_seconds) as transport:
        yield build_commands(settings, transport, assume_yes=assume_yes)


async def _run(name: str, action: Action, options: CliOptions, *, restore: bool) -> int:
    async with open_commands(get_settings(), assume_yes=options.assume_yes) as commands:
        if restore:
            await commands.restore_session()
        try:
            result = await action(commands)
        except OSError as exc:
            logger.error("%s failed: %s", name, exc)
            typer.echo(f"livyctl {name}: {exc}", err=True)
            return 1
    return 0 if result is not None and result is not False else 1


def _execute(ctx: typer.Context, name: str, action: Action, *, restore: bool = True) -> None:
    code = asyncio.run(_run(name, action, ctx.obj, restore=restore))
    if code:
        raise typer.Exit(code=code)


# ── Commands ───────────────────────────────────────────────────

app = typer.Typer(
    name="livyctl",
    help="Drive Apache Livy sessions from the terminal.",
    no_args_is_help=True,
    add_completion=False,
)


@app.callback()
def main_options(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Answer yes to every confirmation."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.obj = CliOptions(assume_yes=yes, verbose=verbose)


@app.command("create")
def create(
    ctx: typer.Context,
    name: str | None = typer.Option(None, "--name"),
    kind: SessionKind | None = typer.Option(None, "--kind"),
) -> None:
    """Create a session and wait until it is idle."""
    _execute(ctx, "create", lambda commands: commands.create_session(name, kind), restore=False)


@app.command("connect")
def connect(ctx: typer.Context, session_id: int | None = typer.Argument(None)) -> None:
    """Attach to an existing session."""
    _execute(ctx, "connect", lambda commands: commands.connect_session(session_id), restore=False)


@app.command("kill")
def kill(ctx: typer.Context, session_id: int | None = typer.Argument(None)) -> None:
    """Delete a session (default: the active one)."""
    assume_yes = ctx.obj.assume_yes
    _execute(ctx, "kill", lambda commands: commands.kill_session(session_id, assume_yes=assume_yes))


@app.command("kill-all")
def kill_all(ctx: typer.Context) -> None:
    """Delete every session on the server."""
    _execute(ctx, "kill-all", lambda commands: commands.kill_all_sessions(), restore=False)


@app.command("restart")
def restart(ctx: typer.Context) -> None:
    """Recreate the active session with current dependencies."""
    assume_yes = ctx.obj.assume_yes
    _execute(ctx, "restart", lambda commands: commands.restart_session(assume_yes=assume_yes))


@app.command("run")
def run_code(
    ctx: typer.Context,
    code: str | None = typer.Option(None, "--code", "-c"),
    file: str | None = typer.Option(None, "--file", "-f", help="Read code from a file ('-' for stdin)."),
    kind: SessionKind | None = typer.Option(None, "--kind"),
) -> None:
    """Execute code in the active session."""
    if (code is None) == (file is None):
        raise typer.BadParameter("pass exactly one of --code or --file")
    source = code if code is not None else _read_code_file(file)
    _execute(ctx, "run", lambda commands: commands.run_code(source, kind))


@app.command("logs")
def logs(
    ctx: typer.Context,
    tail: bool = typer.Option(False, "--tail", help="Show the last lines."),
    from_: int | None = typer.Option(None, "--from", help="Start at this line."),
    size: int | None = typer.Option(None, "--size"),
) -> None:
    """Show session logs."""
    if tail and from_ is not None:
        raise typer.BadParameter("--tail and --from are mutually exclusive")
    mode = "tail" if tail else "from" if from_ is not None else "next"
    _execute(ctx, "logs", lambda commands: commands.show_logs(mode=mode, from_=from_ or 0, size=size))


@app.command("info")
def info(ctx: typer.Context, session_id: int | None = typer.Argument(None)) -> None:
    """Dump a session as JSON."""
    _execute(ctx, "info", lambda commands: commands.show_session_info(session_id))


@app.command("list")
def list_sessions(ctx: typer.Context) -> None:
    """List sessions on the server."""
    _execute(ctx, "list", lambda commands: commands.list_sessions(), restore=False)


@app.command("deps")
def deps(ctx: typer.Context) -> None:
    """Show desired dependencies and whether they are active."""

    async def show(commands: LivyCommands) -> bool:
        commands.show_dependencies()
        return True

    _execute(ctx, "deps", show)


@app.command("upload")
def upload(
    ctx: typer.Context,
    path: str = typer.Argument(...),
    category: DependencyCategory | None = typer.Option(None, "--category"),
) -> None:
    """Upload a file or directory to WebHDFS and add it as a dependency."""
    assume_yes = ctx.obj.assume_yes
    if Path(path).is_dir():
        _execute(ctx, "upload", lambda commands: commands.upload_directory(path, assume_yes=assume_yes))
    else:
        _execute(ctx, "upload", lambda commands: commands.upload_dependency(path, category))


@app.command("remove-dep")
def remove_dep(
    ctx: typer.Context,
    category: DependencyCategory = typer.Argument(...),
    locator: str = typer.Argument(...),
    delete_remote: bool = typer.Option(False, "--delete-remote", help="Also delete the file from HDFS."),
) -> None:
    """Remove a dependency from the desired set."""
    _execute(
        ctx,
        "remove-dep",
        lambda commands: commands.remove_dependency(category, locator, delete_remote=delete_remote),
    )


def _read_code_file(file: str) -> str:
    if file == "-":
        return sys.stdin.read()
    try:
        return Path(file).read_text(encoding="utf-8")
    except OSError as exc:
        raise typer.BadParameter(f"cannot read {file}: {exc}") from exc


def main() -> None:
    """Entry point for the ``livyctl`` console script."""
    app()


if __name__ == "__main__":
    main()
