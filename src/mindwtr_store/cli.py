"""
Command-line interface for the Mindwtr storage layer.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from mindwtr_store.codec import parse_relaxed
from mindwtr_store.context import AppContext
from mindwtr_store.models import SYNC_BACKENDS
from mindwtr_store.models import ExternalCalendarSubscription
from mindwtr_store.models import StoreError
from mindwtr_store.models import format_ai_debug_line
from mindwtr_store.platform_info import get_linux_distro
from mindwtr_store.preflight import run_preflight_checks

# ---------------------------------------------------------------------------
# Typer app
# ---------------------------------------------------------------------------

app = typer.Typer(
    no_args_is_help=True,
    rich_markup_mode="rich",
    help="Inspect and maintain Mindwtr's local data, config and sync folder.",
)

console = Console()


# ---------------------------------------------------------------------------
# Global state shared across subcommands
# ---------------------------------------------------------------------------


@dataclass
class _State:
    config_dir: Path | None = None
    data_dir: Path | None = None
    verbose: bool = False
    context: AppContext | None = None


state = _State()


@app.callback()
def _global(
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", help="Override the config directory"),
    ] = None,
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", help="Override the data directory"),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose debug output"),
    ] = False,
) -> None:
    state.config_dir = config_dir
    state.data_dir = data_dir
    state.verbose = verbose
    state.context = None
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False, console=console)],
    )


def _context(bootstrap: bool = True) -> AppContext:
    if state.context is None:
        state.context = AppContext.create(config_dir=state.config_dir, data_dir=state.data_dir)
    if bootstrap:
        state.context.bootstrap()
    return state.context


@contextmanager
def _errors() -> Iterator[None]:
    """Turn storage errors into a red message and exit status 1."""
    try:
        yield
    except typer.Exit:
        raise
    except StoreError as e:
        console.print(f"[bold red]Error:[/] {e}")
        raise typer.Exit(1) from None
    except KeyboardInterrupt:
        console.print("[yellow]Interrupted by user[/]")
        raise typer.Exit(130) from None
    except Exception as e:
        console.print_exception()
        console.print(f"[bold red]Unexpected error:[/] {e}")
        raise typer.Exit(1) from e


def _read_input(source: str) -> Any:
    """Decode a JSON document from a file path, or stdin for ``-``."""
    if source == "-":
        return parse_relaxed(sys.stdin.read())
    path = Path(source)
    try:
        return parse_relaxed(path.read_text(encoding="utf-8"))
    except OSError as e:
        console.print(f"[bold red]Error:[/] Cannot read {path}: {e}")
        raise typer.Exit(1) from None


def _echo(text: str) -> None:
    """Print a plain value without wrapping or markup, for scripting."""
    console.print(text, soft_wrap=True, markup=False, highlight=False)


def _mask(value: str | None) -> Text:
    if value is None:
        return Text("(unset)", style="dim")
    if not value:
        return Text('""', style="dim")
    return Text("••••••", style="yellow")


def _exists_mark(path: Path) -> Text:
    return Text("✓", style="green") if path.exists() else Text("(not found)", style="yellow")


# ---------------------------------------------------------------------------
# Subcommands: layout
# ---------------------------------------------------------------------------


@app.command()
def bootstrap() -> None:
    """Create the canonical config and data files, importing legacy ones."""
    with _errors():
        ctx = _context(bootstrap=False)
        migrated_from = ctx.bootstrap()

    if migrated_from is not None:
        console.print(f"[green]Imported data from[/] {migrated_from}")
    console.print(f"Config: {ctx.paths.config_path}")
    console.print(f"Data:   {ctx.paths.data_path}")


@app.command()
def paths() -> None:
    """Show every file location used by the storage layer."""
    with _errors():
        ctx = _context(bootstrap=False)
    table = Table(show_header=True, header_style="bold cyan", box=None, padding=(0, 2))
    table.add_column("File")
    table.add_column("Path", overflow="fold")
    table.add_column("")
    rows = (
        ("Config", ctx.paths.config_path),
        ("Secrets", ctx.paths.secrets_path),
        ("Data", ctx.paths.data_path),
        ("Log", ctx.paths.log_path),
        ("Legacy config", ctx.paths.legacy_config_path),
        ("Legacy data", ctx.paths.legacy_data_path),
    )
    for label, path in rows:
        table.add_row(label, str(path), _exists_mark(path))
    console.print(Panel(table, title="[bold]Storage paths[/bold]", expand=False))


@app.command()
def status() -> None:
    """Show configuration (secrets masked) and document summary."""
    with _errors():
        ctx = _context()
        config = ctx.config.read()
        backend = ctx.config.get_sync_backend()
        sync_path = ctx.config.get_sync_path()

    info = Text()
    info.append("  Config:   ", style="bold")
    info.append(f"{ctx.paths.config_path}\n")
    info.append("  Secrets:  ", style="bold")
    info.append(str(ctx.paths.secrets_path) + " ")
    info.append_text(_exists_mark(ctx.paths.secrets_path))
    info.append("\n  Data:     ", style="bold")
    info.append(f"{ctx.paths.data_path}\n")
    info.append("\n  Backend:  ", style="bold")
    info.append(backend, style="cyan")
    info.append("\n  Sync dir: ", style="bold")
    info.append(sync_path)
    if config.sync_path is None:
        info.append(" (default)", style="dim")
    if config.webdav_url:
        info.append("\n  WebDAV:   ", style="bold")
        info.append(f"{config.webdav_url} ({config.webdav_username or 'anonymous'}) ")
        info.append_text(_mask(config.webdav_password))
    if config.cloud_url:
        info.append("\n  Cloud:    ", style="bold")
        info.append(f"{config.cloud_url} ")
        info.append_text(_mask(config.cloud_token))

    console.print(Panel(info, title="[bold]Mindwtr storage — Status[/bold]"))

    try:
        document = ctx.documents.get_data()
    except StoreError as e:
        console.print(f"[bold red]Data file unreadable:[/] {e}")
        raise typer.Exit(1) from None

    if isinstance(document, dict):
        counts = Table.grid(padding=(0, 2))
        counts.add_column(style="bold")
        counts.add_column(justify="right")
        for key in ("tasks", "projects"):
            items = document.get(key)
            counts.add_row(key.capitalize(), str(len(items)) if isinstance(items, list) else "—")
        console.print(Panel(counts, title="[bold]Document[/bold]", expand=False))


@app.command()
def doctor() -> None:
    """Run preflight checks on directories, data file and sync folder."""
    with _errors():
        ctx = _context(bootstrap=False)
        sync_dir = None
        if ctx.config.get_sync_backend() == "file":
            sync_dir = Path(ctx.config.get_sync_path())

    if not run_preflight_checks(ctx.paths, sync_dir, console):
        raise typer.Exit(1)
    console.print("[green]All checks passed.[/]")


# ---------------------------------------------------------------------------
# Subcommands: documents
# ---------------------------------------------------------------------------

_INPUT_ARG = Annotated[str, typer.Argument(help="JSON file to read, or - for stdin")]


@app.command("show-data")
def show_data() -> None:
    """Print the local document."""
    with _errors():
        document = _context().documents.get_data()
    console.print_json(data=document)


@app.command("save-data")
def save_data(source: _INPUT_ARG) -> None:
    """Replace the local document (the previous one is kept as data.json.bak)."""
    with _errors():
        document = _read_input(source)
        ctx = _context()
        ctx.documents.save_data(document)
    console.print(f"[green]Saved[/] {ctx.documents.data_path}")


@app.command("sync-pull")
def sync_pull(
    save: Annotated[
        bool,
        typer.Option("--save", help="Replace the local document with the sync-folder copy"),
    ] = False,
) -> None:
    """Print the sync-folder document."""
    with _errors():
        ctx = _context()
        document = ctx.sync.read_sync_document()
        if save:
            ctx.documents.save_data(document)

    if save:
        console.print(f"[green]Saved[/] {ctx.documents.data_path}")
    else:
        console.print_json(data=document)


@app.command("sync-push")
def sync_push(
    source: Annotated[
        str | None,
        typer.Argument(help="JSON file to push, or - for stdin (default: local document)"),
    ] = None,
) -> None:
    """Write a document to the sync folder (default: the local document)."""
    with _errors():
        ctx = _context()
        document = _read_input(source) if source else ctx.documents.get_data()
        written = ctx.sync.write_sync_document(document)
    console.print(f"[green]Wrote[/] {written}")


# ---------------------------------------------------------------------------
# Subcommands: configuration
# ---------------------------------------------------------------------------


@app.command("get-sync-path")
def get_sync_path() -> None:
    """Print the sync folder."""
    with _errors():
        _echo(_context().config.get_sync_path())


@app.command("set-sync-path")
def set_sync_path(
    sync_path: Annotated[str, typer.Argument(help="Folder shared with your sync client")],
) -> None:
    """Point the file backend at a folder."""
    with _errors():
        saved = _context().config.set_sync_path(sync_path)
    console.print(f"Sync path set to [cyan]{saved}[/]")


@app.command()
def backend(
    value: Annotated[
        str | None,
        typer.Argument(help=f"One of: {', '.join(SYNC_BACKENDS)} (omit to print)"),
    ] = None,
) -> None:
    """Show or set the sync backend."""
    with _errors():
        config = _context().config
        if value is None:
            _echo(config.get_sync_backend())
            return
        saved = config.set_sync_backend(value)
    console.print(f"Sync backend set to [cyan]{saved}[/]")


@app.command()
def webdav(
    url: Annotated[str | None, typer.Argument(help="WebDAV URL (omit to print)")] = None,
    username: Annotated[str, typer.Option("--username", "-u")] = "",
    password: Annotated[str, typer.Option("--password", "-p")] = "",
    clear: Annotated[bool, typer.Option("--clear", help="Remove the WebDAV settings")] = False,
) -> None:
    """Show or set WebDAV credentials (the password goes to secrets.toml)."""
    with _errors():
        config = _context().config
        if clear:
            config.set_webdav_config("", "", "")
            console.print("WebDAV settings cleared")
            return
        if url is None:
            settings = config.get_webdav_config()
            console.print(f"url={settings.url} username={settings.username}")
            return
        config.set_webdav_config(url, username, password)
    console.print("WebDAV settings saved")


@app.command()
def cloud(
    url: Annotated[str | None, typer.Argument(help="Cloud endpoint (omit to print)")] = None,
    token: Annotated[str, typer.Option("--token", "-t")] = "",
    clear: Annotated[bool, typer.Option("--clear", help="Remove the cloud settings")] = False,
) -> None:
    """Show or set the cloud endpoint (the token goes to secrets.toml)."""
    with _errors():
        config = _context().config
        if clear:
            config.set_cloud_config("", "")
            console.print("Cloud settings cleared")
            return
        if url is None:
            console.print(f"url={config.get_cloud_config().url}")
            return
        config.set_cloud_config(url, token)
    console.print("Cloud settings saved")


@app.command()
def calendars() -> None:
    """List external calendar subscriptions."""
    with _errors():
        subscriptions = _context().config.get_external_calendars()

    if not subscriptions:
        console.print("[yellow]No external calendars configured.[/]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Name", style="bold")
    table.add_column("URL", overflow="fold")
    table.add_column("Enabled")
    for subscription in subscriptions:
        enabled = Text("yes", style="green") if subscription.enabled else Text("no", style="dim")
        table.add_row(subscription.name, subscription.url, enabled)
    console.print(table)


@app.command("set-calendars")
def set_calendars(source: _INPUT_ARG) -> None:
    """Replace external calendar subscriptions from a JSON array."""
    with _errors():
        raw = _read_input(source)
        if not isinstance(raw, list):
            console.print("[bold red]Error:[/] Expected a JSON array of calendars")
            raise typer.Exit(1)
        items = [
            ExternalCalendarSubscription.from_dict(item) for item in raw if isinstance(item, dict)
        ]
        saved = _context().config.set_external_calendars(items)
    console.print(f"Saved [bold]{len(saved)}[/] calendar(s)")


# ---------------------------------------------------------------------------
# Subcommands: misc
# ---------------------------------------------------------------------------


@app.command()
def log(line: Annotated[str, typer.Argument(help="Text to append (a newline is added)")]) -> None:
    """Append a line to the application log file."""
    with _errors():
        log_path = _context(bootstrap=False).documents.append_log_line(line + "\n")
    _echo(str(log_path))


@app.command("ai-debug")
def ai_debug(
    context: Annotated[str, typer.Argument(help="Where the request came from")],
    message: Annotated[str, typer.Argument(help="Text to trace")],
    provider: Annotated[str | None, typer.Option("--provider")] = None,
    model: Annotated[str | None, typer.Option("--model")] = None,
    task_id: Annotated[str | None, typer.Option("--task")] = None,
) -> None:
    """Print an AI assistant trace line to stdout."""
    _echo(format_ai_debug_line(context, message, provider=provider, model=model, task_id=task_id))


@app.command()
def distro() -> None:
    """Print the Linux distribution id and family."""
    info = get_linux_distro()
    if info is None:
        console.print("[yellow]Not a Linux system or /etc/os-release unreadable.[/]")
        return
    console.print(f"id={info.id or ''} id_like={' '.join(info.id_like)}")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main() -> None:
    app()
