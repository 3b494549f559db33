"""
Preflight checks that catch storage misconfigurations before any read or write.
"""

import logging
import os
import tempfile
from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from mindwtr_store.fileio import backup_path
from mindwtr_store.fileio import read_json_with_retries
from mindwtr_store.models import DecodeError
from mindwtr_store.models import StoreIOError
from mindwtr_store.paths import StoragePaths

logger = logging.getLogger(__name__)


def _check_writable_dir(path: Path) -> str | None:
    """Return an error message if ``path`` cannot be created or written to."""
    try:
        path.mkdir(parents=True, exist_ok=True)
        fd, probe = tempfile.mkstemp(dir=path, prefix=".preflight-")
        os.close(fd)
        os.unlink(probe)
    except OSError as e:
        return str(e)
    return None


def run_preflight_checks(paths: StoragePaths, sync_dir: Path | None, console: Console) -> bool:
    """Return True if storage is usable; print issues and return False otherwise.

    ``sync_dir`` is None when the configured backend does not use a local folder.
    """
    issues: list[tuple[str, str, str]] = []  # (label, detail, hint)

    # 1 & 2. Canonical directories
    for directory, label in (
        (paths.config_dir, "Config directory"),
        (paths.data_dir, "Data directory"),
    ):
        error = _check_writable_dir(directory)
        if error:
            logger.error("%s not writable (%s): %s", label, directory, error)
            issues.append((label, f"{directory}: {error}", f"Check permissions on {directory}"))

    # 3. Data file decodes (single attempt, no backup fallback)
    data_path = paths.data_path
    if data_path.exists():
        try:
            read_json_with_retries(data_path, 1)
        except (StoreIOError, DecodeError) as e:
            logger.error("Data file unreadable (%s): %s", data_path, e)
            if backup_path(data_path).exists():
                hint = "A backup exists and will be used on read"
            else:
                hint = "Restore the file from your sync folder"
            issues.append(("Data file", str(e), hint))

    # 4. Sync folder
    if sync_dir is not None:
        error = _check_writable_dir(sync_dir)
        if error:
            logger.error("Sync folder not writable (%s): %s", sync_dir, error)
            issues.append(
                (
                    "Sync folder",
                    f"{sync_dir}: {error}",
                    "Run: mindwtr-store set-sync-path <folder>",
                )
            )

    if issues:
        _print_issues(issues, console)
        return False

    return True


def _print_issues(issues: list[tuple[str, str, str]], console: Console) -> None:
    body = Text()
    for i, (label, detail, hint) in enumerate(issues):
        if i:
            body.append("\n")
        body.append(f"  ✗  {label}: ", style="bold red")
        body.append(detail, style="bold red")
        body.append(f"\n       → {hint}", style="yellow")

    console.print(Panel(body, title="[bold red]Preflight checks failed[/bold red]"))
