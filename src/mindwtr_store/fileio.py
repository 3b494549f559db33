"""
Crash-safe file primitives shared by the local store, the config store and the
sync folder.

Writes stage into ``<file>.tmp``, fsync, then rename over the target, keeping the
previous generation as ``<file>.bak``.  Reads retry with a short linear backoff so
that a file being replaced by an external sync client is re-read once the
replacement lands.
"""

import logging
import os
import shutil
import sys
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mindwtr_store.codec import parse_relaxed
from mindwtr_store.models import DecodeError
from mindwtr_store.models import StoreIOError

logger = logging.getLogger(__name__)

# os.rename refuses to overwrite an existing file on Windows, so the target is
# removed first there.  A crash between the unlink and the rename leaves no file
# at the target path; this window is a known limitation of that platform path.
RENAME_OVERWRITES = sys.platform != "win32"

BACKOFF_BASE_SECONDS = 0.12
BACKOFF_STEP_SECONDS = 0.08


def backup_path(path: Path) -> Path:
    return path.with_name(path.name + ".bak")


def tmp_path(path: Path) -> Path:
    return path.with_name(path.name + ".tmp")


def backoff_delay(attempt: int) -> float:
    """Seconds to wait after the zero-based ``attempt`` failed."""
    return BACKOFF_BASE_SECONDS + BACKOFF_STEP_SECONDS * attempt


def atomic_write(path: Path, content: str | bytes, keep_backup: bool = True) -> None:
    """Replace ``path`` with ``content`` so readers see old or new, never partial.

    The backup copy is advisory: failing to take it is logged and the write
    continues.  Text that cannot be encoded as UTF-8 (lone surrogates) raises
    DecodeError before anything is touched.  Any other failure raises StoreIOError
    and leaves ``path`` as it was.
    """
    if isinstance(content, str):
        try:
            payload = content.encode("utf-8")
        except UnicodeEncodeError as e:
            raise DecodeError(f"Content for {path} is not encodable as UTF-8: {e}") from e
    else:
        payload = content

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreIOError(f"Cannot create directory {path.parent}: {e}") from e

    if keep_backup and path.exists():
        try:
            shutil.copyfile(path, backup_path(path))
        except OSError as e:
            logger.debug("Backup of %s skipped: %s", path, e)

    staging = tmp_path(path)
    try:
        with open(staging, "wb") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
    except OSError as e:
        _discard(staging)
        raise StoreIOError(f"Cannot write {staging}: {e}") from e

    try:
        if not RENAME_OVERWRITES and path.exists():
            path.unlink()
        os.rename(staging, path)
    except OSError as e:
        _discard(staging)
        raise StoreIOError(f"Cannot move {staging} to {path}: {e}") from e


def _discard(staging: Path) -> None:
    try:
        staging.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Could not remove %s: %s", staging, e)


def read_json_with_retries(
    path: Path,
    attempts: int,
    sleep: Callable[[float], Any] = time.sleep,
) -> Any:
    """Read and relaxed-parse ``path``, retrying up to ``attempts`` times.

    Between failed attempts waits ``backoff_delay(attempt)``.  Raises the error of
    the final attempt: StoreIOError for read failures, DecodeError for bad content.
    """
    last_error: Exception | None = None
    for attempt in range(attempts):
        try:
            return parse_relaxed(path.read_bytes().decode("utf-8"))
        except OSError as e:
            last_error = StoreIOError(f"Cannot read {path}: {e}")
        except UnicodeDecodeError as e:
            last_error = DecodeError(f"{path} is not valid UTF-8: {e}")
        except DecodeError as e:
            last_error = DecodeError(f"Cannot parse {path}: {e}")

        logger.debug("Read attempt %d/%d of %s failed: %s", attempt + 1, attempts, path, last_error)
        if attempt + 1 < attempts:
            sleep(backoff_delay(attempt))

    if last_error is None:
        raise StoreIOError(f"Failed to read {path}")
    raise last_error


def read_json_with_backup(
    path: Path,
    attempts: int,
    backup_attempts: int = 2,
    sleep: Callable[[float], Any] = time.sleep,
) -> Any:
    """Read ``path``; if that fails, fall back to ``<path>.bak``.

    The error of the primary file is raised when the backup is missing or also
    unreadable.
    """
    try:
        return read_json_with_retries(path, attempts, sleep=sleep)
    except (StoreIOError, DecodeError) as primary_error:
        fallback = backup_path(path)
        if fallback.exists():
            try:
                value = read_json_with_retries(fallback, backup_attempts, sleep=sleep)
            except (StoreIOError, DecodeError) as e:
                logger.debug("Backup %s unreadable too: %s", fallback, e)
            else:
                logger.warning("Recovered %s from backup %s", path, fallback)
                return value
        raise primary_error
