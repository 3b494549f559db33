"""
SyncReconciler reads and writes the document mirrored in the user's sync folder.

The folder may be rewritten at any moment by a third-party file-sync client.  No
lock or handshake is used: writes rely on tmp-file + rename, reads on retries,
relaxed parsing and the ``.bak`` generation.
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mindwtr_store.codec import encode_pretty
from mindwtr_store.codec import parse_relaxed
from mindwtr_store.config_store import ConfigStore
from mindwtr_store.fileio import atomic_write
from mindwtr_store.fileio import read_json_with_backup
from mindwtr_store.models import DATA_FILE_NAME
from mindwtr_store.models import LEGACY_SYNC_FILE_NAME
from mindwtr_store.models import DecodeError
from mindwtr_store.models import StoreIOError
from mindwtr_store.models import empty_document

SYNC_READ_ATTEMPTS = 5
BACKUP_READ_ATTEMPTS = 2


class SyncReconciler:
    """Sync-folder document access, resolved through the config store on every call."""

    def __init__(self, config_store: ConfigStore, sleep: Callable[[float], Any] = time.sleep):
        self.config_store = config_store
        self.sleep = sleep
        self.logger = logging.getLogger(__name__)

    def sync_dir(self) -> Path:
        return Path(self.config_store.get_sync_path())

    def sync_file(self) -> Path:
        return self.sync_dir() / DATA_FILE_NAME

    def read_sync_document(self) -> Any:
        """Return the sync-folder document.

        Falls back to the legacy filename when the canonical file is absent, and
        to an empty skeleton when neither exists.
        """
        sync_dir = self.sync_dir()
        sync_file = sync_dir / DATA_FILE_NAME

        if not sync_file.exists():
            legacy_file = sync_dir / LEGACY_SYNC_FILE_NAME
            if legacy_file.exists():
                self.logger.info("Reading legacy sync file %s", legacy_file)
                try:
                    content = legacy_file.read_text(encoding="utf-8")
                except OSError as e:
                    raise StoreIOError(f"Cannot read {legacy_file}: {e}") from e
                except UnicodeDecodeError as e:
                    raise DecodeError(f"{legacy_file} is not valid UTF-8: {e}") from e
                try:
                    return parse_relaxed(content)
                except DecodeError as e:
                    raise DecodeError(f"Cannot parse {legacy_file}: {e}") from e
            self.logger.debug("No sync file in %s, using empty document", sync_dir)
            return empty_document()

        return read_json_with_backup(
            sync_file,
            SYNC_READ_ATTEMPTS,
            backup_attempts=BACKUP_READ_ATTEMPTS,
            sleep=self.sleep,
        )

    def write_sync_document(self, document: Any) -> Path:
        """Atomically replace the sync-folder document and return its path."""
        sync_file = self.sync_file()
        atomic_write(sync_file, encode_pretty(document))
        self.logger.debug("Wrote %s", sync_file)
        return sync_file
