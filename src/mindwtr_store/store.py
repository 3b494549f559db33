"""
Local document store backed by the canonical ``data.json``.
"""

import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

from mindwtr_store.codec import encode_pretty
from mindwtr_store.fileio import atomic_write
from mindwtr_store.fileio import read_json_with_backup
from mindwtr_store.models import StoreIOError
from mindwtr_store.paths import StoragePaths

logger = logging.getLogger(__name__)

LOCAL_READ_ATTEMPTS = 4
BACKUP_READ_ATTEMPTS = 2


class DocumentStore:
    """Whole-document reads and writes of the local data file."""

    def __init__(self, paths: StoragePaths, sleep: Callable[[float], Any] = time.sleep):
        self.paths = paths
        self.sleep = sleep

    @property
    def data_path(self) -> Path:
        return self.paths.data_path

    @property
    def config_path(self) -> Path:
        return self.paths.config_path

    def get_data(self) -> Any:
        """Return the stored document, falling back to ``data.json.bak``."""
        return read_json_with_backup(
            self.data_path,
            LOCAL_READ_ATTEMPTS,
            backup_attempts=BACKUP_READ_ATTEMPTS,
            sleep=self.sleep,
        )

    def save_data(self, document: Any) -> None:
        """Replace the stored document."""
        atomic_write(self.data_path, encode_pretty(document))
        logger.debug("Saved %s", self.data_path)

    def append_log_line(self, line: str) -> Path:
        """Append raw text to the application log file and return its path."""
        log_path = self.paths.log_path
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            with open(log_path, "a", encoding="utf-8") as f:
                f.write(line)
                f.flush()
        except OSError as e:
            raise StoreIOError(f"Cannot append to {log_path}: {e}") from e
        return log_path
