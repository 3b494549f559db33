"""
Application context: the storage components plus process-wide shell state.
"""

import logging
import threading
from dataclasses import dataclass
from dataclasses import field
from pathlib import Path

from mindwtr_store.config_store import ConfigStore
from mindwtr_store.migration import bootstrap_storage_layout
from mindwtr_store.paths import StoragePaths
from mindwtr_store.store import DocumentStore
from mindwtr_store.sync import SyncReconciler

logger = logging.getLogger(__name__)


class QuickAddFlag:
    """Set by the tray/hotkey shell, consumed once by the UI."""

    def __init__(self):
        self._lock = threading.Lock()
        self._pending = False

    def request(self) -> None:
        with self._lock:
            self._pending = True

    def consume(self) -> bool:
        """Return whether a quick-add was pending and clear it."""
        with self._lock:
            pending, self._pending = self._pending, False
            return pending


@dataclass
class AppContext:
    """Everything a command handler needs, built once per process."""

    paths: StoragePaths
    quick_add: QuickAddFlag = field(default_factory=QuickAddFlag)
    _bootstrapped: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        self.config = ConfigStore(self.paths)
        self.documents = DocumentStore(self.paths)
        self.sync = SyncReconciler(self.config)

    @classmethod
    def create(cls, config_dir: Path | None = None, data_dir: Path | None = None) -> "AppContext":
        return cls(paths=StoragePaths.default(config_dir=config_dir, data_dir=data_dir))

    def bootstrap(self) -> Path | None:
        """Run legacy migration once for this context."""
        if self._bootstrapped:
            return None
        migrated_from = bootstrap_storage_layout(self.paths)
        self._bootstrapped = True
        if migrated_from is not None:
            logger.info("Imported data from %s", migrated_from)
        return migrated_from
