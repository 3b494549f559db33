"""
One-time bootstrap of the canonical storage layout from earlier on-disk formats.

Older releases kept a single ``config.json`` (with ``data_file_path`` and
``sync_path``) and a ``data.json`` under bundle-identifier directories, and for a
while the data file lived inside the config directory.  Every step is guarded by
an existence check, so running the bootstrap again is a no-op.
"""

import json
import logging
import shutil
from pathlib import Path

from mindwtr_store.codec import encode_pretty
from mindwtr_store.config_store import ConfigStore
from mindwtr_store.fileio import atomic_write
from mindwtr_store.models import DATA_FILE_NAME
from mindwtr_store.models import ConfigTable
from mindwtr_store.models import LegacyConfig
from mindwtr_store.models import StoreIOError
from mindwtr_store.models import empty_document
from mindwtr_store.paths import StoragePaths

logger = logging.getLogger(__name__)


def load_legacy_config(path: Path) -> LegacyConfig:
    """Parse the old JSON config; missing or malformed content reads as empty."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return LegacyConfig()
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning("Ignoring unreadable legacy config %s: %s", path, e)
        return LegacyConfig()
    if not isinstance(raw, dict):
        logger.warning("Ignoring legacy config %s: root is not an object", path)
        return LegacyConfig()

    def _string(key: str) -> str | None:
        value = raw.get(key)
        return value if isinstance(value, str) else None

    return LegacyConfig(data_file_path=_string("data_file_path"), sync_path=_string("sync_path"))


def legacy_data_candidates(paths: StoragePaths, legacy: LegacyConfig) -> list[Path]:
    """Sources for the initial data file, in priority order."""
    candidates = []
    if legacy.data_file_path:
        candidates.append(Path(legacy.data_file_path))
    candidates.append(paths.config_dir / DATA_FILE_NAME)
    candidates.append(paths.legacy_data_path)
    return candidates


def _ensure_dir(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise StoreIOError(f"Cannot create directory {path}: {e}") from e


def bootstrap_storage_layout(paths: StoragePaths) -> Path | None:
    """Create canonical config/data files, importing legacy ones when present.

    Returns the legacy file the data was copied from, or None when nothing was
    imported (already bootstrapped, or a fresh skeleton was written).
    """
    _ensure_dir(paths.config_dir)
    _ensure_dir(paths.data_dir)

    legacy = load_legacy_config(paths.legacy_config_path)

    if not paths.config_path.exists():
        logger.info("Creating %s", paths.config_path)
        ConfigStore(paths).write(ConfigTable(sync_path=legacy.sync_path))

    data_path = paths.data_path
    if data_path.exists():
        return None

    for source in legacy_data_candidates(paths, legacy):
        if not source.is_file():
            continue
        logger.info("Migrating data file %s -> %s", source, data_path)
        try:
            shutil.copyfile(source, data_path)
        except OSError as e:
            raise StoreIOError(f"Cannot copy {source} to {data_path}: {e}") from e
        return source

    logger.info("Writing empty data file %s", data_path)
    atomic_write(data_path, encode_pretty(empty_document()), keep_backup=False)
    return None
