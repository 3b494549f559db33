"""
Platform directory layout for config, data and legacy files.
"""

import os
import sys
from dataclasses import dataclass
from pathlib import Path

from mindwtr_store.models import APP_IDENTIFIER
from mindwtr_store.models import APP_NAME
from mindwtr_store.models import CONFIG_FILE_NAME
from mindwtr_store.models import DATA_FILE_NAME
from mindwtr_store.models import LEGACY_CONFIG_FILE_NAME
from mindwtr_store.models import LOG_FILE_NAME
from mindwtr_store.models import SECRETS_FILE_NAME
from mindwtr_store.models import NoHomeDirectory


def _home() -> Path:
    try:
        return Path.home()
    except RuntimeError as e:
        raise NoHomeDirectory("Could not determine home directory") from e


def config_home() -> Path:
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else _home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return _home() / "Library" / "Application Support"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg) if xdg else _home() / ".config"


def data_home() -> Path:
    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        return Path(appdata) if appdata else _home() / "AppData" / "Roaming"
    if sys.platform == "darwin":
        return _home() / "Library" / "Application Support"
    xdg = os.environ.get("XDG_DATA_HOME")
    return Path(xdg) if xdg else _home() / ".local" / "share"


@dataclass
class StoragePaths:
    """Resolved directories for one installation.

    ``home`` is only consulted for the default sync folder; when None the
    platform home directory is used.
    """

    config_dir: Path
    data_dir: Path
    legacy_config_dir: Path
    legacy_data_dir: Path
    home: Path | None = None

    @classmethod
    def default(
        cls, config_dir: Path | None = None, data_dir: Path | None = None
    ) -> "StoragePaths":
        """Platform layout, with optional overrides for the canonical directories."""
        cfg_home = config_home()
        dat_home = data_home()
        return cls(
            config_dir=config_dir or cfg_home / APP_NAME,
            data_dir=data_dir or dat_home / APP_NAME,
            legacy_config_dir=cfg_home / APP_IDENTIFIER,
            legacy_data_dir=dat_home / APP_IDENTIFIER,
        )

    @property
    def config_path(self) -> Path:
        return self.config_dir / CONFIG_FILE_NAME

    @property
    def secrets_path(self) -> Path:
        return self.config_dir / SECRETS_FILE_NAME

    @property
    def data_path(self) -> Path:
        return self.data_dir / DATA_FILE_NAME

    @property
    def legacy_config_path(self) -> Path:
        return self.legacy_config_dir / LEGACY_CONFIG_FILE_NAME

    @property
    def legacy_data_path(self) -> Path:
        return self.legacy_data_dir / DATA_FILE_NAME

    @property
    def log_path(self) -> Path:
        return self.data_dir / "logs" / LOG_FILE_NAME

    def default_sync_dir(self) -> Path:
        """``<home>/Sync/<app>``; raises NoHomeDirectory if home is unknown."""
        home = self.home if self.home is not None else _home()
        return home / "Sync" / APP_NAME
