"""
Two-tier configuration persisted as ``config.toml`` (public) and ``secrets.toml``.

Credential-bearing keys only ever live in the secrets file.  The secrets file is
removed when it would be empty, so "no file" is the canonical no-secrets state.
Nothing is cached: every call reads the files again.
"""

import json
import logging
from pathlib import Path

from mindwtr_store.codec import parse_flat_toml
from mindwtr_store.codec import serialize_flat_toml
from mindwtr_store.fileio import atomic_write
from mindwtr_store.models import CONFIG_HEADER
from mindwtr_store.models import DEFAULT_SYNC_BACKEND
from mindwtr_store.models import SECRETS_HEADER
from mindwtr_store.models import SYNC_BACKENDS
from mindwtr_store.models import CloudSettings
from mindwtr_store.models import ConfigTable
from mindwtr_store.models import ExternalCalendarSubscription
from mindwtr_store.models import InvalidBackend
from mindwtr_store.models import StoreIOError
from mindwtr_store.models import WebDavSettings
from mindwtr_store.models import sanitize_calendars
from mindwtr_store.paths import StoragePaths

logger = logging.getLogger(__name__)


def read_config_file(path: Path) -> ConfigTable:
    """Load one table; a missing or unreadable file reads as empty."""
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return ConfigTable()
    return ConfigTable.from_mapping(parse_flat_toml(text))


def write_config_file(path: Path, table: ConfigTable, header: str) -> None:
    atomic_write(path, serialize_flat_toml(table.items(), header), keep_backup=False)


def normalize_backend(value: str) -> str | None:
    """Return the backend token if ``value`` is exactly a recognised one."""
    return value if value in SYNC_BACKENDS else None


class ConfigStore:
    """Read-modify-write access to the public and secrets config tables."""

    def __init__(self, paths: StoragePaths):
        self.paths = paths

    # ------------------------------------------------------------------ #
    # Whole-table access                                                   #
    # ------------------------------------------------------------------ #

    def read(self) -> ConfigTable:
        """Public table overlaid with the secrets table, if present."""
        config = read_config_file(self.paths.config_path)
        secrets_path = self.paths.secrets_path
        if secrets_path.exists():
            config = config.merge(read_config_file(secrets_path))
        return config

    def write(self, table: ConfigTable) -> None:
        """Split ``table`` by tier and persist both halves."""
        public, secrets = table.split()
        write_config_file(self.paths.config_path, public, CONFIG_HEADER)

        secrets_path = self.paths.secrets_path
        if secrets.has_values():
            write_config_file(secrets_path, secrets, SECRETS_HEADER)
        elif secrets_path.exists():
            try:
                secrets_path.unlink()
            except OSError as e:
                raise StoreIOError(f"Cannot remove {secrets_path}: {e}") from e
            logger.debug("Removed empty secrets file %s", secrets_path)

    # ------------------------------------------------------------------ #
    # Sync folder and backend                                              #
    # ------------------------------------------------------------------ #

    def get_sync_path(self) -> str:
        """Configured sync folder, or ``<home>/Sync/<app>`` when unset."""
        config = self.read()
        if config.sync_path is not None:
            return config.sync_path
        return str(self.paths.default_sync_dir())

    def set_sync_path(self, sync_path: str) -> str:
        config = self.read()
        config.sync_path = sync_path
        self.write(config)
        return sync_path

    def get_sync_backend(self) -> str:
        raw = self.read().sync_backend or DEFAULT_SYNC_BACKEND
        return normalize_backend(raw.strip()) or DEFAULT_SYNC_BACKEND

    def set_sync_backend(self, backend: str) -> str:
        normalized = normalize_backend(backend.strip())
        if normalized is None:
            raise InvalidBackend(
                f"Invalid sync backend {backend!r} (expected one of: {', '.join(SYNC_BACKENDS)})"
            )
        config = self.read()
        config.sync_backend = normalized
        self.write(config)
        return normalized

    # ------------------------------------------------------------------ #
    # Remote backends                                                      #
    # ------------------------------------------------------------------ #

    def get_webdav_config(self) -> WebDavSettings:
        config = self.read()
        return WebDavSettings(
            url=config.webdav_url or "",
            username=config.webdav_username or "",
            password=config.webdav_password or "",
        )

    def set_webdav_config(self, url: str, username: str, password: str) -> None:
        """Store WebDAV credentials; a blank URL clears all three fields."""
        url = url.strip()
        config = self.read()
        if url:
            config.webdav_url = url
            config.webdav_username = username
            config.webdav_password = password
        else:
            config.webdav_url = None
            config.webdav_username = None
            config.webdav_password = None
        self.write(config)

    def get_cloud_config(self) -> CloudSettings:
        config = self.read()
        return CloudSettings(url=config.cloud_url or "", token=config.cloud_token or "")

    def set_cloud_config(self, url: str, token: str) -> None:
        """Store the cloud endpoint; a blank URL clears URL and token."""
        url = url.strip()
        config = self.read()
        if url:
            config.cloud_url = url
            config.cloud_token = token
        else:
            config.cloud_url = None
            config.cloud_token = None
        self.write(config)

    # ------------------------------------------------------------------ #
    # External calendar subscriptions                                      #
    # ------------------------------------------------------------------ #

    def get_external_calendars(self) -> list[ExternalCalendarSubscription]:
        """Stored subscriptions; a missing or malformed value reads as empty."""
        raw = self.read().external_calendars or "[]"
        try:
            items = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed external_calendars value")
            return []
        if not isinstance(items, list):
            return []
        calendars = [
            ExternalCalendarSubscription.from_dict(item) for item in items if isinstance(item, dict)
        ]
        return sanitize_calendars(calendars)

    def set_external_calendars(
        self, calendars: list[ExternalCalendarSubscription]
    ) -> list[ExternalCalendarSubscription]:
        sanitized = sanitize_calendars(calendars)
        config = self.read()
        config.external_calendars = json.dumps(
            [calendar.to_dict() for calendar in sanitized], separators=(",", ":")
        )
        self.write(config)
        return sanitized
