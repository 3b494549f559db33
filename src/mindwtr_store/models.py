"""
Pure data models and the package exception hierarchy. No filesystem access.
"""

from dataclasses import dataclass
from dataclasses import field
from dataclasses import fields
from typing import Any

APP_NAME = "mindwtr"
# Older desktop builds stored files under the bundle identifier instead of the app name.
APP_IDENTIFIER = "tech.dongdongbh.mindwtr"

CONFIG_FILE_NAME = "config.toml"
SECRETS_FILE_NAME = "secrets.toml"
DATA_FILE_NAME = "data.json"
LEGACY_CONFIG_FILE_NAME = "config.json"
LEGACY_SYNC_FILE_NAME = f"{APP_NAME}-sync.json"
LOG_FILE_NAME = f"{APP_NAME}.log"

CONFIG_HEADER = "# Mindwtr desktop config"
SECRETS_HEADER = "# Mindwtr desktop secrets"

SYNC_BACKENDS = ("file", "webdav", "cloud")
DEFAULT_SYNC_BACKEND = "file"
DEFAULT_CALENDAR_NAME = "Calendar"

PUBLIC_TIER = "public"
SECRETS_TIER = "secrets"

# Field name -> persistence tier.  Drives split(), merge() and key recognition.
CONFIG_FIELDS: dict[str, str] = {
    "sync_path": PUBLIC_TIER,
    "sync_backend": PUBLIC_TIER,
    "webdav_url": PUBLIC_TIER,
    "webdav_username": PUBLIC_TIER,
    "webdav_password": SECRETS_TIER,
    "cloud_url": PUBLIC_TIER,
    "cloud_token": SECRETS_TIER,
    "external_calendars": SECRETS_TIER,
}


class StoreError(Exception):
    """Base exception for storage layer errors."""

    pass


class StoreIOError(StoreError):
    """A directory or file could not be created, copied, renamed or synced."""

    pass


class DecodeError(StoreError):
    """Neither the strict nor the relaxed parse produced a value."""

    pass


class NoHomeDirectory(StoreError):
    """The default sync path cannot be computed without a home directory."""

    pass


class InvalidBackend(StoreError):
    """Unrecognised sync backend token."""

    pass


def empty_document() -> dict[str, Any]:
    """Return the skeleton written on first run and served for a missing sync file."""
    return {"tasks": [], "projects": [], "settings": {}}


@dataclass
class ConfigTable:
    """Flat configuration table; ``None`` means the key is absent."""

    sync_path: str | None = None
    sync_backend: str | None = None
    webdav_url: str | None = None
    webdav_username: str | None = None
    webdav_password: str | None = None
    cloud_url: str | None = None
    cloud_token: str | None = None
    external_calendars: str | None = None

    @classmethod
    def from_mapping(cls, raw: dict[str, str | None]) -> "ConfigTable":
        """Build a table from parsed key/value pairs, ignoring unknown keys."""
        return cls(**{key: value for key, value in raw.items() if key in CONFIG_FIELDS})

    def items(self) -> list[tuple[str, str]]:
        """Present values in declaration order."""
        return [
            (f.name, getattr(self, f.name))
            for f in fields(self)
            if getattr(self, f.name) is not None
        ]

    def has_values(self) -> bool:
        return bool(self.items())

    def merge(self, overrides: "ConfigTable") -> "ConfigTable":
        """Return a copy where every present value of ``overrides`` wins."""
        merged = ConfigTable(**{f.name: getattr(self, f.name) for f in fields(self)})
        for key, value in overrides.items():
            setattr(merged, key, value)
        return merged

    def split(self) -> tuple["ConfigTable", "ConfigTable"]:
        """Partition into (public, secrets) tables by CONFIG_FIELDS."""
        public = ConfigTable()
        secrets = ConfigTable()
        for key, value in self.items():
            target = secrets if CONFIG_FIELDS[key] == SECRETS_TIER else public
            setattr(target, key, value)
        return public, secrets


@dataclass
class ExternalCalendarSubscription:
    """An ICS feed shown alongside tasks in the calendar view."""

    id: str
    name: str
    url: str
    enabled: bool = True

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "ExternalCalendarSubscription":
        return cls(
            id=str(raw.get("id") or ""),
            name=str(raw.get("name") or ""),
            url=str(raw.get("url") or ""),
            enabled=bool(raw.get("enabled", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "url": self.url, "enabled": self.enabled}


def sanitize_calendars(
    calendars: list[ExternalCalendarSubscription],
) -> list[ExternalCalendarSubscription]:
    """Drop blank-URL entries, trim name/url, default blank names. Idempotent."""
    cleaned = []
    for calendar in calendars:
        url = calendar.url.strip()
        if not url:
            continue
        name = calendar.name.strip() or DEFAULT_CALENDAR_NAME
        cleaned.append(
            ExternalCalendarSubscription(
                id=calendar.id, name=name, url=url, enabled=calendar.enabled
            )
        )
    return cleaned


@dataclass
class WebDavSettings:
    url: str = ""
    username: str = ""
    password: str = ""


@dataclass
class CloudSettings:
    url: str = ""
    token: str = ""


@dataclass
class LegacyConfig:
    """Single-file JSON config written by pre-TOML desktop releases."""

    data_file_path: str | None = None
    sync_path: str | None = None


@dataclass
class LinuxDistroInfo:
    id: str | None = None
    id_like: list[str] = field(default_factory=list)


def format_ai_debug_line(
    context: str,
    message: str,
    provider: str | None = None,
    model: str | None = None,
    task_id: str | None = None,
) -> str:
    """One-line trace of an AI assistant request; missing fields get placeholders."""
    return (
        f"[ai-debug] context={context} provider={provider or 'unknown'} "
        f"model={model or 'unknown'} task={task_id or '-'} message={message}"
    )
