"""
Host platform details reported to the UI (used to pick an update channel).
"""

import sys
from pathlib import Path

from mindwtr_store.codec import parse_toml_string
from mindwtr_store.models import LinuxDistroInfo

OS_RELEASE = Path("/etc/os-release")


def _os_release_value(raw: str) -> str:
    parsed = parse_toml_string(raw)
    if parsed is not None:
        return parsed
    return raw.strip().strip('"').strip("'")


def parse_os_release(content: str) -> LinuxDistroInfo:
    info = LinuxDistroInfo()
    for line in content.splitlines():
        line = line.strip()
        if line.startswith("ID="):
            value = _os_release_value(line.split("=", 1)[1])
            if value:
                info.id = value
        elif line.startswith("ID_LIKE="):
            value = _os_release_value(line.split("=", 1)[1])
            if value:
                info.id_like = value.split()
    return info


def get_linux_distro(os_release: Path = OS_RELEASE) -> LinuxDistroInfo | None:
    """Distribution id and family; None off Linux or when os-release is unreadable."""
    if not sys.platform.startswith("linux"):
        return None
    try:
        content = os_release.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None
    return parse_os_release(content)
