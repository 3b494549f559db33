"""
Text codecs: tolerant JSON decoding and the flat TOML dialect used for config files.
"""

import json
import re
from typing import Any

from mindwtr_store.models import DecodeError

_BOM = "\ufeff"
_NUL = "\x00"
_TRAILING_JUNK = " \t\r\n" + _NUL

# Backslash escapes accepted inside double-quoted values: \" and \\
_BASIC_ESCAPE_RE = re.compile(r'\\(["\\])')


def sanitize(raw: str) -> str:
    """Strip a leading BOM, trailing NUL padding and trailing whitespace.

    Some filesystems leave NUL bytes at the end of a file that was truncated
    while another process was still writing it.
    """
    return raw.lstrip(_BOM).rstrip(_TRAILING_JUNK)


def parse_relaxed(raw: str) -> Any:
    """Decode a JSON document, tolerating garbage after the first complete value.

    File-sync clients occasionally leave a file holding new content followed by
    the tail of the old content.  The strict parse is tried first; if it fails,
    decoding restarts at the first ``{`` or ``[`` and stops after one value.
    """
    text = sanitize(raw)
    if not text:
        return {}

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    starts = [pos for pos in (text.find("{"), text.find("[")) if pos >= 0]
    start = min(starts) if starts else len(text) - len(text.lstrip())
    try:
        value, _end = json.JSONDecoder().raw_decode(text, start)
    except json.JSONDecodeError as e:
        raise DecodeError(str(e)) from e
    return value


def encode_pretty(document: Any) -> str:
    """Human-readable JSON used for every document write."""
    return json.dumps(document, indent=2, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Flat TOML subset
# ---------------------------------------------------------------------------


def parse_toml_string(raw: str) -> str | None:
    """Parse a single TOML string value.

    Double-quoted basic strings honour ``\\"`` and ``\\\\`` escapes;
    single-quoted literal strings are taken verbatim.  Anything else is None.
    """
    value = raw.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        return _BASIC_ESCAPE_RE.sub(r"\1", value[1:-1])
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    return None


def serialize_toml_string(value: str) -> str:
    """Quote ``value`` as a TOML basic string with minimal escaping."""
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def parse_flat_toml(text: str) -> dict[str, str | None]:
    """Parse ``key = value`` lines; comments, blanks and malformed lines are skipped.

    A key whose value is not a recognised string maps to None.
    """
    table: dict[str, str | None] = {}
    for line in text.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        table[key.strip()] = parse_toml_string(value)
    return table


def serialize_flat_toml(items: list[tuple[str, str]], header: str) -> str:
    """Render ``items`` one per line below ``header``."""
    lines = [header]
    lines.extend(f"{key} = {serialize_toml_string(value)}" for key, value in items)
    return "\n".join(lines) + "\n"
