"""Bluetooth UUID helpers and the standard Heart Rate identifiers."""

from __future__ import annotations

import re

_UUID_RE = re.compile(r"^[0-9a-f]{4}$|^[0-9a-f]{8}$|^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$")
_BASE_UUID_SUFFIX = "-0000-1000-8000-00805f9b34fb"


def uuid_from_u16(short: int) -> str:
    """Expand a 16-bit assigned number to the 128-bit Bluetooth base form."""
    if not 0 <= short <= 0xFFFF:
        raise ValueError(f"16-bit UUID out of range: {short:#x}")
    return f"0000{short:04x}{_BASE_UUID_SUFFIX}"


def normalize_uuid(value: str | int) -> str:
    """Return the lowercase 128-bit form of a 16-, 32- or 128-bit UUID."""
    if isinstance(value, int):
        if 0 <= value <= 0xFFFF:
            return uuid_from_u16(value)
        if 0 <= value <= 0xFFFFFFFF:
            return f"{value:08x}{_BASE_UUID_SUFFIX}"
        raise ValueError(f"UUID integer out of 32-bit range: {value:#x}")

    normalized = value.strip().lower()
    if normalized.startswith("0x"):
        normalized = normalized[2:]
    if not _UUID_RE.match(normalized):
        raise ValueError(f"'{value}' is not a 16-bit, 32-bit, or 128-bit UUID string")
    if len(normalized) == 4:
        return f"0000{normalized}{_BASE_UUID_SUFFIX}"
    if len(normalized) == 8:
        return f"{normalized}{_BASE_UUID_SUFFIX}"
    return normalized


HEART_RATE_SERVICE_UUID = uuid_from_u16(0x180D)
HEART_RATE_MEASUREMENT_UUID = uuid_from_u16(0x2A37)
