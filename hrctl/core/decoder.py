"""Heart Rate Measurement (0x2A37) notification decoding.

Payload layout:
  - byte 0:    flags (bit0 = value format, 0 -> uint8, 1 -> uint16 LE)
  - byte 1..:  heart rate value, 1 or 2 bytes
  - remaining: sensor contact / energy expended / RR intervals, not parsed
"""

from __future__ import annotations

import struct

from hrctl.core.errors import DecodeError
from hrctl.core.model import DecodeErrorKind, HeartRateFlags, HeartRateReading


def decode(payload: bytes | bytearray | memoryview) -> HeartRateReading:
    data = bytes(payload)
    if not data:
        raise DecodeError(DecodeErrorKind.EMPTY, data)

    flags = HeartRateFlags(data[0] & HeartRateFlags.VALUE_FORMAT_UINT16)
    if flags & HeartRateFlags.VALUE_FORMAT_UINT16:
        if len(data) < 3:
            raise DecodeError(DecodeErrorKind.TRUNCATED, data)
        (bpm,) = struct.unpack_from("<H", data, 1)
    else:
        if len(data) < 2:
            raise DecodeError(DecodeErrorKind.TRUNCATED, data)
        bpm = data[1]

    return HeartRateReading(bpm=bpm)


def decode_hex(text: str) -> HeartRateReading:
    """Decode a payload given as hex, e.g. ``"00 48"`` or ``"01:48:00"``."""
    normalized = text.strip().lower().replace(" ", "").replace(":", "")
    if len(normalized) % 2 != 0:
        raise ValueError(f"'{text}' must have even-length hex")
    return decode(bytes.fromhex(normalized))
