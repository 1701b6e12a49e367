"""Core data models used across scanner, connection, orchestrator, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntFlag
from typing import Any


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SERVICES_DISCOVERED = "services_discovered"
    SUBSCRIBED = "subscribed"
    FAILED = "failed"


class HeartRateFlags(IntFlag):
    """Flags byte of the Heart Rate Measurement characteristic.

    Only the value format bit is interpreted; the remaining bits describe
    optional fields this package does not decode.
    """

    VALUE_FORMAT_UINT16 = 0x01


class DecodeErrorKind(str, Enum):
    EMPTY = "empty"
    TRUNCATED = "truncated"


class TerminationReason(str, Enum):
    STREAM_ENDED = "stream_ended"
    STOPPED = "stopped"


@dataclass(frozen=True)
class DeviceDescriptor:
    handle: Any
    address: str
    service_uuids: frozenset[str]
    name: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or "<unknown-device>"


@dataclass(frozen=True)
class CharacteristicDescriptor:
    uuid: str
    service_uuid: str
    properties: frozenset[str]

    @property
    def supports_notify(self) -> bool:
        return "notify" in self.properties


@dataclass(frozen=True)
class HeartRateReading:
    bpm: int


@dataclass(frozen=True)
class RunSummary:
    device: DeviceDescriptor
    readings: int
    decode_errors: int
    reason: TerminationReason
