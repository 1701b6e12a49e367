"""Public entry points for embedding hrctl in other programs.

`Client` runs discovery and the heart rate reading loop synchronously. Callers
that own an event loop can take `Client.orchestrator()` and await `run()`
directly. Model, error and transport types are re-exported so integrations only
import `hrctl.api`.
"""

from __future__ import annotations

from pathlib import Path

from hrctl.core.config import Settings
from hrctl.core.decoder import decode
from hrctl.core.errors import (
    AdapterUnavailableError,
    CharacteristicUnsupportedError,
    ConfigLoadError,
    ConfigValidationError,
    DecodeError,
    DeviceConnectionError,
    DeviceNotFoundError,
    HrctlError,
    InvalidStateError,
    ServiceDiscoveryError,
    SubscriptionError,
    TransportConnectError,
    TransportError,
    TransportTimeoutError,
)
from hrctl.core.model import (
    CharacteristicDescriptor,
    ConnectionState,
    DecodeErrorKind,
    DeviceDescriptor,
    HeartRateReading,
    RunSummary,
    TerminationReason,
)
from hrctl.core.orchestrator import DecodeErrorSink, ReadingOrchestrator, ReadingSink
from hrctl.core.service import HeartRateService
from hrctl.core.stream import NotificationStream
from hrctl.core.uuids import HEART_RATE_MEASUREMENT_UUID, HEART_RATE_SERVICE_UUID
from hrctl.transports.base import BLETransport
from hrctl.transports.bleak_gatt import BleakTransport

__all__ = [
    "HrctlError",
    "AdapterUnavailableError",
    "CharacteristicUnsupportedError",
    "ConfigLoadError",
    "ConfigValidationError",
    "DecodeError",
    "DeviceConnectionError",
    "DeviceNotFoundError",
    "InvalidStateError",
    "ServiceDiscoveryError",
    "SubscriptionError",
    "TransportError",
    "TransportConnectError",
    "TransportTimeoutError",
    "CharacteristicDescriptor",
    "ConnectionState",
    "DecodeErrorKind",
    "DeviceDescriptor",
    "HeartRateReading",
    "RunSummary",
    "TerminationReason",
    "NotificationStream",
    "ReadingOrchestrator",
    "Settings",
    "BLETransport",
    "BleakTransport",
    "HEART_RATE_SERVICE_UUID",
    "HEART_RATE_MEASUREMENT_UUID",
    "decode",
    "Client",
]


class Client:
    """Public client for interacting with hrctl core capabilities.

    A `Client` instance wraps settings loading, heart rate device discovery and
    the notification reading loop behind a stable API intended for third-party
    tools (GUI/TUI/services/scripts).
    """

    def __init__(
        self,
        *,
        transport: BLETransport | None = None,
        settings: Settings | None = None,
        config_path: Path | None = None,
    ) -> None:
        self._service = HeartRateService(transport=transport, settings=settings, config_path=config_path)

    @property
    def settings(self) -> Settings:
        return self._service.settings

    def list_devices(self) -> list[DeviceDescriptor]:
        return self._service.list_devices()

    def watch(
        self,
        on_reading: ReadingSink,
        *,
        on_decode_error: DecodeErrorSink | None = None,
    ) -> RunSummary:
        return self._service.watch(on_reading, on_decode_error=on_decode_error)

    def orchestrator(self) -> ReadingOrchestrator:
        """Return an orchestrator for callers that run their own event loop."""
        return self._service.orchestrator()

    def decode(self, payload: bytes) -> HeartRateReading:
        return decode(payload)

    def decode_hex(self, payload_hex: str) -> HeartRateReading:
        return self._service.decode_hex(payload_hex)
