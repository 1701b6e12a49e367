"""Transport interfaces."""

from __future__ import annotations

from typing import Any, Protocol

from hrctl.core.model import CharacteristicDescriptor, DeviceDescriptor
from hrctl.core.stream import NotificationStream


class BLETransport(Protocol):
    async def start_scan(self, service_filter: str) -> None:
        """Start an active scan. Raises AdapterUnavailableError if no adapter can scan."""

    async def stop_scan(self) -> None:
        """Stop a scan started by start_scan."""

    async def list_discovered(self) -> list[DeviceDescriptor]:
        """Return every peripheral observed so far, in arrival order."""

    async def connect(self, handle: Any, *, timeout_s: float) -> None:
        """Open a connection to the peripheral behind handle."""

    async def discover_characteristics(self, handle: Any) -> list[CharacteristicDescriptor]:
        """Enumerate the GATT characteristics of a connected peripheral."""

    async def subscribe(self, handle: Any, characteristic_uuid: str) -> NotificationStream:
        """Enable notifications and return the stream they are pushed into."""

    async def disconnect(self, handle: Any) -> None:
        """Release the connection to the peripheral."""
