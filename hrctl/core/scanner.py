"""Bounded-window discovery of a peripheral advertising a given service."""

from __future__ import annotations

import asyncio
import logging

from hrctl.core.device_match import matching_devices
from hrctl.core.errors import TransportError
from hrctl.core.model import DeviceDescriptor
from hrctl.core.uuids import normalize_uuid
from hrctl.transports.base import BLETransport

LOGGER = logging.getLogger(__name__)


class DeviceScanner:
    def __init__(self, transport: BLETransport) -> None:
        self._transport = transport

    async def scan(self, service_filter: str | int, scan_window: float) -> list[DeviceDescriptor]:
        """Scan for the full window and return every advertiser of service_filter.

        The window is a fixed wait with no early exit so that every advertiser
        in range gets a chance to be seen. The scan is always stopped before
        returning.
        """
        service_uuid = normalize_uuid(service_filter)
        LOGGER.info("Scanning %.1fs for service %s", scan_window, service_uuid)
        await self._transport.start_scan(service_uuid)
        try:
            await asyncio.sleep(scan_window)
            observed = await self._transport.list_discovered()
        finally:
            await self._stop_scan()

        devices = matching_devices(observed, service_uuid)
        LOGGER.debug("Observed %d peripheral(s), %d matching", len(observed), len(devices))
        return devices

    async def discover(self, service_filter: str | int, scan_window: float) -> DeviceDescriptor | None:
        devices = await self.scan(service_filter, scan_window)
        device = devices[0] if devices else None
        if device is None:
            LOGGER.warning("No peripheral advertising %s found", normalize_uuid(service_filter))
        else:
            LOGGER.info("Found device: %s [%s]", device.display_name, device.address)
        return device

    async def _stop_scan(self) -> None:
        try:
            await self._transport.stop_scan()
        except TransportError as exc:
            LOGGER.warning("Could not stop scan: %s", exc)
