"""BLE GATT transport implementation backed by bleak."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from bleak import BleakClient, BleakScanner
from bleak.exc import BleakError

from hrctl.core.errors import (
    AdapterUnavailableError,
    TransportConnectError,
    TransportError,
    TransportTimeoutError,
)
from hrctl.core.model import CharacteristicDescriptor, DeviceDescriptor
from hrctl.core.stream import NotificationStream
from hrctl.core.uuids import normalize_uuid

LOGGER = logging.getLogger(__name__)


class BleakTransport:
    def __init__(self, *, adapter: str | None = None) -> None:
        self._adapter = adapter
        self._scanner: BleakScanner | None = None
        self._clients: dict[str, BleakClient] = {}
        self._streams: dict[str, NotificationStream] = {}

    def _backend_kwargs(self) -> dict[str, Any]:
        return {"adapter": self._adapter} if self._adapter else {}

    async def start_scan(self, service_filter: str) -> None:
        scanner = BleakScanner(service_uuids=[service_filter], **self._backend_kwargs())
        try:
            await scanner.start()
        except (BleakError, OSError) as exc:
            adapter = self._adapter or "default adapter"
            raise AdapterUnavailableError(
                f"Could not start scanning on {adapter}. Ensure Bluetooth is powered on: {exc}"
            ) from exc
        self._scanner = scanner

    async def stop_scan(self) -> None:
        if self._scanner is None:
            return
        try:
            await self._scanner.stop()
        except (BleakError, OSError) as exc:
            raise TransportError(f"BLE scan stop failed: {exc}") from exc

    async def list_discovered(self) -> list[DeviceDescriptor]:
        if self._scanner is None:
            return []

        devices: list[DeviceDescriptor] = []
        for device, advertisement in self._scanner.discovered_devices_and_advertisement_data.values():
            devices.append(
                DeviceDescriptor(
                    handle=device,
                    address=device.address,
                    service_uuids=frozenset(_normalize_all(advertisement.service_uuids)),
                    name=advertisement.local_name or device.name,
                )
            )
        return devices

    async def connect(self, handle: Any, *, timeout_s: float) -> None:
        client = BleakClient(
            handle,
            disconnected_callback=self._on_disconnect,
            timeout=timeout_s,
            **self._backend_kwargs(),
        )
        address = _address_of(handle)
        # disconnect() must find the client even when connect() never completed.
        self._clients[address] = client
        try:
            await client.connect()
        except asyncio.TimeoutError as exc:
            raise TransportTimeoutError(f"BLE connect timed out for {address}") from exc
        except (BleakError, OSError) as exc:
            raise TransportConnectError(f"BLE connect failed for {address}: {exc}") from exc
        if not client.is_connected:
            raise TransportConnectError(f"BLE connect failed for {address}")

    async def discover_characteristics(self, handle: Any) -> list[CharacteristicDescriptor]:
        client = self._client_for(handle)
        try:
            services = client.services
        except BleakError as exc:
            raise TransportError(f"BLE service discovery failed: {exc}") from exc

        characteristics: list[CharacteristicDescriptor] = []
        for service in services:
            for characteristic in service.characteristics:
                characteristics.append(
                    CharacteristicDescriptor(
                        uuid=normalize_uuid(characteristic.uuid),
                        service_uuid=normalize_uuid(service.uuid),
                        properties=frozenset(p.lower() for p in characteristic.properties),
                    )
                )
        return characteristics

    async def subscribe(self, handle: Any, characteristic_uuid: str) -> NotificationStream:
        client = self._client_for(handle)
        stream = NotificationStream()

        def _notify_handler(_: Any, data: bytearray) -> None:
            stream.push(data)

        try:
            await client.start_notify(characteristic_uuid, _notify_handler)
        except (BleakError, OSError) as exc:
            raise TransportError(f"BLE start_notify failed on {characteristic_uuid}: {exc}") from exc
        self._streams[client.address] = stream
        return stream

    async def disconnect(self, handle: Any) -> None:
        address = _address_of(handle)
        stream = self._streams.pop(address, None)
        if stream is not None:
            stream.close()
        client = self._clients.pop(address, None)
        if client is None:
            return
        try:
            await client.disconnect()
        except (BleakError, OSError) as exc:
            raise TransportError(f"BLE disconnect failed for {address}: {exc}") from exc

    def _client_for(self, handle: Any) -> BleakClient:
        address = _address_of(handle)
        client = self._clients.get(address)
        if client is None or not client.is_connected:
            raise TransportError(f"Not connected to {address}")
        return client

    def _on_disconnect(self, client: BleakClient) -> None:
        LOGGER.warning("Device %s disconnected", client.address)
        stream = self._streams.get(client.address)
        if stream is not None:
            stream.close()


def _address_of(handle: Any) -> str:
    return handle if isinstance(handle, str) else handle.address


def _normalize_all(uuids: list[str]) -> list[str]:
    normalized: list[str] = []
    for uuid in uuids:
        try:
            normalized.append(normalize_uuid(uuid))
        except ValueError:
            LOGGER.debug("Ignoring malformed advertised UUID %r", uuid)
    return normalized
