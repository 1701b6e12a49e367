"""Connection lifecycle for a single discovered peripheral."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from types import MappingProxyType

from hrctl.core.errors import (
    CharacteristicUnsupportedError,
    DeviceConnectionError,
    InvalidStateError,
    ServiceDiscoveryError,
    SubscriptionError,
    TransportError,
)
from hrctl.core.model import CharacteristicDescriptor, ConnectionState, DeviceDescriptor
from hrctl.core.stream import NotificationStream
from hrctl.core.uuids import normalize_uuid
from hrctl.transports.base import BLETransport

LOGGER = logging.getLogger(__name__)

_CONNECTED_OR_LATER = frozenset(
    {
        ConnectionState.CONNECTED,
        ConnectionState.SERVICES_DISCOVERED,
        ConnectionState.SUBSCRIBED,
    }
)


class ConnectionManager:
    """Drives one peripheral through connect, discovery and subscription.

    States advance ``disconnected -> connecting -> connected ->
    services_discovered -> subscribed``; any transport failure moves to
    ``failed``, which only :meth:`disconnect` leaves. The manager owns the
    peripheral handle for its whole lifetime.
    """

    def __init__(
        self,
        transport: BLETransport,
        device: DeviceDescriptor,
        *,
        connect_timeout_s: float = 10.0,
    ) -> None:
        self._transport = transport
        self._device = device
        self._connect_timeout_s = connect_timeout_s
        self._state = ConnectionState.DISCONNECTED
        self._characteristics: dict[str, CharacteristicDescriptor] = {}
        self._stream: NotificationStream | None = None

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def device(self) -> DeviceDescriptor:
        return self._device

    @property
    def characteristics(self) -> Mapping[str, CharacteristicDescriptor]:
        return MappingProxyType(self._characteristics)

    @property
    def notifications(self) -> NotificationStream:
        if self._state is not ConnectionState.SUBSCRIBED or self._stream is None:
            raise InvalidStateError(f"Notifications are only available once subscribed (state: {self._state.value})")
        return self._stream

    def _set_state(self, state: ConnectionState) -> None:
        LOGGER.debug("%s: %s -> %s", self._device.address, self._state.value, state.value)
        self._state = state

    def _require(self, expected: ConnectionState, operation: str) -> None:
        if self._state is not expected:
            raise InvalidStateError(
                f"Cannot {operation} while {self._state.value}; expected {expected.value}"
            )

    async def connect(self) -> None:
        if self._state in _CONNECTED_OR_LATER:
            return
        self._require(ConnectionState.DISCONNECTED, "connect")

        self._set_state(ConnectionState.CONNECTING)
        LOGGER.info("Connecting to %s [%s]", self._device.display_name, self._device.address)
        try:
            await asyncio.wait_for(
                self._transport.connect(self._device.handle, timeout_s=self._connect_timeout_s),
                timeout=self._connect_timeout_s,
            )
        except asyncio.TimeoutError as exc:
            self._set_state(ConnectionState.FAILED)
            raise DeviceConnectionError(
                f"Connect to {self._device.address} timed out after {self._connect_timeout_s}s"
            ) from exc
        except TransportError as exc:
            self._set_state(ConnectionState.FAILED)
            raise DeviceConnectionError(f"Connect to {self._device.address} failed: {exc}") from exc
        self._set_state(ConnectionState.CONNECTED)
        LOGGER.info("Connected to %s", self._device.address)

    async def discover_services(self) -> None:
        self._require(ConnectionState.CONNECTED, "discover services")
        try:
            characteristics = await self._transport.discover_characteristics(self._device.handle)
        except TransportError as exc:
            self._set_state(ConnectionState.FAILED)
            raise ServiceDiscoveryError(
                f"Service discovery on {self._device.address} failed: {exc}"
            ) from exc

        self._characteristics = {normalize_uuid(c.uuid): c for c in characteristics}
        LOGGER.debug("Discovered %d characteristic(s) on %s", len(self._characteristics), self._device.address)
        self._set_state(ConnectionState.SERVICES_DISCOVERED)

    async def subscribe(self, characteristic_uuid: str | int) -> NotificationStream:
        self._require(ConnectionState.SERVICES_DISCOVERED, "subscribe")
        uuid = normalize_uuid(characteristic_uuid)

        characteristic = self._characteristics.get(uuid)
        if characteristic is None:
            raise CharacteristicUnsupportedError(
                f"Device {self._device.address} does not expose characteristic {uuid}"
            )
        if not characteristic.supports_notify:
            raise CharacteristicUnsupportedError(
                f"Characteristic {uuid} on {self._device.address} does not support notifications"
            )

        try:
            stream = await self._transport.subscribe(self._device.handle, uuid)
        except TransportError as exc:
            self._set_state(ConnectionState.FAILED)
            raise SubscriptionError(f"Enabling notifications on {uuid} failed: {exc}") from exc

        self._stream = stream
        self._set_state(ConnectionState.SUBSCRIBED)
        LOGGER.info("Subscribed to %s on %s", uuid, self._device.address)
        return stream

    async def disconnect(self) -> None:
        if self._state is ConnectionState.DISCONNECTED:
            return
        try:
            await self._transport.disconnect(self._device.handle)
        except TransportError as exc:
            LOGGER.warning("Disconnect error on %s: %s", self._device.address, exc)
        finally:
            if self._stream is not None:
                self._stream.close()
            self._stream = None
            self._characteristics = {}
            self._set_state(ConnectionState.DISCONNECTED)
        LOGGER.info("Disconnected from %s", self._device.address)
