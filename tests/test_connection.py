from __future__ import annotations

import asyncio

import pytest

from hrctl.core.connection import ConnectionManager
from hrctl.core.errors import (
    CharacteristicUnsupportedError,
    DeviceConnectionError,
    InvalidStateError,
    ServiceDiscoveryError,
    SubscriptionError,
    TransportConnectError,
    TransportError,
)
from hrctl.core.model import CharacteristicDescriptor, ConnectionState
from hrctl.core.uuids import HEART_RATE_MEASUREMENT_UUID, HEART_RATE_SERVICE_UUID, uuid_from_u16


def test_full_setup_walks_every_state(transport, hr_device) -> None:
    manager = ConnectionManager(transport, hr_device)
    seen: list[ConnectionState] = []

    async def scenario() -> None:
        seen.append(manager.state)
        await manager.connect()
        seen.append(manager.state)
        await manager.discover_services()
        seen.append(manager.state)
        assert HEART_RATE_MEASUREMENT_UUID in manager.characteristics
        stream = await manager.subscribe(0x2A37)
        seen.append(manager.state)
        assert manager.notifications is stream
        await manager.disconnect()
        seen.append(manager.state)

    asyncio.run(scenario())

    assert seen == [
        ConnectionState.DISCONNECTED,
        ConnectionState.CONNECTED,
        ConnectionState.SERVICES_DISCOVERED,
        ConnectionState.SUBSCRIBED,
        ConnectionState.DISCONNECTED,
    ]


def test_connect_is_idempotent(transport, hr_device) -> None:
    manager = ConnectionManager(transport, hr_device)

    async def scenario() -> None:
        await manager.connect()
        await manager.connect()
        await manager.discover_services()
        await manager.connect()

    asyncio.run(scenario())
    assert transport.count("connect") == 1
    assert manager.state is ConnectionState.SERVICES_DISCOVERED


def test_connect_rejection_fails(transport, hr_device) -> None:
    transport.failures["connect"] = TransportConnectError("le-connection-abort-by-local")
    manager = ConnectionManager(transport, hr_device)

    with pytest.raises(DeviceConnectionError) as exc:
        asyncio.run(manager.connect())

    assert manager.state is ConnectionState.FAILED
    assert isinstance(exc.value.__cause__, TransportConnectError)


def test_connect_timeout_fails(transport, hr_device) -> None:
    transport.connect_delay_s = 1.0
    manager = ConnectionManager(transport, hr_device, connect_timeout_s=0.01)

    with pytest.raises(DeviceConnectionError, match="timed out"):
        asyncio.run(manager.connect())
    assert manager.state is ConnectionState.FAILED


def test_failed_is_absorbing_until_disconnect(transport, hr_device) -> None:
    transport.failures["connect"] = TransportConnectError("refused")
    manager = ConnectionManager(transport, hr_device)

    async def scenario() -> None:
        with pytest.raises(DeviceConnectionError):
            await manager.connect()
        with pytest.raises(InvalidStateError):
            await manager.connect()
        with pytest.raises(InvalidStateError):
            await manager.discover_services()
        await manager.disconnect()

    asyncio.run(scenario())
    assert manager.state is ConnectionState.DISCONNECTED
    assert transport.count("connect") == 1
    assert transport.count("disconnect") == 1


def test_discovery_requires_connection(transport, hr_device) -> None:
    manager = ConnectionManager(transport, hr_device)
    with pytest.raises(InvalidStateError):
        asyncio.run(manager.discover_services())
    assert transport.count("discover_characteristics") == 0


def test_discovery_failure(transport, hr_device) -> None:
    transport.failures["discover_characteristics"] = TransportError("gatt error")
    manager = ConnectionManager(transport, hr_device)

    async def scenario() -> None:
        await manager.connect()
        await manager.discover_services()

    with pytest.raises(ServiceDiscoveryError):
        asyncio.run(scenario())
    assert manager.state is ConnectionState.FAILED


def test_subscribe_to_characteristic_without_notify(transport, hr_device) -> None:
    transport.characteristics = [
        CharacteristicDescriptor(
            uuid=HEART_RATE_MEASUREMENT_UUID,
            service_uuid=HEART_RATE_SERVICE_UUID,
            properties=frozenset({"read"}),
        )
    ]
    manager = ConnectionManager(transport, hr_device)

    async def scenario() -> None:
        await manager.connect()
        await manager.discover_services()
        await manager.subscribe(HEART_RATE_MEASUREMENT_UUID)

    with pytest.raises(CharacteristicUnsupportedError, match="notifications"):
        asyncio.run(scenario())
    assert manager.state is ConnectionState.SERVICES_DISCOVERED
    assert transport.count("subscribe") == 0
    with pytest.raises(InvalidStateError):
        _ = manager.notifications


def test_subscribe_to_missing_characteristic(transport, hr_device) -> None:
    manager = ConnectionManager(transport, hr_device)

    async def scenario() -> None:
        await manager.connect()
        await manager.discover_services()
        await manager.subscribe(uuid_from_u16(0x2A19))

    with pytest.raises(CharacteristicUnsupportedError, match="does not expose"):
        asyncio.run(scenario())
    assert manager.state is ConnectionState.SERVICES_DISCOVERED


def test_subscription_refused(transport, hr_device) -> None:
    transport.failures["subscribe"] = TransportError("not permitted")
    manager = ConnectionManager(transport, hr_device)

    async def scenario() -> None:
        await manager.connect()
        await manager.discover_services()
        await manager.subscribe(HEART_RATE_MEASUREMENT_UUID)

    with pytest.raises(SubscriptionError):
        asyncio.run(scenario())
    assert manager.state is ConnectionState.FAILED


def test_disconnect_swallows_transport_errors(transport, hr_device, caplog: pytest.LogCaptureFixture) -> None:
    transport.failures["disconnect"] = TransportError("already gone")
    transport.end_stream = False
    manager = ConnectionManager(transport, hr_device)

    async def scenario() -> None:
        await manager.connect()
        await manager.discover_services()
        stream = await manager.subscribe(HEART_RATE_MEASUREMENT_UUID)
        await manager.disconnect()
        assert stream.closed

    asyncio.run(scenario())
    assert manager.state is ConnectionState.DISCONNECTED
    assert "already gone" in caplog.text


def test_disconnect_when_disconnected_is_a_no_op(transport, hr_device) -> None:
    manager = ConnectionManager(transport, hr_device)
    asyncio.run(manager.disconnect())
    assert transport.count("disconnect") == 0
