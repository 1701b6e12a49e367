from __future__ import annotations

import asyncio
from typing import Any

import pytest

from hrctl.core.model import CharacteristicDescriptor, DeviceDescriptor
from hrctl.core.stream import NotificationStream
from hrctl.core.uuids import HEART_RATE_MEASUREMENT_UUID, HEART_RATE_SERVICE_UUID, uuid_from_u16


class FakeTransport:
    def __init__(self) -> None:
        self.devices: list[DeviceDescriptor] = []
        self.characteristics: list[CharacteristicDescriptor] = []
        self.payloads: list[bytes] = []
        self.end_stream = True
        self.connect_delay_s = 0.0
        self.failures: dict[str, Exception] = {}
        self.calls: list[str] = []
        self.stream: NotificationStream | None = None

    def count(self, name: str) -> int:
        return self.calls.count(name)

    def _record(self, name: str) -> None:
        self.calls.append(name)
        failure = self.failures.get(name)
        if failure is not None:
            raise failure

    async def start_scan(self, service_filter: str) -> None:
        self._record("start_scan")

    async def stop_scan(self) -> None:
        self._record("stop_scan")

    async def list_discovered(self) -> list[DeviceDescriptor]:
        self._record("list_discovered")
        return list(self.devices)

    async def connect(self, handle: Any, *, timeout_s: float) -> None:
        self._record("connect")
        if self.connect_delay_s:
            await asyncio.sleep(self.connect_delay_s)

    async def discover_characteristics(self, handle: Any) -> list[CharacteristicDescriptor]:
        self._record("discover_characteristics")
        return list(self.characteristics)

    async def subscribe(self, handle: Any, characteristic_uuid: str) -> NotificationStream:
        self._record("subscribe")
        stream = NotificationStream()
        for payload in self.payloads:
            stream.push(payload)
        if self.end_stream:
            stream.close()
        self.stream = stream
        return stream

    async def disconnect(self, handle: Any) -> None:
        self._record("disconnect")


@pytest.fixture
def hr_device() -> DeviceDescriptor:
    return DeviceDescriptor(
        handle="C0:FF:EE:11:22:33",
        address="C0:FF:EE:11:22:33",
        service_uuids=frozenset({HEART_RATE_SERVICE_UUID, uuid_from_u16(0x180F)}),
        name="Polar H10 1A2B3C",
    )


@pytest.fixture
def other_device() -> DeviceDescriptor:
    return DeviceDescriptor(
        handle="AA:BB:CC:00:00:01",
        address="AA:BB:CC:00:00:01",
        service_uuids=frozenset({uuid_from_u16(0x180F)}),
        name="Heart Rate Lookalike",
    )


@pytest.fixture
def transport(hr_device: DeviceDescriptor) -> FakeTransport:
    fake = FakeTransport()
    fake.devices = [hr_device]
    fake.characteristics = [
        CharacteristicDescriptor(
            uuid=HEART_RATE_MEASUREMENT_UUID,
            service_uuid=HEART_RATE_SERVICE_UUID,
            properties=frozenset({"notify"}),
        ),
        CharacteristicDescriptor(
            uuid=uuid_from_u16(0x2A38),
            service_uuid=HEART_RATE_SERVICE_UUID,
            properties=frozenset({"read"}),
        ),
    ]
    return fake
