"""Advertisement-to-service matching logic."""

from __future__ import annotations

from collections.abc import Iterable

from hrctl.core.model import DeviceDescriptor
from hrctl.core.uuids import normalize_uuid


def _advertised(device: DeviceDescriptor) -> set[str]:
    advertised: set[str] = set()
    for uuid in device.service_uuids:
        try:
            advertised.add(normalize_uuid(uuid))
        except ValueError:
            continue
    return advertised


def advertises_service(device: DeviceDescriptor, service_uuid: str) -> bool:
    # Matching is by service UUID only; the advertised name is display-only.
    return normalize_uuid(service_uuid) in _advertised(device)


def matching_devices(devices: Iterable[DeviceDescriptor], service_uuid: str) -> list[DeviceDescriptor]:
    return [device for device in devices if advertises_service(device, service_uuid)]
