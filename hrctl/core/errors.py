"""Domain-specific errors for hrctl."""

from __future__ import annotations

from hrctl.core.model import DecodeErrorKind


class HrctlError(Exception):
    """Base error for hrctl."""


class ConfigLoadError(HrctlError):
    """Raised when the config file cannot be read."""


class ConfigValidationError(HrctlError):
    """Raised when the config file does not conform to schema or semantics."""


class AdapterUnavailableError(HrctlError):
    """Raised when no usable Bluetooth adapter can start scanning."""


class DeviceNotFoundError(HrctlError):
    """Raised when the scan window elapsed with no matching advertiser."""


class DeviceConnectionError(HrctlError):
    """Raised when the peripheral rejected or timed out the connect attempt."""


class ServiceDiscoveryError(HrctlError):
    """Raised when characteristics could not be enumerated after connecting."""


class CharacteristicUnsupportedError(HrctlError):
    """Raised when the target characteristic is absent or cannot notify."""


class SubscriptionError(HrctlError):
    """Raised when the peripheral refused to enable notifications."""


class InvalidStateError(HrctlError):
    """Raised when a connection operation is invoked from the wrong state."""


class DecodeError(HrctlError):
    """Raised for a malformed heart rate measurement payload.

    Non-fatal: the reading loop reports it and moves on to the next
    notification.
    """

    def __init__(self, kind: DecodeErrorKind, payload: bytes) -> None:
        self.kind = kind
        self.payload = bytes(payload)
        if kind is DecodeErrorKind.EMPTY:
            message = "Empty heart rate payload"
        else:
            message = f"Truncated heart rate payload: {self.payload.hex() or '<empty>'}"
        super().__init__(message)


class TransportError(HrctlError):
    """Base transport error."""


class TransportConnectError(TransportError):
    """Raised on BLE connect failures."""


class TransportTimeoutError(TransportError):
    """Raised when a BLE operation times out."""
