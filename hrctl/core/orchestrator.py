"""End-to-end heart rate reading: scan, connect, subscribe, decode."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from hrctl.core.connection import ConnectionManager
from hrctl.core.decoder import decode
from hrctl.core.errors import DecodeError, DeviceNotFoundError
from hrctl.core.model import HeartRateReading, RunSummary, TerminationReason
from hrctl.core.scanner import DeviceScanner
from hrctl.core.stream import NotificationStream
from hrctl.core.uuids import HEART_RATE_MEASUREMENT_UUID, HEART_RATE_SERVICE_UUID, normalize_uuid
from hrctl.transports.base import BLETransport

LOGGER = logging.getLogger(__name__)

ReadingSink = Callable[[HeartRateReading], None]
DecodeErrorSink = Callable[[DecodeError], None]


class ReadingOrchestrator:
    def __init__(
        self,
        transport: BLETransport,
        *,
        service_uuid: str | int = HEART_RATE_SERVICE_UUID,
        characteristic_uuid: str | int = HEART_RATE_MEASUREMENT_UUID,
        scan_window_s: float = 2.0,
        connect_timeout_s: float = 10.0,
    ) -> None:
        self._transport = transport
        self._scanner = DeviceScanner(transport)
        self._service_uuid = normalize_uuid(service_uuid)
        self._characteristic_uuid = normalize_uuid(characteristic_uuid)
        self._scan_window_s = scan_window_s
        self._connect_timeout_s = connect_timeout_s
        self._connection: ConnectionManager | None = None

    @property
    def connection(self) -> ConnectionManager | None:
        return self._connection

    async def run(
        self,
        on_reading: ReadingSink,
        *,
        on_decode_error: DecodeErrorSink | None = None,
        stop: asyncio.Event | None = None,
    ) -> RunSummary:
        """Stream decoded readings until the peripheral goes away or stop is set.

        Setup errors propagate. Malformed notifications are reported through
        on_decode_error (logged when it is omitted) and never end the run.
        The connection is released exactly once on every exit path, including
        task cancellation.
        """
        device = await self._scanner.discover(self._service_uuid, self._scan_window_s)
        if device is None:
            raise DeviceNotFoundError(
                f"No device advertising {self._service_uuid} found within {self._scan_window_s}s. "
                "Ensure the sensor is on and not connected elsewhere."
            )

        connection = ConnectionManager(self._transport, device, connect_timeout_s=self._connect_timeout_s)
        self._connection = connection
        readings = 0
        decode_errors = 0
        reason = TerminationReason.STREAM_ENDED
        watcher: asyncio.Task[None] | None = None
        try:
            await connection.connect()
            await connection.discover_services()
            stream = await connection.subscribe(self._characteristic_uuid)
            if stop is not None:
                watcher = asyncio.create_task(_close_on_stop(stop, stream))

            async for payload in stream:
                if stop is not None and stop.is_set():
                    break
                try:
                    reading = decode(payload)
                except DecodeError as exc:
                    decode_errors += 1
                    if on_decode_error is None:
                        LOGGER.warning("Could not decode notification %s: %s", payload.hex(), exc)
                    else:
                        on_decode_error(exc)
                    continue
                readings += 1
                on_reading(reading)

            if stop is not None and stop.is_set():
                reason = TerminationReason.STOPPED
        finally:
            if watcher is not None:
                watcher.cancel()
                await asyncio.gather(watcher, return_exceptions=True)
            await connection.disconnect()

        LOGGER.info("Reading loop ended (%s): %d reading(s), %d decode error(s)", reason.value, readings, decode_errors)
        return RunSummary(device=device, readings=readings, decode_errors=decode_errors, reason=reason)


async def _close_on_stop(stop: asyncio.Event, stream: NotificationStream) -> None:
    await stop.wait()
    stream.close(discard_pending=True)
