"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

import asyncio
import logging
import signal
from pathlib import Path

from hrctl.core.config import Settings, load_settings
from hrctl.core.decoder import decode_hex
from hrctl.core.model import DeviceDescriptor, HeartRateReading, RunSummary
from hrctl.core.orchestrator import DecodeErrorSink, ReadingOrchestrator, ReadingSink
from hrctl.core.scanner import DeviceScanner
from hrctl.transports.base import BLETransport
from hrctl.transports.bleak_gatt import BleakTransport

LOGGER = logging.getLogger(__name__)


class HeartRateService:
    def __init__(
        self,
        *,
        transport: BLETransport | None = None,
        settings: Settings | None = None,
        config_path: Path | None = None,
    ) -> None:
        self.settings = settings or load_settings(config_path)
        self.transport = transport or BleakTransport(adapter=self.settings.adapter)

    def orchestrator(self) -> ReadingOrchestrator:
        return ReadingOrchestrator(
            self.transport,
            service_uuid=self.settings.service_uuid,
            characteristic_uuid=self.settings.characteristic_uuid,
            scan_window_s=self.settings.scan_window_s,
            connect_timeout_s=self.settings.connect_timeout_s,
        )

    def list_devices(self) -> list[DeviceDescriptor]:
        scanner = DeviceScanner(self.transport)
        return asyncio.run(scanner.scan(self.settings.service_uuid, self.settings.scan_window_s))

    def watch(
        self,
        on_reading: ReadingSink,
        on_decode_error: DecodeErrorSink | None = None,
    ) -> RunSummary:
        return asyncio.run(self._watch(on_reading, on_decode_error))

    async def _watch(
        self,
        on_reading: ReadingSink,
        on_decode_error: DecodeErrorSink | None,
    ) -> RunSummary:
        # SIGINT sets the stop event so an interrupted run still returns its summary.
        stop = asyncio.Event()
        loop = asyncio.get_running_loop()
        try:
            loop.add_signal_handler(signal.SIGINT, stop.set)
        except (NotImplementedError, RuntimeError, ValueError) as exc:
            LOGGER.debug("SIGINT handler unavailable, relying on KeyboardInterrupt: %s", exc)
            handler_installed = False
        else:
            handler_installed = True
        try:
            return await self.orchestrator().run(on_reading, on_decode_error=on_decode_error, stop=stop)
        finally:
            if handler_installed:
                loop.remove_signal_handler(signal.SIGINT)

    def decode_hex(self, payload_hex: str) -> HeartRateReading:
        return decode_hex(payload_hex)
