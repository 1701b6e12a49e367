"""Typer CLI entrypoint."""

from __future__ import annotations

import logging
from pathlib import Path

import typer

from hrctl.core.config import load_settings
from hrctl.core.decoder import decode_hex
from hrctl.core.errors import DecodeError, HrctlError
from hrctl.core.model import HeartRateReading
from hrctl.core.service import HeartRateService

app = typer.Typer(help="Bluetooth LE heart rate monitor client")

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format=_LOG_FORMAT)


def _build_service(
    config: Path | None,
    *,
    adapter: str | None = None,
    scan_window: float | None = None,
    connect_timeout: float | None = None,
) -> HeartRateService:
    settings = load_settings(config).with_overrides(
        adapter=adapter,
        scan_window_s=scan_window,
        connect_timeout_s=connect_timeout,
    )
    return HeartRateService(settings=settings)


def _print_reading(reading: HeartRateReading) -> None:
    typer.echo(f"Heart rate: {reading.bpm} BPM")


def _print_decode_error(error: DecodeError) -> None:
    typer.echo(
        f"Warning: could not decode notification {error.payload.hex() or '<empty>'} ({error.kind.value})",
        err=True,
    )


@app.command("watch")
def watch(
    scan_window: float | None = typer.Option(None, "--scan-window", min=0.1, help="Seconds to scan before connecting"),
    connect_timeout: float | None = typer.Option(None, "--connect-timeout", min=0.1, help="Seconds to wait for connect"),
    adapter: str | None = typer.Option(None, "--adapter", help="Bluetooth adapter name, e.g. hci0"),
    config: Path | None = typer.Option(None, "--config", help="Path to a YAML config file"),
) -> None:
    """Connect to the first heart rate sensor found and print readings."""
    try:
        service = _build_service(
            config,
            adapter=adapter,
            scan_window=scan_window,
            connect_timeout=connect_timeout,
        )
        typer.echo(f"Scanning {service.settings.scan_window_s:g}s for heart rate devices...")
        summary = service.watch(_print_reading, on_decode_error=_print_decode_error)
        typer.echo(
            f"Disconnected from {summary.device.display_name} [{summary.device.address}]: "
            f"{summary.readings} reading(s), {summary.decode_errors} decode error(s)"
        )
    except KeyboardInterrupt:
        typer.echo("Stopped", err=True)
    except HrctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("scan")
def scan(
    scan_window: float | None = typer.Option(None, "--scan-window", min=0.1, help="Seconds to scan"),
    adapter: str | None = typer.Option(None, "--adapter", help="Bluetooth adapter name, e.g. hci0"),
    config: Path | None = typer.Option(None, "--config", help="Path to a YAML config file"),
) -> None:
    """List nearby devices advertising the heart rate service."""
    try:
        service = _build_service(config, adapter=adapter, scan_window=scan_window)
        devices = service.list_devices()
        if not devices:
            typer.echo("No heart rate devices found")
            return

        for device in devices:
            typer.echo(f"{device.address} {device.display_name}")
    except HrctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


@app.command("decode")
def decode_payload(payload: str = typer.Argument(..., help="Notification payload as hex, e.g. 0048")) -> None:
    """Decode a single Heart Rate Measurement payload."""
    try:
        reading = decode_hex(payload)
    except ValueError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None
    except DecodeError as exc:
        typer.echo(f"Error: {exc} ({exc.kind.value})", err=True)
        raise typer.Exit(code=1) from None
    _print_reading(reading)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
