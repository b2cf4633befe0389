#!/usr/bin/env python3
"""
Bus Pirate I2C Sequence - CLI Entry Point

Usage:
    python -m sequences.buspirate_i2c.main range --port ttyUSB
    python -m sequences.buspirate_i2c.main temperature --port /dev/ttyUSB0
    python -m sequences.buspirate_i2c.main probe --port COM4 --verbose
"""

import asyncio
import logging
import sys
from typing import Any, Dict

import typer

from .drivers.bus_pirate import BusPirateDriver
from .libs.bp_protocol import BusPirateClient, BusPirateError, SerialTransport

app = typer.Typer(help="Read I2C sensors through a Bus Pirate in binary I2C mode")

DEFAULT_PORT = "COM" if sys.platform.startswith("win") else "ttyUSB"


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _build_driver(port: str, max_polls: int) -> BusPirateDriver:
    return BusPirateDriver(config={"port": port, "max_polls": max_polls})


async def _with_driver(driver: BusPirateDriver, action) -> Dict[str, Any]:
    if not await driver.connect():
        if driver.last_error is not None:
            raise driver.last_error
        raise BusPirateError(f"Could not bring {driver.port} into I2C mode")
    try:
        return await action(driver)
    finally:
        await driver.disconnect()


@app.command("range")
def read_range(
    port: str = typer.Option(DEFAULT_PORT, "--port", help="Serial port or substring"),
    attempts: int = typer.Option(100, "--attempts", min=1, help="Maximum readings"),
    stop_at: int = typer.Option(6, "--stop-at", help="Stop once distance (cm) is at or below this"),
    max_polls: int = typer.Option(100, "--max-polls", min=1, help="Mode entry poll bound"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Read the SRF10 range finder until it reports a close object."""
    _setup_logging(verbose)
    try:
        result = asyncio.run(_with_driver(
            _build_driver(port, max_polls),
            lambda d: d.measure_until(stop_at=stop_at, attempts=attempts),
        ))
    except BusPirateError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    last = result["last"]
    if last is None:
        typer.echo("Error: no reading taken", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"dist={last['distance_cm']}cm after {result['attempts']} reading(s)")
    if not last["acked"]:
        typer.echo("Warning: NAK seen on the bus", err=True)


@app.command("temperature")
def read_temperature(
    port: str = typer.Option(DEFAULT_PORT, "--port", help="Serial port or substring"),
    max_polls: int = typer.Option(100, "--max-polls", min=1, help="Mode entry poll bound"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Read the BMP180 raw temperature byte once."""
    _setup_logging(verbose)
    try:
        result = asyncio.run(_with_driver(
            _build_driver(port, max_polls),
            lambda d: d.read_temperature_raw(),
        ))
    except BusPirateError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo(f"temp raw={result['raw_value']}")
    if not result["acked"]:
        typer.echo("Warning: NAK seen on the bus", err=True)


@app.command("probe")
def probe(
    port: str = typer.Option(DEFAULT_PORT, "--port", help="Serial port or substring"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Report whether the adapter already answers in I2C mode."""
    _setup_logging(verbose)
    try:
        with SerialTransport(port) as transport:
            in_i2c = BusPirateClient(transport).verify_i2c_mode()
    except BusPirateError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None

    typer.echo("I2C1" if in_i2c else "not in I2C mode")
    if not in_i2c:
        raise typer.Exit(code=2)


def run() -> None:
    app()


if __name__ == "__main__":
    run()
