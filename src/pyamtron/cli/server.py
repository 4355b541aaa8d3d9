#!/usr/bin/env python3
"""JSON-RPC server for a Mennekes Amtron charger.

Connects to the charger over Modbus RTU, keeps the energy-manager heartbeat
alive and serves the controller over JSON-RPC 2.0 on HTTP.

Configuration comes from environment variables (optionally a ``.env`` file)
and can be overridden on the command line.

Usage:
    pyamtron-rpc                              # Settings from environment/.env
    pyamtron-rpc --port /dev/ttyUSB1 --rpc-port 9000
    pyamtron-rpc --help
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from pyamtron import __version__
from pyamtron.devices.charger import ChargerController
from pyamtron.rpc.server import RpcServer
from pyamtron.transports.config import RpcConfig, SerialConfig
from pyamtron.transports.events import ConnectionEvent
from pyamtron.transports.exceptions import TransportConnectionError
from pyamtron.transports.modbus_serial import ModbusSerialTransport

_LOGGER = logging.getLogger("pyamtron")

DEFAULT_LOG_FILE = "logs/amtron-rpc.log"
LOG_MAX_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="pyamtron-rpc",
        description="Serve a Mennekes Amtron charger over JSON-RPC.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment variables:
  MODBUS_PORT, MODBUS_BAUDRATE, MODBUS_DATABITS, MODBUS_PARITY,
  MODBUS_STOPBITS, MODBUS_SLAVE_ID, MODBUS_TIMEOUT (ms),
  MODBUS_MAX_RETRIES, MODBUS_RECONNECT_INTERVAL (ms),
  RPC_HOST, RPC_PORT, HEARTBEAT_ENABLED, LOG_LEVEL, LOG_FILE
""",
    )

    # Modbus options
    modbus_group = parser.add_argument_group("Modbus Options")
    modbus_group.add_argument("--port", "-p", help="Serial port (e.g. /dev/ttyUSB0, COM3)")
    modbus_group.add_argument("--baudrate", "-b", type=int, help="Baud rate (default: 57600)")
    modbus_group.add_argument(
        "--parity",
        choices=["none", "even", "odd", "N", "E", "O"],
        help="Parity (default: none)",
    )
    modbus_group.add_argument("--stopbits", type=int, choices=[1, 2], help="Stop bits (default: 2)")
    modbus_group.add_argument(
        "--unit-id",
        "-u",
        type=int,
        help="Modbus unit ID (1 direct, 50 satellite; default: 1)",
    )
    modbus_group.add_argument(
        "--no-heartbeat",
        action="store_true",
        help="Do not send the energy-manager heartbeat",
    )

    # RPC options
    rpc_group = parser.add_argument_group("RPC Options")
    rpc_group.add_argument("--rpc-host", help="Interface to bind (default: 0.0.0.0)")
    rpc_group.add_argument("--rpc-port", type=int, help="HTTP port (default: 8080)")

    # Output options
    output_group = parser.add_argument_group("Output Options")
    output_group.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (default: info)",
    )
    output_group.add_argument(
        "--log-file",
        help=f"Log file, empty to disable (default: {DEFAULT_LOG_FILE})",
    )
    output_group.add_argument("--env-file", type=Path, help="Load settings from this .env file")

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def build_config(args: argparse.Namespace) -> tuple[SerialConfig, RpcConfig]:
    """Merge environment settings with command-line overrides."""
    serial_config = SerialConfig.from_env(dotenv_path=args.env_file)
    rpc_config = RpcConfig.from_env()

    if args.port:
        serial_config.port = args.port
    if args.baudrate is not None:
        serial_config.baudrate = args.baudrate
    if args.parity:
        serial_config.parity = args.parity
    if args.stopbits is not None:
        serial_config.stopbits = args.stopbits
    if args.unit_id is not None:
        serial_config.unit_id = args.unit_id
    if args.no_heartbeat:
        serial_config.keep_alive_enabled = False
    if args.rpc_host:
        rpc_config.host = args.rpc_host
    if args.rpc_port is not None:
        rpc_config.port = args.rpc_port

    # Re-run normalisation for overridden fields
    serial_config = SerialConfig.from_dict(serial_config.to_dict())
    serial_config.validate()
    return serial_config, rpc_config


def setup_logging(level: str, log_file: str | None) -> None:
    """Configure console and rotating file logging.

    Everything goes to ``log_file``; errors are additionally written to
    ``error.log`` in the same directory.
    """
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    root = logging.getLogger()
    root.setLevel(level.upper())

    console = logging.StreamHandler()
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_path, maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
        )
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

        error_handler = RotatingFileHandler(
            log_path.parent / "error.log", maxBytes=LOG_MAX_BYTES, backupCount=LOG_BACKUP_COUNT
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        root.addHandler(error_handler)

    # pymodbus logs every failed frame at ERROR/DEBUG
    logging.getLogger("pymodbus").setLevel(logging.WARNING)


async def run_server(serial_config: SerialConfig, rpc_config: RpcConfig) -> int:
    """Connect, serve until SIGINT/SIGTERM, then shut down."""
    _LOGGER.info("=" * 60)
    _LOGGER.info("Starting Mennekes Amtron RPC Server %s", __version__)
    _LOGGER.info("  Modbus Port: %s", serial_config.port)
    _LOGGER.info("  Modbus Baud Rate: %d", serial_config.baudrate)
    _LOGGER.info("  Modbus Unit ID: %d", serial_config.unit_id)
    _LOGGER.info("  RPC Server: %s:%d", rpc_config.host, rpc_config.port)
    _LOGGER.info("  Heartbeat Enabled: %s", serial_config.keep_alive_enabled)
    _LOGGER.info("=" * 60)

    transport = ModbusSerialTransport.from_config(serial_config)
    transport.add_listener(ConnectionEvent.CONNECTED, lambda: _LOGGER.info("Modbus client connected"))
    transport.add_listener(
        ConnectionEvent.DISCONNECTED, lambda: _LOGGER.warning("Modbus client disconnected")
    )
    transport.add_listener(
        ConnectionEvent.CONNECTION_LOST,
        lambda: _LOGGER.error("Modbus connection lost, attempting to reconnect..."),
    )
    transport.add_listener(
        ConnectionEvent.ERROR, lambda err: _LOGGER.error("Modbus error: %s", err)
    )

    controller = ChargerController(transport)
    server = RpcServer(controller, host=rpc_config.host, port=rpc_config.port)

    try:
        await transport.connect()
    except TransportConnectionError as err:
        _LOGGER.warning("Charger not reachable yet (%s); retrying in the background", err)

    if serial_config.keep_alive_enabled:
        transport.start_keep_alive()

    if transport.is_connected:
        info = await controller.get_device_info()
        _LOGGER.info("Device Information:")
        _LOGGER.info("  Modbus Version: %s", info.modbus_version)
        _LOGGER.info("  Firmware Version: %s", info.firmware_version)
        _LOGGER.info("  Serial Number: %s", info.serial_number)
        _LOGGER.info("  Max Current EVSE: %sA", info.max_current_evse)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop_event.set)

    try:
        await server.start()
    except OSError as err:
        _LOGGER.error("Failed to start RPC server: %s", err)
        await transport.disconnect()
        return 1

    _LOGGER.info("JSON-RPC endpoint: http://%s:%d", rpc_config.host, rpc_config.port)

    try:
        await stop_event.wait()
    finally:
        _LOGGER.info("Shutting down gracefully...")
        await server.stop()
        await transport.stop_keep_alive()
        await transport.disconnect()
        _LOGGER.info("Shutdown complete")
    return 0


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    try:
        serial_config, rpc_config = build_config(args)
    except ValueError as err:
        parser.error(str(err))

    level = args.log_level or os.environ.get("LOG_LEVEL") or "info"
    log_file = args.log_file if args.log_file is not None else os.environ.get("LOG_FILE")
    setup_logging(level, DEFAULT_LOG_FILE if log_file is None else log_file)

    try:
        return asyncio.run(run_server(serial_config, rpc_config))
    except KeyboardInterrupt:
        return 0


if __name__ == "__main__":
    sys.exit(main())
