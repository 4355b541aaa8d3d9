"""Tests for the pyamtron-rpc command line entry point."""

from __future__ import annotations

import asyncio
import logging
import os
import signal
from collections.abc import AsyncIterator, Iterable, Iterator
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from pyamtron.cli.server import build_config, create_parser, run_server, setup_logging
from pyamtron.transports.config import RpcConfig, SerialConfig
from pyamtron.transports.exceptions import TransportConnectionError


@pytest.fixture
def clean_env() -> Iterator[None]:
    """Empty environment and no .env loading."""
    with (
        patch.dict(os.environ, {}, clear=True),
        patch("pyamtron.transports.config.load_dotenv"),
    ):
        yield


class TestCreateParser:
    """Tests for argument parsing."""

    def test_defaults_are_unset(self) -> None:
        """Unset options fall through to the environment."""
        args = create_parser().parse_args([])

        assert args.port is None
        assert args.unit_id is None
        assert args.no_heartbeat is False
        assert args.log_file is None

    def test_short_options(self) -> None:
        args = create_parser().parse_args(["-p", "COM4", "-b", "19200", "-u", "50"])

        assert args.port == "COM4"
        assert args.baudrate == 19200
        assert args.unit_id == 50

    def test_invalid_parity(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(["--parity", "mark"])

    def test_version(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            create_parser().parse_args(["--version"])

        assert exc_info.value.code == 0
        assert "pyamtron-rpc" in capsys.readouterr().out


class TestBuildConfig:
    """Environment and command-line merging."""

    def test_environment_defaults(self, clean_env: None) -> None:
        os.environ.update(
            {
                "MODBUS_PORT": "/dev/ttyAMA0",
                "MODBUS_TIMEOUT": "2000",
                "RPC_HOST": "127.0.0.1",
                "RPC_PORT": "8081",
            }
        )

        serial_config, rpc_config = build_config(create_parser().parse_args([]))

        assert serial_config.port == "/dev/ttyAMA0"
        assert serial_config.timeout == 2.0
        assert serial_config.keep_alive_enabled is True
        assert rpc_config == RpcConfig(host="127.0.0.1", port=8081)

    def test_command_line_overrides(self, clean_env: None) -> None:
        os.environ["MODBUS_PORT"] = "/dev/ttyAMA0"
        args = create_parser().parse_args(
            [
                "--port",
                "/dev/ttyUSB1",
                "--parity",
                "even",
                "--stopbits",
                "1",
                "--unit-id",
                "50",
                "--no-heartbeat",
                "--rpc-port",
                "9000",
            ]
        )

        serial_config, rpc_config = build_config(args)

        assert serial_config.port == "/dev/ttyUSB1"
        assert serial_config.parity == "E"
        assert serial_config.stopbits == 1
        assert serial_config.unit_id == 50
        assert serial_config.keep_alive_enabled is False
        assert rpc_config.port == 9000

    def test_invalid_unit_id(self, clean_env: None) -> None:
        with pytest.raises(ValueError, match="unit_id"):
            build_config(create_parser().parse_args(["--unit-id", "300"]))


class TestSetupLogging:
    """Console and rotating file handlers."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self) -> Iterator[None]:
        root = logging.getLogger()
        handlers = list(root.handlers)
        level = root.level
        yield
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers = handlers
        root.setLevel(level)

    def test_creates_log_files(self, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "amtron-rpc.log"

        setup_logging("info", str(log_file))
        logging.getLogger("pyamtron.test").info("hello")
        logging.getLogger("pyamtron.test").error("broken")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "hello" in log_file.read_text()
        error_log = (tmp_path / "logs" / "error.log").read_text()
        assert "broken" in error_log
        assert "hello" not in error_log

    def test_without_file(self, tmp_path: Path) -> None:
        setup_logging("debug", "")

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("pymodbus").level == logging.WARNING
        assert list(tmp_path.iterdir()) == []


class TestRunServer:
    """Startup and failure paths of the service loop."""

    @pytest.fixture
    def mock_transport(self) -> MagicMock:
        transport = MagicMock()
        transport.is_connected = False
        transport.connect = AsyncMock(side_effect=TransportConnectionError("no such port"))
        transport.disconnect = AsyncMock()
        transport.stop_keep_alive = AsyncMock()

        async def read_many(names: Iterable[str]) -> dict[str, Any]:
            return dict.fromkeys(names)

        transport.read_many = AsyncMock(side_effect=read_many)
        return transport

    @pytest.fixture(autouse=True)
    async def remove_signal_handlers(self) -> AsyncIterator[None]:
        yield
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.remove_signal_handler(sig)

    @pytest.mark.asyncio
    async def test_port_in_use_exits_with_error(self, mock_transport: MagicMock) -> None:
        server = MagicMock()
        server.start = AsyncMock(side_effect=OSError("address in use"))

        with (
            patch(
                "pyamtron.cli.server.ModbusSerialTransport.from_config",
                return_value=mock_transport,
            ),
            patch("pyamtron.cli.server.RpcServer", return_value=server),
        ):
            result = await run_server(SerialConfig(), RpcConfig())

        assert result == 1
        mock_transport.start_keep_alive.assert_called_once()
        mock_transport.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_shutdown_on_stop_signal(self, mock_transport: MagicMock) -> None:
        mock_transport.connect = AsyncMock()
        mock_transport.is_connected = True
        server = MagicMock()
        server.stop = AsyncMock()

        async def start() -> None:
            asyncio.get_running_loop().call_soon(os.kill, os.getpid(), signal.SIGTERM)

        server.start = AsyncMock(side_effect=start)

        with (
            patch(
                "pyamtron.cli.server.ModbusSerialTransport.from_config",
                return_value=mock_transport,
            ),
            patch("pyamtron.cli.server.RpcServer", return_value=server),
        ):
            result = await asyncio.wait_for(
                run_server(SerialConfig(keep_alive_enabled=False), RpcConfig()), timeout=5
            )

        assert result == 0
        mock_transport.start_keep_alive.assert_not_called()
        mock_transport.read_many.assert_awaited_once()
        server.stop.assert_awaited_once()
        mock_transport.stop_keep_alive.assert_awaited_once()
        mock_transport.disconnect.assert_awaited_once()
