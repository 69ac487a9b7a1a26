#!/usr/bin/env python3
"""
Power Analyzer CLI - Poll the analyzer or read raw registers

Command-line tool for one-off polls and register inspection.

Usage:
    # Poll once and print the snapshot
    power-analyzer poll --address 192.168.1.50

    # Read one register (u16)
    power-analyzer read --address 192.168.1.50 --register 0x34

    # Read two registers as a u32 (high word first)
    power-analyzer read --address 192.168.1.50 --register 0x34 --u32

    # Take connection settings from a YAML file
    power-analyzer poll --config config.yaml

The device address falls back to the POWER_ANALYZER_IP environment variable.
Output is JSON for easy parsing by scripts.
"""

import argparse
import json
import os
import sys
from datetime import datetime, timezone
from typing import Any

from pymodbus.client import ModbusTcpClient

from analyzer.common.config import (
    AnalyzerConfig,
    DeviceConfig,
    LoggingSettings,
    load_config_file,
    validate_device_config,
)
from analyzer.common.exceptions import AnalyzerError
from analyzer.common.logging_setup import configure_logging
from analyzer.services.device.modbus_client import ModbusTransport
from analyzer.services.device.poller import AnalyzerPoller

ADDRESS_ENV_VAR = "POWER_ANALYZER_IP"


def register_number(text: str) -> int:
    """Parse a register address given in decimal or 0x hex"""
    try:
        value = int(text, 0)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid register address: {text!r}") from None
    if not 0 <= value <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"register address out of range: {text!r}")
    return value


def resolve_config(args: argparse.Namespace) -> AnalyzerConfig:
    """
    Build the configuration. The device address comes from, in order of
    precedence: --address, --config, then the POWER_ANALYZER_IP
    environment variable.
    """
    if args.config:
        config = load_config_file(args.config)
    else:
        config = AnalyzerConfig(
            device=DeviceConfig(address=os.environ.get(ADDRESS_ENV_VAR, "")),
            logging=LoggingSettings(level=os.environ.get("ANALYZER_LOG_LEVEL", "WARNING")),
        )

    device = config.device
    if args.address:
        device.address = args.address
    if args.timeout is not None:
        device.timeout_s = args.timeout
    if args.unit_id is not None:
        device.unit_id = args.unit_id

    validate_device_config(device)
    return config


def poll_device(device: DeviceConfig, client_class: Any = ModbusTcpClient) -> dict:
    """
    Poll the analyzer once.

    Returns:
        {
            "success": bool,
            "address": str,
            "timestamp": str,
            "snapshot": {...} | None,
            "error": str | None
        }
    """
    result = {
        "success": False,
        "address": device.address,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "snapshot": None,
        "error": None,
    }

    poller = AnalyzerPoller(
        unit_id=device.unit_id,
        timeout=device.timeout_s,
        client_class=client_class,
    )
    try:
        snapshot = poller.poll(device.address)
    except AnalyzerError as e:
        result["error"] = e.message
        return result

    result["success"] = True
    result["snapshot"] = snapshot.as_dict()
    return result


def read_registers(
    device: DeviceConfig,
    register: int,
    count: int = 1,
    as_u32: bool = False,
    client_class: Any = ModbusTcpClient,
) -> dict:
    """
    Read raw holding registers.

    Returns:
        {
            "success": bool,
            "address": str,
            "register": int,
            "registers": [int, ...],
            "value": int | None,
            "error": str | None
        }
    """
    if as_u32:
        count = 2

    result = {
        "success": False,
        "address": device.address,
        "register": register,
        "registers": [],
        "value": None,
        "error": None,
    }

    try:
        with ModbusTransport.open(
            device.address,
            unit_id=device.unit_id,
            timeout=device.timeout_s,
            client_class=client_class,
        ) as transport:
            if as_u32:
                result["value"] = transport.read_u32(register)
                result["registers"] = [result["value"] >> 16, result["value"] & 0xFFFF]
            elif count == 1:
                result["value"] = transport.read_u16(register)
                result["registers"] = [result["value"]]
            else:
                result["registers"] = transport.read_holding_registers(register, count)
    except AnalyzerError as e:
        result["error"] = e.message
        return result

    result["success"] = True
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="power-analyzer",
        description="Poll a power analyzer over Modbus TCP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    connection = argparse.ArgumentParser(add_help=False)
    connection.add_argument("--address", help=f"Device address, host[:port] (default: ${ADDRESS_ENV_VAR})")
    connection.add_argument("--config", help="YAML configuration file")
    connection.add_argument("--timeout", type=float, help="Read timeout in seconds")
    connection.add_argument("--unit-id", type=int, help="Modbus unit ID")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser("poll", parents=[connection], help="Poll all measurements once")

    read_parser = subparsers.add_parser("read", parents=[connection], help="Read raw holding registers")
    read_parser.add_argument("--register", type=register_number, required=True,
                             help="Starting register, decimal or 0x hex")
    read_parser.add_argument("--count", type=int, default=1, help="Number of registers (default: 1)")
    read_parser.add_argument("--u32", action="store_true", help="Read two registers as a u32")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 2

    if args.command == "read":
        if not 1 <= args.count <= 125:
            parser.error("--count must be 1-125")
        if args.u32 and args.count != 1:
            parser.error("--u32 reads two registers; do not combine it with --count")

    try:
        config = resolve_config(args)
    except AnalyzerError as e:
        print(json.dumps({"success": False, "error": e.message}))
        return 1

    # stdout carries the JSON result only
    configure_logging(config.logging.level, config.logging.json_format, stream=sys.stderr)
    device = config.device

    if args.command == "poll":
        result = poll_device(device, client_class=ModbusTcpClient)
    else:
        result = read_registers(
            device,
            args.register,
            count=args.count,
            as_u32=args.u32,
            client_class=ModbusTcpClient,
        )

    print(json.dumps(result))
    return 0 if result["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
