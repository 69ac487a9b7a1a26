#!/usr/bin/env python3
"""
Run the Virtual Power Analyzer

Starts a Modbus TCP server that serves the virtual analyzer's holding
registers, so the poller, CLI and API can run without hardware.

Usage:
    power-analyzer-sim                          # Default readings on port 5020
    power-analyzer-sim --port 1502
    power-analyzer-sim --imported 20000 --exported 150

Then, for example:
    power-analyzer poll --address 127.0.0.1:5020
"""

import argparse

from pymodbus.datastore import (
    ModbusDeviceContext,
    ModbusServerContext,
    ModbusSequentialDataBlock,
)
from pymodbus.server import ServerStop, StartTcpServer

from analyzer.common.logging_setup import get_service_logger
from .virtual_analyzer import AnalyzerReadings, VirtualAnalyzer

logger = get_service_logger("simulator")

REGISTER_BLOCK_SIZE = 0x100


class SimulatorServer:
    """
    Modbus TCP server that serves one virtual analyzer.
    """

    def __init__(
        self,
        analyzer: VirtualAnalyzer,
        host: str = "0.0.0.0",
        port: int = 5020,  # Non-standard port to avoid needing root
    ):
        self.analyzer = analyzer
        self.host = host
        self.port = port

    def holding_block(self) -> ModbusSequentialDataBlock:
        """Holding registers copied from the analyzer's register memory"""
        values = self.analyzer.read_registers(0, REGISTER_BLOCK_SIZE)
        # The device context serves request address N from block address N + 1.
        return ModbusSequentialDataBlock(1, values)

    def build_context(self) -> ModbusServerContext:
        """Create the server context from the analyzer's register memory"""
        device = ModbusDeviceContext(
            di=ModbusSequentialDataBlock(1, [0] * 8),
            co=ModbusSequentialDataBlock(1, [0] * 8),
            hr=self.holding_block(),
            ir=ModbusSequentialDataBlock(1, [0] * 8),
        )
        return ModbusServerContext(device, single=True)

    def run(self) -> None:
        """Start the Modbus TCP server. Blocks until interrupted."""
        logger.info(f"Starting Modbus TCP server on {self.host}:{self.port}")
        logger.info(f"Serving {self.analyzer!r}")
        StartTcpServer(
            context=self.build_context(),
            address=(self.host, self.port),
        )

    def stop(self) -> None:
        """Stop a server started by run(), from any thread"""
        ServerStop()
        logger.info("Modbus TCP server stopped")


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Serve a virtual power analyzer over Modbus TCP"
    )
    parser.add_argument(
        "--host", default="0.0.0.0",
        help="Address to bind (default: 0.0.0.0)"
    )
    parser.add_argument(
        "--port", type=int, default=5020,
        help="Modbus TCP port (default: 5020)"
    )
    parser.add_argument(
        "--imported", type=int, default=None,
        help="Imported power total (raw u32)"
    )
    parser.add_argument(
        "--exported", type=int, default=None,
        help="Exported power total (raw u32)"
    )

    args = parser.parse_args()

    readings = AnalyzerReadings()
    if args.imported is not None:
        readings.imported_power_total = args.imported
    if args.exported is not None:
        readings.exported_power_total = args.exported

    server = SimulatorServer(VirtualAnalyzer(readings), host=args.host, port=args.port)
    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Simulation stopped by user")


if __name__ == "__main__":
    main()
