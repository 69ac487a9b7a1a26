"""
Shared fixtures: a pymodbus client stand-in that answers from a
VirtualAnalyzer, with switches for connection and read failures.
"""

import pytest
from pymodbus.exceptions import ModbusIOException

from analyzer.simulator.virtual_analyzer import (
    AnalyzerReadings,
    PhaseReadings,
    VirtualAnalyzer,
)


class FakeResponse:
    def __init__(self, registers=None, error=False):
        self.registers = registers or []
        self._error = error

    def isError(self):
        return self._error

    def __str__(self):
        return "ExceptionResponse(dev_id=1, function_code=131, exception_code=2)"


class FakeModbusClient:
    """Same constructor and calls as pymodbus ModbusTcpClient."""

    analyzer: VirtualAnalyzer = None
    refuse_connect = False
    raise_on_create = False
    close_raises = False
    fail_registers: set = set()
    error_registers: set = set()
    short_registers: set = set()
    instances: list = []

    def __init__(self, host, port=502, timeout=3, retries=3, **kwargs):
        if self.raise_on_create:
            raise OSError("Name or service not known")
        self.host = host
        self.port = port
        self.timeout = timeout
        self.retries = retries
        self.reads = []
        self.device_ids = []
        self.connected = False
        self.closed = False
        type(self).instances.append(self)

    def connect(self):
        self.connected = not self.refuse_connect
        return self.connected

    def read_holding_registers(self, address, *, count=1, device_id=1):
        self.reads.append(address)
        self.device_ids.append(device_id)
        if address in self.fail_registers:
            raise ModbusIOException("No response received after 0 retries")
        if address in self.error_registers:
            return FakeResponse(error=True)
        if address in self.short_registers:
            return FakeResponse(self.analyzer.read_registers(address, count - 1))
        return FakeResponse(self.analyzer.read_registers(address, count))

    def close(self):
        self.closed = True
        self.connected = False
        if self.close_raises:
            raise OSError("Connection reset by peer")


def distinct_readings() -> AnalyzerReadings:
    """Every field a different value, so any cross-assignment shows."""
    return AnalyzerReadings(
        imported_power_total=0x00010001,
        imported_reactive_power_total=0x00020002,
        exported_power_total=0x00030003,
        exported_reactive_power_total=0x00040004,
        phases=[
            PhaseReadings(power=0x00110011, apparent_power=0x00120012, reactive_power=0x00130013),
            PhaseReadings(power=0x00210021, apparent_power=0x00220022, reactive_power=0x00230023),
            PhaseReadings(power=0x00310031, apparent_power=0x00320032, reactive_power=0x00330033),
        ],
    )


@pytest.fixture
def analyzer():
    return VirtualAnalyzer(distinct_readings(), name="Test Analyzer")


@pytest.fixture
def fake_client(analyzer):
    """A fresh FakeModbusClient subclass bound to the analyzer fixture."""
    return type(
        "BoundFakeModbusClient",
        (FakeModbusClient,),
        {
            "analyzer": analyzer,
            "fail_registers": set(),
            "error_registers": set(),
            "short_registers": set(),
            "instances": [],
        },
    )
