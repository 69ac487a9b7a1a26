"""
Device Service - Modbus Communication

Responsibilities:
- Open one Modbus TCP connection per poll
- Read the fixed register battery of the power analyzer
- Decode u32 measurements and assemble a Snapshot
- Attribute failures to the register that caused them
"""

from .modbus_client import ModbusTransport, decode_u32, parse_address
from .poller import AnalyzerPoller
from .registers import (
    AGGREGATE_REGISTERS,
    PHASE_FIELD_BASES,
    PhaseField,
    phase_register,
    poll_plan,
)
from .snapshot import PhasePower, Snapshot

__all__ = [
    "AnalyzerPoller",
    "ModbusTransport",
    "decode_u32",
    "parse_address",
    "AGGREGATE_REGISTERS",
    "PHASE_FIELD_BASES",
    "PhaseField",
    "phase_register",
    "poll_plan",
    "PhasePower",
    "Snapshot",
]
