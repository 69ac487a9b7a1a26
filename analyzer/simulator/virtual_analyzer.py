"""
Virtual Power Analyzer

Simulates the power analyzer's holding registers. Used for local runs
without hardware and as the device behind the test suite.

Register Map (u32, high word first, 2 registers each):
- 0x12/0x14/0x16: Phase 1-3 power
- 0x18/0x1a/0x1c: Phase 1-3 apparent power
- 0x1e/0x20/0x22: Phase 1-3 reactive power
- 0x34: Imported power total
- 0x36: Imported reactive power total
- 0x4e: Exported power total
- 0x50: Exported reactive power total
"""

from dataclasses import dataclass, field, fields

from analyzer.common.logging_setup import get_service_logger
from analyzer.services.device.registers import (
    AGGREGATE_REGISTERS,
    PHASE_COUNT,
    PhaseField,
    phase_register,
)

logger = get_service_logger("simulator")


@dataclass
class PhaseReadings:
    """Raw readings for one phase"""
    power: int = 0
    apparent_power: int = 0
    reactive_power: int = 0


def _default_phases() -> list[PhaseReadings]:
    return [
        PhaseReadings(power=4600, apparent_power=4700, reactive_power=950),
        PhaseReadings(power=4550, apparent_power=4650, reactive_power=940),
        PhaseReadings(power=4700, apparent_power=4800, reactive_power=970),
    ]


@dataclass
class AnalyzerReadings:
    """
    Holds the current analyzer readings.
    All values are the raw unsigned 32-bit register contents.
    """
    imported_power_total: int = 13850
    imported_reactive_power_total: int = 2860
    exported_power_total: int = 0
    exported_reactive_power_total: int = 0
    phases: list[PhaseReadings] = field(default_factory=_default_phases)


def u32_to_registers(value: int) -> tuple[int, int]:
    """
    Split an unsigned 32-bit value into two 16-bit registers.

    Returns:
        Tuple of (high_word, low_word)
    """
    if not 0 <= value <= 0xFFFFFFFF:
        raise ValueError(f"value out of u32 range: {value}")
    return (value >> 16) & 0xFFFF, value & 0xFFFF


class VirtualAnalyzer:
    """
    Simulated power analyzer register memory.

    This class manages the register memory and answers register reads the
    way the real device does.
    """

    def __init__(self, readings: AnalyzerReadings | None = None, name: str = "Power Analyzer"):
        self.name = name
        self.readings = readings or AnalyzerReadings()

        # Register memory (address -> 16-bit value)
        self._registers: dict[int, int] = {}
        self._update_registers()

        logger.debug(f"Virtual analyzer '{name}' initialized")

    def _update_registers(self) -> None:
        """
        Update the register memory with current readings.
        Call this after changing any values in self.readings.
        """
        def set_u32(addr: int, value: int):
            high, low = u32_to_registers(value)
            self._registers[addr] = high
            self._registers[addr + 1] = low

        for reg in AGGREGATE_REGISTERS:
            set_u32(reg.address, getattr(self.readings, reg.name))

        for index in range(PHASE_COUNT):
            phase = self.readings.phases[index]
            for f in fields(PhaseReadings):
                set_u32(phase_register(PhaseField(f.name), index), getattr(phase, f.name))

    def set_readings(self, readings: AnalyzerReadings) -> None:
        """Replace all readings and rewrite the register memory"""
        if len(readings.phases) != PHASE_COUNT:
            raise ValueError(f"expected {PHASE_COUNT} phases, got {len(readings.phases)}")
        self.readings = readings
        self._update_registers()

    def set_register(self, address: int, value: int) -> None:
        """Overwrite a single 16-bit register"""
        if not 0 <= value <= 0xFFFF:
            raise ValueError(f"register value out of u16 range: {value}")
        self._registers[address] = value

    def read_registers(self, start_address: int, count: int) -> list[int]:
        """
        Read register values (for Modbus responses).

        Args:
            start_address: Starting register address
            count: Number of registers to read

        Returns:
            List of register values, 0 for uninitialized registers
        """
        return [
            self._registers.get(addr, 0)
            for addr in range(start_address, start_address + count)
        ]

    def __repr__(self) -> str:
        return (f"VirtualAnalyzer(name='{self.name}', "
                f"imported={self.readings.imported_power_total}, "
                f"exported={self.readings.exported_power_total})")
