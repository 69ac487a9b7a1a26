"""
Power Analyzer Register Map

Fixed holding-register layout of the power analyzer. Every measurement is an
unsigned 32-bit value spread over two consecutive registers, high word first.

Aggregate totals:
- 0x34: imported power total
- 0x36: imported reactive power total
- 0x4e: exported power total
- 0x50: exported reactive power total

Per-phase measurements (phase i in 0..2 reads base + 2*i):
- 0x12: power
- 0x18: apparent power
- 0x1e: reactive power
"""

from dataclasses import dataclass
from enum import Enum


REGISTER_SPAN = 2  # registers per u32 measurement
PHASE_COUNT = 3
PHASE_REGISTER_STRIDE = 2


class PhaseField(str, Enum):
    """Per-phase measurement kinds"""
    POWER = "power"
    APPARENT_POWER = "apparent_power"
    REACTIVE_POWER = "reactive_power"


@dataclass(frozen=True)
class AggregateRegister:
    """Aggregate measurement and the register it is read from"""
    name: str
    address: int


AGGREGATE_REGISTERS: tuple[AggregateRegister, ...] = (
    AggregateRegister("imported_power_total", 0x34),
    AggregateRegister("imported_reactive_power_total", 0x36),
    AggregateRegister("exported_power_total", 0x4E),
    AggregateRegister("exported_reactive_power_total", 0x50),
)

PHASE_FIELD_BASES: tuple[tuple[PhaseField, int], ...] = (
    (PhaseField.POWER, 0x12),
    (PhaseField.APPARENT_POWER, 0x18),
    (PhaseField.REACTIVE_POWER, 0x1E),
)


@dataclass(frozen=True)
class PlannedRead:
    """One u32 read issued by a poll. phase is None for aggregates."""
    name: str
    address: int
    phase: int | None = None


def base_address(phase_field: PhaseField) -> int:
    for candidate, address in PHASE_FIELD_BASES:
        if candidate == phase_field:
            return address
    raise ValueError(f"Unknown phase field: {phase_field!r}")


def phase_register(phase_field: PhaseField, phase_index: int) -> int:
    """
    Register holding a per-phase measurement.

    Args:
        phase_field: Measurement kind
        phase_index: Zero-based phase index (0 -> phase1)

    Returns:
        base address + 2 * phase_index
    """
    if not 0 <= phase_index < PHASE_COUNT:
        raise ValueError(f"phase_index must be 0-{PHASE_COUNT - 1}, got {phase_index}")
    return base_address(phase_field) + phase_index * PHASE_REGISTER_STRIDE


def poll_plan() -> tuple[PlannedRead, ...]:
    """All reads of one poll in issue order: aggregates, then phase by phase."""
    reads = [PlannedRead(reg.name, reg.address) for reg in AGGREGATE_REGISTERS]
    for phase_index in range(PHASE_COUNT):
        for phase_field, _ in PHASE_FIELD_BASES:
            reads.append(PlannedRead(
                name=phase_field.value,
                address=phase_register(phase_field, phase_index),
                phase=phase_index,
            ))
    return tuple(reads)
