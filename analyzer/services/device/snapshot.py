"""
Measurement Snapshot

Immutable result of one complete poll. Values are raw unsigned 32-bit
measurements; no scaling is applied.
"""

from dataclasses import dataclass, asdict
from typing import Any


@dataclass(frozen=True)
class PhasePower:
    """Power measurements for one electrical phase"""
    power: int
    apparent_power: int
    reactive_power: int


@dataclass(frozen=True)
class Snapshot:
    """All measurements from one poll, only ever fully populated"""
    imported_power_total: int
    imported_reactive_power_total: int
    exported_power_total: int
    exported_reactive_power_total: int
    phase1: PhasePower
    phase2: PhasePower
    phase3: PhasePower

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)
