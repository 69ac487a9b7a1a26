"""
Power Analyzer Poller

Reads the full register battery from a power analyzer over one Modbus TCP
connection and assembles a Snapshot. The first failing read aborts the poll.
"""

import time
from typing import Any

from pymodbus.client import ModbusTcpClient

from analyzer.common.exceptions import PollError
from analyzer.common.logging_setup import get_service_logger, log_poll_result
from .modbus_client import ModbusTransport
from .registers import PHASE_COUNT, PhaseField, poll_plan
from .snapshot import PhasePower, Snapshot

logger = get_service_logger("device.poller")


class AnalyzerPoller:
    """
    Produces one Snapshot per call to poll().

    Each poll opens its own transport, issues every read on it and closes
    it before returning, so concurrent polls share no state.
    """

    def __init__(
        self,
        unit_id: int = 1,
        timeout: float = 3.0,
        client_class: Any = ModbusTcpClient,
    ):
        self.unit_id = unit_id
        self.timeout = timeout
        self._client_class = client_class

    def poll(self, address: str) -> Snapshot:
        """
        Poll a device once.

        Args:
            address: Device address ("host", "host:port" or "[ipv6]:port")

        Returns:
            Fully populated Snapshot

        Raises:
            TransportUnavailableError: could not connect, nothing was read
            RegisterReadError: a read failed; carries the register address
        """
        started = time.monotonic()
        logger.debug(f"Polling power analyzer at {address}")

        try:
            transport = ModbusTransport.open(
                address,
                unit_id=self.unit_id,
                timeout=self.timeout,
                client_class=self._client_class,
            )
            try:
                values = self._read_all(transport)
            finally:
                transport.close()
        except PollError as e:
            log_poll_result(logger, address, _elapsed_ms(started), error=e)
            raise

        snapshot = self._assemble(values)
        log_poll_result(logger, address, _elapsed_ms(started))
        return snapshot

    def _read_all(self, transport: ModbusTransport) -> dict[tuple[str, int | None], int]:
        """Issue every planned read in order, keyed by (name, phase)"""
        values = {}
        for planned in poll_plan():
            values[(planned.name, planned.phase)] = transport.read_u32(planned.address)
        return values

    def _assemble(self, values: dict[tuple[str, int | None], int]) -> Snapshot:
        phases = [
            PhasePower(
                power=values[(PhaseField.POWER.value, index)],
                apparent_power=values[(PhaseField.APPARENT_POWER.value, index)],
                reactive_power=values[(PhaseField.REACTIVE_POWER.value, index)],
            )
            for index in range(PHASE_COUNT)
        ]
        return Snapshot(
            imported_power_total=values[("imported_power_total", None)],
            imported_reactive_power_total=values[("imported_reactive_power_total", None)],
            exported_power_total=values[("exported_power_total", None)],
            exported_reactive_power_total=values[("exported_reactive_power_total", None)],
            phase1=phases[0],
            phase2=phases[1],
            phase3=phases[2],
        )


def _elapsed_ms(started: float) -> float:
    return (time.monotonic() - started) * 1000
