"""
Modbus TCP Transport

Wrapper around the pymodbus synchronous TCP client. One transport owns one
TCP session to one power analyzer and is closed when its poll ends.
"""

from typing import Any

from pymodbus.client import ModbusTcpClient
from pymodbus.exceptions import ModbusException

from analyzer.common.exceptions import (
    CloseError,
    RegisterReadError,
    TransportUnavailableError,
)
from analyzer.common.logging_setup import get_service_logger, log_device_read
from analyzer.services.device.registers import REGISTER_SPAN

logger = get_service_logger("device.modbus")

DEFAULT_PORT = 502
U16_MAX = 0xFFFF


def parse_address(address: str) -> tuple[str, int]:
    """
    Split a device address into host and port.

    Accepts "host", "host:port" and "[ipv6]:port". A bare IPv6 literal
    without brackets is taken as a host on the default port.
    """
    address = address.strip()
    if not address:
        raise ValueError("empty device address")

    if address.startswith("["):
        host, sep, rest = address[1:].partition("]")
        if not sep or not host:
            raise ValueError(f"malformed IPv6 address: {address!r}")
        if not rest:
            return host, DEFAULT_PORT
        if not rest.startswith(":"):
            raise ValueError(f"malformed IPv6 address: {address!r}")
        port_text = rest[1:]
    elif address.count(":") == 1:
        host, port_text = address.split(":")
        if not host:
            raise ValueError(f"missing host in {address!r}")
    else:
        return address, DEFAULT_PORT

    try:
        port = int(port_text)
    except ValueError:
        raise ValueError(f"invalid port in {address!r}") from None
    if not 0 < port < 65536:
        raise ValueError(f"port out of range in {address!r}")
    return host, port


def decode_u32(high: int, low: int) -> int:
    """Combine two registers into an unsigned 32-bit value, high word first"""
    for word in (high, low):
        if not 0 <= word <= U16_MAX:
            raise ValueError(f"register value out of u16 range: {word}")
    return (high << 16) | low


class ModbusTransport:
    """
    Synchronous Modbus TCP session to one device.

    Handles:
    - Connecting with an explicit per-request timeout and no retries
    - Holding register reads with failures tagged by register address
    - u16 and big-endian u32 decoding
    - Close that never fails the caller
    """

    def __init__(
        self,
        host: str,
        port: int = DEFAULT_PORT,
        unit_id: int = 1,
        timeout: float = 3.0,
        client_class: Any = ModbusTcpClient,
    ):
        self.host = host
        self.port = port
        self.unit_id = unit_id
        self.timeout = timeout
        self._client_class = client_class
        self._client: Any = None

    @classmethod
    def open(
        cls,
        address: str,
        unit_id: int = 1,
        timeout: float = 3.0,
        client_class: Any = ModbusTcpClient,
    ) -> "ModbusTransport":
        """
        Create a transport and connect it.

        Args:
            address: Device address ("host", "host:port" or "[ipv6]:port")
            unit_id: Modbus unit (slave) ID
            timeout: Per-request timeout in seconds
            client_class: pymodbus client class to instantiate

        Returns:
            Connected transport

        Raises:
            TransportUnavailableError: address invalid or device unreachable
        """
        try:
            host, port = parse_address(address)
        except ValueError as e:
            raise TransportUnavailableError(
                f"Invalid device address: {e}",
                device_address=address,
            ) from e

        transport = cls(host, port, unit_id, timeout, client_class)
        transport.connect()
        return transport

    @property
    def address(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def connect(self) -> None:
        """Establish connection to the Modbus device"""
        try:
            self._client = self._client_class(
                host=self.host,
                port=self.port,
                timeout=self.timeout,
                retries=0,
            )
            connected = self._client.connect()
        except Exception as e:
            self._client = None
            raise TransportUnavailableError(
                f"Connection error to {self.address}: {e}",
                device_address=self.address,
                host=self.host,
                port=self.port,
            ) from e

        if not connected:
            self.close()
            raise TransportUnavailableError(
                f"Failed to connect to Modbus device at {self.address}",
                device_address=self.address,
                host=self.host,
                port=self.port,
            )

        logger.debug(f"Connected to Modbus device at {self.address}")

    def read_holding_registers(self, address: int, count: int) -> list[int]:
        """
        Read consecutive holding registers.

        Args:
            address: Starting register address
            count: Number of registers to read

        Returns:
            Raw 16-bit register values

        Raises:
            RegisterReadError: tagged with the starting register address
        """
        try:
            return self._read(address, count)
        except RegisterReadError:
            log_device_read(logger, self.address, address, None, success=False)
            raise

    def _read(self, address: int, count: int) -> list[int]:
        if self._client is None:
            raise RegisterReadError(address, "transport is closed", self.address)

        try:
            response = self._client.read_holding_registers(
                address=address,
                count=count,
                device_id=self.unit_id,
            )
        except ModbusException as e:
            raise RegisterReadError(address, f"Modbus exception: {e}", self.address) from e
        except Exception as e:
            raise RegisterReadError(address, e, self.address) from e

        if response.isError():
            raise RegisterReadError(address, f"Modbus error: {response}", self.address)

        registers = list(response.registers)
        if len(registers) != count:
            raise RegisterReadError(
                address,
                f"expected {count} registers, got {len(registers)}",
                self.address,
            )
        return registers

    def read_u16(self, register: int) -> int:
        """Read one register as an unsigned 16-bit value"""
        value = self.read_holding_registers(register, 1)[0]
        log_device_read(logger, self.address, register, value)
        return value

    def read_u32(self, register: int) -> int:
        """Read two registers as an unsigned 32-bit value, high word first"""
        high, low = self.read_holding_registers(register, REGISTER_SPAN)
        try:
            value = decode_u32(high, low)
        except ValueError as e:
            raise RegisterReadError(register, e, self.address) from e
        log_device_read(logger, self.address, register, value)
        return value

    def close(self) -> None:
        """Close connection. Failures are logged, never raised."""
        client, self._client = self._client, None
        if client is None:
            return
        try:
            client.close()
        except Exception as e:
            error = CloseError(str(e), self.address)
            logger.warning(error.message, extra={"device": self.address})
            return
        logger.debug(f"Disconnected from {self.address}")

    def __enter__(self) -> "ModbusTransport":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
