"""
Poller tests: snapshot assembly, fail-fast reads, connection lifecycle.
"""

import io
import json

import pytest

from analyzer.common.exceptions import PollError, RegisterReadError, TransportUnavailableError
from analyzer.common.logging_setup import configure_logging
from analyzer.services.device.poller import AnalyzerPoller
from analyzer.services.device.registers import poll_plan
from analyzer.services.device.snapshot import PhasePower, Snapshot
from analyzer.simulator.virtual_analyzer import AnalyzerReadings, PhaseReadings

ADDRESS = "10.0.0.5:502"
PLANNED_ADDRESSES = [p.address for p in poll_plan()]


@pytest.fixture
def poller(fake_client):
    return AnalyzerPoller(unit_id=1, timeout=2.0, client_class=fake_client)


def test_poll_assembles_every_field_from_its_register(poller):
    snapshot = poller.poll(ADDRESS)

    assert snapshot == Snapshot(
        imported_power_total=0x00010001,
        imported_reactive_power_total=0x00020002,
        exported_power_total=0x00030003,
        exported_reactive_power_total=0x00040004,
        phase1=PhasePower(power=0x00110011, apparent_power=0x00120012, reactive_power=0x00130013),
        phase2=PhasePower(power=0x00210021, apparent_power=0x00220022, reactive_power=0x00230023),
        phase3=PhasePower(power=0x00310031, apparent_power=0x00320032, reactive_power=0x00330033),
    )


def test_imported_power_total_from_register_0x34(poller, analyzer):
    analyzer.set_register(0x34, 0x0001)
    analyzer.set_register(0x35, 0x0000)

    assert poller.poll(ADDRESS).imported_power_total == 65536


def test_full_scale_values_are_unsigned(poller, analyzer):
    readings = AnalyzerReadings(
        imported_power_total=0xFFFFFFFF,
        imported_reactive_power_total=0x80000000,
        exported_power_total=0,
        exported_reactive_power_total=0x7FFFFFFF,
        phases=[PhaseReadings(0xFFFFFFFF, 0xFFFFFFFF, 0xFFFFFFFF) for _ in range(3)],
    )
    analyzer.set_readings(readings)

    snapshot = poller.poll(ADDRESS)

    assert snapshot.imported_power_total == 0xFFFFFFFF
    assert snapshot.imported_reactive_power_total == 2147483648
    assert snapshot.exported_reactive_power_total == 0x7FFFFFFF
    assert snapshot.phase3.reactive_power == 0xFFFFFFFF


def test_all_reads_share_one_connection_in_plan_order(poller, fake_client):
    poller.poll(ADDRESS)

    assert len(fake_client.instances) == 1
    client = fake_client.instances[0]
    assert client.reads == PLANNED_ADDRESSES
    assert client.closed


def test_each_poll_opens_a_fresh_connection(poller, fake_client):
    first = poller.poll(ADDRESS)
    second = poller.poll(ADDRESS)

    assert first == second
    assert len(fake_client.instances) == 2
    assert all(client.closed for client in fake_client.instances)


def test_transport_unavailable_attempts_no_reads(poller, fake_client):
    fake_client.refuse_connect = True

    with pytest.raises(TransportUnavailableError):
        poller.poll(ADDRESS)

    assert fake_client.instances[0].reads == []


@pytest.mark.parametrize("failing", PLANNED_ADDRESSES, ids=lambda a: f"0x{a:02x}")
def test_first_failing_register_aborts_poll(poller, fake_client, failing):
    fake_client.fail_registers = {failing}

    with pytest.raises(RegisterReadError) as exc_info:
        poller.poll(ADDRESS)

    assert exc_info.value.register == failing
    client = fake_client.instances[0]
    assert client.reads == PLANNED_ADDRESSES[:PLANNED_ADDRESSES.index(failing) + 1]
    assert client.closed


def test_only_first_failure_is_reported(poller, fake_client):
    fake_client.fail_registers = {0x1A, 0x36}

    with pytest.raises(RegisterReadError) as exc_info:
        poller.poll(ADDRESS)

    assert exc_info.value.register == 0x36


def test_error_response_mid_poll_names_register(poller, fake_client):
    fake_client.error_registers = {0x20}

    with pytest.raises(PollError) as exc_info:
        poller.poll(ADDRESS)

    assert isinstance(exc_info.value, RegisterReadError)
    assert exc_info.value.register == 0x20


def test_close_failure_does_not_change_success(poller, fake_client):
    fake_client.close_raises = True

    snapshot = poller.poll(ADDRESS)

    assert snapshot.exported_power_total == 0x00030003


def test_close_failure_does_not_mask_read_failure(poller, fake_client):
    fake_client.close_raises = True
    fake_client.fail_registers = {0x12}

    with pytest.raises(RegisterReadError) as exc_info:
        poller.poll(ADDRESS)

    assert exc_info.value.register == 0x12


def test_snapshot_is_immutable(poller):
    snapshot = poller.poll(ADDRESS)

    with pytest.raises(AttributeError):
        snapshot.imported_power_total = 0


def test_snapshot_as_dict_nests_phases(poller):
    data = poller.poll(ADDRESS).as_dict()

    assert data["phase2"] == {
        "power": 0x00210021,
        "apparent_power": 0x00220022,
        "reactive_power": 0x00230023,
    }


def test_failed_poll_emits_one_warning(poller, fake_client):
    stream = io.StringIO()
    configure_logging("DEBUG", json_format=True, stream=stream)
    fake_client.fail_registers = {0x18}

    with pytest.raises(RegisterReadError):
        poller.poll(ADDRESS)

    records = [json.loads(line) for line in stream.getvalue().splitlines()]
    warnings = [r for r in records if r["level"] == "WARNING"]
    assert len(warnings) == 1
    assert warnings[0]["register"] == 0x18
    assert any(r["level"] == "DEBUG" and r.get("register") == 0x18 for r in records)
