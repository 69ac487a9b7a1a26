"""
CLI tests: register parsing, poll/read results and exit codes.
"""

import argparse
import json

import pytest

from analyzer import cli
from analyzer.common.config import DeviceConfig


DEVICE = DeviceConfig(address="10.0.0.5")


@pytest.mark.parametrize("text,expected", [("0x34", 0x34), ("52", 52), ("0X4e", 0x4E)])
def test_register_number(text, expected):
    assert cli.register_number(text) == expected


@pytest.mark.parametrize("text", ["reg", "0x10000", "-1"])
def test_register_number_rejects(text):
    with pytest.raises(argparse.ArgumentTypeError):
        cli.register_number(text)


def test_poll_device_success(fake_client):
    result = cli.poll_device(DEVICE, client_class=fake_client)

    assert result["success"] is True
    assert result["error"] is None
    assert result["snapshot"]["imported_power_total"] == 0x00010001
    assert result["snapshot"]["phase3"]["apparent_power"] == 0x00320032


def test_poll_device_failure_reports_register(fake_client):
    fake_client.fail_registers = {0x1C}

    result = cli.poll_device(DEVICE, client_class=fake_client)

    assert result["success"] is False
    assert result["snapshot"] is None
    assert "0x001c" in result["error"]


def test_read_registers_u16(fake_client, analyzer):
    analyzer.set_register(0x60, 1234)

    result = cli.read_registers(DEVICE, 0x60, client_class=fake_client)

    assert result["success"] is True
    assert result["value"] == 1234
    assert result["registers"] == [1234]


def test_read_registers_u32(fake_client):
    result = cli.read_registers(DEVICE, 0x4E, as_u32=True, client_class=fake_client)

    assert result["value"] == 0x00030003
    assert result["registers"] == [0x0003, 0x0003]


def test_read_registers_block(fake_client, analyzer):
    result = cli.read_registers(DEVICE, 0x12, count=4, client_class=fake_client)

    assert result["value"] is None
    assert result["registers"] == analyzer.read_registers(0x12, 4)


def test_read_registers_unreachable(fake_client):
    fake_client.refuse_connect = True

    result = cli.read_registers(DEVICE, 0x34, client_class=fake_client)

    assert result["success"] is False
    assert "Failed to connect" in result["error"]


def test_main_poll_exit_codes(fake_client, monkeypatch, capsys):
    monkeypatch.setattr(cli, "ModbusTcpClient", fake_client)

    assert cli.main(["poll", "--address", "10.0.0.5"]) == 0
    output = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert output["snapshot"]["exported_power_total"] == 0x00030003

    fake_client.refuse_connect = True
    assert cli.main(["poll", "--address", "10.0.0.5"]) == 1


def test_main_without_address(monkeypatch, capsys):
    monkeypatch.delenv("POWER_ANALYZER_IP", raising=False)

    assert cli.main(["poll"]) == 1
    assert "address is required" in capsys.readouterr().out


def test_main_uses_environment_address(fake_client, monkeypatch):
    monkeypatch.setattr(cli, "ModbusTcpClient", fake_client)
    monkeypatch.setenv("POWER_ANALYZER_IP", "10.0.0.7:1502")

    assert cli.main(["read", "--register", "0x34", "--u32"]) == 0
    assert (fake_client.instances[0].host, fake_client.instances[0].port) == ("10.0.0.7", 1502)


def test_main_uses_config_file(fake_client, monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "ModbusTcpClient", fake_client)
    path = tmp_path / "config.yaml"
    path.write_text("device:\n  address: 10.0.0.8\n  unit_id: 9\n")

    assert cli.main(["read", "--config", str(path), "--register", "52"]) == 0
    assert fake_client.instances[0].device_ids == [9]


def test_main_without_command():
    assert cli.main([]) == 2


@pytest.mark.parametrize("argv", [
    ["read", "--address", "10.0.0.5", "--register", "0x34", "--count", "0"],
    ["read", "--address", "10.0.0.5", "--register", "0x34", "--count", "3", "--u32"],
])
def test_main_rejects_bad_count(fake_client, monkeypatch, argv):
    monkeypatch.setattr(cli, "ModbusTcpClient", fake_client)

    with pytest.raises(SystemExit) as exc_info:
        cli.main(argv)

    assert exc_info.value.code == 2
    assert fake_client.instances == []
