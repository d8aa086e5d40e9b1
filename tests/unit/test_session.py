"""
Unit tests for the Modbus session.

Run with: pytest tests/unit/test_session.py -v
"""

import asyncio

import pytest

from modbus_ethermon.modbus import ModbusProtocolError, ModbusSession, NotConnectedError, SessionState


@pytest.mark.asyncio
async def test_connect_and_read_holding(session, registry, network):
    device = registry.get_device("dev-1")
    assert await session.connect(device) is True
    assert session.connected
    assert session.device.id == "dev-1"

    assert await session.read_holding_registers(1, 3) == [215, 220, 225]
    await session.disconnect()

    assert session.state == SessionState.DISCONNECTED
    assert network.open_connections == 0


@pytest.mark.asyncio
async def test_reads_use_device_unit_id(session, registry, network):
    await session.connect(registry.get_device("dev-2"))
    await session.read_input_registers(10)
    await session.disconnect()

    reads = [call for call in network.calls if call[0] == "read_input_registers"]
    assert reads == [("read_input_registers", "10.0.0.2", 10, 3)]


@pytest.mark.asyncio
async def test_bit_reads_are_trimmed_to_length(session, registry):
    await session.connect(registry.get_device("dev-2"))
    assert await session.read_coils(0, 3) == [True, False, False]
    assert await session.read_discrete_inputs(4, 1) == [False]
    await session.disconnect()


@pytest.mark.asyncio
async def test_connect_unreachable_returns_false(session, registry, network):
    network.devices["10.0.0.1"].reachable = False
    assert await session.connect(registry.get_device("dev-1")) is False
    assert not session.connected


@pytest.mark.asyncio
async def test_connect_when_client_cannot_be_built(registry):
    def broken_factory(host, **kwargs):
        raise ValueError(f"bad host {host}")

    session = ModbusSession(timeout=1.0, retries=0, client_factory=broken_factory)

    assert await session.connect(registry.get_device("dev-1")) is False
    assert session.state == SessionState.DISCONNECTED
    assert session.device is None


@pytest.mark.asyncio
async def test_connect_replaces_previous_connection(session, registry, network):
    await session.connect(registry.get_device("dev-1"))
    await session.connect(registry.get_device("dev-2"))

    assert session.device.id == "dev-2"
    assert network.open_connections == 1
    await session.disconnect()


@pytest.mark.asyncio
async def test_read_without_connection_raises(session):
    with pytest.raises(NotConnectedError):
        await session.read_holding_registers(0)


@pytest.mark.asyncio
async def test_disconnect_is_idempotent(session):
    await session.disconnect()
    await session.disconnect()
    assert session.state == SessionState.DISCONNECTED


@pytest.mark.asyncio
async def test_timeout_becomes_protocol_error(session, registry, network):
    network.devices["10.0.0.1"].failures[1] = asyncio.TimeoutError()
    await session.connect(registry.get_device("dev-1"))

    with pytest.raises(ModbusProtocolError) as exc_info:
        await session.read_holding_registers(1)
    assert exc_info.value.timeout is True
    assert exc_info.value.http_status_code == 504
    await session.disconnect()


@pytest.mark.asyncio
async def test_exception_response_becomes_protocol_error(session, registry, network):
    network.devices["10.0.0.1"].exception_codes[2] = 2
    await session.connect(registry.get_device("dev-1"))

    with pytest.raises(ModbusProtocolError) as exc_info:
        await session.read_holding_registers(2)
    assert "Illegal data address" in exc_info.value.message
    await session.disconnect()


@pytest.mark.asyncio
async def test_writes(session, registry, network):
    await session.connect(registry.get_device("dev-1"))
    assert await session.write_register(100, 7) is True
    assert await session.write_registers(200, [1, 2, 3]) is True
    await session.disconnect()

    holding = network.devices["10.0.0.1"].holding
    assert holding[100] == 7
    assert [holding[200], holding[201], holding[202]] == [1, 2, 3]


@pytest.mark.asyncio
async def test_write_failures_return_false(session, registry, network):
    assert await session.write_register(0, 1) is False

    network.devices["10.0.0.1"].exception_codes[5] = 3
    await session.connect(registry.get_device("dev-1"))
    assert await session.write_register(5, 1) is False
    await session.disconnect()


def test_reader_for_unknown_type():
    session = ModbusSession(timeout=1.0, retries=0)
    assert session.reader_for("holding") == session.read_holding_registers
    assert session.reader_for("analog") is None
