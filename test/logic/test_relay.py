"""Module relay controller: Idle/Relaying transitions, poller and panels."""

import time

import pytest

from fsmhost.device import EmulatedTransport
from fsmhost.protocol import CommandClient
from fsmhost.stream import ModuleRelay
from fsmhost.types import ModuleTable, RelayError, RelayErrorKind, RuntimeStatus

PERIOD = 0.01


def wait_for(condition, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(PERIOD)
    return condition()


@pytest.fixture
def device(hw):
    d = EmulatedTransport(hw)
    d.open()
    return d


@pytest.fixture
def received():
    return []


@pytest.fixture
def relay(device, received):
    modules = ModuleTable.from_names(
        ["ValveModule1", "HiFi1", "Encoder1"], [True, True, False]
    )
    r = ModuleRelay(
        CommandClient(device),
        modules,
        RuntimeStatus(),
        sink=lambda name, data: received.append((name, data)),
        period=PERIOD,
    )
    yield r
    r.stop()


class TestStart:
    def test_start_sends_relay_on_and_polls(self, relay, device):
        relay.start("HiFi1")
        assert device.commands == [(b"J", b"\x01\x01")]
        assert relay.is_relaying()
        assert relay.active_module() == "HiFi1"
        assert relay.poller_running()
        assert relay.modules[1].relay_active

    def test_bytes_reach_sink(self, relay, device, received):
        relay.start("ValveModule1")
        assert device.inject_module_bytes(0, b"\xaa\xbb")
        assert wait_for(lambda: received)
        assert received[0] == ("ValveModule1", b"\xaa\xbb")

    def test_other_module_bytes_not_forwarded(self, relay, device, received):
        relay.start("ValveModule1")
        assert not device.inject_module_bytes(1, b"\x01")

    def test_already_active(self, relay, device):
        relay.start("ValveModule1")
        with pytest.raises(RelayError) as e:
            relay.start("HiFi1")
        assert e.value.kind is RelayErrorKind.ALREADY_ACTIVE
        assert len(device.commands) == 1
        assert relay.active_module() == "ValveModule1"

    def test_unknown_module(self, relay, device):
        with pytest.raises(RelayError) as e:
            relay.start("Nonexistent")
        assert e.value.kind is RelayErrorKind.UNKNOWN_MODULE
        assert device.commands == []
        assert not relay.poller_running()

    def test_unconnected_module_warns(self, relay, log_messages):
        relay.start("Encoder1")
        assert relay.active_module() == "Encoder1"
        assert any(m.startswith("WARNING") for m in log_messages)


class TestStop:
    def test_stop_sends_relay_off_to_every_slot(self, relay, device):
        relay.start("HiFi1")
        device.commands.clear()
        relay.stop()
        assert device.commands == [
            (b"J", b"\x00\x00"),
            (b"J", b"\x01\x00"),
            (b"J", b"\x02\x00"),
        ]
        assert not relay.is_relaying()
        assert not relay.poller_running()
        assert device.relay_index is None

    def test_stop_is_idempotent(self, relay):
        relay.stop()
        relay.stop()
        assert not relay.is_relaying()
        assert not relay.poller_running()

    def test_stop_discards_stale_bytes(self, relay, device, received):
        relay.start("HiFi1")
        relay._poller.stop()  # bytes arrive after the last poll
        device.inject_module_bytes(1, b"\x10\x20\x30")
        relay.stop()
        assert device.bytes_available() == 0
        assert received == []

    def test_restart_after_stop(self, relay):
        relay.start("ValveModule1")
        relay.stop()
        relay.start("HiFi1")
        assert relay.active_module() == "HiFi1"


class TestPanels:
    def test_fsm_panel_stops_relay(self, relay):
        relay.start("HiFi1")
        assert relay.start_panel(0) is False
        assert not relay.is_relaying()

    def test_default_panel_starts_relay(self, relay):
        assert relay.start_panel(2) is True
        assert relay.active_module() == "HiFi1"

    def test_switching_panels_replaces_relay(self, relay):
        relay.start_panel(1)
        relay.start_panel(2)
        assert relay.active_module() == "HiFi1"
        assert [m.relay_active for m in relay.modules.modules] == [False, True, False]

    def test_custom_panel_does_not_relay(self, relay):
        assert relay.start_panel(1, default_panel=False) is False
        assert not relay.is_relaying()

    def test_no_relay_while_being_used(self, relay):
        relay.status.being_used = True
        assert relay.start_panel(1) is False
        assert not relay.is_relaying()

    def test_panel_out_of_range(self, relay):
        assert relay.start_panel(7) is False
