"""
End-to-end tests for TVBridge using MockCECComms

Run with: pytest tests/test_tv_bridge.py -v
"""

from unittest.mock import patch

import pytest

from cec_comms import CECAdapterError, MockCECComms
from constants import PowerState
from tv_bridge import TVBridge


@pytest.fixture
def mock():
    return MockCECComms()


@pytest.fixture
def bridge(mock):
    bridge = TVBridge(mock, {'polling': {'interval_ms': 60000}})
    assert bridge.start() is True
    mock.transmitted_commands.clear()  # Drop the initial status query
    yield bridge
    bridge.stop()


@pytest.fixture
def notifications(bridge):
    received = []
    bridge.add_power_callback(lambda state: received.append(('power', state)))
    bridge.add_input_callback(lambda port: received.append(('input', port)))
    return received


class TestTVBridgeSetup:
    """Test TVBridge construction and lifecycle"""

    def test_defaults(self, mock):
        bridge = TVBridge(mock)

        assert bridge.name == "CEC TV"
        assert bridge.poll_interval_ms == 2500
        assert bridge.debounce_window_ms == 5000

    def test_config(self, mock):
        bridge = TVBridge(mock, {
            'name': 'Bedroom TV',
            'polling': {'interval_ms': 1000},
            'debounce': {'window_ms': 3000},
        })

        assert bridge.name == "Bedroom TV"
        assert bridge.poll_interval_ms == 1000
        assert bridge.debounce_window_ms == 3000

    def test_malformed_config_uses_defaults(self, mock):
        bridge = TVBridge(mock, {'polling': {'interval_ms': 'often'}, 'debounce': {'window_ms': 'x'}})

        assert bridge.poll_interval_ms == 2500
        assert bridge.debounce_window_ms == 5000

    def test_start_queries_power_status(self, mock):
        bridge = TVBridge(mock, {'polling': {'interval_ms': 60000}})
        try:
            assert bridge.start() is True
            assert mock.transmitted_commands == ["10:8f"]
            assert bridge.poller.running is True
        finally:
            bridge.stop()

        assert bridge.poller.running is False
        assert bridge.is_alive() is False

    def test_start_fails_when_comms_fail(self, mock):
        """Test that start() handles init failure gracefully"""
        mock.init = lambda on_data, on_closed=None: False
        bridge = TVBridge(mock)

        assert bridge.start() is False
        assert bridge.poller.running is False


class TestTVBridgeEvents:
    """Test traffic flowing through to the TV state"""

    def test_power_on_frame(self, bridge, mock, notifications):
        """Test '>> 01:90:00' turns UNKNOWN into ON with one notification"""
        assert bridge.power_state is PowerState.UNKNOWN

        mock.simulate_received(">> 01:90:00\n")

        assert bridge.power_state is PowerState.ON
        assert notifications == [('power', PowerState.ON)]

    def test_input_switch_frame(self, bridge, mock, notifications):
        """Test '>> 0f:80:20:00' makes HDMI2 the active input"""
        mock.simulate_received(">> 0f:80:20:00\n")

        assert bridge.active_input == 2
        assert notifications == [('input', 2)]

    def test_duplicate_power_on_within_window(self, bridge, mock, notifications):
        """Test two power on frames 100ms apart produce one notification"""
        with patch('time.monotonic', return_value=1000.0):
            mock.simulate_received(">> 01:90:00\n")
        with patch('time.monotonic', return_value=1000.1):
            mock.simulate_received(">> 01:90:00\n")

        assert notifications == [('power', PowerState.ON)]

    def test_power_event_after_window(self, bridge, mock, notifications):
        with patch('time.monotonic', return_value=1000.0):
            mock.simulate_received(">> 01:90:00\n")
        with patch('time.monotonic', return_value=1005.0):
            mock.simulate_received(">> 01:90:01\n")

        assert bridge.power_state is PowerState.OFF
        assert notifications == [('power', PowerState.ON), ('power', PowerState.OFF)]

    def test_input_switch_bypasses_debounce(self, bridge, mock, notifications):
        """Test input switches are applied while power events are suppressed"""
        with patch('time.monotonic', return_value=1000.0):
            mock.simulate_received(">> 01:90:00\n")
            mock.simulate_received(">> 0f:86:30:00\n>> 0f:36\n")

        assert bridge.power_state is PowerState.ON
        assert bridge.active_input == 3
        assert notifications == [('power', PowerState.ON), ('input', 3)]

    def test_set_power_echo(self, bridge, mock, notifications):
        """Test that our own command's echo updates the state once"""
        with patch('time.monotonic', return_value=1000.0):
            assert bridge.set_power(False) is True
            mock.simulate_received(">> 01:90:01\n")
        with patch('time.monotonic', return_value=1001.0):
            mock.simulate_received(">> 01:90:01\n")

        assert mock.transmitted_commands == ["01:90:01"]
        assert bridge.power_state is PowerState.OFF
        assert notifications == [('power', PowerState.OFF)]

    def test_get_power(self, bridge, mock):
        assert bridge.get_power() is PowerState.UNKNOWN
        assert mock.transmitted_commands == ["10:8f"]

    def test_osd_rename(self, bridge, mock, notifications):
        """Test the OSD rename rule sends one command and notifies nothing"""
        mock.simulate_received("<< 10:47:43:45:43\n")

        assert mock.transmitted_commands == ["10:47:52:50:69"]
        assert notifications == []

    def test_noise_ignored(self, bridge, mock, notifications):
        mock.simulate_received("TRAFFIC: [  100]\t<< 10:8f\nNOTICE: nothing to see\n>> 0f:87:00:e0:91\n")

        assert bridge.power_state is PowerState.UNKNOWN
        assert notifications == []


class TestTVBridgeErrors:
    """Test adapter failures are surfaced"""

    def test_write_failure_while_parsing_is_reported(self, bridge, mock):
        errors = []
        bridge.add_error_handler(errors.append)
        mock.fail_writes = True

        mock.simulate_received("<< 10:47:43:45:43\n")

        assert len(errors) == 1
        assert isinstance(errors[0], CECAdapterError)

    def test_write_failure_on_set_power_raises(self, bridge, mock):
        mock.fail_writes = True

        with pytest.raises(CECAdapterError):
            bridge.set_power(True)

    def test_end_of_stream_reported(self, bridge, mock):
        closed = []
        bridge.add_closed_handler(lambda: closed.append(True))

        mock.simulate_end_of_stream()

        assert closed == [True]
