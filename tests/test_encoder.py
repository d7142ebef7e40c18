import pytest

from cec_comms import CECAdapterError, MockCECComms
from cec_session import CECSession
from encoder import CommandEncoder, Intent, encode


@pytest.fixture
def mock():
    comms = MockCECComms()
    comms.init(lambda chunk: None)
    return comms


@pytest.fixture
def encoder(mock):
    return CommandEncoder(CECSession(mock))


class TestEncode:
    """Test the intent to frame mapping"""

    def test_frames(self):
        """Test every intent maps to its fixed frame"""
        assert encode(Intent.POWER_QUERY) == "10:8f"
        assert encode(Intent.POWER_ON) == "01:90:00"
        assert encode(Intent.POWER_STANDBY) == "01:90:01"
        assert encode(Intent.OSD_RENAME) == "10:47:52:50:69"


class TestCommandEncoder:
    """Test CommandEncoder"""

    def test_request_power_status(self, mock, encoder):
        encoder.request_power_status()
        assert mock.transmitted_commands == ["10:8f"]

    def test_set_power(self, mock, encoder):
        """Test on and standby commands"""
        encoder.set_power(True)
        encoder.set_power(False)

        assert mock.transmitted_commands == ["01:90:00", "01:90:01"]

    def test_rename_osd(self, mock, encoder):
        encoder.rename_osd()
        assert mock.transmitted_commands == ["10:47:52:50:69"]

    def test_write_failure_is_not_retried(self, mock, encoder):
        """Test that a write failure propagates and nothing is resent"""
        mock.fail_writes = True

        with pytest.raises(CECAdapterError):
            encoder.power_on()

        mock.fail_writes = False
        assert mock.transmitted_commands == []
