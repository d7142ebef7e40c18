import logging
from enum import Enum

from cec_session import CECSession
from constants import (
    FRAME_OSD_NAME_RPI,
    FRAME_POWER_ON,
    FRAME_POWER_REQUEST,
    FRAME_POWER_STANDBY,
)


class Intent(Enum):
    """Outbound requests the bridge knows how to put on the bus"""
    POWER_QUERY = "power_query"
    POWER_ON = "power_on"
    POWER_STANDBY = "power_standby"
    OSD_RENAME = "osd_rename"


_FRAMES = {
    Intent.POWER_QUERY: FRAME_POWER_REQUEST,
    Intent.POWER_ON: FRAME_POWER_ON,
    Intent.POWER_STANDBY: FRAME_POWER_STANDBY,
    Intent.OSD_RENAME: FRAME_OSD_NAME_RPI,
}


def encode(intent: Intent) -> str:
    """Return the frame string cec-client should transmit for an intent"""
    return _FRAMES[intent]


class CommandEncoder:
    """
    Sends power commands through the session.

    Fire-and-forget: nothing is retried and no acknowledgement is tracked.
    A lost command is recovered by the next power status poll.
    """

    def __init__(self, session: CECSession):
        self.session = session
        self.logger = logging.getLogger('CommandEncoder')

    def send(self, intent: Intent) -> None:
        frame = encode(intent)
        self.logger.debug(f"Sending {intent.name}: {frame}")
        self.session.transmit(frame)

    def request_power_status(self) -> None:
        """
        Ask the TV for its power status.

        Sends: tx 10:8f
        Expects response: 01:90:XX where XX is power status
        """
        self.send(Intent.POWER_QUERY)

    def power_on(self) -> None:
        self.send(Intent.POWER_ON)

    def power_standby(self) -> None:
        self.send(Intent.POWER_STANDBY)

    def set_power(self, value: bool) -> None:
        if value:
            self.power_on()
        else:
            self.power_standby()

    def rename_osd(self) -> None:
        """Set our OSD name to 'RPi'"""
        self.send(Intent.OSD_RENAME)
