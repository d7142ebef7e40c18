"""
CEC Line Parser - Turns raw cec-client output into semantic events

cec-client prints bus traffic as free text, e.g.

    TRAFFIC: [   37491]     >> 01:90:00
    TRAFFIC: [   37502]     << 10:8f

'>>' marks frames received from the bus, '<<' frames the adapter sent.
Only power and input routing frames are interpreted; everything else is
ignored.
"""

import logging
import re
from typing import Callable, Iterator, List, Optional

from cec_comms import CECFrame, Direction
from constants import (
    FRAME_OSD_NAME_CEC,
    FRAME_POWER_OFF_BROADCAST,
    FRAME_POWER_ON,
    FRAME_POWER_STANDBY,
)
from encoder import CommandEncoder
from events import CECEvent, InputSwitched, PowerOff, PowerOn, PowerStandby

FRAME_RE = re.compile(r'(>>|<<)[ \t]+([0-9A-Fa-f]{2}(?::[0-9A-Fa-f]{2})*)')

# Routing change (0f:80:[<from>:]<to>) and set stream path (0f:86:<to>).
# The port is the first nibble of <to>, which must end the frame.
ROUTING_CHANGE_RE = re.compile(r'0f:80(?::[0-9a-f]{2}:[0-9a-f]{2})?:([0-9a-f])0:00$')
SET_STREAM_PATH_RE = re.compile(r'0f:86:([0-9a-f])0:00$')


def _prefix(frame_string: str) -> re.Pattern:
    """Match whole bytes at the start of a frame"""
    return re.compile(re.escape(frame_string) + r'(?::|$)')


class FrameRule:
    """A frame pattern and the event it produces"""

    def __init__(self, name: str, pattern: re.Pattern, build: Callable[[re.Match], CECEvent],
                 direction: Optional[Direction] = Direction.RECEIVED):
        self.name = name
        self.pattern = pattern
        self.build = build
        self.direction = direction

    def match(self, frame: CECFrame) -> Optional[re.Match]:
        if self.direction is not None and frame.direction is not self.direction:
            return None
        return self.pattern.match(frame.frame_string)


class SideRule:
    """A frame pattern that triggers an outbound command instead of an event"""

    def __init__(self, name: str, pattern: re.Pattern, action: Callable[[CommandEncoder], None],
                 direction: Optional[Direction] = None):
        self.name = name
        self.pattern = pattern
        self.action = action
        self.direction = direction

    def match(self, frame: CECFrame) -> bool:
        if self.direction is not None and frame.direction is not self.direction:
            return False
        return self.pattern.match(frame.frame_string) is not None


# Evaluated in order, first match wins
EVENT_RULES: List[FrameRule] = [
    FrameRule('power_off', _prefix(FRAME_POWER_OFF_BROADCAST), lambda m: PowerOff()),
    FrameRule('power_on', _prefix(FRAME_POWER_ON), lambda m: PowerOn()),
    FrameRule('power_standby', _prefix(FRAME_POWER_STANDBY), lambda m: PowerStandby()),
    FrameRule('routing_change', ROUTING_CHANGE_RE, lambda m: InputSwitched(int(m.group(1), 16))),
    FrameRule('set_stream_path', SET_STREAM_PATH_RE, lambda m: InputSwitched(int(m.group(1), 16))),
]

SIDE_RULES: List[SideRule] = [
    # cec-client reports its OSD name as "CEC", replace it with "RPi"
    SideRule('osd_rename', _prefix(FRAME_OSD_NAME_CEC), lambda encoder: encoder.rename_osd()),
]


def iter_frames(chunk: str) -> Iterator[CECFrame]:
    """Yield every frame found in a chunk of adapter output, in order"""
    for match in FRAME_RE.finditer(chunk):
        try:
            yield CECFrame(Direction(match.group(1)), match.group(2))
        except ValueError:
            # Single byte polls like '<< 10'
            continue


def classify(frame: CECFrame) -> Optional[CECEvent]:
    """Map a frame to an event using the first matching rule"""
    for rule in EVENT_RULES:
        match = rule.match(frame)
        if match:
            return rule.build(match)
    return None


class LineParser:
    """Scans adapter output for frames and classifies them"""

    def __init__(self, encoder: CommandEncoder):
        self.logger = logging.getLogger('LineParser')
        self.encoder = encoder

    def parse(self, chunk: str) -> Iterator[CECEvent]:
        """
        Parse a chunk of adapter output.

        Side rules run synchronously as their frame is reached, so consume
        the generator to make them happen. A frame split across two chunks
        is missed.
        """
        for frame in iter_frames(chunk):
            if self._run_side_rules(frame):
                continue

            event = classify(frame)
            if event is None:
                continue

            self.logger.debug(f"{frame} -> {event}")
            yield event

    def _run_side_rules(self, frame: CECFrame) -> bool:
        for rule in SIDE_RULES:
            if rule.match(frame):
                self.logger.info(f"Frame {frame} triggered {rule.name}")
                rule.action(self.encoder)
                return True
        return False
