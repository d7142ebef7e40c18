from dataclasses import dataclass


class CECEvent:
    """Something the line parser recognized on the bus"""


class PowerEvent(CECEvent):
    """Power transitions, subject to debouncing"""


@dataclass(frozen=True)
class PowerOn(PowerEvent):
    pass


@dataclass(frozen=True)
class PowerOff(PowerEvent):
    pass


@dataclass(frozen=True)
class PowerStandby(PowerEvent):
    pass


@dataclass(frozen=True)
class InputSwitched(CECEvent):
    port: int
