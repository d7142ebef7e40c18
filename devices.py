"""
Device Classes - High-level model of the TV on the CEC bus

The TV tracks power state and active input from events the parser
recognizes, and notifies subscribers when either is applied.
"""

import logging
import threading
from typing import Callable, List, Optional

from constants import PowerState
from encoder import CommandEncoder
from events import CECEvent, InputSwitched, PowerOff, PowerOn, PowerStandby

MIN_INPUT = 1
MAX_INPUT = 9


class TV:
    """TV power and input state machine"""

    def __init__(self, encoder: CommandEncoder, name: str = "TV"):
        """
        Initialize the TV model.

        Args:
            encoder: Command encoder used to reach the TV
            name: Human-readable name (for logging)
        """
        self.name = name
        self.encoder = encoder
        self.logger = logging.getLogger(f'TV({name})')
        self._lock = threading.Lock()
        self._power_state = PowerState.UNKNOWN
        self._active_input: Optional[int] = None
        self._power_callbacks: List[Callable[[PowerState], None]] = []
        self._input_callbacks: List[Callable[[int], None]] = []

    @property
    def power_state(self) -> PowerState:
        with self._lock:
            return self._power_state

    @property
    def active_input(self) -> Optional[int]:
        with self._lock:
            return self._active_input

    def is_on(self) -> Optional[bool]:
        """
        Check if TV is on based on last known state.

        Returns:
            True if ON, False if standby/off, None if unknown
        """
        state = self.power_state
        if state is PowerState.UNKNOWN:
            return None
        return state is PowerState.ON

    def add_power_callback(self, handler: Callable[[PowerState], None]) -> None:
        """Register a callback for applied power events"""
        self._power_callbacks.append(handler)

    def add_input_callback(self, handler: Callable[[int], None]) -> None:
        """Register a callback for applied input switches"""
        self._input_callbacks.append(handler)

    def get_power(self) -> PowerState:
        """
        Request TV power status.

        Sends: tx 10:8f
        Expects response: 01:90:XX where XX is power status

        Note: This is async - the response comes through the event pipeline.
        The returned value does not reflect the query just sent.

        Returns:
            The last known power state
        """
        self.logger.debug("Checking TV power status")
        self.encoder.request_power_status()
        return self.power_state

    def set_power(self, desired: bool) -> bool:
        """
        Turn the TV on or put it in standby.

        Does not wait for the TV; its echo on the bus updates the state.
        Standby is always sent since an OFF state may be stale.

        Returns:
            True, the request is acknowledged optimistically
        """
        self.logger.info(f"Turning TV {'on' if desired else 'off'}")

        if desired and self.power_state is PowerState.ON:
            self.logger.info("TV is already on")
            return True

        self.encoder.set_power(desired)
        return True

    def apply(self, event: CECEvent) -> None:
        """Apply an accepted event and notify subscribers"""
        if isinstance(event, PowerOn):
            self._apply_power(PowerState.ON)
        elif isinstance(event, (PowerOff, PowerStandby)):
            self._apply_power(PowerState.OFF)
        elif isinstance(event, InputSwitched):
            self._apply_input(event.port)
        else:
            self.logger.warning(f"Ignoring unsupported event {event}")

    def _apply_power(self, state: PowerState) -> None:
        with self._lock:
            old_state = self._power_state
            self._power_state = state

        if old_state != state:
            self.logger.info(f"Power state changed: {old_state.name} -> {state.name}")
        else:
            self.logger.debug(f"Power state confirmed: {state.name}")

        self._notify(self._power_callbacks, state)

    def _apply_input(self, port: int) -> None:
        if not MIN_INPUT <= port <= MAX_INPUT:
            self.logger.debug(f"Ignoring switch to non-HDMI input {port}")
            return

        with self._lock:
            old_input = self._active_input
            self._active_input = port

        if old_input != port:
            self.logger.info(f"Input switched to HDMI{port}")

        self._notify(self._input_callbacks, port)

    def _notify(self, callbacks, value) -> None:
        for handler in callbacks:
            try:
                handler(value)
            except Exception as e:
                self.logger.error(f"Error in state callback: {e}")
