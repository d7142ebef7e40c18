import logging
from typing import Callable, List, Optional

from cec_comms import CECAdapterError, CECComms
from cec_parser import LineParser
from cec_session import CECSession
from config import get_interval_ms
from constants import DEFAULT_DEBOUNCE_WINDOW_MS, DEFAULT_NAME, DEFAULT_POLL_INTERVAL_MS, PowerState
from debounce import DebounceCoordinator
from devices import TV
from encoder import CommandEncoder
from events import CECEvent, PowerEvent
from poller import PowerPoller


class TVBridge:
    """
    Top-level bridge between cec-client traffic and the TV state.

    Wires adapter output through the parser and debounce coordinator into
    the TV model, and runs the power status poller.
    """

    def __init__(self, comms: CECComms, config: Optional[dict] = None):
        """
        Initialize the bridge.

        Args:
            comms: CECComms instance (CecClientComms or MockCECComms)
            config: Loaded configuration, defaults are used for missing keys
        """
        config = config or {}
        self.logger = logging.getLogger('TVBridge')
        self.comms = comms
        self.name = config.get('name') or DEFAULT_NAME
        self.poll_interval_ms = get_interval_ms(config, 'polling', DEFAULT_POLL_INTERVAL_MS)
        self.debounce_window_ms = get_interval_ms(config, 'debounce', DEFAULT_DEBOUNCE_WINDOW_MS, key='window_ms')

        self.session = CECSession(comms)
        self.encoder = CommandEncoder(self.session)
        self.parser = LineParser(self.encoder)
        self.debounce = DebounceCoordinator(self.debounce_window_ms)
        self.tv = TV(self.encoder, name=self.name)

        self.poller = PowerPoller(self.encoder, self.poll_interval_ms, on_error=self.on_adapter_error)

        self._error_handlers: List[Callable[[CECAdapterError], None]] = []
        self._closed_handlers: List[Callable[[], None]] = []
        self._running = False

    def start(self) -> bool:
        """Initialize the session, query the TV and start polling"""
        self.logger.info(f"Starting bridge for '{self.name}'")

        self.session.add_callback(self.on_traffic)
        self.session.add_error_handler(self.on_adapter_error)
        self.session.add_closed_handler(self._on_stream_closed)

        if not self.session.init():
            self.logger.error("Failed to initialize CEC session")
            return False

        self._running = True

        # Query initial state
        try:
            self.encoder.request_power_status()
        except CECAdapterError as e:
            self.on_adapter_error(e)
            return False

        self.poller.start()
        self.logger.info("Bridge started")
        return True

    def stop(self) -> None:
        """Stop polling and close the adapter session"""
        self.logger.info("Stopping bridge")
        self._running = False
        self.poller.stop()
        self.debounce.close()
        self.session.close()
        self.logger.info("Bridge stopped")

    @property
    def running(self) -> bool:
        return self._running

    def is_alive(self) -> bool:
        return self.session.is_alive()

    # ===== Outward interface =====

    def get_power(self) -> PowerState:
        return self.tv.get_power()

    def set_power(self, desired: bool) -> bool:
        return self.tv.set_power(desired)

    @property
    def power_state(self) -> PowerState:
        return self.tv.power_state

    @property
    def active_input(self) -> Optional[int]:
        return self.tv.active_input

    def add_power_callback(self, handler: Callable[[PowerState], None]) -> None:
        self.tv.add_power_callback(handler)

    def add_input_callback(self, handler: Callable[[int], None]) -> None:
        self.tv.add_input_callback(handler)

    def add_error_handler(self, handler: Callable[[CECAdapterError], None]) -> None:
        """Register a handler for adapter failures (the adapter's lifecycle owner)"""
        self._error_handlers.append(handler)

    # ===== Event pipeline =====

    def on_traffic(self, chunk: str) -> None:
        """Parse a chunk of adapter output and apply the resulting events"""
        for event in self.parser.parse(chunk):
            self.dispatch(event)

    def dispatch(self, event: CECEvent) -> None:
        if isinstance(event, PowerEvent) and not self.debounce.offer(event):
            return
        self.tv.apply(event)

    def on_adapter_error(self, error: CECAdapterError) -> None:
        self.logger.error(f"CEC adapter failure: {error}")
        for handler in self._error_handlers:
            handler(error)

    def add_closed_handler(self, handler: Callable[[], None]) -> None:
        """Register a handler for the adapter output ending"""
        self._closed_handlers.append(handler)

    def _on_stream_closed(self) -> None:
        if not self._running:
            return
        self.logger.warning("cec-client output ended while running")
        for handler in self._closed_handlers:
            handler()
