import logging
from threading import Event, Thread, current_thread
from typing import Callable, Optional

from cec_comms import CECAdapterError
from constants import DEFAULT_POLL_INTERVAL_MS
from encoder import CommandEncoder


class PowerPoller:
    """Periodically asks the TV for its power status"""

    def __init__(self, encoder: CommandEncoder, interval_ms: int = DEFAULT_POLL_INTERVAL_MS,
                 on_error: Optional[Callable[[CECAdapterError], None]] = None):
        self.logger = logging.getLogger('PowerPoller')
        self.encoder = encoder
        self.interval_ms = interval_ms
        self._on_error = on_error
        self._stop_event = Event()
        self._thread: Optional[Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Start the polling thread"""
        if self.running:
            return

        self._stop_event.clear()
        self._thread = Thread(target=self._polling_loop, name='power-poller', daemon=True)
        self._thread.start()

    def stop(self) -> None:
        """Stop the polling thread"""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive() and self._thread is not current_thread():
            self._thread.join(timeout=5)
        self._thread = None

    def _polling_loop(self) -> None:
        interval_sec = self.interval_ms / 1000.0
        self.logger.info(f"Polling started (interval: {self.interval_ms}ms)")

        # Wait for next poll (or until stop event)
        while not self._stop_event.wait(interval_sec):
            try:
                self.encoder.request_power_status()
            except CECAdapterError as e:
                self.logger.error(f"Polling stopped: {e}")
                if self._on_error:
                    self._on_error(e)
                return

        self.logger.info("Polling stopped")
