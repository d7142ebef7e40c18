import logging
import threading
import time
from typing import Optional

from constants import DEFAULT_DEBOUNCE_WINDOW_MS
from events import PowerEvent


class DebounceCoordinator:
    """
    Suppresses power events that follow an accepted one too closely.

    Sending a power command makes the bus echo it back. Without a quiet
    window the echo would be reported as an outside state change.

    The window has a single slot: Idle (expiry is None) or Suppressing until
    expiry. Only a forwarded event starts a window, and a new window
    replaces the old one.
    """

    def __init__(self, window_ms: int = DEFAULT_DEBOUNCE_WINDOW_MS):
        self.logger = logging.getLogger('DebounceCoordinator')
        self.window_ms = window_ms
        self._lock = threading.Lock()
        self._expiry: Optional[float] = None
        self._timer: Optional[threading.Timer] = None

    @property
    def suppressing(self) -> bool:
        with self._lock:
            return self._expiry is not None and time.monotonic() < self._expiry

    @property
    def expiry(self) -> Optional[float]:
        with self._lock:
            return self._expiry

    def offer(self, event: PowerEvent) -> bool:
        """
        Decide whether a power event is forwarded.

        Returns:
            True if the event should be applied, False if it is suppressed
        """
        now = time.monotonic()
        with self._lock:
            if self._expiry is not None and now < self._expiry:
                self.logger.debug(f"Suppressed {event} ({self._expiry - now:.2f}s left in window)")
                return False

            self._expiry = now + self.window_ms / 1000.0
            self._arm_timer(self._expiry)

        self.logger.debug(f"Accepted {event}, suppressing power events for {self.window_ms}ms")
        return True

    def _arm_timer(self, expiry: float) -> None:
        # Caller holds the lock
        if self._timer is not None:
            self._timer.cancel()
        self._timer = threading.Timer(self.window_ms / 1000.0, self._on_window_expired, args=(expiry,))
        self._timer.daemon = True
        self._timer.start()

    def _on_window_expired(self, expiry: float) -> None:
        with self._lock:
            # A newer window may have replaced this one
            if self._expiry != expiry:
                return
            self._expiry = None
            self._timer = None
        self.logger.debug("Debounce window expired")

    def close(self) -> None:
        """Cancel any pending window timer"""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
