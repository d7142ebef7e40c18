"""
CEC Session - Owns the adapter connection for the lifetime of the process

Serializes writes to the adapter and fans out received text to callbacks.
"""

import logging
import threading
from typing import Callable, List

from cec_comms import CECAdapterError, CECComms


class CECSession:
    """Single owner of the CEC adapter - manages callbacks and delegates to CECComms"""

    def __init__(self, comms: CECComms):
        self.logger = logging.getLogger('CECSession')
        self._comms = comms
        self._write_lock = threading.Lock()
        self._callbacks: List[Callable[[str], None]] = []
        self._error_handlers: List[Callable[[CECAdapterError], None]] = []
        self._closed_handlers: List[Callable[[], None]] = []

    def init(self) -> bool:
        """Initialize the CEC communication layer"""
        return self._comms.init(self._on_data_internal, self._on_closed_internal)

    def transmit(self, frame: str) -> None:
        """
        Send a frame to the adapter.

        Writes from the reader, the poll thread and external callers are
        serialized. Raises CECAdapterError if the adapter is gone.
        """
        with self._write_lock:
            self._comms.transmit(frame)

    def add_callback(self, handler: Callable[[str], None]) -> None:
        """Register a callback for received adapter output"""
        self._callbacks.append(handler)

    def add_error_handler(self, handler: Callable[[CECAdapterError], None]) -> None:
        """Register a handler for adapter failures raised while handling received output"""
        self._error_handlers.append(handler)

    def add_closed_handler(self, handler: Callable[[], None]) -> None:
        """Register a handler for the adapter closing its output stream"""
        self._closed_handlers.append(handler)

    def is_alive(self) -> bool:
        return self._comms.is_alive()

    def report_error(self, error: CECAdapterError) -> None:
        """Pass an adapter failure to whoever manages the adapter lifecycle"""
        if not self._error_handlers:
            self.logger.error(f"Unhandled CEC adapter error: {error}")
        for handler in self._error_handlers:
            handler(error)

    def _on_data_internal(self, chunk: str) -> None:
        """Internal callback from comms layer"""
        self.logger.debug(f"RX: {chunk.rstrip()}")

        for handler in self._callbacks:
            try:
                handler(chunk)
            except CECAdapterError as e:
                self.report_error(e)
            except Exception as e:
                self.logger.error(f"Error in CEC callback handler: {e}")

    def _on_closed_internal(self) -> None:
        self.logger.info("CEC adapter stream ended")
        for handler in self._closed_handlers:
            handler()

    def close(self) -> None:
        """Close the CEC communication layer"""
        self._comms.close()
