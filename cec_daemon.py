#!/usr/bin/env python3
"""
CEC Daemon - Runs the CEC TV bridge

Keeps track of the TV power state and active input from cec-client traffic
and reports every change.
"""

import logging
import signal
import sys
from threading import Event
from typing import Optional

from cec_comms import CECAdapterError, CecClientComms
from config import get_section, load_config, setup_logging
from constants import DEFAULT_CEC_CLIENT_ARGS, DEFAULT_CEC_CLIENT_COMMAND, PowerState
from tv_bridge import TVBridge


class CECDaemon:
    """Owns the cec-client process and the bridge for the life of the process"""

    def __init__(self, config_path: str = "config.yaml"):
        """
        Initialize the CEC daemon.

        Args:
            config_path: Path to configuration file
        """
        self.config = load_config(config_path)
        setup_logging(self.config)

        self.logger = logging.getLogger('CECDaemon')
        self.logger.info("Initializing CEC Daemon")

        client_config = get_section(self.config, 'cec_client')
        args = client_config.get('args')
        if not isinstance(args, (list, tuple)):
            args = DEFAULT_CEC_CLIENT_ARGS
        self.comms = CecClientComms(
            command=client_config.get('command') or DEFAULT_CEC_CLIENT_COMMAND,
            args=[str(a) for a in args],
        )
        self.bridge = TVBridge(self.comms, self.config)

        self.bridge.add_power_callback(self._on_power_changed)
        self.bridge.add_input_callback(self._on_input_changed)
        self.bridge.add_error_handler(self._on_adapter_error)
        self.bridge.add_closed_handler(self._on_adapter_closed)

        self._stop_event = Event()
        self.exit_code = 0

    def start(self) -> bool:
        self.logger.info("Starting CEC Daemon")
        if not self.bridge.start():
            self.logger.error("Failed to start bridge")
            return False
        self.logger.info("CEC Daemon started, waiting for events...")
        return True

    def stop(self) -> None:
        """Stop the daemon"""
        self._stop_event.set()

    def run(self) -> int:
        """Run the daemon (blocks until stopped)"""
        if not self.start():
            self.bridge.stop()
            return 1

        try:
            while not self._stop_event.wait(1):
                pass
        except KeyboardInterrupt:
            self.logger.info("Received keyboard interrupt")

        self.bridge.stop()
        self.logger.info("CEC Daemon stopped")
        return self.exit_code

    def _on_power_changed(self, state: PowerState) -> None:
        self.logger.info(f"Notify: power {state.value}")

    def _on_input_changed(self, port: int) -> None:
        self.logger.info(f"Notify: active input HDMI{port}")

    def _on_adapter_error(self, error: CECAdapterError) -> None:
        self.logger.error(f"Shutting down, CEC adapter unusable: {error}")
        self.exit_code = 1
        self.stop()

    def _on_adapter_closed(self) -> None:
        self.logger.warning("Shutting down, cec-client output ended")
        self.stop()


def main(argv: Optional[list] = None) -> None:
    """Main entry point"""
    argv = sys.argv[1:] if argv is None else argv
    config_path = argv[0] if argv else "config.yaml"

    daemon = CECDaemon(config_path)

    # Setup signal handlers for graceful shutdown
    def signal_handler(signum, frame):
        daemon.logger.info(f"Received signal {signum}, shutting down")
        daemon.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    sys.exit(daemon.run())


if __name__ == "__main__":
    main()
