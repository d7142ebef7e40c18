import logging
import subprocess
import threading
from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional, Sequence

from constants import DEFAULT_CEC_CLIENT_ARGS, DEFAULT_CEC_CLIENT_COMMAND


class CECAdapterError(Exception):
    """Raised when the CEC adapter can no longer accept commands"""


class Direction(Enum):
    """Which way a frame travelled, as marked by cec-client"""
    RECEIVED = ">>"
    SENT = "<<"


class CECFrame:
    """One logical CEC message as printed by cec-client (received or sent)"""
    __slots__ = ('direction', 'frame_string', 'initiator', 'destination', 'opcode', 'parameters')

    def __init__(self, direction: Direction, frame_string: str):
        """
        Create a CECFrame from a frame string.

        Args:
            direction: Direction.RECEIVED for '>>' traffic, Direction.SENT for '<<'
            frame_string: Frame in format "XX:YY:ZZ..." where XX is initiator+destination
        """
        frame_string = frame_string.strip()

        parts = frame_string.split(':')
        if len(parts) < 2:
            raise ValueError(f"Invalid CEC frame format: {frame_string}")

        # First byte: high nibble = initiator, low nibble = destination
        first_byte = int(parts[0], 16)
        opcode = int(parts[1], 16)
        parameters = bytes([int(p, 16) for p in parts[2:]])

        object.__setattr__(self, 'direction', direction)
        object.__setattr__(self, 'frame_string', frame_string)
        object.__setattr__(self, 'initiator', (first_byte >> 4) & 0xF)
        object.__setattr__(self, 'destination', first_byte & 0xF)
        object.__setattr__(self, 'opcode', opcode)
        object.__setattr__(self, 'parameters', parameters)

    def __setattr__(self, name, value):
        raise AttributeError("CECFrame is immutable")

    @property
    def received(self) -> bool:
        return self.direction is Direction.RECEIVED

    def __str__(self):
        return f"{self.direction.value} {self.frame_string}"

    def __repr__(self):
        return f"CECFrame({self.direction.name}, {self.frame_string!r})"


class CECComms(ABC):
    """Abstract interface for the CEC adapter text stream"""

    @abstractmethod
    def init(self, on_data: Callable[[str], None],
             on_closed: Optional[Callable[[], None]] = None) -> bool:
        pass

    @abstractmethod
    def transmit(self, frame: str) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        pass

    @abstractmethod
    def is_alive(self) -> bool:
        pass


class CecClientComms(CECComms):
    """CEC communication through a long-lived cec-client subprocess"""

    def __init__(self, command: str = DEFAULT_CEC_CLIENT_COMMAND,
                 args: Sequence[str] = DEFAULT_CEC_CLIENT_ARGS):
        self.logger = logging.getLogger('CecClientComms')
        self._argv = [command] + list(args)
        self._process: Optional[subprocess.Popen] = None
        self._reader: Optional[threading.Thread] = None
        self._on_data_callback = None
        self._on_closed_callback = None

    def init(self, on_data: Callable[[str], None],
             on_closed: Optional[Callable[[], None]] = None) -> bool:
        """Spawn cec-client and start reading its output"""
        self._on_data_callback = on_data
        self._on_closed_callback = on_closed

        try:
            # -d 8 keeps cec-client output to TRAFFIC lines
            self._process = subprocess.Popen(
                self._argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                bufsize=1,
                encoding="utf-8",
                errors="replace",
            )
        except FileNotFoundError:
            self.logger.error(f"{self._argv[0]} not found. Install with: sudo apt install cec-utils")
            return False
        except OSError as e:
            self.logger.error(f"Failed to start {self._argv[0]}: {e}")
            return False

        if self._process.stdin is None or self._process.stdout is None:
            self.logger.error("Failed to open cec-client pipes")
            return False

        self.logger.info(f"Spawned: {' '.join(self._argv)} (pid {self._process.pid})")

        self._reader = threading.Thread(target=self._read_loop, name='cec-client-reader', daemon=True)
        self._reader.start()
        return True

    def _read_loop(self) -> None:
        """Forward every chunk of adapter output until end of stream"""
        try:
            for chunk in self._process.stdout:
                try:
                    self._on_data_callback(chunk)
                except Exception as e:
                    self.logger.error(f"Error handling cec-client output: {e}")
        except (OSError, ValueError) as e:
            self.logger.error(f"Error reading cec-client output: {e}")
        finally:
            self.logger.info("cec-client output closed")
            if self._on_closed_callback:
                self._on_closed_callback()

    def transmit(self, frame: str) -> None:
        """Write a 'tx' line to cec-client, raising CECAdapterError if it is gone"""
        if self._process is None or self._process.stdin is None:
            raise CECAdapterError("cec-client not running")

        try:
            self._process.stdin.write(f"tx {frame}\n")
            self._process.stdin.flush()
        except (OSError, ValueError) as e:
            # ValueError: write to a closed pipe
            raise CECAdapterError(f"Failed to write to cec-client: {e}") from e

        self.logger.debug(f"TX: {frame}")

    def is_alive(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def close(self) -> None:
        """Close stdin and stop the cec-client process"""
        if self._process is None:
            return

        try:
            self._process.stdin.close()
        except OSError as e:
            self.logger.debug(f"Error closing cec-client stdin: {e}")

        if self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self.logger.warning("cec-client did not exit, killing it")
                self._process.kill()
                self._process.wait()

        if self._reader is not None and self._reader is not threading.current_thread():
            self._reader.join(timeout=5)

        self.logger.info(f"cec-client exited with code {self._process.returncode}")


class MockCECComms(CECComms):
    """Mock CEC communication for testing"""

    def __init__(self):
        self.logger = logging.getLogger('MockCECComms')
        self._on_data_callback = None
        self._on_closed_callback = None
        self._initialized = False
        self.fail_writes = False
        self.transmitted_commands = []

    def init(self, on_data: Callable[[str], None],
             on_closed: Optional[Callable[[], None]] = None) -> bool:
        """Initialize mock CEC"""
        self._on_data_callback = on_data
        self._on_closed_callback = on_closed
        self._initialized = True
        self.logger.info("Mock CEC initialized")
        return True

    def transmit(self, frame: str) -> None:
        """Record transmitted frame"""
        if not self._initialized:
            raise CECAdapterError("Mock CEC not initialized")
        if self.fail_writes:
            raise CECAdapterError("Mock CEC write failed")

        self.transmitted_commands.append(frame)
        self.logger.debug(f"Mock TX: {frame}")

    def is_alive(self) -> bool:
        return self._initialized

    def close(self) -> None:
        """Close mock CEC"""
        self._initialized = False
        self.logger.info("Mock CEC closed")

    def simulate_received(self, chunk: str) -> None:
        """Simulate a chunk of cec-client output (for testing)"""
        if self._on_data_callback:
            self._on_data_callback(chunk)

    def simulate_end_of_stream(self) -> None:
        """Simulate cec-client closing its output (for testing)"""
        if self._on_closed_callback:
            self._on_closed_callback()
