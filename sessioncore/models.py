"""
Runtime state shared between the supervisor loop and its I/O threads.

Holds the supervisor and installer state enums, the handle wrapping one
running server process, and the small lock-protected cells through which
the threads observe each other's state.
"""

import logging
import subprocess
import threading
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# How long close() waits for the output thread to drain the pipe
OUTPUT_JOIN_TIMEOUT = 5.0


class SessionCoreError(Exception):
    """Base class for SessionCore errors."""


class SupervisorState(Enum):
    RUNNING = "running"
    STOPPING = "stopping"


class InstallerPhase(Enum):
    IDLE = "idle"
    AWAITING_ENDPOINT = "awaiting-endpoint"
    AWAITING_SELECTION = "awaiting-selection"


class Cell(Generic[T]):
    """A value guarded by a lock, read and replaced as a whole."""

    def __init__(self, value: T):
        self._value = value
        self._lock = threading.Lock()

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T):
        with self._lock:
            self._value = value

    def swap(self, value: T) -> T:
        """Replace the value and return the previous one."""
        with self._lock:
            previous, self._value = self._value, value
            return previous


class SupervisorControl:
    """The one-way running -> stopping switch."""

    def __init__(self):
        self._stopping = threading.Event()

    @property
    def state(self) -> SupervisorState:
        if self._stopping.is_set():
            return SupervisorState.STOPPING
        return SupervisorState.RUNNING

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def request_stop(self):
        """Move to stopping. Calling it again has no effect."""
        if not self._stopping.is_set():
            logger.debug("Stop requested")
        self._stopping.set()


@dataclass
class ChildHandle:
    """A running server process and the thread draining its output."""

    process: subprocess.Popen
    output_thread: Optional[threading.Thread] = None
    stdin_lock: threading.Lock = field(default_factory=threading.Lock)
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def pid(self) -> int:
        return self.process.pid

    def wait(self) -> int:
        """Block until the process exits and return its exit code."""
        return self.process.wait()

    def write_line(self, text: str):
        """Send one command line to the process console."""
        stdin = self.process.stdin
        with self.stdin_lock:
            stdin.write(text + "\n")
            stdin.flush()

    def close(self, timeout: float = OUTPUT_JOIN_TIMEOUT):
        """Wait for the output thread to finish and release both pipes."""
        streams = [self.process.stdin, self.process.stdout]
        if self.output_thread is not None:
            self.output_thread.join(timeout)
            if self.output_thread.is_alive():
                # A reader blocked in readline() holds the buffer lock
                logger.warning(f"Output of PID {self.pid} still open after exit, detaching")
                streams.remove(self.process.stdout)

        with self.stdin_lock:
            for stream in streams:
                if stream is None:
                    continue
                try:
                    stream.close()
                except (OSError, ValueError) as e:
                    logger.debug(f"Error closing pipe of PID {self.pid}: {e}")
