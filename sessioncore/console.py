"""
Operator console forwarding.

Reads commands typed into the wrapper's stdin and passes them to whichever
server process is currently running. Closing stdin asks the wrapper to stop
once the current server exits.
"""

import logging
import threading
from typing import Optional, TextIO

from .models import Cell, ChildHandle, InstallerPhase, SupervisorControl

logger = logging.getLogger(__name__)


class InputBridge:
    """Forwards operator lines to the current server's stdin."""

    def __init__(
        self,
        stream: TextIO,
        current_child: Cell[Optional[ChildHandle]],
        phase: Cell[InstallerPhase],
        control: SupervisorControl,
    ):
        self.stream = stream
        self.current_child = current_child
        self.phase = phase
        self.control = control
        self._thread: threading.Thread = None

    def start(self) -> threading.Thread:
        self._thread = threading.Thread(
            target=self.run, name="SessionCore-ConsoleForwarder", daemon=True
        )
        self._thread.start()
        return self._thread

    def run(self):
        """Forward lines until the operator stream ends."""
        try:
            for line in iter(self.stream.readline, ""):
                self.forward(line)
        except (OSError, ValueError) as e:
            logger.debug(f"Console input failed: {e}")
        finally:
            self.control.request_stop()

    def forward(self, line: str) -> bool:
        """Send one line to the running server. Returns True if it was written."""
        cmd = line.strip()
        if not cmd:
            return False

        # Installer answers must never reach a server
        if self.phase.get() is not InstallerPhase.IDLE:
            return False

        child = self.current_child.get()
        if child is None:
            logger.info("No server running.")
            return False

        try:
            child.write_line(cmd)
        except (OSError, ValueError) as e:
            logger.info(f"Failed to forward input: {e}")
            return False
        return True
