"""
Restart loop for the server process.

Launches the server, waits for it to exit and decides whether to start it
again. Exit code 0 is a clean shutdown and ends the loop; anything else is a
crash and the server is relaunched after a fixed delay, for as long as the
operator has not asked the wrapper to stop.
"""

import logging
import time
from typing import Callable, Optional

from .models import Cell, ChildHandle, SupervisorControl
from .process import LaunchError, ProcessLauncher

logger = logging.getLogger(__name__)

CLEAN_EXIT = 0
DEFAULT_RESTART_DELAY = 3.0


class Supervisor:
    """Keeps one server process running."""

    def __init__(
        self,
        launcher: ProcessLauncher,
        control: SupervisorControl,
        current_child: Cell[Optional[ChildHandle]],
        restart_delay: float = DEFAULT_RESTART_DELAY,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.launcher = launcher
        self.control = control
        self.current_child = current_child
        self.restart_delay = restart_delay
        self.launches = 0
        self._sleep = sleep

    def run(self, server_file: str, auth_endpoint: str) -> int:
        """Supervise the server until a clean exit or a stop request. Returns 0."""
        # The first launch always happens; a stop request only suppresses restarts
        while True:
            self.launches += 1

            code = self._run_once(server_file, auth_endpoint)
            if code == CLEAN_EXIT:
                logger.info("Clean shutdown detected. Exiting wrapper.")
                self.control.request_stop()
                break

            if not self.control.stopping:
                logger.info(f"Non-zero exit; restart #{self.launches} in {self.restart_delay:g}s...")
                self._sleep(self.restart_delay)

            if self.control.stopping:
                logger.info("Stop requested; not restarting the server.")
                break

        logger.info("Wrapper terminated.")
        return 0

    def _run_once(self, server_file: str, auth_endpoint: str) -> int:
        """Run one server lifetime and return its exit code."""
        try:
            child = self.launcher.launch(server_file, auth_endpoint)
        except LaunchError as e:
            logger.error(f"{e}; treating as a crash")
            return -1

        self.current_child.set(child)
        try:
            code = child.wait()
        finally:
            self.current_child.set(None)
            child.close()

        logger.info(f"Server exited with code: {code}")
        return code
