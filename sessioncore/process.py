"""
Server process launcher.

Starts the server with the authentication agent attached, merges its stderr
into stdout, and immediately attaches a thread that copies every output line
to the console and the server log file.
"""

import logging
import shlex
import subprocess
import sys
import threading
from pathlib import Path
from typing import TextIO

from .config import Config
from .models import ChildHandle, SessionCoreError

logger = logging.getLogger(__name__)

SERVER_PREFIX = "[SERVER] "
NO_GUI_FLAG = "nogui"


class LaunchError(SessionCoreError):
    """The server process could not be started."""


def build_command(java: str, agent_path: str, auth_endpoint: str, server_file: str) -> list[str]:
    """Build the server command line. Values are passed through untouched."""
    return [
        java,
        f"-javaagent:{agent_path}={auth_endpoint}",
        "-jar",
        server_file,
        NO_GUI_FLAG,
    ]


class OutputBridge:
    """Copies a server's combined output to the console and the log file."""

    def __init__(self, stream: TextIO, log_path: Path, console: TextIO = None):
        self.stream = stream
        self.log_path = Path(log_path)
        self.console = console

    def start(self, name: str = "SessionCore-ServerOutput") -> threading.Thread:
        thread = threading.Thread(target=self.run, name=name, daemon=True)
        thread.start()
        return thread

    def run(self):
        """Pump lines until end of stream. I/O errors end the bridge quietly."""
        console = self.console or sys.stdout
        try:
            with open(self.log_path, "a", encoding="utf-8") as log_file:
                for line in iter(self.stream.readline, ""):
                    formatted = SERVER_PREFIX + line.rstrip("\r\n")

                    console.write(formatted + "\n")
                    console.flush()

                    log_file.write(formatted + "\n")
                    log_file.flush()

        except (OSError, ValueError) as e:
            logger.debug(f"Output bridge stopped: {e}")


class ProcessLauncher:
    """Starts server processes from the wrapper configuration."""

    def __init__(self, config: Config, console: TextIO = None):
        self.config = config
        self.console = console

    def command(self, server_file: str, auth_endpoint: str) -> list[str]:
        return build_command(
            self.config.java,
            self.config.agent_argument,
            auth_endpoint,
            server_file,
        )

    def launch(self, server_file: str, auth_endpoint: str) -> ChildHandle:
        """Start the server and its output thread."""
        cmd = self.command(server_file, auth_endpoint)
        logger.info("Launching server...")
        logger.info(f"Command: {shlex.join(cmd)}")

        try:
            process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                cwd=self.config.root,
                text=True,
                encoding="utf-8",
                errors="replace",
                bufsize=1,
            )
        except OSError as e:
            raise LaunchError(f"Failed to start {cmd[0]}: {e}") from e

        bridge = OutputBridge(process.stdout, self.config.server_log, self.console)
        handle = ChildHandle(process=process)
        handle.output_thread = bridge.start()

        logger.info(f"Server started with PID {process.pid}")
        return handle
