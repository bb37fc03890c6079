"""
First-run interactive installer.

Runs when there is no usable configuration. Asks for the authentication
server URL, picks the server jar from the working directory and saves both.
While it runs the installer phase is not idle, which keeps console
forwarding from treating installer answers as server commands.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, TextIO

from .models import Cell, InstallerPhase, SessionCoreError
from .store import AUTH_ENDPOINT, ConfigDocument, ConfigStore

logger = logging.getLogger(__name__)


class InstallerAbort(SessionCoreError):
    """The installer cannot finish; the wrapper should exit."""


def self_artifact(suffix: str = ".jar") -> Optional[Path]:
    """The file this wrapper was started from, if it is a packaged artifact."""
    if not sys.argv or not sys.argv[0]:
        return None
    try:
        path = Path(sys.argv[0]).resolve()
    except OSError:
        return None
    if path.is_file() and path.name.lower().endswith(suffix):
        return path
    return None


def list_candidates(root: Path, suffix: str = ".jar", exclude: Path = None) -> list[Path]:
    """Server executables in ``root``, sorted by name, without ``exclude``."""
    excluded = Path(exclude).resolve() if exclude else None
    candidates = []
    for path in Path(root).iterdir():
        if not path.is_file() or not path.name.lower().endswith(suffix):
            continue
        if excluded is not None and path.resolve() == excluded:
            continue
        candidates.append(path)
    return sorted(candidates, key=lambda p: p.name)


class Installer:
    """Collects the configuration interactively from the operator."""

    def __init__(
        self,
        store: ConfigStore,
        stream: TextIO,
        phase: Cell[InstallerPhase],
        output: TextIO = None,
        suffix: str = ".jar",
        exclude: Path = None,
    ):
        self.store = store
        self.stream = stream
        self.phase = phase
        self.output = output
        self.suffix = suffix
        self.exclude = exclude

    def run(self, previous: dict = None) -> ConfigDocument:
        """
        Run the installer to completion.

        ``previous`` is the rejected configuration, if any. A still-present
        auth endpoint is kept so only the server file is asked for again.

        Raises:
            InstallerAbort: input ended, no jar was found, or saving failed.
        """
        logger.info("No valid configuration detected. Running interactive installer.")
        try:
            self.phase.set(InstallerPhase.AWAITING_ENDPOINT)
            auth_endpoint = (previous or {}).get(AUTH_ENDPOINT, "").strip()
            if auth_endpoint:
                logger.info(f"Keeping {AUTH_ENDPOINT} = {auth_endpoint}")
            else:
                auth_endpoint = self.ask_endpoint()

            self.phase.set(InstallerPhase.AWAITING_SELECTION)
            server_file = self.choose_server_file()

            document = ConfigDocument(auth_endpoint=auth_endpoint, server_file=server_file)
            try:
                self.store.save(document)
            except OSError as e:
                raise InstallerAbort(f"Failed to write config: {e}") from e
            return document

        finally:
            self.phase.set(InstallerPhase.IDLE)

    def ask_endpoint(self) -> str:
        logger.info("Enter authentication server URL:")
        while True:
            answer = self._read()
            if answer:
                logger.info(f"Set {AUTH_ENDPOINT} = {answer}")
                return answer
            logger.info("Empty input. Please enter authentication server URL:")

    def choose_server_file(self) -> str:
        candidates = list_candidates(self.store.root, self.suffix, self.exclude)
        if not candidates:
            raise InstallerAbort(
                f"No {self.suffix} files found. Put your server jar in {self.store.root} and restart."
            )

        if len(candidates) == 1:
            only = candidates[0].name
            logger.info(f"Only one {self.suffix} found. Selected: {only}")
            return only

        self._write("")
        logger.info("Select the server JAR:")
        for i, candidate in enumerate(candidates, start=1):
            self._write(f"  {i}) {candidate.name}")
        self._write("Enter number:")

        while True:
            answer = self._read()
            if not answer:
                logger.info("Enter a number:")
                continue
            try:
                index = int(answer)
            except ValueError:
                logger.info("Invalid number. Try again:")
                continue
            if not 1 <= index <= len(candidates):
                logger.info("Invalid selection. Try again.")
                continue

            chosen = candidates[index - 1].name
            logger.info(f"Selected server-file = {chosen}")
            return chosen

    def _read(self) -> str:
        line = self.stream.readline()
        if not line:
            raise InstallerAbort("Input closed during installer.")
        return line.strip()

    def _write(self, text: str):
        output = self.output or sys.stdout
        output.write(text + "\n")
        output.flush()
