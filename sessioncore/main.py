"""
SessionCore entry point.

Sets up logging, makes sure the agent jar and a valid configuration exist
(running the installer if needed), then starts console forwarding and the
restart loop.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

import click

from . import __version__
from .agent import ensure_agent
from .config import Config
from .console import InputBridge
from .installer import Installer, InstallerAbort, self_artifact
from .models import Cell, InstallerPhase, SupervisorControl
from .process import ProcessLauncher
from .store import ConfigDocument, ConfigInvalid, ConfigStore
from .supervisor import Supervisor

logger = logging.getLogger(__name__)


def configure_logging(config: Config):
    """Status lines go to stdout with the tool prefix and to a rotating log."""
    log_formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    # Rotating file handler (auto-compaction)
    file_handler = RotatingFileHandler(
        config.supervisor_log,
        maxBytes=config.log_max_bytes,
        backupCount=config.log_backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(log_formatter)

    # Console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter("[SessionCore] %(message)s"))

    logging.basicConfig(
        level=config.log_level.upper(),
        handlers=[file_handler, console_handler],
        force=True,
    )


def load_or_install(store: ConfigStore, installer: Installer) -> ConfigDocument:
    """Return a usable configuration, running the installer if there is none."""
    try:
        return store.validate()
    except ConfigInvalid as e:
        logger.info(e.reason)
        return installer.run(previous=e.document)


def run(config: Config, stdin: TextIO = None, launcher: ProcessLauncher = None) -> int:
    """Run the wrapper until the server shuts down cleanly or stdin closes."""
    stdin = stdin or sys.stdin
    logger.info("Starting SessionCore...")

    config.ensure_meta_dir()
    if not ensure_agent(config.agent_path, config.agent_url):
        logger.error("Authlib Injector is unavailable; the server cannot be started.")
        return 1

    control = SupervisorControl()
    phase = Cell(InstallerPhase.IDLE)
    current_child = Cell(None)

    store = ConfigStore(config.config_path, config.root)
    installer = Installer(
        store,
        stdin,
        phase,
        suffix=config.candidate_suffix,
        exclude=self_artifact(config.candidate_suffix),
    )
    try:
        document = load_or_install(store, installer)
    except InstallerAbort as e:
        logger.info(str(e))
        logger.info("Exiting as requested during installer.")
        return 1

    logger.info(f"Using auth server: {document.auth_endpoint}")
    logger.info(f"Using server file: {document.server_file}")

    InputBridge(stdin, current_child, phase, control).start()

    supervisor = Supervisor(
        launcher or ProcessLauncher(config),
        control,
        current_child,
        restart_delay=config.restart_delay,
    )
    return supervisor.run(document.server_file, document.auth_endpoint)


@click.command()
@click.version_option(version=__version__)
@click.option(
    "--workdir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Server directory (defaults to the current directory).",
)
@click.option("--java", default=None, help="Java executable used to run the server.")
@click.option(
    "--restart-delay",
    type=float,
    default=None,
    help="Seconds to wait before restarting a crashed server.",
)
def main(workdir: Path, java: str, restart_delay: float) -> None:
    """SessionCore - keeps a Java server running with authlib-injector attached."""
    config = Config(root=workdir)
    if java:
        config.java = java
    if restart_delay is not None:
        config.restart_delay = restart_delay

    config.ensure_meta_dir()
    configure_logging(config)
    try:
        status = run(config)
    except KeyboardInterrupt:
        logger.info("Interrupted; exiting wrapper.")
        status = 130
    sys.exit(status)
