"""
Configuration for the SessionCore wrapper.

Loads settings from environment variables with sensible defaults.
All files live in the working directory the wrapper is started from.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

AUTHLIB_URL = (
    "https://github.com/yushijinhun/authlib-injector/releases/download/"
    "v1.2.6/authlib-injector-1.2.6.jar"
)


@dataclass
class Config:
    """SessionCore configuration."""

    # Paths
    root: Path = None
    meta_dir: Path = None
    agent_path: Path = None
    config_path: Path = None
    server_log: Path = None
    supervisor_log: Path = None

    config_file: str = os.environ.get("SESSIONCORE_CONFIG_FILE", "SessionCore.yml")
    server_log_file: str = os.environ.get("SESSIONCORE_SERVER_LOG", "SessionCore-server.log")
    meta_dir_name: str = os.environ.get("SESSIONCORE_META_DIR", "meta")

    # Logging
    log_level: str = os.environ.get("SESSIONCORE_LOG_LEVEL", "INFO")
    log_max_bytes: int = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10MB
    log_backup_count: int = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

    # Server process
    java: str = os.environ.get("SESSIONCORE_JAVA", "java")
    candidate_suffix: str = ".jar"
    restart_delay: float = float(os.environ.get("RESTART_DELAY", "3"))

    # Agent
    agent_url: str = os.environ.get("SESSIONCORE_AGENT_URL", AUTHLIB_URL)

    def __post_init__(self):
        """Initialize derived paths."""
        self.root = Path(self.root) if self.root else Path.cwd()
        self.meta_dir = self.root / self.meta_dir_name
        self.agent_path = self.meta_dir / "authlibinjector.jar"
        self.config_path = self.root / self.config_file
        self.server_log = self.root / self.server_log_file
        self.supervisor_log = self.meta_dir / "SessionCore.log"

    @property
    def agent_argument(self) -> str:
        """Agent path as passed on the command line, relative to the root."""
        try:
            return self.agent_path.relative_to(self.root).as_posix()
        except ValueError:
            return str(self.agent_path)

    def ensure_meta_dir(self):
        """Create the meta directory if it is missing."""
        self.meta_dir.mkdir(parents=True, exist_ok=True)
