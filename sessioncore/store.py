"""
Persistent wrapper configuration.

The configuration is a flat YAML document in the working directory holding
the authentication endpoint and the server file to launch. It is written in
block style so operators can edit it by hand between runs.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field

from .models import SessionCoreError

logger = logging.getLogger(__name__)

AUTH_ENDPOINT = "auth-endpoint"
SERVER_FILE = "server-file"
REQUIRED_KEYS = (AUTH_ENDPOINT, SERVER_FILE)


class ConfigInvalid(SessionCoreError):
    """The stored configuration cannot be used as-is.

    ``document`` holds whatever could be read, so the installer can keep the
    values that are still good.
    """

    def __init__(self, reason: str, document: dict = None):
        super().__init__(reason)
        self.reason = reason
        self.document = document or {}


class ConfigDocument(BaseModel):
    """The accepted configuration."""

    model_config = ConfigDict(populate_by_name=True)

    auth_endpoint: str = Field(alias=AUTH_ENDPOINT)
    server_file: str = Field(alias=SERVER_FILE)

    def to_mapping(self) -> dict[str, str]:
        return self.model_dump(by_alias=True)


class ConfigStore:
    """Loads, validates and saves the configuration file."""

    def __init__(self, path: Path, root: Path = None):
        self.path = Path(path)
        self.root = Path(root) if root else self.path.parent

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> dict[str, str]:
        """Read the raw key-value mapping."""
        if not self.exists():
            raise ConfigInvalid(f"{self.path.name} not found")

        try:
            with open(self.path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigInvalid(f"Failed to parse config: {e}") from e

        if loaded is None:
            loaded = {}
        if not isinstance(loaded, dict):
            raise ConfigInvalid(f"{self.path.name} is not a key-value document")

        return {str(k): "" if v is None else str(v) for k, v in loaded.items()}

    def validate(self) -> ConfigDocument:
        """Load the configuration and check it can be used to launch a server."""
        loaded = self.load()

        for key in REQUIRED_KEYS:
            if not loaded.get(key, "").strip():
                raise ConfigInvalid(f"Config is missing '{key}'", loaded)

        document = ConfigDocument.model_validate(loaded)
        if not (self.root / document.server_file).is_file():
            raise ConfigInvalid(
                f"Config server-file does not exist: {document.server_file}", loaded
            )
        return document

    def save(self, document: ConfigDocument):
        """Write the configuration, replacing any previous file."""
        with open(self.path, "w", encoding="utf-8") as f:
            yaml.safe_dump(
                document.to_mapping(),
                f,
                default_flow_style=False,
                sort_keys=False,
                allow_unicode=True,
            )
        logger.info(f"Configuration saved to {self.path.name}")
