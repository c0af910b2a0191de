"""Credential persistence.

The token manager only needs ``get``/``put``/``delete`` keyed by user id, so
any backend (a database table, a secrets service) can be plugged in through
the ``CredentialStore`` protocol. Two implementations ship with the package:
an in-memory store and a YAML file store for the CLI.
"""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path
from typing import Protocol

import yaml

from .errors import ConfigError
from .models import Credential

logger = logging.getLogger(__name__)

# Default credential file locations
DEFAULT_CONFIG_NAME = ".rmsync.yaml"
XDG_CONFIG_NAME = "rmsync/credentials.yaml"

# File permissions (owner read/write only)
CONFIG_FILE_MODE = stat.S_IRUSR | stat.S_IWUSR  # 0o600


class CredentialStore(Protocol):
    """Key-value store of credential records keyed by user id."""

    def get(self, user_id: str) -> Credential | None: ...

    def put(self, user_id: str, record: Credential) -> None: ...

    def delete(self, user_id: str) -> None: ...


class MemoryCredentialStore:
    """Credential store kept in a dict. Nothing survives the process."""

    def __init__(self) -> None:
        self._records: dict[str, Credential] = {}

    def get(self, user_id: str) -> Credential | None:
        return self._records.get(user_id)

    def put(self, user_id: str, record: Credential) -> None:
        self._records[user_id] = record

    def delete(self, user_id: str) -> None:
        self._records.pop(user_id, None)


def get_default_credentials_path() -> Path:
    """Determine the default credential file path.

    Checks in order:
    1. RMSYNC_CREDENTIALS environment variable
    2. ~/.rmsync.yaml (home directory)
    3. ~/.config/rmsync/credentials.yaml (XDG config)

    Returns:
        Path to the credential file.
    """
    env_path = os.environ.get("RMSYNC_CREDENTIALS")
    if env_path:
        return Path(env_path).expanduser()

    home_config = Path.home() / DEFAULT_CONFIG_NAME
    if home_config.exists():
        return home_config

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        xdg_config = Path(xdg_config_home) / XDG_CONFIG_NAME
    else:
        xdg_config = Path.home() / ".config" / XDG_CONFIG_NAME

    if xdg_config.exists():
        return xdg_config

    return home_config


class YamlCredentialStore:
    """Credential store backed by a YAML file.

    All users share one file, a mapping of user id to credential record.
    Every write rewrites the whole file, so a record is never half-updated.

    Attributes:
        path: Location of the credential file.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        if path is None:
            self.path = get_default_credentials_path()
        else:
            self.path = Path(path).expanduser()

    def _load(self) -> dict[str, dict]:
        if not self.path.exists():
            return {}

        try:
            data = yaml.safe_load(self.path.read_text())
        except yaml.YAMLError as e:
            raise ConfigError(f"Failed to parse credential file: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to read credential file: {e}") from e

        if not data:
            return {}
        if not isinstance(data, dict):
            raise ConfigError("Credential file must contain a mapping")
        return data

    def _save(self, data: dict[str, dict]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(yaml.safe_dump(data, default_flow_style=False))
            self.path.chmod(CONFIG_FILE_MODE)
        except OSError as e:
            raise ConfigError(f"Failed to save credential file: {e}") from e

    def get(self, user_id: str) -> Credential | None:
        record = self._load().get(user_id)
        if record is None:
            return None
        try:
            return Credential.model_validate(record)
        except ValueError as e:
            raise ConfigError(f"Invalid credential for {user_id}: {e}") from e

    def put(self, user_id: str, record: Credential) -> None:
        data = self._load()
        data[user_id] = record.model_dump(mode="json", by_alias=True)
        self._save(data)
        logger.debug("Saved credential for %s to %s", user_id, self.path)

    def delete(self, user_id: str) -> None:
        data = self._load()
        if data.pop(user_id, None) is not None:
            self._save(data)
