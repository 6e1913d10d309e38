"""Loading of the sync configuration file.

The configuration is read once at startup into frozen dataclasses and
passed explicitly to the engine; nothing re-reads or mutates it afterwards.

Example ``sync.config.json``::

    {
      "wpBin": "wp",
      "multisite": false,
      "environments": {
        "local": {"domain": "http://dev.local"},
        "staging": {
          "sshAlias": "staging",
          "wpRoot": "/var/www/staging",
          "domain": "https://staging.example.com",
          "exclude": [".DS_Store"],
          "syncOptions": {"uploads": {"push": false}}
        }
      }
    }
"""

import json
import logging
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

from .exceptions import SyncConfigError, UnknownTargetError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "sync.config.json"
DEFAULT_BACKUP_DIR = "sql"
DEFAULT_LOG_FILE = "sync.log"
DEFAULT_WP_BIN = "wp"
LOCAL_ENVIRONMENT = "local"

# Keys allowed under syncOptions.<target>
SYNC_DIRECTIONS = ("push", "pull")


@dataclass(frozen=True)
class Environment:
    """A named deployment target."""

    name: str
    """Environment key, e.g. "local", "staging", "production" """

    ssh_alias: Optional[str] = None
    """Host alias for ssh/rsync (None for the local environment)"""

    wp_root: Optional[str] = None
    """CMS root directory on the remote host"""

    domain: Optional[str] = None
    """Base URL of the site in this environment"""

    wp_bin: Optional[str] = None
    """CMS client invocation, may contain several words ("lando wp")"""

    exclude: tuple[str, ...] = ()
    """rsync exclude patterns applied to every file target"""

    sync_options: Mapping[str, Mapping[str, bool]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    """target -> direction -> allowed"""

    @property
    def is_local(self) -> bool:
        return self.name == LOCAL_ENVIRONMENT

    def is_allowed(self, target: str, direction: str) -> bool:
        """Check the per-target policy; anything not denied is allowed."""
        return self.sync_options.get(target, {}).get(direction, True) is not False

    def require_remote(self) -> tuple[str, str]:
        """Return ``(ssh_alias, wp_root)`` for commands run on the host.

        Raises:
            SyncConfigError: If either setting is missing
        """
        if not self.ssh_alias or not self.wp_root:
            raise SyncConfigError(
                f'Environment "{self.name}" needs sshAlias and wpRoot '
                "for remote commands"
            )
        return self.ssh_alias, self.wp_root

    @classmethod
    def from_dict(cls, name: str, data: dict) -> "Environment":
        """Create an Environment from its JSON mapping.

        Raises:
            SyncConfigError: If a field has the wrong type or a remote
                environment lacks its connection settings
        """
        if not isinstance(data, dict):
            raise SyncConfigError(f'Environment "{name}" must be an object')

        exclude = data.get("exclude", [])
        if not isinstance(exclude, list) or not all(
            isinstance(p, str) for p in exclude
        ):
            raise SyncConfigError(
                f'Environment "{name}": "exclude" must be a list of strings'
            )

        raw_options = data.get("syncOptions", {})
        if not isinstance(raw_options, dict):
            raise SyncConfigError(
                f'Environment "{name}": "syncOptions" must be an object'
            )

        # Imported here: the sync package imports this module
        from .sync.targets import resolve_target_name

        merged: dict[str, dict[str, bool]] = {}
        for key, directions in raw_options.items():
            if not isinstance(directions, dict):
                raise SyncConfigError(
                    f'Environment "{name}": syncOptions.{key} must be an object'
                )
            try:
                target = resolve_target_name(key).value
            except UnknownTargetError:
                raise SyncConfigError(
                    f'Environment "{name}": unknown target "{key}" in syncOptions'
                ) from None
            unknown = [d for d in directions if d not in SYNC_DIRECTIONS]
            if unknown:
                raise SyncConfigError(
                    f'Environment "{name}": syncOptions.{key} has unknown '
                    f"direction(s): {', '.join(unknown)} (expected push, pull)"
                )
            merged.setdefault(target, {}).update(
                {direction: bool(allowed) for direction, allowed in directions.items()}
            )
        options: dict[str, Mapping[str, bool]] = {
            target: MappingProxyType(directions) for target, directions in merged.items()
        }

        env = cls(
            name=name,
            ssh_alias=data.get("sshAlias"),
            wp_root=data.get("wpRoot"),
            domain=data.get("domain"),
            wp_bin=data.get("wpBin"),
            exclude=tuple(exclude),
            sync_options=MappingProxyType(options),
        )

        if not env.is_local:
            missing = [
                key
                for key, value in (("sshAlias", env.ssh_alias), ("wpRoot", env.wp_root))
                if not value
            ]
            if missing:
                raise SyncConfigError(
                    f'Environment "{name}" is missing required field(s): '
                    f"{', '.join(missing)}"
                )
        return env


@dataclass(frozen=True)
class SyncConfig:
    """Immutable configuration for one wpsync invocation."""

    environments: Mapping[str, Environment]
    base_dir: Path = field(default_factory=Path.cwd)
    multisite: bool = False
    wp_bin: Optional[str] = None
    backup_dir: Path = Path(DEFAULT_BACKUP_DIR)
    log_file: Path = Path(DEFAULT_LOG_FILE)

    @property
    def local(self) -> Optional[Environment]:
        return self.environments.get(LOCAL_ENVIRONMENT)

    @property
    def backup_root(self) -> Path:
        return self.base_dir / self.backup_dir

    @property
    def log_path(self) -> Path:
        return self.base_dir / self.log_file

    def local_wp_command(self) -> list[str]:
        """Argument vector prefix for the local CMS client."""
        local = self.local
        wp_bin = (local.wp_bin if local else None) or self.wp_bin or DEFAULT_WP_BIN
        return shlex.split(wp_bin)

    def remote_wp_command(self, env: Environment) -> list[str]:
        """Argument vector prefix for the CMS client on a remote host."""
        return shlex.split(env.wp_bin or DEFAULT_WP_BIN)

    def require_domain(self, env: Environment) -> str:
        """Return the environment's base domain.

        Raises:
            SyncConfigError: If the environment declares no domain
        """
        if not env.domain:
            if env.is_local:
                raise SyncConfigError("Local domain not defined in config.")
            raise SyncConfigError(f"Domain not defined for environment {env.name}.")
        return env.domain

    @classmethod
    def from_dict(cls, data: dict, base_dir: Optional[Path] = None) -> "SyncConfig":
        """Create a SyncConfig from the parsed JSON document.

        Raises:
            SyncConfigError: If the document is not a valid configuration
        """
        if not isinstance(data, dict):
            raise SyncConfigError("Configuration root must be an object")

        raw_envs = data.get("environments")
        if not isinstance(raw_envs, dict) or not raw_envs:
            raise SyncConfigError('Configuration must define "environments"')

        environments = {
            name: Environment.from_dict(name, env_data)
            for name, env_data in raw_envs.items()
        }

        return cls(
            environments=MappingProxyType(environments),
            base_dir=base_dir or Path.cwd(),
            multisite=bool(data.get("multisite", False)),
            wp_bin=data.get("wpBin"),
            backup_dir=Path(data.get("backupDir", DEFAULT_BACKUP_DIR)),
            log_file=Path(data.get("logFile", DEFAULT_LOG_FILE)),
        )


def load_config(path: Union[str, Path, None] = None) -> SyncConfig:
    """Load the sync configuration from a JSON file.

    Args:
        path: Config file path (default: ./sync.config.json)

    Returns:
        Loaded SyncConfig; relative paths inside it resolve against the
        directory containing the file

    Raises:
        SyncConfigError: If the file is missing or invalid
    """
    config_path = Path(path) if path else Path.cwd() / CONFIG_FILENAME

    if not config_path.is_file():
        raise SyncConfigError(
            f"{config_path.name} not found. Please create one in project root."
        )

    try:
        with open(config_path, encoding="utf-8") as f:
            data: Any = json.load(f)
    except json.JSONDecodeError as e:
        raise SyncConfigError(f"Invalid JSON in {config_path}: {e}") from e
    except OSError as e:
        raise SyncConfigError(f"Cannot read {config_path}: {e}") from e

    logger.debug("Loaded configuration from %s", config_path)
    return SyncConfig.from_dict(data, base_dir=config_path.resolve().parent)
