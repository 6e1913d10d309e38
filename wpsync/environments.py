"""Environment resolution."""

import logging
from typing import Optional

from .config import LOCAL_ENVIRONMENT, Environment, SyncConfig
from .exceptions import (
    AmbiguousEnvironmentError,
    EnvironmentResolutionError,
    NoRemoteEnvironmentsError,
    UnknownEnvironmentError,
)

logger = logging.getLogger(__name__)


class EnvironmentRegistry:
    """Read-only view over the configured environments."""

    def __init__(self, config: SyncConfig):
        self.config = config

    @property
    def names(self) -> list[str]:
        return list(self.config.environments)

    @property
    def remote_names(self) -> list[str]:
        return [name for name in self.names if name != LOCAL_ENVIRONMENT]

    def __contains__(self, name: object) -> bool:
        return name in self.config.environments

    def get(self, name: str) -> Environment:
        """Look up an environment by name.

        Raises:
            UnknownEnvironmentError: If no environment has that name
        """
        try:
            return self.config.environments[name]
        except KeyError:
            raise UnknownEnvironmentError(name, self.names) from None

    def resolve(
        self, explicit_name: Optional[str], require_explicit: bool = False
    ) -> str:
        """Decide which environment a command operates on.

        An explicit name must exist. Without one, push and pull fall back to
        the single remote environment, while commands that set
        ``require_explicit`` (db:export) never guess.

        Args:
            explicit_name: Name from ``-e``/positional argument, or None
            require_explicit: Fail when no name was given

        Returns:
            Environment name

        Raises:
            UnknownEnvironmentError: Explicit name not configured
            EnvironmentResolutionError: Name required but not given
            NoRemoteEnvironmentsError: No remote environment configured
            AmbiguousEnvironmentError: Several remotes, none selected
        """
        available = ", ".join(self.names)

        if explicit_name:
            if explicit_name not in self:
                raise UnknownEnvironmentError(explicit_name, self.names)
            return explicit_name

        if require_explicit:
            raise EnvironmentResolutionError(
                f"-e <env> is required for this command. Available: {available}"
            )

        remotes = self.remote_names
        if not remotes:
            raise NoRemoteEnvironmentsError(
                "No remote environments defined in config."
            )
        if len(remotes) > 1:
            raise AmbiguousEnvironmentError(
                f"-e <env> is required. Available: {', '.join(remotes)}"
            )

        logger.debug("Implicitly selected environment %s", remotes[0])
        return remotes[0]

    def resolve_remote(self, explicit_name: Optional[str]) -> Environment:
        """Resolve the destination/source of a push or pull.

        Raises:
            EnvironmentResolutionError: If the resolved environment is local
        """
        name = self.resolve(explicit_name)
        if name == LOCAL_ENVIRONMENT:
            raise EnvironmentResolutionError(
                "The local environment cannot be used as a push/pull target."
            )
        return self.get(name)
