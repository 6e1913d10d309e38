"""Exceptions raised by wpsync."""

from typing import Optional, Sequence

from .utils import format_command


class SyncError(Exception):
    """Base exception for all wpsync errors."""


class SyncConfigError(SyncError):
    """Configuration file is missing, malformed or incomplete."""


class EnvironmentResolutionError(SyncError):
    """The environment to operate on could not be determined."""


class UnknownEnvironmentError(EnvironmentResolutionError):
    """An environment name was given that is not in the configuration."""

    def __init__(self, name: str, available: Sequence[str]):
        self.name = name
        self.available = list(available)
        super().__init__(
            f'Unknown environment "{name}". Available: {", ".join(self.available)}'
        )


class AmbiguousEnvironmentError(EnvironmentResolutionError):
    """More than one remote environment exists and none was selected."""


class NoRemoteEnvironmentsError(EnvironmentResolutionError):
    """No remote environment is configured at all."""


class UnknownTargetError(SyncError):
    """A sync target token could not be resolved."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Unknown sync target: {token}")


class SyncPermissionError(SyncError):
    """A target is not allowed for an environment and direction."""

    def __init__(self, target: str, direction: str, environment: str):
        self.target = target
        self.direction = direction
        self.environment = environment
        super().__init__(
            f'{direction.upper()} of "{target}" is not allowed '
            f'for environment "{environment}"'
        )


class TransferError(SyncError):
    """A file transfer failed."""


class LocalPathMissingError(TransferError):
    """The local source directory of a push does not exist."""


class ProcessError(SyncError):
    """An external process could not be run successfully."""

    def __init__(self, message: str, command: Optional[Sequence[str]] = None):
        self.command = list(command) if command else []
        super().__init__(message)


class SpawnError(ProcessError):
    """An external process could not be started."""


class NonZeroExitError(ProcessError):
    """An external process exited with a non-zero status.

    The message carries the whole command line, not just the executable.
    """

    def __init__(self, command: Sequence[str], returncode: int, role: str = ""):
        self.returncode = returncode
        prefix = f"{role} command" if role else "Command"
        super().__init__(
            f"{prefix} exited with code {returncode}: {format_command(command)}",
            command=command,
        )


class PipeSourceError(NonZeroExitError):
    """The producing side of a pipe failed."""

    def __init__(self, command: Sequence[str], returncode: int):
        super().__init__(command, returncode, role="Source")


class PipeSinkError(NonZeroExitError):
    """The consuming side of a pipe failed."""

    def __init__(self, command: Sequence[str], returncode: int):
        super().__init__(command, returncode, role="Sink")
