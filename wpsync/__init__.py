"""wpsync - push and pull WordPress files and databases between environments."""

from .config import Environment, SyncConfig, load_config
from .exceptions import (
    AmbiguousEnvironmentError,
    EnvironmentResolutionError,
    LocalPathMissingError,
    NonZeroExitError,
    NoRemoteEnvironmentsError,
    PipeSinkError,
    PipeSourceError,
    ProcessError,
    SpawnError,
    SyncConfigError,
    SyncError,
    SyncPermissionError,
    TransferError,
    UnknownEnvironmentError,
    UnknownTargetError,
)
from .utils import normalize_domain

__all__ = [
    "Environment",
    "SyncConfig",
    "load_config",
    "normalize_domain",
    "SyncError",
    "SyncConfigError",
    "EnvironmentResolutionError",
    "UnknownEnvironmentError",
    "AmbiguousEnvironmentError",
    "NoRemoteEnvironmentsError",
    "UnknownTargetError",
    "SyncPermissionError",
    "TransferError",
    "LocalPathMissingError",
    "ProcessError",
    "SpawnError",
    "NonZeroExitError",
    "PipeSourceError",
    "PipeSinkError",
]
