"""Sync engine for wpsync - file targets and the database pipeline."""

from .backups import BackupStore, DumpArtifact, DumpCategory
from .database import DatabasePipeline, DatabaseSyncResult, PipelineState
from .engine import SyncEngine, SyncReport
from .files import FileSyncAdapter
from .modes import Direction
from .targets import FILE_TARGETS, SyncTarget, parse_targets
from .wpcli import WpCli

__all__ = [
    "SyncEngine",
    "SyncReport",
    "Direction",
    "SyncTarget",
    "FILE_TARGETS",
    "parse_targets",
    "FileSyncAdapter",
    "DatabasePipeline",
    "DatabaseSyncResult",
    "PipelineState",
    "BackupStore",
    "DumpArtifact",
    "DumpCategory",
    "WpCli",
]
