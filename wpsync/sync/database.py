"""Database migration pipeline.

Moves a database between the local environment and a remote one:

    IDLE -> CONFIRMING -> BACKING_UP_LOCAL -> [BACKING_UP_REMOTE] -> IMPORTING
         -> COMPLETE

with CANCELLED reachable from CONFIRMING and FAILED from every step. Before
anything is overwritten the destination (and for pulls the source) is dumped
to a write-once backup file. The transfer itself is a single stream: WP-CLI's
``search-replace --export`` rewrites the domain while exporting and its
output is piped straight into ``db import`` on the other side, so the
transformed payload never lands on disk and is never imported unrewritten.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from ..config import Environment, SyncConfig
from ..exceptions import SyncConfigError, SyncError
from ..oplog import OperationLog
from ..output import OutputFormatter
from ..process import ProcessRunner
from ..prompts import confirm as ask_confirmation
from ..utils import normalize_domain
from .backups import BackupStore, DumpArtifact, DumpCategory
from .modes import Direction
from .wpcli import WpCli

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """States of the database migration pipeline."""

    IDLE = "idle"
    CONFIRMING = "confirming"
    BACKING_UP_LOCAL = "backing_up_local"
    BACKING_UP_REMOTE = "backing_up_remote"
    EXPORTING = "exporting"
    IMPORTING = "importing"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class DatabaseSyncResult:
    """Outcome of one pipeline run."""

    direction: Optional[Direction]
    """PUSH/PULL, or None for a standalone export"""

    environment: str
    """Remote (or exported) environment"""

    completed: bool = False
    """False when the operator declined the confirmation"""

    dry_run: bool = False

    artifacts: list[DumpArtifact] = field(default_factory=list)
    """Dumps written (or, in dry-run, that would be written)"""

    @property
    def cancelled(self) -> bool:
        return not self.completed


class DatabasePipeline:
    """Backs up, rewrites, transports and imports databases."""

    def __init__(
        self,
        config: SyncConfig,
        runner: ProcessRunner,
        backups: BackupStore,
        oplog: Optional[OperationLog] = None,
        confirm: Callable[[str], bool] = ask_confirmation,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize database pipeline.

        Args:
            config: Loaded configuration
            runner: Process runner (carries dry-run mode)
            backups: Allocates dump artifact paths
            oplog: Operation log for completed operations
            confirm: Confirmation gate, called with the prompt text
            output: Output formatter for progress messages
        """
        self.config = config
        self.runner = runner
        self.backups = backups
        self.oplog = oplog
        self.confirm = confirm
        self.output = output or runner.output
        self.state = PipelineState.IDLE
        self.transitions: list[PipelineState] = [PipelineState.IDLE]

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    def _transition(self, state: PipelineState) -> None:
        logger.debug("Database pipeline: %s -> %s", self.state.value, state.value)
        self.state = state
        self.transitions.append(state)

    def _reset(self) -> None:
        self.state = PipelineState.IDLE
        self.transitions = [PipelineState.IDLE]

    def _record(self, message: str) -> None:
        if self.dry_run:
            self.output.info(f"[DRY-RUN] {message}")
            return
        self.output.success(message)
        if self.oplog:
            self.oplog.record(message)

    def _local(self) -> Environment:
        local = self.config.local
        if local is None:
            raise SyncConfigError('No "local" environment defined in config.')
        return local

    def _host(self, environment: Environment) -> str:
        return normalize_domain(self.config.require_domain(environment))

    def _dump(self, environment: Environment, artifact: DumpArtifact) -> DumpArtifact:
        self.runner.run_to_file(WpCli(self.config, environment).db_export(), artifact.path)
        return artifact

    def sync(self, direction: Direction, environment: Environment) -> DatabaseSyncResult:
        """Run the pipeline in the given direction.

        Raises:
            SyncConfigError: Domains or the local environment are not configured
            ProcessError: An export, transfer or import failed
        """
        if direction is Direction.PUSH:
            return self.push(environment)
        if direction is Direction.PULL:
            return self.pull(environment)
        raise AssertionError(f"Unhandled direction: {direction!r}")

    def push(self, environment: Environment) -> DatabaseSyncResult:
        """Overwrite the remote database with the local one.

        Returns:
            Result; ``completed`` is False if the operator declined
        """
        self._reset()
        local = self._local()
        local_host = self._host(local)
        remote_host = self._host(environment)
        result = DatabaseSyncResult(Direction.PUSH, environment.name, dry_run=self.dry_run)

        self._transition(PipelineState.CONFIRMING)
        side = Direction.PUSH.destination_label
        if not self.confirm(f"Overwrite {side} DB on {environment.name}? (y/n)"):
            self._transition(PipelineState.CANCELLED)
            logger.debug("Push of database to %s declined", environment.name)
            return result

        try:
            ts = self.backups.now()

            self._transition(PipelineState.BACKING_UP_LOCAL)
            backup = self.backups.new_artifact(DumpCategory.LOCAL_BACKUP, local.name, ts)
            result.artifacts.append(self._dump(local, backup))

            self._transition(PipelineState.IMPORTING)
            self.output.info(
                f"Piping local DB ({local_host} -> {remote_host}) "
                f"into {environment.name}..."
            )
            self.runner.pipe(
                WpCli(self.config, local).search_replace_export(local_host, remote_host),
                WpCli(self.config, environment).db_import(),
            )
        except SyncError:
            self._transition(PipelineState.FAILED)
            raise

        self._transition(PipelineState.COMPLETE)
        result.completed = True
        self._record(
            f"Remote DB sync (push) to {environment.name} complete. "
            f"Backup retained: {backup.filename}."
        )
        return result

    def pull(self, environment: Environment) -> DatabaseSyncResult:
        """Overwrite the local database with the remote one.

        Returns:
            Result; ``completed`` is False if the operator declined
        """
        self._reset()
        local = self._local()
        local_host = self._host(local)
        remote_host = self._host(environment)
        result = DatabaseSyncResult(Direction.PULL, environment.name, dry_run=self.dry_run)

        self._transition(PipelineState.CONFIRMING)
        side = Direction.PULL.destination_label
        if not self.confirm(f"Overwrite {side} DB from {environment.name}? (y/n)"):
            self._transition(PipelineState.CANCELLED)
            logger.debug("Pull of database from %s declined", environment.name)
            return result

        try:
            ts = self.backups.now()

            self._transition(PipelineState.BACKING_UP_LOCAL)
            local_backup = self.backups.new_artifact(
                DumpCategory.LOCAL_BACKUP_BEFORE_PULL, local.name, ts
            )
            result.artifacts.append(self._dump(local, local_backup))

            self._transition(PipelineState.BACKING_UP_REMOTE)
            self.output.info(f"Exporting {environment.name} DB to backup...")
            remote_backup = self.backups.new_artifact(
                DumpCategory.REMOTE_BACKUP, environment.name, ts
            )
            result.artifacts.append(self._dump(environment, remote_backup))

            self._transition(PipelineState.IMPORTING)
            self.output.info(
                f"Piping {environment.name} DB ({remote_host} -> {local_host}) "
                "into local..."
            )
            self.runner.pipe(
                WpCli(self.config, environment).search_replace_export(
                    remote_host, local_host
                ),
                WpCli(self.config, local).db_import(),
            )
        except SyncError:
            self._transition(PipelineState.FAILED)
            raise

        self._transition(PipelineState.COMPLETE)
        result.completed = True
        self._record(
            f"Local DB sync (pull) from {environment.name} complete. "
            f"Backups retained: {local_backup.filename}, {remote_backup.filename}."
        )
        return result

    def export(
        self,
        environment: Environment,
        replace_with: Optional[Environment] = None,
        created: Optional[datetime] = None,
    ) -> DatabaseSyncResult:
        """Export one environment's database to a timestamped file.

        With ``replace_with`` the export is rewritten for that environment
        and stored under the exports directory. Such a dump is one-way: it
        is only fit for importing into ``replace_with``.

        Raises:
            SyncConfigError: Replacing with the same environment, or a
                domain is missing
            ProcessError: The export failed
        """
        self._reset()
        result = DatabaseSyncResult(None, environment.name, dry_run=self.dry_run)
        wp = WpCli(self.config, environment)

        if replace_with is not None:
            if replace_with.name == environment.name:
                raise SyncConfigError(
                    "--replace must name a different environment than -e"
                )
            search = self._host(environment)
            replace = self._host(replace_with)
            artifact = self.backups.new_artifact(
                DumpCategory.REPLACE_EXPORT,
                environment.name,
                created,
                replace_target=replace_with.name,
            )
            command = wp.search_replace_export(search, replace)
            self.output.info(f"Replacing domain: {search} -> {replace}")
        else:
            artifact = self.backups.new_artifact(
                DumpCategory.EXPORT, environment.name, created
            )
            command = wp.db_export()

        try:
            self._transition(PipelineState.EXPORTING)
            self.runner.run_to_file(command, artifact.path)
        except SyncError:
            self._transition(PipelineState.FAILED)
            raise

        self._transition(PipelineState.COMPLETE)
        result.completed = True
        result.artifacts.append(artifact)
        self._record(f"Export complete: {artifact.path}")
        return result
