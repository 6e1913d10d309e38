"""Sync orchestration: resolve, check policy, dispatch targets."""

import logging
import posixpath
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..config import SyncConfig
from ..environments import EnvironmentRegistry
from ..exceptions import SyncConfigError, SyncError, SyncPermissionError
from ..oplog import OperationLog
from ..output import OutputFormatter
from ..process import ProcessRunner
from ..prompts import PRODUCTION_PHRASE, confirm, confirm_phrase
from .backups import BackupStore
from .database import DatabasePipeline, DatabaseSyncResult
from .files import FileSyncAdapter
from .modes import Direction
from .targets import SyncTarget, parse_targets

logger = logging.getLogger(__name__)

PRODUCTION_ENVIRONMENT = "production"


@dataclass
class SyncReport:
    """What a push/pull run did."""

    direction: Direction
    environment: str
    targets: list[SyncTarget] = field(default_factory=list)
    """Targets selected for the run, in execution order"""

    completed: list[SyncTarget] = field(default_factory=list)
    skipped: list[SyncTarget] = field(default_factory=list)
    """Optional targets missing on the remote side"""

    cancelled: bool = False
    """The operator declined a confirmation"""

    database: Optional[DatabaseSyncResult] = None


class SyncEngine:
    """Runs push, pull and export commands against one configuration."""

    def __init__(
        self,
        config: SyncConfig,
        runner: ProcessRunner,
        oplog: Optional[OperationLog] = None,
        output: Optional[OutputFormatter] = None,
        confirm: Callable[[str], bool] = confirm,
        confirm_phrase: Callable[[str], bool] = confirm_phrase,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize sync engine.

        Args:
            config: Loaded configuration (never modified)
            runner: Process runner (carries dry-run mode)
            oplog: Operation log
            output: Output formatter for displaying progress/status
            confirm: y/n confirmation gate
            confirm_phrase: Exact-phrase gate for production pushes
            clock: Time source for dump timestamps
        """
        self.config = config
        self.runner = runner
        self.output = output or runner.output
        self.oplog = oplog
        self.confirm_phrase = confirm_phrase
        self.registry = EnvironmentRegistry(config)
        self.files = FileSyncAdapter(runner, config.base_dir, oplog, self.output)
        self.database = DatabasePipeline(
            config,
            runner,
            BackupStore(config.backup_root, clock=clock),
            oplog=oplog,
            confirm=confirm,
            output=self.output,
        )

    @property
    def dry_run(self) -> bool:
        return self.runner.dry_run

    def check_permissions(
        self, direction: Direction, environment_name: str, targets: Iterable[SyncTarget]
    ) -> None:
        """Refuse the whole run if any target is disallowed.

        Raises:
            SyncPermissionError: For the first disallowed target
        """
        env = self.registry.get(environment_name)
        for target in targets:
            if not env.is_allowed(target.value, direction.value):
                raise SyncPermissionError(target.value, direction.value, env.name)

    def run(
        self,
        direction: Direction,
        environment: Optional[str],
        tokens: Iterable[str] = (),
        use_all: bool = False,
    ) -> SyncReport:
        """Push or pull the selected targets, one at a time.

        Everything that can be validated (environment, targets, domains,
        permissions) is checked before the first target runs. Targets that
        completed before a failure are not rolled back.

        Args:
            direction: PUSH or PULL
            environment: Explicit environment name or None to auto-resolve
            tokens: Target tokens (names, letters, letter clusters)
            use_all: Select every target

        Returns:
            SyncReport; ``cancelled`` is set when the operator declined

        Raises:
            EnvironmentResolutionError: Environment unknown or ambiguous
            UnknownTargetError: A token is not a target
            SyncConfigError: A required domain is missing
            SyncPermissionError: A target is disallowed
            TransferError, ProcessError: A transfer failed
        """
        env = self.registry.resolve_remote(environment)
        targets = parse_targets(tokens, use_all=use_all)
        if not targets:
            raise SyncError("No sync targets specified. Use --all or list targets.")

        local = self.config.local
        if local is None:
            raise SyncConfigError('No "local" environment defined in config.')
        self.config.require_domain(local)
        self.config.require_domain(env)

        self.check_permissions(direction, env.name, targets)

        logger.debug(
            "%s %s on %s", direction.value, [t.value for t in targets], env.name
        )
        report = SyncReport(direction, env.name, targets=targets)

        if direction is Direction.PUSH and env.name == PRODUCTION_ENVIRONMENT:
            self.output.warning("You are about to PUSH to PRODUCTION!")
            if not self.confirm_phrase(
                f"Type exactly '{PRODUCTION_PHRASE}' to continue"
            ):
                report.cancelled = True
                return report

        if self.dry_run:
            self.output.info("Dry run: No changes will be made")

        for target in targets:
            self.output.info(f"==> {direction.value} {target.value} ({env.name})")
            if target is SyncTarget.DATABASE:
                result = self.database.sync(direction, env)
                report.database = result
                if result.cancelled:
                    report.cancelled = True
                    return report
                report.completed.append(target)
                continue

            spec = target.spec
            _, wp_root = env.require_remote()
            transferred = self.files.sync_files(
                direction,
                env,
                spec.local_dir,
                posixpath.join(wp_root, spec.remote_subdir, ""),
                delete=spec.delete,
                optional=spec.optional,
            )
            if transferred:
                report.completed.append(target)
            else:
                report.skipped.append(target)

        return report

    def export(
        self, environment: Optional[str], replace_with: Optional[str] = None
    ) -> DatabaseSyncResult:
        """Export one environment's database (db:export).

        The environment is never guessed; ``-e`` is mandatory.

        Raises:
            EnvironmentResolutionError: No or unknown environment
            SyncConfigError: Replace target invalid or domain missing
            ProcessError: The export failed
        """
        name = self.registry.resolve(environment, require_explicit=True)
        env = self.registry.get(name)
        target = self.registry.get(replace_with) if replace_with else None
        return self.database.export(env, replace_with=target)
