"""rsync wrapper for file targets."""

import logging
import posixpath
from pathlib import Path
from typing import Iterable, Optional, Union

from ..config import Environment
from ..exceptions import (
    LocalPathMissingError,
    NonZeroExitError,
    SpawnError,
    TransferError,
)
from ..oplog import OperationLog
from ..output import OutputFormatter
from ..process import ProcessRunner
from .modes import Direction

logger = logging.getLogger(__name__)

RSYNC_BIN = "rsync"

RSYNC_OPTIONS: tuple[str, ...] = (
    "-avz",
    "--no-perms",
    "--chmod=F644,D755",
    "--progress",
)

# rsync "partial transfer due to error"; what a missing remote directory
# produces
RSYNC_PARTIAL_TRANSFER = 23


class FileSyncAdapter:
    """Performs one bulk rsync transfer per call."""

    def __init__(
        self,
        runner: ProcessRunner,
        base_dir: Path,
        oplog: Optional[OperationLog] = None,
        output: Optional[OutputFormatter] = None,
    ):
        """Initialize file sync adapter.

        Args:
            runner: Process runner (carries dry-run mode)
            base_dir: Project root that local directories are relative to
            oplog: Operation log for completed transfers
            output: Output formatter for warnings
        """
        self.runner = runner
        self.base_dir = Path(base_dir)
        self.oplog = oplog
        self.output = output or runner.output

    def build_command(
        self,
        direction: Direction,
        environment: Environment,
        local_dir: Path,
        remote_dir: str,
        extra_excludes: Iterable[str] = (),
        delete: bool = True,
    ) -> list[str]:
        """Build the rsync argument vector for a transfer."""
        local = str(local_dir).rstrip("/") + "/"
        alias, _ = environment.require_remote()
        remote = f"{alias}:{posixpath.join(remote_dir, '')}"

        excludes = [*environment.exclude, *extra_excludes]
        command = [RSYNC_BIN, *RSYNC_OPTIONS]
        command.extend(f"--exclude={pattern}" for pattern in excludes)
        if delete:
            command.append("--delete")

        if direction is Direction.PUSH:
            command.extend([local, remote])
        elif direction is Direction.PULL:
            command.extend([remote, local])
        else:
            raise AssertionError(f"Unhandled direction: {direction!r}")
        return command

    def sync_files(
        self,
        direction: Direction,
        environment: Environment,
        local_dir: Union[str, Path],
        remote_dir: str,
        extra_excludes: Iterable[str] = (),
        delete: bool = True,
        optional: bool = False,
    ) -> bool:
        """Transfer one directory tree.

        Args:
            direction: PUSH (local -> remote) or PULL (remote -> local)
            environment: Remote environment
            local_dir: Local directory (relative to the project root)
            remote_dir: Absolute remote directory
            extra_excludes: Excludes added to the environment's own
            delete: Mirror the destination instead of adding only
            optional: Treat a missing remote directory as a warning

        Returns:
            True if the transfer completed, False if an optional directory
            was skipped

        Raises:
            LocalPathMissingError: Push source directory does not exist
            TransferError: rsync failed
        """
        local_path = self.base_dir / local_dir

        if direction is Direction.PUSH:
            if not local_path.is_dir():
                raise LocalPathMissingError(f"Local path not found: {local_path}")
        elif direction is Direction.PULL:
            if not local_path.exists() and not self.runner.dry_run:
                local_path.mkdir(parents=True, exist_ok=True)
                logger.debug("Created local directory %s", local_path)
        else:
            raise AssertionError(f"Unhandled direction: {direction!r}")

        command = self.build_command(
            direction, environment, local_path, remote_dir, extra_excludes, delete
        )

        try:
            self.runner.run(command)
        except NonZeroExitError as e:
            if optional and e.returncode == RSYNC_PARTIAL_TRANSFER:
                self.output.warning(
                    f"Skipped {local_dir}: not present on {environment.name} "
                    f"(rsync exit {e.returncode})"
                )
                return False
            raise TransferError(
                f"File sync ({direction.value}) failed for {local_dir}: {e}"
            ) from e
        except SpawnError as e:
            raise TransferError(f"File sync ({direction.value}) failed: {e}") from e

        if not self.runner.dry_run and self.oplog:
            self.oplog.record(
                f"File sync ({direction.value}) complete for {local_dir} "
                f"on {environment.name}."
            )
        return True
