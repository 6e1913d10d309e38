"""Execution of external commands and two-process pipelines."""

import logging
import signal
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Union

from .exceptions import (
    NonZeroExitError,
    PipeSinkError,
    PipeSourceError,
    ProcessError,
    SpawnError,
)
from .output import OutputFormatter
from .utils import format_command

logger = logging.getLogger(__name__)

# Interval between exit-status checks while both ends of a pipe are running
PIPE_POLL_INTERVAL: float = 0.05

# Return code of a child killed by SIGPIPE (None where the signal does not exist)
SIGPIPE_EXIT: Optional[int] = -signal.SIGPIPE if hasattr(signal, "SIGPIPE") else None


@dataclass(frozen=True)
class Invocation:
    """One intended or executed subprocess call."""

    kind: str
    """"run", "run_to_file" or "pipe" """

    command: tuple[str, ...]
    """Command (source command for pipes)"""

    sink: Optional[tuple[str, ...]] = None
    """Sink command for pipes"""

    output: Optional[Path] = None
    """Destination file for run_to_file"""

    def describe(self) -> str:
        text = format_command(self.command)
        if self.sink is not None:
            text += f" | {format_command(self.sink)}"
        if self.output is not None:
            text += f" > {self.output}"
        return text


class ProcessRunner:
    """Runs external commands as argument vectors, never through a shell.

    In dry-run mode every call is announced and recorded but nothing is
    executed. ``history`` keeps every invocation in order, live or dry.
    """

    def __init__(
        self,
        dry_run: bool = False,
        output: Optional[OutputFormatter] = None,
        poll_interval: float = PIPE_POLL_INTERVAL,
    ):
        """Initialize process runner.

        Args:
            dry_run: Log commands instead of executing them
            output: Output formatter for command announcements
            poll_interval: Seconds between pipe status checks
        """
        self.dry_run = dry_run
        self.output = output or OutputFormatter()
        self.poll_interval = poll_interval
        self.history: list[Invocation] = []

    def _announce(self, invocation: Invocation) -> bool:
        """Record an invocation; return True if it must not be executed."""
        self.history.append(invocation)
        if self.dry_run:
            self.output.info(f"[DRY-RUN] {invocation.describe()}")
            return True
        self.output.info(f"-> {invocation.describe()}")
        logger.debug("Executing %s", invocation)
        return False

    def _spawn(self, command: Sequence[str], **kwargs) -> subprocess.Popen:
        try:
            return subprocess.Popen(list(command), **kwargs)
        except OSError as e:
            raise SpawnError(
                f"Failed to start {command[0]}: {e}", command=command
            ) from e

    def run(self, command: Sequence[str]) -> None:
        """Run a command to completion with inherited stdio.

        Raises:
            SpawnError: If the command cannot be started
            NonZeroExitError: If it exits with a non-zero status
        """
        if self._announce(Invocation("run", tuple(command))):
            return
        proc = self._spawn(command)
        returncode = proc.wait()
        if returncode != 0:
            raise NonZeroExitError(command, returncode)

    def run_to_file(self, command: Sequence[str], path: Union[str, Path]) -> Path:
        """Run a command and stream its stdout into a new file.

        The file is created exclusively; an existing file is never
        overwritten. A failed command leaves whatever was written so far.

        Raises:
            SpawnError: If the command cannot be started
            ProcessError: If the dump file already exists or cannot be created
            NonZeroExitError: If it exits with a non-zero status
        """
        path = Path(path)
        if self._announce(Invocation("run_to_file", tuple(command), output=path)):
            return path

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            dump = open(path, "xb")
        except OSError as e:
            raise ProcessError(f"Cannot create {path}: {e}", command=command) from e

        with dump:
            proc = self._spawn(command, stdin=subprocess.DEVNULL, stdout=dump)
            returncode = proc.wait()
        if returncode != 0:
            raise NonZeroExitError(command, returncode)
        return path

    def pipe(self, source: Sequence[str], sink: Sequence[str]) -> None:
        """Run ``source | sink`` without buffering the stream in this process.

        Both processes share an OS pipe; their stderr goes straight to the
        operator's terminal. The first non-zero exit observed is reported,
        but only after both processes have terminated. A source killed by
        SIGPIPE after the sink failed is not the cause; the sink is reported.

        Raises:
            SpawnError: If either process cannot be started
            PipeSourceError: If the source fails first
            PipeSinkError: If the sink fails first or broke the source's pipe
        """
        if self._announce(Invocation("pipe", tuple(source), sink=tuple(sink))):
            return

        src = self._spawn(source, stdin=subprocess.DEVNULL, stdout=subprocess.PIPE)
        try:
            snk = self._spawn(sink, stdin=src.stdout)
        except SpawnError:
            src.kill()
            src.wait()
            raise
        finally:
            # The sink owns the read end now; closing ours lets the source
            # receive SIGPIPE if the sink dies.
            if src.stdout is not None:
                src.stdout.close()

        failures: list[tuple[str, int]] = []
        pending = {"source": src, "sink": snk}
        while pending:
            for role, proc in list(pending.items()):
                returncode = proc.poll()
                if returncode is None:
                    continue
                del pending[role]
                logger.debug("Pipe %s exited with %s", role, returncode)
                if returncode != 0:
                    failures.append((role, returncode))
            if pending:
                time.sleep(self.poll_interval)

        if not failures:
            return
        role, returncode = failures[0]
        if role == "source" and returncode == SIGPIPE_EXIT and snk.returncode != 0:
            # The source was killed writing into a pipe the failed sink closed
            role, returncode = "sink", snk.returncode
        if role == "source":
            raise PipeSourceError(source, returncode)
        raise PipeSinkError(sink, returncode)
