"""Append-only operation log with size-based rotation.

Every mutating operation is recorded as ``[timestamp] message`` in a single
log file. Once the file grows past the size ceiling it is renamed to
``<name>.<YYYYmmddHHMMSS>`` and a fresh file is started; only the newest
archives are kept.
"""

import logging
import os
import re
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, Union

from .utils import format_timestamp

logger = logging.getLogger(__name__)

# Rotate once the active log is larger than 10 MB
MAX_LOG_SIZE: int = 10 * 1024 * 1024

# Archived logs kept after rotation
MAX_LOG_ARCHIVES: int = 5

LOG_FORMAT = "[%(asctime)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


class TimestampedRotatingFileHandler(RotatingFileHandler):
    """RotatingFileHandler that archives with timestamps instead of indexes."""

    def __init__(
        self,
        filename: Union[str, Path],
        max_bytes: int = MAX_LOG_SIZE,
        backup_count: int = MAX_LOG_ARCHIVES,
        clock: Callable[[], datetime] = datetime.now,
    ):
        Path(filename).parent.mkdir(parents=True, exist_ok=True)
        super().__init__(
            filename,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
            delay=True,
        )
        self.clock = clock
        self._archive_re = re.compile(
            re.escape(os.path.basename(self.baseFilename)) + r"\.\d{14}(-\d+)?$"
        )

    def shouldRollover(self, record: logging.LogRecord) -> bool:
        """Rotate when the active file already exceeds the ceiling."""
        if self.maxBytes <= 0:
            return False
        try:
            return os.path.getsize(self.baseFilename) > self.maxBytes
        except OSError:
            return False

    def archives(self) -> list[Path]:
        """Archived log files, oldest first."""
        directory = Path(self.baseFilename).parent
        return sorted(
            p for p in directory.iterdir() if self._archive_re.match(p.name)
        )

    def _archive_path(self) -> Path:
        base = f"{self.baseFilename}.{format_timestamp(self.clock())}"
        candidate = Path(base)
        counter = 1
        while candidate.exists():
            candidate = Path(f"{base}-{counter}")
            counter += 1
        return candidate

    def doRollover(self) -> None:
        if self.stream:
            self.stream.close()
            self.stream = None  # type: ignore[assignment]

        if os.path.exists(self.baseFilename):
            archive = self._archive_path()
            os.rename(self.baseFilename, archive)
            logger.debug("Rotated operation log to %s", archive)

        if self.backupCount > 0:
            archives = self.archives()
            for stale in archives[: max(0, len(archives) - self.backupCount)]:
                stale.unlink()
                logger.debug("Removed old operation log %s", stale)


class OperationLog:
    """Writes operation records to the rotating log file."""

    def __init__(
        self,
        path: Union[str, Path],
        max_bytes: int = MAX_LOG_SIZE,
        backup_count: int = MAX_LOG_ARCHIVES,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize operation log.

        Args:
            path: Active log file
            max_bytes: Size ceiling that triggers rotation
            backup_count: Number of archives to keep
            clock: Time source for archive names
        """
        self.path = Path(path)
        self.handler = TimestampedRotatingFileHandler(
            self.path, max_bytes=max_bytes, backup_count=backup_count, clock=clock
        )
        self.handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))

        # Standalone logger so records never reach the root handlers
        self._logger = logging.Logger("wpsync.oplog", level=logging.INFO)
        self._logger.propagate = False
        self._logger.addHandler(self.handler)

    def record(self, message: str) -> None:
        """Append one entry to the log."""
        logger.debug("oplog: %s", message)
        self._logger.info(message)

    def close(self) -> None:
        self._logger.removeHandler(self.handler)
        self.handler.close()
