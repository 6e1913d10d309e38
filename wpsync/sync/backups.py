"""Dump artifact locations.

Dumps are laid out as ``<backup-root>/<environment>/<category>-<ts>.sql``,
with cross-environment replace-exports kept apart under
``<backup-root>/exports/``. Artifacts are write-once and never cleaned up
here; retention is left to the operator.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..utils import format_timestamp

logger = logging.getLogger(__name__)

EXPORTS_DIR = "exports"


class DumpCategory(str, Enum):
    """Why a dump was taken."""

    LOCAL_BACKUP = "local-backup"
    """Local database before a push"""

    LOCAL_BACKUP_BEFORE_PULL = "local-backup-before-pull"
    """Local database before it is overwritten by a pull"""

    REMOTE_BACKUP = "remote-backup"
    """Remote database at pull time"""

    EXPORT = "export"
    """Standalone export of one environment"""

    REPLACE_EXPORT = "replace-export"
    """Export rewritten for another environment (one-way)"""


@dataclass(frozen=True)
class DumpArtifact:
    """A timestamped SQL dump on local disk."""

    category: DumpCategory
    environment: str
    created: datetime
    path: Path

    @property
    def filename(self) -> str:
        return self.path.name


class BackupStore:
    """Hands out paths for new dump artifacts.

    Directories are created by whoever writes the dump, so a dry run
    leaves the backup tree untouched.
    """

    def __init__(
        self,
        root: Path,
        clock: Callable[[], datetime] = datetime.now,
    ):
        """Initialize backup store.

        Args:
            root: Backup root directory (e.g. ./sql)
            clock: Time source for artifact timestamps
        """
        self.root = Path(root)
        self.clock = clock

    def environment_dir(self, environment: str) -> Path:
        return self.root / environment

    @property
    def exports_dir(self) -> Path:
        return self.root / EXPORTS_DIR

    def now(self) -> datetime:
        # File names carry whole seconds
        return self.clock().replace(microsecond=0)

    def new_artifact(
        self,
        category: DumpCategory,
        environment: str,
        created: Optional[datetime] = None,
        replace_target: Optional[str] = None,
    ) -> DumpArtifact:
        """Allocate the path for a new dump.

        Args:
            category: Dump category
            environment: Environment whose database is dumped
            created: Timestamp shared by the artifacts of one operation
            replace_target: Target environment of a replace-export

        Returns:
            DumpArtifact whose path does not exist yet
        """
        created = created or self.now()
        ts = format_timestamp(created)

        if category is DumpCategory.REPLACE_EXPORT:
            if not replace_target:
                raise ValueError("replace_target is required for replace exports")
            directory = self.exports_dir
            stem = f"{environment}-to-{replace_target}-{ts}"
        else:
            directory = self.environment_dir(environment)
            stem = f"{category.value}-{ts}"

        path = directory / f"{stem}.sql"
        counter = 1
        while path.exists():
            path = directory / f"{stem}-{counter}.sql"
            counter += 1

        logger.debug("Allocated %s artifact %s", category.value, path)
        return DumpArtifact(
            category=category, environment=environment, created=created, path=path
        )
