"""Sync targets and target-token parsing."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..exceptions import UnknownTargetError


class SyncTarget(str, Enum):
    """A syncable unit: a wp-content directory or the database.

    Declaration order is the execution order.
    """

    THEMES = "themes"
    PLUGINS = "plugins"
    MU_PLUGINS = "mu-plugins"
    LANGUAGES = "languages"
    UPLOADS = "uploads"
    DATABASE = "database"

    @property
    def is_file_target(self) -> bool:
        return self is not SyncTarget.DATABASE

    @property
    def spec(self) -> "FileTargetSpec":
        """Directory layout and policy of a file target.

        Raises:
            ValueError: For the database target
        """
        try:
            return FILE_TARGETS[self]
        except KeyError:
            raise ValueError(f"{self.value} is not a file target") from None


@dataclass(frozen=True)
class FileTargetSpec:
    """How a file target maps onto disk."""

    local_dir: str
    """Directory relative to the project root"""

    remote_subdir: str
    """Directory relative to the environment's wp_root"""

    delete: bool = True
    """Mirror the destination (remove entries missing from the source)"""

    optional: bool = False
    """Tolerate the directory being absent on the remote side"""


FILE_TARGETS: dict[SyncTarget, FileTargetSpec] = {
    SyncTarget.THEMES: FileTargetSpec("wp-content/themes", "wp-content/themes"),
    SyncTarget.PLUGINS: FileTargetSpec("wp-content/plugins", "wp-content/plugins"),
    SyncTarget.MU_PLUGINS: FileTargetSpec(
        "wp-content/mu-plugins", "wp-content/mu-plugins", optional=True
    ),
    SyncTarget.LANGUAGES: FileTargetSpec(
        "wp-content/languages", "wp-content/languages"
    ),
    # User-generated content is never purged by a deploy
    SyncTarget.UPLOADS: FileTargetSpec(
        "wp-content/uploads", "wp-content/uploads", delete=False
    ),
}

# Single-letter shortcuts, combinable as "tpud"
TARGET_SHORTCUTS: dict[str, SyncTarget] = {
    "t": SyncTarget.THEMES,
    "p": SyncTarget.PLUGINS,
    "m": SyncTarget.MU_PLUGINS,
    "l": SyncTarget.LANGUAGES,
    "u": SyncTarget.UPLOADS,
    "d": SyncTarget.DATABASE,
}

TARGET_ALIASES: dict[str, SyncTarget] = {
    "muplugins": SyncTarget.MU_PLUGINS,
    "mu_plugins": SyncTarget.MU_PLUGINS,
    "db": SyncTarget.DATABASE,
}


def _lookup_name(key: str) -> Optional[SyncTarget]:
    for target in SyncTarget:
        if target.value == key:
            return target
    return TARGET_ALIASES.get(key)


def resolve_target_name(name: str) -> SyncTarget:
    """Map a full target name or alias ("muplugins", "db") to its target.

    Raises:
        UnknownTargetError: If the name is neither
    """
    target = _lookup_name(name.strip().lower())
    if target is None:
        raise UnknownTargetError(name)
    return target


def _parse_token(token: str) -> list[SyncTarget]:
    name = token.strip().lower().lstrip("-")
    if not name:
        raise UnknownTargetError(token)

    target = _lookup_name(name)
    if target is not None:
        return [target]

    # Letter cluster: every character must be a shortcut
    if all(char in TARGET_SHORTCUTS for char in name):
        return [TARGET_SHORTCUTS[char] for char in name]

    raise UnknownTargetError(token)


def parse_targets(
    tokens: Iterable[str], use_all: bool = False
) -> list[SyncTarget]:
    """Expand target tokens into the ordered set of targets to run.

    Tokens may be full names ("themes"), aliases ("db"), single letters
    ("t") or letter clusters ("tpud", "-tpud"). Duplicates collapse and the
    result always follows SyncTarget declaration order.

    Args:
        tokens: Target tokens from the command line
        use_all: Select every target

    Returns:
        Targets in execution order

    Raises:
        UnknownTargetError: If a token is not recognised

    Examples:
        >>> [t.value for t in parse_targets(["-tpud"])]
        ['themes', 'plugins', 'uploads', 'database']
    """
    if use_all:
        return list(SyncTarget)

    selected: set[SyncTarget] = set()
    for token in tokens:
        selected.update(_parse_token(token))
    return [target for target in SyncTarget if target in selected]


def targets_from_flags(flags: dict[str, bool]) -> list[SyncTarget]:
    """Targets selected by single-letter CLI flags.

    Args:
        flags: Mapping of shortcut letter to flag value
    """
    return [TARGET_SHORTCUTS[letter] for letter, on in flags.items() if on]
