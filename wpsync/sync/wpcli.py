"""Command builders for the CMS command-line client (WP-CLI)."""

from ..config import Environment, SyncConfig
from ..utils import remote_command

SSH_BIN = "ssh"

# guid holds content-addressed identifiers, not URLs to rewrite
SEARCH_REPLACE_OPTIONS: tuple[str, ...] = (
    "--precise",
    "--recurse-objects",
    "--skip-columns=guid",
    "--report-changed-only",
    "--skip-plugins",
    "--skip-themes",
    "--all-tables",
    "--allow-root",
)


class WpCli:
    """Builds argument vectors for WP-CLI in one environment.

    Local commands run the configured client directly; remote commands are
    wrapped in ``ssh <alias> "cd <root> && ..."`` with every token quoted.
    """

    def __init__(self, config: SyncConfig, environment: Environment):
        self.config = config
        self.environment = environment

    @property
    def is_local(self) -> bool:
        return self.environment.is_local

    def command(self, *args: str) -> list[str]:
        env = self.environment
        if env.is_local:
            return [*self.config.local_wp_command(), *args]
        alias, root = env.require_remote()
        wp = [*self.config.remote_wp_command(env), *args]
        return [SSH_BIN, alias, remote_command(root, wp)]

    def _local_flags(self) -> tuple[str, ...]:
        return ("--allow-root",) if self.is_local else ()

    def db_export(self) -> list[str]:
        """Dump the database to stdout."""
        return self.command(
            "db", "export", "-", *self._local_flags(), "--single-transaction", "--quick"
        )

    def db_import(self) -> list[str]:
        """Load a dump from stdin."""
        return self.command("db", "import", "-", *self._local_flags())

    def search_replace_options(self) -> list[str]:
        options = list(SEARCH_REPLACE_OPTIONS)
        if self.config.multisite:
            options.append("--network")
        return options

    def search_replace_export(self, search: str, replace: str) -> list[str]:
        """Stream a rewritten dump to stdout without touching the database."""
        return self.command(
            "search-replace",
            *self.search_replace_options(),
            search,
            replace,
            "--export",
        )
