"""CLI interface for wpsync."""

import logging
from typing import Any, Callable, Optional

import click

from .config import SyncConfig, load_config
from .environments import EnvironmentRegistry
from .exceptions import SyncError
from .oplog import OperationLog
from .output import OutputFormatter
from .process import ProcessRunner
from .sync import Direction, SyncEngine, SyncReport, SyncTarget
from .sync.targets import TARGET_SHORTCUTS, targets_from_flags

logger = logging.getLogger(__name__)


def target_options(func: Callable) -> Callable:
    """Attach the options shared by push and pull."""
    for letter, target in reversed(list(TARGET_SHORTCUTS.items())):
        func = click.option(
            f"-{letter}",
            f"flag_{letter}",
            is_flag=True,
            help=f"Sync {target.value}",
        )(func)
    func = click.option(
        "--dry-run", is_flag=True, help="Show what would be run without running it"
    )(func)
    func = click.option("--all", "use_all", is_flag=True, help="Sync all targets")(
        func
    )
    func = click.option("--env", "-e", "env", help="Environment name")(func)
    func = click.argument("args", nargs=-1)(func)
    return func


def split_positionals(
    args: tuple[str, ...], env: Optional[str], registry: EnvironmentRegistry
) -> tuple[Optional[str], list[str]]:
    """Separate an optional leading environment name from target tokens.

    ``push staging themes`` and ``push -e staging themes`` are equivalent.

    Returns:
        (environment name or None, target tokens)
    """
    tokens = list(args)
    if tokens and tokens[0] in registry and (env is None or tokens[0] == env):
        env = tokens.pop(0)
    return env, tokens


def _load_config(ctx: Any) -> SyncConfig:
    out: OutputFormatter = ctx.obj["out"]
    try:
        return load_config(ctx.obj["config_path"])
    except SyncError as e:
        out.error(str(e))
        ctx.exit(1)


def _print_report(out: OutputFormatter, report: SyncReport, dry_run: bool) -> None:
    items = [
        ("Environment", report.environment),
        ("Direction", report.direction.value),
        ("Targets", ", ".join(t.value for t in report.completed) or "none"),
    ]
    if report.skipped:
        items.append(("Skipped", ", ".join(t.value for t in report.skipped)))
    if report.cancelled:
        items.append(("Cancelled", SyncTarget.DATABASE.value))
    if report.database and report.database.artifacts:
        items.append(
            ("Backups", ", ".join(a.filename for a in report.database.artifacts))
        )

    if report.cancelled:
        title = "Sync Stopped"
    elif dry_run:
        title = "Dry Run Complete"
    else:
        title = "Sync Complete"
    out.print_summary(title, items)


@click.group()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to sync.config.json (default: ./sync.config.json)",
)
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(package_name="wpsync")
@click.pass_context
def main(ctx: Any, config_path: Optional[str], quiet: bool, verbose: bool) -> None:
    """wpsync - Push and pull WordPress files and databases between environments.

    Targets: themes (t), plugins (p), mu-plugins (m), languages (l),
    uploads (u), database (d). Letters combine: -tpud.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["out"] = OutputFormatter(quiet=quiet)

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("wpsync").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _run_sync(
    ctx: Any,
    direction: Direction,
    args: tuple[str, ...],
    env: Optional[str],
    use_all: bool,
    dry_run: bool,
    flags: dict[str, bool],
) -> None:
    out: OutputFormatter = ctx.obj["out"]
    config = _load_config(ctx)

    env, tokens = split_positionals(args, env, EnvironmentRegistry(config))
    tokens.extend(target.value for target in targets_from_flags(flags))

    runner = ProcessRunner(dry_run=dry_run, output=out)
    oplog = OperationLog(config.log_path)
    try:
        engine = SyncEngine(config, runner, oplog=oplog, output=out)
        report = engine.run(direction, env, tokens, use_all=use_all)
    except SyncError as e:
        out.error(str(e))
        ctx.exit(1)
    except KeyboardInterrupt:
        out.warning("\nSync interrupted by user")
        ctx.exit(1)
    finally:
        oplog.close()

    if report.cancelled:
        if not report.completed:
            out.warning("Cancelled. Nothing was changed.")
            return
        done = ", ".join(t.value for t in report.completed)
        out.warning(f"Database step cancelled. Already synced: {done}.")

    _print_report(out, report, dry_run)


@main.command()
@target_options
@click.pass_context
def push(
    ctx: Any,
    args: tuple[str, ...],
    env: Optional[str],
    use_all: bool,
    dry_run: bool,
    **flags: bool,
) -> None:
    """Push local targets to a remote environment.

    ARGS: [ENV] [TARGETS...]

    Examples:
        wpsync push staging themes plugins
        wpsync push -e staging -tp
        wpsync push production --all
        wpsync push database --dry-run     # single remote environment
    """
    _run_sync(
        ctx,
        Direction.PUSH,
        args,
        env,
        use_all,
        dry_run,
        {name[len("flag_"):]: on for name, on in flags.items()},
    )


@main.command()
@target_options
@click.pass_context
def pull(
    ctx: Any,
    args: tuple[str, ...],
    env: Optional[str],
    use_all: bool,
    dry_run: bool,
    **flags: bool,
) -> None:
    """Pull targets from a remote environment into local.

    ARGS: [ENV] [TARGETS...]

    Examples:
        wpsync pull staging uploads database
        wpsync pull -e production -ud
    """
    _run_sync(
        ctx,
        Direction.PULL,
        args,
        env,
        use_all,
        dry_run,
        {name[len("flag_"):]: on for name, on in flags.items()},
    )


@main.command("db:export")
@click.option("--env", "-e", "env", help="Environment to export (required)")
@click.option(
    "--replace",
    "replace",
    is_flag=False,
    flag_value="",
    default=None,
    metavar="ENV",
    help="Rewrite the domain for importing into ENV",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be run without running it"
)
@click.pass_context
def db_export(
    ctx: Any, env: Optional[str], replace: Optional[str], dry_run: bool
) -> None:
    """Export an environment's database to a timestamped file.

    Plain exports land in sql/<env>/. With --replace the dump is rewritten
    for the named environment and stored in sql/exports/; such a dump is
    one-way and must only be imported into that environment.

    Examples:
        wpsync db:export -e production
        wpsync db:export -e staging --replace=production
    """
    out: OutputFormatter = ctx.obj["out"]

    if replace == "":
        out.error("--replace requires an environment name (e.g. --replace=staging)")
        ctx.exit(1)

    config = _load_config(ctx)
    runner = ProcessRunner(dry_run=dry_run, output=out)
    oplog = OperationLog(config.log_path)
    try:
        engine = SyncEngine(config, runner, oplog=oplog, output=out)
        result = engine.export(env, replace_with=replace)
    except SyncError as e:
        out.error(str(e))
        ctx.exit(1)
    finally:
        oplog.close()

    artifact = result.artifacts[0]
    out.print_summary(
        "Dry Run Complete" if dry_run else "Export Complete",
        [
            ("Environment", result.environment),
            ("File", str(artifact.path)),
            ("Replaced for", replace or "-"),
        ],
    )


@main.command()
@click.pass_context
def envs(ctx: Any) -> None:
    """List configured environments and their sync restrictions."""
    out: OutputFormatter = ctx.obj["out"]
    config = _load_config(ctx)

    rows = []
    for env in config.environments.values():
        denied = [
            f"{direction.value} {target.value}"
            for target in SyncTarget
            for direction in Direction
            if not env.is_allowed(target.value, direction.value)
        ]
        rows.append(
            [
                env.name,
                env.ssh_alias or "-",
                env.wp_root or "-",
                env.domain or "(missing)",
                ", ".join(denied) or "-",
            ]
        )
    out.print_table(
        ["Name", "SSH alias", "Root", "Domain", "Denied"], rows, title="Environments"
    )


if __name__ == "__main__":
    main()
