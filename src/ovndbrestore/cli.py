import logging
import os

import click
from rich.console import Console
from rich.logging import RichHandler

from .core import SINGLE_READY_ATTEMPTS, FleetOrchestrator, RestoreError, SingleDatabaseRunner
from .models import ENGINES, ROLE_FILTERS, RunSettings, parse_role_filter
from .services.config_loader import ConfigLoader

ROLE_CHOICES = sorted(ROLE_FILTERS)
DEFAULTS = RunSettings()


def _resolve_option(cli_value, config, key, default=None):
    if cli_value is not None:
        return cli_value
    if key in config:
        return config[key]
    return default


def _split_legacy_args(legacy_args):
    """Maps the historical positional `[ROLE] [ENGINE]` arguments by content."""
    role = engine = None
    for value in legacy_args:
        lowered = value.lower()
        if lowered in ENGINES and engine is None:
            engine = lowered
        elif lowered in ROLE_FILTERS and role is None:
            role = lowered
        else:
            raise click.UsageError(
                f"Unexpected argument '{value}'. Expected a role ({', '.join(ROLE_CHOICES)}) "
                f"or a container engine ({', '.join(ENGINES)})."
            )
    return role, engine


def _load_config(config):
    try:
        return ConfigLoader().load_default(os.getcwd(), config)
    except RestoreError as exc:
        raise click.ClickException(str(exc)) from exc


def _configure_logging(verbose, log_file):
    logger = logging.getLogger("ovndbrestore")
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.INFO)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
        file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
        logger.addHandler(file_handler)


logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_level=False,
            show_path=False,
        )
    ],
)

_engine_option = click.option(
    "--engine",
    required=False,
    type=click.Choice(ENGINES),
    help="Container engine (default: docker).",
)
_image_option = click.option("--image", required=False, help="Container image providing the OVN tools.")
_ready_attempts_option = click.option(
    "--ready-attempts",
    required=False,
    type=int,
    default=None,
    help="Readiness checks, one second apart, before giving up on a database.",
)
_config_option = click.option(
    "--config",
    required=False,
    type=click.Path(),
    help="Path to a YAML configuration file. Defaults to .ovndbrestore.yml if present.",
)
_verbose_option = click.option("--verbose", is_flag=True, default=None, help="Enable verbose logging")
_log_file_option = click.option("--log-file", type=click.Path(), help="Path to log file")


@click.command()
@click.argument("db_directory", required=False, type=click.Path())
@click.argument("legacy_args", nargs=-1)
@click.option(
    "--role",
    required=False,
    type=click.Choice(ROLE_CHOICES, case_sensitive=False),
    help="Databases to start: n (northbound), s (southbound) or all.",
)
@_engine_option
@_image_option
@click.option("--prefix", required=False, help="Container name prefix (default: ovndb).")
@click.option("--helper-script", required=False, type=click.Path(), help="Where to write the helper functions.")
@click.option("--report-file", required=False, type=click.Path(), help="Write a JSON report of the run.")
@_ready_attempts_option
@click.option(
    "--clean",
    "--stopall",
    "clean",
    is_flag=True,
    default=False,
    help="Stop every container started by previous runs and exit.",
)
@_config_option
@_verbose_option
@_log_file_option
def run_multiple(
    db_directory,
    legacy_args,
    role,
    engine,
    image,
    prefix,
    helper_script,
    report_file,
    ready_attempts,
    clean,
    config,
    verbose,
    log_file,
):
    """Start one container per OVN database found in DB_DIRECTORY.

    The legacy form `DB_DIRECTORY [n|s|all] [docker|podman]` is still accepted.
    """
    config_values = _load_config(config)
    legacy_role, legacy_engine = _split_legacy_args(legacy_args)

    role = _resolve_option(role or legacy_role, config_values, "role", default="all")
    engine = _resolve_option(engine or legacy_engine, config_values, "engine", default=DEFAULTS.engine)
    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    if not clean and not db_directory:
        raise click.UsageError("Missing argument 'DB_DIRECTORY' (or use --clean).")

    try:
        settings = RunSettings(
            engine=engine,
            image=_resolve_option(image, config_values, "image", default=DEFAULTS.image),
            prefix=_resolve_option(prefix, config_values, "prefix", default=DEFAULTS.prefix),
            roles=parse_role_filter(role),
            helper_script=_resolve_option(
                helper_script, config_values, "helper_script", default=DEFAULTS.helper_script
            ),
            report_file=_resolve_option(report_file, config_values, "report_file"),
            ready_attempts=int(
                _resolve_option(
                    ready_attempts, config_values, "ready_attempts", default=DEFAULTS.ready_attempts
                )
            ),
            ready_delay_seconds=float(
                _resolve_option(
                    None,
                    config_values,
                    "ready_delay_seconds",
                    default=DEFAULTS.ready_delay_seconds,
                )
            ),
        )
        orchestrator = FleetOrchestrator(db_directory=db_directory, settings=settings)
    except RestoreError as exc:
        raise click.ClickException(str(exc)) from exc

    if clean:
        raise SystemExit(orchestrator.clean())
    raise SystemExit(orchestrator.run())


@click.command()
@click.argument("db_file", type=click.Path())
@click.argument("legacy_engine", required=False, type=click.Choice(ENGINES))
@click.option(
    "--role",
    required=False,
    type=click.Choice(["n", "s", "northbound", "southbound"], case_sensitive=False),
    help="Database role. Detected from the file when omitted.",
)
@_engine_option
@_image_option
@_ready_attempts_option
@_config_option
@_verbose_option
@_log_file_option
def run_locally(db_file, legacy_engine, role, engine, image, ready_attempts, config, verbose, log_file):
    """Restore DB_FILE into a container and open a shell in it.

    The container is removed when the shell exits.
    """
    config_values = _load_config(config)

    verbose = bool(_resolve_option(verbose, config_values, "verbose", default=False))
    log_file = _resolve_option(log_file, config_values, "log_file")
    _configure_logging(verbose, log_file)

    try:
        settings = RunSettings(
            engine=_resolve_option(engine or legacy_engine, config_values, "engine", default=DEFAULTS.engine),
            image=_resolve_option(image, config_values, "image", default=DEFAULTS.image),
            prefix=_resolve_option(None, config_values, "prefix", default=DEFAULTS.prefix),
            ready_attempts=int(
                _resolve_option(ready_attempts, config_values, "ready_attempts", default=SINGLE_READY_ATTEMPTS)
            ),
            ready_delay_seconds=float(
                _resolve_option(
                    None,
                    config_values,
                    "ready_delay_seconds",
                    default=DEFAULTS.ready_delay_seconds,
                )
            ),
        )
        runner = SingleDatabaseRunner(db_file=db_file, settings=settings, role=role)
    except RestoreError as exc:
        raise click.ClickException(str(exc)) from exc

    raise SystemExit(runner.run())


if __name__ == "__main__":
    run_multiple()
