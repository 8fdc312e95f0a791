import logging
import os
import subprocess
from dataclasses import asdict
from typing import List, Optional

from rich.console import Console

from .errors import RestoreError
from .errors_catalog import actionable_error
from .models import Fleet, LaunchResult, LaunchStatus, Role, RunSettings, parse_role
from .services import ovsdb_file
from .services.command_runner import CommandRunner
from .services.container_engine import ContainerEngine
from .services.discovery import DiscoveryService
from .services.helper_script import HelperScriptService
from .services.lifecycle import ContainerLifecycleService
from .services.ovn_tooling import OvnToolingService
from .services.report import FleetReportService

console = Console()
err_console = Console(stderr=True)
logger = logging.getLogger("ovndbrestore")

SINGLE_READY_ATTEMPTS = 10


class _EngineRunner:
    """Wires the container engine, OVN tooling and lifecycle services together."""

    def __init__(self, settings: RunSettings, command_runner: Optional[CommandRunner] = None):
        self.settings = settings
        self.last_error: Optional[str] = None
        self.command_runner = command_runner or CommandRunner(logger=logger)
        self.engine = ContainerEngine(settings.engine, run_cmd=self._run_cmd, logger=logger)
        self.tooling = OvnToolingService(engine=self.engine, logger=logger)
        self.lifecycle = ContainerLifecycleService(
            engine=self.engine,
            tooling=self.tooling,
            logger=logger,
            console=console,
            image=settings.image,
        )

    def _run_cmd(
        self,
        cmd: List[str],
        check: bool = True,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess:
        return self.command_runner.run(cmd, check=check, capture_output=capture_output)

    def _guarded(self, action, *args) -> int:
        self.last_error = None
        try:
            action(*args)
            return 0
        except KeyboardInterrupt:
            self.last_error = "Operation cancelled by user."
            err_console.print("[bold red]Operation cancelled by user.[/bold red]")
            logger.info("Operation cancelled by user")
            return 1
        except RestoreError as exc:
            self.last_error = str(exc)
            err_console.print(f"[bold red]Error:[/bold red] {exc}")
            logger.debug("Aborting: %s", exc)
            return 1
        except Exception as exc:
            self.last_error = str(exc)
            err_console.print(f"[bold red]Unexpected error:[/bold red] {exc}")
            logger.exception("Unexpected error")
            return 1


class FleetOrchestrator(_EngineRunner):
    """Restores every database of a gathered directory into its own container."""

    def __init__(
        self,
        db_directory: Optional[str],
        settings: RunSettings,
        command_runner: Optional[CommandRunner] = None,
    ):
        super().__init__(settings, command_runner)
        self.db_directory = db_directory
        self.discovery_service = DiscoveryService(
            logger=logger,
            console=console,
            prefix=settings.prefix,
        )
        self.helper_script_service = HelperScriptService(logger=logger, console=console)
        self.report_service = FleetReportService(report_file=settings.report_file, logger=logger)

    def discover(self) -> Fleet:
        if not self.db_directory:
            raise RestoreError(actionable_error("db_directory_not_found", path="<none>"))
        return self.discovery_service.discover(self.db_directory, self.settings.roles)

    def launch(self, record) -> LaunchResult:
        try:
            self.lifecycle.start(record.container_name, record.file_path, record.role)
            ready = self.lifecycle.wait_until_ready(
                record.container_name,
                record.role,
                max_retries=self.settings.ready_attempts,
                delay_seconds=self.settings.ready_delay_seconds,
            )
        except RestoreError as exc:
            logger.warning("Could not start %s for %s: %s", record.container_name, record.file_path, exc)
            self.engine.remove(record.container_name)
            return LaunchResult(record=record, status=LaunchStatus.FAILED, error=str(exc))

        status = LaunchStatus.READY if ready else LaunchStatus.TIMEOUT
        return LaunchResult(record=record, status=status)

    def launch_fleet(self, fleet: Fleet) -> List[LaunchResult]:
        results = []
        for record in fleet:
            result = self.launch(record)
            self.report_service.add_result(result)
            results.append(result)
        return results

    def print_summary(self, results: List[LaunchResult]):
        for result in results:
            record = result.record
            colour = {
                LaunchStatus.READY: "green",
                LaunchStatus.TIMEOUT: "yellow",
                LaunchStatus.FAILED: "red",
            }[result.status]
            console.print(
                f"[{colour}]{record.index:>3} {record.role.tag} {record.hostname:<40} "
                f"{record.container_name} {result.status.value}[/{colour}]"
            )

    def _settings_metadata(self):
        data = asdict(self.settings)
        data["roles"] = sorted(role.tag for role in self.settings.roles)
        data["db_directory"] = self.db_directory
        return data

    def _run_fleet(self):
        logger.info("Starting ovn-db-run-multiple...")
        self.report_service.start_run(self._settings_metadata())
        self.engine.validate()

        fleet = self.discover()
        results = self.launch_fleet(fleet)

        path = self.helper_script_service.write(
            self.settings.helper_script,
            fleet,
            results,
            self.settings.engine,
        )
        self.report_service.set_helper_script(path)
        self.print_summary(results)

        failed = [r for r in results if r.status is LaunchStatus.FAILED]
        if failed:
            logger.warning("%s of %s database(s) could not be started.", len(failed), len(results))
        console.print(f"[bold green]Run `source {path}` and then `ovndb_show`.[/bold green]")

    def run(self) -> int:
        exit_code = self._guarded(self._run_fleet)
        if exit_code == 0:
            self.report_service.finalize("success")
        else:
            self.report_service.finalize("failed", error=self.last_error)
        return exit_code

    def clean_all(self) -> int:
        names = self.engine.list_names(f"^{self.settings.prefix}_")
        for name in names:
            console.print(f"[dim]Stopping {name}...[/dim]")
            self.engine.remove(name)
        if not names:
            console.print("[dim]No fleet containers running.[/dim]")
        return len(names)

    def clean(self) -> int:
        return self._guarded(self.clean_all)


class SingleDatabaseSession:
    """Container bound to one interactive session; removed on every exit path."""

    def __init__(self, lifecycle, engine, container: str, db_file: str, role: Role):
        self.lifecycle = lifecycle
        self.engine = engine
        self.container = container
        self.db_file = db_file
        self.role = role

    def __enter__(self):
        try:
            self.lifecycle.start(self.container, self.db_file, self.role, remove_on_stop=False)
        except BaseException:
            self.release()
            raise
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def release(self):
        console.print(f"[dim]Removing container {self.container}...[/dim]")
        self.engine.remove(self.container)


class SingleDatabaseRunner(_EngineRunner):
    """Restores one database file and opens a shell inside its container."""

    def __init__(
        self,
        db_file: str,
        settings: RunSettings,
        role: Optional[str] = None,
        command_runner: Optional[CommandRunner] = None,
    ):
        super().__init__(settings, command_runner)
        self.db_file = db_file
        self.role = role
        self.container_name = f"{settings.prefix}-local"

    def resolve_role(self) -> Role:
        if self.role:
            return parse_role(self.role)
        role = ovsdb_file.classify(self.db_file)
        if role is None:
            raise RestoreError(actionable_error("unclassified_database", path=self.db_file))
        return role

    def _run_session(self):
        if not os.path.isfile(self.db_file):
            raise RestoreError(actionable_error("db_file_not_found", path=self.db_file))

        role = self.resolve_role()
        self.engine.validate()
        logger.info("Restoring %s database %s", role.tag, self.db_file)

        with SingleDatabaseSession(
            self.lifecycle,
            self.engine,
            self.container_name,
            os.path.abspath(self.db_file),
            role,
        ):
            self.lifecycle.wait_until_ready(
                self.container_name,
                role,
                max_retries=self.settings.ready_attempts,
                delay_seconds=self.settings.ready_delay_seconds,
            )
            console.print(
                f"[bold blue]Opening shell in {self.container_name}. "
                f"Try `{role.tooling.ctl_tool} show`; exit to remove the container.[/bold blue]"
            )
            self.engine.exec_interactive(self.container_name)

    def run(self) -> int:
        return self._guarded(self._run_session)
