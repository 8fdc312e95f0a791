"""Per-database container lifecycle and readiness polling."""

import time

from ovndbrestore.models import Role


class ContainerLifecycleService:
    """Starts a fresh database container and waits for its service."""

    def __init__(self, engine, tooling, logger, console, image: str):
        self.engine = engine
        self.tooling = tooling
        self.logger = logger
        self.console = console
        self.image = image

    def start(self, container: str, db_file: str, role: Role, remove_on_stop: bool = True):
        """Restores ``db_file`` into a new ``container`` and starts the service.

        An existing container with the same name is always removed first.
        Returns once the service has been launched; readiness is checked
        separately with :meth:`wait_until_ready`.
        """
        if self.engine.exists(container):
            self.logger.info("Removing existing container %s", container)
            self.engine.remove(container)

        self.console.print(f"[blue]Starting container {container}...[/blue]")
        self.engine.run_detached(container, self.image, remove_on_stop=remove_on_stop)

        staging = self.tooling.staging_path(role)
        self.tooling.prepare_directories(container, role)
        self.engine.cp(db_file, container, staging)

        if self.tooling.is_clustered(container, staging):
            self.tooling.cluster_to_standalone(container, staging, role)
        else:
            self.tooling.install_standalone(container, staging, role)

        self.tooling.start_service(container, role)

    def wait_until_ready(
        self,
        container: str,
        role: Role,
        max_retries: int = 60,
        delay_seconds: float = 1.0,
    ) -> bool:
        self.console.print(f"[yellow]Waiting for {role.tag} database in {container}...[/yellow]")

        for attempt in range(max_retries):
            if self.tooling.show(container, role):
                self.tooling.mark_ready(container)
                self.console.print(f"[green]{container}: ok[/green]")
                return True
            if attempt < max_retries - 1:
                time.sleep(delay_seconds)

        self.logger.warning(
            "%s database in %s did not answer after %s attempts. Inspect it manually.",
            role.tag,
            container,
            max_retries,
        )
        return False
