"""OVN database tooling invoked inside a restore container."""

from pathlib import PurePosixPath

from ovndbrestore.models import Role

OVN_CTL = "/usr/share/ovn/scripts/ovn-ctl"
READY_SENTINEL = "/ovndb_ready"


class OvnToolingService:
    """Wraps ovsdb-tool, ovn-ctl and ovn-{nb,sb}ctl calls through the engine."""

    def __init__(self, engine, logger):
        self.engine = engine
        self.logger = logger

    @staticmethod
    def staging_path(role: Role) -> str:
        return str(PurePosixPath("/", "tmp", f"gathered_{role.tag}_db.db"))

    def prepare_directories(self, container: str, role: Role):
        db_dir = str(PurePosixPath(role.tooling.db_file).parent)
        self.engine.exec(container, ["mkdir", "-p", db_dir, "/var/run/ovn", "/var/log/ovn"])

    def is_clustered(self, container: str, db_path: str) -> bool:
        result = self.engine.exec(container, ["ovsdb-tool", "db-is-clustered", db_path], check=False)
        return result.returncode == 0

    def cluster_to_standalone(self, container: str, source: str, role: Role):
        self.logger.info("Converting clustered %s database to standalone in %s", role.tag, container)
        self.engine.exec(
            container,
            ["ovsdb-tool", "cluster-to-standalone", role.tooling.db_file, source],
        )

    def install_standalone(self, container: str, source: str, role: Role):
        self.engine.exec(container, ["mv", source, role.tooling.db_file])

    def start_service(self, container: str, role: Role):
        self.engine.exec_detached(container, [OVN_CTL, role.tooling.ctl_run_command])

    def show(self, container: str, role: Role) -> bool:
        result = self.engine.exec(container, [role.tooling.ctl_tool, "show"], check=False)
        return result.returncode == 0

    def mark_ready(self, container: str):
        self.engine.exec(container, ["touch", READY_SENTINEL], check=False)
