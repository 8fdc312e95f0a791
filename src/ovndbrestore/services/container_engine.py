"""Container engine wrapper for docker and podman."""

from typing import Callable, List, Optional

from ovndbrestore.errors import RestoreError
from ovndbrestore.errors_catalog import actionable_error
from ovndbrestore.models import ENGINES

# Keeps the container alive for exec calls and stops promptly on SIGTERM.
KEEPALIVE_SCRIPT = "trap 'exit 0' TERM INT; sleep infinity & wait"


class ContainerEngine:
    """Thin command builder over the `docker` / `podman` CLI."""

    def __init__(self, engine: str, run_cmd: Callable, logger):
        if engine not in ENGINES:
            raise RestoreError(f"Unsupported container engine '{engine}'. Use one of: {', '.join(ENGINES)}.")
        self.engine = engine
        self.run_cmd = run_cmd
        self.logger = logger

    def validate(self):
        try:
            self.run_cmd([self.engine, "--version"], capture_output=True)
        except RestoreError as exc:
            raise RestoreError(actionable_error("engine_not_found", engine=self.engine)) from exc

    def list_names(self, name_filter: str, all_states: bool = True) -> List[str]:
        cmd = [self.engine, "ps"]
        if all_states:
            cmd.append("-a")
        cmd += ["--filter", f"name={name_filter}", "--format", "{{.Names}}"]
        result = self.run_cmd(cmd, capture_output=True)
        return [line.strip() for line in (result.stdout or "").splitlines() if line.strip()]

    def exists(self, name: str) -> bool:
        # The engine filter is a substring/regex match, so compare exact names.
        return name in self.list_names(f"^{name}$")

    def run_detached(self, name: str, image: str, remove_on_stop: bool = False):
        cmd = [self.engine, "run", "-d", "--name", name]
        if remove_on_stop:
            cmd.append("--rm")
        cmd += ["--entrypoint", "/bin/bash", image, "-c", KEEPALIVE_SCRIPT]
        self.run_cmd(cmd, capture_output=True)

    def exec(self, name: str, args: List[str], check: bool = True):
        return self.run_cmd([self.engine, "exec", name] + args, check=check, capture_output=True)

    def exec_detached(self, name: str, args: List[str]):
        self.run_cmd([self.engine, "exec", "-d", name] + args, capture_output=True)

    def exec_interactive(self, name: str, args: Optional[List[str]] = None) -> int:
        result = self.run_cmd(
            [self.engine, "exec", "-it", name] + (args or ["bash"]),
            check=False,
            capture_output=False,
        )
        return result.returncode

    def cp(self, source: str, name: str, destination: str):
        self.run_cmd([self.engine, "cp", source, f"{name}:{destination}"], capture_output=True)

    def stop(self, name: str):
        self.run_cmd([self.engine, "stop", name], check=False, capture_output=True)

    def rm(self, name: str):
        self.run_cmd([self.engine, "rm", "-f", name], check=False, capture_output=True)

    def remove(self, name: str):
        self.logger.debug("Removing container %s", name)
        self.stop(name)
        self.rm(name)
