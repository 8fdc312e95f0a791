"""Shared domain models for ovndbrestore."""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple

from ovndbrestore.errors import RestoreError


class Role(Enum):
    NORTHBOUND = "n"
    SOUTHBOUND = "s"

    @property
    def tag(self) -> str:
        return f"{self.value}b"

    @property
    def tooling(self) -> "RoleTooling":
        return ROLE_TOOLING[self]


@dataclass(frozen=True)
class RoleTooling:
    """Role specific names used inside the container and in the OVSDB file."""

    schema_name: str
    global_table: str
    db_file: str
    ctl_run_command: str
    ctl_tool: str


ROLE_TOOLING: Dict[Role, RoleTooling] = {
    Role.NORTHBOUND: RoleTooling(
        schema_name="OVN_Northbound",
        global_table="NB_Global",
        db_file="/etc/ovn/ovnnb_db.db",
        ctl_run_command="run_nb_ovsdb",
        ctl_tool="ovn-nbctl",
    ),
    Role.SOUTHBOUND: RoleTooling(
        schema_name="OVN_Southbound",
        global_table="SB_Global",
        db_file="/etc/ovn/ovnsb_db.db",
        ctl_run_command="run_sb_ovsdb",
        ctl_tool="ovn-sbctl",
    ),
}

ROLE_FILTERS: Dict[str, FrozenSet[Role]] = {
    "n": frozenset({Role.NORTHBOUND}),
    "northbound": frozenset({Role.NORTHBOUND}),
    "s": frozenset({Role.SOUTHBOUND}),
    "southbound": frozenset({Role.SOUTHBOUND}),
    "all": frozenset(Role),
    "both": frozenset(Role),
}

ENGINES = ("docker", "podman")


def parse_role_filter(value: Optional[str]) -> FrozenSet[Role]:
    if value is None:
        return ROLE_FILTERS["all"]

    key = value.strip().lower()
    if key not in ROLE_FILTERS:
        raise RestoreError(
            f"Invalid role filter '{value}'. Use one of: {', '.join(ROLE_FILTERS)}."
        )
    return ROLE_FILTERS[key]


def parse_role(value: str) -> Role:
    roles = parse_role_filter(value)
    if len(roles) != 1:
        raise RestoreError(f"Role '{value}' is ambiguous. Use 'n' or 's'.")
    return next(iter(roles))


def container_name_for(prefix: str, role: Role, hostname: str) -> str:
    return f"{prefix}_{role.tag}_{hostname}"


@dataclass(frozen=True)
class DatabaseRecord:
    """One gathered database file and the container that will serve it."""

    index: int
    file_path: str
    role: Role
    hostname: str
    container_name: str


@dataclass(frozen=True)
class Fleet:
    """Ordered, read-only collection of the databases of one invocation."""

    records: Tuple[DatabaseRecord, ...]

    def __iter__(self) -> Iterator[DatabaseRecord]:
        return iter(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __getitem__(self, index: int) -> DatabaseRecord:
        return self.records[index]

    def indices_for(self, role: Role) -> List[int]:
        return [record.index for record in self.records if record.role is role]


class LaunchStatus(Enum):
    READY = "ready"
    TIMEOUT = "timeout"
    FAILED = "failed"


@dataclass(frozen=True)
class LaunchResult:
    """Outcome of starting one database container."""

    record: DatabaseRecord
    status: LaunchStatus
    error: Optional[str] = None

    @property
    def has_container(self) -> bool:
        return self.status is not LaunchStatus.FAILED


@dataclass(frozen=True)
class RunSettings:
    """Resolved options for a single invocation."""

    engine: str = "docker"
    image: str = "quay.io/openshift/origin-ovn-kubernetes:latest"
    prefix: str = "ovndb"
    roles: FrozenSet[Role] = ROLE_FILTERS["all"]
    helper_script: str = "/tmp/ovndb_helpers.sh"
    report_file: Optional[str] = None
    ready_attempts: int = 60
    ready_delay_seconds: float = 1.0
